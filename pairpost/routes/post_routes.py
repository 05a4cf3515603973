import logging

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from pairpost.errors import PairpostError
from pairpost.services import post_service

logger = logging.getLogger(__name__)

post_bp = Blueprint("posts", __name__)


@post_bp.route("/upload", methods=["POST"])
@jwt_required()
def create_post():
    username = get_jwt_identity()

    content_type = (request.content_type or "").lower()
    image_file = None

    if "multipart/form-data" in content_type:
        title = request.form.get("title")
        caption = request.form.get("caption")
        image_file = request.files.get("image")
    else:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        title = data.get("title")
        caption = data.get("caption")

    try:
        post = post_service.create_post(username, title, caption, image_file)
        return jsonify(post_service.serialize_post(post)), 201
    except PairpostError as e:
        return jsonify({"message": e.message}), e.status_code
    except Exception:
        logger.exception("An unknown error occurred while uploading image and creating post")
        return jsonify({"message": "An unknown error occurred."}), 400


@post_bp.route("/posts", methods=["GET"])
@jwt_required()
def list_posts():
    username = get_jwt_identity()

    try:
        return jsonify(post_service.list_posts(username)), 200
    except PairpostError as e:
        return jsonify({"message": e.message}), e.status_code
    except Exception:
        logger.exception("An unknown error occurred while retrieving posts")
        return jsonify({"message": "An unknown error occurred."}), 400
