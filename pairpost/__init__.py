import logging
import sys
from datetime import timedelta

from flask import Flask, jsonify
from werkzeug.exceptions import RequestEntityTooLarge

from pairpost.config import Config
from pairpost.db import db
from pairpost.extensions.extensions import cors, jwt, ma


logger = logging.getLogger(__name__)


def _setup_logging(level_name: str):
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@jwt.unauthorized_loader
def _missing_token(reason):
    return jsonify({"message": reason}), 401


@jwt.invalid_token_loader
def _invalid_token(reason):
    return jsonify({"message": reason}), 422


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return jsonify({"message": "Token has expired"}), 401


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(
        minutes=app.config["JWT_ACCESS_TOKEN_MINUTES"]
    )
    app.config["JWT_REFRESH_TOKEN_EXPIRES"] = timedelta(
        days=app.config["JWT_REFRESH_TOKEN_DAYS"]
    )

    _setup_logging(app.config["LOG_LEVEL"])

    db.init_app(app)
    jwt.init_app(app)
    ma.init_app(app)
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config["CORS_ALLOWED_ORIGINS"]}},
        supports_credentials=True,
    )

    from pairpost.models import partner_request_model, post_model, user_model  # noqa: F401
    from pairpost.routes.auth_routes import auth_bp
    from pairpost.routes.partner_routes import partner_bp
    from pairpost.routes.post_routes import post_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(post_bp, url_prefix="/api")
    app.register_blueprint(partner_bp, url_prefix="/api")

    @app.errorhandler(RequestEntityTooLarge)
    def upload_too_large(e):
        return jsonify({"message": "Uploaded file is too large"}), 413

    with app.app_context():
        db.create_all()

    logger.info("pairpost ready")
    return app
