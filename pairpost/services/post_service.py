import logging
from concurrent.futures import ThreadPoolExecutor

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from pairpost.db import db
from pairpost.errors import (
    NoPartnerError,
    NotFoundError,
    OperationError,
    PairpostError,
    ValidationError,
)
from pairpost.repositories import post_repository, user_repository
from pairpost.schemas.post_schema import post_schema
from pairpost.services.media_gateway import get_media_gateway


logger = logging.getLogger(__name__)


def serialize_post(post):
    return post_schema.dump(post)


def create_post(username, title, caption=None, image_file=None):
    """Store the optional image, then insert the post row.

    The title is checked before anything touches storage or the database.
    """
    if title is None or title == "":
        raise ValidationError("Title is required")

    user = user_repository.get_by_username(username)
    if not user:
        raise NotFoundError("User not found")

    image = None
    if image_file is not None and getattr(image_file, "filename", ""):
        image = get_media_gateway().upload(image_file)

    try:
        post = post_repository.create_post(
            user_id=user.id,
            title=title,
            caption=caption,
            image=image,
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Could not save post for %s", username)
        raise OperationError("Could not create post") from e

    logger.info("Created post %s for %s (image=%s)", post.id, username, bool(image))
    return post


def _sign_images(gateway, object_names, max_workers):
    # map() yields in input order whatever order the lookups finish in,
    # and re-raises the first failure.
    def sign(object_name):
        return gateway.signed_url(object_name) if object_name else None

    if not object_names:
        return []

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(object_names)))) as executor:
        return list(executor.map(sign, object_names))


def list_posts(username):
    """Return the caller's posts followed by their partner's, each with a signed image URL."""
    user = user_repository.get_by_username(username)
    if not user:
        raise NotFoundError("User not found")
    if user.partner is None:
        raise NoPartnerError("You do not have a partner to view posts")

    try:
        posts = (
            post_repository.get_posts_by_user_id(user.id)
            + post_repository.get_posts_by_user_id(user.partner.id)
        )

        object_names = [post.image for post in posts]
        if any(object_names):
            image_urls = _sign_images(
                get_media_gateway(),
                object_names,
                current_app.config.get("SIGNED_URL_MAX_WORKERS", 8),
            )
        else:
            image_urls = [None] * len(posts)
    except PairpostError:
        raise
    except Exception as e:
        logger.exception("Unexpected error while retrieving posts for %s", username)
        raise OperationError("Could not retrieve posts") from e

    result = []
    for post, image_url in zip(posts, image_urls):
        payload = serialize_post(post)
        payload["imageUrl"] = image_url
        payload["mine"] = post.user_id == user.id
        result.append(payload)
    return result
