import logging

from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token, create_refresh_token

from pairpost.errors import ValidationError
from pairpost.repositories import user_repository


logger = logging.getLogger(__name__)


class InvalidCredentialsError(ValidationError):
    status_code = 401


def _require_non_empty_string(value):
    return isinstance(value, str) and value.strip()


def register(username, password):
    if not _require_non_empty_string(username) or not _require_non_empty_string(password):
        raise ValidationError("Missing fields")

    username = username.strip()
    if user_repository.get_by_username(username):
        raise ValidationError("Username already exists")

    user = user_repository.create_user(
        username=username,
        password_hash=generate_password_hash(password),
    )
    logger.info("Registered user %s", username)
    return user


def login(username, password):
    if not _require_non_empty_string(username) or not _require_non_empty_string(password):
        raise InvalidCredentialsError("Invalid credentials")

    username = username.strip()

    user = user_repository.get_by_username(username)
    if not user or not check_password_hash(user.password_hash, password):
        raise InvalidCredentialsError("Invalid credentials")

    return {
        "access_token": create_access_token(identity=username),
        "refresh_token": create_refresh_token(identity=username)
    }


def refresh_access_token(username):
    return {
        "access_token": create_access_token(identity=username)
    }
