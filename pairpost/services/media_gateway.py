import logging
import uuid
from datetime import timedelta

from flask import current_app
from minio.error import S3Error

from pairpost.errors import OperationError, ValidationError
from pairpost.extensions.minio_client import get_minio_client


logger = logging.getLogger(__name__)


def _extension_for(file_storage, mimetype: str) -> str:
    mapping = {
        "image/jpeg": "jpeg",
        "image/png": "png",
        "image/webp": "webp",
        "image/heic": "heic",
        "image/gif": "gif",
    }
    if mimetype in mapping:
        return mapping[mimetype]

    _, dot, suffix = (getattr(file_storage, "filename", None) or "").rpartition(".")
    if dot and suffix.isalnum():
        return suffix.lower()
    return "bin"


def _get_stream_and_length(file_storage):
    stream = getattr(file_storage, "stream", file_storage)
    try:
        stream.seek(0, 2)
        length = stream.tell()
        stream.seek(0)
        return stream, length
    except (AttributeError, OSError):
        return stream, -1


class MediaGateway:
    """Writes uploaded images to object storage and signs read URLs for them."""

    def __init__(self, client, bucket: str, expires: timedelta, allowed_mime_types=None):
        self.client = client
        self.bucket = bucket
        self.expires = expires
        self.allowed_mime_types = set(allowed_mime_types or ())

    def _ensure_bucket(self):
        if not self.client.bucket_exists(self.bucket):
            self.client.make_bucket(self.bucket)

    def upload(self, file_storage) -> str:
        mimetype = getattr(file_storage, "mimetype", None) or ""
        if self.allowed_mime_types and mimetype not in self.allowed_mime_types:
            raise ValidationError(f"Unsupported media type: {mimetype}")

        object_name = f"posts/{uuid.uuid4()}.{_extension_for(file_storage, mimetype)}"
        stream, length = _get_stream_and_length(file_storage)
        upload_kwargs = {
            "bucket_name": self.bucket,
            "object_name": object_name,
            "data": stream,
            "length": length,
            "content_type": mimetype or "application/octet-stream",
        }
        if length == -1:
            upload_kwargs["part_size"] = 10 * 1024 * 1024

        try:
            self._ensure_bucket()
            self.client.put_object(**upload_kwargs)
        except S3Error as e:
            logger.error("Upload of %s failed: %s", object_name, e.code)
            raise OperationError("Media storage is unavailable") from e
        except Exception as e:
            logger.exception("Upload of %s failed", object_name)
            raise OperationError("Media storage is unavailable") from e

        logger.info("Stored %s in bucket %s", object_name, self.bucket)
        return object_name

    def signed_url(self, object_name: str) -> str:
        try:
            return self.client.presigned_get_object(
                self.bucket,
                object_name,
                expires=self.expires,
            )
        except Exception as e:
            logger.exception("Could not sign %s", object_name)
            raise OperationError("Could not sign media URL") from e


def get_media_gateway() -> MediaGateway:
    config = current_app.config
    return MediaGateway(
        client=get_minio_client(),
        bucket=config["MINIO_BUCKET"],
        expires=timedelta(seconds=config["SIGNED_URL_EXPIRES_SECONDS"]),
        allowed_mime_types=config.get("ALLOWED_IMAGE_MIME_TYPES"),
    )
