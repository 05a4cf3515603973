from threading import Lock
from typing import NamedTuple

import urllib3
from flask import current_app
from minio import Minio


class MinioSettings(NamedTuple):
    endpoint: str
    access_key: str
    secret_key: str
    secure: bool
    connect_timeout: float
    read_timeout: float
    pool_maxsize: int

    @classmethod
    def from_config(cls, config) -> "MinioSettings":
        return cls(
            endpoint=config["MINIO_ENDPOINT"],
            access_key=config["MINIO_ACCESS_KEY"],
            secret_key=config["MINIO_SECRET_KEY"],
            secure=bool(config["MINIO_SECURE"]),
            connect_timeout=float(config["MINIO_CONNECT_TIMEOUT"]),
            read_timeout=float(config["MINIO_READ_TIMEOUT"]),
            pool_maxsize=int(config.get("MINIO_HTTP_POOL_MAXSIZE", 32)),
        )


def build_minio_client(settings: MinioSettings) -> Minio:
    http_client = urllib3.PoolManager(
        timeout=urllib3.Timeout(
            connect=settings.connect_timeout,
            read=settings.read_timeout,
        ),
        retries=False,
        maxsize=settings.pool_maxsize,
    )
    return Minio(
        settings.endpoint,
        access_key=settings.access_key,
        secret_key=settings.secret_key,
        secure=settings.secure,
        http_client=http_client,
    )


_clients: dict[MinioSettings, Minio] = {}
_clients_lock = Lock()


def get_minio_client(settings: MinioSettings | None = None) -> Minio:
    """Return one shared client per distinct set of connection settings."""
    if settings is None:
        settings = MinioSettings.from_config(current_app.config)

    with _clients_lock:
        client = _clients.get(settings)
        if client is None:
            client = _clients[settings] = build_minio_client(settings)
        return client
