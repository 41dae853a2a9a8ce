"""ARQ worker connection settings built from ``REDIS_URL``.

``redis://`` and ``rediss://`` (TLS) URLs are accepted; the path selects the
database number.
"""

from typing import Optional
from urllib.parse import urlparse

from arq.connections import RedisSettings
from libs.common.config import get_settings


def get_redis_settings(url: Optional[str] = None) -> RedisSettings:
    parsed = urlparse(url or get_settings().REDIS_URL)
    if parsed.scheme not in ("redis", "rediss"):
        raise ValueError(f"Unsupported Redis URL scheme: {parsed.scheme!r}")

    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(parsed.path.lstrip("/") or "0"),
        username=parsed.username,
        password=parsed.password,
        ssl=parsed.scheme == "rediss",
        conn_timeout=5,
    )
