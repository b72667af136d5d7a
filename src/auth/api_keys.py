"""API-key verification for the externally exposed endpoints.

External systems (e.g. the burial permit system) authenticate with an `Authorization` header
carrying a `pk_...` key, either bare or as `Bearer pk_...`. A key grants read and/or write access and
may additionally be limited to specific `"METHOD /path"` patterns and client IPs.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import psycopg
from psycopg import AsyncConnection
from pydantic import BaseModel, ConfigDict, Field

from src.db.query import execute, fetch_one

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "pk_"
_WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
_PATH_PARAM_RE = re.compile(r":\w+")


class ApiKeyError(Exception):
    """Raised when a request's API key is missing, malformed, unknown or not usable."""

    def __init__(self, message: str, *, status_code: int = 401) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApiKeyPermissions(BaseModel):
    """Access granted to a key."""

    model_config = ConfigDict(extra="ignore")

    read: bool = False
    write: bool = False
    endpoints: list[str] | None = None


class ApiKey(BaseModel):
    """A row of the `api_keys` table."""

    model_config = ConfigDict(extra="ignore")

    id: int
    key_name: str
    system_name: str
    is_active: bool = True
    permissions: ApiKeyPermissions = Field(default_factory=ApiKeyPermissions)
    allowed_ips: list[str] | None = None
    last_used_at: datetime | None = None
    expires_at: datetime | None = None


def extract_api_key(authorization: str | None) -> str:
    """Return the key from an `Authorization` header value.

    Raises:
        ApiKeyError: If the header is missing or the key does not have the `pk_` prefix.
    """

    if not authorization:
        raise ApiKeyError("Missing Authorization header")

    value = authorization.removeprefix("Bearer ")
    if not value or not value.startswith(API_KEY_PREFIX):
        raise ApiKeyError("Invalid API key format")
    return value


def client_ip(headers: Mapping[str, str]) -> str | None:
    """Client address as reported by the reverse proxy headers."""

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return None


def validate_api_key(api_key: ApiKey, *, ip: str | None, now: datetime) -> None:
    """Check expiry and the IP allowlist of an active key.

    An allowlist is only enforced when the client address is known.

    Raises:
        ApiKeyError: If the key is inactive, expired, or the client IP is not allowed.
    """

    if not api_key.is_active:
        raise ApiKeyError("Invalid or inactive API key")

    expires_at = api_key.expires_at
    if expires_at is not None:
        # `timestamp without time zone` columns hold UTC wall-clock values.
        if expires_at.tzinfo is None and now.tzinfo is not None:
            expires_at = expires_at.replace(tzinfo=UTC)
        if expires_at < now:
            raise ApiKeyError("API key has expired")

    if api_key.allowed_ips and ip and ip not in api_key.allowed_ips:
        raise ApiKeyError("IP address not allowed")


def _endpoint_regex(pattern: str) -> re.Pattern[str]:
    """Compile an endpoint pattern: `*` matches anything, `:name` matches one path segment."""

    parts: list[str] = []
    pos = 0
    for match in _PATH_PARAM_RE.finditer(pattern):
        parts.append(re.escape(pattern[pos:match.start()]).replace(r"\*", ".*"))
        parts.append("[^/]+")
        pos = match.end()
    parts.append(re.escape(pattern[pos:]).replace(r"\*", ".*"))
    return re.compile("^" + "".join(parts) + "$")


def check_permission(api_key: ApiKey, method: str, path: str) -> bool:
    """Whether the key may call `method path`."""

    method = method.upper()
    permissions = api_key.permissions

    if method == "GET" and not permissions.read:
        return False
    if method in _WRITE_METHODS and not permissions.write:
        return False

    if permissions.endpoints:
        target = f"{method} {path}"
        return any(_endpoint_regex(p).match(target) for p in permissions.endpoints)

    return True


async def _touch_last_used(conn: AsyncConnection, api_key_id: int) -> None:
    try:
        async with conn.transaction():
            await execute(
                conn,
                "UPDATE api_keys SET last_used_at = CURRENT_TIMESTAMP WHERE id = %s",
                (api_key_id,),
            )
    except psycopg.Error:
        logger.exception("failed to update last_used_at api_key_id=%d", api_key_id)


async def verify_api_key(
        conn: AsyncConnection,
        *,
        authorization: str | None,
        ip: str | None,
        now: datetime,
) -> ApiKey:
    """Look up and validate the key carried by a request.

    Raises:
        ApiKeyError: If the key is missing, malformed, unknown, inactive, expired or IP-restricted.
    """

    value = extract_api_key(authorization)

    row: dict[str, Any] | None = await fetch_one(
        conn,
        "SELECT * FROM api_keys WHERE api_key = %s AND is_active = TRUE",
        (value,),
    )
    if row is None:
        raise ApiKeyError("Invalid or inactive API key")

    api_key = ApiKey.model_validate(row)
    validate_api_key(api_key, ip=ip, now=now)

    await _touch_last_used(conn, api_key.id)
    return api_key
