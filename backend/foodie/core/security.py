"""Password hashing, JWT issuing and logout revocation."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import logging

import jwt
from jwt.exceptions import PyJWTError
import bcrypt
import redis

from foodie.core.config import settings

logger = logging.getLogger(__name__)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError as e:
        logger.warning(f"Password verification error: {e}")
        return False


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


class TokenBlacklist:
    """Revoked token ids, each kept until the token would have expired anyway.

    Entries go to redis (``token_blacklist:{jti}`` with a TTL) when a client
    is configured, so every worker sees them and they survive restarts.
    Without redis, or while it is unreachable, a process-local dict is used.
    """

    KEY_PREFIX = "token_blacklist:"

    def __init__(self, redis_client: Optional["redis.Redis"] = None):
        self.redis = redis_client
        self._expiry: Dict[str, datetime] = {}

    @classmethod
    def from_settings(cls) -> "TokenBlacklist":
        if not settings.redis_url:
            return cls()
        return cls(redis.from_url(settings.redis_url, socket_connect_timeout=2))

    def add(self, jti: str, expires_at: datetime) -> None:
        ttl = max(int((expires_at - datetime.now(timezone.utc)).total_seconds()), 1)
        if self.redis is not None:
            try:
                self.redis.setex(f"{self.KEY_PREFIX}{jti}", ttl, "1")
                return
            except redis.RedisError as e:
                logger.warning(f"Redis blacklist write failed, keeping {jti} in memory: {e}")
        self._purge()
        self._expiry[jti] = expires_at

    def __contains__(self, jti: str) -> bool:
        if self.redis is not None:
            try:
                if self.redis.exists(f"{self.KEY_PREFIX}{jti}"):
                    return True
            except redis.RedisError as e:
                logger.warning(f"Redis blacklist check failed, using memory only: {e}")
        expiry = self._expiry.get(jti)
        if expiry is None:
            return False
        if datetime.now(timezone.utc) >= expiry:
            del self._expiry[jti]
            return False
        return True

    def _purge(self) -> None:
        now = datetime.now(timezone.utc)
        for jti in [j for j, exp in self._expiry.items() if exp <= now]:
            del self._expiry[jti]


revoked_tokens = TokenBlacklist.from_settings()


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Sign *data* into a JWT with ``exp``, ``iat`` and a random ``jti``."""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire, "iat": now, "jti": secrets.token_urlsafe(16)})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_user_token(user) -> str:
    """Access token for a user: ``sub`` is the user id, ``role`` its role value."""
    return create_access_token(data={"sub": str(user.id), "role": user.role.value})


def _decode(token: str, verify_exp: bool = True) -> dict[str, Any]:
    return jwt.decode(
        token,
        settings.secret_key,
        algorithms=[settings.algorithm],
        options={"require_exp": True, "verify_exp": verify_exp},
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Validated payload, or None for bad, expired or revoked tokens."""
    try:
        payload = _decode(token)
    except PyJWTError as e:
        logger.debug(f"JWT decode error: {e}")
        return None

    jti = payload.get("jti")
    if jti and jti in revoked_tokens:
        logger.debug(f"Token {jti} is revoked")
        return None
    return payload


def blacklist_token(token: str) -> bool:
    """Revoke *token* until its natural expiry. False if it cannot be read."""
    try:
        payload = _decode(token, verify_exp=False)
    except PyJWTError:
        return False

    jti = payload.get("jti")
    if not jti:
        return False
    expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    revoked_tokens.add(jti, max(expires_at, datetime.now(timezone.utc) + timedelta(seconds=60)))
    return True
