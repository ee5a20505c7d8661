"""Anonymous identity provider.

Issues an opaque bearer token bound to a fresh user id and resolves tokens
back to ids. The scoring engine only ever sees the user id.
"""

from __future__ import annotations

import logging
import secrets
from typing import Optional
from uuid import uuid4

import redis
import redis.asyncio as aioredis

from kisho.config.context import AppContext
from kisho.errors import StorageUnavailable

logger = logging.getLogger(__name__)

TOKEN_KEY_TEMPLATE = "auth:{app_id}:tokens:{token}"


class AnonymousIdentityProvider:
    def __init__(self, r: aioredis.Redis, app_id: str, token_ttl_seconds: int = 0):
        self._r = r
        self.app_id = app_id
        self.token_ttl_seconds = token_ttl_seconds

    @classmethod
    def from_context(cls, ctx: AppContext, r: aioredis.Redis) -> AnonymousIdentityProvider:
        return cls(r, ctx.app_id, ctx.token_ttl_seconds)

    def _key(self, token: str) -> str:
        return TOKEN_KEY_TEMPLATE.format(app_id=self.app_id, token=token)

    async def sign_in_anonymously(self) -> tuple[str, str]:
        """Create a new user id and return ``(user_id, token)``."""
        user_id = f"anon-{uuid4().hex}"
        token = secrets.token_urlsafe(32)
        ttl = self.token_ttl_seconds or None
        try:
            await self._r.set(self._key(token), user_id, ex=ttl)
        except redis.RedisError as exc:
            logger.error("Anonymous sign-in failed: %s", exc)
            raise StorageUnavailable("could not issue token") from exc
        logger.info("Issued anonymous identity %s", user_id)
        return user_id, token

    async def resolve(self, token: str) -> Optional[str]:
        if not token:
            return None
        try:
            user_id = await self._r.get(self._key(token))
        except redis.RedisError as exc:
            logger.error("Token lookup failed: %s", exc)
            raise StorageUnavailable("could not resolve token") from exc
        if isinstance(user_id, bytes):
            user_id = user_id.decode()
        return user_id or None

    async def revoke(self, token: str) -> None:
        try:
            await self._r.delete(self._key(token))
        except redis.RedisError as exc:
            logger.error("Token revoke failed: %s", exc)
            raise StorageUnavailable("could not revoke token") from exc
