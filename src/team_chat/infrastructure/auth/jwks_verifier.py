from __future__ import annotations

import asyncio
import logging

import jwt
from jwt import PyJWKClient

from team_chat.application.dto.principal import Principal

logger = logging.getLogger(__name__)


class JWKSVerifier:
    """Verify JWTs issued by the identity provider, keys fetched from its JWKS."""

    def __init__(self, jwks_url: str, audience: str | None = None) -> None:
        self._jwks_url = jwks_url
        self._audience = audience
        self._jwk_client = PyJWKClient(jwks_url, cache_keys=True)

    async def verify(self, token: str) -> Principal:
        # PyJWKClient does blocking HTTP on a key-cache miss.
        signing_key = await asyncio.to_thread(
            self._jwk_client.get_signing_key_from_jwt, token,
        )
        payload = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256", "ES256"],
            audience=self._audience,
            options={"require": ["sub"], "verify_aud": self._audience is not None},
        )
        logger.debug("Verified token for sub=%s via %s", payload["sub"], self._jwks_url)
        return Principal(
            subject=str(payload["sub"]),
            roles=list(payload.get("roles", [])),
        )
