import secrets
import time
from collections.abc import Callable
from typing import Any

import jwt
import structlog

from bookcatalog.config import Config
from bookcatalog.core.core import Service
from bookcatalog.core.modules.token.models import Token
from bookcatalog.errors import ExpiredTokenError, InvalidSignatureError
from bookcatalog.utils import from_timestamp

logger = structlog.get_logger(__name__)

# Expiry is checked against the service clock rather than PyJWT's wall clock
_DECODE_OPTIONS: dict[str, Any] = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "require": ["sub", "iat", "exp"],
}


class TokenService(Service):
    """Issues and verifies signed identity tokens.

    Verification depends only on the token, the signing key and the clock, so
    any process sharing the key can verify. Rotating the key invalidates every
    outstanding token.
    """

    def __init__(self, config: Config) -> None:
        super().__init__(config)
        if not config.token_signing_key:
            raise ValueError("token_signing_key must not be empty")
        self._signing_key = config.token_signing_key
        self._algorithm = config.token_algorithm
        self.clock: Callable[[], float] = time.time

    def issue(self, subject: str, ttl: float | None = None) -> Token:
        """Issue a token for `subject` valid for `ttl` seconds."""
        if ttl is None:
            ttl = self.config.token_ttl_seconds
        if ttl <= 0:
            raise ValueError(f"Token ttl must be positive, got {ttl}")

        issued_at = self.clock()
        expires_at = issued_at + ttl
        payload = {
            "sub": subject,
            "iat": issued_at,
            "exp": expires_at,
            "jti": secrets.token_urlsafe(16),
        }
        value = jwt.encode(payload, self._signing_key, algorithm=self._algorithm)
        return Token(
            value=value,
            subject=subject,
            issued_at=from_timestamp(issued_at),
            expires_at=from_timestamp(expires_at),
        )

    def verify(self, token: str) -> str:
        """Verify a token and return its subject.

        Raises:
            InvalidSignatureError: Token is malformed or not signed with the current key
            ExpiredTokenError: Token expiry has been reached
        """
        try:
            payload: dict[str, Any] = jwt.decode(
                token, self._signing_key, algorithms=[self._algorithm], options=_DECODE_OPTIONS
            )
        except jwt.InvalidTokenError as e:
            raise InvalidSignatureError from e

        if self.clock() >= float(payload["exp"]):
            raise ExpiredTokenError
        return str(payload["sub"])

    def is_expired(self, token: Token) -> bool:
        """Check the expiry of an issued token without verifying its signature."""
        return self.clock() >= token.expires_at.timestamp()

    def rotate_signing_key(self, signing_key: str) -> None:
        """Replace the signing key. Every token issued before this call stops verifying."""
        if not signing_key:
            raise ValueError("signing_key must not be empty")
        self._signing_key = signing_key
        logger.warning("token_signing_key_rotated")
