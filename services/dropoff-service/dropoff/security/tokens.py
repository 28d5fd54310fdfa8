"""Utilities for issuing and validating application JWTs."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

import jwt

from ..config import Settings
from ..errors import InternalError, UnauthorizedError

REQUIRED_CLAIMS = ["account_id", "email", "iat", "exp", "iss", "jti"]


@dataclass(frozen=True)
class TokenSettings:
    """Signing configuration handed to a :class:`TokenIssuer` at construction."""

    secret: str
    issuer: str
    ttl_seconds: int
    algorithm: str = "HS256"

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenSettings":
        return cls(
            secret=settings.jwt_secret,
            issuer=settings.jwt_issuer,
            ttl_seconds=settings.jwt_ttl_seconds,
            algorithm=settings.jwt_algorithm,
        )


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Decoded payload of a verified access token."""

    account_id: str
    email: str
    issued_at: datetime
    expires_at: datetime
    token_id: str


@dataclass(frozen=True, slots=True)
class IssuedToken:
    access_token: str
    expires_in: int
    expires_at: datetime
    claims: TokenClaims


def _utc(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


class TokenIssuer:
    """Signs and verifies stateless bearer tokens with one configured key."""

    def __init__(self, settings: TokenSettings, clock: Callable[[], float] = time.time) -> None:
        self._settings = settings
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return self._settings.ttl_seconds

    def issue(self, account_id: str, email: str) -> IssuedToken:
        """Create a signed JWT for the account.

        Parameters
        ----------
        account_id:
            Identifier embedded in the ``account_id`` (and ``sub``) claim.
        email:
            Login email echoed in the token for downstream consumers.

        Returns
        -------
        IssuedToken
            The encoded token, its TTL in seconds and the claims it carries.

        Raises
        ------
        InternalError
            When the signing primitive rejects the configured key or algorithm.
        """
        now = int(self._clock())
        expires = now + self._settings.ttl_seconds
        token_id = str(uuid.uuid4())
        payload: dict[str, Any] = {
            "iss": self._settings.issuer,
            "sub": account_id,
            "account_id": account_id,
            "email": email,
            "iat": now,
            "exp": expires,
            "jti": token_id,
        }
        try:
            token = jwt.encode(payload, self._settings.secret, algorithm=self._settings.algorithm)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as exc:
            raise InternalError("token signing failed") from exc

        claims = TokenClaims(
            account_id=account_id,
            email=email,
            issued_at=_utc(now),
            expires_at=_utc(expires),
            token_id=token_id,
        )
        return IssuedToken(
            access_token=token,
            expires_in=self._settings.ttl_seconds,
            expires_at=claims.expires_at,
            claims=claims,
        )

    def verify(self, token: str) -> TokenClaims:
        """Decode and verify a JWT issued by this service.

        Never touches storage. Raises :class:`UnauthorizedError` when the
        signature, issuer, expiry or claim set is not acceptable.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret,
                algorithms=[self._settings.algorithm],
                issuer=self._settings.issuer,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise UnauthorizedError("token expired") from exc
        except jwt.PyJWTError as exc:
            raise UnauthorizedError("invalid token") from exc

        account_id = payload.get("account_id")
        email = payload.get("email")
        if not isinstance(account_id, str) or not account_id or not isinstance(email, str):
            raise UnauthorizedError("invalid token")
        return TokenClaims(
            account_id=account_id,
            email=email,
            issued_at=_utc(int(payload["iat"])),
            expires_at=_utc(int(payload["exp"])),
            token_id=str(payload["jti"]),
        )
