"""Bearer-token enforcement for protected calls."""

from __future__ import annotations

import re

from ..domain.account import Account
from ..domain.service import CredentialService
from ..errors import UnauthorizedError

_BEARER = re.compile(r"^\s*Bearer\s+(\S+)\s*$", flags=re.IGNORECASE)


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise UnauthorizedError("missing bearer token")
    match = _BEARER.match(authorization)
    if match is None:
        raise UnauthorizedError("malformed authorization header")
    return match.group(1)


class AccessGate:
    """Stateless check run before every protected operation."""

    def __init__(self, credentials: CredentialService) -> None:
        self._credentials = credentials

    def authenticate(self, authorization: str | None) -> Account:
        token = extract_bearer_token(authorization)
        claims = self._credentials.verify_token(token)
        return self._credentials.resolve_identity(claims.account_id)
