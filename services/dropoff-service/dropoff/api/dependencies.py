"""FastAPI dependencies resolving services from application state."""

from __future__ import annotations

from fastapi import Header, Request

from ..domain.account import Account
from ..domain.matching import ProximityMatcher
from ..domain.profile import ProfileService
from ..domain.service import CredentialService
from ..errors import RateLimitedError
from ..security.gate import AccessGate
from ..security.rate_limiter import RateLimiter


def get_credential_service(request: Request) -> CredentialService:
    """Resolve the `CredentialService` stored on the FastAPI application state."""
    service: CredentialService = request.app.state.credential_service
    return service


def get_matcher(request: Request) -> ProximityMatcher:
    matcher: ProximityMatcher = request.app.state.matcher
    return matcher


def get_profile_service(request: Request) -> ProfileService:
    service: ProfileService = request.app.state.profile_service
    return service


def current_account(
    request: Request,
    authorization: str | None = Header(default=None),
) -> Account:
    """Run the access gate and expose the caller's live account to the route.

    Any failure raises ``UnauthorizedError`` before the route body executes.
    """
    gate: AccessGate = request.app.state.access_gate
    account = gate.authenticate(authorization)
    request.state.account = account
    return account


def enforce_rate_limit(request: Request, *keys: str) -> None:
    """Reject the call if any key is exhausted; hits are only recorded when all keys allow it."""
    limiter: RateLimiter = request.app.state.rate_limiter
    for key in keys:
        decision = limiter.peek(key)
        if not decision.allowed:
            raise RateLimitedError(retry_after=decision.retry_after)
    for key in keys:
        decision = limiter.check(key)
        if not decision.allowed:
            raise RateLimitedError(retry_after=decision.retry_after)


def client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"
