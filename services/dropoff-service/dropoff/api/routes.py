"""HTTP route definitions for registration, login and profile maintenance."""

from __future__ import annotations

import hashlib

from fastapi import APIRouter, Depends, Request, status

from dropoff_schemas import (
    Account as AccountResponse,
    AuthResponse,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
)

from ..domain.account import Account
from ..domain.contracts import ProfileUpdateInput, RegisterAccountInput, normalize_email
from ..domain.profile import ProfileService
from ..domain.service import AuthResult, CredentialService
from ..errors import ConflictError, DropoffError, UnauthorizedError
from ..metrics import LOGINS, REGISTRATIONS
from .dependencies import (
    client_host,
    current_account,
    enforce_rate_limit,
    get_credential_service,
    get_profile_service,
)
from .serializers import account_out, token_out

router = APIRouter(prefix="/v1")


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(account=account_out(result.account), token=token_out(result.token))


@router.post(
    "/auth/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["auth"],
)
def register(
    request: Request,
    payload: RegisterRequest,
    service: CredentialService = Depends(get_credential_service),
) -> AuthResponse:
    """Create a buyer and/or receiver account and return a bearer token for it."""
    enforce_rate_limit(request, f"register:{client_host(request)}")
    try:
        result = service.register(RegisterAccountInput.from_request(payload))
    except ConflictError:
        REGISTRATIONS.labels(outcome="conflict").inc()
        raise
    except DropoffError:
        REGISTRATIONS.labels(outcome="error").inc()
        raise
    REGISTRATIONS.labels(outcome="created").inc()
    return _auth_response(result)


@router.post("/auth/login", response_model=AuthResponse, tags=["auth"])
def login(
    request: Request,
    payload: LoginRequest,
    service: CredentialService = Depends(get_credential_service),
) -> AuthResponse:
    """Exchange email and password for a bearer token."""
    email_key = hashlib.sha256(normalize_email(payload.email).encode("utf-8")).hexdigest()[:16]
    enforce_rate_limit(
        request,
        f"login:{client_host(request)}",
        f"login-email:{email_key}",
    )
    try:
        result = service.login(payload.email, payload.password)
    except UnauthorizedError:
        LOGINS.labels(outcome="rejected").inc()
        raise
    LOGINS.labels(outcome="succeeded").inc()
    return _auth_response(result)


@router.get("/auth/me", response_model=AccountResponse, tags=["auth"])
def me(account: Account = Depends(current_account)) -> AccountResponse:
    """Return the authenticated account."""
    return account_out(account)


@router.patch("/accounts/me", response_model=AccountResponse, tags=["accounts"])
def update_me(
    payload: ProfileUpdateRequest,
    account: Account = Depends(current_account),
    service: ProfileService = Depends(get_profile_service),
) -> AccountResponse:
    """Update the caller's own profile (name, address, phone, age, availability)."""
    updated = service.update(account.account_id, ProfileUpdateInput.from_request(payload))
    return account_out(updated)
