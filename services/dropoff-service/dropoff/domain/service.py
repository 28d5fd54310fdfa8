"""Credential service orchestrating registration, login and token checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import ConflictError, UnauthorizedError
from ..security.passwords import PasswordHasher
from ..security.tokens import IssuedToken, TokenClaims, TokenIssuer
from .account import Account
from .contracts import NewAccountRecord, RegisterAccountInput, normalize_email
from .directory import AccountDirectory

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "invalid email or password"


@dataclass(slots=True)
class AuthResult:
    """Account (without password hash) and the token issued for it."""

    account: Account
    token: IssuedToken


class CredentialService:
    """Account registration, login and bearer-token workflows."""

    def __init__(
        self,
        directory: AccountDirectory,
        tokens: TokenIssuer,
        hasher: PasswordHasher,
    ) -> None:
        """Store the collaborators used for persistence, signing and hashing."""
        self._directory = directory
        self._tokens = tokens
        self._hasher = hasher

    def register(self, payload: RegisterAccountInput) -> AuthResult:
        """Create an account and sign the caller in.

        Two concurrent registrations for one email both pass the lookup below;
        the directory's unique index rejects the second insert with
        ``ConflictError``.
        """
        email = normalize_email(payload.email)
        if self._directory.find_by_email(email) is not None:
            raise ConflictError("email already registered")

        record = NewAccountRecord(
            name=payload.name,
            email=email,
            password_hash=self._hasher.hash(payload.password),
            role=payload.role,
            address=payload.address,
            phone=payload.phone,
            age=payload.age,
            available_for_receiving=payload.available_for_receiving,
            credit_balance=payload.credit_balance,
        )
        account = self._directory.insert(record).without_secrets()
        self._directory.write_audit_event(
            account_id=account.account_id,
            event_type="account.registered",
            metadata={"role": account.role.value},
        )
        logger.info("registered account %s (%s)", account.account_id, account.role.value)
        return AuthResult(account=account, token=self.issue_token(account.account_id, account.email))

    def login(self, email: str, password: str) -> AuthResult:
        """Authenticate with email and password and issue a fresh token."""
        account = self._directory.find_by_email(normalize_email(email), include_password=True)
        if account is None:
            self._hasher.verify_dummy(password)
            self._login_failed(None, "unknown_email")
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not account.active:
            self._login_failed(account.account_id, "inactive")
            raise UnauthorizedError("account is deactivated")
        if not account.password_hash or not self._hasher.verify(password, account.password_hash):
            self._login_failed(account.account_id, "bad_password")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        self._directory.record_login(account.account_id)
        self._directory.write_audit_event(
            account_id=account.account_id,
            event_type="auth.login_succeeded",
        )
        logger.info("account %s logged in", account.account_id)
        return AuthResult(
            account=account.without_secrets(),
            token=self.issue_token(account.account_id, account.email),
        )

    def issue_token(self, account_id: str, email: str) -> IssuedToken:
        return self._tokens.issue(account_id, email)

    def verify_token(self, token: str) -> TokenClaims:
        """Check signature and expiry only; the directory is not consulted."""
        return self._tokens.verify(token)

    def resolve_identity(self, account_id: str) -> Account:
        """Load the live account behind a verified token.

        Tokens stay cryptographically valid after an account is deactivated,
        so this runs on every protected call.
        """
        account = self._directory.find_by_id(account_id)
        if account is None:
            raise UnauthorizedError("account not found")
        if not account.active:
            raise UnauthorizedError("account is deactivated")
        return account

    def _login_failed(self, account_id: str | None, reason: str) -> None:
        self._directory.write_audit_event(
            account_id=account_id,
            event_type="auth.login_failed",
            metadata={"reason": reason},
        )
        logger.info("login rejected (%s) for account %s", reason, account_id or "-")
