from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Collection

import pytest
from fastapi.testclient import TestClient

from dropoff.config import Settings
from dropoff.domain.account import Account
from dropoff.domain.contracts import NewAccountRecord, ProfileUpdateInput
from dropoff.domain.service import CredentialService
from dropoff.errors import ConflictError
from dropoff.main import create_app
from dropoff.security.passwords import PasswordHasher
from dropoff.security.tokens import TokenIssuer, TokenSettings
from dropoff_schemas import Role

TEST_SECRET = "test-secret"


@dataclass
class FakeAuditEvent:
    account_id: str | None
    event_type: str
    metadata: dict[str, Any]


class FakeDirectory:
    """In-memory directory mimicking the Postgres-backed behaviours."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self.audit_log: list[FakeAuditEvent] = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def find_active_receivers(self, roles: Collection[Role]) -> list[Account]:
        return [
            account.without_secrets()
            for account in self._accounts.values()
            if account.role in roles and account.active and account.available_for_receiving
        ]

    def find_by_email(self, email: str, *, include_password: bool = False) -> Account | None:
        for account in self._accounts.values():
            if account.email.lower() == email.lower():
                return replace(account) if include_password else account.without_secrets()
        return None

    def find_by_id(self, account_id: str) -> Account | None:
        account = self._accounts.get(account_id)
        return account.without_secrets() if account else None

    def insert(self, record: NewAccountRecord) -> Account:
        if any(a.email.lower() == record.email.lower() for a in self._accounts.values()):
            raise ConflictError("email already registered")
        now = self._tick()
        account = Account(
            account_id=str(uuid.uuid4()),
            name=record.name,
            email=record.email,
            role=record.role,
            address=record.address,
            phone=record.phone,
            age=record.age,
            available_for_receiving=record.available_for_receiving,
            credit_balance=record.credit_balance,
            created_at=now,
            updated_at=now,
            password_hash=record.password_hash,
        )
        self._accounts[account.account_id] = account
        return account.without_secrets()

    def update_profile(self, account_id: str, changes: ProfileUpdateInput) -> Account | None:
        account = self._accounts.get(account_id)
        if account is None:
            return None
        updated = replace(account, **changes.changes(), updated_at=self._tick())
        self._accounts[account_id] = updated
        return updated.without_secrets()

    def record_login(self, account_id: str) -> None:
        account = self._accounts[account_id]
        self._accounts[account_id] = replace(account, last_login_at=self._tick())

    def write_audit_event(
        self,
        *,
        account_id: str | None,
        event_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.audit_log.append(FakeAuditEvent(account_id, event_type, metadata or {}))

    # test helpers

    def add(
        self,
        address: str,
        *,
        role: Role = Role.receiver,
        available: bool = True,
        active: bool = True,
        email: str | None = None,
        password_hash: str | None = None,
    ) -> Account:
        now = self._tick()
        account = Account(
            account_id=str(uuid.uuid4()),
            name="Seeded Member",
            email=email or f"{uuid.uuid4().hex[:10]}@example.com",
            role=role,
            address=address,
            phone="11987654321",
            created_at=now,
            updated_at=now,
            available_for_receiving=available,
            active=active,
            password_hash=password_hash,
        )
        self._accounts[account.account_id] = account
        return account.without_secrets()

    def set_active(self, account_id: str, active: bool) -> None:
        self._accounts[account_id] = replace(self._accounts[account_id], active=active)

    def stored(self, account_id: str) -> Account:
        return self._accounts[account_id]

    def accounts_with_email(self, email: str) -> list[Account]:
        return [a for a in self._accounts.values() if a.email.lower() == email.lower()]


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def token_settings() -> TokenSettings:
    return TokenSettings(secret=TEST_SECRET, issuer="dropoff.test", ttl_seconds=3600)


@pytest.fixture
def credential_service(directory: FakeDirectory, token_settings: TokenSettings) -> CredentialService:
    return CredentialService(directory, TokenIssuer(token_settings), PasswordHasher(rounds=4))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="development",
        jwt_secret=TEST_SECRET,
        jwt_issuer="dropoff.test",
        jwt_ttl_seconds=3600,
        bcrypt_rounds=4,
        rate_limit_backend="memory",
        rate_limit_requests=50,
    )


@pytest.fixture
def make_client(directory: FakeDirectory, settings: Settings) -> Callable[..., TestClient]:
    """Build a test client around the shared fake directory, optionally overriding settings."""

    def factory(**overrides: Any) -> TestClient:
        app = create_app(replace(settings, **overrides), directory=directory)
        return TestClient(app)

    return factory


@pytest.fixture
def api_client(make_client) -> TestClient:
    """Provide a FastAPI test client with isolated state."""
    with make_client() as client:
        yield client


def registration_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": "Maria Souza",
        "email": "maria@example.com",
        "password": "s3cret-pass",
        "role": "both",
        "address": "Rua das Flores, 123, Centro",
        "phone": "11987654321",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def register_payload() -> Callable[..., dict[str, Any]]:
    return registration_payload
