"""Query surface the domain services expect from account storage."""

from __future__ import annotations

from typing import Any, Collection, Protocol

from dropoff_schemas import Role

from .account import Account
from .contracts import NewAccountRecord, ProfileUpdateInput


class AccountDirectory(Protocol):
    def find_active_receivers(self, roles: Collection[Role]) -> list[Account]:
        """Accounts with a role in ``roles`` that are active and available for receiving."""
        ...

    def find_by_email(self, email: str, *, include_password: bool = False) -> Account | None: ...

    def find_by_id(self, account_id: str) -> Account | None: ...

    def insert(self, record: NewAccountRecord) -> Account:
        """Persist a new account; raises ``ConflictError`` when the email is taken."""
        ...

    def update_profile(self, account_id: str, changes: ProfileUpdateInput) -> Account | None: ...

    def record_login(self, account_id: str) -> None: ...

    def write_audit_event(
        self,
        *,
        account_id: str | None,
        event_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> None: ...
