from __future__ import annotations

import logging

from ..errors import InvalidInputError, NotFoundError
from .account import Account
from .contracts import ProfileUpdateInput
from .directory import AccountDirectory

logger = logging.getLogger(__name__)


class ProfileService:
    """Self-service edits to an authenticated account's profile."""

    def __init__(self, directory: AccountDirectory) -> None:
        self._directory = directory

    def update(self, account_id: str, changes: ProfileUpdateInput) -> Account:
        if not changes.changes():
            raise InvalidInputError("no profile fields to update")
        account = self._directory.update_profile(account_id, changes)
        if account is None:
            raise NotFoundError("account not found")
        logger.info("account %s updated %s", account_id, ", ".join(sorted(changes.changes())))
        return account
