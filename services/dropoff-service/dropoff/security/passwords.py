"""Salted one-way password hashing."""

from __future__ import annotations

import bcrypt

from ..errors import InvalidInputError

# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """bcrypt wrapper with a configurable work factor."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        # verified against when a login names no known account
        self._dummy_hash = bcrypt.hashpw(b"unknown-account", bcrypt.gensalt(rounds=rounds)).decode("utf-8")

    def hash(self, password: str) -> str:
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise InvalidInputError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(encoded, salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Return ``True`` when ``password`` matches; malformed hashes never match."""
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
        except ValueError:
            return False

    def verify_dummy(self, password: str) -> bool:
        """Run a full ``verify`` against a throwaway hash; never matches."""
        self.verify(password, self._dummy_hash)
        return False
