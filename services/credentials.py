"""Password hashing."""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash


class CredentialVault:
    """Hashes and checks passwords with werkzeug's salted hashers."""

    def __init__(self, method: str = "scrypt"):
        self.method = method

    def hash(self, password: str) -> str:
        return generate_password_hash(password, method=self.method)

    def verify(self, password: str, password_hash: str | None) -> bool:
        """Return whether ``password`` matches; malformed hashes never match."""

        if not password_hash or not isinstance(password, str):
            return False
        try:
            return check_password_hash(password_hash, password)
        except (ValueError, TypeError):
            return False
