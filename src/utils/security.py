from __future__ import annotations

from passlib.context import CryptContext


class PasswordHasher:
    def __init__(self):
        self._ctx = CryptContext(
            schemes=["argon2", "pbkdf2_sha256"],
            deprecated="auto",
        )

    def hash(self, plain_password: str) -> str:
        return self._ctx.hash(plain_password)

    def verify(self, plain_password: str, password_hash: str) -> bool:
        try:
            return self._ctx.verify(plain_password, password_hash)
        except ValueError:
            # malformed or unknown hash format
            return False
