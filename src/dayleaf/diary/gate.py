"""Simple password gate in front of the diary.

The bcrypt hash and an "unlocked" flag live in the same key/value store
as the local diary, so unlocking persists across CLI invocations until
``lock()`` is called.
"""

from __future__ import annotations

import bcrypt
from loguru import logger

from ..core.exceptions import AuthenticationError
from ..core.storage import KeyValueStore

AUTH_FLAG_KEY = "dayleaf-auth"
AUTH_HASH_KEY = "dayleaf-auth-hash"
MIN_PASSWORD_LENGTH = 6


class PasswordGate:
    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    @property
    def has_password(self) -> bool:
        return bool(self.kv.get(AUTH_HASH_KEY))

    @property
    def is_unlocked(self) -> bool:
        # With no password configured there is nothing to unlock.
        if not self.has_password:
            return True
        return self.kv.get(AUTH_FLAG_KEY) == "true"

    def set_password(self, password: str) -> None:
        """Store a new password hash and lock the diary.

        Raises:
            AuthenticationError: If the password is shorter than six characters.
        """
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthenticationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
        self.kv.set(AUTH_HASH_KEY, hashed.decode("utf-8"))
        self.lock()
        logger.info("Diary password updated")

    def unlock(self, password: str) -> bool:
        hashed = self.kv.get(AUTH_HASH_KEY)
        if not hashed:
            return True
        try:
            valid = bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError as e:
            logger.error(f"Stored password hash is invalid: {e}")
            return False
        if not valid:
            logger.warning("Unlock attempt with wrong password")
            return False
        self.kv.set(AUTH_FLAG_KEY, "true")
        return True

    def lock(self) -> None:
        self.kv.delete(AUTH_FLAG_KEY)
