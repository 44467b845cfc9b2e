"""
bcrypt password hasher adapter - Implements PasswordHasher protocol.

Security notes:
- bcrypt.gensalt() draws a fresh salt per call, so hashing the same
  password twice yields different digests.
- bcrypt.checkpw() compares in constant time.
- A stored hash bcrypt cannot parse is logged and reported as a mismatch;
  callers never learn it differed from a wrong password.
- verify() against no stored hash (unknown account) still runs bcrypt on a
  pre-computed dummy hash of the same cost, so response time does not reveal
  whether the account exists.
"""

import logging
from functools import lru_cache

import bcrypt

logger = logging.getLogger(__name__)


@lru_cache
def _dummy_bcrypt_hash(rounds: int) -> bytes:
    return bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(rounds=rounds))


class BcryptPasswordHasher:
    """
    Implements PasswordHasher protocol via bcrypt.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, rounds: int = 10) -> None:
        """
        Args:
            rounds: bcrypt work factor (4-31)
        """
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """
        Hash password with bcrypt.

        Raises:
            ValueError: If the password exceeds bcrypt's 72-byte limit
        """
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self._rounds)).decode()

    def verify(self, password: str, hashed: str | None) -> bool:
        """
        Check password against hashed; never raises.

        With hashed=None the password is checked against a dummy hash and
        the result is always False.
        """
        stored = hashed.encode() if hashed is not None else _dummy_bcrypt_hash(self._rounds)
        try:
            matched = bcrypt.checkpw(password.encode(), stored)
        except ValueError:
            logger.error("Password check failed: stored hash or candidate rejected by bcrypt")
            return False
        return matched and hashed is not None
