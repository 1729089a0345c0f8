from __future__ import annotations

import hashlib

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

# argon2id, 64 MiB, three passes.
_hasher = PasswordHasher(time_cost=3, memory_cost=2**16, parallelism=1, type=Type.ID)


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, encoded: str) -> bool:
    """Check ``password`` against a stored hash; malformed hashes simply fail."""

    try:
        return _hasher.verify(encoded, password)
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(encoded: str) -> bool:
    try:
        return _hasher.check_needs_rehash(encoded)
    except InvalidHashError:
        return True


def hash_ip(ip: str, salt: str = "ip_salt") -> str:
    return hashlib.sha256(f"{ip}{salt}".encode("utf-8")).hexdigest()


def hash_user_agent(user_agent: str, salt: str = "ua_salt") -> str:
    return hashlib.sha256(f"{user_agent}{salt}".encode("utf-8")).hexdigest()
