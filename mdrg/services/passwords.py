"""
Password Hashing - Argon2id hashing and verification.

Hashes are salted and cost-parameterized; plaintext is never stored.
"""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from mdrg.config import settings

_password_hasher = PasswordHasher(
    time_cost=settings.password_time_cost,
    memory_cost=settings.password_memory_cost,
    parallelism=settings.password_parallelism,
)


def hash_password(plaintext: str) -> str:
    """Hash a plaintext password for storage."""
    return _password_hasher.hash(plaintext)


def verify_password(plaintext: str, password_hash: str) -> bool:
    """
    Check a plaintext password against a stored hash.

    Malformed or foreign hashes verify as False instead of raising.
    """
    try:
        return _password_hasher.verify(password_hash, plaintext)
    except VerifyMismatchError:
        return False
    except (VerificationError, InvalidHashError):
        # Corrupt or non-argon2 hash
        return False


def password_needs_rehash(password_hash: str) -> bool:
    """True when the hash was produced with outdated cost parameters."""
    try:
        return _password_hasher.check_needs_rehash(password_hash)
    except InvalidHashError:
        return True
