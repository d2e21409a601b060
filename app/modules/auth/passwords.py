"""
Password hashing and verification.

New digests use argon2id with a random per-password salt; salt and cost
parameters are encoded in the digest string. Digests written by the previous
scheme (hex SHA-256 of password + a service-wide salt) still verify so that
existing accounts keep working.
"""

import hashlib
import hmac
import re

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from app.config import settings

_PH = PasswordHasher()
_LEGACY_DIGEST = re.compile(r"^[0-9a-f]{64}$")


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Password must not be empty")
    return _PH.hash(plain)


def legacy_digest(plain: str, salt: str = None) -> str:
    salt = settings.legacy_password_salt if salt is None else salt
    return hashlib.sha256(f"{plain}{salt}".encode()).hexdigest()


def is_legacy_digest(digest: str) -> bool:
    return bool(_LEGACY_DIGEST.match(digest or ""))


def verify_password(plain: str, digest: str) -> bool:
    if not plain or not digest:
        return False
    if is_legacy_digest(digest):
        return hmac.compare_digest(legacy_digest(plain), digest)
    try:
        return _PH.verify(digest, plain)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError):
        return False
