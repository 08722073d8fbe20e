"""Credential service — one-way password hashing and verification.

bcrypt with a fixed work factor. Failures inside bcrypt surface as
HashingError; an empty or missing hash is never returned.
"""

import bcrypt

from domain.model.errors import HashingError, ValidationError

# 2^12 key expansion rounds, roughly 250ms per hash on commodity hardware
BCRYPT_ROUNDS = 12

# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    encoded = password.encode('utf-8')
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return encoded


def hash_password(password: str) -> str:
    """Hash a plaintext password.

    Raises:
        ValidationError: password is empty or longer than bcrypt accepts
        HashingError: bcrypt failed to produce a hash
    """
    if not password:
        raise ValidationError("Password is required")
    encoded = _encode(password)

    try:
        hashed = bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    except (ValueError, TypeError) as e:
        raise HashingError("Failed to hash password") from e

    if not hashed:
        raise HashingError("bcrypt returned an empty hash")
    return hashed.decode('utf-8')


def verify_password(plain: str, hashed: str | None) -> bool:
    """Check a plaintext password against a stored hash.

    Returns False for a wrong password or when no hash is stored.

    Raises:
        HashingError: the stored hash is malformed
    """
    if not hashed or not plain:
        return False
    try:
        encoded = _encode(plain)
    except ValidationError:
        return False

    try:
        return bcrypt.checkpw(encoded, hashed.encode('utf-8'))
    except ValueError as e:
        raise HashingError("Stored password hash is malformed") from e
