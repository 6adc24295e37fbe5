"""Password hashing and verification (bcrypt)."""

import bcrypt

BCRYPT_ROUNDS = 12

# bcrypt only reads the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72

EMAIL_MAX_LEN = 255
NAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Salted bcrypt hash at BCRYPT_ROUNDS, as text for the password_hash column."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """True if password matches password_hash. A malformed hash never matches."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("ascii"))
    except (ValueError, TypeError):
        return False


# Compared against when the email is unknown, so both login failure paths cost one bcrypt check.
DUMMY_PASSWORD_HASH = hash_password("flowiq-dummy-password")
