"""
Password hashing.

New hashes are bcrypt. Werkzeug scrypt/pbkdf2 hashes from imported user
stores still verify, and ``needs_rehash`` flags them so a successful login
can upgrade them in place.
"""

import bcrypt
from werkzeug.security import check_password_hash

BCRYPT_ROUNDS = 12
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def _is_bcrypt(password_hash: str) -> bool:
    return password_hash.startswith(_BCRYPT_PREFIXES)


def hash_password(plain_password: str) -> str:
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if plain_password is None or not password_hash:
        return False
    if _is_bcrypt(password_hash):
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    return check_password_hash(password_hash, plain_password)


def needs_rehash(password_hash: str) -> bool:
    """True for any stored hash that is not bcrypt."""
    return bool(password_hash) and not _is_bcrypt(password_hash)
