import secrets
from typing import Optional

from pwdlib import PasswordHash
from pwdlib.hashers.argon2 import Argon2Hasher

password_hash = PasswordHash((Argon2Hasher(),))


def hash_password(password: str) -> str:
    """Hash a password with Argon2."""
    return password_hash.hash(password)


def check_password(plain_password: str, hashed_password: str) -> tuple[bool, Optional[str]]:
    """Verify a password; also return a fresh hash when the stored one is outdated."""
    return password_hash.verify_and_update(plain_password, hashed_password)


def generate_verification_code() -> str:
    """Six random digits, never starting with zero."""
    return str(100000 + secrets.randbelow(900000))
