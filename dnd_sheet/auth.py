"""Password and public-key authentication on top of a CharacterStore."""
from __future__ import annotations

import hashlib
import hmac
import logging
import secrets

from .models import User
from .store import CharacterStore, RecordNotFound

logger = logging.getLogger(__name__)

HASH_ALGORITHM = "pbkdf2_sha256"
HASH_ITERATIONS = 260_000


class AuthError(Exception):
    """Base class for authentication failures shown to the user."""


class InvalidCredentials(AuthError):
    def __init__(self):
        super().__init__("invalid email or password")


class UserNotFound(AuthError):
    def __init__(self):
        super().__init__("user not found")


class EmailTaken(AuthError):
    def __init__(self):
        super().__init__("email already registered")


class KeyTaken(AuthError):
    def __init__(self):
        super().__init__("SSH key already registered")


def hash_password(password: str, *, iterations: int = HASH_ITERATIONS) -> str:
    """Return ``algorithm$iterations$salt$digest`` for storage."""
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), iterations)
    return f"{HASH_ALGORITHM}${iterations}${salt}${digest.hex()}"


def check_password(password: str, stored: str) -> bool:
    try:
        algorithm, iterations, salt, expected = stored.split("$", 3)
        rounds = int(iterations)
    except ValueError:
        return False
    if algorithm != HASH_ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("ascii"), rounds)
    return hmac.compare_digest(digest.hex(), expected)


def normalize_public_key(key: str) -> str:
    """Reduce an authorized_keys line to ``<type> <base64>`` (comment dropped)."""
    parts = key.strip().split()
    return " ".join(parts[:2])


class AuthService:
    """Register and log users in.

    Every method returns a ``User`` or raises an ``AuthError`` subclass.
    """

    def __init__(self, store: CharacterStore):
        self.store = store

    def register_with_password(self, email: str, password: str) -> User:
        try:
            self.store.get_user_by_email(email)
        except RecordNotFound:
            pass
        else:
            raise EmailTaken()

        user = self.store.create_user(email=email, password_hash=hash_password(password))
        logger.info("Registered user %s by email", user.id)
        return user

    def register_with_public_key(self, public_key: str) -> User:
        key = normalize_public_key(public_key)
        try:
            self.store.get_user_by_public_key(key)
        except RecordNotFound:
            pass
        else:
            raise KeyTaken()

        user = self.store.create_user(public_key=key)
        logger.info("Registered user %s by public key", user.id)
        return user

    def login_with_password(self, email: str, password: str) -> User:
        try:
            user = self.store.get_user_by_email(email)
        except RecordNotFound:
            raise UserNotFound() from None

        if not user.password_hash or not check_password(password, user.password_hash):
            logger.info("Rejected password login for %s", user.id)
            raise InvalidCredentials()
        return user

    def login_with_public_key(self, public_key: str) -> User:
        try:
            return self.store.get_user_by_public_key(normalize_public_key(public_key))
        except RecordNotFound:
            raise UserNotFound() from None
