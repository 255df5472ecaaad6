"""Password hashing, verification, complexity rules and generation.

Stored credentials have the form ``base64(salt):base64(hash)`` where the hash
is PBKDF2-HMAC-SHA256 over the UTF-8 password with a 16-byte random salt,
65536 iterations and a 32-byte derived key.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import re
import secrets
import string
from random import SystemRandom

from gms.services.validation import ValidationResult

ITERATIONS = 65536
SALT_BYTES = 16
KEY_BYTES = 32
MIN_LENGTH = 10

UPPERCASE = string.ascii_uppercase
LOWERCASE = string.ascii_lowercase
DIGITS = string.digits
SYMBOLS = "!@#$%^&*()_+-=[]{}"

_UPPER_RE = re.compile(r"[A-Z]")
_LOWER_RE = re.compile(r"[a-z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SPECIAL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


def _derive(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt, ITERATIONS, dklen=KEY_BYTES
    )


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(SALT_BYTES)
    digest = _derive(password, salt)
    return "{}:{}".format(
        base64.b64encode(salt).decode("ascii"),
        base64.b64encode(digest).decode("ascii"),
    )


def verify_password(password: str | None, stored: str | None) -> bool:
    """Check a password against a stored credential.

    Malformed stored values (missing separator, bad base64) never raise;
    they simply fail verification.
    """
    if not isinstance(password, str) or not stored:
        return False
    parts = stored.split(":")
    if len(parts) != 2:
        return False
    try:
        salt = base64.b64decode(parts[0], validate=True)
        expected = base64.b64decode(parts[1], validate=True)
    except (binascii.Error, ValueError):
        return False
    if not salt or not expected:
        return False
    return hmac.compare_digest(_derive(password, salt), expected)


def validate_password_complexity(password: str | None) -> ValidationResult:
    if not isinstance(password, str) or len(password) < MIN_LENGTH:
        return ValidationResult(False, f"Password must be at least {MIN_LENGTH} characters long")
    if not _UPPER_RE.search(password):
        return ValidationResult(False, "Password must contain at least one uppercase letter")
    if not _LOWER_RE.search(password):
        return ValidationResult(False, "Password must contain at least one lowercase letter")
    if not _DIGIT_RE.search(password):
        return ValidationResult(False, "Password must contain at least one digit")
    if not _SPECIAL_RE.search(password):
        return ValidationResult(False, "Password must contain at least one special character")
    return ValidationResult(True, "")


def generate_secure_password(length: int = 12) -> str:
    length = max(length, MIN_LENGTH)
    alphabet = UPPERCASE + LOWERCASE + DIGITS + SYMBOLS

    chars = [
        secrets.choice(UPPERCASE),
        secrets.choice(LOWERCASE),
        secrets.choice(DIGITS),
        secrets.choice(SYMBOLS),
    ]
    chars.extend(secrets.choice(alphabet) for _ in range(length - len(chars)))
    SystemRandom().shuffle(chars)
    return "".join(chars)


__all__ = [
    "hash_password",
    "verify_password",
    "validate_password_complexity",
    "generate_secure_password",
]
