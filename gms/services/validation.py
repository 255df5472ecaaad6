"""Input validation helpers.

Each validator returns a :class:`ValidationResult` with a user-facing
message; nothing here raises for bad input.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, NamedTuple


class ValidationResult(NamedTuple):
    valid: bool
    message: str = ""

    def __bool__(self) -> bool:
        return self.valid


OK = ValidationResult(True, "")

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
MOBILE_PATTERN = re.compile(r"^01[0125][0-9]{8}$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,50}$")
_MOBILE_PUNCTUATION = re.compile(r"[\s\-().]")

NAME_MIN = 2
NAME_MAX = 100


def validate_required(value: Any, field_name: str) -> ValidationResult:
    if value is None or (isinstance(value, str) and not value.strip()):
        return ValidationResult(False, f"{field_name} is required")
    if not isinstance(value, str):
        return ValidationResult(False, f"{field_name} must be text")
    return OK


def validate_email(email: str | None) -> ValidationResult:
    if email is None or (isinstance(email, str) and not email.strip()):
        return ValidationResult(False, "Email is required")
    if not isinstance(email, str):
        return ValidationResult(False, "Invalid email format")
    if not EMAIL_PATTERN.match(email.strip()):
        return ValidationResult(False, "Invalid email format")
    return OK


def normalize_mobile(mobile: str | None, country_code: str = "20") -> str:
    """Normalise a phone number to the local ``01XXXXXXXXX`` form.

    Spaces and ``-().`` are dropped, then ``+20``, ``0020`` and a bare
    ``20`` prefix on a 12-digit number become a leading ``0``. Prefixes are
    rewritten until none applies, so applying it twice gives the same
    result as applying it once.
    """
    if not isinstance(mobile, str):
        return ""
    cleaned = _MOBILE_PUNCTUATION.sub("", mobile.strip())
    while True:
        rewritten = _rewrite_country_prefix(cleaned, country_code)
        if rewritten == cleaned:
            return cleaned
        cleaned = rewritten


def _rewrite_country_prefix(number: str, country_code: str) -> str:
    # Every rewrite shortens the number, so repeated application terminates
    if number.startswith("+" + country_code):
        return "0" + number[len(country_code) + 1:]
    if number.startswith("00" + country_code):
        return "0" + number[len(country_code) + 2:]
    if number.startswith(country_code) and len(number) == 12 and number.isdigit():
        return "0" + number[len(country_code):]
    return number


def is_valid_mobile(mobile: str | None, country_code: str = "20") -> bool:
    return bool(MOBILE_PATTERN.match(normalize_mobile(mobile, country_code)))


def validate_mobile(mobile: str | None, country_code: str = "20") -> ValidationResult:
    if mobile is None or (isinstance(mobile, str) and not mobile.strip()):
        return ValidationResult(False, "Mobile number is required")
    if not is_valid_mobile(mobile, country_code):
        return ValidationResult(
            False,
            "Invalid mobile number. Expected format: 01XXXXXXXXX (11 digits starting with 010, 011, 012 or 015)",
        )
    return OK


def validate_username(username: str | None) -> ValidationResult:
    if username is None or (isinstance(username, str) and not username.strip()):
        return ValidationResult(False, "Username is required")
    if not isinstance(username, str) or not USERNAME_PATTERN.match(username):
        return ValidationResult(
            False,
            "Username must be 3-50 characters and contain only letters, digits and underscores",
        )
    return OK


def validate_name(name: str | None, field_name: str) -> ValidationResult:
    required = validate_required(name, field_name)
    if not required:
        return required
    length = len(name.strip())
    if length < NAME_MIN or length > NAME_MAX:
        return ValidationResult(False, f"{field_name} must be between {NAME_MIN} and {NAME_MAX} characters")
    return OK


def validate_positive_number(value: Any, field_name: str) -> ValidationResult:
    if value is None or (isinstance(value, str) and not value.strip()):
        return ValidationResult(False, f"{field_name} is required")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ValidationResult(False, f"{field_name} must be a valid number")
    if not number.is_finite() or number <= 0:
        return ValidationResult(False, f"{field_name} must be greater than zero")
    return OK


__all__ = [
    "ValidationResult",
    "validate_required",
    "validate_email",
    "normalize_mobile",
    "is_valid_mobile",
    "validate_mobile",
    "validate_username",
    "validate_name",
    "validate_positive_number",
]
