"""Input validation helpers.

Functions:
- validate_email(email) -> bool: Email shape check
- validate_password(password) -> bool: Minimum-length check
- safe_filename(name) -> str: Filename usable inside a storage path
"""

import re
from pathlib import PurePosixPath

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")

MIN_PASSWORD_LENGTH = 6


def validate_email(email: str) -> bool:
    """Validate email format. Empty string is invalid."""
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def validate_password(password: str) -> bool:
    return bool(password) and len(password) >= MIN_PASSWORD_LENGTH


def safe_filename(name: str) -> str:
    """Strip directory components and path separators from an upload name.

    >>> safe_filename("../notes/week 1.pdf")
    'week 1.pdf'
    """
    base = PurePosixPath(name.replace("\\", "/")).name.strip()
    return base or "file"
