"""Authentication helper functions shared across blueprints."""

from __future__ import annotations

import re

MIN_PASSWORD_LENGTH = 6

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_email(address: str) -> bool:
    """Return whether ``address`` resembles a valid email.

    Args:
        address: Email supplied by a user.

    Returns:
        bool: ``True`` when the address matches a minimal regex.
    """

    if not address:
        return False
    return bool(_EMAIL_RE.match(address.strip()))


def is_valid_password(candidate: str) -> bool:
    """Return whether ``candidate`` meets the minimum sign-up length."""

    return bool(candidate) and len(candidate) >= MIN_PASSWORD_LENGTH
