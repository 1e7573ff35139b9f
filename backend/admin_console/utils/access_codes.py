"""Invitation access codes"""
import secrets

from admin_console.config import settings

# 32 symbols, no 0/O/1/I
ACCESS_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_access_code() -> str:
    """Generate a human-enterable access code, e.g. ``ADMIN-AB3X9KPQ``"""
    random_part = "".join(secrets.choice(ACCESS_CODE_ALPHABET) for _ in range(settings.ACCESS_CODE_LENGTH))
    return f"{settings.ACCESS_CODE_PREFIX}{random_part}"


def normalize_access_code(code: str) -> str:
    """Codes are matched case-insensitively; stored codes are upper case."""
    return code.strip().upper()


def normalize_email(email: str) -> str:
    return email.strip().lower()
