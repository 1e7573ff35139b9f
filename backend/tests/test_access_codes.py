"""Tests for access codes and password hashing"""
from admin_console.config import settings
from admin_console.utils.access_codes import (
    ACCESS_CODE_ALPHABET,
    generate_access_code,
    normalize_access_code,
    normalize_email,
)
from admin_console.utils.passwords import hash_password, verify_password


def test_access_code_format():
    code = generate_access_code()
    assert code.startswith(settings.ACCESS_CODE_PREFIX)

    random_part = code[len(settings.ACCESS_CODE_PREFIX):]
    assert len(random_part) == settings.ACCESS_CODE_LENGTH
    assert all(ch in ACCESS_CODE_ALPHABET for ch in random_part)


def test_access_code_alphabet_skips_ambiguous_symbols():
    for ch in "01IO":
        assert ch not in ACCESS_CODE_ALPHABET
    assert len(set(ACCESS_CODE_ALPHABET)) == 32


def test_access_codes_are_not_repeated():
    codes = {generate_access_code() for _ in range(200)}
    assert len(codes) == 200


def test_normalize_access_code():
    assert normalize_access_code("  admin-ab3x9kpq ") == "ADMIN-AB3X9KPQ"


def test_normalize_email():
    assert normalize_email(" Someone@Example.COM ") == "someone@example.com"


def test_hash_and_verify_password():
    hashed = hash_password("ADMIN-AB3X9KPQ")
    assert hashed != "ADMIN-AB3X9KPQ"
    assert verify_password("ADMIN-AB3X9KPQ", hashed)
    assert not verify_password("ADMIN-AB3X9KPX", hashed)


def test_verify_password_rejects_missing_or_malformed_hash():
    assert not verify_password("anything", "")
    assert not verify_password("anything", "not-a-bcrypt-hash")
