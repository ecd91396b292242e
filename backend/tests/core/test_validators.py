"""Validators — pure field checks used by every mutation.

Tests:
    - Length checks run on the stripped value
    - Priority/status accept None and reject unknown values
    - Hex colors need the leading '#' and six digits
    - Generated ids and link codes follow their formats
"""

import re

import pytest

from taskhub.core.validators import (
    generate_id,
    generate_link_code,
    initials_for,
    normalize_optional_id,
    sanitize_string,
    validate_date,
    validate_discord_user_id,
    validate_email,
    validate_hex_color,
    validate_priority,
    validate_status,
    validate_string,
    validate_username,
)


def test_validate_string_bounds_use_stripped_length():
    assert validate_string("a" * 200, 1, 200)
    assert not validate_string("a" * 201, 1, 200)
    assert not validate_string("   ", 1, 200)
    assert validate_string("  ok  ", 1, 2)


def test_validate_string_rejects_non_strings():
    assert not validate_string(None)
    assert not validate_string(42)


@pytest.mark.parametrize("value", [None, "none", "low", "medium", "HIGH"])
def test_validate_priority_accepts_known_values(value):
    assert validate_priority(value)


def test_validate_priority_rejects_unknown():
    assert not validate_priority("urgent")


def test_validate_status_accepts_in_progress():
    assert validate_status("in-progress")
    assert validate_status(None)
    assert not validate_status("done")


@pytest.mark.parametrize("value,expected", [
    ("#f06a6a", True),
    ("#ABCDEF", True),
    ("f06a6a", False),
    ("#fff", False),
    ("#gggggg", False),
    (None, False),
])
def test_validate_hex_color(value, expected):
    assert validate_hex_color(value) is expected


def test_validate_date_accepts_date_and_datetime():
    assert validate_date("2025-12-31")
    assert validate_date("2025-12-31T09:00:00Z")
    assert not validate_date("31/12/2025")
    assert not validate_date("")


def test_validate_email_and_username():
    assert validate_email("a@b.co")
    assert not validate_email("not-an-email")
    assert validate_username("alice_01")
    assert not validate_username("ab")
    assert not validate_username("has space")


def test_validate_discord_user_id_requires_snowflake():
    assert validate_discord_user_id("123456789012345678")
    assert not validate_discord_user_id("12345")
    assert not validate_discord_user_id("abc456789012345678")


def test_sanitize_string_strips_then_truncates():
    assert sanitize_string("  hello  ", 3) == "hel"
    assert sanitize_string(None) == ""


def test_normalize_optional_id_blank_means_unset():
    assert normalize_optional_id("") is None
    assert normalize_optional_id("   ") is None
    assert normalize_optional_id(None) is None
    assert normalize_optional_id("user-1") == "user-1"


def test_generate_id_format():
    assert re.match(r"^task-\d+-[0-9a-f]{9}$", generate_id("task"))
    assert generate_id("task") != generate_id("task")


def test_generate_link_code_format():
    assert re.match(r"^LINK-[A-Z0-9]{5}$", generate_link_code())


def test_initials_for_takes_first_two_letters():
    assert initials_for("alice") == "AL"


def test_username_and_email_length_limits():
    assert validate_username("a" * 30)
    assert not validate_username("a" * 31)
    assert validate_email("a" * 249 + "@b.com")
    assert not validate_email("a" * 250 + "@b.com")
