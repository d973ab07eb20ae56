"""Data validation utilities."""
import re
from typing import Optional, Tuple

IC_LENGTH = 12

MSG_IC_HAS_LETTERS = "IC must not contain letters!"
MSG_IC_NOT_12_DIGITS = "IC must be exactly 12 digits!"
MSG_PARTY_NAME_EMPTY = "Party name cannot be empty"
MSG_PARTY_NAME_TOO_LONG = "Party name cannot exceed 100 characters"
MSG_LIMIT_INVALID = "Limit must be a non-negative whole number"

_IC_PATTERN = re.compile(r"[0-9]{%d}" % IC_LENGTH)
_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_identity(raw: str) -> str:
    """
    Normalize an identity (IC) number for storage and comparison.

    Args:
        raw: User-entered IC number, possibly with grouping hyphens

    Returns:
        The input with every hyphen removed

    Example:
        "123456-78-9012" → "123456789012"
    """
    return (raw or "").replace("-", "")


def normalize_phone(raw: str) -> str:
    """Strip hyphens from a phone number."""
    return (raw or "").replace("-", "")


def validate_identity(identity_raw: str) -> Tuple[bool, str]:
    """
    Validate an IC number.

    Args:
        identity_raw: IC number as entered; hyphens are stripped first

    Returns:
        Tuple of (is_valid: bool, error_message: str)
        - (True, "") if valid
        - (False, MSG_IC_HAS_LETTERS) if any alphabetic character is present
        - (False, MSG_IC_NOT_12_DIGITS) if not exactly 12 digits

    The letters check runs first, so "12345678901A" reports letters rather
    than a bad length.
    """
    identity = normalize_identity(identity_raw)

    if any(ch.isalpha() for ch in identity):
        return False, MSG_IC_HAS_LETTERS

    if len(identity) != IC_LENGTH or not _IC_PATTERN.fullmatch(identity):
        return False, MSG_IC_NOT_12_DIGITS

    return True, ""


def make_slug(name: str) -> str:
    """
    Derive a party's URL slug from its name.

    Behavior:
        - Lowercases the name
        - Replaces each run of whitespace with a single hyphen
        - Example: "The  Stage Sibu" → "the-stage-sibu"
    """
    return _WHITESPACE_RUN.sub("-", name.lower())


def validate_party_name(name: str) -> Tuple[bool, str]:
    """
    Validate a new party name.

    Returns:
        Tuple of (is_valid: bool, error_message: str)
    """
    if not name or not name.strip():
        return False, MSG_PARTY_NAME_EMPTY
    if len(name) > 100:
        return False, MSG_PARTY_NAME_TOO_LONG
    return True, ""


def parse_limit(value: str) -> Tuple[bool, Optional[int], str]:
    """
    Parse an event limit typed by an admin.

    Args:
        value: Raw text; blank means "no limit set"

    Returns:
        Tuple of (is_valid, limit, error_message)
        - (True, None, "") for blank input
        - (True, n, "") for a non-negative integer
        - (False, None, MSG_LIMIT_INVALID) otherwise
    """
    if value is None or not str(value).strip():
        return True, None, ""

    text = str(value).strip()
    if not re.fullmatch(r"[0-9]+", text):
        return False, None, MSG_LIMIT_INVALID

    return True, int(text), ""
