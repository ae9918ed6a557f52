"""Privacy filter deciding which copied text may be stored at all."""

import re
from enum import Enum


class SensitiveType(Enum):
    """Why a piece of text was held back from history."""

    PASSWORD_LIKE = "password_like"
    CREDIT_CARD = "credit_card"
    SSN = "ssn"


CREDIT_CARD = re.compile(r"\d{4}[\s\-]?\d{4}[\s\-]?\d{4}[\s\-]?\d{4}")
SSN = re.compile(r"\d{3}[\s\-]?\d{2}[\s\-]?\d{4}")

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128


def _character_classes(text: str) -> int:
    has_upper = any(c.isupper() for c in text)
    has_lower = any(c.islower() for c in text)
    has_digit = any(c.isdigit() for c in text)
    has_other = any(not c.isalnum() and c != " " for c in text)
    return has_upper + has_lower + has_digit + has_other


def _looks_like_password(text: str) -> bool:
    if "\n" in text or not MIN_PASSWORD_LENGTH <= len(text) <= MAX_PASSWORD_LENGTH:
        return False
    return _character_classes(text) >= 3 and text.count(" ") <= 1


def detect_sensitive(text: str) -> SensitiveType | None:
    """Return the first rule that flags the text, or None.

    Rules are checked in order: password-like single line, card number, SSN.
    Short lines mentioning "password" or "secret" that got past the first rule
    are field labels copied out of a password manager, not the secret itself,
    and are deliberately allowed through.
    """
    if not text or not text.strip():
        return None

    text = text.strip()

    if _looks_like_password(text):
        return SensitiveType.PASSWORD_LIKE

    if CREDIT_CARD.fullmatch(text):
        return SensitiveType.CREDIT_CARD

    if SSN.fullmatch(text):
        return SensitiveType.SSN

    return None


def is_sensitive_data(text: str) -> bool:
    return detect_sensitive(text) is not None
