"""Input validation and lightweight content moderation."""

from __future__ import annotations

import re
from enum import Enum

MAX_STORY_CHARS = 10_000
MAX_BIO_CHARS = 500
DISPLAY_NAME_MIN = 2
DISPLAY_NAME_MAX = 50
INVITATION_CODE_LENGTH = 6
MAX_URLS = 3
MAX_CAPS_RATIO = 0.3
MAX_CONSECUTIVE_WORDS = 5

EMAIL_PATTERN = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)
URL_PATTERN = re.compile(r"(https?://|www\.)", re.IGNORECASE)
PHONE_PATTERN = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b|\(\d{3}\)\s*\d{3}[-.]?\d{4}")
INLINE_EMAIL_PATTERN = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
ADDRESS_PATTERN = re.compile(
    r"\b\d+\s+(st|street|ave|avenue|rd|road|blvd|boulevard|dr|drive|ln|lane|ct|court)\b",
    re.IGNORECASE,
)
SSN_PATTERN = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")
CHAR_REPEAT_PATTERN = re.compile(r"(.)\1{10,}")
INVISIBLE_CHARS = ("\u200b", "\u200c", "\u200d", "\ufeff")

PROFANITY_TERMS: tuple[str, ...] = (
    "damn",
    "hell",
    "crap",
    "piss",
    "bastard",
    "hate",
    "kill",
    "die",
    "death",
    "sex",
    "porn",
    "xxx",
    "nude",
    "d4mn",
    "h3ll",
    "k1ll",
    "d1e",
)
SPAM_KEYWORDS: tuple[str, ...] = (
    "click here",
    "buy now",
    "limited time",
    "act now",
    "free money",
    "earn cash",
    "work from home",
    "lose weight",
    "get rich",
    "subscribe",
    "follow me",
    "check out my",
    "visit my",
)
LEET_SUBSTITUTIONS: dict[str, str] = {
    "0": "o",
    "1": "i",
    "3": "e",
    "4": "a",
    "5": "s",
    "7": "t",
    "@": "a",
    "$": "s",
    "!": "i",
}


class ValidationReason(str, Enum):
    INVALID_DISPLAY_NAME = "invalid_display_name"
    DISPLAY_NAME_TOO_SHORT = "display_name_too_short"
    DISPLAY_NAME_TOO_LONG = "display_name_too_long"
    NO_ALPHANUMERIC = "no_alphanumeric"
    INVALID_EMAIL = "invalid_email"
    PASSWORD_TOO_WEAK = "password_too_weak"
    STORY_TOO_LONG = "story_too_long"
    STORY_EMPTY = "story_empty"
    INVALID_INVITATION_CODE = "invalid_invitation_code"
    INVALID_INPUT = "invalid_input"
    CONTAINS_PROFANITY = "contains_profanity"
    CONTAINS_SPAM = "contains_spam"
    CONTAINS_PERSONAL_INFO = "contains_personal_info"
    EXCESSIVE_REPETITION = "excessive_repetition"


_MESSAGES: dict[ValidationReason, str] = {
    ValidationReason.INVALID_DISPLAY_NAME: "Display name must contain valid characters",
    ValidationReason.DISPLAY_NAME_TOO_SHORT: "Display name must be at least 2 characters",
    ValidationReason.DISPLAY_NAME_TOO_LONG: "Display name must be 50 characters or less",
    ValidationReason.NO_ALPHANUMERIC: "Display name must contain at least one letter or number",
    ValidationReason.INVALID_EMAIL: "Please enter a valid email address",
    ValidationReason.PASSWORD_TOO_WEAK: (
        "Password must be at least 8 characters with uppercase, lowercase, and number"
    ),
    ValidationReason.STORY_TOO_LONG: "Story text must be 10,000 characters or less",
    ValidationReason.STORY_EMPTY: "Story text cannot be empty",
    ValidationReason.INVALID_INVITATION_CODE: (
        "Invitation code must be exactly 6 alphanumeric characters"
    ),
    ValidationReason.INVALID_INPUT: "Invalid input provided",
    ValidationReason.CONTAINS_PROFANITY: "Text contains inappropriate content",
    ValidationReason.CONTAINS_SPAM: (
        "Text appears to contain spam or excessive promotional content"
    ),
    ValidationReason.CONTAINS_PERSONAL_INFO: (
        "Please do not share personal information like phone numbers or addresses"
    ),
    ValidationReason.EXCESSIVE_REPETITION: "Text contains excessive repetition",
}


class ValidationError(ValueError):
    """Rejected user input with a typed reason."""

    def __init__(self, reason: ValidationReason) -> None:
        super().__init__(_MESSAGES[reason])
        self.reason = reason

    @property
    def message(self) -> str:
        return _MESSAGES[self.reason]


def validate_display_name(name: str) -> str:
    trimmed = name.strip()
    if len(trimmed) < DISPLAY_NAME_MIN:
        raise ValidationError(ValidationReason.DISPLAY_NAME_TOO_SHORT)
    if len(trimmed) > DISPLAY_NAME_MAX:
        raise ValidationError(ValidationReason.DISPLAY_NAME_TOO_LONG)
    if not any(char.isalnum() for char in trimmed):
        raise ValidationError(ValidationReason.NO_ALPHANUMERIC)
    if not all(char.isalnum() or char.isspace() or char in "-'" for char in trimmed):
        raise ValidationError(ValidationReason.INVALID_DISPLAY_NAME)
    check_profanity(trimmed)
    return trimmed


def validate_email(email: str) -> str:
    trimmed = email.strip().lower()
    if not EMAIL_PATTERN.match(trimmed):
        raise ValidationError(ValidationReason.INVALID_EMAIL)
    return trimmed


def validate_password(password: str) -> str:
    if (
        len(password) < 8
        or not any(char.isupper() for char in password)
        or not any(char.islower() for char in password)
        or not any(char.isdigit() for char in password)
    ):
        raise ValidationError(ValidationReason.PASSWORD_TOO_WEAK)
    return password


def validate_story_text(text: str) -> str:
    """Trim, moderate, and sanitize story text before it is persisted."""
    trimmed = text.strip()
    if not trimmed:
        raise ValidationError(ValidationReason.STORY_EMPTY)
    if len(trimmed) > MAX_STORY_CHARS:
        raise ValidationError(ValidationReason.STORY_TOO_LONG)
    check_profanity(trimmed)
    check_spam(trimmed)
    check_personal_info(trimmed)
    check_repetition(trimmed)
    return sanitize_text(trimmed)


def validate_invitation_code(code: str) -> str:
    cleaned = code.strip().upper()
    if len(cleaned) != INVITATION_CODE_LENGTH or not cleaned.isalnum():
        raise ValidationError(ValidationReason.INVALID_INVITATION_CODE)
    return cleaned


def validate_bio(bio: str) -> str:
    trimmed = bio.strip()
    if len(trimmed) > MAX_BIO_CHARS:
        raise ValidationError(ValidationReason.INVALID_INPUT)
    return sanitize_text(trimmed)


def validate_not_empty(text: str) -> str:
    trimmed = text.strip()
    if not trimmed:
        raise ValidationError(ValidationReason.INVALID_INPUT)
    return trimmed


def sanitize_text(text: str) -> str:
    sanitized = text.replace("<", "").replace(">", "")
    for char in INVISIBLE_CHARS:
        sanitized = sanitized.replace(char, "")
    return sanitized


def normalize_for_moderation(text: str) -> str:
    normalized = text.lower()
    for leet, plain in LEET_SUBSTITUTIONS.items():
        normalized = normalized.replace(leet, plain)
    return normalized


def check_profanity(text: str) -> None:
    normalized = normalize_for_moderation(text)
    for term in PROFANITY_TERMS:
        if re.search(rf"\b{re.escape(term)}\b", normalized, re.IGNORECASE):
            raise ValidationError(ValidationReason.CONTAINS_PROFANITY)


def check_spam(text: str) -> None:
    if len(URL_PATTERN.findall(text)) > MAX_URLS:
        raise ValidationError(ValidationReason.CONTAINS_SPAM)
    lowered = text.lower()
    if any(keyword in lowered for keyword in SPAM_KEYWORDS):
        raise ValidationError(ValidationReason.CONTAINS_SPAM)
    letters = [char for char in text if char.isalpha()]
    if letters:
        uppercase = sum(1 for char in letters if char.isupper())
        if uppercase / len(letters) > MAX_CAPS_RATIO:
            raise ValidationError(ValidationReason.CONTAINS_SPAM)


def check_personal_info(text: str) -> None:
    for pattern in (PHONE_PATTERN, INLINE_EMAIL_PATTERN, ADDRESS_PATTERN, SSN_PATTERN):
        if pattern.search(text):
            raise ValidationError(ValidationReason.CONTAINS_PERSONAL_INFO)


def check_repetition(text: str) -> None:
    if CHAR_REPEAT_PATTERN.search(text):
        raise ValidationError(ValidationReason.EXCESSIVE_REPETITION)
    consecutive = 1
    previous = ""
    for word in text.split():
        normalized = word.lower()
        if normalized == previous:
            consecutive += 1
            if consecutive > MAX_CONSECUTIVE_WORDS:
                raise ValidationError(ValidationReason.EXCESSIVE_REPETITION)
        else:
            consecutive = 1
            previous = normalized
