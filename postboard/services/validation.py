import re
from typing import Optional

# ✅ FIELD LIMITS (single source of truth for services and tests)
NAME_MIN, NAME_MAX = 2, 100
PASSWORD_MIN, PASSWORD_MAX = 6, 100
TITLE_MAX = 100
CONTENT_MIN = 10
EXCERPT_MAX = 200
COMMENT_MAX = 1000
CATEGORY_NAME_MIN, CATEGORY_NAME_MAX = 2, 50
CATEGORY_DESCRIPTION_MAX = 200

# Largest value a database INTEGER primary key can hold
MAX_ID = 2**63 - 1

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ID_RE = re.compile(r"[0-9]+")


def parse_id(value) -> Optional[int]:
    """
    Row id from a path/body value: ASCII digits (or an int) in 1..MAX_ID.
    Anything else, including "²" or an id too large for the database, is None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and ID_RE.fullmatch(value.strip()):
        number = int(value.strip())
    else:
        return None
    return number if 1 <= number <= MAX_ID else None


def normalize_email(email) -> str:
    return email.strip().lower() if isinstance(email, str) else ""


def validate_email(email) -> bool:
    return isinstance(email, str) and bool(EMAIL_RE.match(email.strip()))


def validate_length(value, min_len: int = 0, max_len: int = None) -> bool:
    """True when value is a string whose trimmed length sits inside the bounds."""
    if not isinstance(value, str):
        return False
    length = len(value.strip())
    if length < min_len:
        return False
    return max_len is None or length <= max_len


def validate_post_title(title) -> bool:
    return validate_length(title, 1, TITLE_MAX)


def validate_post_content(content) -> bool:
    return validate_length(content, CONTENT_MIN)


def validate_category_name(name) -> bool:
    return validate_length(name, CATEGORY_NAME_MIN, CATEGORY_NAME_MAX)


def validate_tags(tags) -> bool:
    return isinstance(tags, list) and all(isinstance(t, str) for t in tags)


def clean_tags(tags) -> list:
    """Trim tags, drop empty ones, keep order."""
    return [t.strip() for t in tags if t.strip()]

