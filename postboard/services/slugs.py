import re

_WHITESPACE = re.compile(r"\s+")
_NON_SLUG = re.compile(r"[^\w-]+")
_DASHES = re.compile(r"-{2,}")


def slugify(text: str) -> str:
    """
    Canonical slug rule shared by categories and posts.

    "Health & Wellness" -> "health-wellness"
    """
    slug = _WHITESPACE.sub("-", (text or "").strip().lower())
    slug = _NON_SLUG.sub("", slug)
    slug = _DASHES.sub("-", slug)
    return slug.strip("-")
