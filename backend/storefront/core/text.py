"""Slug and search-pattern helpers shared by catalog services."""

import re

_NON_WORD = re.compile(r"[^\w-]+")
_DASHES = re.compile(r"-{2,}")


def slugify(text: str) -> str:
    """'Men's Shirts & Tees' -> 'mens-shirts-tees'."""
    slug = re.sub(r"\s+", "-", str(text).strip().lower())
    slug = _NON_WORD.sub("", slug.replace("_", "-"))
    slug = _DASHES.sub("-", slug)
    return slug.strip("-")


def escape_like(s: str) -> str:
    """Escape SQL LIKE wildcards in user input."""
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_pattern(s: str) -> str:
    return f"%{escape_like(s.strip())}%"
