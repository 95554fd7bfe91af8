import re
from typing import Iterable

_NON_WORD = re.compile(r"[^\w ]+")
_SPACES = re.compile(r" +")


def slugify(text: str) -> str:
    slug = _NON_WORD.sub("", text.lower())
    return _SPACES.sub("-", slug).strip("-")


def generate_unique_slug(title: str, existing_slugs: Iterable[str]) -> str:
    """Slug for title, suffixed -1, -2, ... until it is not in existing_slugs."""
    taken = set(existing_slugs)
    base = slugify(title) or "job"
    slug = base
    counter = 1
    while slug in taken:
        slug = f"{base}-{counter}"
        counter += 1
    return slug
