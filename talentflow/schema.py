from typing import Any, Dict, List

from .database import JOB_STATUSES

MAX_TITLE_LENGTH = 100
MAX_TAGS = 10

KNOWN_FIELDS = {"title", "status", "tags", "order"}


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def is_positive_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool) and v >= 1


def validate_job(data: Dict[str, Any], partial: bool = False) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.

    With partial=True (updates) only the fields present are checked.
    """
    errors: List[str] = []

    for f in sorted(set(data) - KNOWN_FIELDS):
        errors.append(f"Unknown field: {f}")

    if "title" in data or not partial:
        title = data.get("title")
        if not _is_non_empty_str(title):
            errors.append("Title is required")
        elif len(title.strip()) > MAX_TITLE_LENGTH:
            errors.append(f"Title must be less than {MAX_TITLE_LENGTH} characters")

    if "status" in data and data["status"] not in JOB_STATUSES:
        errors.append(f"Field 'status' must be one of: {', '.join(JOB_STATUSES)}")

    if "tags" in data:
        tags = data["tags"]
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            errors.append("Field 'tags' must be a list of strings")
        elif len(tags) > MAX_TAGS:
            errors.append(f"Maximum {MAX_TAGS} tags allowed")

    if "order" in data and not is_positive_int(data["order"]):
        errors.append("Field 'order' must be a positive integer")

    return errors
