import re
from typing import Iterable, Optional

from pydantic import ValidationError

_ID_SUFFIX = re.compile(r"^(?P<prefix>.+)-(?P<number>\d+)$")


def match_text(value: Optional[str], keyword: Optional[str]) -> bool:
    """
    Case-insensitive substring match. An empty keyword matches everything.
    """
    if not keyword:
        return True
    return keyword.casefold() in (value or "").casefold()


def same_text(value: Optional[str], other: Optional[str]) -> bool:
    """
    Case-insensitive equality with surrounding whitespace ignored.
    """
    return (value or "").strip().casefold() == (other or "").strip().casefold()


def next_identifier(prefix: str, existing_ids: Iterable[str]) -> str:
    """
    Return "<prefix>-<n>" where n is one past the largest numeric suffix
    already used with that prefix.
    """
    highest = 0
    for existing in existing_ids:
        m = _ID_SUFFIX.match(existing)
        if m and m.group("prefix") == prefix:
            highest = max(highest, int(m.group("number")))
    return f"{prefix}-{highest + 1}"


def describe_validation_error(error: ValidationError) -> str:
    """
    Flatten a pydantic ValidationError into a single user-facing sentence.
    """
    parts = []
    for err in error.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        message = err.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "invalid input"
