"""String normalisation shared by the import engine.

normalize_key:  lookup key for suite/case/priority/type names (trim + lowercase)
trim_to_empty:  None-safe strip
trim_to_none:   strip, blank → None
is_blank:       None / whitespace-only check
"""


def trim_to_empty(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def trim_to_none(value) -> str | None:
    text = trim_to_empty(value)
    return text or None


def is_blank(value) -> bool:
    return not trim_to_empty(value)


def normalize_key(value) -> str:
    """Case- and whitespace-insensitive lookup key. ``None`` maps to ``""``."""
    return trim_to_empty(value).lower()
