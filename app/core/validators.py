from typing import Any


def is_non_empty_string(value: Any) -> bool:
    """Check if value is a non-empty string."""
    return isinstance(value, str) and value.strip() != ""


def is_optional_string(value: Any) -> bool:
    """Check if value is None or a string."""
    return value is None or isinstance(value, str)


def truncate(value: str, max_length: int) -> str:
    """Cut value down to max_length characters, marking the cut."""
    if max_length <= 0 or len(value) <= max_length:
        return value
    return value[:max_length] + "..."
