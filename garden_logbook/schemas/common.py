from typing import Any


def reject_null(value: Any) -> Any:
    """PATCH bodies may omit these fields, but an explicit null has no column to land in."""
    if value is None:
        raise ValueError("may not be null")
    return value
