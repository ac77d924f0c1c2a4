"""
Context manager for validation configuration (e.g., error message verbosity).
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

DEFAULT_REPR_LIMIT = 50

# Context variable for how much of an offending value is echoed in messages
_repr_limit: ContextVar[int] = ContextVar("repr_limit", default=DEFAULT_REPR_LIMIT)


def current_repr_limit() -> int:
    """Return the active repr limit."""
    return _repr_limit.get()


def describe(value: Any) -> str:
    """
    Describe an offending value for an error message.

    Returns the type name, followed by a truncated repr unless the active
    repr limit is 0.
    """
    name = type(value).__name__
    limit = _repr_limit.get()
    if limit <= 0:
        return name
    return f"{name}: {repr(value)[:limit]}"


@contextmanager
def validation_context(*, repr_limit: int = DEFAULT_REPR_LIMIT):
    """
    Context manager for validation configuration.

    Args:
        repr_limit: Maximum number of characters of an offending value's repr
                    embedded in error messages. 0 omits values entirely, so
                    messages never echo client-supplied data.

    Example:
        from shapecheck import string, validation_context

        string().validate(12345)
        # Err(... message="Expected string, got int: 12345")

        with validation_context(repr_limit=0):
            string().validate(12345)
            # Err(... message="Expected string, got int")
    """
    if repr_limit < 0:
        raise ValueError(f"repr_limit must be >= 0, got {repr_limit}")
    token = _repr_limit.set(repr_limit)
    try:
        yield
    finally:
        _repr_limit.reset(token)
