"""
Type definitions for shapecheck.

Provides the Result type (Ok/Err), the structured ValidationError and
type aliases shared by every validator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")

# Type aliases
Path = tuple[str | int, ...]


class _Missing:
    """Sentinel for a key absent from the input record."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class ErrorKind(Enum):
    """Failure taxonomy carried by every ValidationError."""

    TYPE_MISMATCH = "type_mismatch"
    SHAPE_MISMATCH = "shape_mismatch"
    LITERAL_MISMATCH = "literal_mismatch"
    PREDICATE_FAILED = "predicate_failed"
    TRANSFORM_FAILED = "transform_failed"
    UNION_EXHAUSTED = "union_exhausted"
    INVALID_MEMBERS = "invalid_members"  # aggregate of field/item failures


def format_path(path: Path) -> str:
    """Render a path as `a.b[2].c`, or `<root>` when empty."""
    if not path:
        return "<root>"
    out = ""
    for segment in path:
        if isinstance(segment, int):
            out += f"[{segment}]"
        else:
            out += f".{segment}" if out else str(segment)
    return out


@dataclass(frozen=True, slots=True)
class ValidationError:
    """
    Failure payload.

    `path` locates the failure inside nested input; `errors` holds the
    sub-failures of aggregated (INVALID_MEMBERS) and union
    (UNION_EXHAUSTED) errors, in the order they were produced.
    """

    kind: ErrorKind
    path: Path
    message: str
    errors: tuple[ValidationError, ...] = field(default=())

    def flatten(self) -> list[tuple[Path, str]]:
        """
        Collapse nested member failures into leaf (path, message) pairs.

        Union failures are kept as a single leaf: their alternatives all
        describe the same location.
        """
        if self.kind is ErrorKind.INVALID_MEMBERS:
            leaves: list[tuple[Path, str]] = []
            for err in self.errors:
                leaves.extend(err.flatten())
            return leaves
        return [(self.path, self.message)]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging or diagnostic responses."""
        out: dict[str, Any] = {
            "kind": self.kind.value,
            "path": list(self.path),
            "message": self.message,
        }
        if self.errors:
            out["errors"] = [e.to_dict() for e in self.errors]
        return out

    def __str__(self) -> str:
        return f"{format_path(self.path)}: {self.message}"


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success result containing a value."""

    value: T

    @property
    def is_valid(self) -> bool:
        return True

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    """Failure result containing a ValidationError."""

    error: ValidationError

    @property
    def is_valid(self) -> bool:
        return False

    def __bool__(self) -> bool:
        return False


ValidationResult = Union[Ok[T], Err]
