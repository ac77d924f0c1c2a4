"""
Core validator classes for shapecheck.

Every node is an immutable, slotted dataclass exposing one operation:
`node(value, path)` returns Ok(output) or Err(ValidationError). Nodes are
tagged by role (primitive, structural, control) and compose through the
factories in `shapecheck.validators`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Generic, TypeVar

from .context import describe
from .types import MISSING, Err, ErrorKind, Ok, Path, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Role(Enum):
    PRIMITIVE = "primitive"
    STRUCTURAL = "structural"
    CONTROL = "control"


class Validator(Generic[T]):
    """
    Base of every validator node.

    Subclasses implement `__call__(value, path)`. The path is threaded down
    by structural combinators so that errors are created with their full
    location; callers normally use `validate(value)` at the root.
    """

    __slots__ = ()

    role: ClassVar[Role]

    def __call__(self, value: Any, path: Path = ()) -> Ok[T] | Err:
        raise NotImplementedError

    def validate(self, value: Any) -> Ok[T] | Err:
        """Validate a value from the root path."""
        return self(value, ())

    def __or__(self, other: Any) -> EitherV[Any]:
        """
        Alternative: `string() | number()` is `either(string(), number())`.
        """
        left = self.options if isinstance(self, EitherV) else (self,)
        return EitherV(options=(*left, to_validator(other)))

    def __ror__(self, other: Any) -> EitherV[Any]:
        """Support `str | number()` where the plain type comes first."""
        return to_validator(other) | self

    def __and__(self, other: Any) -> ChainV[Any]:
        """
        Pipeline: `a & b` is `chain(a, b)`; b receives a's output.
        """
        left = self.stages if isinstance(self, ChainV) else (self,)
        return ChainV(stages=(*left, to_validator(other)))

    def __rand__(self, other: Any) -> ChainV[Any]:
        """Support `str & predicate(...)` where the plain type comes first."""
        return to_validator(other) & self


def _mismatch(kind: ErrorKind, path: Path, expected: str, value: Any) -> Err:
    if value is MISSING:
        return Err(ValidationError(kind, path, "Required field is missing"))
    return Err(ValidationError(kind, path, f"Expected {expected}, got {describe(value)}"))


def _aggregate(path: Path, errors: list[ValidationError], noun: str) -> Err:
    return Err(
        ValidationError(
            ErrorKind.INVALID_MEMBERS,
            path,
            f"{len(errors)} invalid {noun}{'s' if len(errors) != 1 else ''}",
            tuple(errors),
        )
    )


# =============================================================================
# Primitive validators
# =============================================================================


@dataclass(frozen=True, slots=True, eq=False)
class TypeV(Validator[T]):
    """Runtime type check. `bool` only matches when listed explicitly."""

    name: str
    types: tuple[type, ...]

    role: ClassVar[Role] = Role.PRIMITIVE

    def __call__(self, value: Any, path: Path = ()) -> Ok[T] | Err:
        if isinstance(value, self.types) and (
            not isinstance(value, bool) or bool in self.types
        ):
            return Ok(value)
        return _mismatch(ErrorKind.TYPE_MISMATCH, path, self.name, value)


def same_value(a: Any, b: Any) -> bool:
    """
    Deep value equality where booleans never equal numbers.

    Mappings compare by keys and values; lists and tuples compare
    element-wise and are interchangeable.
    """
    if a is MISSING or b is MISSING:
        return a is b
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, Mapping) or isinstance(b, Mapping):
        if not (isinstance(a, Mapping) and isinstance(b, Mapping)):
            return False
        if a.keys() != b.keys():
            return False
        return all(same_value(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) or isinstance(b, (list, tuple)):
        if not (isinstance(a, (list, tuple)) and isinstance(b, (list, tuple))):
            return False
        return len(a) == len(b) and all(map(same_value, a, b))
    try:
        return bool(a == b)
    except Exception:
        return False


@dataclass(frozen=True, slots=True, eq=False)
class ExactV(Validator[T]):
    """Matches one literal value."""

    literal: Any

    role: ClassVar[Role] = Role.PRIMITIVE

    def __call__(self, value: Any, path: Path = ()) -> Ok[T] | Err:
        if same_value(value, self.literal):
            return Ok(value)
        return _mismatch(ErrorKind.LITERAL_MISMATCH, path, repr(self.literal), value)


@dataclass(frozen=True, slots=True, eq=False)
class AnyV(Validator[Any]):
    """Unconditional pass-through."""

    role: ClassVar[Role] = Role.PRIMITIVE

    def __call__(self, value: Any, path: Path = ()) -> Ok[Any] | Err:
        return Ok(value)


@dataclass(frozen=True, slots=True, eq=False)
class PredicateV(Validator[T]):
    """Ad hoc refinement. `hint` only feeds type inference."""

    check: Callable[[Any], Any]
    message: str = "Predicate failed"
    hint: Any = None

    role: ClassVar[Role] = Role.PRIMITIVE

    def __call__(self, value: Any, path: Path = ()) -> Ok[T] | Err:
        try:
            passed = self.check(value)
        except Exception as e:
            logger.debug("Predicate raised at %r: %r", path, e)
            return Err(
                ValidationError(
                    ErrorKind.PREDICATE_FAILED, path, f"{self.message}: {e}"
                )
            )
        if not passed:
            return Err(ValidationError(ErrorKind.PREDICATE_FAILED, path, self.message))
        return Ok(value)


# =============================================================================
# Structural combinators
# =============================================================================


@dataclass(frozen=True, slots=True, eq=False)
class DictV(Validator[T]):
    """
    Record with a fixed set of fields.

    Output holds exactly the declared fields; undeclared input keys are
    dropped. All field failures are collected.
    """

    shape: Mapping[str, Validator[Any]]
    as_type: Any = None

    role: ClassVar[Role] = Role.STRUCTURAL

    def __post_init__(self) -> None:
        # Read-only view over a private copy
        object.__setattr__(self, "shape", MappingProxyType(dict(self.shape)))

    def __call__(self, value: Any, path: Path = ()) -> Ok[T] | Err:
        if not isinstance(value, Mapping):
            return _mismatch(ErrorKind.SHAPE_MISMATCH, path, "object", value)

        out: dict[str, Any] = {}
        errors: list[ValidationError] = []

        for key, validator in self.shape.items():
            result = validator(value.get(key, MISSING), (*path, key))
            if isinstance(result, Err):
                errors.append(result.error)
            elif result.value is not MISSING:
                out[key] = result.value

        if errors:
            return _aggregate(path, errors, "field")
        return Ok(out)  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True, eq=False)
class ListV(Validator[T]):
    """Sequence whose every item matches `items`."""

    items: Validator[Any]

    role: ClassVar[Role] = Role.STRUCTURAL

    def __call__(self, value: Any, path: Path = ()) -> Ok[T] | Err:
        if not isinstance(value, (list, tuple)):
            return _mismatch(ErrorKind.SHAPE_MISMATCH, path, "array", value)

        out: list[Any] = []
        errors: list[ValidationError] = []

        for i, item in enumerate(value):
            result = self.items(item, (*path, i))
            if isinstance(result, Err):
                errors.append(result.error)
            else:
                out.append(result.value)

        if errors:
            return _aggregate(path, errors, "item")
        return Ok(out)  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True, eq=False)
class MapV(Validator[T]):
    """Record with arbitrary keys whose every value matches `values`."""

    values: Validator[Any]

    role: ClassVar[Role] = Role.STRUCTURAL

    def __call__(self, value: Any, path: Path = ()) -> Ok[T] | Err:
        if not isinstance(value, Mapping):
            return _mismatch(ErrorKind.SHAPE_MISMATCH, path, "object", value)

        out: dict[Any, Any] = {}
        errors: list[ValidationError] = []

        for key, item in value.items():
            result = self.values(item, (*path, key))
            if isinstance(result, Err):
                errors.append(result.error)
            else:
                out[key] = result.value

        if errors:
            return _aggregate(path, errors, "entry")
        return Ok(out)  # type: ignore[arg-type]


# =============================================================================
# Control combinators
# =============================================================================


@dataclass(frozen=True, slots=True, eq=False)
class ChainV(Validator[T]):
    """Pipeline: each stage validates the previous stage's output. Fails fast."""

    stages: tuple[Validator[Any], ...]

    role: ClassVar[Role] = Role.CONTROL

    def __post_init__(self) -> None:
        if not self.stages:
            raise ValueError("chain() requires at least one stage")

    def __call__(self, value: Any, path: Path = ()) -> Ok[T] | Err:
        current = value
        for stage in self.stages:
            result = stage(current, path)
            if isinstance(result, Err):
                return result
            current = result.value
        return Ok(current)


@dataclass(frozen=True, slots=True, eq=False)
class TransformV(Validator[T]):
    """Applies `fn`; an exception raised by `fn` becomes TRANSFORM_FAILED."""

    fn: Callable[[Any], T]
    returns: Any = None

    role: ClassVar[Role] = Role.CONTROL

    def __call__(self, value: Any, path: Path = ()) -> Ok[T] | Err:
        try:
            return Ok(self.fn(value))
        except Exception as e:
            logger.debug("Transform raised at %r: %r", path, e)
            return Err(
                ValidationError(
                    ErrorKind.TRANSFORM_FAILED,
                    path,
                    f"Transform failed: {type(e).__name__}: {e}",
                )
            )


@dataclass(frozen=True, slots=True, eq=False)
class EitherV(Validator[T]):
    """First matching alternative wins; total failure keeps every attempt."""

    options: tuple[Validator[Any], ...]

    role: ClassVar[Role] = Role.CONTROL

    def __post_init__(self) -> None:
        if not self.options:
            raise ValueError("either() requires at least one alternative")

    def __call__(self, value: Any, path: Path = ()) -> Ok[T] | Err:
        attempts: list[ValidationError] = []
        for option in self.options:
            result = option(value, path)
            if isinstance(result, Ok):
                return result
            attempts.append(result.error)
        return Err(
            ValidationError(
                ErrorKind.UNION_EXHAUSTED,
                path,
                f"No alternative matched ({len(attempts)} tried)",
                tuple(attempts),
            )
        )


@dataclass(frozen=True, slots=True, eq=False)
class FallbackV(Validator[T]):
    """Replaces any failure of `inner` with a fresh `factory()` value."""

    inner: Validator[T]
    factory: Callable[[], T]

    role: ClassVar[Role] = Role.CONTROL

    def __call__(self, value: Any, path: Path = ()) -> Ok[T] | Err:
        result = self.inner(value, path)
        if isinstance(result, Ok):
            return result
        logger.debug("Fallback at %r replaced: %s", path, result.error.message)
        return Ok(self.factory())


@dataclass(frozen=True, slots=True, eq=False)
class LazyV(Validator[T]):
    """Resolves `factory()` on every call, allowing self-referential schemas."""

    factory: Callable[[], Validator[T]]

    role: ClassVar[Role] = Role.CONTROL

    def resolve(self) -> Validator[T]:
        resolved = self.factory()
        if not isinstance(resolved, Validator):
            raise TypeError(
                f"lazy() factory must return a validator, got {type(resolved).__name__}"
            )
        return resolved

    def __call__(self, value: Any, path: Path = ()) -> Ok[T] | Err:
        validator = self.resolve()
        try:
            return validator(value, path)
        except RecursionError:
            # Input nested deeper than the interpreter stack allows
            return Err(
                ValidationError(
                    ErrorKind.SHAPE_MISMATCH, path, "Maximum nesting depth exceeded"
                )
            )


# =============================================================================
# Coercion
# =============================================================================

STRING: TypeV[str] = TypeV(name="string", types=(str,))
NUMBER: TypeV[float] = TypeV(name="number", types=(int, float))
BOOLEAN: TypeV[bool] = TypeV(name="boolean", types=(bool,))
ANY = AnyV()


def to_validator(v: Any) -> Validator[Any]:
    """
    Coerce a value to a validator.

    Conversion rules:
        Validator -> pass through
        str -> string(); int / float -> number(); bool -> boolean()
        object / typing.Any -> any_()
        other type -> isinstance check named after the type
        dict -> DictV with recursive conversion
        [x] -> ListV of x; [x, y, ...] -> ListV of either(x, y, ...)
        Callable -> PredicateV(check=callable)
    """
    if isinstance(v, Validator):
        return v

    if v is Any or v is object:
        return ANY

    if isinstance(v, type):
        if v is str:
            return STRING
        if v is bool:
            return BOOLEAN
        if v in (int, float):
            return NUMBER
        return TypeV(name=v.__name__, types=(v,))

    if isinstance(v, dict):
        return DictV(shape={k: to_validator(val) for k, val in v.items()})

    if isinstance(v, list):
        if len(v) == 0:
            raise ValueError("Empty list cannot be converted to validator")
        if len(v) == 1:
            return ListV(items=to_validator(v[0]))
        return ListV(items=EitherV(options=tuple(to_validator(x) for x in v)))

    if callable(v):
        return PredicateV(check=v)

    raise TypeError(f"Cannot convert {type(v).__name__} to validator")
