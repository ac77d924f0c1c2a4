"""
Validator factories for shapecheck.

Each factory returns an immutable node from `shapecheck.core`. The return
annotations carry the output type, so a type checker derives the validated
type of a whole schema from the schema definition:

    user = object_({"name": string(), "tags": array_of(string())}, User)
    result = user.validate(payload)   # Ok[User] | Err
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, TypeVar, overload

from .core import (
    ANY,
    BOOLEAN,
    NUMBER,
    STRING,
    ChainV,
    DictV,
    EitherV,
    ExactV,
    FallbackV,
    LazyV,
    ListV,
    MapV,
    PredicateV,
    TransformV,
    Validator,
    to_validator,
)

T = TypeVar("T")
A = TypeVar("A")
B = TypeVar("B")
C = TypeVar("C")
D = TypeVar("D")
R = TypeVar("R")


# =============================================================================
# Primitives
# =============================================================================


def string() -> Validator[str]:
    """Accept `str` values."""
    return STRING


def number() -> Validator[float]:
    """Accept `int` and `float` values, but not `bool`."""
    return NUMBER


def boolean() -> Validator[bool]:
    """Accept `bool` values."""
    return BOOLEAN


def exact(literal: T) -> Validator[T]:
    """
    Accept values equal to `literal`.

    Structured literals compare deeply; booleans never equal numbers.

    Usage:
        exact("Person")
        exact({"type": "Follow"})
    """
    return ExactV(literal=literal)


def any_() -> Validator[Any]:
    """Accept anything, unchanged."""
    return ANY


def predicate(
    fn: Callable[[Any], Any], message: str = "Predicate failed", hint: Any = None
) -> Validator[Any]:
    """
    Create validator from arbitrary predicate function.

    The predicate performs no narrowing; pass `hint` to record the type it
    guarantees for `infer_type` / `to_pydantic`.

    Usage:
        predicate(lambda x: x > 0, "Must be positive")
        string() & predicate(str.isalpha, "Must be alphabetic")
    """
    return PredicateV(check=fn, message=message, hint=hint)


# =============================================================================
# Structural
# =============================================================================


@overload
def object_(shape: Mapping[str, Any]) -> Validator[dict[str, Any]]: ...
@overload
def object_(shape: Mapping[str, Any], as_type: type[T]) -> Validator[T]: ...
def object_(shape: Mapping[str, Any], as_type: Any = None) -> Validator[Any]:
    """
    Validate a record with the declared fields, dropping undeclared keys.

    Args:
        shape: Field name -> validator (or coercible schema literal)
        as_type: Optional type (e.g. a TypedDict) the output is declared as.
                 Only used by type checkers and `infer_type`.

    Usage:
        object_({
            "username": string(),
            "summary": fallback(string(), lambda: ""),
        })
    """
    if not isinstance(shape, Mapping):
        raise TypeError(f"object_() shape must be a mapping, got {type(shape).__name__}")
    return DictV(
        shape={key: to_validator(v) for key, v in shape.items()},
        as_type=as_type,
    )


def array_of(element: Validator[T]) -> Validator[list[T]]:
    """Validate a list (or tuple) whose every item matches `element`."""
    return ListV(items=to_validator(element))


def object_of(value: Validator[T]) -> Validator[dict[str, T]]:
    """Validate a record with arbitrary keys whose every value matches `value`."""
    return MapV(values=to_validator(value))


# =============================================================================
# Control
# =============================================================================


@overload
def chain(v1: Validator[A]) -> Validator[A]: ...
@overload
def chain(v1: Validator[Any], v2: Validator[B]) -> Validator[B]: ...
@overload
def chain(v1: Validator[Any], v2: Validator[Any], v3: Validator[C]) -> Validator[C]: ...
@overload
def chain(
    v1: Validator[Any], v2: Validator[Any], v3: Validator[Any], v4: Validator[D]
) -> Validator[D]: ...
@overload
def chain(*stages: Validator[Any]) -> Validator[Any]: ...
def chain(*stages: Any) -> Validator[Any]:
    """
    Pipeline: feed each stage's output to the next, stopping at the first failure.

    Usage:
        chain(transform(json.loads), object_({"a": number()}))
    """
    return ChainV(stages=tuple(to_validator(s) for s in stages))


def transform(fn: Callable[[Any], R], returns: Any = None) -> Validator[R]:
    """
    Apply `fn` to the value. Exceptions raised by `fn` become TRANSFORM_FAILED.

    `returns` overrides the return annotation of `fn` for `infer_type`
    (lambdas carry none).
    """
    if not callable(fn):
        raise TypeError(f"transform() requires a callable, got {type(fn).__name__}")
    return TransformV(fn=fn, returns=returns)


@overload
def either(v1: Validator[A]) -> Validator[A]: ...
@overload
def either(v1: Validator[A], v2: Validator[B]) -> Validator[A | B]: ...
@overload
def either(
    v1: Validator[A], v2: Validator[B], v3: Validator[C]
) -> Validator[A | B | C]: ...
@overload
def either(
    v1: Validator[A], v2: Validator[B], v3: Validator[C], v4: Validator[D]
) -> Validator[A | B | C | D]: ...
@overload
def either(*options: Validator[Any]) -> Validator[Any]: ...
def either(*options: Any) -> Validator[Any]:
    """
    Union: try each alternative in order, returning the first success.

    Usage:
        either(string(), number())
        string() | number()          # same
    """
    return EitherV(options=tuple(to_validator(o) for o in options))


def fallback(inner: Validator[T], factory: Callable[[], T]) -> Validator[T]:
    """
    Replace any failure of `inner` with `factory()`, called fresh each time.

    Usage:
        fallback(string(), lambda: "")
        fallback(array_of(string()), list)
    """
    if not callable(factory):
        raise TypeError(f"fallback() factory must be callable, got {type(factory).__name__}")
    return FallbackV(inner=to_validator(inner), factory=factory)


def lazy(factory: Callable[[], Validator[T]]) -> Validator[T]:
    """
    Defer schema construction to validation time, enabling self-reference.

    Usage:
        node = object_({
            "name": string(),
            "children": array_of(lazy(lambda: node)),
        })
    """
    if not callable(factory):
        raise TypeError(f"lazy() factory must be callable, got {type(factory).__name__}")
    return LazyV(factory=factory)


def parse_json(schema: Validator[T]) -> Validator[T]:
    """
    Decode a JSON text, then validate the decoded value against `schema`.

    Malformed text (or a non-text input) fails with TRANSFORM_FAILED.
    """
    return ChainV(stages=(TransformV(fn=json.loads, returns=Any), to_validator(schema)))
