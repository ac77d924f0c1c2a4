"""
Runtime type inference for shapecheck schemas.

`infer_type` derives the typing annotation a schema validates, mirroring
the static types the factories declare. Records become generated
TypedDicts unless the author supplied `as_type`.
"""

from __future__ import annotations

import typing
from enum import Enum
from typing import Any, Literal, TypedDict, Union

from .core import (
    AnyV,
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
    TypeV,
    Validator,
    to_validator,
)


def infer_type(schema: Any, name: str = "Schema") -> Any:
    """
    Derive the type a schema validates.

    Args:
        schema: A validator or coercible schema literal
        name: Name of the generated TypedDict for a record schema; nested
              records are named by appending the capitalized field name

    Usage:
        User = infer_type(object_({"name": string()}), "User")
        # TypedDict("User", {"name": str})
    """
    return _infer(to_validator(schema), name, set())


def camel(key: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in key.replace("-", "_").split("_"))


def return_hint(fn: Any) -> Any:
    """Return annotation of `fn`, or Any when it has none."""
    if isinstance(fn, type):
        return fn
    try:
        return typing.get_type_hints(fn).get("return", Any)
    except Exception:
        return Any


def _literal_type(literal: Any) -> Any:
    if literal is None:
        return type(None)
    if isinstance(literal, (str, int, bytes, Enum)):
        return Literal[literal]
    if isinstance(literal, dict):
        return dict[str, Any]
    if isinstance(literal, (list, tuple)):
        return list[Any]
    return type(literal)


def _infer(v: Validator[Any], name: str, active: set[int]) -> Any:
    match v:
        case TypeV(types=types):
            return Union[types]
        case ExactV(literal=literal):
            return _literal_type(literal)
        case AnyV():
            return Any
        case PredicateV(hint=hint):
            return Any if hint is None else hint
        case DictV(as_type=as_type) if as_type is not None:
            return as_type
        case DictV(shape=shape):
            fields = {
                key: _infer(field_v, f"{name}{camel(key)}", active)
                for key, field_v in shape.items()
            }
            return TypedDict(name, fields)  # type: ignore[operator]
        case ListV(items=items):
            return list[_infer(items, f"{name}Item", active)]  # type: ignore[misc]
        case MapV(values=values):
            return dict[str, _infer(values, f"{name}Value", active)]  # type: ignore[misc]
        case ChainV(stages=stages):
            return _infer(stages[-1], name, active)
        case TransformV(fn=fn, returns=returns):
            return return_hint(fn) if returns is None else returns
        case EitherV(options=options):
            return Union[tuple(_infer(o, name, active) for o in options)]
        case FallbackV(inner=inner):
            return _infer(inner, name, active)
        case LazyV():
            # Self-reference terminates at Any
            if id(v) in active:
                return Any
            active.add(id(v))
            try:
                return _infer(v.resolve(), name, active)
            finally:
                active.discard(id(v))

    return Any
