"""
Schema operations for shapecheck.

Provides validate() and to_pydantic() functions.
"""

from __future__ import annotations

import logging
from typing import Any, Union

from pydantic import Field, create_model

from .core import ChainV, DictV, EitherV, FallbackV, LazyV, ListV, MapV, Validator, to_validator
from .inference import camel, infer_type
from .types import Err, Ok

logger = logging.getLogger(__name__)


def validate(data: Any, schema: Any) -> Ok[Any] | Err:
    """
    Validate data against a schema.

    Args:
        data: The untyped value to validate
        schema: A validator or schema literal (see `to_validator`)

    Returns:
        Ok(output) if validation passes
        Err(ValidationError) if validation fails

    Usage:
        schema = {
            "name": string(),
            "age": number() & predicate(lambda n: n >= 0, "Must be >= 0"),
        }
        result = validate({"name": "Alice", "age": 30}, schema)
    """
    validator = to_validator(schema)
    result = validator.validate(data)

    if isinstance(result, Err) and logger.isEnabledFor(logging.DEBUG):
        for path, message in result.error.flatten():
            logger.debug("Validation failed at %r: %s", path, message)

    return result


def to_pydantic(name: str, schema: Any) -> type:
    """
    Compile a record schema to a Pydantic model.

    Args:
        name: Name of the generated model class
        schema: An `object_` validator or dict schema literal

    Returns:
        A Pydantic BaseModel subclass. Fallback fields become optional with
        their factory as `default_factory`; nested records become nested
        models named `<name><Field>`.

    Usage:
        User = to_pydantic("User", object_({
            "name": string(),
            "summary": fallback(string(), lambda: ""),
        }))
        user = User(name="Alice")
    """
    validator = to_validator(schema)
    if not isinstance(validator, DictV):
        raise TypeError("Schema must be an object schema")
    return _build_model(name, validator, set())


def _build_model(name: str, validator: DictV[Any], active: set[int]) -> type:
    fields: dict[str, Any] = {}

    for key, v in validator.shape.items():
        fields[key] = _extract_pydantic_field(v, f"{name}{camel(key)}", active)

    logger.debug("Compiled model %s with fields %s", name, list(fields))
    return create_model(name, **fields)


def _extract_pydantic_field(
    v: Validator[Any], name: str, active: set[int]
) -> tuple[Any, Any]:
    """Extract Pydantic field type and default from validator."""
    if isinstance(v, FallbackV):
        return (_pydantic_type(v.inner, name, active), Field(default_factory=v.factory))
    return (_pydantic_type(v, name, active), ...)


def _pydantic_type(v: Validator[Any], name: str, active: set[int]) -> Any:
    match v:
        case DictV(as_type=None):
            return _build_model(name, v, active)
        case ListV(items=items):
            return list[_pydantic_type(items, f"{name}Item", active)]  # type: ignore[misc]
        case MapV(values=values):
            return dict[str, _pydantic_type(values, f"{name}Value", active)]  # type: ignore[misc]
        case EitherV(options=options):
            return Union[tuple(_pydantic_type(o, name, active) for o in options)]
        case FallbackV(inner=inner):
            return _pydantic_type(inner, name, active)
        case ChainV(stages=stages):
            return _pydantic_type(stages[-1], name, active)
        case LazyV():
            if id(v) in active:
                return Any
            active.add(id(v))
            try:
                return _pydantic_type(v.resolve(), name, active)
            finally:
                active.discard(id(v))

    return infer_type(v, name)
