"""
shapecheck - composable validators for untyped runtime values.

Usage:
    from shapecheck import object_, string, fallback, validate

    user = object_({
        "username": string(),
        "name": string(),
        "summary": fallback(string(), lambda: ""),
    })

    result = validate(body, user)
    if result.is_valid:
        save(result.value)
"""

from .context import current_repr_limit, validation_context
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
    Role,
    TransformV,
    TypeV,
    Validator,
    to_validator,
)
from .inference import infer_type
from .schema import to_pydantic, validate
from .types import MISSING, Err, ErrorKind, Ok, Path, ValidationError, ValidationResult
from .validators import (
    any_,
    array_of,
    boolean,
    chain,
    either,
    exact,
    fallback,
    lazy,
    number,
    object_,
    object_of,
    parse_json,
    predicate,
    string,
    transform,
)

__all__ = [
    # Result types
    "Ok",
    "Err",
    "ValidationResult",
    "ValidationError",
    "ErrorKind",
    "Path",
    "MISSING",
    # Core
    "Validator",
    "Role",
    "TypeV",
    "ExactV",
    "AnyV",
    "PredicateV",
    "DictV",
    "ListV",
    "MapV",
    "ChainV",
    "TransformV",
    "EitherV",
    "FallbackV",
    "LazyV",
    "to_validator",
    # Validators
    "string",
    "number",
    "boolean",
    "exact",
    "any_",
    "predicate",
    "object_",
    "array_of",
    "object_of",
    "chain",
    "transform",
    "either",
    "fallback",
    "lazy",
    "parse_json",
    # Schema
    "validate",
    "to_pydantic",
    "infer_type",
    # Configuration
    "validation_context",
    "current_repr_limit",
]
