"""
Tests for shapecheck validators and combinators.
"""

import json
import sys

import pytest

from shapecheck import (
    MISSING,
    ChainV,
    DictV,
    EitherV,
    Err,
    ErrorKind,
    ListV,
    Ok,
    PredicateV,
    Role,
    ValidationError,
    Validator,
    any_,
    array_of,
    boolean,
    chain,
    current_repr_limit,
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
    to_validator,
    transform,
    validate,
    validation_context,
)


class TestPrimitives:
    def test_string(self):
        assert string().validate("hello") == Ok("hello")
        result = string().validate(42)
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.TYPE_MISMATCH
        assert result.error.path == ()
        assert "string" in result.error.message

    def test_number(self):
        assert number().validate(3) == Ok(3)
        assert number().validate(2.5) == Ok(2.5)
        assert isinstance(number().validate("3"), Err)

    def test_number_rejects_bool(self):
        result = number().validate(True)
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.TYPE_MISMATCH

    def test_boolean(self):
        assert boolean().validate(False) == Ok(False)
        assert isinstance(boolean().validate(0), Err)
        assert isinstance(boolean().validate(None), Err)

    def test_exact_primitive(self):
        v = exact("Person")
        assert v.validate("Person") == Ok("Person")
        result = v.validate("Group")
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.LITERAL_MISMATCH
        assert "'Person'" in result.error.message

    def test_exact_bool_is_not_number(self):
        assert isinstance(exact(1).validate(True), Err)
        assert isinstance(exact(True).validate(1), Err)
        assert isinstance(exact(1).validate(1.0), Ok)

    def test_exact_structured(self):
        v = exact({"type": "Follow", "to": [1, 2]})
        assert isinstance(v.validate({"type": "Follow", "to": [1, 2]}), Ok)
        assert isinstance(v.validate({"type": "Follow", "to": (1, 2)}), Ok)
        assert isinstance(v.validate({"type": "Follow", "to": [1, 3]}), Err)
        assert isinstance(v.validate({"type": "Follow"}), Err)
        assert isinstance(v.validate([("type", "Follow")]), Err)

    def test_exact_none(self):
        assert exact(None).validate(None) == Ok(None)
        assert isinstance(exact(None).validate(0), Err)

    def test_any(self):
        marker = object()
        assert any_().validate(marker).value is marker
        assert any_().validate(None) == Ok(None)

    def test_predicate(self):
        v = predicate(lambda x: x > 0, "Must be positive")
        assert v.validate(5) == Ok(5)
        result = v.validate(-5)
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.PREDICATE_FAILED
        assert result.error.message == "Must be positive"

    def test_predicate_that_raises(self):
        v = predicate(lambda x: x > 0, "Must be positive")
        result = v.validate("text")
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.PREDICATE_FAILED
        assert result.error.message.startswith("Must be positive")

    def test_roles(self):
        assert string().role is Role.PRIMITIVE
        assert object_({}).role is Role.STRUCTURAL
        assert lazy(string).role is Role.CONTROL


class TestObject:
    def test_strips_undeclared_keys(self):
        v = object_({"a": number()})
        assert v.validate({"a": 1, "extra": "x"}) == Ok({"a": 1})

    def test_collects_all_field_errors(self):
        # Every failing field is reported, not only the first one
        v = object_({"a": number(), "b": string()})
        result = v.validate({"a": "x", "b": 1})
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.INVALID_MEMBERS
        assert [e.path for e in result.error.errors] == [("a",), ("b",)]
        assert all(e.kind is ErrorKind.TYPE_MISMATCH for e in result.error.errors)

    def test_missing_field(self):
        result = object_({"name": string()}).validate({})
        assert isinstance(result, Err)
        (err,) = result.error.errors
        assert err.path == ("name",)
        assert err.message == "Required field is missing"

    def test_null_is_not_missing(self):
        result = object_({"name": string()}).validate({"name": None})
        (err,) = result.error.errors
        assert err.message.startswith("Expected string, got NoneType")

    def test_fallback_absorbs_missing(self):
        v = object_({"summary": fallback(string(), lambda: "")})
        assert v.validate({}) == Ok({"summary": ""})

    def test_any_on_absent_key_is_omitted(self):
        v = object_({"a": any_(), "b": any_()})
        assert v.validate({"a": None}) == Ok({"a": None})

    def test_rejects_non_records(self):
        v = object_({"a": number()})
        for bad in (None, [1], "a", 3):
            result = v.validate(bad)
            assert isinstance(result, Err)
            assert result.error.kind is ErrorKind.SHAPE_MISMATCH

    def test_output_is_new_record(self):
        data = {"a": 1}
        result = object_({"a": number()}).validate(data)
        assert result.value == data
        assert result.value is not data

    def test_nested_paths(self):
        v = object_({"user": object_({"name": string()})})
        result = v.validate({"user": {"name": 5}})
        assert result.error.flatten() == [
            (("user", "name"), "Expected string, got int: 5")
        ]

    def test_shape_must_be_mapping(self):
        with pytest.raises(TypeError):
            object_([("a", number())])


class TestArrayOf:
    def test_valid(self):
        assert array_of(string()).validate(["a", "b"]) == Ok(["a", "b"])

    def test_tuple_input_gives_list(self):
        assert array_of(number()).validate((1, 2)) == Ok([1, 2])

    def test_collects_item_errors(self):
        result = array_of(number()).validate([1, "x", 3, None])
        assert isinstance(result, Err)
        assert [e.path for e in result.error.errors] == [(1,), (3,)]

    def test_rejects_non_sequences(self):
        for bad in ("abc", {"0": 1}, None):
            result = array_of(string()).validate(bad)
            assert result.error.kind is ErrorKind.SHAPE_MISMATCH

    def test_transformed_items(self):
        v = array_of(chain(string(), transform(str.upper)))
        assert v.validate(["a", "b"]) == Ok(["A", "B"])


class TestObjectOf:
    def test_preserves_keys(self):
        v = object_of(number())
        assert v.validate({"x": 1, "y": 2}) == Ok({"x": 1, "y": 2})

    def test_errors_carry_key(self):
        result = object_of(number()).validate({"x": 1, "y": "no", "z": "nope"})
        assert isinstance(result, Err)
        assert [e.path for e in result.error.errors] == [("y",), ("z",)]

    def test_rejects_non_records(self):
        result = object_of(number()).validate([1, 2])
        assert result.error.kind is ErrorKind.SHAPE_MISMATCH


class TestChain:
    def test_decode_then_validate(self):
        v = chain(transform(json.loads), object_({"a": number()}))
        assert v.validate('{"a":1}') == Ok({"a": 1})

    def test_transform_failure_is_not_raised(self):
        v = chain(transform(json.loads), object_({"a": number()}))
        result = v.validate("not json")
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.TRANSFORM_FAILED

    def test_fails_fast(self):
        calls = []
        v = chain(number(), transform(calls.append))
        result = v.validate("x")
        assert result.error.kind is ErrorKind.TYPE_MISMATCH
        assert calls == []

    def test_feeds_output_forward(self):
        v = chain(string(), transform(len), predicate(lambda n: n < 4, "Too long"))
        assert v.validate("abc") == Ok(3)
        assert v.validate("abcd").error.message == "Too long"

    def test_requires_a_stage(self):
        with pytest.raises(ValueError):
            chain()


class TestTransform:
    def test_always_succeeds(self):
        assert transform(lambda x: x * 2).validate(4) == Ok(8)

    def test_catches_exceptions(self):
        result = transform(int).validate("twelve")
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.TRANSFORM_FAILED
        assert "ValueError" in result.error.message

    def test_requires_callable(self):
        with pytest.raises(TypeError):
            transform("upper")


class TestEither:
    def test_first_success(self):
        v = either(string(), number())
        assert v.validate("x") == Ok("x")
        assert v.validate(5) == Ok(5)

    def test_exhausted(self):
        result = either(string(), number()).validate(True)
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.UNION_EXHAUSTED
        assert len(result.error.errors) == 2
        assert all(e.kind is ErrorKind.TYPE_MISMATCH for e in result.error.errors)

    def test_no_backtracking(self):
        v = either(transform(lambda _: "first"), transform(lambda _: "second"))
        assert v.validate(None) == Ok("first")

    def test_requires_an_alternative(self):
        with pytest.raises(ValueError):
            either()


class TestFallback:
    @pytest.mark.parametrize("bad", ["oops", None, {}, [], True, MISSING])
    def test_absorbs_failures(self, bad):
        assert fallback(number(), lambda: 0).validate(bad) == Ok(0)

    def test_passes_success_through(self):
        assert fallback(number(), lambda: 0).validate(5) == Ok(5)

    def test_factory_called_fresh(self):
        v = fallback(array_of(string()), list)
        first = v.validate(None).value
        second = v.validate(None).value
        assert first == second == []
        assert first is not second

    def test_factory_not_called_on_success(self):
        calls = []
        v = fallback(string(), lambda: calls.append(1) or "")
        v.validate("ok")
        assert calls == []


class TestLazy:
    @pytest.fixture
    def tree(self):
        node = object_(
            {
                "value": number(),
                "children": array_of(lazy(lambda: node)),
            }
        )
        return node

    def test_recursive_valid(self, tree):
        data = {
            "value": 1,
            "children": [
                {"value": 2, "children": [{"value": 3, "children": []}]},
                {"value": 4, "children": []},
            ],
        }
        assert tree.validate(data) == Ok(data)

    def test_recursive_leaf_failure_path(self, tree):
        data = {
            "value": 1,
            "children": [
                {"value": 2, "children": [{"value": "three", "children": []}]},
            ],
        }
        result = tree.validate(data)
        assert isinstance(result, Err)
        assert result.error.flatten() == [
            (
                ("children", 0, "children", 0, "value"),
                "Expected number, got str: 'three'",
            )
        ]

    def test_factory_must_return_validator(self):
        with pytest.raises(TypeError):
            lazy(lambda: "not a validator").validate(1)

    def test_factory_invoked_per_call(self):
        calls = []

        def factory():
            calls.append(1)
            return string()

        v = lazy(factory)
        assert calls == []
        v.validate("a")
        v.validate("b")
        assert len(calls) == 2

    def test_deeply_nested_json_body(self, tree):
        depth = 400
        raw = '{"value": 1, "children": [' * depth
        raw += '{"value": 1, "children": []}'
        raw += "]}" * depth
        result = parse_json(tree).validate(raw)
        assert isinstance(result, Err)
        leaf = _deepest(result.error)
        assert leaf.kind is ErrorKind.SHAPE_MISMATCH
        assert leaf.message == "Maximum nesting depth exceeded"

    def test_nesting_beyond_recursion_limit(self, tree):
        data = {"value": 0, "children": []}
        for _ in range(sys.getrecursionlimit()):
            data = {"value": 0, "children": [data]}
        result = tree.validate(data)
        assert isinstance(result, Err)
        assert _deepest(result.error).message == "Maximum nesting depth exceeded"


def _deepest(error):
    while error.errors:
        error = error.errors[-1]
    return error


class TestOperators:
    def test_or_builds_either(self):
        v = string() | number() | boolean()
        assert isinstance(v, EitherV)
        assert len(v.options) == 3
        assert v.validate(True) == Ok(True)

    def test_type_on_left(self):
        v = str | number()
        assert isinstance(v, EitherV)
        assert v.validate("x") == Ok("x")

    def test_and_builds_chain(self):
        v = number() & predicate(lambda n: n > 0, "Must be positive")
        assert isinstance(v, ChainV)
        assert v.validate(2) == Ok(2)
        assert v.validate(-1).error.kind is ErrorKind.PREDICATE_FAILED
        assert v.validate("x").error.kind is ErrorKind.TYPE_MISMATCH


class TestToValidator:
    def test_type_coercion(self):
        assert to_validator(str) is string()
        assert to_validator(int) is number()
        assert to_validator(float) is number()
        assert to_validator(bool) is boolean()

    def test_other_types(self):
        v = to_validator(bytes)
        assert v.validate(b"x") == Ok(b"x")
        assert isinstance(v.validate("x"), Err)

    def test_dict_coercion(self):
        v = to_validator({"name": str, "tags": [str]})
        assert isinstance(v, DictV)
        assert isinstance(v.shape["tags"], ListV)

    def test_multi_item_list(self):
        v = to_validator([str, int])
        assert isinstance(v, ListV)
        assert v.validate(["a", 1]) == Ok(["a", 1])
        assert isinstance(v.validate([None]), Err)

    def test_callable_coercion(self):
        v = to_validator(lambda x: x > 0)
        assert isinstance(v, PredicateV)
        assert v.validate(5) == Ok(5)

    def test_validator_passthrough(self):
        v = object_({"a": number()})
        assert to_validator(v) is v
        assert isinstance(v, Validator)

    def test_nodes_are_hashable(self):
        record = object_({"a": number()})
        literal = exact({"type": "Follow"})
        assert {record: 1, literal: 2}[record] == 1
        assert hash(literal) == hash(literal)

    def test_shape_is_read_only(self):
        shape = {"a": number()}
        v = object_(shape)
        shape["b"] = string()
        assert list(v.shape) == ["a"]
        with pytest.raises(TypeError):
            v.shape["b"] = string()

    def test_unconvertible(self):
        with pytest.raises(ValueError):
            to_validator([])
        with pytest.raises(TypeError):
            to_validator(42)


class TestValidate:
    def test_schema_literal(self):
        schema = {"name": str, "age": int}
        assert isinstance(validate({"name": "Alice", "age": 30}, schema), Ok)
        assert isinstance(validate({"name": 123, "age": 30}, schema), Err)

    def test_error_paths(self):
        schema = {"user": {"name": str}}
        result = validate({"user": {"name": None}}, schema)
        assert isinstance(result, Err)
        errors = result.error.flatten()
        assert len(errors) == 1
        path, _ = errors[0]
        assert path == ("user", "name")

    def test_parse_json(self):
        v = parse_json(object_({"a": number()}))
        assert validate('{"a": 2, "b": 3}', v) == Ok({"a": 2})
        assert validate("{", v).error.kind is ErrorKind.TRANSFORM_FAILED
        assert validate(None, v).error.kind is ErrorKind.TRANSFORM_FAILED

    def test_result_truthiness(self):
        assert string().validate("a")
        assert string().validate("a").is_valid
        assert not string().validate(1)
        assert not string().validate(1).is_valid


class TestValidationError:
    def test_str(self):
        err = ValidationError(ErrorKind.TYPE_MISMATCH, ("a", 0, "b"), "bad")
        assert str(err) == "a[0].b: bad"
        root = ValidationError(ErrorKind.TYPE_MISMATCH, (), "bad")
        assert str(root) == "<root>: bad"

    def test_to_dict(self):
        result = object_({"a": either(string(), number())}).validate({"a": None})
        out = result.error.to_dict()
        assert out["kind"] == "invalid_members"
        (field_err,) = out["errors"]
        assert field_err["kind"] == "union_exhausted"
        assert field_err["path"] == ["a"]
        assert len(field_err["errors"]) == 2

    def test_flatten_keeps_union_as_leaf(self):
        result = object_({"a": either(string(), number())}).validate({"a": None})
        assert result.error.flatten() == [(("a",), "No alternative matched (2 tried)")]


class TestValidationContext:
    def test_default_repr(self):
        assert string().validate(12345).error.message == "Expected string, got int: 12345"

    def test_repr_limit(self):
        with validation_context(repr_limit=3):
            message = string().validate(12345).error.message
        assert message == "Expected string, got int: 123"

    def test_repr_omitted(self):
        with validation_context(repr_limit=0):
            message = string().validate(7).error.message
        assert message == "Expected string, got int"

    def test_restored_after_exit(self):
        with validation_context(repr_limit=0):
            assert current_repr_limit() == 0
        assert current_repr_limit() == 50
        assert string().validate(1).error.message == "Expected string, got int: 1"

    def test_negative_limit(self):
        with pytest.raises(ValueError):
            with validation_context(repr_limit=-1):
                pass
