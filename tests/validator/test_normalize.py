"""Tests for the schemaroute normalization pipeline."""

import copy

import pytest

from schemaroute.schema import MISSING, Type
from schemaroute.validator import (
    NormalizationPipeline,
    ValidationFailure,
    ValidationSuccess,
    ValidationTarget,
    apply_defaults,
    clean,
    convert,
)


class TestClean:
    """Test undeclared key removal."""

    def test_drops_undeclared_keys_recursively(self):
        schema = Type.object(
            {"user": Type.object({"name": Type.string()}), "tags": Type.array(Type.object({}))}
        )
        raw = {"user": {"name": "a", "admin": True}, "tags": [{"x": 1}], "extra": "x"}
        assert clean(schema, raw) == {"user": {"name": "a"}, "tags": [{}]}

    def test_open_objects_keep_keys(self):
        schema = Type.object({"a": Type.string()}, additional_properties=True)
        assert clean(schema, {"a": "x", "b": 1}) == {"a": "x", "b": 1}

    def test_looks_through_refinement_and_nullable(self):
        inner = Type.object({"a": Type.string()})
        schema = Type.nullable(Type.refine(inner, lambda v: True, "never"))
        assert clean(schema, {"a": "x", "b": 1}) == {"a": "x"}
        assert clean(schema, None) is None

    def test_header_names_fold_to_declared_case(self):
        schema = Type.object({"X-Request-Id": Type.string()})
        raw = {"x-request-id": "abc", "user-agent": "test"}
        assert clean(schema, raw, ValidationTarget.HEADER) == {"X-Request-Id": "abc"}
        assert clean(schema, raw, ValidationTarget.QUERY) == {}

    def test_does_not_mutate_input(self):
        schema = Type.object({"a": Type.object({"b": Type.string()})})
        raw = {"a": {"b": "x", "c": "y"}, "d": 1}
        snapshot = copy.deepcopy(raw)
        clean(schema, raw)
        assert raw == snapshot


class TestDefaults:
    """Test default filling."""

    def test_fills_absent_properties(self):
        schema = Type.object(
            {"page": Type.integer(default=1), "q": Type.string(), "sort": Type.string()},
            optional=["sort"],
        )
        assert apply_defaults(schema, {"q": "x"}) == {"page": 1, "q": "x"}
        assert apply_defaults(schema, {"q": "x", "page": 3}) == {"page": 3, "q": "x"}

    def test_null_default_through_nullable(self):
        schema = Type.object({"nick": Type.nullable(Type.string(), default=None)})
        assert apply_defaults(schema, {}) == {"nick": None}

    def test_default_through_refinement(self):
        schema = Type.object(
            {"n": Type.refine(Type.integer(default=2), lambda v: v > 0, "positive")}
        )
        assert apply_defaults(schema, {}) == {"n": 2}

    def test_missing_root_takes_default(self):
        schema = Type.object({"a": Type.string()}, default={"a": "x"})
        assert apply_defaults(schema, MISSING) == {"a": "x"}
        assert apply_defaults(Type.string(), MISSING) is MISSING

    def test_defaults_are_copied(self):
        shared = ["a"]
        schema = Type.object({"tags": Type.array(Type.string(), default=shared)})
        first = apply_defaults(schema, {})
        first["tags"].append("b")
        assert shared == ["a"]
        assert apply_defaults(schema, {}) == {"tags": ["a"]}

    def test_nested_defaults_in_arrays(self):
        schema = Type.array(Type.object({"qty": Type.integer(default=1)}))
        assert apply_defaults(schema, [{}, {"qty": 3}]) == [{"qty": 1}, {"qty": 3}]


class TestConvert:
    """Test lossless coercion."""

    def test_numbers_from_strings(self):
        schema = Type.object({"n": Type.number(), "i": Type.integer()})
        target = ValidationTarget.QUERY
        assert convert(schema, {"n": "1.5", "i": "4"}, target) == {"n": 1.5, "i": 4}
        assert convert(schema, {"n": "42", "i": "4.0"}, target) == {"n": 42, "i": 4}
        assert convert(schema, {"n": "abc", "i": "4.5"}, target) == {"n": "abc", "i": "4.5"}

    def test_non_finite_strings_left_alone(self):
        assert convert(Type.number(), "inf", ValidationTarget.QUERY) == "inf"
        assert convert(Type.number(), "nan", ValidationTarget.QUERY) == "nan"

    def test_integers_beyond_float_range(self):
        huge = 10**400
        assert convert(Type.number(), str(huge), ValidationTarget.QUERY) == huge
        assert convert(Type.integer(), str(-huge), ValidationTarget.QUERY) == -huge
        assert convert(Type.string(), huge) == str(huge)

    def test_booleans(self):
        schema = Type.boolean()
        assert convert(schema, "TRUE") is True
        assert convert(schema, "0") is False
        assert convert(schema, 1) is True
        assert convert(schema, "yes") == "yes"
        assert convert(schema, 2) == 2

    def test_strings_from_scalars(self):
        schema = Type.string()
        assert convert(schema, 5) == "5"
        assert convert(schema, True) == "true"
        assert convert(schema, None) is None

    def test_scalar_wrapped_for_string_sourced_arrays(self):
        schema = Type.object({"tag": Type.array(Type.integer())})
        assert convert(schema, {"tag": "1"}, ValidationTarget.QUERY) == {"tag": [1]}
        assert convert(schema, {"tag": ["1", "2"]}, ValidationTarget.QUERY) == {"tag": [1, 2]}
        assert convert(schema, {"tag": "1"}, ValidationTarget.JSON) == {"tag": "1"}

    def test_null_literal_for_nullable(self):
        schema = Type.object({"n": Type.nullable(Type.integer()), "s": Type.nullable(Type.string())})
        raw = {"n": "null", "s": "null"}
        assert convert(schema, raw, ValidationTarget.QUERY) == {"n": None, "s": "null"}
        assert convert(schema, raw, ValidationTarget.JSON) == raw

    def test_undeclared_keys_pass_through(self):
        schema = Type.object({"a": Type.integer()}, additional_properties=True)
        assert convert(schema, {"a": "1", "b": "2"}, ValidationTarget.QUERY) == {"a": 1, "b": "2"}


class TestNormalizationPipeline:
    """Test the clean, default, convert, check sequence."""

    def test_param_scenario(self):
        pipeline = NormalizationPipeline(Type.object({"id": Type.number()}))
        result = pipeline.apply(ValidationTarget.PARAM, {"id": "42", "extra": "x"})
        assert result == ValidationSuccess(data={"id": 42})
        assert result.success is True

    def test_stage_order(self):
        schema = Type.object({"page": Type.integer(default=1), "q": Type.string()})
        stages = []
        pipeline = NormalizationPipeline(schema)
        pipeline.apply(
            ValidationTarget.QUERY,
            {"q": "x", "junk": "1"},
            observer=lambda stage, value: stages.append((stage, value)),
        )
        assert [name for name, _ in stages] == ["clean", "default", "convert", "check"]
        assert stages[0][1] == {"q": "x"}
        assert stages[1][1] == {"q": "x", "page": 1}
        assert stages[3][1] == ()

    def test_default_observable_after_clean(self):
        # An undeclared key is removed first, then the absent field gets its default
        schema = Type.object({"limit": Type.integer(default=10)})
        result = NormalizationPipeline(schema).apply(ValidationTarget.QUERY, {"Limit": "5"})
        assert result == ValidationSuccess(data={"limit": 10})

    def test_failure_carries_only_errors(self):
        schema = Type.object({"name": Type.refine(Type.string(), lambda s: len(s) <= 3, "Too long")})
        result = NormalizationPipeline(schema).apply(ValidationTarget.JSON, {"name": "abcd"})
        assert isinstance(result, ValidationFailure)
        assert result.success is False
        assert result.to_dict() == {
            "success": False,
            "errors": [{"path": "name", "message": "Too long"}],
        }
        assert not hasattr(result, "data")

    def test_integers_beyond_float_range_reach_check(self):
        schema = Type.object({"n": Type.number(maximum=10), "s": Type.string()})
        raw = {"n": 10**400, "s": 10**400}
        result = NormalizationPipeline(schema).apply(ValidationTarget.JSON, raw)
        assert [(e.path, e.message) for e in result.errors] == [("n", "Value must be <= 10")]

        result = NormalizationPipeline(schema).apply(
            ValidationTarget.QUERY, {"n": "1" + "0" * 400, "s": "x"}
        )
        assert [(e.path, e.message) for e in result.errors] == [("n", "Value must be <= 10")]

    def test_raw_input_untouched(self):
        schema = Type.object(
            {"items": Type.array(Type.object({"qty": Type.integer(default=1)}))}
        )
        raw = {"items": [{"qty": "2", "x": 1}, {}]}
        snapshot = copy.deepcopy(raw)
        result = NormalizationPipeline(schema).apply(ValidationTarget.JSON, raw)
        assert raw == snapshot
        assert result == ValidationSuccess(data={"items": [{"qty": 2}, {"qty": 1}]})

    def test_missing_body(self):
        pipeline = NormalizationPipeline(Type.object({"a": Type.string()}))
        result = pipeline.apply(ValidationTarget.JSON, MISSING)
        assert [e.model_dump() for e in result.errors] == [
            {"path": "", "message": "Expected object, got null"}
        ]

    def test_missing_body_with_default(self):
        schema = Type.object({"a": Type.string(default="x")}, default={})
        result = NormalizationPipeline(schema).apply(ValidationTarget.JSON, MISSING)
        assert result == ValidationSuccess(data={"a": "x"})

    @pytest.mark.parametrize("raw", [{"n": "7"}, {"n": 7}, {"n": 7.0}])
    def test_same_outcome_for_equivalent_inputs(self, raw):
        pipeline = NormalizationPipeline(Type.object({"n": Type.integer()}))
        assert pipeline.apply(ValidationTarget.QUERY, raw) == ValidationSuccess(data={"n": 7})
