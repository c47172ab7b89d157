"""Unit tests for the recursive JSON normalizer."""

import copy
import json

from sse_formatter.parser.normalize import (
    NOT_JSON,
    decode_json,
    deep_parse,
    normalize_data,
)
from sse_formatter.parser.recovery import unescape_quotes
from sse_formatter.parser.types import ParserOptions


def test_simple_object_is_parsed_but_not_deep():
    result = normalize_data('{"a":1}')
    assert result.is_parsed
    assert not result.is_deep_parsed
    assert result.data == {"a": 1}
    assert result.parsed_field_paths == []


def test_plain_text_is_left_untouched():
    result = normalize_data("hello")
    assert not result.is_parsed
    assert not result.is_deep_parsed
    assert result.data == "hello"
    assert result.parsed_field_paths == []


def test_truncated_json_is_left_untouched():
    raw = '{"a": {"b": [1, 2'
    result = normalize_data(raw)
    assert not result.is_parsed
    assert result.data == raw


def test_nested_json_string_is_unwound():
    result = normalize_data('{"outer": "{\\"inner\\":true}"}')
    assert result.is_parsed
    assert result.is_deep_parsed
    assert result.data == {"outer": {"inner": True}}
    assert result.parsed_field_paths == ["outer"]


def test_double_nesting_records_both_levels_in_depth_order():
    inner = json.dumps({"x": 1})
    middle = json.dumps({"inner": inner})
    raw = json.dumps({"outer": middle})

    result = normalize_data(raw)
    assert result.data == {"outer": {"inner": {"x": 1}}}
    assert result.parsed_field_paths == ["outer", "outer.inner"]


def test_string_encoded_twice_is_unwound_at_one_path():
    twice = json.dumps(json.dumps({"a": [1, 2]}))
    result = normalize_data(json.dumps({"v": twice}))
    assert result.data == {"v": {"a": [1, 2]}}
    assert result.parsed_field_paths == ["v"]


def test_scalar_strings_are_not_reinterpreted():
    raw = json.dumps({"n": "42", "t": "true", "z": "null", "f": "1.5", "q": '"42"'})
    result = normalize_data(raw)
    assert result.is_parsed
    assert not result.is_deep_parsed
    assert result.data == {"n": "42", "t": "true", "z": "null", "f": "1.5", "q": '"42"'}


def test_root_string_containing_json_has_empty_path():
    result = normalize_data(json.dumps(json.dumps({"a": 1})))
    assert result.data == {"a": 1}
    assert result.parsed_field_paths == [""]
    assert result.is_deep_parsed


def test_top_level_scalar_counts_as_parsed():
    result = normalize_data("42")
    assert result.is_parsed
    assert result.data == 42
    assert not result.is_deep_parsed


def test_array_paths_use_brackets_without_dot():
    raw = json.dumps([json.dumps([1, 2]), {"k": [json.dumps({"z": 0})]}])
    result = normalize_data(raw)
    assert result.data == [[1, 2], {"k": [{"z": 0}]}]
    assert result.parsed_field_paths == ["[0]", "[1].k[0]"]


def test_paths_inside_reinterpreted_value_are_prefixed():
    nested = json.dumps({"nested": [0, 1, json.dumps({"value": [1]})]})
    result = normalize_data(json.dumps({"obj": nested}))
    assert result.data == {"obj": {"nested": [0, 1, {"value": [1]}]}}
    assert result.parsed_field_paths == ["obj", "obj.nested[2]"]


def test_paths_are_pre_order_and_key_ordered():
    raw = json.dumps(
        {
            "a": json.dumps({"b": json.dumps([1])}),
            "plain": "text",
            "c": json.dumps({}),
        }
    )
    result = normalize_data(raw)
    assert result.parsed_field_paths == ["a", "a.b", "c"]
    assert list(result.data) == ["a", "plain", "c"]
    assert result.data["c"] == {}


def test_malformed_nested_string_stays_a_string():
    raw = json.dumps({"a": "{not json", "b": "[1, 2", "c": "{}"})
    result = normalize_data(raw)
    assert result.data == {"a": "{not json", "b": "[1, 2", "c": {}}
    assert result.parsed_field_paths == ["c"]


def test_escaped_quote_recovery():
    raw = '{\\"a\\": 1, \\"b\\": \\"x\\"}'
    result = normalize_data(raw)
    assert result.is_parsed
    assert result.data == {"a": 1, "b": "x"}


def test_recovery_can_be_disabled():
    raw = '{\\"a\\": 1}'
    result = normalize_data(raw, ParserOptions(recoveries=()))
    assert not result.is_parsed
    assert result.data == raw


def test_recovery_is_not_used_when_strict_decode_succeeds():
    # Unescaping would break this payload, so a strict success must win.
    raw = '{"escaped": "This has \\"quotes\\" inside"}'
    result = normalize_data(raw)
    assert result.is_parsed
    assert result.data == {"escaped": 'This has "quotes" inside'}


def test_non_finite_constants_are_not_json():
    assert decode_json("NaN") is NOT_JSON
    assert decode_json('{"a": Infinity}') is NOT_JSON
    result = normalize_data(json.dumps({"a": "NaN", "b": "-Infinity"}))
    assert result.data == {"a": "NaN", "b": "-Infinity"}
    assert not result.is_deep_parsed


def test_decoder_overflow_is_not_json():
    raw = "[" * 100000 + "]" * 100000
    result = normalize_data(raw)
    assert not result.is_parsed
    assert result.data == raw


def test_max_depth_stops_scanning_without_error():
    raw = json.dumps({"a": json.dumps({"b": 1})})

    shallow = normalize_data(raw, ParserOptions(max_depth=1))
    assert shallow.is_parsed
    assert shallow.data == {"a": '{"b": 1}'}
    assert shallow.parsed_field_paths == []

    enough = normalize_data(raw, ParserOptions(max_depth=2))
    assert enough.data == {"a": {"b": 1}}
    assert enough.parsed_field_paths == ["a"]


def test_deep_but_valid_nesting_is_kept_whole():
    raw = "[" * 300 + "]" * 300
    result = normalize_data(raw)
    assert result.is_parsed
    assert result.data == json.loads(raw)
    assert not result.is_deep_parsed


def test_deep_parse_does_not_mutate_input():
    value = {"a": json.dumps({"b": 1}), "list": [json.dumps([1])]}
    original = copy.deepcopy(value)

    result, paths = deep_parse(value)
    assert value == original
    assert result is not value
    assert result["list"] is not value["list"]
    assert paths == ["a", "list[0]"]


def test_custom_recovery_runs_only_after_strict_failure():
    calls = []

    def strip_prefix(raw):
        calls.append(raw)
        return raw.removeprefix("garbage")

    options = ParserOptions(recoveries=(strip_prefix,))
    assert normalize_data('garbage{"a": 1}', options).data == {"a": 1}
    assert normalize_data('{"b": 2}', options).data == {"b": 2}
    assert calls == ['garbage{"a": 1}']


def test_unescape_quotes():
    assert unescape_quotes('{\\"a\\": \\"b\\"}') == '{"a": "b"}'
    assert unescape_quotes("no quotes") == "no quotes"
