"""Tests for JSON extraction from model output."""

import pytest

from counsel_ai.ai.errors import InvalidJsonResponseError
from counsel_ai.ai.json_extract import extract_json_text, parse_json_response


class TestExtractJsonText:
    def test_plain_json_unchanged(self):
        assert extract_json_text('{"a": [1, 2]}') == '{"a": [1, 2]}'
        assert extract_json_text("[1, 2, 3]") == "[1, 2, 3]"

    def test_surrounding_whitespace_trimmed(self):
        assert extract_json_text('\n  {"a": 1}  \n') == '{"a": 1}'

    def test_leading_json_fence(self):
        assert extract_json_text('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_leading_uppercase_json_fence(self):
        assert extract_json_text('```JSON\n[{"index": 0}]\n```') == '[{"index": 0}]'

    def test_leading_bare_fence(self):
        assert extract_json_text("```\n[1, 2]\n```") == "[1, 2]"

    def test_fence_after_prose(self):
        raw = 'Here are the scores:\n```json\n[{"index": 0, "score": 85}]\n```\nLet me know!'
        assert extract_json_text(raw) == '[{"index": 0, "score": 85}]'

    def test_object_inside_prose(self):
        raw = 'Sure! {"answer": "yes"} Hope this helps.'
        assert extract_json_text(raw) == '{"answer": "yes"}'

    def test_array_inside_prose(self):
        raw = 'The matches are [{"index": 1, "score": 90}] as requested'
        assert extract_json_text(raw) == '[{"index": 1, "score": 90}]'

    def test_trailing_text_after_json_dropped(self):
        raw = '[{"index": 0, "score": 70}]\n\nNote: scores are estimates.'
        assert extract_json_text(raw) == '[{"index": 0, "score": 70}]'

    def test_text_without_json_returned_as_is(self):
        assert extract_json_text("no json here") == "no json here"


class TestParseJsonResponse:
    def test_parses_object(self):
        assert parse_json_response('{"a": 1, "b": [true, null]}') == {"a": 1, "b": [True, None]}

    def test_parses_fenced_array(self):
        assert parse_json_response('```json\n[{"index": 0, "score": 85}]\n```') == [
            {"index": 0, "score": 85}
        ]

    def test_prose_wrapped(self):
        assert parse_json_response('Result: {"ok": true}. Done.') == {"ok": True}

    def test_invalid_json_raises_with_diagnostics(self):
        with pytest.raises(InvalidJsonResponseError) as exc_info:
            parse_json_response("I could not find any similar tickets.")

        error = exc_info.value
        assert error.raw_text == "I could not find any similar tickets."
        assert "raw: I could not find" in str(error)

    def test_truncated_json_raises(self):
        with pytest.raises(InvalidJsonResponseError):
            parse_json_response('[{"index": 0, "score": ')

    def test_diagnostic_text_is_capped(self):
        raw = "x" * 5000
        with pytest.raises(InvalidJsonResponseError) as exc_info:
            parse_json_response(raw)
        assert len(str(exc_info.value)) < 2200
