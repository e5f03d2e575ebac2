"""Tests for extracting a JSON object from model output."""

import pytest

from codecloze.utils.json_extract import extract_json_object, load_json_object


class TestExtractJsonObject:
    def test_plain_object(self):
        assert extract_json_object('{"review": true}') == '{"review": true}'

    def test_object_wrapped_in_prose(self):
        text = 'Sure! Here you go: {"review": false} Hope that helps.'
        assert extract_json_object(text) == '{"review": false}'

    def test_markdown_fence(self):
        text = '```json\n{"findings": []}\n```'
        assert extract_json_object(text) == '{"findings": []}'

    def test_nested_objects(self):
        text = 'x {"a": {"b": {"c": 1}}, "d": 2} y'
        assert extract_json_object(text) == '{"a": {"b": {"c": 1}}, "d": 2}'

    def test_returns_first_of_several_objects(self):
        assert extract_json_object('{"review": false} {"review": true}') == '{"review": false}'

    def test_braces_inside_strings_ignored(self):
        text = '{"lines": "+ if (x) { return }", "note": "}"} trailing }'
        assert extract_json_object(text) == '{"lines": "+ if (x) { return }", "note": "}"}'

    def test_escaped_quotes_inside_strings(self):
        text = r'{"summary": "quote \" and brace }"} tail'
        assert extract_json_object(text) == r'{"summary": "quote \" and brace }"}'

    def test_no_object(self):
        with pytest.raises(ValueError):
            extract_json_object("no json here")

    def test_unbalanced_object(self):
        with pytest.raises(ValueError):
            extract_json_object('{"findings": [{"summary": "cut off')


class TestLoadJsonObject:
    def test_decodes_wrapped_object(self):
        assert load_json_object('Answer: {"review": true}.') == {"review": True}

    def test_invalid_json_inside_braces(self):
        with pytest.raises(ValueError):
            load_json_object("{review: yes}")
