"""
Tests for body serialization and lenient response parsing.
"""

import json
from unittest.mock import MagicMock

import pytest

from baasclient.utils import join_url, parse_json_body, to_json_exclude_empty


class TestExcludeEmpty:

    def test_drops_none_and_empty_string(self):
        body = {"a": "", "b": None, "c": False, "d": 0, "e": []}
        assert json.loads(to_json_exclude_empty(body)) == {"c": False, "d": 0, "e": []}

    def test_only_top_level_keys_are_filtered(self):
        body = {"outer": {"inner": None, "blank": ""}}
        assert json.loads(to_json_exclude_empty(body)) == {"outer": {"inner": None, "blank": ""}}

    def test_empty_body(self):
        assert to_json_exclude_empty({}) == "{}"


class TestParseJsonBody:

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("", {}),
            ("   ", {}),
            ("ok", {"success": True, "message": "ok"}),
            ('"ok"', {"success": True, "message": "ok"}),
            ('{"a": 1}', {"a": 1}),
            ("[1]", [1]),
        ],
    )
    def test_parsing(self, text, expected):
        assert parse_json_body(text) == expected

    def test_unparseable_body_is_wrapped_and_logged(self):
        logger = MagicMock()
        assert parse_json_body("<html>", logger) == {"raw": "<html>"}
        logger.warning.assert_called_once()
        assert logger.warning.call_args.args[0] == "response.unparseable_body"

    def test_ok_result_is_a_fresh_dict(self):
        first = parse_json_body("ok")
        first["message"] = "mutated"
        assert parse_json_body("ok")["message"] == "ok"


class TestJoinUrl:

    def test_slashes_are_normalized(self):
        assert join_url("https://a.example.com/", "/x/y") == "https://a.example.com/x/y"
        assert join_url("https://a.example.com", "x") == "https://a.example.com/x"
