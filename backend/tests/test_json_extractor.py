"""
FinSight Backend — JSON Extractor Unit Tests
==============================================

What:  Tests for extract_json() against the shapes models actually return.

What we test:
    ✅ Bare JSON of any type parses directly
    ✅ JSON wrapped in prose or markdown fences is recovered
    ✅ Strategy order (direct parse wins)
    ✅ No recoverable JSON → ParseFailure
    ✅ Several objects in one completion (documented limitation)
"""

import pytest

from app.exceptions import ParseFailure
from app.services.json_extractor import STRATEGIES, extract_json


SUGGESTIONS = {
    "suggestions": [
        {
            "name": "Nifty 50 Index Fund",
            "description": "Low-cost index exposure",
            "current_price": "210",
            "sell_price": "240",
            "stop_loss": "195",
        }
    ]
}


class TestDirectParse:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ('{"a": 1}', {"a": 1}),
            ("[1, 2, 3]", [1, 2, 3]),
            ('"just a string"', "just a string"),
            ("42", 42),
            ("true", True),
            ("null", None),
        ],
    )
    def test_any_json_value(self, text, expected):
        assert extract_json(text) == expected

    def test_surrounding_whitespace_is_trimmed(self):
        assert extract_json('\n\n   {"a": 1}  \n') == {"a": 1}

    def test_strategy_order(self):
        assert [name for name, _ in STRATEGIES] == [
            "direct",
            "brace_slice",
            "json_fence",
            "brace_search",
        ]


class TestRecovery:
    def test_inline_object_in_sentence(self):
        assert extract_json('here is the data: {"a":1} thanks') == {"a": 1}

    def test_prose_before_and_after(self):
        text = 'Sure! Here are your suggestions:\n{"suggestions": []}\nHope this helps.'
        assert extract_json(text) == {"suggestions": []}

    def test_json_fence(self):
        text = 'Here you go:\n```json\n{"indices": [{"name": "Sensex", "current": 72000}]}\n```'
        assert extract_json(text) == {"indices": [{"name": "Sensex", "current": 72000}]}

    def test_fence_tag_is_case_insensitive(self):
        text = "```JSON\n[1, 2]\n```"
        assert extract_json(text) == [1, 2]

    def test_fenced_array_recovered_by_fence(self):
        """No braces at all, so only the fence strategy can succeed."""
        text = "The list:\n```json\n[\"a\", \"b\"]\n```\nDone."
        assert extract_json(text) == ["a", "b"]

    def test_nested_realistic_payload(self):
        import json

        text = "Based on your profile:\n\n" + json.dumps(SUGGESTIONS, indent=2) + "\n\nInvest wisely."
        assert extract_json(text) == SUGGESTIONS


class TestFailure:
    @pytest.mark.parametrize("text", ["", "   ", None, 17, {"a": 1}])
    def test_non_text_or_blank(self, text):
        with pytest.raises(ParseFailure):
            extract_json(text)

    def test_prose_without_json(self):
        with pytest.raises(ParseFailure) as exc_info:
            extract_json("I'm sorry, I cannot provide financial advice.")
        assert exc_info.value.message == "Model returned unparsable JSON."

    def test_truncated_object(self):
        with pytest.raises(ParseFailure):
            extract_json('{"suggestions": [{"name": "Gold"')

    def test_two_unrelated_objects_fail(self):
        """First "{" to last "}" spans both objects and the prose between."""
        with pytest.raises(ParseFailure):
            extract_json('{"a": 1} and also {"b": 2}')

    def test_deep_nesting_is_a_parse_failure(self):
        with pytest.raises(ParseFailure):
            extract_json("[" * 100000 + "]" * 100000)

    def test_deeply_nested_object_in_prose(self):
        text = "Result: " + '{"a": ' * 50000 + "1" + "}" * 50000
        with pytest.raises(ParseFailure):
            extract_json(text)

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_standard_constants_rejected(self, constant):
        with pytest.raises(ParseFailure):
            extract_json('{"indices": [{"name": "Nifty50", "current": %s}]}' % constant)

    def test_bare_nan_rejected(self):
        with pytest.raises(ParseFailure):
            extract_json("NaN")
