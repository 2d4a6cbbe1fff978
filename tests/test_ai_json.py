"""
Tests for JSON payload extraction from AI replies
"""
import pytest

from civicpulse.core.exceptions import AIResponseParseError
from civicpulse.utils.ai_json import extract_json_payload, strip_code_fences


def test_plain_json():
    assert extract_json_payload('{"severity": 7}') == {"severity": 7}


def test_fenced_json():
    reply = 'Here you go:\n```json\n{"severity": 3, "isRelevant": true}\n```'
    assert extract_json_payload(reply) == {"severity": 3, "isRelevant": True}


def test_unlabelled_fence():
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'


@pytest.mark.parametrize("reply", ["", "   ", None, "not json at all", "[1, 2, 3]", "```json\n{\"severity\": "])
def test_unusable_replies_raise(reply):
    with pytest.raises(AIResponseParseError):
        extract_json_payload(reply)


def test_parse_error_is_value_error():
    with pytest.raises(ValueError):
        extract_json_payload("nope")
