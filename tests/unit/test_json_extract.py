# tests/unit/test_json_extract.py
"""Tests for tolerant JSON extraction from model output."""

import pytest

from blueprint_coach.parsing.json_extract import extract_json


class TestExtractJson:
    """extract_json strategies."""

    def test_pure_json(self):
        assert extract_json('{"phases": []}') == {"phases": []}

    def test_code_fence(self):
        raw = 'Here you go:\n```json\n{"name": "Launch"}\n```\nEnjoy!'
        assert extract_json(raw) == {"name": "Launch"}

    def test_json_wrapped_in_prose(self):
        raw = 'Sure! ["Interview an expert", "Map the block"] Let me know.'
        assert extract_json(raw) == ["Interview an expert", "Map the block"]

    def test_truncated_array_is_repaired(self):
        assert extract_json('[{"name": "A"}, {"name": "B"') == [{"name": "A"}]

    def test_empty_output_raises(self):
        with pytest.raises(ValueError, match="Empty output"):
            extract_json("   ")

    def test_no_json_raises(self):
        with pytest.raises(ValueError, match="Could not extract"):
            extract_json("Just some friendly prose.")

    def test_prefers_value_with_requested_keys(self):
        raw = (
            'A phase looks like {"name": "Launch"}. Your plan: '
            '{"phases": [{"name": "Investigate"}, {"name": "Build"}]}'
        )

        assert extract_json(raw, keys=("phases",)) == {
            "phases": [{"name": "Investigate"}, {"name": "Build"}]
        }
        assert extract_json(raw) == {"name": "Launch"}

    def test_truncated_nested_payload_keeps_complete_elements(self):
        raw = '{"phases": [{"name": "Launch", "goal": "Hook"}, {"name": "Bui'

        assert extract_json(raw, keys=("phases",)) == {
            "phases": [{"name": "Launch", "goal": "Hook"}]
        }

    def test_stray_bracket_in_prose_is_skipped(self):
        raw = 'Options [see below]: ["Map the block", "Interview a planner"]'

        assert extract_json(raw) == ["Map the block", "Interview a planner"]
