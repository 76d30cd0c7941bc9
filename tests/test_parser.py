"""Tests for parsing LLM replies into MatchingResult"""
import json

import pytest

from matcher.parser import DEFAULT_REASONING, extract_json_text, parse_matching_response
from shared.errors import ErrorKind, JobMatchError
from shared.models import MatchCategory

from conftest import llm_reply


def test_parses_clean_json():
    """Test a well-formed reply maps onto every field"""
    text = llm_reply(
        score=72,
        missing_skills=[{"skill": "Kubernetes", "required_level": 7, "current_level": 4, "gap": 3}],
    )

    result = parse_matching_response(text)

    assert result.match_score == 72
    assert result.match_category == MatchCategory.GOOD
    assert result.strengths == ["Solid Python background"]
    assert result.gaps.missing_skills[0].skill == "Kubernetes"
    assert result.gaps.missing_skills[0].required_level == 7
    assert result.gaps.missing_skills[0].current_level == 4
    assert result.gaps.missing_skills[0].gap == 3
    assert result.recommendations == ["Deepen Kubernetes knowledge"]
    assert result.reasoning == "Good overall fit."


def test_fenced_block_matches_bare_json():
    """Test a ```json fenced reply yields the same result as bare JSON"""
    bare = llm_reply(score=72)
    fenced = f"```json\n{bare}\n```"

    assert parse_matching_response(fenced) == parse_matching_response(bare)


def test_json_surrounded_by_prose():
    """Test the first balanced object is found inside chatter"""
    text = 'Here is my analysis:\n{"match_score": 40, "reasoning": "uses {braces} in text"}\nHope it helps {'

    result = parse_matching_response(text)

    assert result.match_score == 40
    assert result.reasoning == "uses {braces} in text"


def test_reparsing_serialized_result_is_idempotent():
    """Test serializing a result back to the schema reproduces it"""
    original = parse_matching_response(
        llm_reply(
            score=64,
            category="needs_work",
            gaps={
                "missing_skills": [{"skill": "Go", "required_level": 6, "current_level": 2, "gap": 4}],
                "experience_gaps": [{"area": "Team lead", "required_years": 2, "actual_years": 0.5}],
            },
        )
    )

    again = parse_matching_response(json.dumps(original.to_response_dict()))

    assert again == original


def test_missing_fields_get_defaults():
    """Test absent fields fall back instead of raising"""
    result = parse_matching_response("{}")

    assert result.match_score == 0
    assert result.match_category == MatchCategory.NEEDS_WORK
    assert result.strengths == []
    assert result.gaps.missing_skills == []
    assert result.gaps.experience_gaps == []
    assert result.recommendations == []
    assert result.reasoning == DEFAULT_REASONING


def test_unknown_category_becomes_needs_work():
    result = parse_matching_response(llm_reply(category="excellent"))

    assert result.match_category == MatchCategory.NEEDS_WORK


@pytest.mark.parametrize("raw, expected", [(150, 100), (-20, 0), ("85", 85), (66.6, 67), (None, 0)])
def test_score_is_coerced_and_clamped(raw, expected):
    result = parse_matching_response(json.dumps({"match_score": raw}))

    assert result.match_score == expected


def test_malformed_gap_entries_are_coerced():
    """Test wrong types inside gaps are defaulted rather than rejected"""
    text = json.dumps({
        "match_score": 50,
        "gaps": {
            "missing_skills": [
                {"skill": "Rust", "required_level": 14, "current_level": "two"},
                "not an object",
            ],
            "experience_gaps": "none",
        },
        "strengths": "one string",
    })

    result = parse_matching_response(text)

    assert len(result.gaps.missing_skills) == 1
    gap = result.gaps.missing_skills[0]
    assert gap.required_level == 10
    assert gap.current_level == 0
    assert gap.gap == 0
    assert result.gaps.experience_gaps == []
    assert result.strengths == []


@pytest.mark.parametrize("text", ["", "I cannot help with that.", "{not json at all}", "[1, 2, 3]"])
def test_unparsable_reply_raises(text):
    with pytest.raises(JobMatchError) as exc_info:
        parse_matching_response(text)

    assert exc_info.value.kind == ErrorKind.UNPARSABLE_RESPONSE


def test_extract_prefers_fenced_block():
    text = 'prefix {"a": 1}\n```json\n{"b": 2}\n```'

    assert extract_json_text(text) == '{"b": 2}'


def test_integers_beyond_float_range_are_coerced():
    """Test oversized integers are treated as unusable numbers instead of raising"""
    huge = "9" * 400
    text = (
        '{"match_score": ' + huge + ', "gaps": {"missing_skills": '
        '[{"skill": "Go", "required_level": 6, "current_level": ' + huge + ', "gap": ' + huge + '}]}}'
    )

    result = parse_matching_response(text)

    assert result.match_score == 0
    assert result.gaps.missing_skills[0].current_level == 0
    assert result.gaps.missing_skills[0].gap == 0
