"""
Parse the LLM's free-text reply into a MatchingResult.

Every field is decoded with an explicit fallback; only a reply with no
recoverable JSON object is an error.
"""

import json
import math
import re
from typing import Any, Optional

from loguru import logger

from shared.errors import ErrorKind, JobMatchError
from shared.models import (
    ExperienceGap,
    MatchCategory,
    MatchGaps,
    MatchingResult,
    MissingSkill,
)

_FENCED_JSON = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)

DEFAULT_REASONING = "No reasoning provided."


def _find_object_span(text: str) -> Optional[str]:
    """First balanced {...} span, ignoring braces inside JSON strings."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def extract_json_text(text: str) -> Optional[str]:
    """Pull the JSON payload out of a fenced block or surrounding prose."""
    fenced = _FENCED_JSON.search(text)
    if fenced:
        return fenced.group(1)
    return _find_object_span(text)


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip().rstrip("%"))
        else:
            return 0.0
    except (ValueError, OverflowError):
        # Integers beyond float range count as unusable, like inf/nan
        return 0.0
    return number if math.isfinite(number) else 0.0


def _to_int(value: Any) -> int:
    return int(round(_to_number(value)))


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _to_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _to_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]


def _to_dict_list(value: Any) -> list[dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _to_category(value: Any) -> MatchCategory:
    try:
        return MatchCategory(str(value).strip().lower())
    except ValueError:
        return MatchCategory.NEEDS_WORK


def _parse_gaps(value: Any) -> MatchGaps:
    gaps = value if isinstance(value, dict) else {}

    missing = [
        MissingSkill(
            skill=_to_str(item.get("skill")),
            required_level=_clamp(_to_int(item.get("required_level")), 0, 10),
            current_level=_clamp(_to_int(item.get("current_level")), 0, 10),
            gap=_to_int(item.get("gap")),
        )
        for item in _to_dict_list(gaps.get("missing_skills"))
    ]
    experience = [
        ExperienceGap(
            area=_to_str(item.get("area")),
            required_years=_to_number(item.get("required_years")),
            actual_years=_to_number(item.get("actual_years")),
        )
        for item in _to_dict_list(gaps.get("experience_gaps"))
    ]
    return MatchGaps(missing_skills=missing, experience_gaps=experience)


def parse_matching_response(text: str) -> MatchingResult:
    """Decode a model reply, raising UnparsableResponse if no JSON object is found."""
    json_text = extract_json_text(text or "")

    parsed: Any = None
    if json_text is not None:
        try:
            parsed = json.loads(json_text)
        except ValueError as e:
            logger.error(f"Failed to parse AI response: {e}")

    if not isinstance(parsed, dict):
        logger.debug(f"Response text: {text!r}")
        raise JobMatchError(
            ErrorKind.UNPARSABLE_RESPONSE,
            "The AI response could not be processed. Please try again.",
        )

    reasoning = parsed.get("reasoning")

    return MatchingResult(
        match_score=_clamp(_to_int(parsed.get("match_score")), 0, 100),
        match_category=_to_category(parsed.get("match_category")),
        strengths=_to_str_list(parsed.get("strengths")),
        gaps=_parse_gaps(parsed.get("gaps")),
        recommendations=_to_str_list(parsed.get("recommendations")),
        reasoning=reasoning if isinstance(reasoning, str) else DEFAULT_REASONING,
    )
