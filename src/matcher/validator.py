"""
Plausibility check of LLM match scores against the reported skill gaps.

Models tend to rate a candidate highly while listing large level gaps. The
average fulfillment of the reported missing skills sets a ceiling on the score.
"""

from typing import Optional

from loguru import logger

from shared.models import MatchCategory, MatchingResult

# (average fulfillment upper bound, score ceiling), checked in order
SCORE_CEILINGS = (
    (0.3, 50),
    (0.5, 65),
    (0.7, 80),
)
NO_CEILING = 100


def category_for_score(score: int) -> MatchCategory:
    """Category assigned after a score has been capped."""
    if score >= 80:
        return MatchCategory.GOOD
    if score >= 55:
        return MatchCategory.NEEDS_WORK
    return MatchCategory.POOR


def average_fulfillment(result: MatchingResult) -> Optional[float]:
    """Mean of min(current/required, 1.0) over skills with a required level."""
    ratios = [
        min(gap.current_level / gap.required_level, 1.0)
        for gap in result.gaps.missing_skills
        if gap.required_level > 0
    ]
    if not ratios:
        return None
    return sum(ratios) / len(ratios)


def score_ceiling(fulfillment: float) -> int:
    for bound, ceiling in SCORE_CEILINGS:
        if fulfillment < bound:
            return ceiling
    return NO_CEILING


def validate_and_adjust_score(result: MatchingResult) -> MatchingResult:
    """Cap an implausibly high score; returns the input unchanged when plausible."""
    if not result.gaps.missing_skills:
        return result

    fulfillment = average_fulfillment(result)
    if fulfillment is None:
        return result

    ceiling = score_ceiling(fulfillment)
    if result.match_score <= ceiling:
        return result

    note = (
        f"[score_adjusted: {result.match_score} -> {ceiling}; "
        f"avg_skill_fulfillment={fulfillment:.2f}; ceiling={ceiling}]"
    )
    reasoning = f"{result.reasoning} {note}" if result.reasoning else note

    logger.info(
        f"Capping match score {result.match_score} -> {ceiling} "
        f"(average skill fulfillment {fulfillment:.2f})"
    )
    return result.model_copy(
        update={
            "match_score": ceiling,
            "match_category": category_for_score(ceiling),
            "reasoning": reasoning,
        }
    )
