"""
Matcher Service - LLM-based job/profile matching.

Builds a scoring prompt from the profile and a job, sends it to the
configured provider, and parses and sanity-checks the reply into a
0-100 compatibility report.
"""

from .parser import parse_matching_response
from .prompt import build_matching_prompt
from .runner import MatchRunner, MatchState
from .validator import category_for_score, validate_and_adjust_score

__all__ = [
    "MatchRunner",
    "MatchState",
    "build_matching_prompt",
    "category_for_score",
    "parse_matching_response",
    "validate_and_adjust_score",
]
