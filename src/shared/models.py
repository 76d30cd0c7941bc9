"""
Pydantic models for profiles, jobs and matching results.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class MatchCategory(str, Enum):
    """Coarse verdict attached to a match score."""

    PERFECT = "perfect"
    GOOD = "good"
    NEEDS_WORK = "needs_work"
    POOR = "poor"


class SkillConfidence(str, Enum):
    """How certain a skills analysis was about a skill."""

    VERY_LIKELY = "very_likely"
    POSSIBLE = "possible"


class MarketRelevance(str, Enum):
    """Job-market relevance of a skill."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# -----------------------------------------------------------------------------
# Profile side (read-only to the matching core)
# -----------------------------------------------------------------------------


class Profile(BaseModel):
    """The single user profile."""

    first_name: str = Field(default="")
    last_name: str = Field(default="")
    email: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Skill(BaseModel):
    """A skill on the user profile."""

    name: str = Field(..., description="Skill name")
    category: Optional[str] = Field(default=None, description="Skill category")
    level: int = Field(default=0, ge=0, le=10, description="Self-assessed level (0-10)")
    years_experience: Optional[float] = Field(default=None)
    confidence: Optional[SkillConfidence] = Field(default=None)
    market_relevance: Optional[MarketRelevance] = Field(default=None)


class Preferences(BaseModel):
    """Salary, location and remote-work preferences."""

    desired_salary_min: Optional[int] = Field(default=None)
    desired_salary_max: Optional[int] = Field(default=None)
    desired_locations: list[str] = Field(default_factory=list)
    remote_preference: Optional[str] = Field(
        default=None, description="remote_only | hybrid | on_site | flexible"
    )
    preferred_remote_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    acceptable_remote_min: Optional[int] = Field(default=None, ge=0, le=100)
    acceptable_remote_max: Optional[int] = Field(default=None, ge=0, le=100)
    contract_types: list[str] = Field(default_factory=list)


class Job(BaseModel):
    """Job posting as stored by the application."""

    id: str = Field(..., description="Store identifier")
    title: str = Field(default="")
    company: str = Field(default="")
    location: Optional[str] = Field(default=None)
    remote_option: Optional[str] = Field(default=None)
    salary_range: Optional[str] = Field(default=None)
    contract_type: Optional[str] = Field(default=None)
    full_text: Optional[str] = Field(default=None, description="Full job description")
    match_score: Optional[int] = Field(default=None, description="Latest match score (cache)")
    created_at: Optional[datetime] = Field(default=None)


class JobSummary(BaseModel):
    """Id/title pair used when selecting batch candidates."""

    id: str
    title: str = ""


# -----------------------------------------------------------------------------
# Matching results
# -----------------------------------------------------------------------------


class MissingSkill(BaseModel):
    skill: str = ""
    required_level: int = Field(default=0, ge=0, le=10)
    current_level: int = Field(default=0, ge=0, le=10)
    gap: int = 0


class ExperienceGap(BaseModel):
    area: str = ""
    required_years: float = 0
    actual_years: float = 0


class MatchGaps(BaseModel):
    missing_skills: list[MissingSkill] = Field(default_factory=list)
    experience_gaps: list[ExperienceGap] = Field(default_factory=list)


class MatchingResult(BaseModel):
    """Structured compatibility report for one job."""

    match_score: int = Field(default=0, ge=0, le=100)
    match_category: MatchCategory = Field(default=MatchCategory.NEEDS_WORK)
    strengths: list[str] = Field(default_factory=list)
    gaps: MatchGaps = Field(default_factory=MatchGaps)
    recommendations: list[str] = Field(default_factory=list)
    reasoning: str = ""

    def to_response_dict(self) -> dict[str, Any]:
        """Serialize back into the JSON schema the model is asked to answer with."""
        return self.model_dump(mode="json")


class MatchingHistoryEntry(BaseModel):
    """One immutable record of a past match."""

    id: str
    job_id: str
    result: MatchingResult
    api_model: Optional[str] = None
    created_at: datetime


class BatchError(BaseModel):
    job_title: str
    error_message: str

    def __str__(self) -> str:
        return f'Job "{self.job_title}": {self.error_message}'


class BatchSummary(BaseModel):
    """Outcome of a bulk or selected matching run."""

    matched: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[BatchError] = Field(default_factory=list)

    def __str__(self) -> str:
        return f"Matched: {self.matched}, Failed: {self.failed}, Skipped: {self.skipped}"
