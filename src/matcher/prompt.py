"""
Scoring prompt for job/profile matching.

The prompt is a pure function of its inputs so the same profile and job
always produce the same text.
"""

from typing import Optional

from shared.models import Job, Preferences, Profile, Skill

SYSTEM_PROMPT = (
    "You are an expert job-matching analyst. You score how well a candidate fits a "
    "job posting and respond ONLY with a single valid JSON object."
)

_UNCATEGORIZED = "Uncategorized"

CONFIDENCE_LABELS = {
    "very_likely": "confidence: very likely",
    "possible": "confidence: possible, not confirmed",
}

RELEVANCE_LABELS = {
    "high": "high market demand",
    "medium": "moderate market demand",
    "low": "low market demand",
}

REMOTE_LABELS = {
    "remote_only": "Remote only",
    "remote": "Remote only",
    "hybrid": "Hybrid",
    "on_site": "On-site",
    "onsite": "On-site",
    "flexible": "Flexible",
}

RESPONSE_SCHEMA = """{
  "match_score": <integer 0-100>,
  "match_category": "perfect" | "good" | "needs_work" | "poor",
  "strengths": ["<strength>", ...],
  "gaps": {
    "missing_skills": [
      {"skill": "<required skill>", "required_level": <0-10>, "current_level": <0-10>, "gap": <required_level - current_level>}
    ],
    "experience_gaps": [
      {"area": "<area>", "required_years": <number>, "actual_years": <number>}
    ]
  },
  "recommendations": ["<concrete, actionable recommendation>", ...],
  "reasoning": "<2-3 sentences explaining the score>"
}"""

SCORING_RULES = """**Scoring weights:**
- Skills match: 40%
- Experience match: 30%
- Location / remote match: 15%
- Salary match: 15%

**Skill scoring must be proportional to level:**
For every skill the job requires, estimate the required level (0-10) and compute
fulfillment = min(current_level / required_level, 1.0).
Having a skill is NOT full credit: a candidate at level 3 for a skill required at
level 8 fulfils only 0.375 of that requirement. Never score skills as present/absent.
The skills component is the average fulfillment over all required skills.

**Calibration bands (average skill fulfillment -> overall score):**
- 0.9 or higher: 80-100
- 0.7 to 0.9: 65-80
- 0.5 to 0.7: 50-65
- 0.3 to 0.5: 35-50
- below 0.3: 0-35

**Worked example:**
The job requires Python at level 8 and SQL at level 6. The candidate has Python 6 and SQL 6.
Fulfillment: Python 6/8 = 0.75, SQL 6/6 = 1.0, average 0.875 -> skills component 87.5.
Experience fits fully (100), location fits (100), salary is slightly below the wish (60).
Score = 0.40 * 87.5 + 0.30 * 100 + 0.15 * 100 + 0.15 * 60 = 35 + 30 + 15 + 9 = 89.
Python is reported in missing_skills with required_level 8, current_level 6, gap 2.

**Skill matching is semantic, not lexical:**
- Compare names case-insensitively and ignore whitespace, hyphens and dots
  ("Node.js" = "nodejs" = "Node JS").
- Broad requirements ("a programming language", "a cloud platform", "SQL databases")
  are satisfied by any concrete skill of the candidate in that family.
- For such requirements use the candidate's best matching skill as current_level.
- List every required skill whose current_level is below its required_level in
  missing_skills, including skills the candidate does not have at all (current_level 0)."""


def _format_number(value: float) -> str:
    return f"{value:g}"


def _format_skill(skill: Skill) -> str:
    details = [f"Level {skill.level}/10"]
    if skill.years_experience:
        details.append(f"{_format_number(skill.years_experience)} years experience")
    if skill.confidence:
        details.append(CONFIDENCE_LABELS.get(skill.confidence.value, skill.confidence.value))
    if skill.market_relevance:
        details.append(
            RELEVANCE_LABELS.get(skill.market_relevance.value, skill.market_relevance.value)
        )
    return f"  - {skill.name} ({', '.join(details)})"


def format_skills(skills: list[Skill]) -> str:
    """Render skills grouped by category, categories and skills sorted."""
    by_category: dict[str, list[Skill]] = {}
    for skill in skills:
        by_category.setdefault(skill.category or _UNCATEGORIZED, []).append(skill)

    blocks = []
    for category in sorted(by_category, key=lambda c: (c.lower(), c)):
        # Rendered line breaks remaining ties
        category_skills = sorted(
            by_category[category], key=lambda s: (-s.level, s.name.lower(), _format_skill(s))
        )
        lines = [f"{category}:"] + [_format_skill(s) for s in category_skills]
        blocks.append("\n".join(lines))

    return "\n\n".join(blocks)


def _format_salary(preferences: Preferences) -> str:
    low = f"{preferences.desired_salary_min}" if preferences.desired_salary_min else "?"
    high = f"{preferences.desired_salary_max}" if preferences.desired_salary_max else "?"
    return f"{low} - {high}"


def format_preferences(preferences: Optional[Preferences]) -> str:
    if preferences is None:
        return "No preferences provided"

    lines = [f"- Desired salary: {_format_salary(preferences)}"]

    remote = preferences.remote_preference
    lines.append(f"- Remote preference: {REMOTE_LABELS.get(remote, remote) if remote else 'Not specified'}")

    if preferences.preferred_remote_percentage is not None:
        remote_line = f"- Preferred remote share: {preferences.preferred_remote_percentage}%"
        if (
            preferences.acceptable_remote_min is not None
            and preferences.acceptable_remote_max is not None
        ):
            remote_line += (
                f" (acceptable {preferences.acceptable_remote_min}%"
                f"-{preferences.acceptable_remote_max}%)"
            )
        lines.append(remote_line)

    if preferences.desired_locations:
        lines.append(f"- Desired locations: {', '.join(preferences.desired_locations)}")
    if preferences.contract_types:
        lines.append(f"- Contract types: {', '.join(preferences.contract_types)}")

    return "\n".join(lines)


def _format_profile(profile: Profile) -> str:
    lines = [f"Name: {profile.full_name}"]
    if profile.location:
        lines.append(f"Location: {profile.location}")
    return "\n".join(lines)


def _format_job(job: Job) -> str:
    lines = [f"Title: {job.title}", f"Company: {job.company}"]
    if job.location:
        lines.append(f"Location: {job.location}")
    if job.remote_option:
        lines.append(f"Remote: {job.remote_option}")
    if job.salary_range:
        lines.append(f"Salary: {job.salary_range}")
    if job.contract_type:
        lines.append(f"Contract type: {job.contract_type}")
    return "\n".join(lines)


def build_matching_prompt(
    profile: Profile,
    skills: list[Skill],
    preferences: Optional[Preferences],
    job: Job,
) -> str:
    """Render the scoring prompt for one profile/job pair."""
    skills_text = format_skills(skills) or "No skills provided"
    description = (job.full_text or "").strip() or "No description available"

    return f"""Analyse how well the following job posting matches the candidate profile.

## Candidate Profile
{_format_profile(profile)}

## Skills ({len(skills)} total)
{skills_text}

## Preferences
{format_preferences(preferences)}

## Job Posting
{_format_job(job)}

Description:
{description}

---

## Task
Score the match from 0 to 100 using the rules below.

{SCORING_RULES}

**Category by score:** perfect >= 90, good >= 80, needs_work >= 55, poor below 55.

## Response format
Respond with exactly one JSON object with these fields:

{RESPONSE_SCHEMA}

- Be objective and honest.
- Recommendations must be concrete and actionable.
- The reasoning should summarise the most important points.

Respond ONLY with the JSON object, no extra text."""
