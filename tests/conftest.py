"""Shared fixtures: in-memory store, scripted provider, isolated settings."""
import json
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

import pytest

from providers.base import AIMessage, AIResponse, Provider
from shared.config import Settings
from shared.models import (
    Job,
    JobSummary,
    MatchingHistoryEntry,
    MatchingResult,
    Preferences,
    Profile,
    Skill,
)


class FakeStore:
    """In-memory ResultStore + SettingsStore."""

    def __init__(self):
        self.profile: Optional[Profile] = None
        self.skills: list[Skill] = []
        self.preferences: Optional[Preferences] = None
        self.jobs: dict[str, Job] = {}
        self.history: list[MatchingHistoryEntry] = []
        self.settings: dict[str, str] = {}
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def add_job(self, job_id: str, title: str, full_text: Optional[str] = "Python developer wanted", match_score=None) -> Job:
        job = Job(
            id=job_id,
            title=title,
            company="Acme",
            full_text=full_text,
            match_score=match_score,
            created_at=self._tick(),
        )
        self.jobs[job_id] = job
        return job

    def _newest_first(self, jobs):
        return sorted(jobs, key=lambda j: j.created_at, reverse=True)

    async def get_profile(self):
        return self.profile

    async def get_skills(self):
        return list(self.skills)

    async def get_preferences(self):
        return self.preferences

    async def get_job(self, job_id):
        return self.jobs.get(job_id)

    async def list_jobs(self, only_unscored):
        jobs = [j for j in self.jobs.values() if j.full_text]
        if only_unscored:
            jobs = [j for j in jobs if j.match_score is None]
        return [JobSummary(id=j.id, title=j.title) for j in self._newest_first(jobs)]

    async def list_jobs_by_ids(self, job_ids):
        jobs = [self.jobs[i] for i in job_ids if i in self.jobs and self.jobs[i].full_text]
        return [JobSummary(id=j.id, title=j.title) for j in self._newest_first(jobs)]

    async def count_unmatched_jobs(self):
        return sum(1 for j in self.jobs.values() if j.full_text and j.match_score is None)

    async def insert_matching_result(self, job_id, result, model_used):
        entry = MatchingHistoryEntry(
            id=str(len(self.history) + 1),
            job_id=job_id,
            result=result,
            api_model=model_used,
            created_at=self._tick(),
        )
        self.history.append(entry)
        return entry.id

    async def update_job_score(self, job_id, score):
        job = self.jobs.get(job_id)
        if job is None:
            return False
        self.jobs[job_id] = job.model_copy(update={"match_score": score})
        return True

    async def get_matching_history(self, job_id):
        entries = [e for e in self.history if e.job_id == job_id]
        return sorted(entries, key=lambda e: e.created_at, reverse=True)

    async def get_setting(self, key):
        return self.settings.get(key)

    async def set_setting(self, key, value):
        self.settings[key] = value

    def history_for(self, job_id: str) -> list[MatchingHistoryEntry]:
        return [e for e in self.history if e.job_id == job_id]


class ScriptedProvider:
    """PromptSender that replays queued replies or exceptions."""

    def __init__(self, replies=None, model: str = "test-model"):
        self.replies = list(replies or [])
        self.model = model
        self.calls: list[list[AIMessage]] = []

    async def send_prompt(
        self,
        messages: Sequence[AIMessage],
        max_tokens: int = 2000,
        temperature: Optional[float] = None,
    ) -> AIResponse:
        self.calls.append(list(messages))
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return AIResponse(content=reply, model=self.model, provider=Provider.ANTHROPIC)


def llm_reply(score: int = 72, missing_skills=None, category: str = "good", **extra) -> str:
    """A well-formed model reply."""
    payload = {
        "match_score": score,
        "match_category": category,
        "strengths": ["Solid Python background"],
        "gaps": {"missing_skills": missing_skills or [], "experience_gaps": []},
        "recommendations": ["Deepen Kubernetes knowledge"],
        "reasoning": "Good overall fit.",
    }
    payload.update(extra)
    return json.dumps(payload)


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and the user's home."""
    return Settings(
        _env_file=None,
        credentials_path=tmp_path / "credentials.yaml",
        anthropic_api_key="",
        openrouter_api_key="",
        default_provider="anthropic",
        match_delay_seconds=0,
    )


@pytest.fixture
def store():
    store = FakeStore()
    store.profile = Profile(first_name="Ada", last_name="Lovelace", location="Berlin")
    store.skills = [Skill(name="Python", category="Programming Languages", level=3)]
    store.preferences = Preferences(desired_salary_min=60000, remote_preference="hybrid")
    return store
