"""
Match Runner - scores jobs against the profile using the configured LLM.

Single matches surface typed errors unchanged. Bulk and selected runs are a
strictly sequential loop with a fixed pause between provider calls; each
job's failure is recorded and the run continues.

Two batches running against the same store at once are not supported: the
store is read and then written per job without any cross-job transaction.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional, Protocol, Sequence

from loguru import logger

from providers.base import AIMessage, AIResponse
from shared.config import Settings, get_settings
from shared.database import ResultStore
from shared.errors import ErrorKind, JobMatchError
from shared.models import (
    BatchError,
    BatchSummary,
    JobSummary,
    MatchingHistoryEntry,
    MatchingResult,
)

from .parser import parse_matching_response
from .prompt import SYSTEM_PROMPT, build_matching_prompt
from .validator import validate_and_adjust_score

ProgressCallback = Callable[[int, int, str], None]


class PromptSender(Protocol):
    async def send_prompt(
        self,
        messages: Sequence[AIMessage],
        max_tokens: int = 2000,
        temperature: Optional[float] = None,
    ) -> AIResponse: ...


class MatchState(str, Enum):
    """Steps a single match moves through, in order."""

    PENDING = "pending"
    LOADING = "loading"
    PROMPTING = "prompting"
    AWAITING_PROVIDER = "awaiting_provider"
    PARSING = "parsing"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    DONE = "done"
    ERRORED = "errored"


class MatchRunner:
    """Runs single, bulk and selected matches against a result store."""

    def __init__(
        self,
        store: ResultStore,
        ai: PromptSender,
        settings: Optional[Settings] = None,
        delay_seconds: Optional[float] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.ai = ai
        self.delay_seconds = (
            self.settings.match_delay_seconds if delay_seconds is None else delay_seconds
        )

    def _enter(self, job_id: str, state: MatchState) -> MatchState:
        logger.debug(f"Job {job_id}: {state.value}")
        return state

    async def match_job(self, job_id: str) -> MatchingResult:
        """Match one job and persist the result.

        Nothing is written unless a fully validated result exists.

        Raises:
            JobMatchError: NoProfile, JobNotFound, any provider kind, or
                UnparsableResponse.
        """
        state = self._enter(job_id, MatchState.PENDING)
        try:
            state = self._enter(job_id, MatchState.LOADING)
            profile = await self.store.get_profile()
            if profile is None:
                raise JobMatchError(
                    ErrorKind.NO_PROFILE, "No profile found. Please create a profile first."
                )
            skills = await self.store.get_skills()
            preferences = await self.store.get_preferences()

            job = await self.store.get_job(job_id)
            if job is None:
                raise JobMatchError(ErrorKind.JOB_NOT_FOUND, f"Job {job_id} not found")

            state = self._enter(job_id, MatchState.PROMPTING)
            prompt = build_matching_prompt(profile, skills, preferences, job)
            messages = [
                AIMessage(role="system", content=SYSTEM_PROMPT),
                AIMessage(role="user", content=prompt),
            ]

            state = self._enter(job_id, MatchState.AWAITING_PROVIDER)
            response = await self.ai.send_prompt(
                messages,
                max_tokens=self.settings.match_max_tokens,
                temperature=self.settings.match_temperature,
            )

            state = self._enter(job_id, MatchState.PARSING)
            result = parse_matching_response(response.content)

            state = self._enter(job_id, MatchState.VALIDATING)
            result = validate_and_adjust_score(result)

            state = self._enter(job_id, MatchState.PERSISTING)
            await self.store.insert_matching_result(job_id, result, response.model)
            await self.store.update_job_score(job_id, result.match_score)

        except Exception as e:
            logger.debug(f"Job {job_id}: {MatchState.ERRORED.value} during {state.value} ({e})")
            raise

        self._enter(job_id, MatchState.DONE)
        logger.info(
            f"Matching completed for job {job_id}: {result.match_score}% "
            f"({result.match_category.value}, model={response.model})"
        )
        return result

    async def _run_batch(
        self,
        jobs: list[JobSummary],
        on_progress: Optional[ProgressCallback],
        skipped: int = 0,
    ) -> BatchSummary:
        summary = BatchSummary(skipped=skipped)
        total = len(jobs)

        for i, job in enumerate(jobs):
            if on_progress:
                on_progress(i + 1, total, job.title)

            try:
                await self.match_job(job.id)
                summary.matched += 1
                logger.info(f"Matched job {i + 1}/{total}: {job.title}")
            except Exception as e:
                summary.failed += 1
                summary.errors.append(
                    BatchError(job_title=job.title, error_message=str(e) or type(e).__name__)
                )
                logger.error(f"Failed to match job {job.id} ({job.title}): {e!r}")

            # Small delay between API calls to avoid rate limiting
            if i < total - 1:
                await asyncio.sleep(self.delay_seconds)

        return summary

    async def bulk_match_jobs(
        self,
        rematch_all: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchSummary:
        """Match every job with text, or only those never scored."""
        jobs = await self.store.list_jobs(only_unscored=not rematch_all)

        logger.info(f"Starting bulk matching for {len(jobs)} jobs (rematch_all: {rematch_all})")
        summary = await self._run_batch(jobs, on_progress)
        logger.info(f"Bulk matching completed: {summary}")
        return summary

    async def match_selected_jobs(
        self,
        job_ids: list[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> BatchSummary:
        """Match the given jobs; those without text are skipped, not attempted."""
        unique_ids = list(dict.fromkeys(job_ids))
        if not unique_ids:
            return BatchSummary()

        jobs = await self.store.list_jobs_by_ids(unique_ids)
        skipped = len(unique_ids) - len(jobs)

        logger.info(
            f"Starting selective matching for {len(jobs)} jobs "
            f"({skipped} skipped due to missing text)"
        )
        summary = await self._run_batch(jobs, on_progress, skipped=skipped)
        logger.info(f"Selective matching completed: {summary}")
        return summary

    async def get_unmatched_job_count(self) -> int:
        return await self.store.count_unmatched_jobs()

    async def get_matching_history(self, job_id: str) -> list[MatchingHistoryEntry]:
        return await self.store.get_matching_history(job_id)
