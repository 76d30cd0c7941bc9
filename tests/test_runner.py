"""Tests for single, bulk and selected matching runs"""
from unittest.mock import AsyncMock, patch

import pytest

from matcher.runner import MatchRunner
from shared.errors import ErrorKind, JobMatchError, ProviderError
from shared.models import MatchCategory

from conftest import ScriptedProvider, llm_reply


def make_runner(store, provider, settings):
    return MatchRunner(store, provider, settings, delay_seconds=0)


@pytest.mark.asyncio
async def test_match_job_persists_result_and_score(store, settings):
    """Test a successful match writes history and caches the score"""
    store.add_job("1", "Backend Engineer")
    provider = ScriptedProvider([llm_reply(score=72)])

    result = await make_runner(store, provider, settings).match_job("1")

    assert result.match_score == 72
    assert store.jobs["1"].match_score == 72
    history = store.history_for("1")
    assert len(history) == 1
    assert history[0].result == result
    assert history[0].api_model == "test-model"


@pytest.mark.asyncio
async def test_match_job_sends_system_and_prompt(store, settings):
    store.add_job("1", "Backend Engineer")
    provider = ScriptedProvider([llm_reply()])

    await make_runner(store, provider, settings).match_job("1")

    messages = provider.calls[0]
    assert [m.role for m in messages] == ["system", "user"]
    assert "Title: Backend Engineer" in messages[1].content


@pytest.mark.asyncio
async def test_end_to_end_score_is_capped(store, settings):
    """Test Python 3 of 8 reported with score 90 is capped to 65 / needs_work"""
    store.add_job("1", "Python Lead")
    provider = ScriptedProvider([
        llm_reply(
            score=90,
            category="perfect",
            missing_skills=[{"skill": "Python", "required_level": 8, "current_level": 3, "gap": 5}],
        )
    ])

    result = await make_runner(store, provider, settings).match_job("1")

    assert result.match_score == 65
    assert result.match_category == MatchCategory.NEEDS_WORK
    assert "score_adjusted" in result.reasoning
    assert store.jobs["1"].match_score == 65


@pytest.mark.asyncio
async def test_no_profile_fails_without_calling_provider(store, settings):
    store.profile = None
    store.add_job("1", "Backend Engineer")
    provider = ScriptedProvider([llm_reply()])

    with pytest.raises(JobMatchError) as exc_info:
        await make_runner(store, provider, settings).match_job("1")

    assert exc_info.value.kind == ErrorKind.NO_PROFILE
    assert provider.calls == []


@pytest.mark.asyncio
async def test_unknown_job_fails(store, settings):
    provider = ScriptedProvider([llm_reply()])

    with pytest.raises(JobMatchError) as exc_info:
        await make_runner(store, provider, settings).match_job("missing")

    assert exc_info.value.kind == ErrorKind.JOB_NOT_FOUND


@pytest.mark.asyncio
async def test_failures_leave_no_partial_writes(store, settings):
    """Test provider and parse failures surface unchanged and write nothing"""
    store.add_job("1", "Backend Engineer")
    timeout = ProviderError(ErrorKind.TIMEOUT, "timed out")
    provider = ScriptedProvider([timeout, "no json here"])
    runner = make_runner(store, provider, settings)

    with pytest.raises(ProviderError) as exc_info:
        await runner.match_job("1")
    assert exc_info.value is timeout

    with pytest.raises(JobMatchError) as exc_info:
        await runner.match_job("1")
    assert exc_info.value.kind == ErrorKind.UNPARSABLE_RESPONSE

    assert store.history == []
    assert store.jobs["1"].match_score is None


@pytest.mark.asyncio
async def test_bulk_unscored_skips_scored_jobs(store, settings):
    store.add_job("1", "Scored", match_score=50)
    store.add_job("2", "Unscored")
    store.add_job("3", "No text", full_text="")
    provider = ScriptedProvider([llm_reply()])

    summary = await make_runner(store, provider, settings).bulk_match_jobs(rematch_all=False)

    assert summary.matched == 1
    assert [e.job_id for e in store.history] == ["2"]


@pytest.mark.asyncio
async def test_bulk_rematch_all_selects_every_job_with_text(store, settings):
    store.add_job("1", "Scored", match_score=50)
    store.add_job("2", "Unscored")
    store.add_job("3", "No text", full_text=None)
    provider = ScriptedProvider([llm_reply(), llm_reply()])

    summary = await make_runner(store, provider, settings).bulk_match_jobs(rematch_all=True)

    assert summary.matched == 2
    # Newest first
    assert [e.job_id for e in store.history] == ["2", "1"]


@pytest.mark.asyncio
async def test_bulk_isolates_a_timeout(store, settings):
    """Test job 2 timing out does not stop jobs 1 and 3"""
    store.add_job("3", "Job three")
    store.add_job("2", "Job two")
    store.add_job("1", "Job one")
    provider = ScriptedProvider([
        llm_reply(score=70),
        ProviderError(ErrorKind.TIMEOUT, "OpenRouter request cancelled after 60 seconds (timeout)."),
        llm_reply(score=40),
    ])
    progress = []

    summary = await make_runner(store, provider, settings).bulk_match_jobs(
        rematch_all=True, on_progress=lambda *args: progress.append(args)
    )

    assert (summary.matched, summary.failed, summary.skipped) == (2, 1, 0)
    assert len(summary.errors) == 1
    assert summary.errors[0].job_title == "Job two"
    assert "timeout" in summary.errors[0].error_message
    assert len(store.history_for("1")) == 1
    assert len(store.history_for("3")) == 1
    assert store.history_for("2") == []
    assert progress == [(1, 3, "Job one"), (2, 3, "Job two"), (3, 3, "Job three")]


@pytest.mark.asyncio
async def test_bulk_sleeps_between_jobs_only(store, settings):
    for job_id in ("1", "2", "3"):
        store.add_job(job_id, f"Job {job_id}")
    provider = ScriptedProvider([llm_reply()] * 3)
    runner = MatchRunner(store, provider, settings, delay_seconds=0.5)

    with patch("matcher.runner.asyncio.sleep", new_callable=AsyncMock) as sleep:
        await runner.bulk_match_jobs(rematch_all=True)

    assert sleep.await_count == 2
    sleep.assert_awaited_with(0.5)


@pytest.mark.asyncio
async def test_bulk_with_no_jobs(store, settings):
    summary = await make_runner(store, ScriptedProvider(), settings).bulk_match_jobs()

    assert (summary.matched, summary.failed, summary.skipped, summary.errors) == (0, 0, 0, [])


@pytest.mark.asyncio
async def test_selected_skips_jobs_without_text(store, settings):
    """Test a job without text is skipped, not attempted and not an error"""
    store.add_job("1", "With text")
    store.add_job("2", "Empty", full_text="")
    store.add_job("3", "Also with text")
    provider = ScriptedProvider([llm_reply(), llm_reply()])

    summary = await make_runner(store, provider, settings).match_selected_jobs(["1", "2", "3"])

    assert (summary.matched, summary.failed, summary.skipped) == (2, 0, 1)
    assert summary.errors == []
    assert store.history_for("2") == []
    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_selected_deduplicates_and_counts_unknown_ids(store, settings):
    store.add_job("1", "With text")
    provider = ScriptedProvider([llm_reply()])

    summary = await make_runner(store, provider, settings).match_selected_jobs(["1", "1", "404"])

    assert (summary.matched, summary.skipped) == (1, 1)


@pytest.mark.asyncio
async def test_selected_empty_list(store, settings):
    summary = await make_runner(store, ScriptedProvider(), settings).match_selected_jobs([])

    assert (summary.matched, summary.failed, summary.skipped) == (0, 0, 0)


@pytest.mark.asyncio
async def test_unmatched_count_and_history(store, settings):
    store.add_job("1", "A")
    store.add_job("2", "B", match_score=80)
    store.add_job("3", "C", full_text="")
    provider = ScriptedProvider([llm_reply(score=30), llm_reply(score=60)])
    runner = make_runner(store, provider, settings)

    assert await runner.get_unmatched_job_count() == 1

    await runner.match_job("1")
    await runner.match_job("1")

    assert await runner.get_unmatched_job_count() == 0
    history = await runner.get_matching_history("1")
    assert [h.result.match_score for h in history] == [60, 30]
