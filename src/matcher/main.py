"""
Matcher Service - Main entry point.
Scores jobs against the user profile using the configured LLM provider.

Usage:
    job-match match <JOB_ID>
    job-match bulk --all
    job-match provider set --provider openrouter --model <MODEL>
"""

import asyncio
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import click
from loguru import logger

from providers import AIProviderService, KeyStore, Provider, ProviderConfigResolver
from shared.config import get_settings
from shared.database import Database
from shared.errors import ErrorKind, JobMatchError

from .runner import MatchRunner

PROVIDER_CHOICE = click.Choice([p.value for p in Provider])


def setup_logging():
    """Configure loguru logging."""
    settings = get_settings()
    logger.remove()

    if settings.log_format == "json":
        logger.add(
            sys.stderr,
            format="{message}",
            level=settings.log_level,
            serialize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                "<level>{message}</level>"
            ),
            level=settings.log_level,
        )


@asynccontextmanager
async def open_services() -> AsyncIterator[tuple[MatchRunner, AIProviderService]]:
    """Connect the database and wire runner and provider service."""
    settings = get_settings()
    db = Database(settings)
    await db.connect()
    try:
        resolver = ProviderConfigResolver(db, KeyStore(settings=settings), settings)
        service = AIProviderService(resolver, settings=settings)
        yield MatchRunner(db, service, settings), service
    finally:
        await db.disconnect()


def run(coro):
    """Run a coroutine, turning typed failures into a CLI error."""
    try:
        return asyncio.run(coro)
    except JobMatchError as e:
        message = f"{e.kind.value}: {e}"
        if e.kind == ErrorKind.MISSING_CREDENTIAL:
            message += "\nSet a key with: job-match provider set-key <provider> <key>"
        raise click.ClickException(message) from e


def echo_progress(current: int, total: int, job_title: str) -> None:
    click.echo(f"[{current}/{total}] {job_title}")


@click.group()
def cli():
    """Job Matcher - Evaluates profile/job fit using an LLM."""
    setup_logging()


@cli.command()
@click.argument("job_id")
def match(job_id: str):
    """Match a single job."""

    async def _run():
        async with open_services() as (runner, _):
            return await runner.match_job(job_id)

    result = run(_run())
    click.echo(f"Score: {result.match_score}% ({result.match_category.value})")
    for strength in result.strengths:
        click.echo(f"  + {strength}")
    for gap in result.gaps.missing_skills:
        click.echo(f"  - {gap.skill}: {gap.current_level}/{gap.required_level}")
    click.echo(result.reasoning)


@cli.command()
@click.option(
    "--all",
    "-a",
    "rematch_all",
    is_flag=True,
    help="Rematch all jobs, including those already scored",
)
def bulk(rematch_all: bool):
    """Match all unscored jobs (or every job with --all)."""

    async def _run():
        async with open_services() as (runner, _):
            return await runner.bulk_match_jobs(rematch_all, on_progress=echo_progress)

    summary = run(_run())
    click.echo(str(summary))
    for error in summary.errors:
        click.echo(f"  {error}")


@cli.command()
@click.argument("job_ids", nargs=-1, required=True)
def selected(job_ids: tuple[str, ...]):
    """Match the given jobs."""

    async def _run():
        async with open_services() as (runner, _):
            return await runner.match_selected_jobs(list(job_ids), on_progress=echo_progress)

    summary = run(_run())
    click.echo(str(summary))
    for error in summary.errors:
        click.echo(f"  {error}")


@cli.command()
def unmatched():
    """Print the number of jobs without a match score."""

    async def _run():
        async with open_services() as (runner, _):
            return await runner.get_unmatched_job_count()

    click.echo(f"Unmatched jobs: {run(_run())}")


@cli.command()
@click.argument("job_id")
def history(job_id: str):
    """Show past matching results for a job."""

    async def _run():
        async with open_services() as (runner, _):
            return await runner.get_matching_history(job_id)

    entries = run(_run())
    if not entries:
        click.echo("No matching history")
    for entry in entries:
        click.echo(
            f"{entry.created_at:%Y-%m-%d %H:%M}  {entry.result.match_score:>3}%  "
            f"{entry.result.match_category.value:<10}  {entry.api_model or '-'}"
        )


# -----------------------------------------------------------------------------
# Provider configuration
# -----------------------------------------------------------------------------


@cli.group()
def provider():
    """Provider selection, API keys and models."""


@provider.command("show")
def provider_show():
    """Show the active provider and model."""

    async def _run():
        async with open_services() as (_, service):
            return await service.get_provider_config()

    config = run(_run())
    click.echo(f"Provider: {config.provider.value}")
    click.echo(f"Model: {config.model}")
    click.echo(f"Anthropic key: {'set' if config.has_anthropic_key else 'missing'}")
    click.echo(f"OpenRouter key: {'set' if config.has_openrouter_key else 'missing'}")


@provider.command("set")
@click.option("--provider", "-p", "provider_name", type=PROVIDER_CHOICE, default=None)
@click.option("--model", "-m", type=str, default=None)
def provider_set(provider_name: Optional[str], model: Optional[str]):
    """Change the active provider and/or model."""
    if not provider_name and not model:
        raise click.UsageError("Give --provider and/or --model")

    async def _run():
        async with open_services() as (_, service):
            await service.resolver.save_provider_config(
                provider=Provider(provider_name) if provider_name else None, model=model
            )

    run(_run())
    click.echo("Provider configuration saved")


@provider.command("set-key")
@click.argument("provider_name", type=PROVIDER_CHOICE)
@click.argument("api_key")
def provider_set_key(provider_name: str, api_key: str):
    """Store the API key for a provider."""
    KeyStore().save_api_key(Provider(provider_name), api_key)
    click.echo(f"{provider_name} API key saved")


@provider.command("test")
@click.argument("provider_name", type=PROVIDER_CHOICE)
@click.option("--model", "-m", type=str, default=None)
def provider_test(provider_name: str, model: Optional[str]):
    """Check that the stored key for a provider works."""

    async def _run():
        async with open_services() as (_, service):
            api_key = service.resolver.get_api_key(Provider(provider_name))
            if not api_key:
                raise JobMatchError(
                    ErrorKind.MISSING_CREDENTIAL, f"No {provider_name} API key configured."
                )
            return await service.test_connection(Provider(provider_name), api_key, model)

    result = run(_run())
    if not result.success:
        raise click.ClickException(f"Connection failed: {result.error}")
    click.echo("Connection OK")


@provider.command("models")
@click.option("--refresh", is_flag=True, help="Bypass the model cache")
@click.option("--free", "free_only", is_flag=True, help="Only list free models")
def provider_models(refresh: bool, free_only: bool):
    """List models available on OpenRouter."""

    async def _run():
        async with open_services() as (_, service):
            return await service.get_available_models(force_refresh=refresh)

    for model in run(_run()):
        if free_only and not model.is_free:
            continue
        marker = "free" if model.is_free else (model.prompt_price or "?")
        click.echo(f"{model.id:<60} {model.context_length:>8}  {marker}")


if __name__ == "__main__":
    cli()
