"""CLI commands for candidate coverage checks."""

import asyncio
from typing import Annotated

import typer

coverage_app = typer.Typer()


@coverage_app.command("missing")
def missing(
    window: Annotated[int | None, typer.Option("--window", min=0, help="Days ahead to check")] = None,
    lookback: Annotated[int | None, typer.Option("--lookback", min=0, help="Days back to check")] = None,
) -> None:
    """List active elections in the window with no linked candidate."""
    found = asyncio.run(_missing_impl(window, lookback))
    if found:
        raise typer.Exit(code=1)


async def _missing_impl(window: int | None, lookback: int | None) -> int:
    """Async implementation of the missing command."""
    from election_steward.core.config import get_settings
    from election_steward.core.database import dispose_engine, get_session_factory, init_engine
    from election_steward.services.election_service import find_missing_candidates
    from election_steward.services.record_store import SqlRecordStore

    settings = get_settings()
    init_engine(settings.database_url, echo=False, schema=settings.database_schema)

    try:
        result = await find_missing_candidates(
            SqlRecordStore(get_session_factory()),
            window_days=settings.coverage_window_days if window is None else window,
            lookback_days=settings.coverage_lookback_days if lookback is None else lookback,
            batch_size=settings.audit_batch_size,
        )
    finally:
        await dispose_engine()

    typer.echo(
        f"{len(result.missing)} of {result.checked} election(s) missing candidates "
        f"(window {result.lookback_days}d back, {result.window_days}d ahead)"
    )
    for gap in result.missing:
        typer.echo(f"  {gap.election_date}  {gap.jurisdiction or '--':<3} {gap.title}  ({gap.election_id})")
    if result.skipped_malformed:
        typer.echo(f"{result.skipped_malformed} malformed election(s) in the window could not be checked:")
        for election_id in result.skipped_election_ids:
            typer.echo(f"  {election_id}")
    return len(result.missing) + result.skipped_malformed
