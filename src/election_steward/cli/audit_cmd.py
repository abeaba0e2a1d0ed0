"""Audit CLI commands for running, listing, and applying steward audits."""

import asyncio
import json
import uuid
from pathlib import Path

import typer

from election_steward.schemas.audit import AuditRunResponse
from election_steward.schemas.reconciliation import SourceCandidate

audit_app = typer.Typer()


def _print_run(run: AuditRunResponse, *, verbose: bool = False) -> None:
    typer.echo(f"Audit run {run.id}: {run.status}")
    typer.echo(f"  Trigger:       {run.trigger}{' (dry run)' if run.dry_run else ''}")
    scanned = run.records_scanned
    typer.echo(f"  Scanned:       {scanned.get('elections', 0)} elections, {scanned.get('candidates', 0)} candidates")
    malformed = run.skipped.get("malformed", {}) if run.skipped else {}
    if any(malformed.values()):
        typer.echo(
            f"  Malformed:     {malformed.get('election', 0)} elections, {malformed.get('candidate', 0)} candidates"
        )
    for policy_id in run.policies:
        typer.echo(f"  {policy_id:<28} {run.finding_counts.get(policy_id, 0)} finding(s)")
    typer.echo(f"  Remediations:  {len(run.remediations)}")
    if run.staged_remediations is not None:
        typer.echo(f"  Staged:        {len(run.staged_remediations)}")
    if run.source_run_id:
        typer.echo(f"  Applied from:  {run.source_run_id}")
    if run.error:
        typer.echo(f"  Error:         {run.error}")
    if verbose:
        typer.echo(json.dumps(run.model_dump(mode="json"), indent=2))


@audit_app.command("run")
def audit_run(
    policy: list[str] | None = typer.Option(None, "--policy", "-p", help="Policy id to evaluate (repeatable)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Evaluate only; never write remediations"),
    stage: bool = typer.Option(False, "--stage", help="Record planned remediations for a later 'audit apply'"),
    sources: Path | None = typer.Option(
        None, "--sources", exists=True, dir_okay=False, help="JSON file of source candidates for coverage linkage"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print the full run as JSON"),
) -> None:
    """Run an audit over every election and candidate."""
    source_candidates = None
    if sources is not None:
        from election_steward.cli.reconcile_cmd import load_source_candidates

        source_candidates = load_source_candidates(sources)
    from election_steward.lib.steward import StewardError

    try:
        run = asyncio.run(_audit_run(policy or None, dry_run, stage, source_candidates))
    except StewardError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    _print_run(run, verbose=verbose)
    if run.status != "completed":
        raise typer.Exit(code=1)


async def _audit_run(
    policies: list[str] | None,
    dry_run: bool,
    stage: bool,
    source_candidates: list[SourceCandidate] | None,
) -> AuditRunResponse:
    """Async implementation of audit run."""
    from election_steward.core.config import get_settings
    from election_steward.core.database import dispose_engine, get_session_factory, init_engine
    from election_steward.services.steward_service import build_orchestrator

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        orchestrator = build_orchestrator(settings, get_session_factory())
        await orchestrator.seed_policies()
        return await orchestrator.run_audit(
            policies,
            dry_run=dry_run,
            stage_remediations=stage,
            source_candidates=source_candidates,
            trigger="cli",
        )
    finally:
        await dispose_engine()


@audit_app.command("list")
def audit_list(
    status: str | None = typer.Option(None, "--status", help="Filter by status (completed, failed, ...)"),
    limit: int = typer.Option(20, "--limit", help="Maximum runs to show"),
) -> None:
    """List recent audit runs, newest first."""
    asyncio.run(_audit_list(status, limit))


async def _audit_list(status: str | None, limit: int) -> None:
    """Async implementation of audit list."""
    from election_steward.core.config import get_settings
    from election_steward.core.database import dispose_engine, get_session_factory, init_engine
    from election_steward.services.record_store import SqlRecordStore

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        runs, total = await SqlRecordStore(get_session_factory()).list_runs(limit=limit, status=status)
        typer.echo(f"{total} audit run(s)")
        for run in runs:
            findings = sum((run.finding_counts or {}).values())
            typer.echo(
                f"  {run.id}  {run.status:<9}  {run.trigger:<8}  {run.created_at:%Y-%m-%d %H:%M}  "
                f"{findings} finding(s), {len(run.remediations or [])} remediation(s)"
            )
    finally:
        await dispose_engine()


@audit_app.command("show")
def audit_show(
    run_id: uuid.UUID = typer.Argument(..., help="Audit run id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print the full run as JSON"),
) -> None:
    """Show one audit run."""
    run = asyncio.run(_audit_show(run_id))
    if run is None:
        typer.echo(f"Audit run not found: {run_id}", err=True)
        raise typer.Exit(code=1)
    _print_run(run, verbose=verbose)


async def _audit_show(run_id: uuid.UUID) -> AuditRunResponse | None:
    """Async implementation of audit show."""
    from election_steward.core.config import get_settings
    from election_steward.core.database import dispose_engine, get_session_factory, init_engine
    from election_steward.services.record_store import SqlRecordStore

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        run = await SqlRecordStore(get_session_factory()).get_run(run_id)
        return AuditRunResponse.model_validate(run) if run is not None else None
    finally:
        await dispose_engine()


@audit_app.command("apply")
def audit_apply(
    run_id: uuid.UUID = typer.Argument(..., help="Staged audit run id"),
) -> None:
    """Apply a staged run's remediations as a new run."""
    from election_steward.lib.steward import StewardError

    try:
        run = asyncio.run(_audit_apply(run_id))
    except StewardError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    _print_run(run)
    if run.status != "completed":
        raise typer.Exit(code=1)


async def _audit_apply(run_id: uuid.UUID) -> AuditRunResponse:
    """Async implementation of audit apply."""
    from election_steward.core.config import get_settings
    from election_steward.core.database import dispose_engine, get_session_factory, init_engine
    from election_steward.services.steward_service import build_orchestrator

    settings = get_settings()
    init_engine(settings.database_url, schema=settings.database_schema)

    try:
        orchestrator = build_orchestrator(settings, get_session_factory())
        return await orchestrator.apply_staged_remediations(run_id, trigger="cli")
    finally:
        await dispose_engine()
