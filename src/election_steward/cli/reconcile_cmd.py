"""CLI commands for reconciling source candidates against canonical elections.

Input is a JSON file holding either a list of source candidate objects or
an object with a ``candidates`` list.
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from election_steward.schemas.reconciliation import ReconcileRequest, ReconcileResponse, SourceCandidate

reconcile_app = typer.Typer()


def load_source_candidates(path: Path) -> list[SourceCandidate]:
    """Read and validate a source candidate batch from a JSON file.

    Raises:
        typer.BadParameter: If the file is not valid JSON or a candidate is invalid.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"{path} is not valid JSON: {e}") from e
    if isinstance(payload, list):
        payload = {"candidates": payload}
    try:
        return ReconcileRequest.model_validate(payload).candidates
    except ValueError as e:
        raise typer.BadParameter(f"{path}: {e}") from e


def _print_matches(response: ReconcileResponse) -> None:
    typer.echo(f"{response.matched} of {response.total} matched, {response.unresolved} unresolved")
    for m in response.matches:
        target = str(m.election_id) if m.election_id else f"unresolved ({m.reason})"
        typer.echo(f"  {m.name:<30} {m.method:<12} {m.confidence:.2f}  {target}")


@reconcile_app.command("match")
def match(
    file: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="JSON file of source candidates")],
) -> None:
    """Preview matches for a batch of source candidates."""
    sources = load_source_candidates(file)
    asyncio.run(_match_impl(sources, link=False))


@reconcile_app.command("link")
def link(
    file: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="JSON file of source candidates")],
) -> None:
    """Reconcile a batch and persist a candidate for each new link."""
    sources = load_source_candidates(file)
    asyncio.run(_match_impl(sources, link=True))


async def _match_impl(sources: list[SourceCandidate], *, link: bool) -> None:
    """Async implementation of the match and link commands."""
    from election_steward.core.config import get_settings
    from election_steward.core.database import dispose_engine, get_session_factory, init_engine
    from election_steward.services import reconciliation_service
    from election_steward.services.steward_service import build_orchestrator

    settings = get_settings()
    init_engine(settings.database_url, echo=False, schema=settings.database_schema)

    try:
        orchestrator = build_orchestrator(settings, get_session_factory())
        logger.info("Reconciling {} source candidate(s)", len(sources))
        if link:
            response = await reconciliation_service.link_candidates(
                orchestrator.store,
                sources,
                orchestrator.config.reconciler,
                orchestrator.lock,
                batch_size=orchestrator.config.batch_size,
            )
            _print_matches(response)
            typer.echo(f"Linked {response.linked} new candidate(s); {response.already_linked} already linked")
            if response.run_id is not None:
                typer.echo(f"Recorded in audit run {response.run_id}")
        else:
            _, response = await reconciliation_service.match_candidates(
                orchestrator.store,
                sources,
                orchestrator.config.reconciler,
                batch_size=orchestrator.config.batch_size,
            )
            _print_matches(response)
    finally:
        await dispose_engine()
