"""CLI commands for steward policies."""

import asyncio
from typing import Annotated

import typer

policy_app = typer.Typer()


def _flag(value: bool) -> str:
    return "on" if value else "off"


@policy_app.command("list")
def list_policies(
    include_archived: Annotated[bool, typer.Option("--archived/--no-archived", help="Include archived policies")] = True,
) -> None:
    """List steward policies and their toggle state."""
    asyncio.run(_list_impl(include_archived))


async def _list_impl(include_archived: bool) -> None:
    """Async implementation of the list command."""
    from election_steward.core.config import get_settings
    from election_steward.core.database import dispose_engine, get_session_factory, init_engine
    from election_steward.services.steward_service import build_orchestrator

    settings = get_settings()
    init_engine(settings.database_url, echo=False, schema=settings.database_schema)

    try:
        orchestrator = build_orchestrator(settings, get_session_factory())
        await orchestrator.seed_policies()
        policies = await orchestrator.store.list_policies(include_archived=include_archived)
        typer.echo(f"{'POLICY':<26} {'CATEGORY':<12} {'SEV':>3}  ENABLED  AUTO-FIX")
        for policy in policies:
            auto_fix = _flag(policy.auto_fix_enabled) if policy.auto_fixable else "-"
            suffix = "  (archived)" if policy.archived else ""
            typer.echo(
                f"{policy.id:<26} {policy.category:<12} {policy.severity:>3}  "
                f"{_flag(policy.enabled):<7}  {auto_fix}{suffix}"
            )
    finally:
        await dispose_engine()


@policy_app.command("toggle")
def toggle(
    policy_id: Annotated[str, typer.Argument(help="Policy id")],
    enabled: Annotated[bool, typer.Option("--enable/--disable", help="Enable or disable the policy")] = True,
    actor: Annotated[str | None, typer.Option("--actor", help="Who made the change")] = None,
) -> None:
    """Enable or disable a policy."""
    _run_flag_change(policy_id, "enabled", enabled, actor)


@policy_app.command("auto-fix")
def auto_fix(
    policy_id: Annotated[str, typer.Argument(help="Policy id")],
    enabled: Annotated[bool, typer.Option("--enable/--disable", help="Enable or disable auto-fix")] = True,
    actor: Annotated[str | None, typer.Option("--actor", help="Who made the change")] = None,
) -> None:
    """Enable or disable auto-fix for an auto-fixable policy."""
    _run_flag_change(policy_id, "auto_fix_enabled", enabled, actor)


@policy_app.command("archive")
def archive(
    policy_id: Annotated[str, typer.Argument(help="Policy id")],
    actor: Annotated[str | None, typer.Option("--actor", help="Who made the change")] = None,
) -> None:
    """Archive a policy. This cannot be undone."""
    _run_flag_change(policy_id, "archived", True, actor)


def _run_flag_change(policy_id: str, field: str, value: bool, actor: str | None) -> None:
    from election_steward.lib.steward import StewardError

    try:
        asyncio.run(_flag_impl(policy_id, field, value, actor))
    except (StewardError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


async def _flag_impl(policy_id: str, field: str, value: bool, actor: str | None) -> None:
    """Async implementation of the policy flag commands."""
    from election_steward.core.config import get_settings
    from election_steward.core.database import dispose_engine, get_session_factory, init_engine
    from election_steward.services.steward_service import build_orchestrator

    settings = get_settings()
    init_engine(settings.database_url, echo=False, schema=settings.database_schema)

    try:
        orchestrator = build_orchestrator(settings, get_session_factory())
        await orchestrator.seed_policies()
        if field == "enabled":
            policy = await orchestrator.toggle_policy(policy_id, value, actor)
        elif field == "auto_fix_enabled":
            policy = await orchestrator.toggle_auto_fix(policy_id, value, actor)
        else:
            policy = await orchestrator.archive_policy(policy_id, actor)
        typer.echo(
            f"{policy.id}: enabled={_flag(policy.enabled)} "
            f"auto_fix={_flag(policy.auto_fix_enabled)} archived={_flag(policy.archived)}"
        )
    finally:
        await dispose_engine()
