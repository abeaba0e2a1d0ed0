"""Typer CLI root application with serve command."""

import typer

from election_steward.core.config import get_settings
from election_steward.core.logging import setup_logging

app = typer.Typer(name="election-steward", help="Election data integrity and reconciliation CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run(
        "election_steward.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from election_steward.cli.audit_cmd import audit_app
    from election_steward.cli.coverage_cmd import coverage_app
    from election_steward.cli.db_cmd import db_app
    from election_steward.cli.policy_cmd import policy_app
    from election_steward.cli.reconcile_cmd import reconcile_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(audit_app, name="audit", help="Audit run commands")
    app.add_typer(policy_app, name="policy", help="Steward policy commands")
    app.add_typer(coverage_app, name="coverage", help="Candidate coverage commands")
    app.add_typer(reconcile_app, name="reconcile", help="Candidate reconciliation commands")


_register_subcommands()
