"""Steward service — orchestrator construction and the scheduled audit loop."""

import asyncio

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from election_steward.core.config import Settings
from election_steward.lib.steward import AuditOrchestrator, StewardConfig
from election_steward.services.record_store import SqlRecordStore

# Single write lock for remediation and linkage commits in this process
_write_lock = asyncio.Lock()


def get_write_lock() -> asyncio.Lock:
    """Return the process-wide write lock."""
    return _write_lock


def build_orchestrator(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> AuditOrchestrator:
    """Create an orchestrator over the SQL record store.

    Args:
        settings: Application settings; read once into a StewardConfig.
        session_factory: Async session factory.

    Returns:
        An AuditOrchestrator sharing the process-wide write lock.
    """
    return AuditOrchestrator(
        SqlRecordStore(session_factory),
        StewardConfig.from_settings(settings),
        lock=get_write_lock(),
    )


async def seed_policies(settings: Settings, session_factory: async_sessionmaker[AsyncSession]) -> int:
    """Ensure every catalog policy exists in the store."""
    orchestrator = build_orchestrator(settings, session_factory)
    return await orchestrator.seed_policies()


async def audit_schedule_loop(interval: int, settings: Settings) -> None:
    """Background asyncio loop that runs a full audit on a timer.

    Each tick reads the current policy state from the store, so toggles take
    effect on the next tick. Errors are logged and the loop continues.

    Args:
        interval: Seconds between audit runs.
        settings: Application settings.
    """
    from election_steward.core.database import get_session_factory

    logger.info("Scheduled audit loop started (interval={}s)", interval)

    while True:
        try:
            await asyncio.sleep(interval)
            orchestrator = build_orchestrator(settings, get_session_factory())
            run = await orchestrator.run_audit(trigger="schedule")
            total = sum(run.finding_counts.values())
            logger.info(
                "Scheduled audit {} {}: {} finding(s), {} remediation(s)",
                run.id,
                run.status,
                total,
                len(run.remediations),
            )
        except asyncio.CancelledError:
            logger.info("Scheduled audit loop cancelled")
            break
        except Exception:
            logger.exception("Scheduled audit loop error")
