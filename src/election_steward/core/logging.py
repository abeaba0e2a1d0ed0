"""Loguru structured logging configuration.

Provides JSON-formatted structured logging with configurable log level.
Optionally writes to a rotating log file when a ``log_dir`` is provided.

Log lines emitted while an audit run is executing carry the run id and
its policies (see :func:`audit_context`), so interleaved runs can be told
apart in one log stream.
"""

import sys
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from loguru import logger

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {extra[audit]}{message}"


def _audit_prefix(record: dict[str, Any]) -> None:
    extra = record["extra"]
    run_id = extra.get("run_id")
    extra["audit"] = f"run={run_id} policy={extra.get('policy', '-')} | " if run_id else ""


@contextmanager
def audit_context(run_id: uuid.UUID, policies: Iterable[str]) -> Iterator[None]:
    """Tag every log record emitted inside the block with an audit run.

    The context follows the current asyncio task, so concurrent runs keep
    their own tags.
    """
    with logger.contextualize(run_id=str(run_id), policy=",".join(policies) or "-"):
        yield


def setup_logging(log_level: str = "INFO", log_dir: str | None = None) -> None:
    """Configure Loguru for structured JSON logging.

    Args:
        log_level: Minimum log level to emit.
        log_dir: Optional directory for log files.  When set, a rotating
            file sink is added (rotated every 24 hours, retained 7 days).
    """
    logger.remove()
    logger.configure(patcher=_audit_prefix)
    logger.add(
        sys.stderr,
        level=log_level.upper(),
        format=_LOG_FORMAT,
        serialize=False,
    )
    logger.add(
        sys.stderr,
        level=log_level.upper(),
        serialize=True,
        filter=lambda record: record["extra"].get("json_output", False),
    )

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / "election-steward.log",
            level=log_level.upper(),
            format=_LOG_FORMAT,
            rotation="24h",
            retention="7 days",
        )
