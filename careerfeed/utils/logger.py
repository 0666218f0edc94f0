"""
Structured Logger Module

structlog setup for the whole package: JSON lines to a log file and stdout,
with credential-like keys masked before rendering.

Every module binds its own logger with a fixed correlation_id, phase and
component. A user-facing operation (signup, login, profile save) additionally
wraps its work in ``user_action`` so that the detail write and the summary
write it triggers share one ``action_id``.

Example Usage:
    from careerfeed.utils.logger import get_logger, user_action

    logger = get_logger(
        correlation_id="sync-engine",
        phase="sync",
        component="sync_engine",
    )

    with user_action("signup", email_address="ada@x.test"):
        logger.info("detail_record_saved", record_key="ada_lovelace")
        logger.error("summary_write_failed", password="secret1")  # password masked

Log Levels:
    - DEBUG: Key derivation, baseline loads, unmatched replacements
    - INFO: Records written, users registered, sessions opened/closed
    - WARNING: Baseline fallback, skipped rows, journal replays
    - ERROR: Storage failures converted to False/None results
"""

import logging
import re
import sys
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import structlog
from structlog.types import BindableLogger, EventDict, WrappedLogger

MASK = "***MASKED***"

# A sensitive word counts only as a whole "_" or "-" separated key segment
SENSITIVE_KEY = re.compile(
    r"(?:^|[_-])(?:password|api_key|token|secret|credential|auth)(?:$|[_-])",
    re.IGNORECASE,
)


def mask_credentials(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Processor replacing the value of every credential-like key with a mask.

    ``password``, ``confirm_password`` and ``token_value`` are masked;
    ``author`` and ``passwords_checked`` are not.
    """
    for key in event_dict:
        if SENSITIVE_KEY.search(key):
            event_dict[key] = MASK
    return event_dict


def configure_logging(
    log_file: Optional[str] = "logs/careerfeed.log", log_level: str = "INFO"
) -> None:
    """
    Configure stdlib logging and structlog.

    Safe to call again: a later call replaces the handlers and level set by an
    earlier one, which is how CareerFeedApp.from_config applies log_level.

    Args:
        log_file: Log file path, or None to log to stdout only
        log_level: Logging level name

    Log Format (JSON):
        {
            "event": "dual_write_complete",
            "correlation_id": "sync-engine",
            "phase": "sync",
            "component": "sync_engine",
            "action_id": "3f2a9c1e",
            "action": "signup",
            "email_address": "ada@x.test",
            "level": "info",
            "timestamp": "2026-10-06T10:30:45Z"
        }
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
        handlers=handlers,
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            mask_credentials,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(
    correlation_id: Optional[str] = None,
    phase: Optional[str] = None,
    component: Optional[str] = None,
) -> BindableLogger:
    """
    Get a structlog logger with module context bound.

    Args:
        correlation_id: Stable id for the emitting module (random UUID if None)
        phase: Layer the caller belongs to ("storage", "sync", "auth", "profile")
        component: Component name (e.g., "master_store", "detail_store")
    """
    context = {"correlation_id": correlation_id or str(uuid.uuid4())}
    if phase:
        context["phase"] = phase
    if component:
        context["component"] = component
    return structlog.get_logger().bind(**context)


@contextmanager
def user_action(action: str, **context: Any) -> Iterator[str]:
    """
    Tag every log event emitted inside the block with one action id.

    Args:
        action: Operation name, e.g. "signup" or "profile_save"
        **context: Extra fields to attach, e.g. email_address

    Yields:
        The generated action id
    """
    action_id = uuid.uuid4().hex[:8]
    with structlog.contextvars.bound_contextvars(
        action_id=action_id, action=action, **context
    ):
        yield action_id


# Default configuration so module-level loggers work before any app is built
configure_logging()
