"""Structured events emitted by the engine.

Callers pass an `on_event` callback into evaluate_rules() / execute_tasks() to route
skip conditions and progress wherever they like; `log_event` is the default sink.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ADAPTER_MISSING = "adapter_missing"
VERIFY_FAILED = "verify_failed"
TASK_DROPPED = "task_dropped"
TASK_SCHEDULED = "task_scheduled"
TASK_PUBLISHED = "task_published"

WARNING_KINDS = {ADAPTER_MISSING, VERIFY_FAILED, TASK_DROPPED}


@dataclass(frozen=True)
class EngineEvent:
    kind: str
    message: str
    rule_name: Optional[str] = None
    adapter_id: Optional[str] = None
    error: Optional[BaseException] = None


EventSink = Callable[[EngineEvent], None]


def log_event(event: EngineEvent) -> None:
    level = logging.WARNING if event.kind in WARNING_KINDS else logging.INFO
    logger.log(level, "[%s] %s", event.kind, event.message)
