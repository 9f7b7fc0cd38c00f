"""Task execution: verification gate, immediate lane, deferred lane."""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, Future, wait
from typing import Dict, Iterable, List, Optional, Tuple

from core import diagnostics
from core.diagnostics import EngineEvent, EventSink, log_event
from core.errors import AdapterNotImplementedError
from core.scheduler import Scheduler, ThreadScheduler
from core.tasks import PublishResult, Task

logger = logging.getLogger(__name__)


class VerificationCache:
    """
    Per-batch memo of adapter.verify() outcomes, keyed by adapter object.

    A raised exception or a falsy return marks the adapter failed for the rest
    of the batch; the failure is reported through `on_event`, never raised.
    """

    def __init__(self, on_event: Optional[EventSink] = None) -> None:
        self.on_event = on_event or log_event
        self._results: Dict[int, Tuple[object, bool]] = {}

    def check(self, adapter) -> bool:
        key = id(adapter)
        if key not in self._results:
            self._results[key] = (adapter, self._verify(adapter))
        return self._results[key][1]

    def _verify(self, adapter) -> bool:
        try:
            ok = bool(adapter.verify())
            reason = "verify() returned a falsy value"
        except AdapterNotImplementedError:
            raise
        except Exception as e:
            ok = False
            reason = str(e) or type(e).__name__
            error: Optional[BaseException] = e
        else:
            error = None

        if not ok:
            self.on_event(
                EngineEvent(
                    kind=diagnostics.VERIFY_FAILED,
                    message=f"Adapter '{adapter.id}' failed verify(): {reason}. Skipping.",
                    adapter_id=adapter.id,
                    error=error,
                )
            )
        return ok

    @property
    def failed(self) -> List[str]:
        return [adapter.id for adapter, ok in self._results.values() if not ok]


def _publish(task: Task) -> PublishResult:
    ref = task.adapter.publish(task.content)
    return PublishResult(id=ref.id, url=ref.url, rule_name=task.rule_name, adapter_id=task.adapter_id)


def _gate(tasks: List[Task], cache: VerificationCache, on_event: EventSink) -> List[Task]:
    # verify() runs for every distinct adapter, in first-reference order, before any publish
    for task in tasks:
        cache.check(task.adapter)

    survivors: List[Task] = []
    for task in tasks:
        if cache.check(task.adapter):
            survivors.append(task)
            continue
        on_event(
            EngineEvent(
                kind=diagnostics.TASK_DROPPED,
                message=f"Dropping task from rule '{task.rule_name}': adapter '{task.adapter_id}' is unverified.",
                rule_name=task.rule_name,
                adapter_id=task.adapter_id,
            )
        )
    return survivors


def _run_deferred(tasks: List[Task], scheduler: Scheduler, on_event: EventSink) -> List[PublishResult]:
    futures: List[Future] = []
    for task in tasks:
        on_event(
            EngineEvent(
                kind=diagnostics.TASK_SCHEDULED,
                message=f"Scheduled '{task.rule_name}' → {task.adapter_id} in {task.delay_ms}ms",
                rule_name=task.rule_name,
                adapter_id=task.adapter_id,
            )
        )
        futures.append(scheduler.submit(lambda task=task: _publish(task), task.delay_ms))

    wait(futures, return_when=FIRST_EXCEPTION)
    failed = [f for f in futures if f.done() and f.exception() is not None]
    if failed:
        # Publish failures are not retried or skipped: stop whatever has not fired yet.
        scheduler.cancel(futures)
        wait(futures)
        raise failed[0].exception()

    # submission order, not completion order
    return [f.result() for f in futures]


def execute_tasks(
    tasks: Iterable[Task],
    *,
    verify: bool = False,
    scheduler: Optional[Scheduler] = None,
    on_event: Optional[EventSink] = None,
) -> List[PublishResult]:
    """Publish every task and return results (immediate lane first, then deferred).

    Args:
        tasks: Output of evaluate_rules().
        verify: Run each distinct adapter's verify() once before publishing and
            drop the tasks of adapters that fail.
        scheduler: Deferred-lane scheduler. A ThreadScheduler is created (and
            closed) for this call when omitted.
        on_event: Observability callback; defaults to logging.

    Raises:
        PublishFailure: (or any adapter error) from the first failing publish.
    """
    on_event = on_event or log_event
    tasks = list(tasks)

    if verify:
        tasks = _gate(tasks, VerificationCache(on_event), on_event)

    immediate = [t for t in tasks if t.immediate]
    deferred = [t for t in tasks if not t.immediate]
    logger.debug("Executing %d immediate and %d deferred task(s).", len(immediate), len(deferred))

    results: List[PublishResult] = []
    for task in immediate:
        result = _publish(task)
        results.append(result)
        _report(result, on_event)

    if not deferred:
        return results

    owned = scheduler is None
    scheduler = scheduler or ThreadScheduler()
    try:
        deferred_results = _run_deferred(deferred, scheduler, on_event)
    finally:
        if owned:
            scheduler.close()

    for result in deferred_results:
        _report(result, on_event)
    results.extend(deferred_results)
    return results


def _report(result: PublishResult, on_event: EventSink) -> None:
    on_event(
        EngineEvent(
            kind=diagnostics.TASK_PUBLISHED,
            message=f"Published '{result.rule_name}' → {result.adapter_id}: {result.url or result.id}",
            rule_name=result.rule_name,
            adapter_id=result.adapter_id,
        )
    )
