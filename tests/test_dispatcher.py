"""
Tests for core/dispatcher.py and core/scheduler.py

These tests verify:
- Immediate vs deferred lanes and result ordering
- The verify() gate (memoization, partial failure isolation)
- Publish failures propagating out of execute_tasks()
- ThreadScheduler delay capping and cancellation
"""

import threading
import time
from unittest.mock import Mock

import pytest

from core import diagnostics
from core.content import Content
from core.dispatcher import VerificationCache, execute_tasks
from core.errors import AdapterNotImplementedError, PublishFailure, TaskCancelled
from core.rules_engine import evaluate_rules
from core.scheduler import ThreadScheduler
from core.tasks import PublishResult, Task
from socials.base import AdapterConfig, SocialAdapter
from socials.dummy import DummyAdapter
from tests.conftest import RecordingAdapter


def _task(adapter, text, delay_ms=0, rule_name=None):
    return Task(adapter=adapter, content=Content(text=text), delay_ms=delay_ms, rule_name=rule_name or text)


@pytest.fixture
def fast_scheduler():
    """Caps every deferred wait at 20ms."""
    with ThreadScheduler(max_delay_ms=20) as scheduler:
        yield scheduler


class TestImmediateLane:
    def test_publishes_in_order(self, recording_adapter):
        tasks = [_task(recording_adapter, t) for t in ("a", "b", "c")]

        results = execute_tasks(tasks, on_event=lambda e: None)

        assert recording_adapter.published == ["a", "b", "c"]
        assert [r.rule_name for r in results] == ["a", "b", "c"]
        assert results[0] == PublishResult(id="x-1", url="http://x-1", rule_name="a", adapter_id="x")

    def test_dummy_adapter_result(self, dummy_adapter):
        results = execute_tasks([_task(dummy_adapter, "Immediate post", rule_name="Immediate Rule")])
        assert len(results) == 1
        assert results[0].id.startswith("dummy-post-")
        assert results[0].rule_name == "Immediate Rule"
        assert results[0].adapter_id == "dummy"

    def test_empty_batch(self):
        assert execute_tasks([]) == []

    def test_lane_split_follows_task_immediate(self, recording_adapter, fast_scheduler):
        now, later = _task(recording_adapter, "now"), _task(recording_adapter, "later", delay_ms=1)
        assert now.immediate and not later.immediate

        results = execute_tasks([later, now], scheduler=fast_scheduler, on_event=lambda e: None)

        assert [r.rule_name for r in results] == ["now", "later"]


class TestDeferredLane:
    def test_deferred_results_follow_immediate(self, recording_adapter, fast_scheduler):
        tasks = [
            _task(recording_adapter, "Later", delay_ms=30 * 60 * 1000),
            _task(recording_adapter, "Now"),
        ]

        results = execute_tasks(tasks, scheduler=fast_scheduler, on_event=lambda e: None)

        assert [r.rule_name for r in results] == ["Now", "Later"]

    def test_submission_order_not_completion_order(self):
        adapter = RecordingAdapter()
        tasks = [
            _task(adapter, "slow", delay_ms=150),
            _task(adapter, "fast", delay_ms=10),
        ]

        results = execute_tasks(tasks, on_event=lambda e: None)

        assert adapter.published == ["fast", "slow"]  # completion order
        assert [r.rule_name for r in results] == ["slow", "fast"]  # submission order

    def test_deferred_tasks_run_in_parallel(self, recording_adapter):
        tasks = [_task(recording_adapter, name, delay_ms=200) for name in ("A", "B", "C")]

        start = time.monotonic()
        results = execute_tasks(tasks, on_event=lambda e: None)
        elapsed = time.monotonic() - start

        assert len(results) == 3
        assert elapsed < 0.5, f"deferred tasks looked serialized ({elapsed:.2f}s)"

    def test_max_delay_caps_long_waits(self, recording_adapter, fast_scheduler):
        tasks = [_task(recording_adapter, "week", delay_ms=7 * 24 * 3600 * 1000)]

        start = time.monotonic()
        results = execute_tasks(tasks, scheduler=fast_scheduler, on_event=lambda e: None)

        assert len(results) == 1
        assert time.monotonic() - start < 1.0

    def test_custom_scheduler_receives_delays(self, recording_adapter):
        submitted = []

        class InlineScheduler:
            def submit(self, fn, delay_ms):
                from concurrent.futures import Future

                submitted.append(delay_ms)
                future = Future()
                future.set_result(fn())
                return future

            def cancel(self, futures=None):
                pass

            def close(self):
                pass

        tasks = [_task(recording_adapter, "a", delay_ms=5), _task(recording_adapter, "b", delay_ms=9)]
        results = execute_tasks(tasks, scheduler=InlineScheduler(), on_event=lambda e: None)

        assert submitted == [5, 9]
        assert [r.rule_name for r in results] == ["a", "b"]


class TestVerifyGate:
    def test_verify_called_once_per_adapter(self):
        adapter = RecordingAdapter()
        tasks = [_task(adapter, str(i)) for i in range(5)]

        results = execute_tasks(tasks, verify=True, on_event=lambda e: None)

        assert adapter.verify_calls == 1
        assert len(results) == 5

    def test_verify_not_called_without_gate(self, recording_adapter):
        execute_tasks([_task(recording_adapter, "a")], on_event=lambda e: None)
        assert recording_adapter.verify_calls == 0

    def test_failing_adapter_isolated(self):
        good = RecordingAdapter("good")
        bad = RecordingAdapter("bad", verify_error=RuntimeError("bad token"))
        events = []
        tasks = [_task(bad, "b1"), _task(good, "g1"), _task(bad, "b2"), _task(good, "g2", delay_ms=5)]

        results = execute_tasks(tasks, verify=True, on_event=events.append)

        assert [r.adapter_id for r in results] == ["good", "good"]
        assert [r.rule_name for r in results] == ["g1", "g2"]
        assert bad.published == []
        assert bad.verify_calls == 1
        kinds = [e.kind for e in events]
        assert kinds.count(diagnostics.VERIFY_FAILED) == 1
        assert kinds.count(diagnostics.TASK_DROPPED) == 2

    def test_falsy_verify_counts_as_failure(self):
        adapter = RecordingAdapter(verify_ok=False)
        assert execute_tasks([_task(adapter, "a")], verify=True, on_event=lambda e: None) == []

    def test_verify_runs_before_any_publish(self):
        order = []
        first = RecordingAdapter("first")
        second = RecordingAdapter("second")
        for adapter in (first, second):
            adapter.verify = Mock(side_effect=lambda a=adapter: order.append(f"verify:{a.id}") or True)
        first.publish = Mock(side_effect=lambda c: order.append("publish") or Mock(id="1", url=None))

        execute_tasks([_task(first, "a"), _task(second, "b", delay_ms=1)], verify=True, on_event=lambda e: None)

        assert order[:2] == ["verify:first", "verify:second"]

    def test_end_to_end(self):
        adapter = Mock(spec=SocialAdapter)
        adapter.id = "x"
        adapter.verify.return_value = True
        adapter.publish.return_value = Mock(id="p1", url="http://p1")
        rules = [{"name": "public", "if": {"tags": ["public"]}, "publish": [{"adapter": "x", "delay": 0}]}]

        tasks = evaluate_rules({"text": "hi", "tags": ["public"]}, rules, {"x": adapter})
        results = execute_tasks(tasks, verify=True)

        assert results == [PublishResult(id="p1", url="http://p1", rule_name="public", adapter_id="x")]
        adapter.verify.assert_called_once()

    def test_not_implemented_verify_propagates(self):
        class Half(SocialAdapter):
            id = "half"

        with pytest.raises(AdapterNotImplementedError):
            execute_tasks([_task(Half(), "a")], verify=True)


class TestVerificationCache:
    def test_memoizes_by_adapter_object(self):
        a1, a2 = RecordingAdapter("same"), RecordingAdapter("same")
        cache = VerificationCache(on_event=lambda e: None)

        assert cache.check(a1) and cache.check(a1) and cache.check(a2)
        assert (a1.verify_calls, a2.verify_calls) == (1, 1)

    def test_failed_ids(self):
        cache = VerificationCache(on_event=lambda e: None)
        cache.check(RecordingAdapter("ok"))
        cache.check(DummyAdapter(AdapterConfig(id="nope"), reject_verify=True))
        assert cache.failed == ["nope"]


class TestPublishFailures:
    def test_immediate_failure_propagates_and_stops(self):
        adapter = RecordingAdapter(fail_on={"b"})
        tasks = [_task(adapter, t) for t in ("a", "b", "c")]

        with pytest.raises(PublishFailure, match="boom: b"):
            execute_tasks(tasks, on_event=lambda e: None)

        assert adapter.published == ["a"]

    def test_length_exceeded_is_a_publish_failure(self, dummy_adapter):
        with pytest.raises(PublishFailure):
            execute_tasks([_task(dummy_adapter, "x" * 281)])

    def test_deferred_failure_cancels_pending(self):
        adapter = RecordingAdapter(fail_on={"bad"})
        tasks = [
            _task(adapter, "bad", delay_ms=5),
            _task(adapter, "never", delay_ms=60_000),
        ]

        start = time.monotonic()
        with pytest.raises(PublishFailure):
            execute_tasks(tasks, on_event=lambda e: None)

        assert time.monotonic() - start < 5
        assert adapter.published == []

    def test_shared_scheduler_survives_failed_batch(self, fast_scheduler):
        adapter = RecordingAdapter(fail_on={"bad"})
        with pytest.raises(PublishFailure):
            execute_tasks([_task(adapter, "bad", delay_ms=5)], scheduler=fast_scheduler, on_event=lambda e: None)

        results = execute_tasks([_task(adapter, "good", delay_ms=5)], scheduler=fast_scheduler, on_event=lambda e: None)

        assert [r.rule_name for r in results] == ["good"]
        assert adapter.published == ["good"]


class TestThreadScheduler:
    def test_runs_after_delay(self):
        with ThreadScheduler() as scheduler:
            start = time.monotonic()
            future = scheduler.submit(lambda: "done", 50)
            assert future.result(timeout=2) == "done"
            assert time.monotonic() - start >= 0.04

    def test_cancel_wakes_waiters(self):
        ran = threading.Event()
        with ThreadScheduler() as scheduler:
            future = scheduler.submit(ran.set, 60_000)
            scheduler.cancel()
            with pytest.raises(TaskCancelled):
                future.result(timeout=2)
        assert not ran.is_set()

    def test_cancel_is_scoped_to_given_futures(self):
        ran = threading.Event()
        with ThreadScheduler() as scheduler:
            doomed = scheduler.submit(ran.set, 60_000)
            kept = scheduler.submit(lambda: "kept", 20)
            scheduler.cancel([doomed])

            with pytest.raises(TaskCancelled):
                doomed.result(timeout=2)
            assert kept.result(timeout=2) == "kept"
            assert scheduler.submit(lambda: "later", 0).result(timeout=2) == "later"
        assert not ran.is_set()

    def test_max_concurrency(self):
        active = []
        peak = []
        lock = threading.Lock()

        def job():
            with lock:
                active.append(1)
                peak.append(len(active))
            time.sleep(0.02)
            with lock:
                active.pop()

        with ThreadScheduler(max_concurrency=1) as scheduler:
            futures = [scheduler.submit(job, 0) for _ in range(4)]
            for f in futures:
                f.result(timeout=2)

        assert max(peak) == 1
