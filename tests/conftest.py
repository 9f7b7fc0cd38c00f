"""Shared pytest fixtures and configuration

This file contains fixtures that can be used across all test files.
Pytest automatically discovers this file and makes fixtures available.
"""

import tempfile
import threading
from datetime import datetime
from pathlib import Path

import pytest

from core.content import Content
from core.errors import PublishFailure
from socials.base import AdapterConfig, SocialAdapter
from socials.dummy import DummyAdapter
from socials.types import PostRef

# ==================== Fake Adapters ====================


class RecordingAdapter(SocialAdapter):
    """Minimal adapter that records calls and returns predictable ids."""

    def __init__(self, adapter_id="x", verify_ok=True, verify_error=None, fail_on=None):
        super().__init__(AdapterConfig(id=adapter_id))
        self.verify_ok = verify_ok
        self.verify_error = verify_error
        self.fail_on = fail_on or set()  # texts that make publish() raise
        self.verify_calls = 0
        self.published = []
        self._lock = threading.Lock()

    @property
    def id(self):
        return self.config.id

    def verify(self):
        self.verify_calls += 1
        if self.verify_error is not None:
            raise self.verify_error
        return self.verify_ok

    def publish(self, content):
        if content.text in self.fail_on:
            raise PublishFailure(f"boom: {content.text}")
        with self._lock:
            self.published.append(content.text)
            n = len(self.published)
        post_id = f"{self.id}-{n}"
        return PostRef(platform=self.id, id=post_id, url=f"http://{post_id}")

    def sync_feedback(self, post_id):
        return []


@pytest.fixture
def recording_adapter():
    return RecordingAdapter()


@pytest.fixture
def dummy_adapter():
    return DummyAdapter()


@pytest.fixture
def registry(dummy_adapter):
    return {"dummy": dummy_adapter}


# ==================== Content / Rules ====================


@pytest.fixture
def public_content():
    return Content(text="Hello", tags=["public"], lang="en")


@pytest.fixture
def sample_rules():
    """Rule set mirroring the example config."""
    return [
        {
            "name": "Public posts to Dummy",
            "if": {"tags": ["public"]},
            "publish": [{"adapter": "dummy", "delay": 0}],
        },
        {
            "name": "Ukrainian content with delay",
            "if": {"lang": "uk"},
            "publish": [{"adapter": "dummy", "delay": "30m", "channel": "@ukr_channel"}],
        },
        {
            "name": "Unknown adapter",
            "if": {},
            "publish": [{"adapter": "nonexistent", "delay": 0}],
        },
    ]


@pytest.fixture
def fixed_now():
    """Wednesday 2025-01-15 12:00 local time."""
    return datetime(2025, 1, 15, 12, 0, 0)


# ==================== File System Fixtures ====================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
