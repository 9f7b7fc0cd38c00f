# socials/dummy.py
from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional, Union

from core.content import Content
from core.errors import PublishFailure, VerificationFailure
from socials.base import AdapterConfig, SocialAdapter, target_id
from socials.types import Feedback, FeedbackTarget, Limits, PostRef

logger = logging.getLogger(__name__)

BASE_URL = "https://dummy.sharebot.app/posts"


class DummyAdapter(SocialAdapter):
    """
    In-memory reference adapter.

    Implements the full protocol without touching the network, so the rules
    engine can be exercised end to end. Posts and comments live in dicts
    guarded by a lock because deferred tasks may publish concurrently.
    """

    def __init__(self, config: Optional[AdapterConfig] = None, reject_verify: bool = False) -> None:
        super().__init__(config)
        self.reject_verify = reject_verify
        self.posts: Dict[str, Dict[str, Any]] = {}
        self.comments: Dict[str, Dict[str, str]] = {}
        self._lock = threading.Lock()
        self._seq = itertools.count(1)

    @property
    def id(self) -> str:
        return self.config.id or "dummy"

    @property
    def capabilities(self) -> FrozenSet[str]:
        return frozenset({"media", "delete", "reply", "edit", "photo", "document"})

    @property
    def limits(self) -> Limits:
        return Limits(max_length=280)

    def verify(self) -> bool:
        if self.reject_verify:
            raise VerificationFailure(self.id, "fake rejection triggered")
        return True

    def _url(self, post_id: str) -> str:
        return f"{BASE_URL}/{post_id}"

    def publish(self, content: Content) -> PostRef:
        self.check_length(content.text)
        with self._lock:
            post_id = f"{self.id}-post-{next(self._seq)}"
            self.posts[post_id] = {"content": content.clone(), "published_at": datetime.now()}
        logger.debug("DummyAdapter stored %s", post_id)
        return PostRef(platform=self.id, id=post_id, url=self._url(post_id))

    def update(self, post_id: str, content: Content) -> PostRef:
        self._require("edit")
        self.check_length(content.text)
        with self._lock:
            existing = self.posts.get(post_id)
            if existing is None:
                raise PublishFailure(f"Post not found on Dummy platform: {post_id}")
            existing["content"] = content.clone()
            existing["updated_at"] = datetime.now()
        return PostRef(platform=self.id, id=post_id, url=self._url(post_id))

    def delete(self, post_id: str) -> bool:
        self._require("delete")
        with self._lock:
            if self.posts.pop(post_id, None) is None:
                raise PublishFailure(f"Post not found on Dummy platform: {post_id}")
        return True

    def sync_feedback(self, post_id: str) -> List[Feedback]:
        with self._lock:
            known = post_id in self.posts
        if not known:
            raise PublishFailure(f"Post not found for feedback sync: {post_id}")
        return [
            Feedback(id=f"c-1-{post_id}", author="Alice", text="Great post!", network=self.id),
            Feedback(id=f"c-2-{post_id}", author="Bob", text="Where is the code?", network=self.id),
        ]

    def reply(self, target: Union[FeedbackTarget, str], text: str) -> PostRef:
        self._require("reply")
        with self._lock:
            reply_id = f"r-{next(self._seq)}"
            self.comments[reply_id] = {
                "text": text,
                "reply_to": target_id(target),
                "author": self.config.account or "Publisher (Me)",
            }
        return PostRef(platform=self.id, id=reply_id)
