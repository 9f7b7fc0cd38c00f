# socials/types.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

# Fixed capability vocabulary an adapter may declare.
CAPABILITIES = frozenset(
    {"media", "delete", "reply", "edit", "threads", "photo", "video", "document", "audio"}
)

FeedbackType = Literal["comment", "like", "share", "reaction"]


@dataclass
class PostRef:
    """Normalized reference to a published post (or reply) on a platform.

    platform:  adapter id ("telegram", "dummy", ...)
    id:        canonical id assigned by the platform
    url:       public link to the post, if the platform has one
    raw:       original payload returned by the platform (debugging/forensics)
    """

    platform: str
    id: str
    url: str | None = None
    raw: dict[str, Any] | None = None


@dataclass(frozen=True)
class Limits:
    max_length: float = math.inf  # max text length per post


@dataclass
class Feedback:
    """A comment or reaction collected from a platform by sync_feedback()."""

    id: str = ""
    author: str = "Unknown"
    author_id: str | None = None
    author_avatar: str | None = None
    text: str = ""
    type: FeedbackType = "comment"
    created_at: datetime = field(default_factory=datetime.now)
    network: str = "unknown"


@dataclass(frozen=True)
class FeedbackTarget:
    """Identifies the feedback item to reply to and the network it lives on.

    `account` selects which account replies in multi-account setups.
    """

    id: str
    network: str = "unknown"
    account: str | None = None
    post_id: str | None = None
