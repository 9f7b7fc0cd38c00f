"""Transient units of work produced by the rules engine and consumed by the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from core.content import Content

if TYPE_CHECKING:
    from socials.base import SocialAdapter


@dataclass
class Task:
    """One resolved (rule, destination) pairing, ready for execution."""

    adapter: "SocialAdapter"
    content: Content  # a clone; never shared between tasks
    delay_ms: int
    rule_name: Optional[str]
    channel: Optional[str] = None

    @property
    def adapter_id(self) -> str:
        return self.adapter.id

    @property
    def immediate(self) -> bool:
        return self.delay_ms == 0


@dataclass(frozen=True)
class PublishResult:
    id: str
    url: Optional[str]
    rule_name: Optional[str]
    adapter_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "url": self.url, "rule_name": self.rule_name, "adapter_id": self.adapter_id}
