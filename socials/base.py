# socials/base.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Union

from core.content import Content
from core.errors import AdapterNotImplementedError, CapabilityError, LengthExceededError
from socials.types import Feedback, FeedbackTarget, Limits, PostRef


@dataclass
class AdapterConfig:
    id: Optional[str] = None  # overrides the adapter's default identity
    account: Optional[str] = None  # for multi-account setups
    credentials: Dict[str, str] = field(default_factory=dict)


class SocialAdapter:
    """
    Base protocol every destination adapter implements.

    MUST override:
      - id, verify(), publish(), sync_feedback()
    MAY override (declare the matching capability first):
      - update()  -> "edit"
      - delete()  -> "delete"
      - reply()   -> "reply"

    Calling a capability-gated member on an adapter that does not declare the
    capability raises CapabilityError; declaring it without overriding raises
    AdapterNotImplementedError.
    """

    def __init__(self, config: Optional[AdapterConfig] = None) -> None:
        self.config = config or AdapterConfig()

    def _not_implemented(self, member: str) -> AdapterNotImplementedError:
        return AdapterNotImplementedError(type(self).__name__, member)

    def _require(self, capability: str) -> None:
        if not self.can(capability):
            raise CapabilityError(type(self).__name__, capability)

    # ---- identity / capabilities ------------------------------------------

    @property
    def id(self) -> str:
        raise self._not_implemented("id")

    @property
    def capabilities(self) -> FrozenSet[str]:
        return frozenset()

    @property
    def limits(self) -> Limits:
        return Limits()

    def can(self, capability: str) -> bool:
        return capability in self.capabilities

    def check_length(self, text: Optional[str], max_length: Optional[float] = None) -> None:
        """Raise LengthExceededError instead of letting a platform truncate silently."""
        limit = self.limits.max_length if max_length is None else max_length
        if text and len(text) > limit:
            raise LengthExceededError(limit, len(text))

    # ---- lifecycle --------------------------------------------------------

    def verify(self) -> bool:
        """Pre-flight connectivity/credential check. Must be safe to call repeatedly."""
        raise self._not_implemented("verify")

    def publish(self, content: Content) -> PostRef:
        raise self._not_implemented("publish")

    def update(self, post_id: str, content: Content) -> PostRef:
        self._require("edit")
        raise self._not_implemented("update")

    def delete(self, post_id: str) -> bool:
        self._require("delete")
        raise self._not_implemented("delete")

    def sync_feedback(self, post_id: str) -> List[Feedback]:
        """Read-only; may return [] when the platform exposes no feedback channel."""
        raise self._not_implemented("sync_feedback")

    def reply(self, target: Union[FeedbackTarget, str], text: str) -> PostRef:
        self._require("reply")
        raise self._not_implemented("reply")


def target_id(target: Union[FeedbackTarget, str]) -> str:
    return target if isinstance(target, str) else target.id
