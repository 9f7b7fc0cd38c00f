"""Declarative rule conditions and the matcher that evaluates them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union

from core.content import Content, as_content


@dataclass(frozen=True)
class Conditions:
    """The `if` block of a rule. Every field that is set must hold (AND)."""

    tags: Optional[List[str]] = None  # any-of; an empty list matches nothing
    type: Optional[str] = None
    lang: Optional[str] = None
    has_media: Optional[bool] = None

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "Conditions":
        raw = raw or {}
        tags = raw.get("tags")
        if isinstance(tags, str):
            tags = [tags]
        has_media = raw.get("hasMedia", raw.get("has_media"))
        return cls(
            tags=None if tags is None else list(tags),
            type=raw.get("type") or None,
            lang=raw.get("lang") or None,
            has_media=None if has_media is None else bool(has_media),
        )

    @property
    def is_empty(self) -> bool:
        return self.tags is None and self.type is None and self.lang is None and self.has_media is None


def matches_conditions(
    content: Union[Content, Mapping[str, Any]],
    conditions: Union[Conditions, Mapping[str, Any], None],
) -> bool:
    """Return True if `content` satisfies every condition that is present.

    An absent or empty condition set matches everything.
    """
    if conditions is None:
        return True
    if not isinstance(conditions, Conditions):
        conditions = Conditions.from_dict(conditions)
    if conditions.is_empty:
        return True

    content = as_content(content)

    if conditions.tags is not None and not set(conditions.tags) & set(content.tags):
        return False

    if conditions.type is not None and content.type != conditions.type:
        return False

    if conditions.lang is not None and content.lang != conditions.lang:
        return False

    if conditions.has_media is not None and content.has_media != conditions.has_media:
        return False

    return True
