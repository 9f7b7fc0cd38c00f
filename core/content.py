"""Content model handed to the rules engine."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

MEDIA_FIELDS = ("photo", "video", "document", "audio")

# camelCase keys accepted from JSON/YAML content files
_OPTION_ALIASES = {
    "parseMode": "parse_mode",
    "disableNotification": "disable_notification",
    "disablePreview": "disable_preview",
    "threadId": "thread_id",
}


@dataclass
class Content:
    """
    A single item to distribute.

    - At least `text` or one media reference must be present (see core.validation).
    - `tags`, `type` and `lang` are only used for rule matching.
    - `options` carries per-publish overrides (parse_mode, disable_notification,
      disable_preview, thread_id, channel).
    """

    text: Optional[str] = None
    photo: Optional[str] = None  # URL or file path
    video: Optional[str] = None
    document: Optional[str] = None
    audio: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    type: Optional[str] = None  # e.g. "post", "article", "announcement"
    lang: Optional[str] = None  # e.g. "uk", "en"
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "Content":
        raw = dict(raw or {})
        tags = raw.get("tags") or []
        if isinstance(tags, str):
            tags = [tags]
        options = {_OPTION_ALIASES.get(k, k): v for k, v in (raw.get("options") or {}).items()}
        return cls(
            text=raw.get("text"),
            photo=raw.get("photo"),
            video=raw.get("video"),
            document=raw.get("document"),
            audio=raw.get("audio"),
            tags=list(tags),
            type=raw.get("type"),
            lang=raw.get("lang"),
            options=options,
        )

    @property
    def has_media(self) -> bool:
        return any(getattr(self, name) for name in MEDIA_FIELDS)

    def clone(self) -> "Content":
        """Independent copy, so one task cannot mutate another task's payload."""
        return Content(
            text=self.text,
            photo=self.photo,
            video=self.video,
            document=self.document,
            audio=self.audio,
            tags=list(self.tags),
            type=self.type,
            lang=self.lang,
            options=copy.deepcopy(self.options),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"tags": list(self.tags), "options": dict(self.options)}
        for name in ("text", *MEDIA_FIELDS, "type", "lang"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


def as_content(content: "Content | Mapping[str, Any] | None") -> Content:
    if isinstance(content, Content):
        return content
    return Content.from_dict(content)
