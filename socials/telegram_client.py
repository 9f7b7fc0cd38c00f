from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, FrozenSet, List, Optional, Union

import requests

from core.content import Content
from core.errors import PublishFailure
from socials.base import AdapterConfig, SocialAdapter, target_id
from socials.types import Feedback, FeedbackTarget, Limits, PostRef

logger = logging.getLogger(__name__)

API_URL = "https://api.telegram.org"
MAX_MESSAGE_LENGTH = 4096
MAX_CAPTION_LENGTH = 1024

# (content field, Bot API method); the field name doubles as the payload/upload key
MEDIA_METHODS = (
    ("photo", "sendPhoto"),
    ("video", "sendVideo"),
    ("document", "sendDocument"),
    ("audio", "sendAudio"),
)


@dataclass
class TelegramConfig(AdapterConfig):
    bot_token: str = ""
    chat_id: str = ""  # channel id (e.g. "-1003396036547") or "@channel"
    parse_mode: str = "HTML"  # "HTML" | "MarkdownV2"
    disable_notification: bool = False

    def __post_init__(self) -> None:
        if not self.bot_token:
            raise ValueError("TelegramAdapter requires config.bot_token")
        if not self.chat_id:
            raise ValueError("TelegramAdapter requires config.chat_id")
        self.chat_id = str(self.chat_id)


class TelegramAdapter(SocialAdapter):
    """
    Telegram channel adapter built on the Bot API.

    - Text posts via sendMessage; media via sendPhoto/sendVideo/sendDocument/sendAudio
      with the text as caption.
    - Media may be a URL / file_id (sent as JSON) or a local file (multipart upload).
    - content.options may override parse_mode, disable_notification and the target channel.
    - The Bot API cannot list channel comments, so sync_feedback() returns [].
    - delete() and reply() always target config.chat_id; a post sent to an
      options["channel"] override cannot be deleted or replied to through this adapter.
    """

    def __init__(self, config: TelegramConfig, timeout: float = 10) -> None:
        super().__init__(config)
        self.config: TelegramConfig = config
        self.base_url = f"{API_URL}/bot{self.config.bot_token}"
        self.timeout = timeout

    @property
    def id(self) -> str:
        return self.config.id or "telegram"

    @property
    def capabilities(self) -> FrozenSet[str]:
        return frozenset({"media", "delete", "reply", "edit", "photo", "document", "video", "audio"})

    @property
    def limits(self) -> Limits:
        return Limits(max_length=MAX_MESSAGE_LENGTH)

    # ---- internal helpers -------------------------------------------------

    def _call_api(self, method: str, payload: dict[str, Any], files: Optional[dict] = None) -> dict[str, Any]:
        """
        POST to a Bot API method and return its `result`.

        Raises PublishFailure on transport errors, non-JSON bodies and `ok: false`.
        """
        url = f"{self.base_url}/{method}"
        try:
            if files:
                resp = requests.post(url, data=payload, files=files, timeout=self.timeout * 2)
            else:
                resp = requests.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise PublishFailure(f"Telegram {method} request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise PublishFailure(f"Telegram {method} returned non-JSON (status={resp.status_code})") from e

        if not data.get("ok"):
            logger.warning("Telegram %s failed: status=%s body=%s", method, resp.status_code, resp.text)
            raise PublishFailure(f"Telegram API error: {data.get('description') or 'Unknown error'}")

        return data.get("result") or {}

    def _chat_id(self, content: Optional[Content] = None) -> str:
        if content is not None and content.options.get("channel"):
            return str(content.options["channel"])
        return self.config.chat_id

    def _post_url(self, chat_id: str, message_id: str) -> str:
        if chat_id.startswith("@"):
            return f"https://t.me/{chat_id[1:]}/{message_id}"
        return f"https://t.me/c/{chat_id.removeprefix('-100')}/{message_id}"

    def _ref(self, chat_id: str, result: dict[str, Any]) -> PostRef:
        message_id = result.get("message_id")
        if message_id is None:
            raise PublishFailure("Telegram response did not include a message_id")
        return PostRef(
            platform=self.id,
            id=str(message_id),
            url=self._post_url(chat_id, str(message_id)),
            raw=result,
        )

    def _send_media(self, method: str, field: str, media: str, payload: dict[str, Any]) -> dict[str, Any]:
        path = Path(media)
        if "://" not in media and path.is_file():
            # multipart form values are strings; the Bot API expects "true"/"false"
            form = {k: str(v).lower() if isinstance(v, bool) else v for k, v in payload.items()}
            with path.open("rb") as f:
                return self._call_api(method, form, files={field: (path.name, f)})
        return self._call_api(method, {**payload, field: media})

    # ---- public API -------------------------------------------------------

    def verify(self) -> bool:
        me = self._call_api("getMe", {})
        return bool(me.get("id"))

    def publish(self, content: Content) -> PostRef:
        opts = content.options
        chat_id = self._chat_id(content)
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "parse_mode": opts.get("parse_mode", self.config.parse_mode),
            "disable_notification": opts.get("disable_notification", self.config.disable_notification),
        }
        if opts.get("thread_id"):
            payload["message_thread_id"] = opts["thread_id"]

        for field, method in MEDIA_METHODS:
            media = getattr(content, field)
            if media:
                self.check_length(content.text, MAX_CAPTION_LENGTH)
                payload["caption"] = content.text or ""
                return self._ref(chat_id, self._send_media(method, field, media, payload))

        self.check_length(content.text)
        payload["text"] = content.text
        if "disable_preview" in opts:
            payload["disable_web_page_preview"] = bool(opts["disable_preview"])
        return self._ref(chat_id, self._call_api("sendMessage", payload))

    def update(self, post_id: str, content: Content) -> PostRef:
        chat_id = self._chat_id(content)
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "message_id": int(post_id),
            "parse_mode": content.options.get("parse_mode", self.config.parse_mode),
        }
        if content.has_media:
            self.check_length(content.text, MAX_CAPTION_LENGTH)
            self._call_api("editMessageCaption", {**payload, "caption": content.text or ""})
        else:
            self.check_length(content.text)
            self._call_api("editMessageText", {**payload, "text": content.text})
        return PostRef(platform=self.id, id=str(post_id), url=self._post_url(chat_id, str(post_id)))

    def delete(self, post_id: str) -> bool:
        self._call_api("deleteMessage", {"chat_id": self.config.chat_id, "message_id": int(post_id)})
        return True

    def sync_feedback(self, post_id: str) -> List[Feedback]:
        # Would need a linked discussion group plus getUpdates/webhook polling.
        return []

    def reply(self, target: Union[FeedbackTarget, str], text: str) -> PostRef:
        self.check_length(text)
        result = self._call_api(
            "sendMessage",
            {
                "chat_id": self.config.chat_id,
                "text": text,
                "reply_to_message_id": int(target_id(target)),
                "parse_mode": self.config.parse_mode,
            },
        )
        return self._ref(self.config.chat_id, result)
