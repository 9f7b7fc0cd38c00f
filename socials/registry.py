# socials/registry.py
"""
Builds the identifier -> adapter registry from the `adapters:` config section.

    adapters:
      blog-mirror:
        type: dummy
        account: me
      telegram:
        type: telegram
        bot_token: "123:abc"      # or SHAREBOT_TELEGRAM_TOKEN
        chat_id: "@my_channel"
        enabled: true

The registry is handed to the rules engine read-only; nothing in core adds or
removes entries.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, Mapping

from core.errors import ConfigError
from socials.base import AdapterConfig, SocialAdapter
from socials.dummy import DummyAdapter
from socials.telegram_client import TelegramAdapter, TelegramConfig

logger = logging.getLogger(__name__)

TELEGRAM_TOKEN_ENV = "SHAREBOT_TELEGRAM_TOKEN"


def _dummy(name: str, cfg: Mapping[str, Any]) -> SocialAdapter:
    return DummyAdapter(
        AdapterConfig(id=name, account=cfg.get("account"), credentials=dict(cfg.get("credentials") or {})),
        reject_verify=bool(cfg.get("reject_verify", False)),
    )


def _telegram(name: str, cfg: Mapping[str, Any]) -> SocialAdapter:
    token = cfg.get("bot_token") or os.getenv(TELEGRAM_TOKEN_ENV, "")
    try:
        config = TelegramConfig(
            id=name,
            account=cfg.get("account"),
            bot_token=token,
            chat_id=str(cfg.get("chat_id") or ""),
            parse_mode=cfg.get("parse_mode", "HTML"),
            disable_notification=bool(cfg.get("disable_notification", False)),
        )
    except ValueError as e:
        raise ConfigError(f"Adapter '{name}': {e}") from e
    return TelegramAdapter(config, timeout=float(cfg.get("timeout", 10)))


ADAPTER_TYPES: Dict[str, Callable[[str, Mapping[str, Any]], SocialAdapter]] = {
    "dummy": _dummy,
    "telegram": _telegram,
}


def build_registry(cfg: Mapping[str, Any]) -> Dict[str, SocialAdapter]:
    """Instantiate every enabled adapter listed under `adapters:`.

    Raises:
        ConfigError: For an unknown adapter type or an incomplete definition.
    """
    registry: Dict[str, SocialAdapter] = {}
    for name, adapter_cfg in (cfg.get("adapters") or {}).items():
        adapter_cfg = adapter_cfg or {}
        if not adapter_cfg.get("enabled", True):
            logger.info("Adapter '%s' disabled in config; not registering.", name)
            continue

        kind = str(adapter_cfg.get("type", name)).lower()
        factory = ADAPTER_TYPES.get(kind)
        if factory is None:
            raise ConfigError(f"Adapter '{name}' has unknown type '{kind}' (known: {', '.join(ADAPTER_TYPES)})")

        registry[str(name)] = factory(str(name), adapter_cfg)
        logger.info("Registered adapter '%s' (%s).", name, kind)

    return registry
