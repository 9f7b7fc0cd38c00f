"""Rule definitions and evaluation (core domain).

A rule in config has the shape:

    name: Public posts
    if: {tags: [public], type: post, lang: en, hasMedia: true}
    publish:
      - {adapter: telegram, delay: 0}
      - {adapter: dummy, delay: "Mon 10:00", channel: "@weekly"}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Union

from core import diagnostics
from core.conditions import Conditions, matches_conditions
from core.content import Content, as_content
from core.delay import DelayLiteral, parse_delay
from core.diagnostics import EngineEvent, EventSink, log_event
from core.errors import ConfigError, ContentValidationError
from core.tasks import Task
from core.validation import ContentValidator, validate_content

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Destination:
    adapter: str
    delay: DelayLiteral = 0
    channel: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Destination":
        if not raw.get("adapter"):
            raise ConfigError(f"Publish destination without an adapter: {dict(raw)}")
        return cls(adapter=str(raw["adapter"]), delay=raw.get("delay", 0), channel=raw.get("channel") or None)


@dataclass(frozen=True)
class Rule:
    """A condition set and the ordered destinations it publishes to (`name` is optional outside config)."""

    name: Optional[str]
    conditions: Conditions = field(default_factory=Conditions)
    publish: List[Destination] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Rule":
        name = raw.get("name")
        return cls(
            name=None if name is None else str(name),
            conditions=Conditions.from_dict(raw.get("if")),
            publish=[Destination.from_dict(d) for d in raw.get("publish") or []],
        )


def build_rules(rules_config: Iterable[Mapping[str, Any]]) -> List[Rule]:
    """Normalize rule configs, dropping disabled ones. Config rules must be named.

    Every delay literal is parsed once here so a typo fails at load time
    (InvalidDelayFormat) rather than in the middle of an evaluation.
    """
    rules: List[Rule] = []
    for raw in rules_config:
        if not raw.get("enabled", True):
            continue
        if not raw.get("name"):
            raise ConfigError(f"Rule without a name: {dict(raw)}")
        rule = Rule.from_dict(raw)
        for destination in rule.publish:
            parse_delay(destination.delay)
        rules.append(rule)
    return rules


def evaluate_rules(
    content: Union[Content, Mapping[str, Any]],
    rules: Iterable[Union[Rule, Mapping[str, Any]]],
    adapters: Mapping[str, Any],
    *,
    validator: ContentValidator = validate_content,
    now: Optional[datetime] = None,
    on_event: Optional[EventSink] = None,
) -> List[Task]:
    """Match content against rules and return the ordered publish tasks.

    Rules are walked in order and each rule's destinations in order. A
    destination naming an adapter missing from `adapters` is skipped with an
    `adapter_missing` event; everything else still evaluates.

    Raises:
        ContentValidationError: If `validator` rejects the content.
        InvalidDelayFormat: If a destination's delay literal cannot be parsed.
    """
    on_event = on_event or log_event
    content = as_content(content)

    validation = validator(content)
    if not validation.valid:
        raise ContentValidationError(validation.errors)

    tasks: List[Task] = []
    for rule in rules:
        if not isinstance(rule, Rule):
            rule = Rule.from_dict(rule)

        if not matches_conditions(content, rule.conditions):
            continue

        for destination in rule.publish:
            adapter = adapters.get(destination.adapter)
            if adapter is None:
                on_event(
                    EngineEvent(
                        kind=diagnostics.ADAPTER_MISSING,
                        message=f"Adapter '{destination.adapter}' not found, skipping rule '{rule.name}'",
                        rule_name=rule.name,
                        adapter_id=destination.adapter,
                    )
                )
                continue

            payload = content.clone()
            if destination.channel:
                payload.options["channel"] = destination.channel

            tasks.append(
                Task(
                    adapter=adapter,
                    content=payload,
                    delay_ms=parse_delay(destination.delay, now=now),
                    rule_name=rule.name,
                    channel=destination.channel,
                )
            )

    logger.debug("Evaluated %d task(s) for content tags=%s", len(tasks), content.tags)
    return tasks
