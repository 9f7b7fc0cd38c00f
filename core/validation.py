"""Structural content validation, run before any rule is evaluated."""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, Union

from core.content import Content, ValidationResult, as_content

NO_BODY_ERROR = "content must have at least text or one media field (photo, video, document, audio)"

# Override point: any callable returning a ValidationResult can replace validate_content.
ContentValidator = Callable[[Content], ValidationResult]


def validate_content(content: Union[Content, Mapping[str, Any], None]) -> ValidationResult:
    content = as_content(content)
    errors: List[str] = []

    has_text = bool(content.text and content.text.strip())
    if not has_text and not content.has_media:
        errors.append(NO_BODY_ERROR)

    return ValidationResult(valid=not errors, errors=errors)
