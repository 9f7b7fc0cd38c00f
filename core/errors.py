"""Exception hierarchy shared by the engine and the adapters."""

from __future__ import annotations

from typing import List, Optional


class ShareError(Exception):
    """Base class for every error raised by sharebot."""


class ConfigError(ShareError):
    """Configuration file, rule or adapter definition is unusable."""


class ContentValidationError(ShareError, ValueError):
    """Content failed structural validation; carries every field error."""

    def __init__(self, errors: Optional[List[str]] = None):
        self.errors = list(errors or [])
        super().__init__(f"Content validation failed: {'; '.join(self.errors)}")


class InvalidDelayFormat(ShareError, ValueError):
    def __init__(self, literal: object):
        self.literal = literal
        super().__init__(f"Invalid delay format: '{literal}'")


class AdapterNotImplementedError(ShareError, NotImplementedError):
    """A concrete adapter did not override a required member (a defect, not a runtime failure)."""

    def __init__(self, adapter: str, member: str):
        self.adapter = adapter
        self.member = member
        super().__init__(f"Method '{member}' must be implemented by the adapter '{adapter}'")


class CapabilityError(ShareError):
    """An operation was invoked on an adapter that does not declare the capability."""

    def __init__(self, adapter: str, capability: str):
        self.adapter = adapter
        self.capability = capability
        super().__init__(f"Adapter '{adapter}' does not support '{capability}'")


class VerificationFailure(ShareError):
    def __init__(self, adapter_id: str, reason: str = "verify() rejected"):
        self.adapter_id = adapter_id
        self.reason = reason
        super().__init__(f"Adapter '{adapter_id}' failed verification: {reason}")


class PublishFailure(ShareError):
    """Platform-side failure during publish/update/delete/reply."""


class LengthExceededError(PublishFailure):
    def __init__(self, max_length: float, length: int):
        self.max_length = max_length
        self.length = length
        super().__init__(f"Content exceeds max length of {max_length} (got {length})")


class TaskCancelled(ShareError):
    """A deferred task was abandoned before it fired."""
