"""Failure taxonomy for driving the app through its test hook."""

from __future__ import annotations


class BridgeError(RuntimeError):
    """A single round trip into the app's execution context failed."""


class BridgeUnavailableError(BridgeError):
    """The global test hook (or one of its capabilities) does not exist."""


class ActionError(AssertionError):
    """Base class for failures reported against a user-facing action."""


class ProtocolError(ActionError):
    def __init__(self, action: str, raw: object) -> None:
        super().__init__(f"{action}: unexpected result from app - {raw!r}")
        self.action = action
        self.raw = raw


class ActionTimeoutError(ActionError):
    def __init__(self, message: str, *, detail: str = "") -> None:
        full = f"{message} - {detail}" if detail else message
        super().__init__(full)
        self.detail = detail


class ExpectationError(ActionError):
    pass


class LocatorSyntaxError(ValueError):
    pass


class ConfigError(ValueError):
    pass
