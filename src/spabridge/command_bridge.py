"""Single round trips into the app's execution context."""

from __future__ import annotations

from typing import Any

from playwright.sync_api import Error as PlaywrightError

from spabridge.command import Command, js_literal
from spabridge.errors import BridgeError, BridgeUnavailableError


class CommandBridge:
    """Invokes capabilities of the app's global test hook.

    The bridge neither retries nor interprets results; every call is exactly
    one `page.evaluate` round trip.
    """

    def __init__(self, page: Any, *, hook_name: str = "behat") -> None:
        self.page = page
        self.hook_name = hook_name

    def send(self, operation: str, *args: Any, await_result: bool = False) -> Any:
        return self.send_command(Command(operation, args), await_result=await_result)

    def send_command(self, command: Command, *, await_result: bool = False) -> Any:
        script = command.to_script(self.hook_name, await_result=await_result)
        envelope = self.evaluate(script, label=command.operation)
        if not isinstance(envelope, dict):
            raise BridgeError(f"{command.operation}: malformed bridge envelope {envelope!r}")
        if envelope.get("missing"):
            raise BridgeUnavailableError(
                f"Test hook window.{self.hook_name}.{command.operation} is not available"
            )
        return envelope.get("value")

    def evaluate(self, script: str, *, label: str = "script") -> Any:
        try:
            return self.page.evaluate(script)
        except PlaywrightError as exc:
            raise BridgeError(f"{label}: {exc}") from exc

    def execute(self, statement: str, *, label: str = "script") -> None:
        self.evaluate(f"() => {{ {statement}; }}", label=label)

    def hook_present(self) -> bool:
        script = f"() => !!window[{js_literal(self.hook_name)}]"
        return bool(self.evaluate(script, label="hook presence"))
