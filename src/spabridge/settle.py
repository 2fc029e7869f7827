"""Barriers that wait for the app's asynchronous work to drain."""

from __future__ import annotations

from typing import Any

from playwright.sync_api import Error as PlaywrightError

from spabridge.command_bridge import CommandBridge
from spabridge.errors import ActionTimeoutError, BridgeError, ProtocolError
from spabridge.retry import Done, Fatal, Retry, RetryLoop, Step
from spabridge.settings import Settings


class SettleWait:
    def __init__(self, bridge: CommandBridge, settings: Settings, loop: RetryLoop) -> None:
        self.bridge = bridge
        self.settings = settings
        self.loop = loop
        self._settle_loop = RetryLoop(
            poll_interval_seconds=settings.settle_poll_seconds,
            clock=loop.clock,
            sleep=loop.sleep,
        )

    def wait_until_idle(self) -> None:
        """Block until the app reports no pending asynchronous tasks."""
        self._settle_loop.run(
            self._idle_step,
            timeout_seconds=self.settings.settle_timeout_seconds,
            on_timeout=ActionTimeoutError(
                "The app did not become idle",
                detail=f"pending tasks still reported after {self.settings.settle_timeout_seconds:g}s",
            ),
            description="pending tasks to finish",
        )

    def _idle_step(self) -> Step:
        pending = self.bridge.evaluate(
            f"() => {self.settings.pending_expression}", label="pending tasks"
        )
        if isinstance(pending, bool) or not isinstance(pending, (int, float)):
            return Fatal(ProtocolError("pending tasks", pending))
        if pending <= 0:
            return Done()
        return Retry(f"{int(pending)} pending tasks")

    def force_change_detection(self) -> None:
        self.bridge.execute(self.settings.change_detection_script, label="change detection")

    def wait_loading_to_finish(self) -> None:
        self.loop.run(
            self._loading_step,
            timeout_seconds=self.settings.long_timeout_seconds,
            on_timeout=ActionTimeoutError("Loading took too long to complete"),
            description="loading indicators to disappear",
        )

    def _loading_step(self) -> Step:
        self.force_change_detection()
        try:
            visible = sum(
                1 for node in _loading_nodes(self.bridge.page, self.settings.loading_selector) if _is_visible(node)
            )
        except PlaywrightError as exc:
            raise BridgeError(f"loading indicators: {exc}") from exc
        if visible:
            return Retry(f"{visible} loading indicators visible")
        return Done()


def _loading_nodes(page: Any, selector: str) -> list[Any]:
    return list(page.locator(selector).all())


def _is_visible(node: Any) -> bool:
    return bool(node.is_visible())
