"""User-facing actions against the app under test.

Every action polls one hook call under the retry loop and then waits for the
app to settle before returning, so the next assertion sees the effect.
"""

from __future__ import annotations

import uuid
from typing import Any, Callable

from playwright.sync_api import Error as PlaywrightError

from spabridge.app_config import AppConfig
from spabridge.command import js_literal
from spabridge.command_bridge import CommandBridge
from spabridge.constants import ALL_ITEMS_LOADED, STANDARD_BUTTONS, SWIPE_DIRECTIONS
from spabridge.errors import ActionTimeoutError, BridgeError, ExpectationError, ProtocolError
from spabridge.locator import ElementLocator, coerce_locator
from spabridge.outcome import (
    BoolOutcome,
    Failure,
    Outcome,
    ProtocolViolation,
    Shape,
    Success,
    describe,
    interpret,
)
from spabridge.retry import Done, Fatal, Retry, RetryLoop, Step
from spabridge.settings import Settings
from spabridge.settle import SettleWait


class AppDriver:
    def __init__(
        self,
        page: Any,
        *,
        settings: Settings | None = None,
        config: AppConfig | None = None,
        loop: RetryLoop | None = None,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self.page = page
        self.settings = settings or Settings()
        self.config = config if config is not None else AppConfig()
        self.loop = loop or RetryLoop(poll_interval_seconds=self.settings.poll_interval_seconds)
        self.bridge = CommandBridge(page, hook_name=self.settings.hook_name)
        self.settle = SettleWait(self.bridge, self.settings, self.loop)
        self._log = log

    # Lifecycle

    def launch(self, url: str, *, skip_onboarding: bool = True) -> None:
        self._record("launch", url)
        width, height = self.settings.window_size
        try:
            self.page.set_viewport_size({"width": width, "height": height})
            self.page.goto(url)
        except PlaywrightError as exc:
            raise BridgeError(f"launch {url}: {exc}") from exc
        self._wait_for_hook(
            present=True,
            on_timeout=ActionTimeoutError(f"The app at {url} did not load window.{self.settings.hook_name}"),
        )
        options = {"configOverrides": self.config.as_dict(), "skipOnBoarding": skip_onboarding}
        self._spin(
            lambda: self._expect_ok("init", self._call("init", options)),
            description="the app to initialise",
        )
        self.config.lock()
        self.settle.wait_until_idle()

    def wait_for_restart(self) -> None:
        self._record("wait_for_restart", "")
        self._wait_for_hook(
            present=False,
            on_timeout=ExpectationError("Window is not reloading properly."),
        )
        self._wait_for_hook(
            present=True,
            on_timeout=ActionTimeoutError("The app did not come back after restarting"),
        )
        self.settle.wait_until_idle()

    # Element actions

    def find(self, locator: ElementLocator | str, *, present: bool = True, container: str = "") -> None:
        loc = coerce_locator(locator)
        self._record("find" if present else "find_not", loc.describe())

        def unit() -> Step:
            outcome = self._call("find", loc.to_dict(), container)
            if present:
                return self._expect_ok("find", outcome)
            if isinstance(outcome, Success):
                return Retry("item still found")
            if isinstance(outcome, Failure):
                return Done()
            return Fatal(ProtocolError("find", outcome.raw))

        self._spin(
            unit,
            on_timeout=(
                (lambda detail: ActionTimeoutError(f"Error finding item {loc.describe()}", detail=detail))
                if present
                else ActionTimeoutError(f"Error, found an item that should not be found: {loc.describe()}")
            ),
            description=f"find {loc.describe()}",
        )
        self.settle.wait_until_idle()

    def scroll_to(self, locator: ElementLocator | str) -> None:
        loc = coerce_locator(locator)
        self._record("scroll_to", loc.describe())
        self._spin(
            lambda: self._expect_ok("scrollTo", self._call("scrollTo", loc.to_dict())),
            on_timeout=lambda detail: ActionTimeoutError(f"Error scrolling to {loc.describe()}", detail=detail),
            description=f"scroll to {loc.describe()}",
        )
        self.settle.wait_until_idle()
        self._pause_for_animation()

    def load_more_items(self, *, possible: bool = True) -> None:
        self._record("load_more_items", "" if possible else "expect all loaded")

        def unit() -> Step:
            outcome = self._call("loadMoreItems", await_result=True)
            if possible:
                return self._expect_ok("loadMoreItems", outcome)
            if isinstance(outcome, Failure) and outcome.raw == ALL_ITEMS_LOADED:
                return Done()
            if isinstance(outcome, Success):
                return Fatal(ExpectationError("It should not have been possible to load more items"))
            if isinstance(outcome, Failure):
                return Retry(outcome.raw)
            return Fatal(ProtocolError("loadMoreItems", outcome.raw))

        self._spin(
            unit,
            on_timeout=lambda detail: ActionTimeoutError("Error loading more items", detail=detail),
            description="load more items",
        )
        self.settle.wait_until_idle()

    def press(self, locator: ElementLocator | str) -> None:
        loc = coerce_locator(locator)
        self._record("press", loc.describe())
        self._spin(
            lambda: self._expect_ok("press", self._call("press", loc.to_dict())),
            on_timeout=lambda detail: ActionTimeoutError(f"Error pressing item {loc.describe()}", detail=detail),
            description=f"press {loc.describe()}",
        )
        self.settle.wait_until_idle()

    def is_selected(self, locator: ElementLocator | str) -> bool:
        loc = coerce_locator(locator)
        return self._spin(
            lambda: self._read_selected(loc),
            on_timeout=lambda detail: ActionTimeoutError(f"Error finding item {loc.describe()}", detail=detail),
            description=f"selection state of {loc.describe()}",
        )

    def should_be_selected(self, locator: ElementLocator | str, selected: bool = True) -> None:
        loc = coerce_locator(locator)
        self._record("should_be_selected" if selected else "should_not_be_selected", loc.describe())

        def unit() -> Step:
            step = self._read_selected(loc)
            if isinstance(step, Done) and step.value != selected:
                if selected:
                    return Fatal(ExpectationError(f"Item {loc.describe()} wasn't selected and should have"))
                return Fatal(ExpectationError(f"Item {loc.describe()} was selected and shouldn't have"))
            return step

        self._spin(
            unit,
            on_timeout=lambda detail: ActionTimeoutError(f"Error finding item {loc.describe()}", detail=detail),
            description=f"selection state of {loc.describe()}",
        )
        self.settle.wait_until_idle()

    def select(self, locator: ElementLocator | str) -> None:
        self._set_selected(coerce_locator(locator), True)

    def unselect(self, locator: ElementLocator | str) -> None:
        self._set_selected(coerce_locator(locator), False)

    def _set_selected(self, loc: ElementLocator, selected: bool) -> None:
        verb = "select" if selected else "unselect"
        self._record(verb, loc.describe())

        def unit() -> Step:
            current = self._read_selected(loc)
            if not isinstance(current, Done):
                return current
            if current.value == selected:
                return Done(False)
            pressed = self._expect_ok("press", self._call("press", loc.to_dict()))
            if not isinstance(pressed, Done):
                return pressed
            self.settle.wait_until_idle()
            after = self._read_selected(loc)
            if isinstance(after, Done) and after.value != selected:
                return Fatal(ExpectationError(f"Item {loc.describe()} wasn't {verb}ed after pressing it"))
            if isinstance(after, Done):
                return Done(True)
            return after

        self._spin(
            unit,
            on_timeout=lambda detail: ActionTimeoutError(f"Error trying to {verb} {loc.describe()}", detail=detail),
            description=f"{verb} {loc.describe()}",
        )
        self.settle.wait_until_idle()

    def _read_selected(self, loc: ElementLocator) -> Step:
        outcome = self._call("isSelected", loc.to_dict(), shape=Shape.BOOLEAN)
        if isinstance(outcome, BoolOutcome):
            return Done(outcome.value)
        if isinstance(outcome, Failure):
            return Retry(outcome.raw)
        return Fatal(ProtocolError("isSelected", outcome.raw))

    def set_field(self, field: str, value: str) -> None:
        self._record("set_field", field)
        self._spin(
            lambda: self._expect_ok("setField", self._call("setField", str(field), str(value))),
            on_timeout=lambda detail: ActionTimeoutError(f'Error setting field "{field}"', detail=detail),
            description=f'set field "{field}"',
        )
        self.settle.wait_until_idle()

    def get_header(self) -> str:
        return self._spin(
            self._header_step,
            on_timeout=lambda detail: ActionTimeoutError("Error getting header", detail=detail),
            description="the page header",
        )

    def header_should_be(self, text: str) -> None:
        self._record("header_should_be", text)
        expected = str(text).strip()

        def unit() -> Step:
            step = self._header_step()
            if isinstance(step, Done) and step.value.strip() != expected:
                return Fatal(ExpectationError(f"The header text was not as expected: '{step.value}'"))
            return step

        self._spin(
            unit,
            on_timeout=lambda detail: ActionTimeoutError("Error getting header", detail=detail),
            description=f'header "{expected}"',
        )
        self.settle.wait_until_idle()

    def _header_step(self) -> Step:
        outcome = self._call("getHeader", shape=Shape.PAYLOAD)
        if isinstance(outcome, Success):
            return Done(outcome.payload or "")
        if isinstance(outcome, Failure):
            return Retry(outcome.raw)
        return Fatal(ProtocolError("getHeader", outcome.raw))

    def press_standard_button(self, kind: str) -> None:
        if kind not in STANDARD_BUTTONS:
            raise ValueError(f"Unknown standard button {kind!r}; expected one of {', '.join(STANDARD_BUTTONS)}")
        self._record("press_standard_button", kind)
        self._spin(
            lambda: self._expect_ok("pressStandard", self._call("pressStandard", kind)),
            on_timeout=lambda detail: ActionTimeoutError(
                f"Error pressing standard button {kind!r}", detail=detail
            ),
            description=f"{kind} button",
        )
        self.settle.wait_until_idle()

    def close_popup(self) -> None:
        self._record("close_popup", "")
        self._spin(
            lambda: self._expect_ok("closePopup", self._call("closePopup")),
            on_timeout=lambda detail: ActionTimeoutError("Error closing popup", detail=detail),
            description="close popup",
        )
        self.settle.wait_until_idle()

    # Side channels

    def run_background_tasks(self) -> None:
        self._record("run_background_tasks", "")
        flag = js_literal(f"spabridge_{uuid.uuid4().hex}_completed")
        self.bridge.execute(
            f"Promise.resolve({self.settings.background_task_script}).then("
            f"() => {{ window[{flag}] = true; }}, "
            f"(err) => {{ window[{flag}] = String((err && err.message) || err || 'rejected'); }})",
            label="background tasks",
        )

        def unit() -> Step:
            done = self.bridge.evaluate(f"() => window[{flag}] || false", label="background tasks")
            if done is True:
                return Done()
            if isinstance(done, str):
                return Fatal(ExpectationError(f"Forced background tasks failed: {done}"))
            return Retry()

        self.loop.run(
            unit,
            timeout_seconds=self.settings.long_timeout_seconds,
            on_timeout=ActionTimeoutError("Forced background tasks took too long to complete"),
            description="forced background tasks",
        )
        self.settle.force_change_detection()
        self.settle.wait_until_idle()

    def wait_loading_to_finish(self) -> None:
        self._record("wait_loading_to_finish", self.settings.loading_selector)
        self.settle.wait_loading_to_finish()

    def switch_offline_mode(self, offline: bool) -> None:
        value = "true" if offline else "false"
        self._record("switch_offline_mode", value)
        self.bridge.execute(self.settings.offline_script.replace("{value}", value), label="offline mode")
        self.settle.force_change_detection()
        self.settle.wait_until_idle()

    def swipe(self, direction: str) -> None:
        if direction not in SWIPE_DIRECTIONS:
            raise ValueError(f"Unknown swipe direction {direction!r}; expected left or right")
        self._record("swipe", direction)
        hook = js_literal(self.settings.hook_name)
        self.bridge.execute(
            f"window[{hook}].getAngularInstance('ion-content', 'CoreSwipeNavigationDirective')"
            f".swipe{direction.capitalize()}()",
            label="swipe",
        )
        self.settle.wait_until_idle()
        self._pause_for_animation()

    def open_notification(self, payload: dict[str, Any]) -> None:
        self._record("open_notification", str(payload.get("name", "")))
        self.bridge.execute(
            f"window.pushNotifications.notificationClicked({js_literal(payload)})",
            label="push notification",
        )
        self.settle.wait_until_idle()

    # Helpers

    def _call(self, operation: str, *args: Any, shape: Shape = Shape.UNIT, await_result: bool = False) -> Outcome:
        raw = self.bridge.send(operation, *args, await_result=await_result)
        return interpret(raw, shape)

    def _expect_ok(self, operation: str, outcome: Outcome) -> Step:
        if isinstance(outcome, Success):
            return Done()
        if isinstance(outcome, Failure):
            return Retry(describe(outcome))
        raw = outcome.raw if isinstance(outcome, ProtocolViolation) else describe(outcome)
        return Fatal(ProtocolError(operation, raw))

    def _spin(
        self,
        unit: Callable[[], Step],
        *,
        on_timeout: Any = None,
        description: str,
        timeout_seconds: float | None = None,
    ) -> Any:
        return self.loop.run(
            unit,
            timeout_seconds=self.settings.ui_timeout_seconds if timeout_seconds is None else timeout_seconds,
            on_timeout=on_timeout,
            description=description,
        )

    def _wait_for_hook(self, *, present: bool, on_timeout: BaseException) -> None:
        def unit() -> Step:
            try:
                found = self.bridge.hook_present()
            except BridgeError as exc:
                # The execution context is destroyed while the page reloads.
                return Retry(str(exc)) if present else Done()
            return Done() if found == present else Retry()

        self.loop.run(
            unit,
            timeout_seconds=self.settings.long_timeout_seconds,
            on_timeout=on_timeout,
            description="the test hook" if present else "the app to reload",
        )

    def _pause_for_animation(self) -> None:
        if self.settings.animation_pause_seconds > 0:
            self.loop.sleep(self.settings.animation_pause_seconds)

    def _record(self, action: str, target: str) -> None:
        if self._log is not None:
            self._log(f"action={action} target={target}")
