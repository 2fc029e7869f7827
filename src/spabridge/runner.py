"""Scenario execution against a Playwright-controlled browser."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from spabridge.app_config import AppConfig
from spabridge.app_driver import AppDriver
from spabridge.errors import ActionError, BridgeError
from spabridge.models import RunReport
from spabridge.settings import Settings
from spabridge.steps import StepCall, parse_step
from spabridge.storage import ScenarioRun, start_run


BROWSER_STEP = "browser"


@dataclass(frozen=True)
class StepsOutcome:
    completed: int
    failed_step: str = ""
    error: str = ""


def execute_steps(
    driver: Any,
    url: str,
    steps: list[str],
    calls: list[StepCall],
    *,
    log: Callable[[str], None],
    progress_cb: Callable[[int, int], None] | None = None,
) -> StepsOutcome:
    """Launch the app and run the steps in order, stopping at the first failure."""
    try:
        driver.launch(url)
    except (ActionError, BridgeError) as exc:
        log(f"launch failed: {exc}")
        return StepsOutcome(completed=0, failed_step="launch", error=str(exc))
    for index, (text, call) in enumerate(zip(steps, calls), start=1):
        log(f"step {index}/{len(steps)}: {text}")
        try:
            call.apply(driver)
        except (ActionError, BridgeError, ValueError) as exc:
            log(f"step {index} failed: {type(exc).__name__}: {exc}")
            return StepsOutcome(completed=index - 1, failed_step=text, error=f"{type(exc).__name__}: {exc}")
        log(f"step {index} ok")
        if progress_cb is not None:
            progress_cb(index, len(steps))
    return StepsOutcome(completed=len(steps))


def run_scenario(
    url: str,
    steps: list[str],
    *,
    app_config: AppConfig | None = None,
    settings: Settings | None = None,
    headed: bool = False,
) -> RunReport:
    """Run one scenario in a fresh browser and record it under ``runs/``.

    The report and the completed status are written however the browser
    session ends; a crash outside the steps is recorded against ``browser``.
    """
    calls = [parse_step(text) for text in steps]
    config = app_config if app_config is not None else AppConfig()
    settings = settings or Settings()
    run = start_run(url, len(steps))

    completed = 0

    def progress(current: int, total: int) -> None:
        nonlocal completed
        completed = current
        run.mark_progress(current)

    outcome: StepsOutcome | None = None
    try:
        outcome = _drive_browser(
            run, steps, calls, config=config, settings=settings, headed=headed, progress_cb=progress
        )
    except Exception as exc:
        error = f"{type(exc).__name__}: {exc}"
        run.log(f"browser session failed: {error}")
        outcome = StepsOutcome(completed=completed, failed_step=BROWSER_STEP, error=error)
    finally:
        if outcome is None:
            outcome = StepsOutcome(completed=completed, failed_step=BROWSER_STEP, error="browser session interrupted")
        report = RunReport(
            run_id=run.run_id,
            url=url,
            steps=list(steps),
            completed_steps=outcome.completed,
            failed_step=outcome.failed_step,
            error=outcome.error,
            result="failed" if outcome.failed_step else "success",
            app_config=config.as_dict(),
        )
        run.finish(report)
    return report


def _drive_browser(
    run: ScenarioRun,
    steps: list[str],
    calls: list[StepCall],
    *,
    config: AppConfig,
    settings: Settings,
    headed: bool,
    progress_cb: Callable[[int, int], None],
) -> StepsOutcome:
    from playwright.sync_api import sync_playwright

    with sync_playwright() as p:
        browser = _launch_browser(p, headed=headed)
        try:
            page = browser.new_page()
            driver = AppDriver(page, settings=settings, config=config, log=run.log)
            return execute_steps(driver, run.url, steps, calls, log=run.log, progress_cb=progress_cb)
        finally:
            browser.close()


def _launch_browser(playwright_obj: Any, *, headed: bool = False) -> Any:
    kwargs: dict[str, Any] = {"headless": not headed}
    try:
        return playwright_obj.chromium.launch(channel="chrome", **kwargs)
    except Exception:
        return playwright_obj.chromium.launch(**kwargs)
