import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from fake_app import FakeAppPage, fast_settings
from spabridge.app_config import AppConfig
from spabridge.errors import ActionTimeoutError, BridgeError
from spabridge.models import RunReport
from spabridge.runner import execute_steps, run_scenario
from spabridge.steps import parse_step


class _RecordingDriver:
    def __init__(self, fail_on: str = "", launch_error: Exception | None = None) -> None:
        self.fail_on = fail_on
        self.launch_error = launch_error
        self.calls: list[tuple] = []

    def launch(self, url: str) -> None:
        if self.launch_error is not None:
            raise self.launch_error
        self.calls.append(("launch", url))

    def press(self, locator: str) -> None:
        if locator == self.fail_on:
            raise ActionTimeoutError(f"Error pressing item {locator}")
        self.calls.append(("press", locator))

    def close_popup(self) -> None:
        self.calls.append(("close_popup",))


class ExecuteStepsTests(unittest.TestCase):
    def test_runs_all_steps_in_order(self) -> None:
        steps = ['I press "A" in the app', "I close the popup in the app"]
        driver = _RecordingDriver()
        log: list[str] = []
        progress: list[tuple[int, int]] = []
        outcome = execute_steps(
            driver,
            "http://app",
            steps,
            [parse_step(s) for s in steps],
            log=log.append,
            progress_cb=lambda cur, total: progress.append((cur, total)),
        )
        self.assertEqual(outcome.completed, 2)
        self.assertEqual(outcome.failed_step, "")
        self.assertEqual(driver.calls, [("launch", "http://app"), ("press", '"A"'), ("close_popup",)])
        self.assertEqual(progress, [(1, 2), (2, 2)])

    def test_stops_at_first_failure(self) -> None:
        steps = ['I press "A" in the app', 'I press "B" in the app', "I close the popup in the app"]
        driver = _RecordingDriver(fail_on='"B"')
        log: list[str] = []
        outcome = execute_steps(driver, "http://app", steps, [parse_step(s) for s in steps], log=log.append)
        self.assertEqual(outcome.completed, 1)
        self.assertEqual(outcome.failed_step, 'I press "B" in the app')
        self.assertIn("ActionTimeoutError", outcome.error)
        self.assertNotIn(("close_popup",), driver.calls)
        self.assertTrue(any("step 2 failed" in line for line in log))

    def test_launch_failure_is_reported(self) -> None:
        driver = _RecordingDriver(launch_error=BridgeError("net::ERR_CONNECTION_REFUSED"))
        outcome = execute_steps(driver, "http://app", [], [], log=lambda _m: None)
        self.assertEqual(outcome.failed_step, "launch")
        self.assertIn("ERR_CONNECTION_REFUSED", outcome.error)


class RunScenarioTests(unittest.TestCase):
    def test_writes_report_and_status(self) -> None:
        page = FakeAppPage()
        page.handlers["init"] = lambda options: "OK"
        page.handlers["press"] = lambda loc: "OK"
        browser = MagicMock()
        browser.new_page.return_value = page
        playwright_obj = MagicMock()
        playwright_obj.chromium.launch.return_value = browser
        manager = MagicMock()
        manager.__enter__.return_value = playwright_obj

        with tempfile.TemporaryDirectory() as tmp:
            runs_dir = Path(tmp) / "runs"
            with patch("spabridge.storage.RUNS_DIR", runs_dir), patch(
                "spabridge.storage.STATUS_PATH", runs_dir / "status.json"
            ), patch("playwright.sync_api.sync_playwright", return_value=manager):
                config = AppConfig()
                config.set("theme", '"dark"')
                report = run_scenario(
                    "http://localhost:8100",
                    ['I press "Continue" in the app'],
                    app_config=config,
                    settings=fast_settings(),
                )

            self.assertEqual(report.result, "success")
            self.assertEqual(report.completed_steps, 1)
            self.assertEqual(report.app_config, {"disableUserTours": True, "theme": "dark"})
            stored = json.loads((runs_dir / report.run_id / "report.json").read_text(encoding="utf-8"))
            self.assertEqual(RunReport.from_dict(stored), report)
            status = json.loads((runs_dir / "status.json").read_text(encoding="utf-8"))
            self.assertEqual(status["result"], "success")
            self.assertEqual(status["state"], "completed")
            log_text = (runs_dir / report.run_id / "bridge.log").read_text(encoding="utf-8")
            self.assertIn('action=press target="Continue"', log_text)
            browser.close.assert_called_once()

    def _run_with_browser(self, runs_dir: Path, playwright_obj: MagicMock):
        manager = MagicMock()
        manager.__enter__.return_value = playwright_obj
        manager.__exit__.return_value = False
        with patch("spabridge.storage.RUNS_DIR", runs_dir), patch(
            "spabridge.storage.STATUS_PATH", runs_dir / "status.json"
        ), patch("playwright.sync_api.sync_playwright", return_value=manager):
            return run_scenario(
                "http://localhost:8100",
                ['I press "Continue" in the app'],
                settings=fast_settings(),
            )

    def test_browser_that_never_starts_still_completes_the_run(self) -> None:
        playwright_obj = MagicMock()
        playwright_obj.chromium.launch.side_effect = RuntimeError("no browser")

        with tempfile.TemporaryDirectory() as tmp:
            runs_dir = Path(tmp) / "runs"
            report = self._run_with_browser(runs_dir, playwright_obj)

            self.assertEqual(report.result, "failed")
            self.assertEqual(report.failed_step, "browser")
            self.assertEqual(report.error, "RuntimeError: no browser")
            self.assertEqual(report.completed_steps, 0)
            stored = json.loads((runs_dir / report.run_id / "report.json").read_text(encoding="utf-8"))
            self.assertEqual(stored["result"], "failed")
            status = json.loads((runs_dir / "status.json").read_text(encoding="utf-8"))
            self.assertEqual(status["state"], "completed")
            self.assertEqual(status["result"], "failed")
            self.assertEqual(status["failed_step"], "browser")
            log_text = (runs_dir / report.run_id / "bridge.log").read_text(encoding="utf-8")
            self.assertIn("browser session failed: RuntimeError: no browser", log_text)
        self.assertEqual(playwright_obj.chromium.launch.call_count, 2)

    def test_page_creation_failure_closes_the_browser(self) -> None:
        browser = MagicMock()
        browser.new_page.side_effect = RuntimeError("target closed")
        playwright_obj = MagicMock()
        playwright_obj.chromium.launch.return_value = browser

        with tempfile.TemporaryDirectory() as tmp:
            runs_dir = Path(tmp) / "runs"
            report = self._run_with_browser(runs_dir, playwright_obj)
            status = json.loads((runs_dir / "status.json").read_text(encoding="utf-8"))

        self.assertEqual(report.failed_step, "browser")
        self.assertEqual(status["state"], "completed")
        browser.close.assert_called_once()

    def test_unknown_step_fails_before_launching(self) -> None:
        with patch("playwright.sync_api.sync_playwright") as sp:
            with self.assertRaises(ValueError):
                run_scenario("http://localhost:8100", ["I dance in the app"])
        sp.assert_not_called()


class RunReportTests(unittest.TestCase):
    def _payload(self) -> dict:
        return {
            "run_id": "r1",
            "url": "http://app",
            "steps": ["I close the popup in the app"],
            "completed_steps": 1,
            "failed_step": "",
            "error": "",
            "result": "success",
            "app_config": {},
        }

    def test_round_trip(self) -> None:
        report = RunReport.from_dict(self._payload())
        self.assertEqual(report.to_dict(), self._payload())

    def test_rejects_unknown_result_and_keys(self) -> None:
        payload = self._payload()
        payload["result"] = "partial"
        with self.assertRaises(ValueError):
            RunReport.from_dict(payload)
        payload = self._payload()
        payload["extra"] = 1
        with self.assertRaises(ValueError):
            RunReport.from_dict(payload)
        payload = self._payload()
        payload["completed_steps"] = True
        with self.assertRaises(ValueError):
            RunReport.from_dict(payload)


if __name__ == "__main__":
    unittest.main()
