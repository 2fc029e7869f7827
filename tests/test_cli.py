import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

from spabridge.cli import logs_command, main, run_command
from spabridge.models import RunReport


def _report(result: str = "success", failed_step: str = "", error: str = "") -> RunReport:
    return RunReport(
        run_id="r1",
        url="http://localhost:8100",
        steps=['I press "OK" in the app'],
        completed_steps=0 if failed_step else 1,
        failed_step=failed_step,
        error=error,
        result=result,
        app_config={"disableUserTours": True},
    )


class RunCommandTests(unittest.TestCase):
    def test_collects_steps_and_config(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            steps_file = Path(tmp) / "scenario.steps"
            steps_file.write_text("# comment\nI close the popup in the app\n", encoding="utf-8")
            buf = io.StringIO()
            with patch("spabridge.cli.run_scenario", return_value=_report()) as run_mock, redirect_stdout(buf):
                run_command(
                    "http://localhost:8100",
                    steps=['I press "OK" in the app'],
                    steps_file=steps_file,
                    config_assignments=['forcedLanguage="es"'],
                    headed=False,
                )
        args, kwargs = run_mock.call_args
        self.assertEqual(args[1], ['I press "OK" in the app', "I close the popup in the app"])
        self.assertEqual(kwargs["app_config"].as_dict(), {"disableUserTours": True, "forcedLanguage": "es"})
        self.assertEqual(json.loads(buf.getvalue())["result"], "success")

    def test_rejects_unknown_steps_before_running(self) -> None:
        with patch("spabridge.cli.run_scenario") as run_mock:
            with self.assertRaises(SystemExit):
                run_command(
                    "http://localhost:8100",
                    steps=["I dance in the app"],
                    steps_file=None,
                    config_assignments=[],
                    headed=False,
                )
        run_mock.assert_not_called()

    def test_rejects_invalid_config(self) -> None:
        with patch("spabridge.cli.run_scenario") as run_mock:
            with self.assertRaises(SystemExit):
                run_command(
                    "http://localhost:8100",
                    steps=["I close the popup in the app"],
                    steps_file=None,
                    config_assignments=["theme=dark"],
                    headed=False,
                )
        run_mock.assert_not_called()

    def test_requires_steps(self) -> None:
        with self.assertRaises(SystemExit):
            run_command("http://localhost:8100", steps=[], steps_file=None, config_assignments=[], headed=False)

    def test_failed_run_exits_non_zero(self) -> None:
        failed = _report(result="failed", failed_step='I press "OK" in the app', error="ActionTimeoutError: x")
        with patch("spabridge.cli.run_scenario", return_value=failed), redirect_stdout(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                run_command(
                    "http://localhost:8100",
                    steps=['I press "OK" in the app'],
                    steps_file=None,
                    config_assignments=[],
                    headed=False,
                )
        self.assertIn("ActionTimeoutError", str(ctx.exception))

    def test_main_dispatches_run(self) -> None:
        with patch("spabridge.cli.run_command") as run_mock:
            main(["run", "http://localhost:8100", "--step", "I close the popup in the app", "--config", "a=1", "--headed"])
        run_mock.assert_called_once_with(
            "http://localhost:8100",
            steps=["I close the popup in the app"],
            steps_file=None,
            config_assignments=["a=1"],
            headed=True,
        )


class StatusAndLogsTests(unittest.TestCase):
    def test_status_without_runs(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            buf = io.StringIO()
            with patch("spabridge.storage.STATUS_PATH", Path(tmp) / "status.json"), redirect_stdout(buf):
                main(["status"])
        self.assertEqual(json.loads(buf.getvalue()), {"status": "no-runs"})

    def test_logs_tail_latest_run(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            run_dir = Path(tmp) / "r1"
            run_dir.mkdir()
            (run_dir / "bridge.log").write_text("one\ntwo\nthree\n", encoding="utf-8")
            status_path = Path(tmp) / "status.json"
            status_path.write_text(json.dumps({"run_dir": str(run_dir)}), encoding="utf-8")
            buf = io.StringIO()
            with patch("spabridge.storage.STATUS_PATH", status_path), redirect_stdout(buf):
                logs_command(2)
        self.assertEqual(buf.getvalue().splitlines(), ["two", "three"])

    def test_logs_without_runs_exits(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with patch("spabridge.storage.STATUS_PATH", Path(tmp) / "status.json"):
                with self.assertRaises(SystemExit):
                    logs_command(10)

    def _write_latest_report(self, tmp: str, payload: dict) -> Path:
        run_dir = Path(tmp) / "r1"
        run_dir.mkdir()
        (run_dir / "report.json").write_text(json.dumps(payload), encoding="utf-8")
        status_path = Path(tmp) / "status.json"
        status_path.write_text(json.dumps({"run_dir": str(run_dir)}), encoding="utf-8")
        return status_path

    def test_report_prints_latest_report(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            status_path = self._write_latest_report(tmp, _report().to_dict())
            buf = io.StringIO()
            with patch("spabridge.storage.STATUS_PATH", status_path), redirect_stdout(buf):
                main(["report"])
        self.assertEqual(json.loads(buf.getvalue()), _report().to_dict())

    def test_report_of_failed_run_exits_non_zero(self) -> None:
        failed = _report(result="failed", failed_step="browser", error="RuntimeError: no browser")
        with tempfile.TemporaryDirectory() as tmp:
            status_path = self._write_latest_report(tmp, failed.to_dict())
            with patch("spabridge.storage.STATUS_PATH", status_path), redirect_stdout(io.StringIO()):
                with self.assertRaises(SystemExit) as ctx:
                    main(["report"])
        self.assertIn("no browser", str(ctx.exception))

    def test_report_rejects_tampered_file(self) -> None:
        payload = _report().to_dict()
        payload["result"] = "partial"
        with tempfile.TemporaryDirectory() as tmp:
            status_path = self._write_latest_report(tmp, payload)
            with patch("spabridge.storage.STATUS_PATH", status_path):
                with self.assertRaises(SystemExit) as ctx:
                    main(["report"])
        self.assertIn("unreadable", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
