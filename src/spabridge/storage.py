"""Run directories and the artifacts a scenario leaves behind.

Each scenario gets ``runs/<utc stamp>-<app host>/`` holding ``bridge.log``
and, once it ends, ``report.json``. ``runs/status.json`` always describes the
most recent scenario so ``spabridge status`` and ``spabridge logs`` can find it.
"""

from __future__ import annotations

import itertools
import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from spabridge.models import RunReport


RUNS_DIR = Path("runs")
STATUS_PATH = RUNS_DIR / "status.json"

_SLUG_RE = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class ScenarioRun:
    run_id: str
    run_dir: Path
    url: str
    step_total: int

    @property
    def bridge_log(self) -> Path:
        return self.run_dir / "bridge.log"

    @property
    def report_path(self) -> Path:
        return self.run_dir / "report.json"

    def log(self, message: str) -> None:
        stamp = datetime.now(timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        lines = message.rstrip().splitlines() or [""]
        with self.bridge_log.open("a", encoding="utf-8") as fh:
            for line in lines:
                fh.write(f"{stamp} {line}\n")

    def mark_progress(self, step_current: int) -> None:
        _write_status(self, state="running", result="partial", step_current=step_current)

    def finish(self, report: RunReport) -> None:
        """Persist the report and mark the scenario completed in the status file."""
        _dump(self.report_path, report.to_dict())
        self.log(f"result={report.result}")
        _write_status(
            self,
            state="completed",
            result=report.result,
            step_current=report.completed_steps,
            failed_step=report.failed_step,
        )


def start_run(url: str, step_total: int) -> ScenarioRun:
    RUNS_DIR.mkdir(parents=True, exist_ok=True)
    base = f"{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}-{_app_slug(url)}"
    for attempt in itertools.count(1):
        run_id = base if attempt == 1 else f"{base}-{attempt}"
        try:
            (RUNS_DIR / run_id).mkdir()
        except FileExistsError:
            continue
        break
    run = ScenarioRun(run_id=run_id, run_dir=RUNS_DIR / run_id, url=url, step_total=step_total)
    run.log(f"run_id={run_id} url={url} steps={step_total}")
    run.mark_progress(0)
    return run


def latest_status() -> dict[str, Any]:
    if not STATUS_PATH.exists():
        return {"status": "no-runs"}
    return json.loads(STATUS_PATH.read_text(encoding="utf-8"))


def latest_run_dir() -> Path | None:
    run_dir = latest_status().get("run_dir")
    return Path(run_dir) if run_dir else None


def latest_log_tail(line_count: int) -> list[str] | None:
    """Last ``line_count`` lines of the latest bridge log, or None with no runs."""
    run_dir = latest_run_dir()
    if run_dir is None:
        return None
    log_path = run_dir / "bridge.log"
    if not log_path.exists() or line_count <= 0:
        return []
    return log_path.read_text(encoding="utf-8").splitlines()[-line_count:]


def latest_report() -> RunReport | None:
    """The latest finished report; ValueError when it is not a valid report."""
    run_dir = latest_run_dir()
    if run_dir is None or not (run_dir / "report.json").exists():
        return None
    try:
        payload = json.loads((run_dir / "report.json").read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{run_dir / 'report.json'} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"{run_dir / 'report.json'} does not hold a JSON object")
    return RunReport.from_dict(payload)


def _app_slug(url: str) -> str:
    parsed = urlparse(url)
    slug = _SLUG_RE.sub("-", (parsed.netloc or parsed.path).lower()).strip("-")
    return slug[:40] or "app"


def _write_status(
    run: ScenarioRun,
    *,
    state: str,
    result: str,
    step_current: int,
    failed_step: str = "",
) -> None:
    payload: dict[str, Any] = {
        "run_id": run.run_id,
        "run_dir": str(run.run_dir),
        "url": run.url,
        "state": state,
        "result": result,
        "step_current": step_current,
        "step_total": run.step_total,
        "report_path": str(run.report_path),
        "updated_at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if failed_step:
        payload["failed_step"] = failed_step
    _dump(STATUS_PATH, payload)


def _dump(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
