"""Run report model with strict parsing."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from spabridge.constants import ALLOWED_RESULT_VALUES, REQUIRED_REPORT_KEYS


@dataclass(frozen=True)
class RunReport:
    run_id: str
    url: str
    steps: list[str]
    completed_steps: int
    failed_step: str
    error: str
    result: str
    app_config: dict[str, Any]

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RunReport":
        keys = set(payload.keys())
        expected = set(REQUIRED_REPORT_KEYS)
        if keys != expected:
            missing = sorted(expected - keys)
            extra = sorted(keys - expected)
            raise ValueError(f"Invalid keys. missing={missing}, extra={extra}")

        completed = payload["completed_steps"]
        if not isinstance(completed, int) or isinstance(completed, bool) or completed < 0:
            raise ValueError("'completed_steps' must be a non-negative integer")
        app_config = payload["app_config"]
        if not isinstance(app_config, dict):
            raise ValueError("'app_config' must be an object")

        report = cls(
            run_id=_expect_str(payload, "run_id"),
            url=_expect_str(payload, "url"),
            steps=_expect_str_list(payload, "steps"),
            completed_steps=completed,
            failed_step=_expect_str(payload, "failed_step"),
            error=_expect_str(payload, "error"),
            result=_expect_str(payload, "result"),
            app_config=app_config,
        )
        if report.result not in ALLOWED_RESULT_VALUES:
            raise ValueError(
                f"Invalid result '{report.result}'. Must be one of "
                f"{sorted(ALLOWED_RESULT_VALUES)}"
            )
        return report

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _expect_str(payload: dict[str, Any], key: str) -> str:
    value = payload[key]
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value


def _expect_str_list(payload: dict[str, Any], key: str) -> list[str]:
    value = payload[key]
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a list of strings")
    if any(not isinstance(item, str) for item in value):
        raise ValueError(f"'{key}' must contain only strings")
    return value
