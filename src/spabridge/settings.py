"""Environment-driven timing and hook settings."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    hook_name: str = "behat"
    poll_interval_seconds: float = 0.5
    ui_timeout_seconds: float = 6.0
    long_timeout_seconds: float = 60.0
    settle_timeout_seconds: float = 20.0
    settle_poll_seconds: float = 0.1
    animation_pause_seconds: float = 0.3
    pending_expression: str = "window.M.util.pending_js.length"
    change_detection_script: str = "ngZone.run(() => null)"
    loading_selector: str = "core-loading ion-spinner"
    background_task_script: str = "cronProvider.forceSyncExecution()"
    offline_script: str = "appProvider.setForceOffline({value})"
    window_size: tuple[int, int] = (360, 720)


def load_settings() -> Settings:
    defaults = Settings()
    return Settings(
        hook_name=_env_str("SPABRIDGE_HOOK_NAME", defaults.hook_name),
        poll_interval_seconds=_env_seconds("SPABRIDGE_POLL_INTERVAL_SECONDS", defaults.poll_interval_seconds),
        ui_timeout_seconds=_env_seconds("SPABRIDGE_UI_TIMEOUT_SECONDS", defaults.ui_timeout_seconds),
        long_timeout_seconds=_env_seconds("SPABRIDGE_LONG_TIMEOUT_SECONDS", defaults.long_timeout_seconds),
        settle_timeout_seconds=_env_seconds("SPABRIDGE_SETTLE_TIMEOUT_SECONDS", defaults.settle_timeout_seconds),
        settle_poll_seconds=_env_seconds("SPABRIDGE_SETTLE_POLL_SECONDS", defaults.settle_poll_seconds),
        animation_pause_seconds=_env_seconds(
            "SPABRIDGE_ANIMATION_PAUSE_SECONDS", defaults.animation_pause_seconds, minimum=0.0
        ),
        pending_expression=_env_str("SPABRIDGE_PENDING_EXPRESSION", defaults.pending_expression),
        change_detection_script=_env_str("SPABRIDGE_CHANGE_DETECTION_SCRIPT", defaults.change_detection_script),
        loading_selector=_env_str("SPABRIDGE_LOADING_SELECTOR", defaults.loading_selector),
        background_task_script=_env_str("SPABRIDGE_BACKGROUND_TASK_SCRIPT", defaults.background_task_script),
        offline_script=_env_str("SPABRIDGE_OFFLINE_SCRIPT", defaults.offline_script),
        window_size=parse_window_size(os.getenv("SPABRIDGE_WINDOW_SIZE", ""), defaults.window_size),
    )


def parse_window_size(raw: str, default: tuple[int, int] = (360, 720)) -> tuple[int, int]:
    text = str(raw or "").strip().lower()
    if not text:
        return default
    width, sep, height = text.partition("x")
    if not sep:
        raise SystemExit(f"Invalid SPABRIDGE_WINDOW_SIZE: {raw!r} (expected WIDTHxHEIGHT)")
    try:
        return max(1, int(width)), max(1, int(height))
    except ValueError as exc:
        raise SystemExit(f"Invalid SPABRIDGE_WINDOW_SIZE: {raw!r} (expected WIDTHxHEIGHT)") from exc


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name, "").strip()
    return value or default


def _env_seconds(name: str, default: float, *, minimum: float = 0.01) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(minimum, float(raw))
    except ValueError as exc:
        raise SystemExit(f"Invalid {name}: {raw!r} (expected seconds)") from exc
