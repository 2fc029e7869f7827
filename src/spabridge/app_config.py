"""Launch-time configuration overrides for the app under test."""

from __future__ import annotations

import copy
import json
from typing import Any, Iterable

from spabridge.constants import DEFAULT_APP_CONFIG
from spabridge.errors import ConfigError


class AppConfig:
    """Overrides accumulated during a scenario and applied once at launch."""

    def __init__(self, defaults: dict[str, Any] | None = None) -> None:
        self._defaults = copy.deepcopy(DEFAULT_APP_CONFIG if defaults is None else defaults)
        self._values: dict[str, Any] = copy.deepcopy(self._defaults)
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def set(self, key: str, raw_value: str) -> None:
        clean_key = str(key or "").strip()
        if not clean_key:
            raise ConfigError("Config key must not be empty")
        if self._locked:
            raise ConfigError(f"Cannot override {clean_key!r}: the app has already been launched")
        try:
            value = json.loads(raw_value)
        except (TypeError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Config value for {clean_key!r} is not valid JSON: {raw_value!r}") from exc
        self._values[clean_key] = value

    def update_from_rows(self, rows: Iterable[Iterable[str]]) -> None:
        for row in rows:
            cells = list(row)
            if len(cells) != 2:
                raise ConfigError(f"Config rows need exactly two cells (key, JSON value), got {cells!r}")
            self.set(cells[0], cells[1])

    def parse_assignment(self, text: str) -> None:
        """Apply a `KEY=JSON` assignment as given on the command line."""
        key, sep, value = str(text).partition("=")
        if not sep:
            raise ConfigError(f"Expected KEY=JSON, got {text!r}")
        self.set(key, value)

    def lock(self) -> None:
        self._locked = True

    def reset(self) -> None:
        self._values = copy.deepcopy(self._defaults)
        self._locked = False

    def as_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._values)
