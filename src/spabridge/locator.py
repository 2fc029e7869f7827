"""Parsing of human-authored element locators."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from spabridge.errors import LocatorSyntaxError

_QUOTED = r'"((?:[^"\\]|\\.)*)"'
_LOCATOR_RE = re.compile(
    rf"^\s*{_QUOTED}(?:\s+{_QUOTED})?(?:\s+near\s+{_QUOTED}(?:\s+{_QUOTED})?)?\s*$"
)


@dataclass(frozen=True)
class ElementLocator:
    text: str
    selector: str | None = None
    near_text: str | None = None
    near_selector: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"text": self.text}
        if self.selector:
            payload["selector"] = self.selector
        if self.near_text:
            near: dict[str, Any] = {"text": self.near_text}
            if self.near_selector:
                near["selector"] = self.near_selector
            payload["near"] = near
        return payload

    def describe(self) -> str:
        out = f'"{self.text}"'
        if self.selector:
            out += f' "{self.selector}"'
        if self.near_text:
            out += f' near "{self.near_text}"'
            if self.near_selector:
                out += f' "{self.near_selector}"'
        return out


def parse_locator(raw: str) -> ElementLocator:
    """Parse `"text"`, `"text" "selector"` or `"text" near "other"`.

    Quotes inside a value are written as `\\"`.
    """
    match = _LOCATOR_RE.match(str(raw or ""))
    if match is None:
        raise LocatorSyntaxError(f"Invalid element locator: {raw!r}")
    text, selector, near_text, near_selector = (
        _unescape(group) if group is not None else None for group in match.groups()
    )
    if not text:
        raise LocatorSyntaxError(f"Element locator has empty text: {raw!r}")
    return ElementLocator(
        text=text,
        selector=selector or None,
        near_text=near_text or None,
        near_selector=near_selector or None,
    )


def coerce_locator(value: ElementLocator | str) -> ElementLocator:
    if isinstance(value, ElementLocator):
        return value
    return parse_locator(value)


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value)
