"""Phrase table mapping scenario steps to driver calls."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

_STRING = r'"((?:[^"\\]|\\.)*)"'


@dataclass(frozen=True)
class StepCall:
    method: str
    args: tuple[Any, ...] = ()
    kwargs: tuple[tuple[str, Any], ...] = ()

    def apply(self, driver: Any) -> Any:
        return getattr(driver, self.method)(*self.args, **dict(self.kwargs))


def _unquote(value: str) -> str:
    return re.sub(r'\\(["\\])', r"\1", value)


_STEP_TABLE: tuple[tuple[re.Pattern[str], Callable[[re.Match[str]], StepCall]], ...] = (
    (
        re.compile(r'^I should( not)? find (".+?") inside the (.+) in the app$'),
        lambda m: StepCall("find", (m.group(2),), (("present", not m.group(1)), ("container", m.group(3)))),
    ),
    (
        re.compile(r'^I should( not)? find (".+") in the app$'),
        lambda m: StepCall("find", (m.group(2),), (("present", not m.group(1)),)),
    ),
    (
        re.compile(r'^I scroll to (".+") in the app$'),
        lambda m: StepCall("scroll_to", (m.group(1),)),
    ),
    (
        re.compile(r"^I (should not be able to )?load more items in the app$"),
        lambda m: StepCall("load_more_items", (), (("possible", not m.group(1)),)),
    ),
    (
        re.compile(r"^I press the (back|more menu|page menu|user menu|main menu) button in the app$"),
        lambda m: StepCall("press_standard_button", (m.group(1),)),
    ),
    (
        re.compile(r'^I press (".+") in the app$'),
        lambda m: StepCall("press", (m.group(1),)),
    ),
    (
        re.compile(r'^I (select|unselect) (".+") in the app$'),
        lambda m: StepCall(m.group(1), (m.group(2),)),
    ),
    (
        re.compile(r'^(".+") should( not)? be selected in the app$'),
        lambda m: StepCall("should_be_selected", (m.group(1),), (("selected", not m.group(2)),)),
    ),
    (
        re.compile(rf"^I set the field {_STRING} to {_STRING} in the app$"),
        lambda m: StepCall("set_field", (_unquote(m.group(1)), _unquote(m.group(2)))),
    ),
    (
        re.compile(rf"^the header should be {_STRING} in the app$"),
        lambda m: StepCall("header_should_be", (_unquote(m.group(1)),)),
    ),
    (
        re.compile(r"^I close the popup in the app$"),
        lambda m: StepCall("close_popup"),
    ),
    (
        re.compile(r"^I run (?:cron|background) tasks in the app$"),
        lambda m: StepCall("run_background_tasks"),
    ),
    (
        re.compile(r"^I wait loading to finish in the app$"),
        lambda m: StepCall("wait_loading_to_finish"),
    ),
    (
        re.compile(r'^I switch offline mode to "(true|false)"$'),
        lambda m: StepCall("switch_offline_mode", (m.group(1) == "true",)),
    ),
    (
        re.compile(r"^I wait the app to restart$"),
        lambda m: StepCall("wait_for_restart"),
    ),
    (
        re.compile(r"^I swipe to the (left|right) in the app$"),
        lambda m: StepCall("swipe", (m.group(1),)),
    ),
)

_KEYWORD_RE = re.compile(r"^(?:given|when|then|and|but)\s+", flags=re.IGNORECASE)


def normalize_step(text: str) -> str:
    clean = " ".join(str(text or "").split())
    return _KEYWORD_RE.sub("", clean)


def parse_step(text: str) -> StepCall:
    normalized = normalize_step(text)
    for pattern, build in _STEP_TABLE:
        match = pattern.match(normalized)
        if match is not None:
            return build(match)
    raise ValueError(f"Unknown step: {text!r}")


def read_steps_file(lines: list[str]) -> list[str]:
    steps: list[str] = []
    for line in lines:
        clean = line.strip()
        if not clean or clean.startswith("#"):
            continue
        steps.append(clean)
    return steps
