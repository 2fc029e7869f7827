"""Interpretation of the app's string-encoded outcomes.

The app answers every hook call with one of `OK`, `OK:<payload>`, `YES`,
`NO` or `ERROR: <message>`. Those strings stop here: callers only see the
tagged outcome types below.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from spabridge.constants import (
    ERROR_PREFIX,
    OUTCOME_NO,
    OUTCOME_OK,
    OUTCOME_YES,
    PAYLOAD_PREFIX,
)


class Shape(Enum):
    UNIT = "unit"
    BOOLEAN = "boolean"
    PAYLOAD = "payload"


@dataclass(frozen=True)
class Success:
    payload: str | None = None


@dataclass(frozen=True)
class BoolOutcome:
    value: bool


@dataclass(frozen=True)
class Failure:
    message: str
    raw: str = ""


@dataclass(frozen=True)
class ProtocolViolation:
    raw: Any

    @property
    def message(self) -> str:
        return f"unexpected result {self.raw!r}"


Outcome = Union[Success, BoolOutcome, Failure, ProtocolViolation]


def interpret(raw: Any, shape: Shape = Shape.UNIT) -> Outcome:
    if not isinstance(raw, str):
        return ProtocolViolation(raw)
    if raw.startswith(ERROR_PREFIX):
        return Failure(message=raw[len(ERROR_PREFIX):].lstrip(), raw=raw)
    if shape is Shape.UNIT:
        if raw == OUTCOME_OK:
            return Success()
        return ProtocolViolation(raw)
    if shape is Shape.BOOLEAN:
        if raw == OUTCOME_YES:
            return BoolOutcome(True)
        if raw == OUTCOME_NO:
            return BoolOutcome(False)
        return ProtocolViolation(raw)
    if raw.startswith(PAYLOAD_PREFIX):
        return Success(payload=raw[len(PAYLOAD_PREFIX):])
    return ProtocolViolation(raw)


def describe(outcome: Outcome) -> str:
    if isinstance(outcome, Success):
        return OUTCOME_OK if outcome.payload is None else f"{PAYLOAD_PREFIX}{outcome.payload}"
    if isinstance(outcome, BoolOutcome):
        return OUTCOME_YES if outcome.value else OUTCOME_NO
    if isinstance(outcome, Failure):
        return outcome.raw or f"{ERROR_PREFIX} {outcome.message}"
    return outcome.message
