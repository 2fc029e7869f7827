"""Deadline-bounded polling of a unit of work."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Union

from spabridge.errors import ActionTimeoutError


class Retry:
    """Returned by a unit of work whose condition is not met yet."""

    __slots__ = ("detail",)

    def __init__(self, detail: str = "") -> None:
        self.detail = detail

    def __repr__(self) -> str:
        return f"Retry({self.detail!r})"


@dataclass(frozen=True)
class Done:
    value: Any = None


@dataclass(frozen=True)
class Fatal:
    error: BaseException


Step = Union[Retry, Done, Fatal]


class RetryLoop:
    def __init__(
        self,
        *,
        poll_interval_seconds: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.poll_interval_seconds = max(0.01, float(poll_interval_seconds))
        self.clock = clock
        self.sleep = sleep

    def run(
        self,
        unit: Callable[[], Step],
        *,
        timeout_seconds: float,
        on_timeout: BaseException | Callable[[str], BaseException] | None = None,
        description: str = "action",
    ) -> Any:
        """Poll `unit` until it returns `Done` or `timeout_seconds` elapse.

        `on_timeout` is either the exception to raise or a factory that
        receives the detail of the last `Retry`. `Fatal` results and
        exceptions raised by `unit` stop the loop at once. The last poll
        starts no later than the deadline, so a timeout is raised within one
        poll interval after it.
        """
        deadline = self.clock() + max(0.0, float(timeout_seconds))
        last_detail = ""
        while True:
            step = unit()
            if isinstance(step, Done):
                return step.value
            if isinstance(step, Fatal):
                raise step.error
            if not isinstance(step, Retry):
                raise TypeError(f"{description}: unit of work returned {step!r}")
            last_detail = step.detail or last_detail
            remaining = deadline - self.clock()
            if remaining <= 0:
                break
            self.sleep(min(self.poll_interval_seconds, remaining))
        if isinstance(on_timeout, BaseException):
            raise on_timeout
        if on_timeout is not None:
            raise on_timeout(last_detail)
        raise ActionTimeoutError(
            f"Timed out after {float(timeout_seconds):g}s waiting for {description}",
            detail=last_detail,
        )
