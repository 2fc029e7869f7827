"""Commands addressed to the app's global test hook."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


def js_literal(value: Any) -> str:
    """Render a JSON-serializable value as a JavaScript literal.

    Quotes, backslashes and control characters are escaped by the JSON
    encoder; the two line separators JSON allows raw are escaped too.
    """
    text = json.dumps(value, ensure_ascii=False)
    return text.replace("\u2028", "\\u2028").replace("\u2029", "\\u2029")


@dataclass(frozen=True)
class Command:
    operation: str
    args: tuple[Any, ...] = ()
    payload: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.operation or not self.operation.replace("_", "").isalnum():
            raise ValueError(f"Invalid hook operation name: {self.operation!r}")
        object.__setattr__(self, "args", tuple(self.args))
        try:
            encoded = js_literal(list(self.args))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Arguments for {self.operation} are not JSON-serializable: {exc}") from exc
        object.__setattr__(self, "payload", encoded)

    def to_script(self, hook_name: str, *, await_result: bool = False) -> str:
        name = js_literal(self.operation)
        call = f"hook[{name}](...args)"
        if await_result:
            body = f"return Promise.resolve({call}).then((value) => ({{ value }}));"
        else:
            body = f"return {{ value: {call} }};"
        return "\n".join(
            [
                "() => {",
                f"  const hook = window[{js_literal(hook_name)}];",
                f"  if (!hook || typeof hook[{name}] !== 'function') {{",
                "    return { missing: true };",
                "  }",
                f"  const args = {self.payload};",
                f"  {body}",
                "}",
            ]
        )

    def describe(self) -> str:
        return f"{self.operation}({self.payload[1:-1]})"
