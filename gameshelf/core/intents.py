from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

IntentKind = Literal[
    "open_viewport",
    "close_viewport",
    "focus_viewport",
    "show_overlay",
    "hide_overlay",
    "enter_fullscreen",
    "exit_fullscreen",
    "show_menu",
    "notify",
]

NotifyLevel = Literal["info", "success", "warning", "error"]

BLANK_VIEWPORT_URL = "about:blank"


@dataclass(frozen=True, slots=True)
class Intent:
    """A side effect requested by the shelf for a presentation adapter to carry out.

    - `url`: set for `open_viewport` (the game entry) and `close_viewport` (the blank target).
    - `message`/`level`: set for `notify`.
    - `deferred`: the adapter should run it on the next idle tick (e.g. focusing a viewport
      that is only created by the preceding `open_viewport`).
    """

    kind: IntentKind
    url: str | None = None
    message: str | None = None
    level: NotifyLevel | None = None
    deferred: bool = False

    @staticmethod
    def open_viewport(url: str) -> "Intent":
        return Intent(kind="open_viewport", url=url)

    @staticmethod
    def close_viewport() -> "Intent":
        return Intent(kind="close_viewport", url=BLANK_VIEWPORT_URL)

    @staticmethod
    def focus_viewport() -> "Intent":
        return Intent(kind="focus_viewport", deferred=True)

    @staticmethod
    def show_overlay() -> "Intent":
        return Intent(kind="show_overlay")

    @staticmethod
    def hide_overlay() -> "Intent":
        return Intent(kind="hide_overlay")

    @staticmethod
    def enter_fullscreen() -> "Intent":
        return Intent(kind="enter_fullscreen")

    @staticmethod
    def exit_fullscreen() -> "Intent":
        return Intent(kind="exit_fullscreen")

    @staticmethod
    def show_menu() -> "Intent":
        return Intent(kind="show_menu")

    @staticmethod
    def notify(message: str, level: NotifyLevel = "info") -> "Intent":
        return Intent(kind="notify", message=message, level=level)

    def as_payload(self) -> dict[str, object]:
        """JSON-friendly dict; optional fields are left out when unset."""

        payload: dict[str, object] = {"kind": self.kind}
        if self.url is not None:
            payload["url"] = self.url
        if self.message is not None:
            payload["message"] = self.message
        if self.level is not None:
            payload["level"] = self.level
        if self.deferred:
            payload["deferred"] = True
        return payload

    def as_fields(self) -> dict[str, str]:
        # Redis Streams only carry flat string fields.
        return {k: ("1" if v is True else str(v)) for k, v in self.as_payload().items()}


def viewport_only(intents: list[Intent] | tuple[Intent, ...]) -> list[IntentKind]:
    """Kinds of every intent except notifications, in emit order."""

    return [i.kind for i in intents if i.kind != "notify"]
