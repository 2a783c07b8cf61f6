from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional


class WizardError(Exception):
    """A failure that stops at the stage boundary."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailure(WizardError):
    """Input rejected locally; the processing service was never contacted."""


class RemoteFailure(WizardError):
    """The service answered with an error or could not be reached."""


class StaleResult(WizardError):
    """A response arrived for a stage that moved on. Never shown to the user."""


@dataclass(frozen=True)
class Notice:
    message: str
    kind: str = "error"  # "error" | "info"


class NoticeChannel:
    """Pending notifications posted by stages, drained by the UI."""

    def __init__(self) -> None:
        self._pending: Deque[Notice] = deque()

    def post(self, message: str, kind: str = "error") -> Notice:
        notice = Notice(message, kind)
        self._pending.append(notice)
        return notice

    def drain(self) -> List[Notice]:
        out = list(self._pending)
        self._pending.clear()
        return out

    def latest(self) -> Optional[Notice]:
        return self._pending[-1] if self._pending else None
