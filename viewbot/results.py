from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class ViewBotError(Exception):
    """Base class for recoverable failures while transforming one file or entity."""


class ValidationError(ViewBotError):
    """Disallowed input, e.g. a SQL file path that escapes the project root."""


class NotFoundError(ViewBotError):
    """An expected anchor, file or SQL definition is absent."""


class MalformedInputError(ViewBotError):
    """Brace scan reached end of file without balancing."""


class Outcome(enum.Enum):
    APPLIED = "applied"
    SKIPPED_ALREADY_PRESENT = "skipped-already-present"
    SKIPPED_NO_ANCHOR = "skipped-no-anchor"
    FAILED = "failed"


@dataclass(frozen=True)
class EditResult:
    outcome: Outcome
    text: str
    reason: str = ""
    error: Optional[ViewBotError] = None
    fallback: bool = False

    @property
    def applied(self) -> bool:
        return self.outcome is Outcome.APPLIED

    @classmethod
    def unchanged(cls, text: str, outcome: Outcome, reason: str = "") -> "EditResult":
        return cls(outcome=outcome, text=text, reason=reason)
