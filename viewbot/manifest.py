from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from .results import EditResult, Outcome
from .source import SourceDocument, Witness, witness_present

COUNTER_MAX = 999

# ---------------- fragments ----------------

@dataclass(frozen=True)
class ManifestFragment:
    """A block of lines spliced into an aggregating file, plus the witness proving it is there."""
    lines: Tuple[str, ...]
    witness: Witness
    blank_after: bool = False


def splice_fragment(text: str, fragment: ManifestFragment, anchors: Sequence[str]) -> EditResult:
    """Insert `fragment` before the line holding the first anchor found.

    The anchor stays in place, so later fragments land between the earlier
    ones and the anchor. Without any anchor the fragment is appended at the
    end of the file and the reason says which anchors were missing.
    """
    if witness_present(text, fragment.witness):
        return EditResult.unchanged(text, Outcome.SKIPPED_ALREADY_PRESENT)

    doc = SourceDocument(text)
    block = list(fragment.lines) + ([""] if fragment.blank_after else [])

    for anchor in anchors:
        offset = text.find(anchor)
        if offset == -1:
            continue
        idx = doc.line_of(offset)
        return EditResult(Outcome.APPLIED, doc.render(doc.lines[:idx] + block + doc.lines[idx:]))

    lines = list(doc.lines)
    if lines and lines[-1] == "":
        lines.pop()
    lines += [""] + list(fragment.lines) + [""]
    missing = ", ".join(anchors) if anchors else "none given"
    return EditResult(Outcome.APPLIED, doc.render(lines),
                      f"anchor not found ({missing}); appended at end of file", fallback=True)

# ---------------- timestamps ----------------

class ChangelogClock:
    """Second-resolution timestamps made unique within a run by a 3-digit counter.

    The counter restarts every second. A thousandth stamp within one second
    borrows the next second, so stamps stay 17 digits and sort in issue order.
    """

    def __init__(self, now: Optional[Callable[[], _dt.datetime]] = None) -> None:
        self._now = now or _dt.datetime.now
        self._last: Optional[_dt.datetime] = None
        self._counter = 0

    def next(self) -> str:
        now = self._now().replace(microsecond=0)
        if self._last is not None and now <= self._last:
            now = self._last
            self._counter += 1
            if self._counter > COUNTER_MAX:
                now += _dt.timedelta(seconds=1)
                self._counter = 0
        else:
            self._counter = 0
        self._last = now
        return f"{now.strftime('%Y%m%d%H%M%S')}{self._counter:03d}"
