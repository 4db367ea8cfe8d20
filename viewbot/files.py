from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set, Tuple

import javalang

from .results import EditResult, MalformedInputError, ValidationError

Transform = Callable[[str], Tuple[str, List[Tuple[str, EditResult]]]]

# ---------------- tiny utils ----------------

def sha256_text(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8", errors="ignore")).hexdigest()


def resolve_within(root: Path, raw: str) -> Path:
    """Join `raw` onto `root`, refusing anything that resolves outside it."""
    base = root.resolve()
    target = (base / raw).resolve()
    try:
        target.relative_to(base)
    except ValueError:
        raise ValidationError(f"path is outside the project directory: {raw}") from None
    return target


def java_parses(text: str) -> bool:
    try:
        javalang.parse.parse(text)
    except Exception:
        return False
    return True

# ---------------- project files ----------------

class ProjectFiles:
    """File primitives relative to one project root.

    Newlines are never translated on read or write. In dry-run mode writes
    and deletes are kept in memory, so later reads in the same run still see
    them.
    """

    def __init__(self, root: Path, dry_run: bool = False) -> None:
        self.root = Path(root).resolve()
        self.dry_run = dry_run
        self.written: Dict[str, str] = {}
        self.deleted: Set[str] = set()
        self._pending: Dict[str, str] = {}

    def path(self, rel: str) -> Path:
        return resolve_within(self.root, rel)

    def exists(self, rel: str) -> bool:
        if rel in self.deleted:
            return False
        return rel in self._pending or self.path(rel).is_file()

    def read(self, rel: str) -> str:
        if rel in self.deleted:
            raise FileNotFoundError(rel)
        if rel in self._pending:
            return self._pending[rel]
        try:
            with open(self.path(rel), "r", encoding="utf-8", newline="") as fh:
                return fh.read()
        except UnicodeDecodeError as e:
            raise MalformedInputError(f"not valid UTF-8: {rel} (byte {e.start})") from None

    def write(self, rel: str, text: str) -> None:
        self.deleted.discard(rel)
        self.written[rel] = sha256_text(text)
        if self.dry_run:
            self._pending[rel] = text
            return
        target = self.path(rel)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(target.name + ".viewbot-tmp")
        try:
            with open(tmp, "w", encoding="utf-8", newline="") as fh:
                fh.write(text)
            os.replace(tmp, target)
        finally:
            if tmp.exists():
                tmp.unlink()

    def delete(self, rel: str) -> None:
        if not self.exists(rel):
            raise FileNotFoundError(rel)
        self._pending.pop(rel, None)
        self.deleted.add(rel)
        if not self.dry_run:
            self.path(rel).unlink()

    def list_dir(self, rel: str) -> List[str]:
        names = set()
        d = self.path(rel)
        if d.is_dir():
            names.update(x.name for x in d.iterdir() if x.is_file())
        prefix = rel.rstrip("/") + "/"
        for pending in self._pending:
            if pending.startswith(prefix) and "/" not in pending[len(prefix):]:
                names.add(pending[len(prefix):])
        names.difference_update(x[len(prefix):] for x in self.deleted if x.startswith(prefix))
        return sorted(names)

# ---------------- read / transform / write ----------------

@dataclass
class FileEdit:
    path: str
    changed: bool = False
    results: List[Tuple[str, EditResult]] = field(default_factory=list)
    error: Optional[Exception] = None
    reverted: bool = False


def edit_file(files: ProjectFiles, rel: str, transform: Transform) -> FileEdit:
    """Read, transform, and write back only if the whole transform succeeded.

    Any exception from `transform` leaves the file as it was. Edited Java that
    javalang could parse before but not after is also left as it was.
    """
    original = files.read(rel)
    try:
        text, results = transform(original)
    except Exception as e:
        return FileEdit(rel, error=e)

    if text == original:
        return FileEdit(rel, results=results)

    if rel.endswith(".java") and not java_parses(text) and java_parses(original):
        err = MalformedInputError("edited source no longer parses; original kept")
        return FileEdit(rel, results=results, error=err, reverted=True)

    files.write(rel, text)
    return FileEdit(rel, changed=True, results=results)
