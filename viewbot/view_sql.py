from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional
from xml.sax.saxutils import escape

from .files import resolve_within
from .results import NotFoundError, ValidationError

_IDENT = r'(?:\w+|"[^"]+"|`[^`]+`)'
CREATE_VIEW_RE = re.compile(
    rf"CREATE\s+(?:OR\s+REPLACE\s+)?VIEW\s+(?:{_IDENT}\.)?{_IDENT}\s+AS\s+(.+)",
    re.I | re.S,
)
PARENT_SEGMENT_RE = re.compile(r"(?:^|[\\/])\.\.(?:[\\/]|$)")
DRIVE_RE = re.compile(r"^[A-Za-z]:")

XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


@dataclass
class ViewDefinition:
    name: str
    sql: Optional[str] = None
    sql_file: Optional[str] = None
    resolved_sql: Optional[str] = None


def check_relative_path(raw: str) -> None:
    """Syntactic check on the path as written."""
    if PARENT_SEGMENT_RE.search(raw):
        raise ValidationError(f"path traversal detected in SQL file path: {raw}")
    if raw.startswith(("/", "\\")) or DRIVE_RE.match(raw):
        raise ValidationError(f"SQL file path must be relative to the project root: {raw}")


def resolve_view_sql(view: ViewDefinition, root: Path, read: Optional[Callable[[Path], str]] = None) -> str:
    """Return the view's SQL: inline text first, then the file (both path checks run before reading)."""
    if view.sql and view.sql.strip():
        view.resolved_sql = view.sql.strip()
        return view.resolved_sql

    if view.sql_file:
        check_relative_path(view.sql_file)
        target = resolve_within(root, view.sql_file)
        if not target.is_file():
            raise NotFoundError(f"SQL file not found: {view.sql_file}")
        reader = read or (lambda pth: pth.read_text(encoding="utf-8"))
        text = reader(target)
        if not text.strip():
            raise NotFoundError(f"SQL file is empty: {view.sql_file}")
        view.resolved_sql = text
        return text

    raise NotFoundError(f"no SQL defined for view {view.name}")


def extract_select_statement(sql: str) -> str:
    m = CREATE_VIEW_RE.search(sql)
    if m:
        return m.group(1).strip()
    return sql.strip()


def escape_xml(s: str) -> str:
    return escape(s, XML_ENTITIES)
