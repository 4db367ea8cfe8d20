from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

LEVEL_STYLES: Dict[str, str] = {
    "info": "cyan",
    "warn": "yellow",
    "error": "bold red",
}


@dataclass(frozen=True)
class Diagnostic:
    level: str
    message: str
    entity: Optional[str] = None
    path: Optional[str] = None

    def render(self) -> Text:
        where = " ".join(x for x in (self.entity, self.path) if x)
        return Text.assemble(
            (f"[{self.level.upper()}]", LEVEL_STYLES.get(self.level, "")),
            " ",
            (f"{where}: " if where else "", "dim"),
            self.message,
        )


class Reporter:
    """Collects diagnostics for a run and echoes them to the console."""

    def __init__(self, console: Optional[Console] = None, quiet: bool = False) -> None:
        self.console = console or Console(highlight=False)
        self.quiet = quiet
        self.items: List[Diagnostic] = []

    def emit(self, level: str, message: str, entity: Optional[str] = None, path: Optional[str] = None) -> Diagnostic:
        if level not in LEVEL_STYLES:
            raise ValueError(f"unknown diagnostic level: {level}")
        d = Diagnostic(level, message, entity, path)
        self.items.append(d)
        if not (self.quiet and level == "info"):
            self.console.print(d.render())
        return d

    def info(self, message: str, entity: Optional[str] = None, path: Optional[str] = None) -> Diagnostic:
        return self.emit("info", message, entity, path)

    def warn(self, message: str, entity: Optional[str] = None, path: Optional[str] = None) -> Diagnostic:
        return self.emit("warn", message, entity, path)

    def error(self, message: str, entity: Optional[str] = None, path: Optional[str] = None) -> Diagnostic:
        return self.emit("error", message, entity, path)

    def for_path(self, path: str) -> List[Diagnostic]:
        return [d for d in self.items if d.path == path]

    def count(self, level: str) -> int:
        return sum(1 for d in self.items if d.level == level)

    def summary_table(self, title: str = "viewbot run") -> Table:
        t = Table(title=title)
        t.add_column("Level")
        t.add_column("Entity")
        t.add_column("File")
        t.add_column("Message")
        for d in self.items:
            if d.level == "info":
                continue
            t.add_row(
                Text(d.level, style=LEVEL_STYLES[d.level]),
                d.entity or "",
                d.path or "",
                Text(d.message),
            )
        return t
