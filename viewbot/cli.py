from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table

from .config import BlueprintConfig, Layout, detect_layout
from .diagnostics import Reporter
from .entities import Entity, load_entities
from .files import ProjectFiles
from .hub import RunReport, ViewBlueprint

console = Console(highlight=False)


def p(msg: str) -> None:
    console.print(msg)


def strip_quotes(s: str) -> str:
    s = s.strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in "'\"":
        return s[1:-1]
    return s


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Turn JHipster entities backed by database views into read-only code")
    ap.add_argument("--root", type=str, default=".", help="Generated application root")
    ap.add_argument("--package", type=str, default=None, help="Base package (default: packageName from .yo-rc.json)")
    ap.add_argument("--entities", type=str, default=None, help="Comma-separated entity names (e.g. OrderSummary,SalesView)")
    ap.add_argument("--all", action="store_true", help="Process every entity (overrides --entities)")
    ap.add_argument("--dry-run", action="store_true", help="Do not write files")
    ap.add_argument("--no-liquibase", action="store_true", help="Skip createView changelog generation")
    ap.add_argument("--no-mybatis", action="store_true", help="Skip MyBatis model/mapper generation")
    ap.add_argument("--no-cleanup", action="store_true", help="Keep table changelogs and fake data of view entities")
    ap.add_argument("--quiet", action="store_true", help="Only print warnings and errors")
    return ap.parse_args(argv)


def selected_names(args: argparse.Namespace) -> Tuple[str, ...]:
    if args.all or not args.entities:
        return ()
    return tuple(x.strip() for x in args.entities.split(",") if x.strip())


def show_entities(entities: List[Entity]) -> None:
    t = Table(title="Entities found (.jhipster)")
    t.add_column("#", justify="right")
    t.add_column("Entity")
    t.add_column("Table")
    t.add_column("View")
    t.add_column("MyBatis")
    for i, e in enumerate(entities, start=1):
        t.add_row(str(i), e.entity_class, e.table_name, "yes" if e.is_view else "", "yes" if e.is_mybatis else "")
    console.print(t)


def show_report(report: RunReport, reporter: Reporter) -> None:
    p("")
    if report.changed:
        p("Changed files:")
        for rel in report.changed:
            p(f" - {rel}")
    if report.generated:
        p("Generated files:")
        for rel in report.generated:
            p(f" - {rel}")
    if report.deleted:
        p("Deleted files:")
        for rel in report.deleted:
            p(f" - {rel}")
    if reporter.count("warn") or reporter.count("error"):
        console.print(reporter.summary_table())
    p(f"\nDone: {len(report.entities)} entities, "
      f"{reporter.count('warn')} warning(s), {reporter.count('error')} error(s)")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    root = Path(strip_quotes(args.root)).expanduser().resolve()
    if not root.exists() or not root.is_dir():
        p(f"[ERROR] Folder not found: {root}")
        return 2

    reporter = Reporter(console=console, quiet=args.quiet)
    scan = ProjectFiles(root, dry_run=True)
    base = Layout(package_name=args.package) if args.package else Layout()
    layout = detect_layout(scan, base)

    entities = load_entities(scan, reporter)
    if not entities:
        p("[WARN] No entity configs found under .jhipster/")
        return 1

    if not args.quiet:
        p("\nProject detected")
        p(f"- Root: {root}")
        p(f"- base package: {layout.package_name}")
        p(f"- dry-run: {args.dry_run}")
        show_entities(entities)

    cfg = BlueprintConfig(
        layout=layout,
        dry_run=args.dry_run,
        entities=selected_names(args),
        with_liquibase=not args.no_liquibase,
        with_mybatis=not args.no_mybatis,
        with_cleanup=not args.no_cleanup,
    )
    report = ViewBlueprint(root, cfg, reporter=reporter).run(entities)
    show_report(report, reporter)
    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
