from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from . import liquibase, mybatis, readonly
from .config import BlueprintConfig, MyBatisConfig, load_mybatis_config
from .diagnostics import Diagnostic, Reporter
from .entities import Entity
from .files import FileEdit, ProjectFiles, Transform, edit_file, resolve_within
from .imports import UsagePatternCache
from .manifest import ChangelogClock
from .results import EditResult, NotFoundError, Outcome, ValidationError, ViewBotError
from .view_sql import check_relative_path, extract_select_statement, resolve_view_sql


@dataclass
class RunReport:
    entities: List[str] = field(default_factory=list)
    changed: List[str] = field(default_factory=list)
    generated: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    failed_entities: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(d.level == "error" for d in self.diagnostics)


class ViewBlueprint:
    """Applies the view blueprint to an already generated application.

    One instance is one generation run: it owns the usage-pattern cache and
    the changelog clock. Every file is handled on its own; a failure is
    reported and the batch moves on.
    """

    def __init__(
        self,
        root: Path,
        config: Optional[BlueprintConfig] = None,
        *,
        reporter: Optional[Reporter] = None,
        clock: Optional[ChangelogClock] = None,
    ) -> None:
        self.config = config or BlueprintConfig()
        self.layout = self.config.layout
        self.files = ProjectFiles(root, dry_run=self.config.dry_run)
        self.reporter = reporter or Reporter()
        self.clock = clock or ChangelogClock()
        self.usage_patterns = UsagePatternCache()
        self._report = RunReport()
        self._mybatis_config: Optional[MyBatisConfig] = None

    # ---------------- run ----------------

    def run(self, entities: Iterable[Entity]) -> RunReport:
        self._report = RunReport()
        selected = self._select(list(entities))
        mybatis_entities: List[Entity] = []

        for ent in selected:
            self._report.entities.append(ent.name)
            if ent.is_view:
                self._guarded(ent, self._run_view)
            if ent.is_mybatis and self.config.with_mybatis:
                mybatis_entities.append(ent)

        if mybatis_entities:
            self._run_mybatis(mybatis_entities)

        self._report.diagnostics = list(self.reporter.items)
        return self._report

    def _select(self, entities: List[Entity]) -> List[Entity]:
        if not self.config.entities:
            return entities
        wanted = set(self.config.entities)
        return [e for e in entities if e.name in wanted or e.entity_class in wanted]

    def _guarded(self, ent: Entity, step: Callable[[Entity], None]) -> None:
        try:
            step(ent)
        except Exception as e:
            self.reporter.error(f"unexpected failure: {type(e).__name__}: {e}", entity=ent.name)
            if ent.name not in self._report.failed_entities:
                self._report.failed_entities.append(ent.name)

    def _run_view(self, ent: Entity) -> None:
        self.reporter.info("processing view entity", entity=ent.name)
        try:
            if ent.view_sql_file:
                check_relative_path(ent.view_sql_file)
                resolve_within(self.files.root, ent.view_sql_file)
        except ValidationError as e:
            self.reporter.error(str(e), entity=ent.name)
            self._report.failed_entities.append(ent.name)
            return

        lay = self.layout
        if not self._edit(ent, lay.entity_file(ent), readonly.add_immutable, required=True):
            return
        self._edit(ent, lay.repository_file(ent), lambda t: readonly.mark_repository_read_only(t, ent.table_name))
        self._edit(ent, lay.resource_file(ent),
                   lambda t: readonly.make_resource_read_only(t, ent.table_name, self.usage_patterns))
        self._edit(ent, lay.service_file(ent), lambda t: readonly.make_service_read_only(t, ent.table_name))
        self._edit(ent, lay.resource_test_file(ent), readonly.disable_integration_test)

        if self.config.with_liquibase:
            self.write_view_changelog(ent)
        if self.config.with_cleanup:
            self.remove_table_definitions(ent)

    # ---------------- file edits ----------------

    def _edit(self, ent: Optional[Entity], rel: str, transform: Transform, required: bool = False) -> bool:
        """Edit one file; False when it is missing (if required) or could not be edited."""
        name = ent.name if ent else None
        if not self.files.exists(rel):
            if required:
                self.reporter.warn("file not found; skipping read-only rewrite", entity=name, path=rel)
                return False
            self.reporter.info("file not found; skipped", entity=name, path=rel)
            return True

        try:
            res = edit_file(self.files, rel, transform)
        except (OSError, ViewBotError) as e:
            self.reporter.error(f"failed to edit: {e}", entity=name, path=rel)
            return False
        self._report_edit(name, res)
        if res.changed:
            self._report.changed.append(rel)
        return res.error is None

    def _report_edit(self, name: Optional[str], res: FileEdit) -> None:
        if res.error is not None:
            level = "warn" if isinstance(res.error, NotFoundError) else "error"
            self.reporter.emit(level, f"left unchanged: {res.error}", entity=name, path=res.path)
            return
        for step_name, step in res.results:
            if step.applied and step.fallback:
                self.reporter.warn(f"{step_name}: {step.reason}", entity=name, path=res.path)
            elif step.outcome is Outcome.APPLIED:
                self.reporter.info(f"{step_name}: {step.reason or 'applied'}", entity=name, path=res.path)
            elif step.outcome is Outcome.FAILED:
                self.reporter.warn(f"{step_name}: {step.reason}", entity=name, path=res.path)
            elif step.outcome is Outcome.SKIPPED_NO_ANCHOR:
                self.reporter.warn(f"{step_name}: expected anchor not found", entity=name, path=res.path)

    # ---------------- liquibase ----------------

    def write_view_changelog(self, ent: Entity) -> Optional[str]:
        lay = self.layout
        try:
            sql = resolve_view_sql(ent.view_definition(), self.files.root, read=self._read_abs)
        except ValidationError as e:
            self.reporter.error(str(e), entity=ent.name)
            self._report.failed_entities.append(ent.name)
            return None
        except (NotFoundError, OSError) as e:
            self.reporter.warn(f"{e}; changelog not generated", entity=ent.name)
            return None
        except ViewBotError as e:
            self.reporter.error(f"{e}; changelog not generated", entity=ent.name)
            self._report.failed_entities.append(ent.name)
            return None

        body = extract_select_statement(sql)
        existing = self.files.list_dir(lay.changelog_dir)
        filename, ts = liquibase.next_changelog(existing, ent.table_name, self.clock)
        rel = f"{lay.changelog_dir}/{filename}"
        content = liquibase.render_view_changelog(ent.entity_class, ent.table_name, body, ts)

        try:
            if not self.files.exists(rel) or self.files.read(rel) != content:
                self.files.write(rel, content)
                self._report.generated.append(rel)
                self.reporter.info("wrote view changelog", entity=ent.name, path=rel)
        except (OSError, ViewBotError) as e:
            self.reporter.error(f"failed to write changelog: {e}", entity=ent.name, path=rel)
            return None

        self._register(ent, filename)
        return rel

    def _register(self, ent: Entity, filename: str) -> None:
        master = self.layout.master_changelog
        if not self.files.exists(master):
            self.reporter.warn("master changelog not found; add the view changelog manually",
                               entity=ent.name, path=master)
            return
        self._edit(ent, master, lambda t: _single("master include", liquibase.register_changelog(t, filename)))

    def remove_table_definitions(self, ent: Entity) -> None:
        lay = self.layout
        master = lay.master_changelog
        if self.files.exists(master):
            self._edit(ent, master,
                       lambda t: _single("table includes", liquibase.remove_table_includes(t, ent.entity_class)))

        patterns = liquibase.table_changelog_patterns(ent.entity_class)
        for fn in self.files.list_dir(lay.changelog_dir):
            if any(p.match(fn) for p in patterns):
                self._delete(ent, f"{lay.changelog_dir}/{fn}")

        fake = f"{lay.fake_data_dir}/{ent.table_name}.csv"
        if self.files.exists(fake):
            self._delete(ent, fake)

    def _delete(self, ent: Entity, rel: str) -> None:
        try:
            self.files.delete(rel)
        except OSError as e:
            self.reporter.warn(f"failed to delete: {e}", entity=ent.name, path=rel)
            return
        self._report.deleted.append(rel)
        self.reporter.info("deleted table-definition artifact", entity=ent.name, path=rel)

    def _read_abs(self, pth: Path) -> str:
        return self.files.read(pth.relative_to(self.files.root).as_posix())

    # ---------------- mybatis ----------------

    @property
    def mybatis_config(self) -> MyBatisConfig:
        if self._mybatis_config is None:
            self._mybatis_config = load_mybatis_config(self.files, self.reporter)
        return self._mybatis_config

    def _run_mybatis(self, entities: List[Entity]) -> None:
        cfg = self.mybatis_config
        pkg = self.layout.package_name
        for ent in entities:
            self._guarded(ent, lambda e: self._generate_pair(e, cfg, pkg))

        yml = self.layout.application_yml
        if not self.files.exists(yml):
            self.reporter.warn("application.yml not found; MyBatis config not appended", path=yml)
            return
        self._edit(None, yml, lambda t: _single("mybatis config", mybatis.append_mybatis_config(t, cfg, pkg)))

    def _generate_pair(self, ent: Entity, cfg: MyBatisConfig, pkg: str) -> None:
        model_cls, _ = mybatis.model_names(ent, cfg, pkg)
        mapper_cls, _ = mybatis.mapper_names(ent, cfg, pkg)
        model_rel = self.layout.main_java(*cfg.model_package.split("."), f"{model_cls}.java")
        mapper_rel = self.layout.main_java(*cfg.mapper_package.split("."), f"{mapper_cls}.java")
        self._generate(ent, model_rel, lambda: mybatis.render_model(ent, cfg, pkg))
        self._generate(ent, mapper_rel, lambda: mybatis.render_mapper(ent, cfg, pkg))

    def _generate(self, ent: Entity, rel: str, render: Callable[[], str]) -> None:
        try:
            content = render()
            if self.files.exists(rel) and self.files.read(rel) == content:
                return
            self.files.write(rel, content)
        except (ViewBotError, OSError) as e:
            self.reporter.error(f"failed to generate: {e}", entity=ent.name, path=rel)
            return
        self._report.generated.append(rel)
        self.reporter.info("generated", entity=ent.name, path=rel)


def _single(name: str, res: EditResult) -> Tuple[str, List[Tuple[str, EditResult]]]:
    return res.text, [(name, res)]
