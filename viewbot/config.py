from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING

from .results import ViewBotError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .diagnostics import Reporter
    from .entities import Entity
    from .files import ProjectFiles

YO_RC = ".yo-rc.json"
BLUEPRINT_KEY = "generator-jhipster-view-blueprint"
MYBATIS_KEYS = {
    "modelSuffix": "model_suffix",
    "mapperSuffix": "mapper_suffix",
    "modelPackage": "model_package",
    "mapperPackage": "mapper_package",
}


@dataclass(frozen=True)
class Layout:
    """Where a generated JHipster application keeps things, relative to its root."""
    package_name: str = "com.example.app"
    src_main_java: str = "src/main/java"
    src_test_java: str = "src/test/java"
    src_main_resources: str = "src/main/resources"

    @property
    def package_path(self) -> str:
        return self.package_name.replace(".", "/")

    def main_java(self, *parts: str) -> str:
        return "/".join((self.src_main_java, self.package_path) + parts)

    def test_java(self, *parts: str) -> str:
        return "/".join((self.src_test_java, self.package_path) + parts)

    def resource(self, *parts: str) -> str:
        return "/".join((self.src_main_resources,) + parts)

    def entity_file(self, ent: "Entity") -> str:
        return self.main_java("domain", f"{ent.entity_class}.java")

    def repository_file(self, ent: "Entity") -> str:
        return self.main_java("repository", f"{ent.entity_class}Repository.java")

    def resource_file(self, ent: "Entity") -> str:
        return self.main_java("web", "rest", f"{ent.entity_class}Resource.java")

    def service_file(self, ent: "Entity") -> str:
        return self.main_java("service", f"{ent.entity_class}Service.java")

    def resource_test_file(self, ent: "Entity") -> str:
        return self.test_java("web", "rest", f"{ent.entity_class}ResourceIT.java")

    @property
    def liquibase_dir(self) -> str:
        return self.resource("config", "liquibase")

    @property
    def changelog_dir(self) -> str:
        return self.resource("config", "liquibase", "changelog")

    @property
    def fake_data_dir(self) -> str:
        return self.resource("config", "liquibase", "fake-data")

    @property
    def master_changelog(self) -> str:
        return self.resource("config", "liquibase", "master.xml")

    @property
    def application_yml(self) -> str:
        return self.resource("config", "application.yml")


@dataclass(frozen=True)
class MyBatisConfig:
    model_suffix: str = "Model"
    mapper_suffix: str = "ModelMapper"
    model_package: str = "mybatis.model"
    mapper_package: str = "mybatis.mapper"


@dataclass(frozen=True)
class BlueprintConfig:
    layout: Layout = field(default_factory=Layout)
    dry_run: bool = False
    entities: Tuple[str, ...] = ()
    with_liquibase: bool = True
    with_mybatis: bool = True
    with_cleanup: bool = True


def read_yo_rc(files: "ProjectFiles") -> Dict[str, Any]:
    if not files.exists(YO_RC):
        return {}
    data = json.loads(files.read(YO_RC))
    return data if isinstance(data, dict) else {}


def detect_layout(files: "ProjectFiles", base: Optional[Layout] = None) -> Layout:
    """Take packageName from `.yo-rc.json` unless the caller already set one."""
    base = base or Layout()
    if base.package_name != Layout.package_name:
        return base
    try:
        app = read_yo_rc(files).get("generator-jhipster") or {}
    except (OSError, ValueError, ViewBotError):
        return base
    pkg = app.get("packageName") if isinstance(app, dict) else None
    return replace(base, package_name=str(pkg)) if pkg else base


def load_mybatis_config(files: "ProjectFiles", reporter: Optional["Reporter"] = None) -> MyBatisConfig:
    """Defaults overridden by `generator-jhipster-view-blueprint.mybatis` in `.yo-rc.json`."""
    try:
        section = (read_yo_rc(files).get(BLUEPRINT_KEY) or {}).get("mybatis")
    except (OSError, ValueError, AttributeError, ViewBotError) as e:
        if reporter:
            reporter.warn(f"failed to load MyBatis config: {e}; using defaults", path=YO_RC)
        return MyBatisConfig()
    if not isinstance(section, dict):
        return MyBatisConfig()

    overrides = {MYBATIS_KEYS[k]: str(v) for k, v in section.items() if k in MYBATIS_KEYS and v}
    if reporter:
        reporter.info("loaded MyBatis configuration", path=YO_RC)
    return MyBatisConfig(**overrides)
