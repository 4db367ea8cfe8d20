from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .results import ViewBotError
from .view_sql import ViewDefinition

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .diagnostics import Reporter
    from .files import ProjectFiles

ENTITY_CONFIG_DIR = ".jhipster"

VIEW_KEYS = ("view", "View")
SQL_KEYS = ("sql", "Sql")
SQL_FILE_KEYS = ("sqlFile", "SqlFile", "sqlfile")
MYBATIS_KEYS = ("mybatis", "MyBatis", "Mybatis")

# ---------------- naming ----------------

def upper_first(s: str) -> str:
    return s[:1].upper() + s[1:] if s else s


def lower_first(s: str) -> str:
    return s[:1].lower() + s[1:] if s else s


def to_snake_case(s: str) -> str:
    """XMLParser -> xml_parser, orderItem2Total -> order_item2_total."""
    out = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", s)
    out = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", out)
    return re.sub(r"^_", "", out.lower())

# ---------------- models ----------------

@dataclass
class EntityField:
    field_name: str
    field_type: str
    is_blob: bool = False


@dataclass
class Entity:
    name: str
    entity_class: str
    table_name: str
    fields: List[EntityField] = field(default_factory=list)
    primary_key_type: str = "Long"
    annotations: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_view(self) -> bool:
        return bool(annotation(self.annotations, *VIEW_KEYS))

    @property
    def is_mybatis(self) -> bool:
        return bool(annotation(self.annotations, *MYBATIS_KEYS))

    @property
    def read_only_mapper(self) -> bool:
        return self.is_view

    @property
    def view_sql(self) -> Optional[str]:
        v = annotation(self.annotations, *SQL_KEYS)
        return str(v) if v else None

    @property
    def view_sql_file(self) -> Optional[str]:
        v = annotation(self.annotations, *SQL_FILE_KEYS)
        return str(v) if v else None

    @property
    def entity_instance(self) -> str:
        return lower_first(self.entity_class)

    def view_definition(self) -> ViewDefinition:
        return ViewDefinition(name=self.table_name, sql=self.view_sql, sql_file=self.view_sql_file)


def annotation(annotations: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in annotations and annotations[k] not in (None, False):
            return annotations[k]
    return None

# ---------------- entity configs ----------------

def entity_from_config(name: str, data: Dict[str, Any]) -> Entity:
    entity_class = upper_first(str(data.get("name") or name))
    fields: List[EntityField] = []
    pk_type = "Long"
    for raw in data.get("fields") or []:
        if not isinstance(raw, dict) or not raw.get("fieldName"):
            continue
        ftype = str(raw.get("fieldType") or "Object")
        if raw.get("id"):
            pk_type = ftype
            continue
        fields.append(EntityField(
            field_name=str(raw["fieldName"]),
            field_type=ftype,
            is_blob=bool(raw.get("fieldTypeBlobContent")),
        ))
    pk = data.get("primaryKey")
    if isinstance(pk, dict) and pk.get("type"):
        pk_type = str(pk["type"])
    return Entity(
        name=entity_class,
        entity_class=entity_class,
        table_name=str(data.get("entityTableName") or to_snake_case(entity_class)),
        fields=fields,
        primary_key_type=pk_type,
        annotations=dict(data.get("annotations") or {}),
    )


def load_entities(files: "ProjectFiles", reporter: Optional["Reporter"] = None) -> List[Entity]:
    """Read every `.jhipster/<Entity>.json`; unreadable configs are skipped."""
    entities: List[Entity] = []
    for fn in files.list_dir(ENTITY_CONFIG_DIR):
        if not fn.endswith(".json"):
            continue
        rel = f"{ENTITY_CONFIG_DIR}/{fn}"
        try:
            data = json.loads(files.read(rel))
        except (OSError, ValueError, ViewBotError) as e:
            if reporter:
                reporter.warn(f"failed to parse entity config: {e}; skipping", path=rel)
            continue
        if not isinstance(data, dict):
            continue
        entities.append(entity_from_config(fn[: -len(".json")], data))
    return sorted(entities, key=lambda e: e.name)
