from __future__ import annotations

import re
from typing import Dict, List, Set, Tuple

from .config import MyBatisConfig
from .entities import Entity, EntityField, to_snake_case
from .manifest import ManifestFragment, splice_fragment
from .results import EditResult

YAML_NEEDLES = (
    "# jhipster-needle-application-properties",
    "# jhipster-needle-add-application-yaml-document",
)
MYBATIS_KEY_RE = re.compile(r"^mybatis:", re.M)

JAVA_TYPES: Dict[str, str] = {
    "String": "String",
    "Integer": "Integer",
    "Long": "Long",
    "Float": "Float",
    "Double": "Double",
    "BigDecimal": "java.math.BigDecimal",
    "LocalDate": "java.time.LocalDate",
    "Instant": "java.time.Instant",
    "ZonedDateTime": "java.time.ZonedDateTime",
    "Duration": "java.time.Duration",
    "UUID": "java.util.UUID",
    "Boolean": "Boolean",
    "byte": "byte[]",
    "ByteBuffer": "java.nio.ByteBuffer",
}
IMPLICIT_TYPES = {"String", "Integer", "Long", "Float", "Double", "Boolean", "Object", "byte[]"}

# ---------------- types ----------------

def java_type(f: EntityField) -> str:
    if f.is_blob:
        return "byte[]"
    return JAVA_TYPES.get(f.field_type, f.field_type or "Object")


def import_for(fqn: str) -> str:
    if not fqn or fqn in IMPLICIT_TYPES or fqn.startswith("java.lang.") or "." not in fqn:
        return ""
    return f"import {fqn};"


def simple_name(fqn: str) -> str:
    return fqn.rsplit(".", 1)[-1]


def model_names(ent: Entity, cfg: MyBatisConfig, base_package: str) -> Tuple[str, str]:
    return f"{ent.entity_class}{cfg.model_suffix}", f"{base_package}.{cfg.model_package}"


def mapper_names(ent: Entity, cfg: MyBatisConfig, base_package: str) -> Tuple[str, str]:
    return f"{ent.entity_class}{cfg.mapper_suffix}", f"{base_package}.{cfg.mapper_package}"

# ---------------- model ----------------

def render_model(ent: Entity, cfg: MyBatisConfig, base_package: str) -> str:
    cls, pkg = model_names(ent, cfg, base_package)
    imports: Set[str] = {"import lombok.Data;"}
    fields = [f"    private {ent.primary_key_type} id;"]
    if ent.primary_key_type == "UUID":
        imports.add("import java.util.UUID;")

    for f in ent.fields:
        jt = java_type(f)
        imp = import_for(jt)
        if imp:
            imports.add(imp)
        fields.append(f"    private {simple_name(jt)} {f.field_name};")

    note = (" * This is a read-only model mapped to a database view." if ent.is_view
            else " * This model is used for MyBatis data access.")
    lines = [
        f"package {pkg};",
        "",
        *sorted(imports),
        "",
        "/**",
        f" * MyBatis POJO for {ent.entity_class} entity.",
        note,
        " */",
        "@Data",
        f"public class {cls} {{",
        "",
        *fields,
        "",
        "}",
        "",
    ]
    return "\n".join(lines)

# ---------------- mapper ----------------

def _method(doc: List[str], annotations: List[str], signature: str) -> List[str]:
    out = ["", "    /**"]
    out += [f"     * {x}" for x in doc]
    out += ["     */"]
    out += [f"    {a}" for a in annotations]
    out.append(f"    {signature}")
    return out


def render_mapper(ent: Entity, cfg: MyBatisConfig, base_package: str) -> str:
    """Annotation-based mapper; views get the two finders only."""
    model_cls, model_pkg = model_names(ent, cfg, base_package)
    cls, pkg = mapper_names(ent, cfg, base_package)
    table = ent.table_name or to_snake_case(ent.entity_class)
    id_type = ent.primary_key_type or "Long"
    read_only = ent.read_only_mapper
    var = ent.entity_instance

    imports = {
        f"import {model_pkg}.{model_cls};",
        "import org.apache.ibatis.annotations.Mapper;",
        "import org.apache.ibatis.annotations.Select;",
        "import java.util.List;",
    }
    if not read_only:
        imports |= {
            "import org.apache.ibatis.annotations.Delete;",
            "import org.apache.ibatis.annotations.Insert;",
            "import org.apache.ibatis.annotations.Options;",
            "import org.apache.ibatis.annotations.Update;",
        }
    if id_type == "UUID":
        imports.add("import java.util.UUID;")

    methods: List[str] = []
    methods += _method(["Retrieves all records.", "@return List of all records"],
                       [f'@Select("SELECT * FROM {table}")'], f"List<{model_cls}> findAll();")
    methods += _method(["Retrieves a record by ID.", "@param id the record ID", "@return the record, or null if not found"],
                       [f'@Select("SELECT * FROM {table} WHERE id = #{{id}}")'], f"{model_cls} findById({id_type} id);")

    if not read_only and ent.fields:
        columns = [to_snake_case(f.field_name) for f in ent.fields]
        values = [f"#{{{f.field_name}}}" for f in ent.fields]
        assignments = [f"{c} = #{{{f.field_name}}}" for c, f in zip(columns, ent.fields)]
        methods += _method(["Inserts a new record.", f"@param {var} the record to insert"],
                           [f'@Insert("INSERT INTO {table} ({", ".join(columns)}) VALUES ({", ".join(values)})")',
                            '@Options(useGeneratedKeys = true, keyProperty = "id")'],
                           f"void insert({model_cls} {var});")
        methods += _method(["Updates an existing record.", f"@param {var} the record to update"],
                           [f'@Update("UPDATE {table} SET {", ".join(assignments)} WHERE id = #{{id}}")'],
                           f"void update({model_cls} {var});")
    if not read_only:
        methods += _method(["Deletes a record by ID.", "@param id the record ID"],
                           [f'@Delete("DELETE FROM {table} WHERE id = #{{id}}")'], f"void deleteById({id_type} id);")

    if read_only:
        class_doc = [f" * MyBatis Mapper for {ent.entity_class} view.",
                     " * This is a read-only mapper - INSERT/UPDATE/DELETE operations are not supported."]
    else:
        class_doc = [f" * MyBatis Mapper for {ent.entity_class} entity.",
                     " * Provides CRUD operations via annotation-based SQL."]

    lines = [
        f"package {pkg};",
        "",
        *sorted(imports),
        "",
        "/**",
        *class_doc,
        " */",
        "@Mapper",
        f"public interface {cls} {{",
        *methods,
        "",
        "}",
        "",
    ]
    return "\n".join(lines)

# ---------------- application.yml ----------------

def yaml_fragment(cfg: MyBatisConfig, base_package: str) -> ManifestFragment:
    return ManifestFragment(
        lines=(
            "mybatis:",
            f"  type-aliases-package: {base_package}.{cfg.model_package}",
            "  configuration:",
            "    map-underscore-to-camel-case: true",
        ),
        witness=MYBATIS_KEY_RE,
        blank_after=True,
    )


def append_mybatis_config(text: str, cfg: MyBatisConfig, base_package: str) -> EditResult:
    return splice_fragment(text, yaml_fragment(cfg, base_package), YAML_NEEDLES)
