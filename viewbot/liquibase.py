from __future__ import annotations

import re
from typing import List, Optional, Pattern, Tuple

from .manifest import ChangelogClock, ManifestFragment, splice_fragment
from .results import EditResult, Outcome
from .view_sql import escape_xml

CHANGELOG_INCLUDE_PREFIX = "config/liquibase/changelog/"
MASTER_ANCHORS = ("</databaseChangeLog>",)
CHANGESET_AUTHOR = "jhipster-view-blueprint"

CHANGELOG_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<databaseChangeLog
    xmlns="http://www.liquibase.org/xml/ns/dbchangelog"
    xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
    xsi:schemaLocation="http://www.liquibase.org/xml/ns/dbchangelog
                        http://www.liquibase.org/xml/ns/dbchangelog/dbchangelog-latest.xsd">

    <!--
        Database view for entity: {entity_class}
        Generated by JHipster View Blueprint
    -->
    <changeSet id="{timestamp}-create-view-{view_name}" author="{author}" runOnChange="true">
        <createView viewName="{view_name}" replaceIfExists="true">
            {sql}
        </createView>
    </changeSet>

</databaseChangeLog>
"""

# ---------------- view changelog ----------------

def view_changelog_name(timestamp: str, view_name: str) -> str:
    return f"{timestamp}_create_view_{view_name}.xml"


def _view_changelog_re(view_name: str) -> Pattern:
    return re.compile(rf"^(\d{{14,}})_create_view_{re.escape(view_name)}\.xml$")


def find_view_changelog(names: List[str], view_name: str) -> Optional[Tuple[str, str]]:
    """(file name, timestamp) of an earlier changelog for this view, newest first."""
    pattern = _view_changelog_re(view_name)
    for fn in sorted(names, reverse=True):
        m = pattern.match(fn)
        if m:
            return fn, m.group(1)
    return None


def render_view_changelog(entity_class: str, view_name: str, sql: str, timestamp: str) -> str:
    return CHANGELOG_TEMPLATE.format(
        entity_class=escape_xml(entity_class),
        timestamp=timestamp,
        view_name=escape_xml(view_name),
        author=CHANGESET_AUTHOR,
        sql=escape_xml(sql),
    )


def next_changelog(existing: List[str], view_name: str, clock: ChangelogClock) -> Tuple[str, str]:
    """Reuse the timestamp of an earlier changelog for the view, else draw a new one."""
    found = find_view_changelog(existing, view_name)
    if found:
        return found
    ts = clock.next()
    return view_changelog_name(ts, view_name), ts

# ---------------- master changelog ----------------

def include_fragment(changelog_file: str) -> ManifestFragment:
    path = CHANGELOG_INCLUDE_PREFIX + changelog_file
    return ManifestFragment(
        lines=(f'    <include file="{path}" relativeToChangelogFile="false"/>',),
        witness=f'"{path}"',
    )


def register_changelog(master: str, changelog_file: str) -> EditResult:
    return splice_fragment(master, include_fragment(changelog_file), MASTER_ANCHORS)


def table_changelog_patterns(entity_class: str) -> Tuple[Pattern, Pattern]:
    e = re.escape(entity_class)
    return (
        re.compile(rf"^\d{{14}}_added_entity_{e}\.xml$"),
        re.compile(rf"^\d{{14}}_added_entity_constraints_{e}\.xml$"),
    )


def remove_table_includes(master: str, entity_class: str) -> EditResult:
    """Drop master include lines of the table-definition changelogs JHipster made for a view entity."""
    e = re.escape(entity_class)
    include_re = re.compile(
        rf'^[ \t]*<include\s+file="{re.escape(CHANGELOG_INCLUDE_PREFIX)}\d{{14}}'
        rf'_added_entity_(?:constraints_)?{e}\.xml"[^/>]*/?>[ \t]*(?:\r?\n|\Z)',
        re.M,
    )
    out, n = include_re.subn("", master)
    if not n:
        return EditResult.unchanged(master, Outcome.SKIPPED_ALREADY_PRESENT, "no table includes")
    return EditResult(Outcome.APPLIED, out, f"removed {n} include(s)")
