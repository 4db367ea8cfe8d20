"""
Read-only rewrites of the files JHipster generated for a view-backed entity.

Each public function is a transform: text in, (text, step results) out.
All of them are idempotent; markers already present skip their step.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from .imports import RESOURCE_IMPORT_CANDIDATES, UsagePatternCache, prune_unused_imports
from .results import EditResult, Outcome
from .source import Anchor, Step, annotation_predicate, insert_once, remove_method, run_steps, signature_predicate

StepResults = List[Tuple[str, EditResult]]

HIBERNATE_IMMUTABLE_IMPORT = "import org.hibernate.annotations.Immutable;"
READ_ONLY_REPOSITORY_MARKER = "Read-only repository for database view"
READ_ONLY_RESOURCE_MARKER = "Read-only REST controller for database view"
READ_ONLY_SERVICE_MARKER = "Read-only service for database view"
VIEW_TEST_MARKER = "This test class is disabled because the entity is a database view"
DISABLED_IMPORT = "import org.junit.jupiter.api.Disabled;"
DISABLED_ANNOTATION = (
    '@Disabled("View entity tests are disabled - @Immutable entities cannot use saveAndFlush/delete operations")'
)

MUTATING_MAPPINGS = ("@PostMapping", "@PutMapping", "@PatchMapping", "@DeleteMapping")
MUTATING_SERVICE_SIGNATURES = (
    ("save", r"public\s+\S+\s+save\s*\("),
    ("partialUpdate", r"public\s+\S+\s+partialUpdate\s*\("),
    ("update", r"public\s+\S+\s+update\s*\("),
    ("delete", r"public\s+void\s+delete\s*\("),
)

IMMUTABLE_ANNOTATION_RE = re.compile(r"^[ \t]*@Immutable\b", re.M)
DISABLED_ANNOTATION_RE = re.compile(r"@Disabled\s*(?:\([^)]*\))?\s*[\r\n]")
JUNIT_WILDCARD_RE = re.compile(r"^import org\.junit\.jupiter\.api\.\*;", re.M)

IMMUTABLE_IMPORT_ANCHORS = (
    Anchor.before(r"^import org\.hibernate\.annotations\.[^;]+;"),
    Anchor.after(r"^import jakarta\.persistence\.\*;"),
    Anchor.after(r"^import jakarta\.persistence\.[^;]+;(?![\s\S]*^import jakarta\.persistence\.)"),
)
ENTITY_ANCHOR = Anchor.before(r"^[ \t]*@Entity\b")
REPOSITORY_ANCHOR = Anchor.before(r"^[ \t]*public\s+interface\s+\w+Repository\b")
RESOURCE_ANCHOR = Anchor.before(r"^[ \t]*@RestController\s*\n\s*@RequestMapping")
SERVICE_ANCHOR = Anchor.before(r"^[ \t]*@Service\s*\n\s*@Transactional")
INTEGRATION_TEST_ANCHOR = Anchor.after(r"^[ \t]*@IntegrationTest\b")
TEST_IMPORT_ANCHOR = Anchor.before(r"^import org\.junit\.jupiter\.api\.Test;")
PACKAGE_ANCHOR = Anchor.after(r"^package\s+[^;]+;")
TEST_JAVADOC_ANCHOR = Anchor.before(r"/\*\*[ \t]*\r?\n([ \t]*\*[ \t]*Integration tests? for)", re.I, group=1)


def _class_doc(marker: str, table: str, note: str) -> List[str]:
    return ["/**", f" * {marker}: {table}", f" * {note}", " */"]

# ---------------- entity ----------------

def add_immutable(text: str) -> Tuple[str, StepResults]:
    """Mark the entity `@Immutable`. Raises NotFoundError when no import anchor exists."""
    steps: List[Step] = [
        ("immutable import", lambda t: insert_once(
            t, HIBERNATE_IMMUTABLE_IMPORT, [HIBERNATE_IMMUTABLE_IMPORT], IMMUTABLE_IMPORT_ANCHORS, required=True)),
        ("@Immutable", lambda t: insert_once(t, IMMUTABLE_ANNOTATION_RE, ["@Immutable"], [ENTITY_ANCHOR])),
    ]
    return run_steps(text, steps)

# ---------------- repository ----------------

def mark_repository_read_only(text: str, table: str) -> Tuple[str, StepResults]:
    doc = _class_doc(READ_ONLY_REPOSITORY_MARKER, table,
                     "This entity is mapped to a database view and should not be modified.")
    return run_steps(text, [
        ("repository marker", lambda t: insert_once(t, READ_ONLY_REPOSITORY_MARKER, doc, [REPOSITORY_ANCHOR])),
    ])

# ---------------- REST resource ----------------

def make_resource_read_only(
    text: str,
    table: str,
    cache: Optional[UsagePatternCache] = None,
) -> Tuple[str, StepResults]:
    steps: List[Step] = []
    for mapping in MUTATING_MAPPINGS:
        steps.append((f"remove {mapping}", lambda t, m=mapping: remove_method(t, annotation_predicate(m))))

    doc = _class_doc(READ_ONLY_RESOURCE_MARKER, table,
                     "POST/PUT/PATCH/DELETE operations are not supported for views.")
    steps.append(("resource marker", lambda t: insert_once(t, READ_ONLY_RESOURCE_MARKER, doc, [RESOURCE_ANCHOR])))
    steps.append(("unused imports", lambda t: prune_unused_imports(t, RESOURCE_IMPORT_CANDIDATES, cache)))
    return run_steps(text, steps)

# ---------------- service ----------------

def make_service_read_only(text: str, table: str) -> Tuple[str, StepResults]:
    steps: List[Step] = []
    for name, signature in MUTATING_SERVICE_SIGNATURES:
        steps.append((f"remove {name}()", lambda t, s=signature: remove_method(t, signature_predicate(s))))

    doc = _class_doc(READ_ONLY_SERVICE_MARKER, table,
                     "Create/Update/Delete operations are not supported for views.")
    steps.append(("service marker", lambda t: insert_once(t, READ_ONLY_SERVICE_MARKER, doc, [SERVICE_ANCHOR])))
    return run_steps(text, steps)

# ---------------- integration test ----------------

def _ensure_disabled_import(text: str) -> EditResult:
    if DISABLED_IMPORT in text:
        return EditResult.unchanged(text, Outcome.SKIPPED_ALREADY_PRESENT)
    if JUNIT_WILDCARD_RE.search(text):
        return EditResult.unchanged(text, Outcome.SKIPPED_ALREADY_PRESENT, "wildcard import already covers @Disabled")
    res = insert_once(text, DISABLED_IMPORT, [DISABLED_IMPORT], [TEST_IMPORT_ANCHOR])
    if res.outcome is not Outcome.SKIPPED_NO_ANCHOR:
        return res
    res = insert_once(text, DISABLED_IMPORT, ["", DISABLED_IMPORT], [PACKAGE_ANCHOR])
    if res.applied:
        return EditResult(Outcome.APPLIED, res.text, "import added after package statement")
    return res


def disable_integration_test(text: str) -> Tuple[str, StepResults]:
    note = [
        f"* {VIEW_TEST_MARKER}.",
        "* @Immutable entities cannot be persisted or deleted via JPA repository.",
        "* To test view queries, use native SQL to populate the underlying table.",
        "*",
    ]
    steps: List[Step] = [
        ("@Disabled import", _ensure_disabled_import),
        ("@Disabled", lambda t: insert_once(
            t, DISABLED_ANNOTATION_RE, [DISABLED_ANNOTATION], [INTEGRATION_TEST_ANCHOR])),
        ("test javadoc", lambda t: insert_once(t, VIEW_TEST_MARKER, note, [TEST_JAVADOC_ANCHOR])),
    ]
    return run_steps(text, steps)
