from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from .results import EditResult, Outcome

IMPORT_CLASS_RE = re.compile(r"\.([A-Za-z_]\w*)\s*;\s*$")

# Imports a generated REST resource may no longer need once its mutating endpoints are gone.
RESOURCE_IMPORT_CANDIDATES: Tuple[str, ...] = (
    "import org.springframework.web.bind.annotation.PostMapping;",
    "import org.springframework.web.bind.annotation.PutMapping;",
    "import org.springframework.web.bind.annotation.PatchMapping;",
    "import org.springframework.web.bind.annotation.DeleteMapping;",
    "import org.springframework.web.bind.annotation.RequestBody;",
    "import org.springframework.web.bind.annotation.ResponseStatus;",
    "import org.springframework.http.HttpStatus;",
    "import jakarta.validation.Valid;",
    "import jakarta.validation.constraints.NotNull;",
    "import java.net.URI;",
    "import java.net.URISyntaxException;",
    "import java.util.Objects;",
    "import tech.jhipster.web.util.HeaderUtil;",
)


class UsagePatternCache:
    """Per-run memo of the regexes that detect a class name being referenced.

    Keys are simple class names, which do not change during a run, so entries
    are never evicted. One instance is meant to live exactly as long as one
    generation run.
    """

    def __init__(self) -> None:
        self._patterns: Dict[str, Tuple[Pattern, ...]] = {}

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, class_name: object) -> bool:
        return class_name in self._patterns

    def patterns_for(self, class_name: str) -> Tuple[Pattern, ...]:
        cached = self._patterns.get(class_name)
        if cached is None:
            cached = self._build(class_name)
            self._patterns[class_name] = cached
        return cached

    def is_used(self, class_name: str, text: str) -> bool:
        return any(p.search(text) for p in self.patterns_for(class_name))

    @staticmethod
    def _build(class_name: str) -> Tuple[Pattern, ...]:
        n = re.escape(class_name)
        return (
            re.compile(rf"@{n}\b"),                      # annotation
            re.compile(rf"\b{n}\."),                     # static access
            re.compile(rf"\bnew\s+{n}\b"),               # constructor
            re.compile(rf"\b{n}\s*(?:<[^;{{()]*>)?(?:\[\])*\s+\w+"),  # declaration, type arguments allowed
            re.compile(rf"<{n}[>,]"),                    # generic argument
            re.compile(rf"\({n}\b"),                     # parameter type
            re.compile(rf"throws\s+.*\b{n}\b"),
            re.compile(rf"extends\s+{n}\b"),
            re.compile(rf"implements\s+.*\b{n}\b"),
        )


def import_class_name(import_line: str) -> str:
    m = IMPORT_CLASS_RE.search(import_line)
    return m.group(1) if m else ""


def prune_unused_imports(
    text: str,
    candidates: Iterable[str] = RESOURCE_IMPORT_CANDIDATES,
    cache: Optional[UsagePatternCache] = None,
) -> EditResult:
    """Delete candidate import lines whose class is no longer referenced."""
    cache = cache if cache is not None else UsagePatternCache()
    removed: List[str] = []

    for import_line in candidates:
        if import_line not in text:
            continue
        class_name = import_class_name(import_line)
        if not class_name:
            continue
        if cache.is_used(class_name, text.replace(import_line, "", 1)):
            continue
        line_re = re.compile(rf"^[ \t]*{re.escape(import_line)}[ \t]*(?:\r?\n|\Z)", re.M)
        text, n = line_re.subn("", text, count=1)
        if n:
            removed.append(class_name)

    if not removed:
        return EditResult.unchanged(text, Outcome.SKIPPED_ALREADY_PRESENT, "no unused imports")
    return EditResult(Outcome.APPLIED, text, "removed " + ", ".join(removed))
