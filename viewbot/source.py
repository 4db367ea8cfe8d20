"""
Line-based structural editing of generated Java sources.

No parser is involved: methods are located by a leading annotation or a
signature regex and their extent is found by brace counting over lines whose
string literals and line comments have been masked. Every operation returns
an EditResult and leaves text it did not touch byte-identical.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern, Sequence, Tuple, Union

from .results import EditResult, MalformedInputError, NotFoundError, Outcome

NOT_FOUND = -1

LINE_SPLIT_RE = re.compile(r"\r?\n")
DOUBLE_QUOTED_RE = re.compile(r'"(?:[^"\\]|\\.)*"')
SINGLE_QUOTED_RE = re.compile(r"'(?:[^'\\]|\\.)*'")
LINE_COMMENT_RE = re.compile(r"//.*$")
ANNOTATION_RE = re.compile(r"@(?!interface\b)[\w.]+\s*")

LinePredicate = Callable[[str], bool]
Witness = Union[str, Pattern]
Step = Tuple[str, Callable[[str], EditResult]]

# ---------------- document ----------------

def detect_newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


class SourceDocument:
    """Lines of a file plus its newline style.

    Rendering the untouched line list returns the original text, so files
    with mixed newlines survive a no-op edit unchanged.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.newline = detect_newline(text)
        self.lines: List[str] = LINE_SPLIT_RE.split(text)
        self._pristine = tuple(self.lines)

    def render(self, lines: Optional[Sequence[str]] = None) -> str:
        out = self.lines if lines is None else lines
        if tuple(out) == self._pristine:
            return self.text
        return self.newline.join(out)

    def line_of(self, offset: int) -> int:
        return self.text.count("\n", 0, offset)


def witness_present(text: str, witness: Witness) -> bool:
    if isinstance(witness, str):
        return witness in text
    return witness.search(text) is not None

# ---------------- brace scanning ----------------

def normalize_line(line: str) -> str:
    """Mask string/char literals and drop a trailing // comment (brace counting only)."""
    out = DOUBLE_QUOTED_RE.sub('""', line)
    out = SINGLE_QUOTED_RE.sub("''", out)
    return LINE_COMMENT_RE.sub("", out)


@dataclass
class _ScanCursor:
    index: int
    in_block_comment: bool = False


def _skip_annotations(lines: Sequence[str], index: int) -> int:
    """First line at or after `index` that is not a bare annotation.

    Annotation arguments may span lines and carry braces of their own
    (`consumes = { ... }`); those never count towards the method body. A line
    that continues with the declaration after the annotation is returned.
    """
    while index < len(lines):
        rest = normalize_line(lines[index]).strip()
        m = ANNOTATION_RE.match(rest)
        if not m:
            return index
        end, rest = index, rest[m.end():]
        if rest.startswith("("):
            depth = 0
            while True:
                closed = NOT_FOUND
                for pos, ch in enumerate(rest):
                    if ch == "(":
                        depth += 1
                    elif ch == ")":
                        depth -= 1
                        if depth == 0:
                            closed = pos
                            break
                if closed != NOT_FOUND:
                    rest = rest[closed + 1:]
                    break
                end += 1
                if end >= len(lines):
                    return index
                rest = normalize_line(lines[end])
        if rest.strip():
            return end
        index = end + 1
    return index


def find_method_end(lines: Sequence[str], start: int) -> int:
    """Index of the line after the brace that closes the body declared at/after `start`.

    Leading annotations are stepped over first. Returns NOT_FOUND when the end
    of input is reached before the body closes.
    """
    cur = _ScanCursor(_skip_annotations(lines, start))
    while cur.index < len(lines) and "{" not in normalize_line(lines[cur.index]):
        cur.index += 1

    depth = 0
    opened = False
    while cur.index < len(lines):
        line = lines[cur.index]
        stripped = line.strip()

        if cur.in_block_comment:
            if "*/" in stripped:
                cur.in_block_comment = False
            cur.index += 1
            continue
        if stripped.startswith("/*"):
            cur.in_block_comment = "*/" not in stripped[2:]
            cur.index += 1
            continue

        for ch in normalize_line(line):
            if ch == "{":
                depth += 1
                opened = True
            elif ch == "}" and opened:
                depth -= 1
                if depth == 0:
                    return cur.index + 1
        cur.index += 1

    return NOT_FOUND

# ---------------- method removal ----------------

def annotation_predicate(annotation: str) -> LinePredicate:
    pattern = re.compile(rf"{re.escape(annotation)}(?![\w.])")
    return lambda line: pattern.match(line.strip()) is not None


def signature_predicate(signature: Union[str, Pattern]) -> LinePredicate:
    pattern = re.compile(signature) if isinstance(signature, str) else signature
    return lambda line: pattern.search(line) is not None


def remove_method(text: str, predicate: LinePredicate) -> EditResult:
    """Drop every method whose first line satisfies `predicate`.

    Lines inside comments (Javadoc included) are copied and never matched.
    If a matched method has no balancing brace, the rest of the file is kept
    verbatim and the result is FAILED; earlier removals stay applied.
    """
    doc = SourceDocument(text)
    lines = doc.lines
    out: List[str] = []
    removed = 0
    in_comment = False
    i = 0

    while i < len(lines):
        line = lines[i]
        stripped = line.strip()

        if not in_comment and stripped.startswith("/*"):
            in_comment = True
            stripped = stripped[2:]
        if in_comment:
            out.append(line)
            if "*/" in stripped:
                in_comment = False
            i += 1
            continue

        if stripped.startswith("//") or not predicate(line):
            out.append(line)
            i += 1
            continue

        end = find_method_end(lines, i)
        if end == NOT_FOUND:
            out.extend(lines[i:])
            err = MalformedInputError(f"no balancing brace for method at line {i + 1}; rest of file left untouched")
            return EditResult(Outcome.FAILED, doc.render(out), str(err), err)

        removed += 1
        i = end

    if not removed:
        return EditResult.unchanged(text, Outcome.SKIPPED_ALREADY_PRESENT, "no matching method")
    return EditResult(Outcome.APPLIED, doc.render(out), f"removed {removed} method(s)")

# ---------------- insertion ----------------

@dataclass(frozen=True)
class Anchor:
    pattern: Pattern
    where: str = "before"
    group: int = 0

    @classmethod
    def before(cls, regex: str, flags: int = re.M, group: int = 0) -> "Anchor":
        return cls(re.compile(regex, flags), "before", group)

    @classmethod
    def after(cls, regex: str, flags: int = re.M, group: int = 0) -> "Anchor":
        return cls(re.compile(regex, flags), "after", group)


def insert_once(
    text: str,
    witness: Witness,
    insertion: Sequence[str],
    anchors: Sequence[Anchor],
    *,
    required: bool = False,
) -> EditResult:
    """Insert `insertion` lines at the first matching anchor unless `witness` is present.

    Each inserted line takes the indentation of the anchor line. With no anchor,
    raises NotFoundError if `required`, else returns SKIPPED_NO_ANCHOR.
    """
    if witness_present(text, witness):
        return EditResult.unchanged(text, Outcome.SKIPPED_ALREADY_PRESENT)

    doc = SourceDocument(text)
    for anchor in anchors:
        m = anchor.pattern.search(text)
        if not m:
            continue
        if anchor.where == "before":
            idx = doc.line_of(m.start(anchor.group))
            pos = idx
        else:
            idx = doc.line_of(max(m.start(anchor.group), m.end(anchor.group) - 1))
            pos = idx + 1
        target = doc.lines[idx]
        indent = target[: len(target) - len(target.lstrip())]
        block = [indent + x if x else x for x in insertion]
        return EditResult(Outcome.APPLIED, doc.render(doc.lines[:pos] + block + doc.lines[pos:]))

    if required:
        raise NotFoundError(f"no suitable anchor for {insertion[0].strip() if insertion else witness!r}")
    return EditResult.unchanged(text, Outcome.SKIPPED_NO_ANCHOR, "anchor not found")


def run_steps(text: str, steps: Sequence[Step]) -> Tuple[str, List[Tuple[str, EditResult]]]:
    results: List[Tuple[str, EditResult]] = []
    for name, step in steps:
        res = step(text)
        results.append((name, res))
        text = res.text
    return text, results
