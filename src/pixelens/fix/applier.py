"""Patch application: turn an issue's suggested fix into a file rewrite."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from pixelens.core.models import Issue, PatchOutcome, PatchPlan, SearchResult
from pixelens.fix.ledger import EditLedger, LedgerError

logger = logging.getLogger(__name__)

_IMG_TAG_RE = re.compile(r"<img(?=[\s/>])[^>]*>", re.IGNORECASE)
_HAS_ALT_RE = re.compile(r"(?<![\w-])alt\s*=", re.IGNORECASE)
_ALT_VALUE_RE = re.compile(r"(?<![\w-])alt\s*=\s*(?:\"([^\"]*)\"|'([^']*)')", re.IGNORECASE)
_TAG_CLOSE_RE = re.compile(r"\s*/?>$")
_ALT_MENTION_RE = re.compile(r"\balt\b", re.IGNORECASE)
_COLOR_DECL_RE = re.compile(r"(?<![\w-])(?:background-)?color\s*:", re.IGNORECASE)


def read_source(path: Path) -> str:
    """Read a file exactly as stored (no newline translation)."""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def write_source(path: Path, content: str) -> None:
    """Overwrite an existing file via a temp file beside it and a rename.

    Symlinks are resolved first so the link's target is rewritten and the
    link itself stays in place. Raises ``FileNotFoundError`` when the file
    is gone; a fix never recreates a deleted file.
    """
    path = Path(os.path.realpath(path))
    mode = path.stat().st_mode
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


# ---------------------------------------------------------------------------
# Fix rules
# ---------------------------------------------------------------------------

def extract_alt_text(suggested_fix: str) -> str | None:
    """The quoted alt attribute (with its quotes) from a suggested fix."""
    match = _ALT_VALUE_RE.search(suggested_fix)
    if not match:
        return None
    if match.group(1) is not None:
        return f'alt="{match.group(1)}"'
    return f"alt='{match.group(2)}'"


def insert_missing_alt(content: str, alt_attribute: str) -> str:
    """Add *alt_attribute* to every ``<img>`` tag that has no alt yet."""

    def add_alt(match: re.Match[str]) -> str:
        tag = match.group(0)
        if _HAS_ALT_RE.search(tag):
            return tag
        close = _TAG_CLOSE_RE.search(tag)
        head, tail = tag[: close.start()], tag[close.start():]
        return f"{head} {alt_attribute}{tail}"

    return _IMG_TAG_RE.sub(add_alt, content)


def insert_css_declaration(content: str, selectors: Sequence[str], declaration: str) -> str:
    """Put *declaration* on its own line right after the first matching rule's ``{``.

    A rule matches when its selector text starts with one of *selectors*
    (compared literally). Blocks already holding the declaration are left
    alone.
    """
    declaration = declaration.strip()
    if not declaration:
        return content
    if not declaration.endswith(";"):
        declaration += ";"

    for selector in selectors:
        pattern = re.compile(
            r"(?<![^\s},])" + re.escape(selector) + r"(?![\w-])[^{};]*\{"
        )
        match = pattern.search(content)
        if not match:
            continue
        brace = match.end()
        block_end = content.find("}", brace)
        block = content[brace:block_end if block_end != -1 else len(content)]
        if declaration in block:
            return content
        newline = "\r\n" if "\r\n" in content else "\n"
        indent = _block_indent(block, _line_indent(content, match.start()))
        return content[:brace] + newline + indent + declaration + content[brace:]
    return content


def _line_indent(content: str, pos: int) -> str:
    line_start = content.rfind("\n", 0, pos) + 1
    line = content[line_start:pos]
    return line[: len(line) - len(line.lstrip())]


def _block_indent(block: str, rule_indent: str) -> str:
    """Indentation of the block's first declaration, or rule indent + 2."""
    for line in block.splitlines()[1:]:
        if line.strip():
            return line[: len(line) - len(line.lstrip())]
    return rule_indent + "  "


def _is_missing_alt_fix(issue: Issue) -> bool:
    if issue.normalized_category != "accessibility":
        return False
    if _HAS_ALT_RE.search(issue.suggested_fix):
        return True
    return bool(_ALT_MENTION_RE.search(issue.title) or _ALT_MENTION_RE.search(issue.description))


def _is_color_fix(issue: Issue) -> bool:
    return issue.normalized_category == "styling" and bool(_COLOR_DECL_RE.search(issue.suggested_fix))


def _fix_missing_alt(issue: Issue, content: str) -> tuple[str, str]:
    alt_attribute = extract_alt_text(issue.suggested_fix)
    if alt_attribute is None:
        return content, "suggested fix has no quoted alt=\"...\" value to insert"
    new_content = insert_missing_alt(content, alt_attribute)
    if new_content == content:
        return content, "every <img> tag already declares alt"
    return new_content, f"Added {alt_attribute} to <img> tags missing alt text"


def _fix_css_declaration(issue: Issue, content: str) -> tuple[str, str]:
    declaration = issue.suggested_fix.strip()
    new_content = insert_css_declaration(content, issue.selector_fragments, declaration)
    if new_content == content:
        return content, f"no {issue.element_selector} rule that lacks '{declaration}'"
    return new_content, f"Inserted '{declaration}' into the {issue.element_selector} rule"


STYLESHEET_SUFFIXES = frozenset({".css", ".scss", ".less"})

Transform = Callable[[Issue, str], tuple[str, str]]


@dataclass(frozen=True)
class FixRule:
    """An automatic fix and the issues and files it is safe for."""

    name: str
    applies: Callable[[Issue], bool]
    transform: Transform
    suffixes: frozenset[str] | None = None  # None: any file type

    def handles(self, issue: Issue, file_path: Path | None = None) -> bool:
        if not self.applies(issue):
            return False
        if file_path is None or self.suffixes is None:
            return True
        return file_path.suffix.lower() in self.suffixes


FIX_RULES: list[FixRule] = [
    FixRule("missing-alt", _is_missing_alt_fix, _fix_missing_alt),
    # Brace-matching would also hit JS functions named like a selector.
    FixRule("css-declaration", _is_color_fix, _fix_css_declaration, STYLESHEET_SUFFIXES),
]


def find_fix_rule(issue: Issue, file_path: Path | None = None) -> FixRule | None:
    """The first rule that handles *issue*, restricted to *file_path*'s type if given."""
    for rule in FIX_RULES:
        if rule.handles(issue, file_path):
            return rule
    return None


# ---------------------------------------------------------------------------
# Applier
# ---------------------------------------------------------------------------

class PatchApplier:
    """Applies an issue's fix at its best match, recording each real change."""

    def __init__(self, ledger: EditLedger):
        self.ledger = ledger

    def plan(self, best_match: SearchResult, issue: Issue) -> PatchPlan | None:
        """Run the fix rule without writing. None when no rule applies.

        Raises ``OSError``/``UnicodeDecodeError`` if the file can't be read.
        """
        rule = find_fix_rule(issue, best_match.file_path)
        if rule is None:
            return None
        content = read_source(best_match.file_path)
        new_content, message = rule.transform(issue, content)
        return PatchPlan(
            rule=rule.name,
            file_path=best_match.file_path,
            original_content=content,
            new_content=new_content,
            message=message,
        )

    def apply(
        self,
        best_match: SearchResult,
        issue: Issue,
        candidates: Sequence[SearchResult] = (),
    ) -> PatchOutcome:
        """Apply the fix to ``best_match.file_path`` if a rule covers it."""
        candidates = list(candidates) or [best_match]
        file_path = best_match.file_path

        def failed(message: str) -> PatchOutcome:
            return PatchOutcome(
                success=False,
                message=message,
                file_path=file_path,
                line_number=best_match.line_number,
                candidates=candidates,
            )

        try:
            plan = self.plan(best_match, issue)
        except (OSError, UnicodeDecodeError) as e:
            return failed(f"Cannot read {file_path}: {e}")

        if plan is None:
            return failed(
                f"No automatic fix for {issue.category or 'uncategorised'} issue "
                f"'{issue.title or issue.id}'. Edit the candidates manually."
            )

        if not plan.changed:
            return failed(f"No changes applied to {file_path.name}: {plan.message}")

        return self.write(
            file_path,
            plan.original_content,
            plan.new_content,
            message=plan.message,
            line_number=best_match.line_number,
            candidates=candidates,
        )

    def write(
        self,
        file_path: Path,
        original_content: str,
        new_content: str,
        *,
        message: str = "",
        line_number: int | None = None,
        candidates: Sequence[SearchResult] = (),
    ) -> PatchOutcome:
        """Overwrite the file and append a ledger record, in that order."""
        if new_content == original_content:
            return PatchOutcome(
                success=False,
                message=f"No changes to write for {file_path}",
                file_path=file_path,
                line_number=line_number,
                candidates=list(candidates),
            )

        try:
            write_source(file_path, new_content)
        except OSError as e:
            logger.warning("Write to %s failed: %s", file_path, e)
            return PatchOutcome(
                success=False,
                message=f"Failed to write {file_path}: {e}",
                file_path=file_path,
                line_number=line_number,
                candidates=list(candidates),
            )

        try:
            record = self.ledger.append(file_path, original_content, new_content)
        except LedgerError as e:
            logger.error("Wrote %s but could not record the edit: %s", file_path, e)
            return PatchOutcome(
                success=False,
                message=f"Fix was written to {file_path} but the audit record failed: {e}",
                file_path=file_path,
                line_number=line_number,
                candidates=list(candidates),
                audit_recorded=False,
            )

        logger.info("Applied edit %s to %s", record.id, file_path)
        return PatchOutcome(
            success=True,
            message=message or f"Updated {file_path}",
            file_path=file_path,
            line_number=line_number,
            candidates=list(candidates),
            edit_id=record.id,
        )
