"""Fix engine, the caller-facing entry point.

Walks the project, ranks candidate lines for an issue, applies the fix at
the best one and keeps the edit history.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pixelens.core.config import PixeLensConfig, history_db_path, load_config
from pixelens.core.models import EditRecord, Issue, PatchOutcome, PatchPlan, SearchResult
from pixelens.fix.applier import PatchApplier, read_source
from pixelens.fix.ledger import EditLedger
from pixelens.fix.undo import UndoManager
from pixelens.locator.matcher import ContentMatcher, best_candidate
from pixelens.locator.search import search
from pixelens.locator.walker import CancellationToken, walk

logger = logging.getLogger(__name__)


class FixEngine:
    """Core engine that locates issues and applies fixes."""

    def __init__(
        self,
        project_path: Path | None = None,
        config: PixeLensConfig | None = None,
        ledger: EditLedger | None = None,
    ):
        self.project_path = (project_path or Path.cwd()).resolve()
        self.config = config or load_config(self.project_path)
        self.ledger = ledger or EditLedger(history_db_path(self.project_path, self.config))
        self.matcher = ContentMatcher(max_workers=self.config.search.max_workers)
        self.applier = PatchApplier(self.ledger)
        self.undo_manager = UndoManager(self.ledger, self.applier)

    def search(
        self,
        term: str,
        root: Path | None = None,
        cancel: CancellationToken | None = None,
    ) -> list[SearchResult]:
        """Plain "find in project" search."""
        return search(root or self.project_path, term, self.config, cancel)

    def locate(
        self,
        issue: Issue,
        root: Path | None = None,
        cancel: CancellationToken | None = None,
    ) -> list[SearchResult]:
        """Ranked candidate locations for an issue, best first."""
        files = walk(
            root or self.project_path,
            self.config.allowed_extensions,
            self.config.excluded_dir_names,
            cancel,
        )
        return self.matcher.find_candidates(files, issue)

    def preview_fix(self, issue: Issue, root: Path | None = None) -> PatchPlan | None:
        """What apply_fix would write, without writing it."""
        best = best_candidate(self.locate(issue, root))
        if best is None:
            return None
        return self.applier.plan(best, issue)

    def apply_fix(
        self,
        issue: Issue,
        root: Path | None = None,
        cancel: CancellationToken | None = None,
    ) -> PatchOutcome:
        """Locate the issue and fix it at the top-ranked candidate."""
        candidates = self.locate(issue, root, cancel)
        best = best_candidate(candidates)
        if best is None:
            logger.info("No match for issue %s (%s)", issue.id, issue.element_selector)
            return PatchOutcome(
                success=False,
                message=f"No match found for '{issue.element_selector}'",
                candidates=[],
            )
        return self.applier.apply(best, issue, candidates)

    def write_file(self, file_path: Path, content: str) -> PatchOutcome:
        """Manual edit: overwrite a file and record it if anything changed."""
        file_path = self._resolve_file(file_path)
        try:
            original = read_source(file_path)
        except (OSError, UnicodeDecodeError) as e:
            return PatchOutcome(success=False, message=f"Cannot read {file_path}: {e}", file_path=file_path)
        return self.applier.write(file_path, original, content, message=f"Saved {file_path}")

    def list_edit_history(self) -> list[EditRecord]:
        return self.ledger.list()

    def undo(self, edit_id: int) -> PatchOutcome:
        """Undo a previously recorded edit."""
        return self.undo_manager.undo(edit_id)

    def list_undoable(self) -> list[EditRecord]:
        return self.undo_manager.list_undoable()

    def _resolve_file(self, file: Path) -> Path:
        """Resolve possibly relative file path."""
        file = Path(file)
        if file.is_absolute():
            return file
        return self.project_path / file
