"""Undo support for recorded edits."""

from __future__ import annotations

from pixelens.core.models import EditRecord, PatchOutcome
from pixelens.fix.applier import PatchApplier, read_source
from pixelens.fix.ledger import EditLedger


class UndoManager:
    """Restores files to the content they had before a recorded edit.

    Undo is itself an edit, so a successful undo appends its own ledger
    record rather than removing the original one.
    """

    def __init__(self, ledger: EditLedger, applier: PatchApplier | None = None):
        self.ledger = ledger
        self.applier = applier or PatchApplier(ledger)

    def list_undoable(self) -> list[EditRecord]:
        """Edits whose file still holds exactly the content they wrote, newest first."""
        entries = []
        for record in reversed(self.ledger.list()):
            try:
                current = read_source(record.file_path)
            except (OSError, UnicodeDecodeError):
                continue
            if current == record.modified_content:
                entries.append(record)
        return entries

    def undo(self, edit_id: int) -> PatchOutcome:
        """Undo a specific edit by restoring its original content."""
        record = self.ledger.get(edit_id)
        if record is None:
            return PatchOutcome(success=False, message=f"No edit #{edit_id} in history")

        try:
            current = read_source(record.file_path)
        except (OSError, UnicodeDecodeError) as e:
            return PatchOutcome(
                success=False,
                message=f"Cannot read {record.file_path}: {e}",
                file_path=record.file_path,
            )

        if current != record.modified_content:
            return PatchOutcome(
                success=False,
                message=f"{record.file_path} has changed since edit #{edit_id}; not reverting.",
                file_path=record.file_path,
            )

        return self.applier.write(
            record.file_path,
            current,
            record.original_content,
            message=f"Reverted edit #{edit_id}, restored {record.file_path}",
        )
