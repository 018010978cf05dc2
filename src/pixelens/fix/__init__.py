"""Fix application, the edit ledger and undo."""
