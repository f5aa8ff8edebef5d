"""tangld core — layout, ledger, fragment library, scheduling, install."""
