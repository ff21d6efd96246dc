"""Double-entry accounting engine: chart of accounts, journal, ledger and reports."""

__version__ = "0.1.0"
