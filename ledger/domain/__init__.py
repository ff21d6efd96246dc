"""Domain layer - Pure Python business logic."""

from ledger.domain.entities import (
    Account,
    BalanceSheet,
    JournalEntry,
    JournalLine,
    LedgerEntry,
    ProfitLoss,
    TrialBalance,
    TrialBalanceRow,
)
from ledger.domain.errors import (
    ConflictError,
    DuplicateAccountError,
    ImmutabilityViolationError,
    IntegrityError,
    IntegrityHaltedError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from ledger.domain.reports import ReportGenerator
from ledger.domain.repositories import LedgerStore, LedgerTransaction
from ledger.domain.services import (
    AccountRegistry,
    IntegrityGuard,
    JournalWriter,
    LedgerQueryEngine,
)
from ledger.domain.value_objects import AccountCode, AccountType, BalanceSide, JournalLineInput
