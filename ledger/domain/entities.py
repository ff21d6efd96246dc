"""
Domain Entities - chart of accounts, journal entries and report results.
All entities are frozen: a committed entry has no mutation path.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .value_objects import AccountCode, AccountType, BalanceSide, JournalLineInput, utc_now


@dataclass(frozen=True, slots=True)
class Account:
    """Entity - account in the chart of accounts, keyed by its immutable code."""
    code: AccountCode
    name: str
    account_type: AccountType
    active: bool = True
    description: str | None = None
    created_at: datetime = field(default_factory=utc_now)

    @property
    def normal_balance(self) -> BalanceSide:
        return self.account_type.normal_balance


@dataclass(frozen=True, slots=True)
class JournalLine:
    entry_id: int
    line_number: int
    account_code: AccountCode
    debit: int
    credit: int
    description: str | None = None

    def as_input(self) -> JournalLineInput:
        return JournalLineInput(
            self.account_code, debit=self.debit, credit=self.credit, description=self.description
        )


@dataclass(frozen=True, slots=True)
class NewJournalEntry:
    """A validated entry waiting for the store to assign its id."""
    description: str
    created_at: datetime
    lines: tuple[JournalLineInput, ...]
    client_ref: str | None = None
    reversal_of: int | None = None


@dataclass(frozen=True, slots=True)
class JournalEntry:
    """
    Entity - committed journal entry.
    Total debit == total credit is checked before commit; the entry never changes after.
    """
    id: int
    description: str
    created_at: datetime
    lines: tuple[JournalLine, ...]
    client_ref: str | None = None
    reversal_of: int | None = None

    @property
    def total_debit(self) -> int:
        return sum(line.debit for line in self.lines)

    @property
    def total_credit(self) -> int:
        return sum(line.credit for line in self.lines)

    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit

    def line_keys(self) -> list[tuple[str, int, int]]:
        return sorted(line.as_input().key() for line in self.lines)


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """One row of an account ledger: the line plus the balance after it."""
    entry: JournalEntry
    line: JournalLine
    running_balance: int


@dataclass(frozen=True, slots=True)
class AuditRecord:
    id: int
    action: str
    entity_type: str
    entity_id: str
    details: dict[str, Any]
    created_at: datetime


@dataclass(frozen=True, slots=True)
class TrialBalanceRow:
    account_code: AccountCode
    account_name: str
    account_type: AccountType
    debit_total: int
    credit_total: int

    @property
    def balance(self) -> int:
        """Net balance on the account's normal side."""
        if self.account_type.normal_balance is BalanceSide.DEBIT:
            return self.debit_total - self.credit_total
        return self.credit_total - self.debit_total


@dataclass(frozen=True, slots=True)
class TrialBalance:
    rows: tuple[TrialBalanceRow, ...]
    total_debits: int
    total_credits: int

    def by_code(self) -> dict[str, TrialBalanceRow]:
        return {row.account_code: row for row in self.rows}


@dataclass(frozen=True, slots=True)
class ProfitLoss:
    start: datetime | None
    end: datetime | None
    revenue_total: int
    expense_total: int

    @property
    def net_income(self) -> int:
        return self.revenue_total - self.expense_total


@dataclass(frozen=True, slots=True)
class BalanceSheet:
    as_of: datetime | None
    assets: int
    liabilities: int
    equity: int
    retained_earnings: int
    account_balances: dict[str, int] = field(default_factory=dict)

    def is_balanced(self) -> bool:
        return self.assets == self.liabilities + self.equity + self.retained_earnings
