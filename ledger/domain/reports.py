"""
Report Generator - trial balance, profit & loss and balance sheet.

Reports only read committed entries, each from a single store transaction.
An identity that fails to hold is an IntegrityError: it is logged at
CRITICAL, trips the shared IntegrityGuard and propagates to the caller.
"""

from datetime import datetime

from ledger.core.logging_config import get_logger

from .entities import (
    Account,
    BalanceSheet,
    JournalEntry,
    ProfitLoss,
    TrialBalance,
    TrialBalanceRow,
)
from .errors import IntegrityError, ValidationError
from .repositories import LedgerStore
from .services import IntegrityGuard
from .value_objects import AccountType, ensure_utc, signed_movement

logger = get_logger("reports")


class ReportGenerator:

    def __init__(self, store: LedgerStore, guard: IntegrityGuard | None = None):
        self.store = store
        self.guard = guard or IntegrityGuard()

    def generate_trial_balance(self) -> TrialBalance:
        """Debit and credit totals per account; grand totals must match."""
        accounts, entries = self._snapshot()
        debits = {code: 0 for code in accounts}
        credits = {code: 0 for code in accounts}
        for entry in entries:
            for line in entry.lines:
                debits[line.account_code] += line.debit
                credits[line.account_code] += line.credit

        rows = tuple(
            TrialBalanceRow(
                account_code=account.code,
                account_name=account.name,
                account_type=account.account_type,
                debit_total=debits[code],
                credit_total=credits[code],
            )
            for code, account in sorted(accounts.items())
        )
        report = TrialBalance(
            rows=rows,
            total_debits=sum(debits.values()),
            total_credits=sum(credits.values()),
        )
        if report.total_debits != report.total_credits:
            self._integrity_failure(
                "trial_balance", report.total_debits, report.total_credits
            )
        return report

    def generate_profit_loss(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> ProfitLoss:
        """Revenue and expense movements for entries created in [start, end)."""
        start, end = ensure_utc(start), ensure_utc(end)
        if start is not None and end is not None and start >= end:
            raise ValidationError(
                "INVALID_DATE_RANGE",
                f"start ({start.isoformat()}) must be before end ({end.isoformat()})",
            )
        accounts, entries = self._snapshot()
        selected = [
            entry for entry in entries
            if (start is None or entry.created_at >= start)
            and (end is None or entry.created_at < end)
        ]
        revenue, expense = self._income_totals(accounts, selected)
        return ProfitLoss(start=start, end=end, revenue_total=revenue, expense_total=expense)

    def generate_balance_sheet(self, as_of: datetime | None = None) -> BalanceSheet:
        """
        Asset, liability and equity balances over entries created at or
        before ``as_of``, with accumulated net income as retained earnings.
        Must satisfy assets == liabilities + equity + retained earnings.
        """
        as_of = ensure_utc(as_of)
        accounts, entries = self._snapshot()
        selected = [
            entry for entry in entries
            if as_of is None or entry.created_at <= as_of
        ]

        balances = {code: 0 for code in accounts}
        for entry in selected:
            for line in entry.lines:
                side = accounts[line.account_code].normal_balance
                balances[line.account_code] += signed_movement(side, line.debit, line.credit)

        def total(kind: AccountType) -> int:
            return sum(
                balances[code] for code, account in accounts.items()
                if account.account_type is kind
            )

        revenue, expense = self._income_totals(accounts, selected)
        sheet = BalanceSheet(
            as_of=as_of,
            assets=total(AccountType.ASSET),
            liabilities=total(AccountType.LIABILITY),
            equity=total(AccountType.EQUITY),
            retained_earnings=revenue - expense,
            account_balances={
                code: balances[code] for code, account in sorted(accounts.items())
                if account.account_type in (AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY)
            },
        )
        if not sheet.is_balanced():
            self._integrity_failure(
                "balance_sheet",
                sheet.assets,
                sheet.liabilities + sheet.equity + sheet.retained_earnings,
                as_of=as_of.isoformat() if as_of else None,
            )
        return sheet

    def _snapshot(self) -> tuple[dict[str, Account], list[JournalEntry]]:
        with self.store.transaction() as tx:
            accounts = {account.code: account for account in tx.list_accounts()}
            entries = tx.list_entries()
        for entry in entries:
            for line in entry.lines:
                if line.account_code not in accounts:
                    self._integrity_failure(
                        "line_references_missing_account",
                        entry_id=entry.id, account_code=line.account_code,
                    )
        return accounts, entries

    @staticmethod
    def _income_totals(accounts: dict[str, Account], entries: list[JournalEntry]) -> tuple[int, int]:
        revenue = expense = 0
        for entry in entries:
            for line in entry.lines:
                account = accounts[line.account_code]
                movement = signed_movement(account.normal_balance, line.debit, line.credit)
                if account.account_type is AccountType.REVENUE:
                    revenue += movement
                elif account.account_type is AccountType.EXPENSE:
                    expense += movement
        return revenue, expense

    def _integrity_failure(
        self, identity: str, left: int | None = None, right: int | None = None, **details
    ) -> None:
        error = IntegrityError(identity, left, right, **details)
        logger.critical(
            "ledger_integrity_violation",
            extra={"identity": identity, "left": left, "right": right, **details},
        )
        self.guard.trip(str(error))
        raise error
