"""
Domain Services - chart of accounts, journal posting and ledger projection.

Every service receives the ``LedgerStore`` it works on; each public call
runs inside exactly one ``store.transaction()``.
"""

import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from ledger.core.logging_config import get_logger

from .entities import Account, JournalEntry, LedgerEntry, NewJournalEntry
from .errors import (
    ConflictError,
    DuplicateAccountError,
    IntegrityHaltedError,
    NotFoundError,
    ValidationError,
)
from .repositories import EntryInsertConflict, LedgerStore, LedgerTransaction
from .value_objects import (
    AccountCode,
    AccountType,
    JournalLineInput,
    signed_movement,
    utc_now,
)

logger = get_logger("services")

LineLike = JournalLineInput | Mapping[str, Any]

DEFAULT_CHART: tuple[tuple[str, str, AccountType], ...] = (
    ("1000", "Cash", AccountType.ASSET),
    ("1010", "Checking Account", AccountType.ASSET),
    ("1020", "Savings Account", AccountType.ASSET),
    ("1100", "Brokerage Investments", AccountType.ASSET),
    ("1200", "Crypto Wallets", AccountType.ASSET),
    ("1300", "Accounts Receivable", AccountType.ASSET),
    ("2000", "Credit Cards", AccountType.LIABILITY),
    ("2100", "Accounts Payable", AccountType.LIABILITY),
    ("2200", "Loans Payable", AccountType.LIABILITY),
    ("3000", "Owner's Equity", AccountType.EQUITY),
    ("3100", "Opening Balances", AccountType.EQUITY),
    ("4000", "Salary Income", AccountType.REVENUE),
    ("4100", "Investment Income", AccountType.REVENUE),
    ("4200", "Subscription Revenue", AccountType.REVENUE),
    ("4900", "Other Income", AccountType.REVENUE),
    ("5000", "Living Expenses", AccountType.EXPENSE),
    ("5100", "Subscriptions & Software", AccountType.EXPENSE),
    ("5200", "Fees & Commissions", AccountType.EXPENSE),
    ("5900", "Other Expenses", AccountType.EXPENSE),
)


class IntegrityGuard:
    """
    Latch tripped when a ledger identity fails.

    While tripped, automated corrections are refused until an operator
    calls ``reset()``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reason: str | None = None

    @property
    def tripped(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> str | None:
        return self._reason

    def trip(self, reason: str) -> None:
        with self._lock:
            if self._reason is None:
                self._reason = reason
        logger.critical("integrity_guard_tripped", extra={"reason": reason})

    def reset(self) -> None:
        with self._lock:
            previous, self._reason = self._reason, None
        logger.warning("integrity_guard_reset", extra={"previous_reason": previous})

    def check(self) -> None:
        reason = self._reason
        if reason is not None:
            raise IntegrityHaltedError(reason)


class AccountRegistry:
    """Service - chart of accounts. Accounts are created once and never deleted."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def create_account(
        self,
        code: str,
        name: str,
        account_type: "str | AccountType",
        description: str | None = None,
    ) -> Account:
        code = (code or "").strip()
        name = (name or "").strip()
        if not code:
            raise ValidationError("INVALID_ACCOUNT_CODE", "Account code is required")
        if not name:
            raise ValidationError("INVALID_ACCOUNT_NAME", "Account name is required")
        kind = AccountType.parse(account_type)

        account = Account(
            code=AccountCode(code), name=name, account_type=kind, description=description
        )
        with self.store.transaction() as tx:
            if tx.get_account(account.code) is not None:
                raise DuplicateAccountError(code)
            created = tx.add_account(account)
            tx.add_audit_log(
                "create_account",
                "account",
                created.code,
                {"name": created.name, "type": created.account_type.value},
            )
        logger.info(
            "account_created",
            extra={"account_code": created.code, "account_type": created.account_type.value},
        )
        return created

    def get_account(self, code: str) -> Account:
        with self.store.transaction() as tx:
            account = tx.get_account(AccountCode(code))
        if account is None:
            raise NotFoundError("Account", code)
        return account

    def list_accounts(self, account_type: "str | AccountType | None" = None) -> list[Account]:
        kind = AccountType.parse(account_type) if account_type is not None else None
        with self.store.transaction() as tx:
            return tx.list_accounts(kind)

    def deactivate_account(self, code: str) -> Account:
        """Block new postings; history stays readable."""
        with self.store.transaction() as tx:
            account = tx.get_account(AccountCode(code))
            if account is None:
                raise NotFoundError("Account", code)
            if not account.active:
                return account
            account = tx.set_account_active(account.code, False)
            tx.add_audit_log("deactivate_account", "account", account.code, {})
        logger.info("account_deactivated", extra={"account_code": account.code})
        return account

    def seed_chart_of_accounts(
        self, chart: Iterable[tuple[str, str, AccountType]] = DEFAULT_CHART
    ) -> list[Account]:
        """Create the default chart, skipping codes that already exist."""
        created = []
        for code, name, account_type in chart:
            try:
                created.append(self.create_account(code, name, account_type))
            except DuplicateAccountError:
                continue
        return created


class JournalWriter:
    """
    Service - validates and atomically commits balanced journal entries.

    Entries are append-only. There is no update or delete; a correction is
    a new entry that negates the original (``reverse_journal_entry``).
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Callable[[], datetime] = utc_now,
        guard: IntegrityGuard | None = None,
    ):
        self.store = store
        self.clock = clock
        self.guard = guard or IntegrityGuard()

    def create_journal_entry(
        self,
        description: str,
        lines: Iterable[LineLike],
        client_ref: str | None = None,
    ) -> JournalEntry:
        if not isinstance(description, str) or not description.strip():
            raise ValidationError("MISSING_DESCRIPTION", "A journal entry needs a description")
        requested = self._coerce_lines(lines)
        return self._post(description.strip(), requested, client_ref, reversal_of=None)

    def reverse_journal_entry(
        self,
        entry_id: int,
        description: str | None = None,
        client_ref: str | None = None,
    ) -> JournalEntry:
        self.guard.check()
        with self.store.transaction() as tx:
            original = tx.get_entry(entry_id)
        if original is None:
            raise NotFoundError("JournalEntry", entry_id)

        requested = tuple(line.as_input().reversed() for line in original.lines)
        text = (description or "").strip() or f"Reversal of entry #{original.id}: {original.description}"
        return self._post(text, requested, client_ref, reversal_of=original.id)

    def get_journal_entry(self, entry_id: int) -> JournalEntry:
        with self.store.transaction() as tx:
            entry = tx.get_entry(entry_id)
        if entry is None:
            raise NotFoundError("JournalEntry", entry_id)
        return entry

    def list_journal_entries(self, limit: int | None = None) -> list[JournalEntry]:
        if limit is not None and limit <= 0:
            raise ValidationError("INVALID_LIMIT", "limit must be a positive integer")
        with self.store.transaction() as tx:
            return tx.list_entries(limit=limit, newest_first=True)

    def _post(
        self,
        description: str,
        requested: tuple[JournalLineInput, ...],
        client_ref: str | None,
        reversal_of: int | None,
    ) -> JournalEntry:
        if client_ref is not None:
            client_ref = client_ref.strip() or None

        try:
            with self.store.transaction() as tx:
                if client_ref is not None:
                    existing = tx.find_entry_by_client_ref(client_ref)
                    if existing is not None:
                        return self._replay(existing, requested)
                if reversal_of is not None:
                    self._ensure_not_reversed(tx, reversal_of)

                self._validate(tx, requested)
                entry = tx.insert_entry(
                    NewJournalEntry(
                        description=description or "",
                        created_at=self.clock(),
                        lines=requested,
                        client_ref=client_ref,
                        reversal_of=reversal_of,
                    )
                )
                tx.add_audit_log(
                    "reverse_journal" if reversal_of is not None else "post_journal",
                    "journal_entry",
                    str(entry.id),
                    {
                        "client_ref": client_ref,
                        "reversal_of": reversal_of,
                        "line_count": len(entry.lines),
                        "total": entry.total_debit,
                    },
                )
        except EntryInsertConflict:
            # lost a unique-constraint race to a concurrent writer
            logger.warning(
                "journal_insert_conflict",
                extra={"client_ref": client_ref, "reversal_of": reversal_of},
            )
            with self.store.transaction() as tx:
                if client_ref is not None:
                    existing = tx.find_entry_by_client_ref(client_ref)
                    if existing is not None:
                        return self._replay(existing, requested)
                if reversal_of is not None:
                    self._ensure_not_reversed(tx, reversal_of)
            raise

        logger.info(
            "journal_entry_posted",
            extra={
                "entry_id": entry.id,
                "client_ref": client_ref,
                "reversal_of": reversal_of,
                "total": entry.total_debit,
            },
        )
        return entry

    @staticmethod
    def _coerce_lines(lines: Iterable[LineLike]) -> tuple[JournalLineInput, ...]:
        if lines is None or isinstance(lines, (str, bytes, Mapping)):
            raise ValidationError("MALFORMED_ENTRY", "lines must be a list of journal lines")
        return tuple(JournalLineInput.coerce(raw, position) for position, raw in enumerate(lines, start=1))

    @staticmethod
    def _ensure_not_reversed(tx: LedgerTransaction, entry_id: int) -> None:
        prior = tx.find_reversal_of(entry_id)
        if prior is not None:
            raise ConflictError(
                f"Journal entry {entry_id} was already reversed by entry {prior.id}",
                entry_id=entry_id,
                reversal_id=prior.id,
            )

    @staticmethod
    def _replay(existing: JournalEntry, requested: tuple[JournalLineInput, ...]) -> JournalEntry:
        if existing.line_keys() != sorted(line.key() for line in requested):
            raise ConflictError(
                f"clientRef {existing.client_ref!r} was already used for entry {existing.id} "
                f"with different lines",
                client_ref=existing.client_ref,
                entry_id=existing.id,
            )
        logger.info(
            "journal_entry_replayed",
            extra={"entry_id": existing.id, "client_ref": existing.client_ref},
        )
        return existing

    @staticmethod
    def _validate(tx: LedgerTransaction, lines: tuple[JournalLineInput, ...]) -> None:
        if not lines:
            raise ValidationError("EMPTY_ENTRY", "A journal entry needs at least one line")

        for position, line in enumerate(lines, start=1):
            if line.debit < 0 or line.credit < 0 or not line.is_one_sided():
                raise ValidationError(
                    "INVALID_LINE_AMOUNT",
                    f"Line {position}: exactly one of debit/credit must be positive "
                    f"and the other zero (debit={line.debit}, credit={line.credit})",
                    line=position,
                    account_code=line.account_code,
                )

        for position, line in enumerate(lines, start=1):
            account = tx.get_account(line.account_code)
            if account is None:
                raise ValidationError(
                    "UNKNOWN_ACCOUNT",
                    f"Line {position}: account {line.account_code!r} does not exist",
                    line=position,
                    account_code=line.account_code,
                )
            if not account.active:
                raise ValidationError(
                    "INACTIVE_ACCOUNT",
                    f"Line {position}: account {line.account_code!r} is inactive",
                    line=position,
                    account_code=line.account_code,
                )

        total_debit = sum(line.debit for line in lines)
        total_credit = sum(line.credit for line in lines)
        if total_debit != total_credit:
            raise ValidationError(
                "UNBALANCED_ENTRY",
                f"Double-entry validation failed: debits ({total_debit}) "
                f"must equal credits ({total_credit})",
                total_debit=total_debit,
                total_credit=total_credit,
            )


class LedgerQueryEngine:
    """
    Service - per-account ledger projected from the entry log.

    Balances are always recomputed from committed lines; nothing is cached.
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    def get_account_ledger(self, account_code: str) -> list[LedgerEntry]:
        with self.store.transaction() as tx:
            account = tx.get_account(AccountCode(account_code))
            if account is None:
                raise NotFoundError("Account", account_code)
            entries = tx.entries_for_account(account.code)
        return self._project(account, entries)

    def get_account_balance(self, account_code: str) -> int:
        ledger = self.get_account_ledger(account_code)
        return ledger[-1].running_balance if ledger else 0

    def replay_balances(self) -> dict[str, int]:
        """Balance of every account from a full replay of the log."""
        with self.store.transaction() as tx:
            accounts = {account.code: account for account in tx.list_accounts()}
            entries = tx.list_entries()
        balances = {code: 0 for code in accounts}
        for entry in entries:
            for line in entry.lines:
                side = accounts[line.account_code].normal_balance
                balances[line.account_code] += signed_movement(side, line.debit, line.credit)
        return balances

    @staticmethod
    def _project(account: Account, entries: list[JournalEntry]) -> list[LedgerEntry]:
        side = account.normal_balance
        running = 0
        rows: list[LedgerEntry] = []
        for entry in entries:
            for line in entry.lines:
                if line.account_code != account.code:
                    continue
                running += signed_movement(side, line.debit, line.credit)
                rows.append(LedgerEntry(entry=entry, line=line, running_balance=running))
        return rows
