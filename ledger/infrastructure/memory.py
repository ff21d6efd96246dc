"""
In-memory ledger store.

Transactions are serialized by one re-entrant lock. Writes are staged on
the transaction and published only when the ``with`` block exits cleanly,
so readers never see part of an entry.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from typing import Any

from ledger.domain.entities import Account, AuditRecord, JournalEntry, JournalLine, NewJournalEntry
from ledger.domain.errors import DuplicateAccountError, NotFoundError
from ledger.domain.repositories import EntryInsertConflict, LedgerStore, LedgerTransaction
from ledger.domain.value_objects import AccountCode, AccountType, utc_now


class InMemoryLedgerStore(LedgerStore):

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.accounts: dict[str, Account] = {}
        self.entries: list[JournalEntry] = []
        self.audit_logs: list[AuditRecord] = []

    @contextmanager
    def transaction(self) -> Iterator["InMemoryTransaction"]:
        with self._lock:
            tx = InMemoryTransaction(self)
            yield tx
            tx.publish()


class InMemoryTransaction(LedgerTransaction):

    def __init__(self, store: InMemoryLedgerStore):
        self._store = store
        self._accounts: dict[str, Account] = {}
        self._entries: list[JournalEntry] = []
        self._audit: list[AuditRecord] = []

    def publish(self) -> None:
        self._store.accounts.update(self._accounts)
        self._store.entries.extend(self._entries)
        self._store.audit_logs.extend(self._audit)

    def _all_entries(self) -> list[JournalEntry]:
        return self._store.entries + self._entries

    def get_account(self, code: AccountCode) -> Account | None:
        return self._accounts.get(code) or self._store.accounts.get(code)

    def list_accounts(self, account_type: AccountType | None = None) -> list[Account]:
        merged = {**self._store.accounts, **self._accounts}
        return [
            merged[code] for code in sorted(merged)
            if account_type is None or merged[code].account_type is account_type
        ]

    def add_account(self, account: Account) -> Account:
        if self.get_account(account.code) is not None:
            raise DuplicateAccountError(account.code)
        self._accounts[account.code] = account
        return account

    def set_account_active(self, code: AccountCode, active: bool) -> Account:
        account = self.get_account(code)
        if account is None:
            raise NotFoundError("Account", code)
        updated = replace(account, active=active)
        self._accounts[code] = updated
        return updated

    def get_entry(self, entry_id: int) -> JournalEntry | None:
        for entry in self._all_entries():
            if entry.id == entry_id:
                return entry
        return None

    def find_entry_by_client_ref(self, client_ref: str) -> JournalEntry | None:
        for entry in self._all_entries():
            if entry.client_ref == client_ref:
                return entry
        return None

    def find_reversal_of(self, entry_id: int) -> JournalEntry | None:
        for entry in self._all_entries():
            if entry.reversal_of == entry_id:
                return entry
        return None

    def insert_entry(self, draft: NewJournalEntry) -> JournalEntry:
        if draft.client_ref is not None and self.find_entry_by_client_ref(draft.client_ref):
            raise EntryInsertConflict(draft.client_ref, draft.reversal_of)
        if draft.reversal_of is not None and self.find_reversal_of(draft.reversal_of):
            raise EntryInsertConflict(draft.client_ref, draft.reversal_of)

        entries = self._all_entries()
        entry_id = entries[-1].id + 1 if entries else 1
        entry = JournalEntry(
            id=entry_id,
            description=draft.description,
            created_at=draft.created_at,
            client_ref=draft.client_ref,
            reversal_of=draft.reversal_of,
            lines=tuple(
                JournalLine(
                    entry_id=entry_id,
                    line_number=number,
                    account_code=line.account_code,
                    debit=line.debit,
                    credit=line.credit,
                    description=line.description,
                )
                for number, line in enumerate(draft.lines, start=1)
            ),
        )
        self._entries.append(entry)
        return entry

    def list_entries(self, limit: int | None = None, newest_first: bool = False) -> list[JournalEntry]:
        entries = self._all_entries()
        if newest_first:
            entries = entries[::-1]
        return entries[:limit] if limit is not None else entries

    def entries_for_account(self, code: AccountCode) -> list[JournalEntry]:
        return [
            entry for entry in self._all_entries()
            if any(line.account_code == code for line in entry.lines)
        ]

    def add_audit_log(
        self, action: str, entity_type: str, entity_id: str, details: dict[str, Any]
    ) -> AuditRecord:
        existing = len(self._store.audit_logs) + len(self._audit)
        record = AuditRecord(
            id=existing + 1,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            details=dict(details),
            created_at=utc_now(),
        )
        self._audit.append(record)
        return record

    def list_audit_logs(
        self,
        action: str | None = None,
        entity_type: str | None = None,
        limit: int = 100,
    ) -> list[AuditRecord]:
        records = [
            record for record in reversed(self._store.audit_logs + self._audit)
            if (action is None or record.action == action)
            and (entity_type is None or record.entity_type == entity_type)
        ]
        return records[:limit]
