"""
Repository interfaces - the ledger store is injected into every service.

A store hands out one ``LedgerTransaction`` per call through
``store.transaction()``: everything done inside the ``with`` block is
committed together when it exits normally and discarded when it raises.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any

from .entities import Account, AuditRecord, JournalEntry, NewJournalEntry
from .value_objects import AccountCode, AccountType


class EntryInsertConflict(Exception):
    """
    Raised by ``insert_entry`` when a unique key of the new entry is taken:
    its clientRef, or the original it claims to reverse. The transaction is
    unusable afterwards; callers re-read in a fresh one.
    """

    def __init__(self, client_ref: str | None, reversal_of: int | None):
        self.client_ref = client_ref
        self.reversal_of = reversal_of
        super().__init__(f"client_ref={client_ref!r} reversal_of={reversal_of!r}")


class LedgerTransaction(ABC):

    @abstractmethod
    def get_account(self, code: AccountCode) -> Account | None:
        ...

    @abstractmethod
    def list_accounts(self, account_type: AccountType | None = None) -> list[Account]:
        """Accounts ordered by code."""
        ...

    @abstractmethod
    def add_account(self, account: Account) -> Account:
        """Raises DuplicateAccountError when the code is taken."""
        ...

    @abstractmethod
    def set_account_active(self, code: AccountCode, active: bool) -> Account:
        ...

    @abstractmethod
    def get_entry(self, entry_id: int) -> JournalEntry | None:
        ...

    @abstractmethod
    def find_entry_by_client_ref(self, client_ref: str) -> JournalEntry | None:
        ...

    @abstractmethod
    def find_reversal_of(self, entry_id: int) -> JournalEntry | None:
        ...

    @abstractmethod
    def insert_entry(self, draft: NewJournalEntry) -> JournalEntry:
        """Assign the next id and persist header and lines. Raises EntryInsertConflict."""
        ...

    @abstractmethod
    def list_entries(self, limit: int | None = None, newest_first: bool = False) -> list[JournalEntry]:
        ...

    @abstractmethod
    def entries_for_account(self, code: AccountCode) -> list[JournalEntry]:
        """Entries with at least one line on the account, id ascending."""
        ...

    @abstractmethod
    def add_audit_log(
        self, action: str, entity_type: str, entity_id: str, details: dict[str, Any]
    ) -> AuditRecord:
        ...

    @abstractmethod
    def list_audit_logs(
        self,
        action: str | None = None,
        entity_type: str | None = None,
        limit: int = 100,
    ) -> list[AuditRecord]:
        """Newest first."""
        ...


class LedgerStore(ABC):

    @abstractmethod
    def transaction(self) -> AbstractContextManager[LedgerTransaction]:
        ...
