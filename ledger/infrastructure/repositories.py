"""
SQL ledger store on SQLModel/SQLAlchemy.

One ``transaction()`` is one session and one database transaction: header,
lines and audit row of an entry commit together or not at all. The UNIQUE
constraints on ``client_ref`` and ``reversal_of`` make the idempotency
check-and-insert safe under concurrent writers.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError as DBIntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ledger.core.logging_config import get_logger
from ledger.domain.entities import (
    Account,
    AuditRecord,
    JournalEntry,
    JournalLine,
    NewJournalEntry,
)
from ledger.domain.errors import DuplicateAccountError, NotFoundError
from ledger.domain.repositories import EntryInsertConflict, LedgerStore, LedgerTransaction
from ledger.domain.value_objects import AccountCode, AccountType, ensure_utc
from ledger.infrastructure.database import models

logger = get_logger("infrastructure.sql_store")


def _to_account(row: models.Account) -> Account:
    return Account(
        code=AccountCode(row.code),
        name=row.name,
        account_type=AccountType(row.account_type),
        active=row.active,
        description=row.description,
        created_at=ensure_utc(row.created_at),
    )


def _to_entry(row: models.JournalEntry) -> JournalEntry:
    return JournalEntry(
        id=row.id,
        description=row.description,
        created_at=ensure_utc(row.created_at),
        client_ref=row.client_ref,
        reversal_of=row.reversal_of,
        lines=tuple(
            JournalLine(
                entry_id=line.entry_id,
                line_number=line.line_number,
                account_code=AccountCode(line.account_code),
                debit=line.debit,
                credit=line.credit,
                description=line.description,
            )
            for line in sorted(row.lines, key=lambda line: line.line_number)
        ),
    )


def _to_audit(row: models.AuditLog) -> AuditRecord:
    return AuditRecord(
        id=row.id,
        action=row.action,
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        details=dict(row.details or {}),
        created_at=ensure_utc(row.created_at),
    )


class SqlLedgerStore(LedgerStore):

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    @contextmanager
    def transaction(self) -> Iterator["SqlLedgerTransaction"]:
        session = self.session_factory()
        try:
            yield SqlLedgerTransaction(session)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


class SqlLedgerTransaction(LedgerTransaction):

    def __init__(self, session: Session):
        self.session = session

    def get_account(self, code: AccountCode) -> Account | None:
        row = self.session.get(models.Account, code)
        return _to_account(row) if row is not None else None

    def list_accounts(self, account_type: AccountType | None = None) -> list[Account]:
        query = select(models.Account).order_by(models.Account.code)
        if account_type is not None:
            query = query.where(models.Account.account_type == account_type.value)
        return [_to_account(row) for row in self.session.scalars(query)]

    def add_account(self, account: Account) -> Account:
        row = models.Account(
            code=account.code,
            name=account.name,
            account_type=account.account_type.value,
            active=account.active,
            description=account.description,
            created_at=account.created_at,
        )
        self.session.add(row)
        try:
            self.session.flush()
        except DBIntegrityError:
            raise DuplicateAccountError(account.code) from None
        return _to_account(row)

    def set_account_active(self, code: AccountCode, active: bool) -> Account:
        row = self.session.get(models.Account, code, with_for_update=True)
        if row is None:
            raise NotFoundError("Account", code)
        row.active = active
        self.session.flush()
        return _to_account(row)

    def get_entry(self, entry_id: int) -> JournalEntry | None:
        row = self.session.get(models.JournalEntry, entry_id)
        return _to_entry(row) if row is not None else None

    def find_entry_by_client_ref(self, client_ref: str) -> JournalEntry | None:
        row = self.session.scalars(
            select(models.JournalEntry).where(models.JournalEntry.client_ref == client_ref)
        ).first()
        return _to_entry(row) if row is not None else None

    def find_reversal_of(self, entry_id: int) -> JournalEntry | None:
        row = self.session.scalars(
            select(models.JournalEntry).where(models.JournalEntry.reversal_of == entry_id)
        ).first()
        return _to_entry(row) if row is not None else None

    def insert_entry(self, draft: NewJournalEntry) -> JournalEntry:
        # lock the referenced accounts so a concurrent deactivation waits for this commit
        codes = sorted({line.account_code for line in draft.lines})
        self.session.scalars(
            select(models.Account).where(models.Account.code.in_(codes)).with_for_update()
        ).all()

        header = models.JournalEntry(
            description=draft.description,
            created_at=draft.created_at,
            client_ref=draft.client_ref,
            reversal_of=draft.reversal_of,
        )
        self.session.add(header)
        try:
            self.session.flush()
        except DBIntegrityError as exc:
            logger.warning(
                "journal_entry_unique_violation",
                extra={"client_ref": draft.client_ref, "reversal_of": draft.reversal_of},
            )
            raise EntryInsertConflict(draft.client_ref, draft.reversal_of) from exc

        for number, line in enumerate(draft.lines, start=1):
            self.session.add(
                models.JournalLine(
                    entry_id=header.id,
                    line_number=number,
                    account_code=line.account_code,
                    debit=line.debit,
                    credit=line.credit,
                    description=line.description,
                )
            )
        self.session.flush()
        self.session.refresh(header, attribute_names=["lines"])
        return _to_entry(header)

    def list_entries(self, limit: int | None = None, newest_first: bool = False) -> list[JournalEntry]:
        order = models.JournalEntry.id.desc() if newest_first else models.JournalEntry.id.asc()
        query = select(models.JournalEntry).order_by(order)
        if limit is not None:
            query = query.limit(limit)
        return [_to_entry(row) for row in self.session.scalars(query)]

    def entries_for_account(self, code: AccountCode) -> list[JournalEntry]:
        entry_ids = (
            select(models.JournalLine.entry_id)
            .where(models.JournalLine.account_code == code)
            .distinct()
        )
        query = (
            select(models.JournalEntry)
            .where(models.JournalEntry.id.in_(entry_ids))
            .order_by(models.JournalEntry.id.asc())
        )
        return [_to_entry(row) for row in self.session.scalars(query)]

    def add_audit_log(
        self, action: str, entity_type: str, entity_id: str, details: dict[str, Any]
    ) -> AuditRecord:
        row = models.AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            details={key: _jsonable(value) for key, value in details.items()},
        )
        self.session.add(row)
        self.session.flush()
        return _to_audit(row)

    def list_audit_logs(
        self,
        action: str | None = None,
        entity_type: str | None = None,
        limit: int = 100,
    ) -> list[AuditRecord]:
        query = select(models.AuditLog)
        if action:
            query = query.where(models.AuditLog.action == action)
        if entity_type:
            query = query.where(models.AuditLog.entity_type == entity_type)
        query = query.order_by(models.AuditLog.id.desc()).limit(limit)
        return [_to_audit(row) for row in self.session.scalars(query)]


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value
