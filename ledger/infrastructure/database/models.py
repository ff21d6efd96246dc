"""
Infrastructure - SQLModel database models and immutability listeners.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    String,
    UniqueConstraint,
    event,
)
from sqlmodel import Field, Relationship, SQLModel

from ledger.domain.errors import ImmutabilityViolationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(SQLModel, table=True):
    """Chart of accounts row; the code is the primary key and never changes."""

    __tablename__ = "accounts"

    code: str = Field(sa_column=Column(String(50), primary_key=True))
    name: str = Field(max_length=255)
    account_type: str = Field(max_length=20, index=True)
    active: bool = True
    description: str | None = None
    created_at: datetime = Field(default_factory=_utcnow, sa_type=DateTime(timezone=True))

    journal_lines: list["JournalLine"] = Relationship(back_populates="account")


class JournalEntry(SQLModel, table=True):
    """Journal entry header. Append-only."""

    __tablename__ = "journal_entries"

    id: int | None = Field(default=None, primary_key=True)
    description: str = ""
    created_at: datetime = Field(index=True, sa_type=DateTime(timezone=True))
    client_ref: str | None = Field(default=None, max_length=255, unique=True)
    reversal_of: int | None = Field(default=None, foreign_key="journal_entries.id", unique=True)

    lines: list["JournalLine"] = Relationship(
        back_populates="journal_entry",
        sa_relationship_kwargs={"order_by": "JournalLine.line_number", "lazy": "selectin"},
    )


class JournalLine(SQLModel, table=True):
    """Journal line: amounts in minor units, exactly one side positive."""

    __tablename__ = "journal_lines"
    __table_args__ = (
        CheckConstraint(
            "(debit > 0 AND credit = 0) OR (credit > 0 AND debit = 0)",
            name="ck_journal_lines_one_sided",
        ),
        UniqueConstraint("entry_id", "line_number", name="uq_journal_lines_entry_line"),
    )

    id: int | None = Field(default=None, primary_key=True)
    entry_id: int = Field(foreign_key="journal_entries.id", index=True)
    line_number: int
    account_code: str = Field(foreign_key="accounts.code", index=True, max_length=50)
    debit: int = Field(default=0, sa_type=BigInteger)
    credit: int = Field(default=0, sa_type=BigInteger)
    description: str | None = Field(default=None, max_length=500)

    journal_entry: "JournalEntry" = Relationship(back_populates="lines")
    account: "Account" = Relationship(back_populates="journal_lines")


class AuditLog(SQLModel, table=True):
    """Audit trail of accounting actions."""

    __tablename__ = "accounting_audit_logs"

    id: int | None = Field(default=None, primary_key=True)
    action: str = Field(index=True, max_length=100)
    entity_type: str = Field(max_length=100)
    entity_id: str = Field(max_length=100)
    details: dict = Field(default_factory=dict, sa_type=JSON)
    created_at: datetime = Field(default_factory=_utcnow, index=True, sa_type=DateTime(timezone=True))


def _reject_update(mapper, connection, target) -> None:
    raise ImmutabilityViolationError(
        type(target).__name__, getattr(target, "id", None), "committed rows cannot be updated"
    )


def _reject_delete(mapper, connection, target) -> None:
    key = getattr(target, "id", None) or getattr(target, "code", None)
    raise ImmutabilityViolationError(type(target).__name__, key, "rows cannot be deleted")


def register_immutability_listeners() -> None:
    """Refuse ORM updates/deletes of the append-only tables and account deletes."""
    for model in (JournalEntry, JournalLine, AuditLog):
        if not event.contains(model, "before_update", _reject_update):
            event.listen(model, "before_update", _reject_update)
    for model in (JournalEntry, JournalLine, AuditLog, Account):
        if not event.contains(model, "before_delete", _reject_delete):
            event.listen(model, "before_delete", _reject_delete)


register_immutability_listeners()
