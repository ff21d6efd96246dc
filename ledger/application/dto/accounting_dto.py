"""
API DTOs - Data Transfer Objects for API requests/responses.
Monetary fields are integers in minor units; floats are rejected.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel

from ledger.domain.entities import (
    Account,
    AuditRecord,
    BalanceSheet,
    JournalEntry,
    LedgerEntry,
    ProfitLoss,
    TrialBalance,
)
from ledger.domain.value_objects import AccountType, BalanceSide, JournalLineInput


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccountCreateDTO(CamelModel):
    """DTO - Create an account."""
    code: str = Field(..., min_length=1, max_length=50, description="Unique account code")
    name: str = Field(..., min_length=1, max_length=255, description="Account name")
    type: str = Field(..., description="asset, liability, equity, revenue or expense")
    description: str | None = Field(None, description="Free-form description")

    model_config = ConfigDict(json_schema_extra={
        "example": {"code": "1000", "name": "Cash", "type": "asset"}
    })


class AccountResponseDTO(CamelModel):
    """DTO - Account."""
    code: str
    name: str
    type: AccountType
    normal_balance_side: BalanceSide
    active: bool
    description: str | None
    created_at: datetime

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponseDTO":
        return cls(
            code=account.code,
            name=account.name,
            type=account.account_type,
            normal_balance_side=account.normal_balance,
            active=account.active,
            description=account.description,
            created_at=account.created_at,
        )


class JournalLineCreateDTO(CamelModel):
    """DTO - One journal line; exactly one of debit/credit is positive."""
    account_code: str = Field(..., min_length=1, description="Account code")
    debit: StrictInt = Field(0, description="Debit amount in minor units")
    credit: StrictInt = Field(0, description="Credit amount in minor units")
    description: str | None = Field(None, max_length=500, description="Line memo")

    def to_domain(self) -> JournalLineInput:
        return JournalLineInput(
            account_code=self.account_code,
            debit=self.debit,
            credit=self.credit,
            description=self.description,
        )


class JournalEntryCreateDTO(CamelModel):
    """DTO - Post a journal entry."""
    description: str = Field(..., max_length=500, description="What happened")
    lines: list[JournalLineCreateDTO] = Field(..., description="Debit and credit lines")
    client_ref: str | None = Field(None, max_length=255, description="Idempotency key")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "description": "Consulting invoice paid",
            "clientRef": "stripe:pi_3Nx",
            "lines": [
                {"accountCode": "1000", "debit": 10000, "credit": 0},
                {"accountCode": "4200", "debit": 0, "credit": 10000},
            ],
        }
    })


class JournalReverseDTO(CamelModel):
    """DTO - Reverse a journal entry."""
    description: str | None = Field(None, max_length=500)
    client_ref: str | None = Field(None, max_length=255)


class JournalLineResponseDTO(CamelModel):
    entry_id: int
    line_number: int
    account_code: str
    debit: int
    credit: int
    description: str | None = None


class JournalEntryResponseDTO(CamelModel):
    """DTO - Committed journal entry."""
    id: int
    description: str
    created_at: datetime
    client_ref: str | None
    reversal_of: int | None
    total_debit: int
    total_credit: int
    lines: list[JournalLineResponseDTO]

    @classmethod
    def from_domain(cls, entry: JournalEntry) -> "JournalEntryResponseDTO":
        return cls(
            id=entry.id,
            description=entry.description,
            created_at=entry.created_at,
            client_ref=entry.client_ref,
            reversal_of=entry.reversal_of,
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
            lines=[
                JournalLineResponseDTO(
                    entry_id=line.entry_id,
                    line_number=line.line_number,
                    account_code=line.account_code,
                    debit=line.debit,
                    credit=line.credit,
                    description=line.description,
                )
                for line in entry.lines
            ],
        )


class LedgerRowDTO(CamelModel):
    """DTO - One account ledger row."""
    entry_id: int
    line_number: int
    created_at: datetime
    description: str
    line_description: str | None
    debit: int
    credit: int
    running_balance: int

    @classmethod
    def from_domain(cls, row: LedgerEntry) -> "LedgerRowDTO":
        return cls(
            entry_id=row.entry.id,
            line_number=row.line.line_number,
            created_at=row.entry.created_at,
            description=row.entry.description,
            line_description=row.line.description,
            debit=row.line.debit,
            credit=row.line.credit,
            running_balance=row.running_balance,
        )


class AccountLedgerDTO(CamelModel):
    account: AccountResponseDTO
    balance: int
    entries: list[LedgerRowDTO]


class TrialBalanceRowDTO(CamelModel):
    account_code: str
    account_name: str
    account_type: AccountType
    debit_total: int
    credit_total: int
    balance: int


class TrialBalanceDTO(CamelModel):
    """DTO - Trial balance."""
    accounts: list[TrialBalanceRowDTO]
    total_debits: int
    total_credits: int

    @classmethod
    def from_domain(cls, report: TrialBalance) -> "TrialBalanceDTO":
        return cls(
            accounts=[
                TrialBalanceRowDTO(
                    account_code=row.account_code,
                    account_name=row.account_name,
                    account_type=row.account_type,
                    debit_total=row.debit_total,
                    credit_total=row.credit_total,
                    balance=row.balance,
                )
                for row in report.rows
            ],
            total_debits=report.total_debits,
            total_credits=report.total_credits,
        )


class ProfitLossDTO(CamelModel):
    """DTO - Profit & loss."""
    start_date: datetime | None
    end_date: datetime | None
    revenue_total: int
    expense_total: int
    net_income: int

    @classmethod
    def from_domain(cls, report: ProfitLoss) -> "ProfitLossDTO":
        return cls(
            start_date=report.start,
            end_date=report.end,
            revenue_total=report.revenue_total,
            expense_total=report.expense_total,
            net_income=report.net_income,
        )


class BalanceSheetDTO(CamelModel):
    """DTO - Balance sheet."""
    as_of: datetime | None
    assets: int
    liabilities: int
    equity: int
    retained_earnings: int
    accounts: dict[str, int]

    @classmethod
    def from_domain(cls, report: BalanceSheet) -> "BalanceSheetDTO":
        return cls(
            as_of=report.as_of,
            assets=report.assets,
            liabilities=report.liabilities,
            equity=report.equity,
            retained_earnings=report.retained_earnings,
            accounts=dict(report.account_balances),
        )


class AuditLogResponseDTO(CamelModel):
    """DTO - Audit log."""
    id: int
    action: str
    entity_type: str
    entity_id: str
    details: dict[str, Any]
    created_at: datetime

    @classmethod
    def from_domain(cls, record: AuditRecord) -> "AuditLogResponseDTO":
        return cls(
            id=record.id,
            action=record.action,
            entity_type=record.entity_type,
            entity_id=record.entity_id,
            details=record.details,
            created_at=record.created_at,
        )


class ErrorResponseDTO(BaseModel):
    """DTO - Error body written by the LedgerError handler."""
    code: str
    detail: str
    context: dict[str, Any] | None = None
