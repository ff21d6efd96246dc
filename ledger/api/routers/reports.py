"""
API Routers - financial reports endpoints.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from ledger.api.dependencies import ERROR_RESPONSES, LedgerServices, get_services
from ledger.application.dto.accounting_dto import (
    AccountLedgerDTO,
    AccountResponseDTO,
    BalanceSheetDTO,
    LedgerRowDTO,
    ProfitLossDTO,
    TrialBalanceDTO,
)

router = APIRouter(
    prefix="/api/accounting/reports",
    tags=["Reports"],
    responses=ERROR_RESPONSES,
)


@router.get("/trial-balance", response_model=TrialBalanceDTO)
def get_trial_balance(services: LedgerServices = Depends(get_services)):
    """
    Trial balance: debit and credit totals per account.

    Grand totals always match; a mismatch is reported as an integrity violation.
    """
    return TrialBalanceDTO.from_domain(services.reports.generate_trial_balance())


@router.get("/profit-loss", response_model=ProfitLossDTO)
def get_profit_loss(
    start_date: datetime | None = Query(None, alias="startDate", description="Inclusive"),
    end_date: datetime | None = Query(None, alias="endDate", description="Exclusive"),
    services: LedgerServices = Depends(get_services),
):
    """Revenue, expenses and net income for entries posted in [startDate, endDate)."""
    return ProfitLossDTO.from_domain(services.reports.generate_profit_loss(start_date, end_date))


@router.get("/balance-sheet", response_model=BalanceSheetDTO)
def get_balance_sheet(
    as_of: datetime | None = Query(None, alias="asOf", description="Point in time, inclusive"),
    services: LedgerServices = Depends(get_services),
):
    """Assets = liabilities + equity + retained earnings."""
    return BalanceSheetDTO.from_domain(services.reports.generate_balance_sheet(as_of))


@router.get("/ledger/{account_code}", response_model=AccountLedgerDTO)
def get_account_ledger(account_code: str, services: LedgerServices = Depends(get_services)):
    """Drill-down: every line on the account with its running balance."""
    account = services.accounts.get_account(account_code)
    rows = services.ledger.get_account_ledger(account_code)
    return AccountLedgerDTO(
        account=AccountResponseDTO.from_domain(account),
        balance=rows[-1].running_balance if rows else 0,
        entries=[LedgerRowDTO.from_domain(row) for row in rows],
    )
