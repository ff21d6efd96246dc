"""
API Routers - chart of accounts endpoints.
"""

from fastapi import APIRouter, Depends, Query, status

from ledger.api.dependencies import ERROR_RESPONSES, LedgerServices, get_services
from ledger.application.dto.accounting_dto import AccountCreateDTO, AccountResponseDTO

router = APIRouter(
    prefix="/api/accounting/accounts",
    tags=["Chart of accounts"],
    responses=ERROR_RESPONSES,
)


@router.get("", response_model=list[AccountResponseDTO])
def list_accounts(
    type: str | None = Query(None, description="Filter by account type"),
    services: LedgerServices = Depends(get_services),
):
    """List accounts ordered by code."""
    return [AccountResponseDTO.from_domain(a) for a in services.accounts.list_accounts(type)]


@router.post("", response_model=AccountResponseDTO, status_code=status.HTTP_201_CREATED)
def create_account(dto: AccountCreateDTO, services: LedgerServices = Depends(get_services)):
    """
    Create an account.

    - The code is unique and never changes
    - The normal balance side follows from the type
    """
    account = services.accounts.create_account(dto.code, dto.name, dto.type, dto.description)
    return AccountResponseDTO.from_domain(account)


@router.get("/{code}", response_model=AccountResponseDTO)
def get_account(code: str, services: LedgerServices = Depends(get_services)):
    return AccountResponseDTO.from_domain(services.accounts.get_account(code))


@router.post("/{code}/deactivate", response_model=AccountResponseDTO)
def deactivate_account(code: str, services: LedgerServices = Depends(get_services)):
    """Retire an account: no new postings, history stays readable."""
    return AccountResponseDTO.from_domain(services.accounts.deactivate_account(code))
