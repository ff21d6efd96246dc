"""
API Routers - journal posting endpoints.
"""

from fastapi import APIRouter, Depends, Query, status

from ledger.api.dependencies import ERROR_RESPONSES, LedgerServices, get_services
from ledger.application.dto.accounting_dto import (
    JournalEntryCreateDTO,
    JournalEntryResponseDTO,
    JournalReverseDTO,
)

router = APIRouter(
    prefix="/api/accounting/journal",
    tags=["Journal"],
    responses=ERROR_RESPONSES,
)


@router.get("", response_model=list[JournalEntryResponseDTO])
def list_journal_entries(
    limit: int | None = Query(None, ge=1, le=1000, description="Newest N entries"),
    services: LedgerServices = Depends(get_services),
):
    entries = services.journal.list_journal_entries(limit)
    return [JournalEntryResponseDTO.from_domain(e) for e in entries]


@router.post("", response_model=JournalEntryResponseDTO, status_code=status.HTTP_201_CREATED)
def create_journal_entry(
    dto: JournalEntryCreateDTO, services: LedgerServices = Depends(get_services)
):
    """
    Post a journal entry.

    - Debits must equal credits exactly
    - Every account must exist and be active
    - Resubmitting the same clientRef returns the original entry
    """
    entry = services.journal.create_journal_entry(
        dto.description,
        [line.to_domain() for line in dto.lines],
        client_ref=dto.client_ref,
    )
    return JournalEntryResponseDTO.from_domain(entry)


@router.get("/{entry_id}", response_model=JournalEntryResponseDTO)
def get_journal_entry(entry_id: int, services: LedgerServices = Depends(get_services)):
    return JournalEntryResponseDTO.from_domain(services.journal.get_journal_entry(entry_id))


@router.post(
    "/{entry_id}/reverse",
    response_model=JournalEntryResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
def reverse_journal_entry(
    entry_id: int,
    dto: JournalReverseDTO | None = None,
    services: LedgerServices = Depends(get_services),
):
    """Post the negating entry of a committed entry."""
    dto = dto or JournalReverseDTO()
    entry = services.journal.reverse_journal_entry(
        entry_id, description=dto.description, client_ref=dto.client_ref
    )
    return JournalEntryResponseDTO.from_domain(entry)
