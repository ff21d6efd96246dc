"""
Service wiring for the API: one set of services per application, built
around the store the application was created with.
"""

from dataclasses import dataclass

from fastapi import Request

from ledger.application.dto.accounting_dto import ErrorResponseDTO
from ledger.domain.reports import ReportGenerator
from ledger.domain.repositories import LedgerStore
from ledger.domain.services import (
    AccountRegistry,
    IntegrityGuard,
    JournalWriter,
    LedgerQueryEngine,
)


@dataclass
class LedgerServices:
    store: LedgerStore
    guard: IntegrityGuard
    accounts: AccountRegistry
    journal: JournalWriter
    ledger: LedgerQueryEngine
    reports: ReportGenerator

    @classmethod
    def build(cls, store: LedgerStore) -> "LedgerServices":
        guard = IntegrityGuard()
        return cls(
            store=store,
            guard=guard,
            accounts=AccountRegistry(store),
            journal=JournalWriter(store, guard=guard),
            ledger=LedgerQueryEngine(store),
            reports=ReportGenerator(store, guard=guard),
        )


# documented on every router; bodies come from LedgerError.to_dict()
ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponseDTO, "description": "Validation error"},
    404: {"model": ErrorResponseDTO, "description": "Account or entry not found"},
    409: {"model": ErrorResponseDTO, "description": "Duplicate account or conflicting request"},
    500: {"model": ErrorResponseDTO, "description": "Ledger integrity violation"},
    503: {"model": ErrorResponseDTO, "description": "Corrections halted by the integrity guard"},
}


def get_services(request: Request) -> LedgerServices:
    """Dependency - services bound to this application."""
    return request.app.state.services
