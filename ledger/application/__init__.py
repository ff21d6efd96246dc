"""Application layer - DTOs."""

from ledger.application.dto.accounting_dto import (
    AccountCreateDTO,
    AccountResponseDTO,
    AuditLogResponseDTO,
    BalanceSheetDTO,
    JournalEntryCreateDTO,
    JournalEntryResponseDTO,
    ProfitLossDTO,
    TrialBalanceDTO,
)
