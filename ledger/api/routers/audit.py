"""
API Routers - audit trail and integrity guard.
"""

from fastapi import APIRouter, Depends, Query

from ledger.api.dependencies import ERROR_RESPONSES, LedgerServices, get_services
from ledger.application.dto.accounting_dto import AuditLogResponseDTO
from ledger.core.logging_config import get_logger

router = APIRouter(
    prefix="/api/accounting",
    tags=["Audit"],
    responses=ERROR_RESPONSES,
)

logger = get_logger("api.audit")


@router.get("/audit-logs", response_model=list[AuditLogResponseDTO])
def get_audit_logs(
    action: str | None = None,
    entity_type: str | None = Query(None, alias="entityType"),
    limit: int = Query(100, ge=1, le=1000),
    services: LedgerServices = Depends(get_services),
):
    """Audit trail of accounting actions, newest first."""
    with services.store.transaction() as tx:
        records = tx.list_audit_logs(action=action, entity_type=entity_type, limit=limit)
    return [AuditLogResponseDTO.from_domain(r) for r in records]


@router.get("/integrity")
def get_integrity_status(services: LedgerServices = Depends(get_services)):
    return {"halted": services.guard.tripped, "reason": services.guard.reason}


@router.post("/integrity/reset")
def reset_integrity_guard(services: LedgerServices = Depends(get_services)):
    """Operator acknowledgement after an integrity violation was investigated."""
    previous = services.guard.reason
    services.guard.reset()
    logger.warning("integrity_guard_reset_via_api", extra={"previous_reason": previous})
    return {"halted": False, "previousReason": previous}
