"""
Typed exceptions for the accounting engine.

Every error carries a machine-readable ``code`` and its structured data as
attributes, so callers branch on the type and the API layer can render
``{"code": ..., "detail": ...}`` without parsing messages.

    LedgerError
    +-- ValidationError          entry or request rejected, nothing written
    +-- NotFoundError            unknown account code or entry id
    +-- DuplicateAccountError    account code already taken
    +-- ConflictError            clientRef replayed with different lines,
    |                            or entry already reversed
    +-- IntegrityError           a ledger-wide identity failed (fatal)
    +-- IntegrityHaltedError     correction refused while the guard is tripped
    +-- ImmutabilityViolationError
"""

from typing import Any


class LedgerError(Exception):
    """Base class for all accounting engine errors."""

    code: str = "LEDGER_ERROR"

    def __init__(self, message: str, **details: Any):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "detail": self.message}
        if self.details:
            payload["context"] = self.details
        return payload


class ValidationError(LedgerError):
    """Request rejected synchronously; no side effects."""

    code = "VALIDATION_ERROR"

    def __init__(self, code: str, message: str, **details: Any):
        self.code = code
        super().__init__(message, **details)


class NotFoundError(LedgerError):
    code = "NOT_FOUND"

    def __init__(self, entity_type: str, key: Any):
        self.entity_type = entity_type
        self.key = key
        super().__init__(f"{entity_type} {key!r} not found", entity_type=entity_type, key=key)


class DuplicateAccountError(LedgerError):
    code = "DUPLICATE_ACCOUNT"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(
            f"Account code {account_code!r} already exists", account_code=account_code
        )


class ConflictError(LedgerError):
    code = "CONFLICT"

    def __init__(self, message: str, **details: Any):
        super().__init__(message, **details)


class IntegrityError(LedgerError):
    """
    A ledger-wide identity does not hold.

    Never expected while the Journal Writer's invariants hold; it means a
    writer bug or an out-of-band change to the store. Operators must be told.
    """

    code = "INTEGRITY_VIOLATION"

    def __init__(
        self, identity: str, left: int | None = None, right: int | None = None, **details: Any
    ):
        self.identity = identity
        self.left = left
        self.right = right
        message = f"Ledger integrity violation ({identity})"
        if left is not None or right is not None:
            message += f": {left} != {right}"
        super().__init__(
            message,
            identity=identity,
            left=left,
            right=right,
            **details,
        )


class IntegrityHaltedError(LedgerError):
    code = "INTEGRITY_HALTED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            f"Automated corrections are halted after an integrity violation: {reason}",
            reason=reason,
        )


class ImmutabilityViolationError(LedgerError):
    code = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: Any, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}",
            entity_type=entity_type,
            entity_id=entity_id,
        )
