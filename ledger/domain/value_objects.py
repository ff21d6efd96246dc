"""
Domain Layer - Value objects for the double-entry ledger.
Amounts are integers in minor currency units (cents), never floats.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NewType

from .errors import ValidationError

AccountCode = NewType("AccountCode", str)


class BalanceSide(str, Enum):
    """Side on which an account's balance naturally increases."""
    DEBIT = "debit"
    CREDIT = "credit"


class AccountType(str, Enum):
    """The five account classes of the chart of accounts."""
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @property
    def normal_balance(self) -> BalanceSide:
        if self in (AccountType.ASSET, AccountType.EXPENSE):
            return BalanceSide.DEBIT
        return BalanceSide.CREDIT

    @classmethod
    def parse(cls, value: "str | AccountType") -> "AccountType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                "INVALID_ACCOUNT_TYPE",
                f"Unrecognized account type {value!r}; expected one of "
                f"{', '.join(t.value for t in cls)}",
                account_type=value,
            ) from None


def signed_movement(side: BalanceSide, debit: int, credit: int) -> int:
    """Effect of one line on a balance kept on the given normal side."""
    if side is BalanceSide.DEBIT:
        return debit - credit
    return credit - debit


def ensure_utc(value: datetime | None) -> datetime | None:
    """Naive datetimes are taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _strict_amount(value: Any, field_name: str, position: int) -> int:
    # bool is an int subclass; floats are never money
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            "INVALID_LINE_AMOUNT",
            f"Line {position}: {field_name} must be an integer amount in minor units, "
            f"got {value!r}",
            line=position,
        )
    return value


@dataclass(frozen=True, slots=True)
class JournalLineInput:
    """One requested posting line: exactly one of debit/credit is positive."""
    account_code: AccountCode
    debit: int = 0
    credit: int = 0
    description: str | None = None

    @classmethod
    def coerce(cls, raw: "JournalLineInput | Mapping[str, Any]", position: int) -> "JournalLineInput":
        """Build a line from a mapping using accountCode/account_code keys."""
        if isinstance(raw, JournalLineInput):
            account_code, debit, credit = raw.account_code, raw.debit, raw.credit
            memo = raw.description
        elif isinstance(raw, Mapping):
            account_code = raw.get("accountCode", raw.get("account_code"))
            debit = raw.get("debit", 0)
            credit = raw.get("credit", 0)
            memo = raw.get("description")
        else:
            raise ValidationError(
                "MALFORMED_LINE",
                f"Line {position}: expected a mapping with accountCode/debit/credit",
                line=position,
            )
        if not isinstance(account_code, str) or not account_code.strip():
            raise ValidationError(
                "MALFORMED_LINE", f"Line {position}: accountCode is required", line=position
            )
        if memo is not None and not isinstance(memo, str):
            raise ValidationError(
                "MALFORMED_LINE", f"Line {position}: description must be text", line=position
            )
        return cls(
            account_code=AccountCode(account_code.strip()),
            debit=_strict_amount(debit, "debit", position),
            credit=_strict_amount(credit, "credit", position),
            description=(memo.strip() or None) if memo else None,
        )

    def is_one_sided(self) -> bool:
        return (self.debit > 0 and self.credit == 0) or (self.credit > 0 and self.debit == 0)

    def reversed(self) -> "JournalLineInput":
        return JournalLineInput(
            self.account_code, debit=self.credit, credit=self.debit, description=self.description
        )

    def key(self) -> tuple[str, int, int]:
        """Compared on clientRef replay; memos are left out."""
        return (self.account_code, self.debit, self.credit)
