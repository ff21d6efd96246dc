"""Infrastructure layer."""

from ledger.infrastructure.memory import InMemoryLedgerStore
from ledger.infrastructure.repositories import SqlLedgerStore
