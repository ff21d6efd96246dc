"""
Unit tests - clientRef idempotency under retries and concurrent submission.
"""

import logging
import threading
from contextlib import contextmanager

import pytest

from ledger.domain.errors import ConflictError
from ledger.domain.services import AccountRegistry, JournalWriter
from ledger.infrastructure.memory import InMemoryLedgerStore, InMemoryTransaction
from tests.conftest import SteppingClock, credit, debit

SALE = [debit("1000", 10000), credit("4000", 10000)]


class LookupMissingTransaction(InMemoryTransaction):
    """Misses the first clientRef lookups, as a writer racing another would."""

    def find_entry_by_client_ref(self, client_ref):
        if self._store.misses > 0:
            self._store.misses -= 1
            return None
        return super().find_entry_by_client_ref(client_ref)


class RacingStore(InMemoryLedgerStore):

    def __init__(self):
        super().__init__()
        self.misses = 0

    @contextmanager
    def transaction(self):
        with self._lock:
            tx = LookupMissingTransaction(self)
            yield tx
            tx.publish()


class TestClientRef:

    def test_retry_returns_original_entry(self, chart, writer):
        first = writer.create_journal_entry("Sale", SALE, client_ref="x")
        second = writer.create_journal_entry("Sale", SALE, client_ref="x")
        assert second == first
        assert len(writer.list_journal_entries()) == 1

    def test_replay_ignores_description_and_line_order(self, chart, writer):
        first = writer.create_journal_entry("Sale", SALE, client_ref="x")
        again = writer.create_journal_entry("Sale (retry)", list(reversed(SALE)), client_ref="x")
        assert again.id == first.id
        assert again.description == "Sale"

    def test_replay_ignores_line_memos(self, chart, writer):
        first = writer.create_journal_entry("Sale", SALE, client_ref="x")
        noted = [{**SALE[0], "description": "retried from webhook"}, SALE[1]]
        again = writer.create_journal_entry("Sale", noted, client_ref="x")
        assert again == first
        assert again.lines[0].description is None

    def test_different_lines_conflict(self, chart, writer):
        writer.create_journal_entry("Sale", SALE, client_ref="x")
        with pytest.raises(ConflictError) as info:
            writer.create_journal_entry(
                "Sale", [debit("1000", 9999), credit("4000", 9999)], client_ref="x"
            )
        assert info.value.details["client_ref"] == "x"
        assert len(writer.list_journal_entries()) == 1

    def test_without_client_ref_every_call_posts(self, chart, writer):
        writer.create_journal_entry("Sale", SALE)
        writer.create_journal_entry("Sale", SALE)
        assert len(writer.list_journal_entries()) == 2

    def test_replay_is_logged(self, chart, writer, caplog):
        writer.create_journal_entry("Sale", SALE, client_ref="x")
        with caplog.at_level(logging.INFO, logger="ledger"):
            writer.create_journal_entry("Sale", SALE, client_ref="x")
        assert [r.message for r in caplog.records if r.name == "ledger.services"] == [
            "journal_entry_replayed"
        ]


class TestConcurrentSubmission:
    """The same clientRef submitted from several threads at once."""

    def test_one_entry_and_same_id_for_all_callers(self):
        store = InMemoryLedgerStore()
        registry = AccountRegistry(store)
        registry.create_account("1000", "Cash", "asset")
        registry.create_account("4000", "Revenue", "revenue")
        writer = JournalWriter(store, clock=SteppingClock())

        callers = 8
        barrier = threading.Barrier(callers)
        ids, errors = [], []

        def submit():
            barrier.wait()
            try:
                ids.append(writer.create_journal_entry("Sale", SALE, client_ref="x").id)
            except Exception as exc:  # collected for the assertion below
                errors.append(exc)

        threads = [threading.Thread(target=submit) for _ in range(callers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert errors == []
        assert len(ids) == callers
        assert len(set(ids)) == 1
        assert len(store.entries) == 1

    def test_lost_insert_race_replays_winner(self, caplog):
        store = RacingStore()
        registry = AccountRegistry(store)
        registry.create_account("1000", "Cash", "asset")
        registry.create_account("4000", "Revenue", "revenue")
        writer = JournalWriter(store, clock=SteppingClock())

        winner = writer.create_journal_entry("Sale", SALE, client_ref="x")
        store.misses = 1
        with caplog.at_level(logging.WARNING, logger="ledger"):
            loser = writer.create_journal_entry("Sale", SALE, client_ref="x")

        assert loser.id == winner.id
        assert len(store.entries) == 1
        assert "journal_insert_conflict" in [r.message for r in caplog.records]

    def test_lost_insert_race_with_different_lines_conflicts(self):
        store = RacingStore()
        registry = AccountRegistry(store)
        registry.create_account("1000", "Cash", "asset")
        registry.create_account("4000", "Revenue", "revenue")
        writer = JournalWriter(store, clock=SteppingClock())

        writer.create_journal_entry("Sale", SALE, client_ref="x")
        store.misses = 1
        with pytest.raises(ConflictError):
            writer.create_journal_entry("Sale", [debit("1000", 1), credit("4000", 1)], client_ref="x")
        assert len(store.entries) == 1
