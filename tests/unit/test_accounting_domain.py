"""
Unit tests - chart of accounts and journal posting.
Each test runs against both the in-memory and the SQL store.
"""

from datetime import timedelta

import pytest

from ledger.domain.entities import Account
from ledger.domain.errors import DuplicateAccountError, NotFoundError, ValidationError
from ledger.domain.value_objects import AccountType, BalanceSide, JournalLineInput
from tests.conftest import START, credit, debit


def _state(store):
    with store.transaction() as tx:
        return (tx.list_accounts(), tx.list_entries(), tx.list_audit_logs(limit=1000))


class TestAccountType:
    """Normal balance side follows from the account type."""

    @pytest.mark.parametrize(
        "kind, side",
        [
            (AccountType.ASSET, BalanceSide.DEBIT),
            (AccountType.EXPENSE, BalanceSide.DEBIT),
            (AccountType.LIABILITY, BalanceSide.CREDIT),
            (AccountType.EQUITY, BalanceSide.CREDIT),
            (AccountType.REVENUE, BalanceSide.CREDIT),
        ],
    )
    def test_normal_balance(self, kind, side):
        assert kind.normal_balance is side

    def test_parse_is_case_insensitive(self):
        assert AccountType.parse(" Asset ") is AccountType.ASSET

    def test_parse_rejects_unknown_type(self):
        with pytest.raises(ValidationError) as info:
            AccountType.parse("income")
        assert info.value.code == "INVALID_ACCOUNT_TYPE"


class TestAccountRegistry:

    def test_create_account(self, registry):
        account = registry.create_account("1000", "Cash", "asset")
        assert isinstance(account, Account)
        assert account.code == "1000"
        assert account.account_type is AccountType.ASSET
        assert account.normal_balance is BalanceSide.DEBIT
        assert account.active is True
        assert registry.get_account("1000") == account

    def test_duplicate_code_rejected(self, registry):
        registry.create_account("1000", "Cash", "asset")
        with pytest.raises(DuplicateAccountError) as info:
            registry.create_account("1000", "Petty cash", "asset")
        assert info.value.account_code == "1000"
        assert registry.get_account("1000").name == "Cash"

    def test_invalid_type_creates_nothing(self, registry):
        with pytest.raises(ValidationError):
            registry.create_account("9000", "Mystery", "goodwill")
        assert registry.list_accounts() == []

    def test_blank_code_or_name_rejected(self, registry):
        with pytest.raises(ValidationError):
            registry.create_account("  ", "Cash", "asset")
        with pytest.raises(ValidationError):
            registry.create_account("1000", "", "asset")

    def test_get_missing_account(self, registry):
        with pytest.raises(NotFoundError):
            registry.get_account("404")

    def test_list_is_ordered_by_code_and_filterable(self, chart):
        codes = [a.code for a in chart.list_accounts()]
        assert codes == sorted(codes)
        assert [a.code for a in chart.list_accounts("asset")] == ["1000", "1010"]
        assert [a.code for a in chart.list_accounts(AccountType.REVENUE)] == ["4000"]

    def test_list_with_unknown_type(self, chart):
        with pytest.raises(ValidationError):
            chart.list_accounts("income")

    def test_deactivate_account(self, chart):
        account = chart.deactivate_account("1010")
        assert account.active is False
        assert chart.get_account("1010").active is False
        # idempotent
        assert chart.deactivate_account("1010").active is False

    def test_deactivate_missing_account(self, registry):
        with pytest.raises(NotFoundError):
            registry.deactivate_account("404")

    def test_seed_chart_skips_existing(self, registry):
        registry.create_account("1000", "My Cash", "asset")
        created = registry.seed_chart_of_accounts()
        assert "1000" not in {a.code for a in created}
        assert registry.get_account("1000").name == "My Cash"
        assert len(registry.list_accounts()) == len(created) + 1

    def test_account_actions_are_audited(self, chart, store):
        chart.deactivate_account("5000")
        with store.transaction() as tx:
            logs = tx.list_audit_logs()
        assert logs[0].action == "deactivate_account"
        assert logs[0].entity_id == "5000"
        assert sum(1 for log in logs if log.action == "create_account") == 6


class TestJournalLineInput:

    def test_coerce_mapping(self):
        line = JournalLineInput.coerce({"accountCode": "1000", "debit": 500}, 1)
        assert line == JournalLineInput("1000", debit=500, credit=0)

    def test_coerce_snake_case_mapping(self):
        line = JournalLineInput.coerce({"account_code": "1000", "credit": 5}, 1)
        assert line.credit == 5

    @pytest.mark.parametrize("amount", [10.0, "100", True, None])
    def test_non_integer_amount_rejected(self, amount):
        with pytest.raises(ValidationError) as info:
            JournalLineInput.coerce({"accountCode": "1000", "debit": amount}, 2)
        assert info.value.code == "INVALID_LINE_AMOUNT"

    def test_missing_account_code(self):
        with pytest.raises(ValidationError) as info:
            JournalLineInput.coerce({"debit": 1}, 1)
        assert info.value.code == "MALFORMED_LINE"

    def test_reversed_swaps_sides(self):
        assert JournalLineInput("1000", debit=7).reversed() == JournalLineInput("1000", credit=7)


class TestJournalWriter:
    """Balanced-entry validation and atomic commit."""

    def test_post_balanced_entry(self, chart, writer):
        entry = writer.create_journal_entry(
            "Consulting income", [debit("1000", 10000), credit("4000", 10000)]
        )
        assert entry.id == 1
        assert entry.is_balanced()
        assert entry.total_debit == entry.total_credit == 10000
        assert entry.created_at == START
        assert [(l.line_number, l.account_code) for l in entry.lines] == [(1, "1000"), (2, "4000")]
        assert writer.get_journal_entry(1) == entry

    def test_ids_strictly_increase_and_timestamps_come_from_clock(self, chart, writer):
        first = writer.create_journal_entry("a", [debit("1000", 1), credit("4000", 1)])
        second = writer.create_journal_entry("b", [debit("5000", 2), credit("1000", 2)])
        assert second.id > first.id
        assert second.created_at - first.created_at == timedelta(hours=1)

    def test_multi_line_entry(self, chart, writer):
        entry = writer.create_journal_entry(
            "Card purchase split",
            [debit("5000", 700), debit("1000", 300), credit("2000", 1000)],
        )
        assert len(entry.lines) == 3

    def test_empty_entry(self, chart, writer):
        with pytest.raises(ValidationError) as info:
            writer.create_journal_entry("nothing", [])
        assert info.value.code == "EMPTY_ENTRY"

    @pytest.mark.parametrize(
        "line",
        [
            {"accountCode": "1000", "debit": 0, "credit": 0},
            {"accountCode": "1000", "debit": 5, "credit": 5},
            {"accountCode": "1000", "debit": -5, "credit": 0},
            {"accountCode": "1000", "debit": 0, "credit": -5},
        ],
    )
    def test_invalid_line_amounts(self, chart, writer, line):
        with pytest.raises(ValidationError) as info:
            writer.create_journal_entry("bad", [line, credit("4000", 5)])
        assert info.value.code == "INVALID_LINE_AMOUNT"

    def test_unknown_account(self, chart, writer):
        with pytest.raises(ValidationError) as info:
            writer.create_journal_entry("x", [debit("1999", 5), credit("4000", 5)])
        assert info.value.code == "UNKNOWN_ACCOUNT"
        assert info.value.details["account_code"] == "1999"

    def test_inactive_account(self, chart, writer):
        chart.deactivate_account("1010")
        with pytest.raises(ValidationError) as info:
            writer.create_journal_entry("x", [debit("1010", 5), credit("4000", 5)])
        assert info.value.code == "INACTIVE_ACCOUNT"

    def test_unbalanced_entry_is_rejected_without_side_effects(self, chart, writer, store):
        """Debit Cash 10000 against credit Revenue 9000 writes nothing."""
        before = _state(store)
        with pytest.raises(ValidationError) as info:
            writer.create_journal_entry(
                "Short", [debit("1000", 10000), credit("4000", 9000)], client_ref="short-1"
            )
        assert info.value.code == "UNBALANCED_ENTRY"
        assert info.value.details == {"total_debit": 10000, "total_credit": 9000}
        assert _state(store) == before
        assert writer.list_journal_entries() == []

    def test_line_checks_run_before_account_checks(self, chart, writer):
        with pytest.raises(ValidationError) as info:
            writer.create_journal_entry("x", [debit("1999", 0), credit("4000", 5)])
        assert info.value.code == "INVALID_LINE_AMOUNT"

    def test_account_checks_run_before_balance_check(self, chart, writer):
        with pytest.raises(ValidationError) as info:
            writer.create_journal_entry("x", [debit("1999", 5), credit("4000", 6)])
        assert info.value.code == "UNKNOWN_ACCOUNT"

    def test_lines_must_be_a_list(self, chart, writer):
        with pytest.raises(ValidationError) as info:
            writer.create_journal_entry("x", {"accountCode": "1000", "debit": 1})
        assert info.value.code == "MALFORMED_ENTRY"

    def test_list_journal_entries_newest_first(self, chart, writer):
        for amount in (1, 2, 3):
            writer.create_journal_entry(f"e{amount}", [debit("1000", amount), credit("4000", amount)])
        assert [e.id for e in writer.list_journal_entries()] == [3, 2, 1]
        assert [e.id for e in writer.list_journal_entries(limit=2)] == [3, 2]

    def test_list_with_invalid_limit(self, writer):
        with pytest.raises(ValidationError):
            writer.list_journal_entries(limit=0)

    def test_get_missing_entry(self, writer):
        with pytest.raises(NotFoundError):
            writer.get_journal_entry(99)

    def test_posting_is_audited(self, chart, writer, store):
        entry = writer.create_journal_entry(
            "Sale", [debit("1000", 250), credit("4000", 250)], client_ref="sale-1"
        )
        with store.transaction() as tx:
            log = tx.list_audit_logs(action="post_journal")[0]
        assert log.entity_type == "journal_entry"
        assert log.entity_id == str(entry.id)
        assert log.details["client_ref"] == "sale-1"
        assert log.details["total"] == 250

    def test_writer_has_no_mutation_api(self, writer):
        for name in ("update_journal_entry", "delete_journal_entry", "edit_journal_entry"):
            assert not hasattr(writer, name)

    @pytest.mark.parametrize("description", ["", "   ", None])
    def test_description_is_required(self, chart, writer, store, description):
        before = _state(store)
        with pytest.raises(ValidationError) as info:
            writer.create_journal_entry(description, [debit("1000", 5), credit("4000", 5)])
        assert info.value.code == "MISSING_DESCRIPTION"
        assert _state(store) == before

    def test_description_is_trimmed(self, chart, writer):
        entry = writer.create_journal_entry("  Sale  ", [debit("1000", 5), credit("4000", 5)])
        assert entry.description == "Sale"

    def test_line_memos_are_stored(self, chart, writer):
        entry = writer.create_journal_entry(
            "Card purchase",
            [
                {**debit("5000", 1200), "description": "IDE licence"},
                {**credit("2000", 1200), "description": "  "},
            ],
        )
        assert [line.description for line in entry.lines] == ["IDE licence", None]
        assert writer.get_journal_entry(entry.id).lines[0].description == "IDE licence"

    def test_non_text_memo_rejected(self, chart, writer):
        with pytest.raises(ValidationError) as info:
            writer.create_journal_entry(
                "x", [{**debit("1000", 5), "description": 12}, credit("4000", 5)]
            )
        assert info.value.code == "MALFORMED_LINE"
