"""Ledger balance and mutation tests."""
from decimal import Decimal

import pytest

from splitledger.core import (
    Ledger, InvalidAmount, EmptySplit, UnknownMember, NotFound
)
from splitledger.utils.enums import ExpenseCategory


def D(value):
    return Decimal(value)


def test_equal_split_among_everyone(ledger):
    ledger.add_expense("A", 90, ["A", "B", "C"], ExpenseCategory.FOOD, "Dinner")

    assert ledger.net_balances() == {"A": D("60.00"), "B": D("-30.00"), "C": D("-30.00")}


def test_split_excluding_payer():
    ledger = Ledger()
    ledger.add_member("A")
    ledger.add_member("B")
    ledger.add_expense("A", "50", ["B"])

    assert ledger.net_balances() == {"A": D("50.00"), "B": D("-50.00")}


def test_remainder_cent_goes_to_payer_first(ledger):
    expense = ledger.add_expense("B", "10.00", ["A", "B", "C"])

    shares = ledger.shares_for(expense)
    assert shares == {"B": D("3.34"), "A": D("3.33"), "C": D("3.33")}
    assert sum(shares.values()) == D("10.00")
    assert ledger.net_balances() == {"A": D("-3.33"), "B": D("6.66"), "C": D("-3.33")}


def test_remainder_without_payer_in_split_follows_roster_order(ledger):
    expense = ledger.add_expense("A", "0.05", ["C", "B"])

    assert ledger.shares_for(expense) == {"B": D("0.03"), "C": D("0.02")}
    assert sum(ledger.net_balances().values()) == 0


def test_duplicate_split_members_collapse(ledger):
    expense = ledger.add_expense("A", 30, ["B", "B", "C"])

    assert expense.split_among == ("B", "C")
    assert ledger.net_balances()["B"] == D("-15.00")


def test_conservation_across_mutations(ledger):
    ledger.add_member("D")
    first = ledger.add_expense("A", "100.01", ["A", "B", "C", "D"])
    ledger.add_expense("B", "33.33", ["A", "C"])
    third = ledger.add_expense("C", "0.07", ["A", "B", "C"])
    ledger.add_expense("D", "19.99", ["D", "B", "A"])

    ledger.update_expense(first.id, amount="77.77", split_among=["B", "C", "D"])
    ledger.remove_expense(third.id)
    ledger.record_settlement("B", "A", "12.34")

    assert sum(ledger.net_balances().values()) == 0


@pytest.mark.parametrize("amount", [0, -5, "0.001", "abc", None, True])
def test_add_expense_rejects_bad_amount(ledger, amount):
    with pytest.raises(InvalidAmount):
        ledger.add_expense("A", amount, ["A", "B"])
    assert ledger.expenses == ()


def test_add_expense_rejects_empty_split(ledger):
    with pytest.raises(EmptySplit):
        ledger.add_expense("A", 10, [])


def test_add_expense_rejects_unknown_members(ledger):
    with pytest.raises(UnknownMember):
        ledger.add_expense("Z", 10, ["A"])
    with pytest.raises(UnknownMember) as excinfo:
        ledger.add_expense("A", 10, ["A", "Z"])
    assert excinfo.value.member == "Z"
    assert ledger.expenses == ()


def test_update_replaces_only_given_fields(ledger):
    expense = ledger.add_expense("A", 90, ["A", "B", "C"], ExpenseCategory.FOOD, "Dinner")

    updated = ledger.update_expense(expense.id, amount=60, payer="B")

    assert updated.id == expense.id
    assert updated.created_at == expense.created_at
    assert updated.title == "Dinner"
    assert updated.category is ExpenseCategory.FOOD
    assert ledger.net_balances() == {"A": D("-20.00"), "B": D("40.00"), "C": D("-20.00")}


def test_failed_update_leaves_ledger_unchanged(ledger):
    expense = ledger.add_expense("A", 90, ["A", "B", "C"])
    before = ledger.net_balances()

    with pytest.raises(EmptySplit):
        ledger.update_expense(expense.id, amount=10, split_among=[])
    with pytest.raises(UnknownMember):
        ledger.update_expense(expense.id, payer="Z")

    assert ledger.get_expense(expense.id) == expense
    assert ledger.net_balances() == before


def test_update_unknown_id(ledger):
    with pytest.raises(NotFound):
        ledger.update_expense("missing", amount=5)


def test_second_removal_is_not_found(ledger):
    keep = ledger.add_expense("A", 30, ["B"])
    gone = ledger.add_expense("B", 60, ["A", "B", "C"])

    ledger.remove_expense(gone.id)
    after_first = ledger.net_balances()

    with pytest.raises(NotFound):
        ledger.remove_expense(gone.id)
    assert ledger.net_balances() == after_first
    assert ledger.expenses == (keep,)


def test_record_settlement_is_excluded_from_spending(ledger):
    ledger.add_expense("A", 90, ["A", "B", "C"])
    settlement = ledger.record_settlement("B", "A", 30)

    assert settlement.is_settlement
    assert settlement.payer == "B"
    assert settlement.split_among == ("A",)
    assert ledger.total_spent() == D("90.00")
    assert ledger.net_balances() == {"A": D("30.00"), "B": D("0.00"), "C": D("-30.00")}


def test_record_settlement_rejects_non_positive(ledger):
    with pytest.raises(InvalidAmount):
        ledger.record_settlement("B", "A", 0)


def test_removed_member_stays_in_balances(ledger):
    ledger.add_expense("A", 90, ["A", "B", "C"])

    assert ledger.remove_member("C")
    assert not ledger.remove_member("C")

    balances = ledger.net_balances()
    assert list(balances) == ["A", "B", "C"]
    assert balances["C"] == D("-30.00")
    assert sum(balances.values()) == 0

    with pytest.raises(UnknownMember):
        ledger.add_expense("A", 10, ["C"])


def test_removed_member_can_still_settle(ledger):
    ledger.add_expense("A", 90, ["A", "B", "C"])
    ledger.remove_member("C")

    payment = ledger.record_settlement("C", "A", 30)
    assert payment.payer == "C"
    assert ledger.balance_for("C") == D("0.00")

    with pytest.raises(UnknownMember):
        ledger.record_settlement("Z", "A", 30)


def test_record_settlements_is_all_or_nothing(ledger):
    ledger.add_expense("A", 90, ["A", "B", "C"])

    with pytest.raises(UnknownMember):
        ledger.record_settlements([("B", "A", 30), ("Z", "A", 30)])
    with pytest.raises(InvalidAmount):
        ledger.record_settlements([("B", "A", 30), ("C", "A", 0)])

    assert len(ledger.expenses) == 1


def test_update_keeps_former_member_in_untouched_fields(ledger):
    expense = ledger.add_expense("C", 30, ["A", "C"])
    ledger.remove_member("C")

    updated = ledger.update_expense(expense.id, title="Taxi", amount=40)
    assert updated.payer == "C"
    assert updated.split_among == ("A", "C")
    assert ledger.net_balances() == {"A": D("-20.00"), "B": D("0.00"), "C": D("20.00")}

    with pytest.raises(UnknownMember):
        ledger.update_expense(expense.id, payer="C")
    with pytest.raises(UnknownMember):
        ledger.update_expense(expense.id, split_among=["A", "C"])


def test_add_member_is_idempotent(ledger):
    assert not ledger.add_member("A")
    assert ledger.members == ("A", "B", "C")


def test_member_views(ledger):
    ledger.add_expense("A", 90, ["A", "B", "C"])
    ledger.add_expense("B", 15, ["C"])
    ledger.record_settlement("C", "A", 10)

    assert ledger.paid_by("A") == D("90.00")
    assert ledger.paid_by("C") == D("0.00")
    assert ledger.balance_for("B") == D("-15.00")
    assert ledger.balance_for("nobody") == D("0.00")
    assert ledger.debtors() == [("C", D("-35.00")), ("B", D("-15.00"))]


def test_expenses_by_date_newest_first(ledger):
    first = ledger.add_expense("A", 10, ["B"])
    second = ledger.add_expense("B", 20, ["A"])

    days = ledger.expenses_by_date()
    assert len(days) == 1
    day, items = days[0]
    assert day == first.created_at.date()
    assert set(items) == {first, second}
    assert items[0].created_at >= items[1].created_at


def test_snapshot_is_independent(ledger):
    ledger.add_expense("A", 10, ["B"])
    snapshot = ledger.snapshot()

    ledger.add_expense("B", 10, ["A"])
    ledger.add_member("D")

    assert len(snapshot.expenses) == 1
    assert snapshot.members == ["A", "B", "C"]


def test_document_round_trip_keeps_balances(ledger):
    ledger.add_expense("A", "10.00", ["A", "B", "C"], ExpenseCategory.HEALTH, "Pharmacy")
    ledger.record_settlement("B", "A", "3.33")

    restored = Ledger.from_document(ledger.to_document())

    assert restored.group_id == ledger.group_id
    assert restored.members == ledger.members
    assert restored.expenses == ledger.expenses
    assert restored.net_balances() == ledger.net_balances()
