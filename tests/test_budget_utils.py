from types import SimpleNamespace

import pytest

from tripwallet.services import budget_utils as bu


def trip(budget, trip_id=1):
    return SimpleNamespace(id=trip_id, budget_limit=budget)


def expense(expense_id, converted, category="food", date=0, trip_id=1):
    return SimpleNamespace(
        id=expense_id,
        trip_id=trip_id,
        converted_amount=converted,
        category=category,
        date=date,
    )


def test_single_expense_summary():
    summary = bu.summarize(trip(1000), [expense(1, 55.0)])
    assert summary.total_spent == pytest.approx(55.0)
    assert summary.remaining == pytest.approx(945.0)
    assert summary.percent_used == pytest.approx(5.5)
    assert summary.budget_undefined is False
    assert summary.expenses_by_category == [("food", 55.0)]


def test_no_expenses():
    summary = bu.summarize(trip(500), [])
    assert summary.total_spent == 0
    assert summary.remaining == 500
    assert summary.percent_used == 0
    assert summary.expenses_by_category == []


def test_zero_budget_without_spending_is_zero_percent():
    summary = bu.summarize(trip(0), [])
    assert summary.percent_used == 0.0
    assert summary.budget_undefined is False


def test_zero_budget_with_spending_is_flagged():
    summary = bu.summarize(trip(0), [expense(1, 12.5)])
    assert summary.percent_used == bu.OVER_BUDGET_PERCENT_USED
    assert summary.budget_undefined is True
    assert summary.remaining == pytest.approx(-12.5)
    assert bu.budget_alert(summary) == "over"
    assert bu.overspent_by(summary) == pytest.approx(12.5)


def test_negative_budget_is_rejected():
    with pytest.raises(ValueError):
        bu.summarize(trip(-1), [])


def test_expenses_of_other_trips_are_ignored():
    summary = bu.summarize(
        trip(100), [expense(1, 10.0), expense(2, 99.0, trip_id=2)]
    )
    assert summary.total_spent == pytest.approx(10.0)


def test_category_totals_largest_first_ties_by_name():
    totals = bu.category_totals(
        [
            expense(1, 20.0, "transport"),
            expense(2, 30.0, "food"),
            expense(3, 10.0, "activities"),
            expense(4, 10.0, "transport"),
            expense(5, 30.0, "accommodation"),
        ]
    )
    assert totals == [
        ("accommodation", 30.0),
        ("food", 30.0),
        ("transport", 30.0),
        ("activities", 10.0),
    ]


def test_category_totals_cover_total_spent():
    expenses = [expense(i, 1.25 * i, cat) for i, cat in enumerate(["food", "other"] * 3, 1)]
    summary = bu.summarize(trip(100), expenses)
    assert sum(v for _, v in summary.expenses_by_category) == pytest.approx(
        summary.total_spent
    )


@pytest.mark.parametrize(
    "spent, expected",
    [(0, None), (80, None), (80.01, "warn"), (100, "warn"), (100.5, "over")],
)
def test_budget_alert_thresholds(spent, expected):
    summary = bu.summarize(trip(100), [expense(1, spent)] if spent else [])
    assert bu.budget_alert(summary) == expected


def test_overspent_by_is_zero_within_budget():
    assert bu.overspent_by(bu.summarize(trip(100), [expense(1, 40)])) == 0.0
    assert bu.overspent_by(bu.summarize(trip(100), [expense(1, 140)])) == pytest.approx(40)


def test_recent_expenses_newest_first():
    expenses = [expense(i, 1.0, date=d) for i, d in enumerate([5, 1, 9, 5, 3, 7, 2], 1)]
    recent = bu.recent_expenses(expenses)
    assert [e.id for e in recent] == [3, 6, 4, 1, 5]
    assert bu.recent_expenses(expenses, limit=0) == []
