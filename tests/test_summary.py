from datetime import date

from models import Expense, Income
from schemas import GenerateSummaryRequest
from summary import SqlAlchemySummaryRepository


def spend(amount, on, category_id, priority=1, wallet_id=1):
    return Expense(
        amount=amount,
        date=on,
        category_id=category_id,
        priority=priority,
        wallet_id=wallet_id,
    )


def earn(amount, on, wallet_id):
    return Income(amount=amount, date=on, wallet_id=wallet_id)


def book_march(session) -> None:
    session.add_all(
        [
            spend(1000, date(2025, 3, 1), category_id=2, priority=0),
            spend(3000, date(2025, 4, 1), category_id=3, priority=1),
            spend(500, date(2025, 3, 15), category_id=4, priority=2),
            spend(9999, date(2025, 3, 10), category_id=5, priority=0),
            spend(0, date(2025, 3, 12), category_id=1, priority=2),
            spend(7000, date(2025, 2, 28), category_id=2, priority=0),
            spend(200, date(2025, 4, 2), category_id=3, priority=0),
            earn(2000, date(2025, 3, 5), wallet_id=1),
            earn(1500, date(2025, 4, 1), wallet_id=1),
            earn(2500, date(2025, 3, 20), wallet_id=2),
            earn(100, date(2025, 2, 1), wallet_id=3),
        ]
    )
    session.commit()


def march_request(**overrides) -> GenerateSummaryRequest:
    fields = {
        "start_date": "2025-03-01",
        "end_date": "2025-04-01",
        "exclude_category_ids": [5],
    }
    fields.update(overrides)
    return GenerateSummaryRequest(**fields)


def test_expense_totals_respect_window_and_exclusions(ledger) -> None:
    book_march(ledger)

    summary = SqlAlchemySummaryRepository(ledger).generate(march_request())

    assert summary.expense.amount == 4500
    parents = summary.expense.group_summary.parent_categories
    assert [(p.name, p.amount) for p in parents] == [("Living", 4000), ("Leisure", 500)]
    assert [(c.name, c.amount) for c in parents[0].categories] == [
        ("Rent", 3000),
        ("Groceries", 1000),
    ]
    assert [(c.name, c.amount) for c in parents[1].categories] == [("movies", 500)]
    assert all(p.amount > 0 for p in parents)


def test_priorities_are_sorted_by_amount(ledger) -> None:
    book_march(ledger)

    summary = SqlAlchemySummaryRepository(ledger).generate(march_request())

    priorities = summary.expense.group_summary.priorities
    assert [(p.level, p.amount) for p in priorities] == [(1, 3000), (0, 1000), (2, 500)]


def test_exclusions_do_not_touch_income(ledger) -> None:
    book_march(ledger)
    repo = SqlAlchemySummaryRepository(ledger)

    excluded = repo.generate(march_request(exclude_category_ids=[1, 2, 3, 4, 5]))
    included = repo.generate(march_request(exclude_category_ids=[]))

    assert excluded.expense.amount == 0
    assert excluded.expense.group_summary.parent_categories == []
    assert included.expense.amount == 4500 + 9999
    assert excluded.income == included.income
    assert excluded.income.amount == 6000
    wallets = excluded.income.group_summary.wallets
    assert [(w.name, w.amount) for w in wallets] == [("Cash", 3500), ("bank", 2500)]


def test_empty_and_reversed_ranges_report_zeros(ledger) -> None:
    book_march(ledger)
    repo = SqlAlchemySummaryRepository(ledger)

    for request in (
        march_request(start_date="2024-01-01", end_date="2024-01-31"),
        march_request(start_date="2025-04-01", end_date="2025-03-01"),
    ):
        summary = repo.generate(request)
        assert summary.expense.amount == 0
        assert summary.expense.group_summary.parent_categories == []
        assert summary.expense.group_summary.priorities == []
        assert summary.income.amount == 0
        assert summary.income.group_summary.wallets == []


def test_summary_on_empty_ledger(session) -> None:
    summary = SqlAlchemySummaryRepository(session).generate(march_request())

    assert summary.model_dump() == {
        "expense": {
            "amount": 0,
            "group_summary": {"parent_categories": [], "priorities": []},
        },
        "income": {"amount": 0, "group_summary": {"wallets": []}},
    }
