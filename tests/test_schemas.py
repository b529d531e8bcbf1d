from datetime import date

import pytest
from pydantic import ValidationError

from schemas import GenerateSummaryRequest, SaveExpense, SaveIncome, SaveTransfer


def _expense(**overrides) -> dict:
    payload = {
        "amount": 1200,
        "date": "2025-03-14",
        "description": "Groceries",
        "priority": 1,
        "category_id": 2,
        "wallet_id": 1,
        "tag_ids": [1, 2],
    }
    payload.update(overrides)
    return payload


def test_save_expense_accepts_iso_date_string() -> None:
    expense = SaveExpense.model_validate(_expense())

    assert expense.date == date(2025, 3, 14)
    assert expense.tag_ids == [1, 2]


@pytest.mark.parametrize(
    "bad_date", ["2025/03/14", "14-03-2025", "2025-02-30", "20250314", 1741910400]
)
def test_write_payload_dates_are_strict(bad_date) -> None:
    with pytest.raises(ValidationError):
        SaveExpense.model_validate(_expense(date=bad_date))


@pytest.mark.parametrize(
    "field, value",
    [
        ("amount", -1),
        ("priority", 3),
        ("priority", -1),
        ("category_id", 0),
        ("wallet_id", -4),
        ("tag_ids", [1, 0]),
        ("amount", 2**31),
    ],
)
def test_save_expense_rejects_out_of_range_values(field, value) -> None:
    with pytest.raises(ValidationError):
        SaveExpense.model_validate(_expense(**{field: value}))


def test_description_is_optional() -> None:
    payload = _expense()
    del payload["description"]

    assert SaveExpense.model_validate(payload).description is None


def test_income_amount_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        SaveIncome.model_validate({"amount": 0, "date": "2025-03-01", "wallet_id": 1})


def test_transfer_fee_cannot_be_negative() -> None:
    with pytest.raises(ValidationError):
        SaveTransfer.model_validate(
            {
                "source_wallet_id": 1,
                "target_wallet_id": 2,
                "amount": 100,
                "fee": -1,
                "date": "2025-03-01",
            }
        )


def test_summary_request_dates_are_strict() -> None:
    request = GenerateSummaryRequest.model_validate(
        {
            "start_date": "2025-03-01",
            "end_date": "2025-04-01",
            "exclude_category_ids": [1, 2, 3],
        }
    )
    assert request.start_date == date(2025, 3, 1)
    assert request.exclude_category_ids == [1, 2, 3]

    with pytest.raises(ValidationError):
        GenerateSummaryRequest.model_validate(
            {"start_date": "March", "end_date": "2025-04-01"}
        )
