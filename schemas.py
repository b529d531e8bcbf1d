import datetime as dt
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PositiveInt

INT32_MAX = 2_147_483_647


def parse_payload_date(value: Any) -> Any:
    """Write payload dates must be ``YYYY-MM-DD`` strings, nothing else."""
    if isinstance(value, dt.date) and not isinstance(value, dt.datetime):
        return value
    if not isinstance(value, str):
        raise ValueError("Date must be a YYYY-MM-DD string")
    try:
        return dt.datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValueError("Date must be a YYYY-MM-DD string") from exc


PayloadDate = Annotated[dt.date, BeforeValidator(parse_payload_date)]


class SaveExpense(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: int = Field(..., ge=0, le=INT32_MAX)
    date: PayloadDate
    description: Optional[str] = None
    priority: int = Field(..., ge=0, le=2)
    category_id: int = Field(..., gt=0, le=INT32_MAX)
    wallet_id: int = Field(..., gt=0, le=INT32_MAX)
    tag_ids: list[PositiveInt] = Field(default_factory=list)


class SaveBatchExpense(BaseModel):
    expenses: list[SaveExpense]


class SaveIncome(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: int = Field(..., gt=0, le=INT32_MAX)
    date: PayloadDate
    description: Optional[str] = None
    wallet_id: int = Field(..., gt=0, le=INT32_MAX)


class SaveBatchIncome(BaseModel):
    incomes: list[SaveIncome]


class SaveTransfer(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source_wallet_id: int = Field(..., gt=0, le=INT32_MAX)
    target_wallet_id: int = Field(..., gt=0, le=INT32_MAX)
    amount: int = Field(..., ge=0, le=INT32_MAX)
    fee: int = Field(0, ge=0, le=INT32_MAX)
    date: PayloadDate
    description: Optional[str] = None


class GenerateSummaryRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    start_date: PayloadDate
    end_date: PayloadDate
    exclude_category_ids: list[PositiveInt] = Field(default_factory=list)


class SimpleEntity(BaseModel):
    id: int
    name: str


class TagOut(BaseModel):
    id: int
    name: str
    is_important: bool


class ParentCategoryOut(BaseModel):
    id: int
    name: str
    categories: list[SimpleEntity] = Field(default_factory=list)


class IndexExpenseElement(BaseModel):
    id: int
    amount: int
    date: str
    description: Optional[str] = None


class IndexIncomeElement(BaseModel):
    id: int
    amount: int
    date: str
    description: Optional[str] = None


class ShowExpense(BaseModel):
    amount: int
    date: str
    description: Optional[str] = None
    priority: int
    category: SimpleEntity
    wallet: SimpleEntity
    tags: list[TagOut] = Field(default_factory=list)


class ShowLatestExpense(ShowExpense):
    id: int


class ShowIncome(BaseModel):
    amount: int
    date: str
    description: Optional[str] = None
    wallet: SimpleEntity


class ShowLatestIncome(ShowIncome):
    id: int


class SimpleAmountEntity(BaseModel):
    name: str
    amount: int


class ExpenseParentCategory(BaseModel):
    name: str
    amount: int
    categories: list[SimpleAmountEntity] = Field(default_factory=list)


class ExpensePriority(BaseModel):
    level: int
    amount: int


class ExpenseGroupedSummary(BaseModel):
    parent_categories: list[ExpenseParentCategory] = Field(default_factory=list)
    priorities: list[ExpensePriority] = Field(default_factory=list)


class ExpenseSummary(BaseModel):
    amount: int = 0
    group_summary: ExpenseGroupedSummary = Field(default_factory=ExpenseGroupedSummary)


class IncomeGroupedSummary(BaseModel):
    wallets: list[SimpleAmountEntity] = Field(default_factory=list)


class IncomeSummary(BaseModel):
    amount: int = 0
    group_summary: IncomeGroupedSummary = Field(default_factory=IncomeGroupedSummary)


class ShowSummary(BaseModel):
    expense: ExpenseSummary = Field(default_factory=ExpenseSummary)
    income: IncomeSummary = Field(default_factory=IncomeSummary)
