from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Optional, Sequence

from sqlalchemy import case, delete, func, insert, select, update
from sqlalchemy.orm import Session, joinedload, selectinload

from errors import NotFoundError, storage_errors
from models import (
    Category,
    Expense,
    Income,
    ParentCategory,
    Priority,
    Tag,
    Wallet,
    WalletTransfer,
    expense_tag,
)
from pagination import ListFilter
from schemas import (
    IndexExpenseElement,
    IndexIncomeElement,
    ParentCategoryOut,
    SaveExpense,
    SaveIncome,
    SaveTransfer,
    ShowExpense,
    ShowIncome,
    ShowLatestExpense,
    ShowLatestIncome,
    SimpleEntity,
    TagOut,
)

logger = logging.getLogger(__name__)

DEFAULT_TRANSFER_FEE_CATEGORY_ID = 1
TRANSFER_FEE_DESCRIPTION_PREFIX = "Wallet transfer fee: "


def _format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


@contextmanager
def _unit_of_work(session: Session) -> Iterator[Session]:
    """Commit everything staged inside the block, or roll all of it back."""
    with storage_errors():
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def _important_first():
    return case((Tag.is_important.is_(True), 0), else_=1)


class ExpenseRepository(ABC):
    @abstractmethod
    def find_all(self, filters: ListFilter) -> list[IndexExpenseElement]:
        """Expenses in the date window, ordered by id for stable paging."""

    @abstractmethod
    def find_one(self, expense_id: int) -> ShowExpense:
        ...

    @abstractmethod
    def find_latest(self) -> ShowLatestExpense:
        ...

    @abstractmethod
    def delete(self, expense_id: int) -> None:
        ...

    @abstractmethod
    def update(self, expense_id: int, data: SaveExpense) -> None:
        """Replace every mutable field and the whole tag set of one expense."""

    @abstractmethod
    def insert_bulk(self, expenses: Sequence[SaveExpense]) -> None:
        """Insert all expenses and their tag links, or nothing at all."""


class IncomeRepository(ABC):
    @abstractmethod
    def find_all(self, filters: ListFilter) -> list[IndexIncomeElement]:
        ...

    @abstractmethod
    def find_one(self, income_id: int) -> ShowIncome:
        ...

    @abstractmethod
    def find_latest(self) -> ShowLatestIncome:
        ...

    @abstractmethod
    def delete(self, income_id: int) -> None:
        ...

    @abstractmethod
    def update(self, income_id: int, data: SaveIncome) -> None:
        ...

    @abstractmethod
    def insert_bulk(self, incomes: Sequence[SaveIncome]) -> None:
        ...


class WalletRepository(ABC):
    @abstractmethod
    def find_many(self, filters: ListFilter) -> list[SimpleEntity]:
        ...

    @abstractmethod
    def insert_transfer(self, transfer: SaveTransfer) -> None:
        """Record a transfer; a non-zero fee is booked as an expense atomically."""

    @abstractmethod
    def insert_transfers(self, transfers: Sequence[SaveTransfer]) -> None:
        ...


class LookupRepository(ABC):
    @abstractmethod
    def find_categories(self, filters: ListFilter) -> list[SimpleEntity]:
        ...

    @abstractmethod
    def find_parent_categories(self, filters: ListFilter) -> list[ParentCategoryOut]:
        ...

    @abstractmethod
    def find_tags(
        self, filters: ListFilter, important: Optional[bool] = None
    ) -> list[TagOut]:
        ...


class SqlAlchemyExpenseRepository(ExpenseRepository):
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_all(self, filters: ListFilter) -> list[IndexExpenseElement]:
        stmt = (
            select(Expense.id, Expense.amount, Expense.date, Expense.description)
            .order_by(Expense.id)
            .offset(filters.offset)
            .limit(filters.limit)
        )
        if filters.start_date:
            stmt = stmt.where(Expense.date >= filters.start_date)
        if filters.end_date:
            stmt = stmt.where(Expense.date <= filters.end_date)
        with storage_errors():
            rows = self.session.execute(stmt).all()
        return [
            IndexExpenseElement(
                id=row.id,
                amount=row.amount,
                date=_format_date(row.date),
                description=row.description,
            )
            for row in rows
        ]

    def _base_show_query(self):
        return (
            select(Expense)
            .options(
                joinedload(Expense.category, innerjoin=True),
                joinedload(Expense.wallet, innerjoin=True),
            )
            .execution_options(populate_existing=True)
        )

    def _tags_for(self, expense_id: int) -> list[TagOut]:
        stmt = (
            select(Tag.id, Tag.name, Tag.is_important)
            .join(expense_tag, expense_tag.c.tag_id == Tag.id)
            .where(expense_tag.c.expense_id == expense_id)
            .order_by(_important_first(), func.lower(Tag.name), Tag.id)
        )
        return [
            TagOut(id=row.id, name=row.name, is_important=row.is_important)
            for row in self.session.execute(stmt).all()
        ]

    def _show_fields(self, expense: Expense) -> dict[str, object]:
        return {
            "amount": expense.amount,
            "date": _format_date(expense.date),
            "description": expense.description,
            "priority": expense.priority,
            "category": SimpleEntity(
                id=expense.category.id, name=expense.category.name
            ),
            "wallet": SimpleEntity(id=expense.wallet.id, name=expense.wallet.name),
            "tags": self._tags_for(expense.id),
        }

    def find_one(self, expense_id: int) -> ShowExpense:
        stmt = self._base_show_query().where(Expense.id == expense_id)
        with storage_errors():
            expense = self.session.scalars(stmt).one()
            return ShowExpense(**self._show_fields(expense))

    def find_latest(self) -> ShowLatestExpense:
        stmt = self._base_show_query().order_by(Expense.id.desc()).limit(1)
        with storage_errors():
            expense = self.session.scalars(stmt).first()
            if expense is None:
                raise NotFoundError("No expense recorded yet")
            return ShowLatestExpense(id=expense.id, **self._show_fields(expense))

    def delete(self, expense_id: int) -> None:
        with _unit_of_work(self.session):
            result = self.session.execute(
                delete(Expense).where(Expense.id == expense_id)
            )
            if result.rowcount == 0:
                raise NotFoundError("Expense not found")
        logger.info(f"expense_delete: id={expense_id}")

    def update(self, expense_id: int, data: SaveExpense) -> None:
        with _unit_of_work(self.session):
            result = self.session.execute(
                update(Expense)
                .where(Expense.id == expense_id)
                .values(
                    amount=data.amount,
                    date=data.date,
                    description=data.description,
                    priority=data.priority,
                    category_id=data.category_id,
                    wallet_id=data.wallet_id,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("Expense not found")
            self.session.execute(
                delete(expense_tag).where(expense_tag.c.expense_id == expense_id)
            )
            if data.tag_ids:
                self.session.execute(
                    insert(expense_tag),
                    [
                        {"expense_id": expense_id, "tag_id": tag_id}
                        for tag_id in data.tag_ids
                    ],
                )
        logger.info(f"expense_update: id={expense_id} tag_links={len(data.tag_ids)}")

    def insert_bulk(self, expenses: Sequence[SaveExpense]) -> None:
        if not expenses:
            return
        with _unit_of_work(self.session):
            rows = [
                Expense(
                    amount=data.amount,
                    date=data.date,
                    description=data.description,
                    priority=data.priority,
                    category_id=data.category_id,
                    wallet_id=data.wallet_id,
                )
                for data in expenses
            ]
            self.session.add_all(rows)
            # the unit of work ties each generated id back to its own row object
            self.session.flush()

            links = [
                {"expense_id": row.id, "tag_id": tag_id}
                for row, data in zip(rows, expenses)
                for tag_id in data.tag_ids
            ]
            if links:
                self.session.execute(insert(expense_tag), links)
        logger.info(
            f"expense_insert_bulk: count={len(expenses)} tag_links={len(links)}"
        )


class SqlAlchemyIncomeRepository(IncomeRepository):
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_all(self, filters: ListFilter) -> list[IndexIncomeElement]:
        stmt = (
            select(Income.id, Income.amount, Income.date, Income.description)
            .order_by(Income.id)
            .offset(filters.offset)
            .limit(filters.limit)
        )
        if filters.start_date:
            stmt = stmt.where(Income.date >= filters.start_date)
        if filters.end_date:
            stmt = stmt.where(Income.date <= filters.end_date)
        with storage_errors():
            rows = self.session.execute(stmt).all()
        return [
            IndexIncomeElement(
                id=row.id,
                amount=row.amount,
                date=_format_date(row.date),
                description=row.description,
            )
            for row in rows
        ]

    def _base_show_query(self):
        return (
            select(Income)
            .options(joinedload(Income.wallet, innerjoin=True))
            .execution_options(populate_existing=True)
        )

    @staticmethod
    def _show_fields(income: Income) -> dict[str, object]:
        return {
            "amount": income.amount,
            "date": _format_date(income.date),
            "description": income.description,
            "wallet": SimpleEntity(id=income.wallet.id, name=income.wallet.name),
        }

    def find_one(self, income_id: int) -> ShowIncome:
        stmt = self._base_show_query().where(Income.id == income_id)
        with storage_errors():
            income = self.session.scalars(stmt).one()
        return ShowIncome(**self._show_fields(income))

    def find_latest(self) -> ShowLatestIncome:
        stmt = self._base_show_query().order_by(Income.id.desc()).limit(1)
        with storage_errors():
            income = self.session.scalars(stmt).first()
        if income is None:
            raise NotFoundError("No income recorded yet")
        return ShowLatestIncome(id=income.id, **self._show_fields(income))

    def delete(self, income_id: int) -> None:
        with _unit_of_work(self.session):
            result = self.session.execute(delete(Income).where(Income.id == income_id))
            if result.rowcount == 0:
                raise NotFoundError("Income not found")
        logger.info(f"income_delete: id={income_id}")

    def update(self, income_id: int, data: SaveIncome) -> None:
        with _unit_of_work(self.session):
            result = self.session.execute(
                update(Income)
                .where(Income.id == income_id)
                .values(
                    amount=data.amount,
                    date=data.date,
                    description=data.description,
                    wallet_id=data.wallet_id,
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("Income not found")
        logger.info(f"income_update: id={income_id}")

    def insert_bulk(self, incomes: Sequence[SaveIncome]) -> None:
        if not incomes:
            return
        with _unit_of_work(self.session):
            self.session.add_all(
                [
                    Income(
                        amount=data.amount,
                        date=data.date,
                        description=data.description,
                        wallet_id=data.wallet_id,
                    )
                    for data in incomes
                ]
            )
        logger.info(f"income_insert_bulk: count={len(incomes)}")


def transfer_fee_expense(
    transfer: SaveTransfer, fee_category_id: int
) -> Optional[Expense]:
    """The expense row a transfer fee is booked as, or None when there is no fee."""
    if transfer.fee <= 0:
        return None
    description = None
    if transfer.description is not None:
        description = f"{TRANSFER_FEE_DESCRIPTION_PREFIX}{transfer.description}"
    return Expense(
        amount=transfer.fee,
        date=transfer.date,
        description=description,
        priority=int(Priority.low),
        category_id=fee_category_id,
        wallet_id=transfer.source_wallet_id,
    )


def stage_transfer(
    session: Session, transfer: SaveTransfer, fee_category_id: int
) -> Optional[Expense]:
    """Add a transfer and its fee expense to the session without committing.

    This is the single place where the wallet_transfer and expense tables are
    coupled; callers own the surrounding transaction.
    """
    session.add(
        WalletTransfer(
            source_wallet_id=transfer.source_wallet_id,
            target_wallet_id=transfer.target_wallet_id,
            amount=transfer.amount,
            date=transfer.date,
            description=transfer.description,
        )
    )
    fee = transfer_fee_expense(transfer, fee_category_id)
    if fee is not None:
        session.add(fee)
    return fee


class SqlAlchemyWalletRepository(WalletRepository):
    def __init__(
        self,
        session: Session,
        fee_category_id: int = DEFAULT_TRANSFER_FEE_CATEGORY_ID,
    ) -> None:
        self.session = session
        self.fee_category_id = fee_category_id

    def find_many(self, filters: ListFilter) -> list[SimpleEntity]:
        stmt = (
            select(Wallet.id, Wallet.name)
            .order_by(func.lower(Wallet.name), Wallet.id)
            .offset(filters.offset)
            .limit(filters.limit)
        )
        with storage_errors():
            rows = self.session.execute(stmt).all()
        return [SimpleEntity(id=row.id, name=row.name) for row in rows]

    def insert_transfer(self, transfer: SaveTransfer) -> None:
        with _unit_of_work(self.session):
            fee = stage_transfer(self.session, transfer, self.fee_category_id)
        logger.info(
            f"wallet_transfer: source={transfer.source_wallet_id} "
            f"target={transfer.target_wallet_id} fee_booked={fee is not None}"
        )

    def insert_transfers(self, transfers: Sequence[SaveTransfer]) -> None:
        if not transfers:
            return
        with _unit_of_work(self.session):
            fees = [
                stage_transfer(self.session, transfer, self.fee_category_id)
                for transfer in transfers
            ]
        booked = sum(1 for fee in fees if fee is not None)
        logger.info(f"wallet_transfer_bulk: count={len(transfers)} fees={booked}")


class SqlAlchemyLookupRepository(LookupRepository):
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_categories(self, filters: ListFilter) -> list[SimpleEntity]:
        stmt = (
            select(Category.id, Category.name)
            .order_by(func.lower(Category.name), Category.id)
            .offset(filters.offset)
            .limit(filters.limit)
        )
        with storage_errors():
            rows = self.session.execute(stmt).all()
        return [SimpleEntity(id=row.id, name=row.name) for row in rows]

    def find_parent_categories(self, filters: ListFilter) -> list[ParentCategoryOut]:
        stmt = (
            select(ParentCategory)
            .options(selectinload(ParentCategory.categories))
            .order_by(func.lower(ParentCategory.name), ParentCategory.id)
            .offset(filters.offset)
            .limit(filters.limit)
        )
        with storage_errors():
            parents = self.session.scalars(stmt).all()
        return [
            ParentCategoryOut(
                id=parent.id,
                name=parent.name,
                categories=[
                    SimpleEntity(id=child.id, name=child.name)
                    for child in sorted(
                        parent.categories, key=lambda c: (c.name.lower(), c.id)
                    )
                ],
            )
            for parent in parents
        ]

    def find_tags(
        self, filters: ListFilter, important: Optional[bool] = None
    ) -> list[TagOut]:
        stmt = (
            select(Tag.id, Tag.name, Tag.is_important)
            .order_by(_important_first(), func.lower(Tag.name), Tag.id)
            .offset(filters.offset)
            .limit(filters.limit)
        )
        if important is not None:
            stmt = stmt.where(Tag.is_important.is_(important))
        with storage_errors():
            rows = self.session.execute(stmt).all()
        return [
            TagOut(id=row.id, name=row.name, is_important=row.is_important)
            for row in rows
        ]
