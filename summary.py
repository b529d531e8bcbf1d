"""Date-bounded totals and group-bys over the ledger.

Amounts are summed in SQL and the nesting (parent category -> category) is
assembled here, so the same code runs on SQLite and Postgres.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from errors import storage_errors
from models import Category, Expense, Income, ParentCategory, Wallet
from schemas import (
    ExpenseGroupedSummary,
    ExpenseParentCategory,
    ExpensePriority,
    ExpenseSummary,
    GenerateSummaryRequest,
    IncomeGroupedSummary,
    IncomeSummary,
    ShowSummary,
    SimpleAmountEntity,
)


class SummaryRepository(ABC):
    @abstractmethod
    def generate(self, request: GenerateSummaryRequest) -> ShowSummary:
        ...


class SqlAlchemySummaryRepository(SummaryRepository):
    def __init__(self, session: Session) -> None:
        self.session = session

    def _expense_filters(self, request: GenerateSummaryRequest) -> list:
        criteria = [Expense.date.between(request.start_date, request.end_date)]
        if request.exclude_category_ids:
            criteria.append(Expense.category_id.not_in(request.exclude_category_ids))
        return criteria

    def _expense_total(self, request: GenerateSummaryRequest) -> int:
        stmt = select(func.coalesce(func.sum(Expense.amount), 0)).where(
            *self._expense_filters(request)
        )
        return int(self.session.execute(stmt).scalar_one() or 0)

    def _parent_categories(
        self, request: GenerateSummaryRequest
    ) -> list[ExpenseParentCategory]:
        stmt = (
            select(
                ParentCategory.id.label("parent_id"),
                ParentCategory.name.label("parent_name"),
                Category.name.label("name"),
                func.coalesce(func.sum(Expense.amount), 0).label("amount"),
            )
            .select_from(Expense)
            .join(Category, Category.id == Expense.category_id)
            .join(ParentCategory, ParentCategory.id == Category.parent_category_id)
            .where(*self._expense_filters(request))
            .group_by(ParentCategory.id, ParentCategory.name, Category.id, Category.name)
        )
        names: dict[int, str] = {}
        children: dict[int, list[SimpleAmountEntity]] = defaultdict(list)
        for row in self.session.execute(stmt).all():
            amount = int(row.amount or 0)
            if amount <= 0:
                continue
            names[row.parent_id] = row.parent_name
            children[row.parent_id].append(
                SimpleAmountEntity(name=row.name, amount=amount)
            )

        parents = []
        for parent_id, categories in children.items():
            categories.sort(key=lambda c: (-c.amount, c.name))
            parents.append(
                ExpenseParentCategory(
                    name=names[parent_id],
                    amount=sum(c.amount for c in categories),
                    categories=categories,
                )
            )
        parents.sort(key=lambda p: (-p.amount, p.name))
        return parents

    def _priorities(self, request: GenerateSummaryRequest) -> list[ExpensePriority]:
        total = func.coalesce(func.sum(Expense.amount), 0)
        stmt = (
            select(Expense.priority, total.label("amount"))
            .where(*self._expense_filters(request))
            .group_by(Expense.priority)
            .order_by(total.desc(), Expense.priority)
        )
        return [
            ExpensePriority(level=row.priority, amount=int(row.amount or 0))
            for row in self.session.execute(stmt).all()
        ]

    def _income_total(self, request: GenerateSummaryRequest) -> int:
        stmt = select(func.coalesce(func.sum(Income.amount), 0)).where(
            Income.date.between(request.start_date, request.end_date)
        )
        return int(self.session.execute(stmt).scalar_one() or 0)

    def _wallets(self, request: GenerateSummaryRequest) -> list[SimpleAmountEntity]:
        total = func.coalesce(func.sum(Income.amount), 0)
        stmt = (
            select(Wallet.name, total.label("amount"))
            .select_from(Income)
            .join(Wallet, Wallet.id == Income.wallet_id)
            .where(Income.date.between(request.start_date, request.end_date))
            .group_by(Wallet.name)
            .order_by(total.desc(), Wallet.name)
        )
        return [
            SimpleAmountEntity(name=row.name, amount=int(row.amount or 0))
            for row in self.session.execute(stmt).all()
        ]

    def generate(self, request: GenerateSummaryRequest) -> ShowSummary:
        with storage_errors():
            expense = ExpenseSummary(
                amount=self._expense_total(request),
                group_summary=ExpenseGroupedSummary(
                    parent_categories=self._parent_categories(request),
                    priorities=self._priorities(request),
                ),
            )
            income = IncomeSummary(
                amount=self._income_total(request),
                group_summary=IncomeGroupedSummary(wallets=self._wallets(request)),
            )
        return ShowSummary(expense=expense, income=income)
