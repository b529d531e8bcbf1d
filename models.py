from datetime import date, datetime
from enum import IntEnum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class Priority(IntEnum):
    high = 0
    medium = 1
    low = 2


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class ParentCategory(Base):
    __tablename__ = "parent_category"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)

    categories: Mapped[list["Category"]] = relationship(
        "Category", back_populates="parent_category"
    )


class Category(Base):
    __tablename__ = "category"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    parent_category_id: Mapped[int] = mapped_column(
        ForeignKey("parent_category.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)

    parent_category: Mapped["ParentCategory"] = relationship(
        "ParentCategory", back_populates="categories"
    )


class Wallet(Base):
    __tablename__ = "wallet"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)


class Tag(Base, TimestampMixin):
    __tablename__ = "tag"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    is_important: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )


expense_tag = Table(
    "expense_tag",
    Base.metadata,
    Column(
        "expense_id",
        Integer,
        ForeignKey("expense.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
    Column("tag_id", Integer, ForeignKey("tag.id"), primary_key=True, index=True),
)


class Expense(Base, TimestampMixin):
    __tablename__ = "expense"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("category.id"), nullable=False, index=True
    )
    wallet_id: Mapped[int] = mapped_column(
        ForeignKey("wallet.id"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    priority: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    category: Mapped["Category"] = relationship("Category")
    wallet: Mapped["Wallet"] = relationship("Wallet")
    tags: Mapped[list["Tag"]] = relationship(
        "Tag", secondary="expense_tag", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_expense_amount_non_negative"),
        CheckConstraint("priority BETWEEN 0 AND 2", name="ck_expense_priority_range"),
    )


class Income(Base, TimestampMixin):
    __tablename__ = "income"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    wallet_id: Mapped[int] = mapped_column(
        ForeignKey("wallet.id"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)

    wallet: Mapped["Wallet"] = relationship("Wallet")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_income_amount_positive"),
    )


class WalletTransfer(Base, TimestampMixin):
    __tablename__ = "wallet_transfer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    source_wallet_id: Mapped[int] = mapped_column(
        ForeignKey("wallet.id"), nullable=False
    )
    target_wallet_id: Mapped[int] = mapped_column(
        ForeignKey("wallet.id"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_wallet_transfer_amount_non_negative"),
        CheckConstraint(
            "source_wallet_id <> target_wallet_id",
            name="source_target_wallet_different",
        ),
        Index("ix_wallet_transfer_date", "date"),
    )
