"""initial ledger schema

Revision ID: 202504011038
Revises:
Create Date: 2025-04-01 10:38:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202504011038"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column(
            "created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()
        ),
    ]


def upgrade():
    op.create_table(
        "parent_category",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
    )

    op.create_table(
        "category",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "parent_category_id",
            sa.Integer(),
            sa.ForeignKey("parent_category.id"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
    )
    op.create_index("ix_category_parent_category_id", "category", ["parent_category_id"])

    op.create_table(
        "wallet",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
    )

    op.create_table(
        "tag",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column(
            "is_important", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        *_timestamps(),
    )
    op.create_index("ix_tag_name", "tag", ["name"])
    op.create_index("ix_tag_is_important", "tag", ["is_important"])

    op.create_table(
        "expense",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "category_id", sa.Integer(), sa.ForeignKey("category.id"), nullable=False
        ),
        sa.Column("wallet_id", sa.Integer(), sa.ForeignKey("wallet.id"), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("priority", sa.SmallInteger(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("amount >= 0", name="ck_expense_amount_non_negative"),
        sa.CheckConstraint(
            "priority BETWEEN 0 AND 2", name="ck_expense_priority_range"
        ),
    )
    op.create_index("ix_expense_category_id", "expense", ["category_id"])
    op.create_index("ix_expense_wallet_id", "expense", ["wallet_id"])
    op.create_index("ix_expense_date", "expense", ["date"])

    op.create_table(
        "expense_tag",
        sa.Column(
            "expense_id",
            sa.Integer(),
            sa.ForeignKey("expense.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("tag_id", sa.Integer(), sa.ForeignKey("tag.id"), primary_key=True),
    )
    op.create_index("ix_expense_tag_expense_id", "expense_tag", ["expense_id"])
    op.create_index("ix_expense_tag_tag_id", "expense_tag", ["tag_id"])

    op.create_table(
        "income",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("wallet_id", sa.Integer(), sa.ForeignKey("wallet.id"), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text()),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_income_amount_positive"),
    )
    op.create_index("ix_income_wallet_id", "income", ["wallet_id"])
    op.create_index("ix_income_date", "income", ["date"])

    op.create_table(
        "wallet_transfer",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "source_wallet_id", sa.Integer(), sa.ForeignKey("wallet.id"), nullable=False
        ),
        sa.Column(
            "target_wallet_id", sa.Integer(), sa.ForeignKey("wallet.id"), nullable=False
        ),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text()),
        *_timestamps(),
        sa.CheckConstraint(
            "amount >= 0", name="ck_wallet_transfer_amount_non_negative"
        ),
        sa.CheckConstraint(
            "source_wallet_id <> target_wallet_id",
            name="source_target_wallet_different",
        ),
    )
    op.create_index("ix_wallet_transfer_date", "wallet_transfer", ["date"])


def downgrade():
    op.drop_table("wallet_transfer")
    op.drop_table("income")
    op.drop_table("expense_tag")
    op.drop_table("expense")
    op.drop_table("tag")
    op.drop_table("wallet")
    op.drop_table("category")
    op.drop_table("parent_category")
