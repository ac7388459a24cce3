"""Transaction ledger and position tables

Revision ID: 3c1d7e52a9f0
Revises:
Create Date: 2024-03-04 09:12:41.318207

"""
from alembic import op
import sqlalchemy as sa
from ofxtools.models.i18n import CURRENCY_CODES


# revision identifiers, used by Alembic.
revision = '3c1d7e52a9f0'
down_revision = None
branch_labels = None
depends_on = None


ASSET_CLASSES = ("stock", "etf", "reit", "crypto", "forex", "option")
TRANSACTION_KINDS = ("buy", "sell", "dividend", "option_expired")


def upgrade():
    op.create_table(
        "transaction",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("portfolio_id", sa.String(), nullable=False),
        sa.Column("asset_id", sa.String(), nullable=False),
        sa.Column("symbol", sa.String(), nullable=False),
        sa.Column(
            "asset_class", sa.Enum(*ASSET_CLASSES, name="asset_class"), nullable=False
        ),
        sa.Column(
            "kind", sa.Enum(*TRANSACTION_KINDS, name="transaction_kind"), nullable=False
        ),
        sa.Column("quantity", sa.Numeric(), nullable=False),
        sa.Column("price", sa.Numeric(), nullable=False),
        sa.Column("fees", sa.Numeric(), nullable=True),
        sa.Column(
            "currency", sa.Enum(*CURRENCY_CODES, name="currency_type"), nullable=False
        ),
        sa.Column("occurred_at", sa.DateTime(), nullable=False),
        sa.Column("strategy", sa.String(), nullable=True),
        sa.CheckConstraint("quantity > 0", name=op.f("ck_transaction_positive_quantity")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_transaction")),
        comment="Portfolio transaction ledger",
    )
    op.create_index(
        op.f("ix_transaction_portfolio_id"), "transaction", ["portfolio_id"]
    )

    op.create_table(
        "position",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("portfolio_id", sa.String(), nullable=False),
        sa.Column("asset_id", sa.String(), nullable=False),
        sa.Column("symbol", sa.String(), nullable=False),
        sa.Column("quantity", sa.Numeric(), nullable=False),
        sa.Column("average_cost", sa.Numeric(), nullable=False),
        sa.Column("total_cost", sa.Numeric(), nullable=False),
        sa.Column("realized", sa.Numeric(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_position")),
        sa.UniqueConstraint(
            "portfolio_id", "asset_id", name=op.f("uq_position_portfolio_id")
        ),
        comment="Current holdings rebuilt from the transaction ledger",
    )


def downgrade():
    op.drop_table("position")
    op.drop_index(op.f("ix_transaction_portfolio_id"), table_name="transaction")
    op.drop_table("transaction")
