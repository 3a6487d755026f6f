"""create users, financial records, insights and budgets"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202610190900"
down_revision = None
branch_labels = None
depends_on = None


def _has_table(table: str) -> bool:
    bind = op.get_bind()
    return sa.inspect(bind).has_table(table)


def upgrade() -> None:
    if not _has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.String(length=128), primary_key=True),
            sa.Column("name", sa.String(), nullable=True),
            sa.Column("email", sa.String(), nullable=True),
            sa.Column("device_token", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if not _has_table("financial_records"):
        op.create_table(
            "financial_records",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "owner_id",
                sa.String(length=128),
                sa.ForeignKey("users.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("record_type", sa.String(length=16), nullable=False),
            sa.Column("amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("category", sa.String(), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("occurred_at", sa.DateTime(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_financial_records_id", "financial_records", ["id"])
        op.create_index(
            "ix_records_owner_type_date",
            "financial_records",
            ["owner_id", "record_type", "occurred_at"],
        )
        op.create_index(
            "ix_records_owner_type_category",
            "financial_records",
            ["owner_id", "record_type", "category"],
        )

    if not _has_table("insights"):
        op.create_table(
            "insights",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "owner_id",
                sa.String(length=128),
                sa.ForeignKey("users.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("kind", sa.String(length=16), nullable=False),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("body", sa.Text(), nullable=False),
            sa.Column("category", sa.String(), nullable=False),
            sa.Column("rationale", sa.Text(), nullable=False),
            sa.Column("fingerprint", sa.String(length=16), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("acknowledged", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.UniqueConstraint("owner_id", "fingerprint", name="uq_insights_owner_fingerprint"),
        )
        op.create_index("ix_insights_id", "insights", ["id"])
        op.create_index(
            "ix_insights_owner_kind_created",
            "insights",
            ["owner_id", "kind", "created_at"],
        )

    if not _has_table("budgets"):
        op.create_table(
            "budgets",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "owner_id",
                sa.String(length=128),
                sa.ForeignKey("users.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("month_key", sa.String(length=7), nullable=False),
            sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.UniqueConstraint("owner_id", "month_key", name="uq_budgets_owner_month"),
        )
        op.create_index("ix_budgets_id", "budgets", ["id"])


def downgrade() -> None:
    for table in ("budgets", "insights", "financial_records", "users"):
        if _has_table(table):
            op.drop_table(table)
