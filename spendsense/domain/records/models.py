from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Numeric,
    ForeignKey,
    Text,
    Index,
)

from spendsense.core.clock import utcnow_naive
from spendsense.core.database import Base

RECORD_TYPE_INCOME = "income"
RECORD_TYPE_EXPENSE = "expense"
RECORD_TYPES = (RECORD_TYPE_INCOME, RECORD_TYPE_EXPENSE)


class FinancialRecord(Base):
    """Income or expense entry. Records are created and deleted, never edited."""

    __tablename__ = "financial_records"
    __table_args__ = (
        Index("ix_records_owner_type_date", "owner_id", "record_type", "occurred_at"),
        Index("ix_records_owner_type_category", "owner_id", "record_type", "category"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    record_type = Column(String(16), nullable=False)  # income, expense
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(String, nullable=True)  # required for expenses
    description = Column(Text, nullable=True)
    occurred_at = Column(DateTime, nullable=False)  # naive UTC
    created_at = Column(DateTime, default=utcnow_naive)
