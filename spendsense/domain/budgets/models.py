from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, UniqueConstraint

from spendsense.core.clock import utcnow_naive
from spendsense.core.database import Base


class Budget(Base):
    """Monthly spending budget keyed by ``YYYY-MM``."""

    __tablename__ = "budgets"
    __table_args__ = (
        UniqueConstraint("owner_id", "month_key", name="uq_budgets_owner_month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    month_key = Column(String(7), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=utcnow_naive)
    updated_at = Column(DateTime, default=utcnow_naive, onupdate=utcnow_naive)
