from enum import Enum

from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Text, Index, UniqueConstraint

from spendsense.core.clock import utcnow_naive
from spendsense.core.database import Base


class InsightKind(str, Enum):
    ALERT = "Alert"
    ADVICE = "Advice"


class Insight(Base):
    """System-authored alert or advice shown to the user."""

    __tablename__ = "insights"
    __table_args__ = (
        UniqueConstraint(
            "owner_id",
            "fingerprint",
            name="uq_insights_owner_fingerprint",
        ),
        Index("ix_insights_owner_kind_created", "owner_id", "kind", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    kind = Column(String(16), nullable=False)  # Alert, Advice
    title = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    category = Column(String, nullable=False)
    rationale = Column(Text, nullable=False)
    fingerprint = Column(String(16), nullable=False)
    created_at = Column(DateTime, default=utcnow_naive, nullable=False)
    acknowledged = Column(Boolean, default=False, nullable=False)
