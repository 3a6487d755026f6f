from sqlalchemy import Column, String, DateTime

from spendsense.core.clock import utcnow_naive
from spendsense.core.database import Base


class User(Base):
    """User profile; the id is the opaque uid issued by the auth provider."""

    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    name = Column(String, nullable=True)
    email = Column(String, nullable=True, unique=True, index=True)
    device_token = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow_naive)
    updated_at = Column(DateTime, default=utcnow_naive, onupdate=utcnow_naive)
