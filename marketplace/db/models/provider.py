# marketplace/db/models/provider.py
from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String

from marketplace.db.base import Base, new_id, utcnow


class Provider(Base):
    """
    Business profile of a provider account.

    status: pending -> approved / rejected (admin decision)
    services: ids of catalog services this provider offers; empty means any.
    """
    __tablename__ = "providers"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    business_name = Column(String, nullable=True)
    description = Column(String, nullable=True)
    services = Column(JSON, nullable=False, default=list)

    rating = Column(Float, nullable=True)
    review_count = Column(Integer, nullable=False, default=0)
    total_jobs = Column(Integer, nullable=False, default=0)

    is_available = Column(Boolean, nullable=False, default=True)
    status = Column(String, nullable=False, default="pending", index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
