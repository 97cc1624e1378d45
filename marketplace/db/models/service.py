# marketplace/db/models/service.py

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String

from marketplace.db.base import Base, new_id, utcnow


class Service(Base):
    __tablename__ = "services"

    id = Column(String, primary_key=True, default=new_id)

    category_id = Column(String, ForeignKey("service_categories.id", ondelete="SET NULL"), nullable=True)

    # Basic details
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)

    # Pricing
    price = Column(Numeric(10, 2), nullable=False)

    # Duration (in minutes)
    duration = Column(Integer, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
