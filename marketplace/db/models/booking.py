# marketplace/db/models/booking.py
from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Time

from marketplace.db.base import Base, new_id, utcnow


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String, primary_key=True, default=new_id)

    customer_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(String, ForeignKey("services.id"), nullable=False, index=True)

    scheduled_date = Column(Date, nullable=False)
    scheduled_time = Column(Time, nullable=False)
    address = Column(String, nullable=False)
    notes = Column(String, nullable=True)

    # copied from the service price at creation, never rewritten
    total_amount = Column(Numeric(10, 2), nullable=False)

    status = Column(String, nullable=False, default="pending", index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(String, nullable=True)

    rating = Column(Integer, nullable=True)   # 1..5
    review = Column(String, nullable=True)
