# marketplace/db/models/category.py
from sqlalchemy import Column, DateTime, String

from marketplace.db.base import Base, new_id, utcnow


class Category(Base):
    __tablename__ = "service_categories"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)
    description = Column(String, nullable=True)
    icon = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
