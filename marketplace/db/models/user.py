# marketplace/db/models/user.py
from sqlalchemy import Column, DateTime, String

from marketplace.db.base import Base, new_id, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    display_name = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="customer", server_default="customer")

    phone = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
