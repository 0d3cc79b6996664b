# societyguard/models/society.py
"""
Tenant (society) registry table.
Managed by the admin CRUD layer; ingestion only reads it to resolve client codes.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from societyguard.database import Base


class Society(Base):
    __tablename__ = "societies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<Society {self.code} active={self.active}>"
