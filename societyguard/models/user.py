# societyguard/models/user.py
"""
Dashboard users. The daily reporter mails every active society admin.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey
from societyguard.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=False, index=True)
    role = Column(String(20), nullable=False, default="viewer")   # superuser | admin | viewer
    society_id = Column(Integer, ForeignKey("societies.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<User {self.email} role={self.role}>"
