# societyguard/models/audit_log.py
"""
Audit trail: who did what to which entity.
Written fire-and-forget by audit_service; also holds the daily-report run marker.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from societyguard.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(100), nullable=False, index=True)
    entity = Column(String(50), nullable=False)
    entity_id = Column(String(100))
    details = Column(JSON)
    actor = Column(String(100))
    client_id = Column(String(100), index=True)
    created_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog {self.id} {self.action} {self.entity}:{self.entity_id}>"
