# societyguard/models/camera.py
"""
Camera registry table. Maps the vendor camera identifier to a display name.
Read at ingestion time to snapshot camera_location onto each event.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from societyguard.database import Base


class Camera(Base):
    __tablename__ = "cameras"

    id = Column(Integer, primary_key=True, autoincrement=True)
    camera_id = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    location = Column(String(200))
    society_id = Column(Integer, ForeignKey("societies.id"), nullable=True)
    created_at = Column(DateTime)

    def __repr__(self):
        return f"<Camera {self.camera_id} name={self.name}>"
