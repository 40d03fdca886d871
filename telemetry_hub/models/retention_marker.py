"""
Telemetry Hub - Retention Marker Model

Singleton row recording when the last retention sweep finished.
"""

from sqlalchemy import Column, DateTime, Integer

from telemetry_hub.database import Base

MARKER_ROW_ID = 1


class RetentionMarker(Base):
    __tablename__ = "retention_marker"

    id = Column(Integer, primary_key=True, default=MARKER_ROW_ID)
    last_swept = Column(DateTime, nullable=False)
