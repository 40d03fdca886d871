"""
Telemetry Hub - Schedule Config Model

Singleton row describing the active window, the upload periods inside
and outside it, and the safety margin used for download cutoffs.
"""

from sqlalchemy import Column, DateTime, Integer, Time

from telemetry_hub.database import Base

SCHEDULE_ROW_ID = 1


class ScheduleConfig(Base):
    __tablename__ = "schedule_config"

    id = Column(Integer, primary_key=True, default=SCHEDULE_ROW_ID)
    window_start = Column(Time, nullable=False)
    window_end = Column(Time, nullable=False)
    active_period = Column(Integer, nullable=False)
    inactive_period = Column(Integer, nullable=False)
    margin_base = Column(Integer, nullable=False)
    updated_at = Column(DateTime, nullable=False)
