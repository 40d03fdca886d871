"""
Telemetry Hub - Schedule Config Service

Reads and writes the single schedule record. Nodes are told which upload
interval to use from it, and the download cutoff is derived from its
safety margin.

The margin rules:
    - A global submission sets ``margin_base`` outright, so it may shrink.
    - A node-scoped submission may only raise ``margin_base``; other nodes
      may still be uploading on the previous, longer interval.

Both writes are a single UPDATE statement, so the merge is atomic with
respect to concurrent writers and readers.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Optional

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from telemetry_hub.errors import StoreError
from telemetry_hub.models import ScheduleConfig
from telemetry_hub.models.schedule_config import SCHEDULE_ROW_ID
from telemetry_hub.timeutil import utcnow

logger = logging.getLogger(__name__)

DEFAULT_SLACK_FACTOR = 1.1


def in_window(window_start: time, window_end: time, moment: time) -> bool:
    """Whether a time of day falls inside the window, ends inclusive.

    A window whose start is after its end wraps past midnight.
    """
    if window_start <= window_end:
        return window_start <= moment <= window_end
    return moment >= window_start or moment <= window_end


class ScheduleService:
    """
    Service over the schedule_config singleton.

    The record is read from the store on every call, since another
    process may have just written it.
    """

    def __init__(self, db: Session, default_interval: int, slack_factor: float = DEFAULT_SLACK_FACTOR):
        self.db = db
        self.default_interval = default_interval
        self.slack_factor = slack_factor

    def get(self) -> Optional[ScheduleConfig]:
        try:
            return self.db.get(ScheduleConfig, SCHEDULE_ROW_ID, populate_existing=True)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("failed to read schedule config") from e

    def set_global(
        self,
        window_start: time,
        window_end: time,
        active_period: int,
        inactive_period: int,
        now: Optional[datetime] = None,
    ) -> ScheduleConfig:
        """Replace the schedule; ``margin_base`` becomes the larger period."""
        return self._write(window_start, window_end, active_period, inactive_period, now, merge=False)

    def set_for_node(
        self,
        window_start: time,
        window_end: time,
        active_period: int,
        inactive_period: int,
        now: Optional[datetime] = None,
    ) -> ScheduleConfig:
        """Replace the window and periods; ``margin_base`` can only grow."""
        return self._write(window_start, window_end, active_period, inactive_period, now, merge=True)

    def _write(self, window_start, window_end, active_period, inactive_period, now, merge):
        candidate = max(active_period, inactive_period)
        values = {
            "window_start": window_start,
            "window_end": window_end,
            "active_period": active_period,
            "inactive_period": inactive_period,
            "updated_at": now or utcnow(),
        }
        if merge:
            margin = case(
                (ScheduleConfig.margin_base > candidate, ScheduleConfig.margin_base),
                else_=candidate,
            )
        else:
            margin = candidate
        stmt = (
            update(ScheduleConfig)
            .where(ScheduleConfig.id == SCHEDULE_ROW_ID)
            .values(margin_base=margin, **values)
            .execution_options(synchronize_session=False)
        )
        initial = max(self.default_interval, candidate) if merge else candidate
        try:
            try:
                if self.db.execute(stmt).rowcount == 0:
                    self.db.add(ScheduleConfig(id=SCHEDULE_ROW_ID, margin_base=initial, **values))
                self.db.commit()
            except IntegrityError:
                # Another writer created the row first
                self.db.rollback()
                self.db.execute(stmt)
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to write schedule config", exc_info=True)
            raise StoreError("failed to write schedule config") from e

        config = self.get()
        logger.info(
            "Schedule set (%s): window %s-%s, active %ss, inactive %ss, margin %ss",
            "node" if merge else "global",
            window_start,
            window_end,
            active_period,
            inactive_period,
            config.margin_base,
        )
        return config

    def margin_base(self) -> int:
        try:
            value = self.db.scalar(
                select(ScheduleConfig.margin_base).where(ScheduleConfig.id == SCHEDULE_ROW_ID)
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("failed to read schedule config") from e
        return self.default_interval if value is None else value

    def effective_interval(self, now: datetime) -> int:
        """Upload interval a node should use next, in seconds."""
        config = self.get()
        if config is None:
            return self.default_interval
        if in_window(config.window_start, config.window_end, now.time()):
            return config.active_period
        return config.inactive_period

    def safety_cutoff(self, now: datetime) -> datetime:
        """
        Timestamp before which logs are exposed to collectors.

        This is a heuristic, not a guarantee: it assumes every node uploads
        at least once per ``margin_base`` seconds, stretched by the slack
        factor for network and processing delay.
        """
        return now - timedelta(seconds=self.margin_base() * self.slack_factor)
