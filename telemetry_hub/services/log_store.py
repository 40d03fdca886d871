"""
Telemetry Hub - Log Store

Append-only storage for node log lines, ranged reads for collectors and
bounded purges for the retention sweep.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from telemetry_hub.errors import StoreError
from telemetry_hub.models import LogMessage

logger = logging.getLogger(__name__)


class LogStore:
    """
    Service over the log_messages table.

    Ids come from the database autoincrement, so concurrent appends only
    serialize on id assignment.
    """

    def __init__(self, db: Session):
        self.db = db

    def append(self, node_id: int, timestamp: datetime, message: str) -> int:
        """Store a single log line and return its id."""
        return self.append_batch(node_id, [(timestamp, message)])[0]

    def append_batch(self, node_id: int, entries: Iterable[Tuple[datetime, str]]) -> List[int]:
        """
        Store a batch of log lines in one transaction.

        Either the whole batch is committed or none of it is.

        Args:
            node_id: Node the lines came from
            entries: (timestamp, message) pairs in upload order

        Returns:
            Assigned ids, in the same order as the entries
        """
        rows = [
            LogMessage(node_id=node_id, timestamp=timestamp, message=message)
            for timestamp, message in entries
        ]
        if not rows:
            return []
        try:
            self.db.add_all(rows)
            self.db.flush()
            ids = [row.id for row in rows]
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to store %d log lines for node %s", len(rows), node_id, exc_info=True)
            raise StoreError("failed to store log messages") from e
        logger.debug("Stored %d log lines for node %s", len(ids), node_id)
        return ids

    def range_after(self, min_id: int, cutoff: datetime, limit: int) -> List[LogMessage]:
        """
        Read log lines with ``id > min_id`` and ``timestamp < cutoff``.

        Returns:
            At most ``limit`` rows, ascending by id
        """
        stmt = (
            select(LogMessage)
            .where(LogMessage.id > min_id, LogMessage.timestamp < cutoff)
            .order_by(LogMessage.id.asc())
            .limit(limit)
        )
        try:
            return list(self.db.scalars(stmt))
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("failed to read log messages") from e

    def known_node_ids(self) -> List[int]:
        """Distinct node ids that have at least one stored log line."""
        stmt = select(LogMessage.node_id).distinct().order_by(LogMessage.node_id)
        try:
            return list(self.db.scalars(stmt))
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("failed to list known nodes") from e

    def purge_older_than(self, threshold: datetime, batch_size: int) -> int:
        """
        Delete up to ``batch_size`` log lines with ``timestamp < threshold``.

        Callers repeat the call until it returns less than ``batch_size``
        to clear the whole backlog.

        Returns:
            Number of rows deleted
        """
        ids_stmt = (
            select(LogMessage.id)
            .where(LogMessage.timestamp < threshold)
            .order_by(LogMessage.id)
            .limit(batch_size)
        )
        try:
            ids = list(self.db.scalars(ids_stmt))
            if not ids:
                return 0
            result = self.db.execute(
                delete(LogMessage)
                .where(LogMessage.id.in_(ids), LogMessage.timestamp < threshold)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("failed to purge log messages") from e
        return result.rowcount
