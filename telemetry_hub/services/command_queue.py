"""
Telemetry Hub - Command Queue

Per-node mailboxes of pending commands. A drain hands each command to
its node exactly once: rows are delivered only when this drain's delete
actually removed them, so a racing drain on the same node can never
deliver the same row, and rows enqueued after the drain's read stay
queued for the next one.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from telemetry_hub.errors import StoreError
from telemetry_hub.models import PendingCommand
from telemetry_hub.timeutil import utcnow

logger = logging.getLogger(__name__)


def encode_payload(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"))


class CommandQueue:
    """Service over the pending_commands table."""

    def __init__(self, db: Session):
        self.db = db

    def enqueue(self, node_id: int, payload: Dict[str, Any], now: Optional[datetime] = None) -> int:
        """Queue one command for a node and return its id."""
        return self._insert([node_id], payload, now)[0]

    def enqueue_broadcast(
        self,
        payload: Dict[str, Any],
        node_ids: Iterable[int],
        now: Optional[datetime] = None,
    ) -> List[int]:
        """
        Queue the same command once for every given node.

        Args:
            payload: Command to deliver
            node_ids: Target nodes, usually the currently known nodes

        Returns:
            One id per node, in the order of ``node_ids``
        """
        return self._insert(list(node_ids), payload, now)

    def _insert(self, node_ids: List[int], payload: Dict[str, Any], now: Optional[datetime]) -> List[int]:
        if not node_ids:
            return []
        enqueued_at = now or utcnow()
        encoded = encode_payload(payload)
        rows = [
            PendingCommand(node_id=node_id, enqueued_at=enqueued_at, command=encoded)
            for node_id in node_ids
        ]
        try:
            self.db.add_all(rows)
            self.db.flush()
            ids = [row.id for row in rows]
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to queue command for %d node(s)", len(rows), exc_info=True)
            raise StoreError("failed to queue command") from e
        logger.debug("Queued %s for nodes %s", payload.get("command"), node_ids)
        return ids

    def drain_for(self, node_id: int) -> List[Dict[str, Any]]:
        """
        Take every pending command for a node.

        Returns:
            Command payloads in enqueue order; each one has been deleted
        """
        stmt = (
            select(PendingCommand.id, PendingCommand.command)
            .where(PendingCommand.node_id == node_id)
            .order_by(PendingCommand.id.asc())
            .with_for_update()
        )
        delivered = []
        try:
            rows = self.db.execute(stmt).all()
            for row_id, command in rows:
                result = self.db.execute(
                    delete(PendingCommand)
                    .where(PendingCommand.id == row_id)
                    .execution_options(synchronize_session=False)
                )
                # Zero means a concurrent drain already took it
                if result.rowcount == 1:
                    delivered.append(json.loads(command))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to drain commands for node %s", node_id, exc_info=True)
            raise StoreError("failed to drain commands") from e
        if delivered:
            logger.debug("Delivering %d command(s) to node %s", len(delivered), node_id)
        return delivered

    def pending_count(self, node_id: Optional[int] = None) -> int:
        stmt = select(func.count(PendingCommand.id))
        if node_id is not None:
            stmt = stmt.where(PendingCommand.node_id == node_id)
        try:
            return self.db.scalar(stmt)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("failed to count pending commands") from e

    def purge_older_than(self, threshold: datetime, batch_size: int) -> int:
        """
        Delete up to ``batch_size`` commands queued before ``threshold``.

        These are commands whose node never came back for them.

        Returns:
            Number of rows deleted
        """
        ids_stmt = (
            select(PendingCommand.id)
            .where(PendingCommand.enqueued_at < threshold)
            .order_by(PendingCommand.id)
            .limit(batch_size)
        )
        try:
            ids = list(self.db.scalars(ids_stmt))
            if not ids:
                return 0
            result = self.db.execute(
                delete(PendingCommand)
                .where(PendingCommand.id.in_(ids), PendingCommand.enqueued_at < threshold)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("failed to purge pending commands") from e
        return result.rowcount
