"""
catbond_etl/loaders/snapshot_loader.py

Snapshot persistence: named, content-agnostic blobs written once per build
and read once when the read API starts
"""

import logging
import pickle
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from catbond_etl.models.aggregates import (
    DashboardSnapshot,
    DealAggregateResult,
    LossAggregateResult,
)
from catbond_etl.models.base import DatabaseManager
from catbond_etl.models.snapshot_models import SnapshotBlob

logger = logging.getLogger(__name__)

DEALS_KEY = "deals_processed"
LOSSES_KEY = "losses_processed"
METADATA_KEY = "scrape_metadata"


class _Absent:
    """Marker returned by SnapshotStore.load for names that were never saved"""

    def __repr__(self):
        return "ABSENT"

    def __bool__(self):
        return False


ABSENT = _Absent()


class SnapshotStore:
    """Key-value blob store on top of the snapshot_blobs table"""

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self.db_manager = db_manager or DatabaseManager()

    def save(self, name: str, value: Any) -> None:
        payload = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        with self.db_manager.get_session() as session:
            session.merge(SnapshotBlob(
                name=name,
                payload=payload,
                created_at=datetime.now(timezone.utc),
            ))
        logger.info(f"💾 Saved snapshot blob '{name}' ({len(payload):,} bytes)")

    def save_all(self, values: Dict[str, Any]) -> None:
        """Save several blobs in one transaction, so a build writes all or nothing"""
        with self.db_manager.get_session() as session:
            for name, value in values.items():
                session.merge(SnapshotBlob(
                    name=name,
                    payload=pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL),
                    created_at=datetime.now(timezone.utc),
                ))
        logger.info(f"💾 Saved snapshot blobs: {', '.join(values)}")

    def load(self, name: str) -> Any:
        with self.db_manager.get_session() as session:
            blob = session.get(SnapshotBlob, name)
            payload = blob.payload if blob is not None else None
        if payload is None:
            return ABSENT
        return pickle.loads(payload)


def load_dashboard_snapshot(store: SnapshotStore) -> DashboardSnapshot:
    """
    Build the read-only dashboard snapshot from the store

    Missing blobs become empty aggregates. A store that cannot be read at all
    is logged and also yields empty aggregates, with the error in the status.
    """
    try:
        deals = store.load(DEALS_KEY)
        losses = store.load(LOSSES_KEY)
        metadata = store.load(METADATA_KEY)
    except Exception as e:
        logger.error(f"❌ Error loading pre-scraped data: {str(e)}")
        return DashboardSnapshot(status=f"Error loading pre-scraped data: {str(e)}")

    deals = DealAggregateResult.empty() if deals is ABSENT else deals
    losses = LossAggregateResult.empty() if losses is ABSENT else losses

    if metadata is not ABSENT:
        last_update = metadata.scrape_time
        status = f"Data scraped during container build at {last_update:%Y-%m-%d %H:%M:%S}"
    elif deals.is_empty and losses.is_empty:
        last_update = None
        status = "No data loaded"
    else:
        last_update = datetime.now()
        status = "Pre-scraped data loaded successfully"

    logger.info(f"Dashboard snapshot ready: {len(deals.raw_data)} deals, "
                f"{len(losses.raw_data)} loss events ({status})")
    return DashboardSnapshot(deals=deals, losses=losses, last_update=last_update, status=status)
