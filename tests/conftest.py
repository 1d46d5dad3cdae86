from __future__ import annotations

import pytest

from catbond_etl.loaders.snapshot_loader import SnapshotStore
from catbond_etl.models.base import DatabaseManager


@pytest.fixture
def db_manager() -> DatabaseManager:
    """In-memory SQLite database with the snapshot tables created."""
    manager = DatabaseManager("sqlite://")
    manager.create_tables()
    return manager


@pytest.fixture
def snapshot_store(db_manager: DatabaseManager) -> SnapshotStore:
    return SnapshotStore(db_manager)


@pytest.fixture
def deal_rows() -> list[dict[str, str]]:
    return [
        {"date": "Oct 2025", "size": "$300m", "issuer": "A", "cedent": "Cedent A",
         "risks_perils_covered": "US named storm"},
        {"date": "Jan 2020", "size": "$1.2b", "issuer": "B", "cedent": "Cedent B",
         "risks_perils_covered": "California earthquake"},
    ]


@pytest.fixture
def loss_rows() -> list[dict[str, str]]:
    return [
        {"cat_bond": "X", "sponsor": "S1", "orig_size": "$50m", "cause_of_loss": "Hurricane Ian",
         "loss_amount": "principal reduced", "date_of_loss": "October 2022"},
        {"cat_bond": "Y", "sponsor": "S2", "orig_size": "$1.5b", "cause_of_loss": "Severe convective storms",
         "loss_amount": "None expected", "date_of_loss": "2024 / 2025 risk period"},
    ]
