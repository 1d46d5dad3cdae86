from __future__ import annotations

from datetime import date, datetime

import pandas as pd
import pytest

from catbond_etl.loaders.snapshot_loader import (
    ABSENT,
    DEALS_KEY,
    LOSSES_KEY,
    METADATA_KEY,
    SnapshotStore,
    load_dashboard_snapshot,
)
from catbond_etl.models.aggregates import ScrapeMetadata
from catbond_etl.models.base import DatabaseManager
from catbond_etl.transformers.deals_transformer import process_deal_data
from catbond_etl.transformers.losses_transformer import process_losses_data

AS_OF = date(2026, 6, 30)


def test_load_missing_name_is_absent(snapshot_store: SnapshotStore) -> None:
    value = snapshot_store.load("never_saved")
    assert value is ABSENT
    assert not value


def test_save_then_load_returns_equal_value(snapshot_store: SnapshotStore,
                                            deal_rows: list[dict[str, str]]) -> None:
    deals = process_deal_data(deal_rows, as_of=AS_OF)
    snapshot_store.save(DEALS_KEY, deals)

    loaded = snapshot_store.load(DEALS_KEY)
    pd.testing.assert_frame_equal(loaded.yearly_issued, deals.yearly_issued)
    pd.testing.assert_frame_equal(loaded.yearly_inforce, deals.yearly_inforce)
    pd.testing.assert_frame_equal(loaded.raw_data, deals.raw_data)


def test_save_overwrites_previous_value(snapshot_store: SnapshotStore) -> None:
    snapshot_store.save("counter", 1)
    snapshot_store.save("counter", {"value": 2})
    assert snapshot_store.load("counter") == {"value": 2}


def test_save_all_writes_every_name(snapshot_store: SnapshotStore) -> None:
    snapshot_store.save_all({"a": [1, 2], "b": None, "c": "text"})

    assert snapshot_store.load("a") == [1, 2]
    assert snapshot_store.load("b") is None
    assert snapshot_store.load("c") == "text"


def test_empty_store_gives_no_data_snapshot(snapshot_store: SnapshotStore) -> None:
    snapshot = load_dashboard_snapshot(snapshot_store)

    assert snapshot.status == "No data loaded"
    assert snapshot.last_update is None
    assert snapshot.deals.is_empty
    assert snapshot.losses.is_empty


def test_snapshot_with_metadata_reports_scrape_time(snapshot_store: SnapshotStore,
                                                    deal_rows: list[dict[str, str]],
                                                    loss_rows: list[dict[str, str]]) -> None:
    metadata = ScrapeMetadata.capture(deal_rows=2, loss_rows=2)
    snapshot_store.save_all({
        DEALS_KEY: process_deal_data(deal_rows, as_of=AS_OF),
        LOSSES_KEY: process_losses_data(loss_rows, as_of=AS_OF),
        METADATA_KEY: metadata,
    })

    snapshot = load_dashboard_snapshot(snapshot_store)

    assert snapshot.last_update == metadata.scrape_time
    assert snapshot.status == (
        f"Data scraped during container build at {metadata.scrape_time:%Y-%m-%d %H:%M:%S}"
    )
    assert len(snapshot.deals.raw_data) == 2
    assert len(snapshot.losses.raw_data) == 2


def test_snapshot_without_metadata(snapshot_store: SnapshotStore,
                                   deal_rows: list[dict[str, str]]) -> None:
    snapshot_store.save(DEALS_KEY, process_deal_data(deal_rows, as_of=AS_OF))

    snapshot = load_dashboard_snapshot(snapshot_store)

    assert snapshot.status == "Pre-scraped data loaded successfully"
    assert isinstance(snapshot.last_update, datetime)
    assert not snapshot.deals.is_empty
    assert snapshot.losses.is_empty


def test_unreadable_store_is_reported_in_status() -> None:
    # tables never created
    store = SnapshotStore(DatabaseManager("sqlite://"))

    snapshot = load_dashboard_snapshot(store)

    assert snapshot.status.startswith("Error loading pre-scraped data:")
    assert snapshot.deals.is_empty
    assert snapshot.losses.is_empty


def test_data_quality_rows(snapshot_store: SnapshotStore,
                           deal_rows: list[dict[str, str]]) -> None:
    assert [row["status"] for row in load_dashboard_snapshot(snapshot_store).data_quality()] == [
        "No Data", "No Data",
    ]

    snapshot_store.save(DEALS_KEY, process_deal_data(deal_rows, as_of=AS_OF))
    rows = load_dashboard_snapshot(snapshot_store).data_quality()

    assert rows[0]["dataset"] == "Deal Directory"
    assert rows[0]["records"] == 2
    assert rows[0]["status"] == "OK"
    assert rows[0]["last_updated"] != "Never"
    assert rows[1] == {
        "dataset": "Cat Bond Losses",
        "records": 0,
        "last_updated": rows[0]["last_updated"],
        "status": "No Data",
    }


@pytest.mark.parametrize(("current_year", "active"), [(2026, 1), (2023, 0), (2021, 1)])
def test_deal_value_boxes(snapshot_store: SnapshotStore, deal_rows: list[dict[str, str]],
                          current_year: int, active: int) -> None:
    snapshot_store.save(DEALS_KEY, process_deal_data(deal_rows, as_of=AS_OF))
    boxes = load_dashboard_snapshot(snapshot_store).deal_value_boxes(current_year=current_year)

    assert boxes == {
        "total_deals": 2,
        "total_volume": "USD 1.5B",
        "avg_deal_size": "USD 750M",
        "active_deals": active,
    }


def test_loss_value_boxes(snapshot_store: SnapshotStore, loss_rows: list[dict[str, str]]) -> None:
    assert load_dashboard_snapshot(snapshot_store).loss_value_boxes() == {
        "total_events": 0,
        "total_losses": "USD 0M",
        "avg_loss_per_event": "USD 0M",
        "bonds_affected": 0,
    }

    snapshot_store.save(LOSSES_KEY, process_losses_data(loss_rows, as_of=AS_OF))
    boxes = load_dashboard_snapshot(snapshot_store).loss_value_boxes()

    assert boxes == {
        "total_events": 2,
        "total_losses": "USD 1.6B",
        "avg_loss_per_event": "USD 775M",
        "bonds_affected": 2,
    }
