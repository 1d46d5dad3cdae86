from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from catbond_etl.loaders.snapshot_loader import (
    ABSENT,
    DEALS_KEY,
    LOSSES_KEY,
    METADATA_KEY,
    SnapshotStore,
)
from catbond_etl.models.aggregates import ScrapeMetadata
from catbond_etl.pipelines import catbond_pipeline
from catbond_etl.pipelines.catbond_pipeline import CatBondPipelineOrchestrator

AS_OF = date(2026, 6, 30)


def _stored(store: SnapshotStore) -> dict[str, object]:
    return {name: store.load(name) for name in (DEALS_KEY, LOSSES_KEY, METADATA_KEY)}


def test_successful_run_writes_all_blobs(snapshot_store: SnapshotStore,
                                         deal_rows: list[dict[str, str]],
                                         loss_rows: list[dict[str, str]]) -> None:
    pipeline = CatBondPipelineOrchestrator(
        store=snapshot_store,
        fetch_deals=lambda: deal_rows,
        fetch_losses=lambda: loss_rows,
        as_of=AS_OF,
    )

    assert pipeline.run_complete_pipeline() is True

    stored = _stored(snapshot_store)
    assert stored[DEALS_KEY].summary_stats.loc[0, "total_volume"] == pytest.approx(1500.0)
    assert len(stored[LOSSES_KEY].raw_data) == 2
    metadata = stored[METADATA_KEY]
    assert isinstance(metadata, ScrapeMetadata)
    assert (metadata.deal_rows, metadata.loss_rows) == (2, 2)

    assert pipeline.pipeline_stats["success"] is True
    assert pipeline.pipeline_stats["steps_completed"] == ["collection", "transformation", "loading"]
    assert pipeline.pipeline_stats["data_counts"]["deals_processed"] == 2


def test_empty_deal_source_writes_nothing(snapshot_store: SnapshotStore,
                                          loss_rows: list[dict[str, str]]) -> None:
    loss_calls = []

    def fetch_losses():
        loss_calls.append(1)
        return loss_rows

    pipeline = CatBondPipelineOrchestrator(
        store=snapshot_store, fetch_deals=lambda: [], fetch_losses=fetch_losses, as_of=AS_OF,
    )

    assert pipeline.run_complete_pipeline() is False
    assert all(value is ABSENT for value in _stored(snapshot_store).values())
    assert loss_calls == []
    assert pipeline.pipeline_stats["errors"] == ["Deal directory scraping returned no data"]


def test_empty_loss_source_writes_nothing(snapshot_store: SnapshotStore,
                                          deal_rows: list[dict[str, str]]) -> None:
    pipeline = CatBondPipelineOrchestrator(
        store=snapshot_store, fetch_deals=lambda: deal_rows, fetch_losses=lambda: [], as_of=AS_OF,
    )

    assert pipeline.run_complete_pipeline() is False
    assert all(value is ABSENT for value in _stored(snapshot_store).values())
    assert pipeline.pipeline_stats["success"] is False


def test_failed_run_keeps_previous_snapshot(snapshot_store: SnapshotStore) -> None:
    snapshot_store.save(DEALS_KEY, "previous build")

    pipeline = CatBondPipelineOrchestrator(
        store=snapshot_store, fetch_deals=lambda: [], fetch_losses=lambda: [], as_of=AS_OF,
    )

    assert pipeline.run_complete_pipeline() is False
    assert snapshot_store.load(DEALS_KEY) == "previous build"


def test_unexpected_error_is_reported_as_failure(snapshot_store: SnapshotStore) -> None:
    def broken_fetch():
        raise RuntimeError("boom")

    pipeline = CatBondPipelineOrchestrator(
        store=snapshot_store, fetch_deals=broken_fetch, fetch_losses=lambda: [], as_of=AS_OF,
    )

    assert pipeline.run_complete_pipeline() is False
    assert pipeline.pipeline_stats["errors"] == ["boom"]


def test_main_exit_codes(monkeypatch: pytest.MonkeyPatch, tmp_path: Path,
                         deal_rows: list[dict[str, str]],
                         loss_rows: list[dict[str, str]]) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(catbond_pipeline, "DATA_DIR", tmp_path / "data")
    database_url = f"sqlite:///{(tmp_path / 'snapshot.db').as_posix()}"

    monkeypatch.setattr(catbond_pipeline, "fetch_deal_table", lambda: deal_rows)
    monkeypatch.setattr(catbond_pipeline, "fetch_loss_table", lambda: loss_rows)
    with pytest.raises(SystemExit) as exc_info:
        catbond_pipeline.main(["--database-url", database_url])
    assert exc_info.value.code == 0
    assert (tmp_path / "data").is_dir()

    monkeypatch.setattr(catbond_pipeline, "fetch_loss_table", lambda: [])
    with pytest.raises(SystemExit) as exc_info:
        catbond_pipeline.main(["--database-url", database_url, "--log-level", "debug"])
    assert exc_info.value.code == 1
