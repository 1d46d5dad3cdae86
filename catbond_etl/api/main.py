#!/usr/bin/env python3
"""
Cat Bond Market Dashboard - Read API
Serves the pre-scraped snapshot; loads it once at startup and never writes
"""

from fastapi import FastAPI, Depends, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, timezone
from enum import Enum
from contextlib import asynccontextmanager
import logging

import numpy as np
import pandas as pd

from catbond_etl.api.schemas.snapshot_schemas import (
    DataQualityRow,
    DealSummary,
    DealTableRow,
    LossSummary,
    RiskTypeRow,
    StatusResponse,
    YearlyEvents,
    YearlyLossByType,
    YearlyVolume,
)
from catbond_etl.loaders.snapshot_loader import SnapshotStore, load_dashboard_snapshot
from catbond_etl.models.aggregates import DashboardSnapshot
from catbond_etl.transformers.deals_transformer import risk_peril_breakdown
from catbond_etl.transformers.field_extractors import currency_format

# Logging setup
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[], DashboardSnapshot]


class VolumeType(str, Enum):
    ISSUED = "issued"
    INFORCE = "inforce"


def _default_snapshot_loader() -> DashboardSnapshot:
    return load_dashboard_snapshot(SnapshotStore())


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame rows as plain-Python dicts, NaN -> None"""
    records = []
    for record in df.to_dict(orient='records'):
        for key, value in record.items():
            if isinstance(value, (np.integer,)):
                record[key] = int(value)
            elif isinstance(value, (np.floating,)):
                record[key] = None if np.isnan(value) else float(value)
            elif isinstance(value, float) and np.isnan(value):
                record[key] = None
        records.append(record)
    return records


def _format_date(value: Any) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    return pd.Timestamp(value).strftime('%Y-%m-%d')


def get_snapshot(request: Request) -> DashboardSnapshot:
    """Dependency returning the snapshot loaded at startup"""
    return request.app.state.snapshot


def create_app(snapshot_loader: Optional[SnapshotLoader] = None) -> FastAPI:
    loader = snapshot_loader or _default_snapshot_loader

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.snapshot = loader()
        logger.info(f"📊 Snapshot loaded: {app.state.snapshot.status}")
        yield

    app = FastAPI(
        title="Cat Bond Market Dashboard API",
        description="Artemis.bm deal directory and cat bond losses, captured at build time",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check(snapshot: DashboardSnapshot = Depends(get_snapshot)):
        has_data = not (snapshot.deals.is_empty and snapshot.losses.is_empty)
        return {
            "status": "healthy" if has_data else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "snapshot": snapshot.status,
            "version": "1.0.0",
        }

    @app.get("/status", response_model=StatusResponse)
    async def snapshot_status(snapshot: DashboardSnapshot = Depends(get_snapshot)):
        return StatusResponse(status=snapshot.status, last_update=snapshot.last_update)

    @app.get("/data-quality", response_model=List[DataQualityRow])
    async def data_quality(snapshot: DashboardSnapshot = Depends(get_snapshot)):
        return snapshot.data_quality()

    # ------------------------------------------------------------------
    # Deal directory
    # ------------------------------------------------------------------

    @app.get("/deals/summary", response_model=DealSummary)
    async def deal_summary(snapshot: DashboardSnapshot = Depends(get_snapshot)):
        return snapshot.deal_value_boxes()

    @app.get("/deals/volume", response_model=List[YearlyVolume])
    async def deal_volume(
        volume_type: VolumeType = Query(VolumeType.ISSUED, description="issued or inforce"),
        snapshot: DashboardSnapshot = Depends(get_snapshot),
    ):
        if volume_type is VolumeType.ISSUED:
            frame = snapshot.deals.yearly_issued
        else:
            frame = snapshot.deals.yearly_inforce
        rows = _records(frame)
        for row in rows:
            row['total_volume_formatted'] = currency_format(row['total_volume'])
        return rows

    @app.get("/deals/risk-types", response_model=List[RiskTypeRow])
    async def deal_risk_types(
        top_n: int = Query(10, ge=1, le=100),
        snapshot: DashboardSnapshot = Depends(get_snapshot),
    ):
        rows = _records(risk_peril_breakdown(snapshot.deals.raw_data, top_n=top_n))
        for row in rows:
            row['volume_formatted'] = currency_format(row['volume'])
        return rows

    @app.get("/deals/table", response_model=List[DealTableRow])
    async def deal_table(snapshot: DashboardSnapshot = Depends(get_snapshot)):
        raw = snapshot.deals.raw_data
        if raw.empty:
            return []

        def column(row: Dict[str, Any], name: str) -> Optional[str]:
            value = row.get(name)
            return None if value is None or pd.isna(value) else str(value)

        table = []
        for row in raw.to_dict(orient='records'):
            table.append(DealTableRow(
                issuer=column(row, 'issuer'),
                issue_date=_format_date(row.get('issue_date')),
                maturity_date=_format_date(row.get('maturity_date')),
                volume=currency_format(row.get('volume_millions')),
                cedent=column(row, 'cedent'),
                risks_perils=column(row, 'risks_perils_covered'),
            ))
        return table

    # ------------------------------------------------------------------
    # Cat bond losses
    # ------------------------------------------------------------------

    @app.get("/losses/summary", response_model=LossSummary)
    async def loss_summary(snapshot: DashboardSnapshot = Depends(get_snapshot)):
        return snapshot.loss_value_boxes()

    @app.get("/losses/yearly-events", response_model=List[YearlyEvents])
    async def loss_yearly_events(snapshot: DashboardSnapshot = Depends(get_snapshot)):
        return _records(snapshot.losses.yearly_events)

    @app.get("/losses/by-type", response_model=List[YearlyLossByType])
    async def loss_by_type(snapshot: DashboardSnapshot = Depends(get_snapshot)):
        return _records(snapshot.losses.yearly_losses)

    return app


app = create_app()
