from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class StatusResponse(BaseModel):
    """Snapshot load status shown on the management tab"""
    status: str
    last_update: Optional[datetime] = None


class DataQualityRow(BaseModel):
    dataset: str
    records: int
    last_updated: str
    status: str = Field(..., description="OK or No Data")


class DealSummary(BaseModel):
    """Deal directory value boxes"""
    total_deals: int
    total_volume: str
    avg_deal_size: str
    active_deals: int = Field(..., description="Deals in force in the current year")


class LossSummary(BaseModel):
    """Cat bond losses value boxes"""
    total_events: int
    total_losses: str
    avg_loss_per_event: str
    bonds_affected: int


class YearlyVolume(BaseModel):
    year: int
    total_volume: float = Field(..., description="USD millions")
    deal_count: int
    total_volume_formatted: str


class RiskTypeRow(BaseModel):
    risks_perils_covered: str
    count: int
    volume: float
    volume_formatted: str


class DealTableRow(BaseModel):
    issuer: Optional[str] = None
    issue_date: Optional[str] = None
    maturity_date: Optional[str] = None
    volume: str
    cedent: Optional[str] = None
    risks_perils: Optional[str] = None


class YearlyEvents(BaseModel):
    year: int
    event_count: int
    bonds_at_risk: int
    total_size: float


class YearlyLossByType(BaseModel):
    year: int
    event_type: str
    event_count: int
    loss_amount: float
