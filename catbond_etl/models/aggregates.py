"""
Aggregate result containers passed from the transformers to the snapshot
store and, at serve time, to the read API
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

import pandas as pd

from catbond_etl.transformers.field_extractors import currency_format

YEARLY_VOLUME_COLUMNS = ['year', 'total_volume', 'deal_count']
DEAL_SUMMARY_COLUMNS = ['total_deals', 'total_volume', 'avg_deal_size', 'min_year', 'max_year']
DEAL_RECORD_COLUMNS = [
    'issuer', 'cedent', 'risks_perils_covered', 'issue_date', 'maturity_date',
    'volume_usd', 'issue_year', 'maturity_year', 'volume_millions',
]

YEARLY_EVENT_COLUMNS = ['year', 'event_count', 'bonds_at_risk', 'total_size']
YEARLY_LOSS_COLUMNS = ['year', 'event_type', 'event_count', 'loss_amount']
LOSS_SUMMARY_COLUMNS = [
    'total_events', 'total_bonds_affected', 'total_loss',
    'avg_loss_per_event', 'min_year', 'max_year',
]
LOSS_RECORD_COLUMNS = [
    'event_name', 'sponsor', 'event_date', 'event_year', 'cause_of_loss',
    'event_type', 'loss_amount_text', 'has_loss', 'original_size', 'orig_size_millions',
]


def _frame(columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(columns=columns)


@dataclass(frozen=True)
class DealAggregateResult:
    """Processed deal directory: yearly issuance, in-force volume, stats, typed rows"""
    yearly_issued: pd.DataFrame = field(default_factory=lambda: _frame(YEARLY_VOLUME_COLUMNS))
    yearly_inforce: pd.DataFrame = field(default_factory=lambda: _frame(YEARLY_VOLUME_COLUMNS))
    summary_stats: pd.DataFrame = field(default_factory=lambda: _frame(DEAL_SUMMARY_COLUMNS))
    raw_data: pd.DataFrame = field(default_factory=lambda: _frame(DEAL_RECORD_COLUMNS))

    @classmethod
    def empty(cls) -> 'DealAggregateResult':
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.raw_data.empty


@dataclass(frozen=True)
class LossAggregateResult:
    """Processed cat bond losses: yearly events, losses by type, stats, typed rows"""
    yearly_events: pd.DataFrame = field(default_factory=lambda: _frame(YEARLY_EVENT_COLUMNS))
    yearly_losses: pd.DataFrame = field(default_factory=lambda: _frame(YEARLY_LOSS_COLUMNS))
    summary_stats: pd.DataFrame = field(default_factory=lambda: _frame(LOSS_SUMMARY_COLUMNS))
    raw_data: pd.DataFrame = field(default_factory=lambda: _frame(LOSS_RECORD_COLUMNS))

    @classmethod
    def empty(cls) -> 'LossAggregateResult':
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.raw_data.empty


@dataclass(frozen=True)
class ScrapeMetadata:
    """When and how a snapshot was captured"""
    scrape_time: datetime
    scrape_date: date
    timezone: str
    note: str = "Data scraped successfully during container build"
    deal_rows: int = 0
    loss_rows: int = 0

    @classmethod
    def capture(cls, deal_rows: int = 0, loss_rows: int = 0) -> 'ScrapeMetadata':
        now = datetime.now().astimezone()
        return cls(
            scrape_time=now,
            scrape_date=now.date(),
            timezone=str(now.tzinfo),
            deal_rows=deal_rows,
            loss_rows=loss_rows,
        )


@dataclass(frozen=True)
class DashboardSnapshot:
    """
    Read-only view of the persisted snapshot, built once at startup

    Every dashboard view reads from this object; nothing mutates it after load.
    """
    deals: DealAggregateResult = field(default_factory=DealAggregateResult.empty)
    losses: LossAggregateResult = field(default_factory=LossAggregateResult.empty)
    last_update: Optional[datetime] = None
    status: str = "No data loaded"

    def deal_value_boxes(self, current_year: Optional[int] = None) -> Dict[str, object]:
        current_year = current_year or date.today().year
        stats = self.deals.summary_stats
        if stats.empty:
            total_deals, total_volume, avg_size = 0, "USD 0M", "USD 0M"
        else:
            row = stats.iloc[0]
            total_deals = int(row['total_deals'])
            total_volume = currency_format(row['total_volume'])
            avg_size = currency_format(row['avg_deal_size'])

        inforce = self.deals.yearly_inforce
        current = inforce[inforce['year'] == current_year] if not inforce.empty else inforce
        active_deals = int(current['deal_count'].iloc[0]) if not current.empty else 0

        return {
            'total_deals': total_deals,
            'total_volume': total_volume,
            'avg_deal_size': avg_size,
            'active_deals': active_deals,
        }

    def loss_value_boxes(self) -> Dict[str, object]:
        stats = self.losses.summary_stats
        if stats.empty:
            return {
                'total_events': 0,
                'total_losses': "USD 0M",
                'avg_loss_per_event': "USD 0M",
                'bonds_affected': 0,
            }
        row = stats.iloc[0]
        return {
            'total_events': int(row['total_events']),
            'total_losses': currency_format(row['total_loss']),
            'avg_loss_per_event': currency_format(row['avg_loss_per_event']),
            'bonds_affected': int(row['total_bonds_affected']),
        }

    def data_quality(self) -> List[Dict[str, object]]:
        last_updated = self.last_update.strftime('%Y-%m-%d %H:%M:%S') if self.last_update else "Never"
        rows = []
        for dataset, records in (("Deal Directory", len(self.deals.raw_data)),
                                 ("Cat Bond Losses", len(self.losses.raw_data))):
            rows.append({
                'dataset': dataset,
                'records': records,
                'last_updated': last_updated,
                'status': "OK" if records > 0 else "No Data",
            })
        return rows
