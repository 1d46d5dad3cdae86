"""
catbond_etl/transformers/deals_transformer.py

Transformer for the Artemis deal directory
Normalizes scraped (or already typed) deal rows and computes yearly issuance,
yearly in-force volume and summary statistics
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, Optional, Sequence, Union

import numpy as np
import pandas as pd

from catbond_etl.models.aggregates import DealAggregateResult, YEARLY_VOLUME_COLUMNS
from catbond_etl.transformers.field_extractors import parse_money_usd, parse_month_year

logger = logging.getLogger(__name__)

DealsInput = Union[pd.DataFrame, Sequence[dict]]

RISK_BREAKDOWN_COLUMNS = ['risks_perils_covered', 'count', 'volume']


class DealInputShape(str, Enum):
    """Which of the two supported deal table layouts a frame is in"""
    RAW_SCRAPED = "raw_scraped"   # date, size, issuer, cedent, risks_perils_covered
    TYPED = "typed"               # issue_date, volume_usd[, maturity_date]


def detect_input_shape(columns: Iterable[str]) -> Optional[DealInputShape]:
    columns = set(columns)
    if {'issue_date', 'volume_usd'} <= columns:
        return DealInputShape.TYPED
    if {'date', 'size'} <= columns:
        return DealInputShape.RAW_SCRAPED
    return None


def _naive_datetimes(values: pd.Series) -> pd.Series:
    """Parse dates, converting any timezone-aware values to naive UTC"""
    return pd.to_datetime(values, errors='coerce', utc=True).dt.tz_localize(None)


@dataclass
class DealsTransformerConfig:
    """Configuration for deal directory transformation"""

    # Artemis does not publish maturities; cat bonds typically run three years
    default_tenor_years: int = 3


class DealsTransformer:
    """
    Turns deal directory rows into the deal aggregates used by the dashboard

    The in-force series covers every year from the first issue year up to the
    ``as_of`` year (today by default), so it can be evaluated as of a fixed
    date in tests.
    """

    def __init__(self, config: Optional[DealsTransformerConfig] = None,
                 as_of: Optional[date] = None):
        self.config = config or DealsTransformerConfig()
        self.as_of = as_of

    def transform(self, deals: DealsInput) -> DealAggregateResult:
        df = deals.copy() if isinstance(deals, pd.DataFrame) else pd.DataFrame(list(deals))
        if df.empty:
            logger.warning("No deal rows to process")
            return DealAggregateResult.empty()

        shape = detect_input_shape(df.columns)
        if shape is None:
            logger.warning(f"Unrecognized deal table columns: {list(df.columns)}")
            return DealAggregateResult.empty()

        logger.info(f"Processing {len(df)} deal rows ({shape.value} input)")
        if shape is DealInputShape.TYPED:
            df = self._normalize_typed(df)
        else:
            df = self._normalize_scraped(df)

        processed = self._filter_and_derive(df)
        if processed.empty:
            logger.warning("No deal rows survived date/volume validation")
            return DealAggregateResult.empty()

        logger.info(f"✅ {len(processed)}/{len(df)} deal rows passed validation")
        return DealAggregateResult(
            yearly_issued=self.yearly_issued(processed),
            yearly_inforce=self.yearly_inforce(processed),
            summary_stats=self.summary_stats(processed),
            raw_data=processed,
        )

    def _default_maturity(self, issue_date: pd.Series) -> pd.Series:
        return issue_date + pd.DateOffset(years=self.config.default_tenor_years)

    def _normalize_typed(self, df: pd.DataFrame) -> pd.DataFrame:
        df['issue_date'] = _naive_datetimes(df['issue_date'])
        default_maturity = self._default_maturity(df['issue_date'])
        if 'maturity_date' in df.columns:
            df['maturity_date'] = _naive_datetimes(df['maturity_date']).fillna(default_maturity)
        else:
            df['maturity_date'] = default_maturity
        df['volume_usd'] = pd.to_numeric(df['volume_usd'], errors='coerce')
        return df

    def _normalize_scraped(self, df: pd.DataFrame) -> pd.DataFrame:
        df = df.rename(columns={'date': 'issue_date', 'size': 'volume_size'})
        df['issue_date'] = pd.to_datetime(df['issue_date'].map(parse_month_year), errors='coerce')
        df['maturity_date'] = self._default_maturity(df['issue_date'])
        df['volume_usd'] = pd.to_numeric(df['volume_size'].map(parse_money_usd), errors='coerce')
        return df

    def _filter_and_derive(self, df: pd.DataFrame) -> pd.DataFrame:
        valid = (
            df['issue_date'].notna()
            & df['maturity_date'].notna()
            & df['volume_usd'].notna()
            & (df['volume_usd'] > 0)
            & (df['maturity_date'] >= df['issue_date'])
        )
        processed = df.loc[valid].reset_index(drop=True)

        processed['issue_year'] = processed['issue_date'].dt.year.astype(int)
        processed['maturity_year'] = processed['maturity_date'].dt.year.astype(int)
        processed['volume_millions'] = processed['volume_usd'] / 1e6
        return processed

    def yearly_issued(self, processed: pd.DataFrame) -> pd.DataFrame:
        return (
            processed.groupby('issue_year')
            .agg(total_volume=('volume_millions', 'sum'),
                 deal_count=('volume_millions', 'size'))
            .reset_index()
            .rename(columns={'issue_year': 'year'})
        )

    def yearly_inforce(self, processed: pd.DataFrame) -> pd.DataFrame:
        """
        Volume and count of deals in force in each year

        A deal is in force in ``year`` when issue_year <= year < maturity_year.
        Every deal is tested against every year, which is the same answer a
        per-year rescan of the whole table gives.
        """
        current_year = (self.as_of or date.today()).year
        years = np.arange(int(processed['issue_year'].min()), current_year + 1)
        if len(years) == 0:
            return pd.DataFrame(columns=YEARLY_VOLUME_COLUMNS)

        issue_years = processed['issue_year'].to_numpy()
        maturity_years = processed['maturity_year'].to_numpy()
        volumes = processed['volume_millions'].to_numpy(dtype=float)

        # rows: years, columns: deals
        in_force = (issue_years[np.newaxis, :] <= years[:, np.newaxis]) & \
                   (maturity_years[np.newaxis, :] > years[:, np.newaxis])

        return pd.DataFrame({
            'year': years,
            'total_volume': np.where(in_force, volumes, 0.0).sum(axis=1),
            'deal_count': in_force.sum(axis=1),
        })

    def summary_stats(self, processed: pd.DataFrame) -> pd.DataFrame:
        return pd.DataFrame([{
            'total_deals': len(processed),
            'total_volume': processed['volume_millions'].sum(),
            'avg_deal_size': processed['volume_millions'].mean(),
            'min_year': int(processed['issue_year'].min()),
            'max_year': int(processed['issue_year'].max()),
        }])


def risk_peril_breakdown(raw_data: pd.DataFrame, top_n: int = 10) -> pd.DataFrame:
    """Deal count and volume per risks/perils description, most common first"""
    if raw_data.empty or 'risks_perils_covered' not in raw_data.columns:
        return pd.DataFrame(columns=RISK_BREAKDOWN_COLUMNS)

    breakdown = (
        raw_data.groupby('risks_perils_covered')
        .agg(count=('volume_millions', 'size'), volume=('volume_millions', 'sum'))
        .reset_index()
        .sort_values(['count', 'volume'], ascending=[False, False], kind='mergesort')
    )
    return breakdown.head(top_n).reset_index(drop=True)


# Convenience function for standalone usage
def process_deal_data(deals: DealsInput, as_of: Optional[date] = None) -> DealAggregateResult:
    """Standalone function to process deal directory rows"""
    return DealsTransformer(as_of=as_of).transform(deals)
