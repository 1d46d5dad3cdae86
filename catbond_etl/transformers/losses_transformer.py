"""
catbond_etl/transformers/losses_transformer.py

Transformer for the Artemis cat bond losses table
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence, Union

import pandas as pd

from catbond_etl.models.aggregates import LossAggregateResult
from catbond_etl.transformers.field_extractors import (
    classify_event_type,
    extract_year,
    has_loss_keyword,
    parse_money_millions,
)

logger = logging.getLogger(__name__)

LossesInput = Union[pd.DataFrame, Sequence[dict]]

# Scraped column -> processing column
LOSS_COLUMN_MAPPING = {
    'cat_bond': 'event_name',
    'date_of_loss': 'event_date',
    'loss_amount': 'loss_amount_text',
    'orig_size': 'original_size',
}
REQUIRED_TEXT_COLUMNS = [
    'event_name', 'sponsor', 'event_date', 'loss_amount_text', 'original_size', 'cause_of_loss',
]


@dataclass
class LossesTransformerConfig:
    """Configuration for cat bond losses transformation"""
    min_event_year: int = 2000
    max_years_ahead: int = 5


class LossesTransformer:
    """Turns cat bond loss rows into yearly event and loss aggregates"""

    def __init__(self, config: Optional[LossesTransformerConfig] = None,
                 as_of: Optional[date] = None):
        self.config = config or LossesTransformerConfig()
        self.as_of = as_of

    def transform(self, losses: LossesInput) -> LossAggregateResult:
        df = losses.copy() if isinstance(losses, pd.DataFrame) else pd.DataFrame(list(losses))
        if df.empty:
            logger.warning("No loss rows to process")
            return LossAggregateResult.empty()

        logger.info(f"Processing {len(df)} loss rows")
        df = df.rename(columns=LOSS_COLUMN_MAPPING)
        for column in REQUIRED_TEXT_COLUMNS:
            if column not in df.columns:
                df[column] = ""

        df['event_year'] = pd.array(df['event_date'].map(extract_year).tolist(), dtype='Int64')
        df['has_loss'] = df['loss_amount_text'].map(has_loss_keyword).astype(int)
        df['orig_size_millions'] = pd.to_numeric(
            df['original_size'].map(parse_money_millions), errors='coerce'
        )
        df['event_type'] = df['cause_of_loss'].map(lambda text: classify_event_type(text).value)

        max_year = (self.as_of or date.today()).year + self.config.max_years_ahead
        valid = (
            df['event_year'].notna()
            & (df['event_year'] >= self.config.min_event_year)
            & (df['event_year'] <= max_year)
        ).fillna(False).astype(bool)
        processed = df.loc[valid].reset_index(drop=True)
        processed['event_year'] = processed['event_year'].astype(int)

        if processed.empty:
            logger.warning("No loss rows had a usable event year")
            return LossAggregateResult.empty()

        logger.info(f"✅ {len(processed)}/{len(df)} loss rows kept")
        return LossAggregateResult(
            yearly_events=self.yearly_events(processed),
            yearly_losses=self.yearly_losses(processed),
            summary_stats=self.summary_stats(processed),
            raw_data=processed,
        )

    def yearly_events(self, processed: pd.DataFrame) -> pd.DataFrame:
        return (
            processed.groupby('event_year')
            .agg(event_count=('event_name', 'size'),
                 bonds_at_risk=('event_name', 'nunique'),
                 total_size=('orig_size_millions', 'sum'))
            .reset_index()
            .rename(columns={'event_year': 'year'})
        )

    def yearly_losses(self, processed: pd.DataFrame) -> pd.DataFrame:
        return (
            processed.groupby(['event_year', 'event_type'])
            .agg(event_count=('event_name', 'size'),
                 loss_amount=('orig_size_millions', 'sum'))
            .reset_index()
            .rename(columns={'event_year': 'year'})
        )

    def summary_stats(self, processed: pd.DataFrame) -> pd.DataFrame:
        return pd.DataFrame([{
            'total_events': len(processed),
            'total_bonds_affected': processed['event_name'].nunique(),
            'total_loss': processed['orig_size_millions'].sum(),
            'avg_loss_per_event': processed['orig_size_millions'].mean(),
            'min_year': int(processed['event_year'].min()),
            'max_year': int(processed['event_year'].max()),
        }])


# Convenience function for standalone usage
def process_losses_data(losses: LossesInput, as_of: Optional[date] = None) -> LossAggregateResult:
    """Standalone function to process cat bond loss rows"""
    return LossesTransformer(as_of=as_of).transform(losses)
