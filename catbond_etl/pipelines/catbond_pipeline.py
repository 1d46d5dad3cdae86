"""
catbond_etl/pipelines/catbond_pipeline.py

Build-time pipeline orchestrator for the Artemis cat bond snapshot
Coordinates collection, transformation and snapshot loading, once per build
"""

import logging
import sys
from datetime import date, datetime
from typing import Callable, List, Optional

from catbond_etl.collectors.artemis_collector import RawRow, fetch_deal_table, fetch_loss_table
from catbond_etl.config import DATA_DIR
from catbond_etl.exceptions import EmptySourceError
from catbond_etl.loaders.snapshot_loader import (
    DEALS_KEY,
    LOSSES_KEY,
    METADATA_KEY,
    SnapshotStore,
)
from catbond_etl.models.aggregates import ScrapeMetadata
from catbond_etl.models.base import DatabaseManager
from catbond_etl.transformers.deals_transformer import DealsTransformer
from catbond_etl.transformers.losses_transformer import LossesTransformer

logger = logging.getLogger(__name__)

Fetcher = Callable[[], List[RawRow]]


class CatBondPipelineOrchestrator:
    """
    Pipeline orchestrator for the cat bond snapshot

    Coordinates:
    1. Data Collection (deal directory, then cat bond losses)
    2. Data Transformation (deal and loss aggregates)
    3. Snapshot Loading (deals, losses, scrape metadata)

    A source that returns no rows stops the run before anything is written,
    so a failed scrape never replaces a good snapshot with an empty one.
    """

    def __init__(self,
                 store: SnapshotStore,
                 fetch_deals: Fetcher = fetch_deal_table,
                 fetch_losses: Fetcher = fetch_loss_table,
                 as_of: Optional[date] = None):
        self.store = store
        self.fetch_deals = fetch_deals
        self.fetch_losses = fetch_losses
        self.as_of = as_of

        self.execution_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.start_time = datetime.now()
        self.pipeline_stats = {
            'execution_id': self.execution_id,
            'start_time': self.start_time.isoformat(),
            'steps_completed': [],
            'data_counts': {},
            'errors': []
        }

        logger.info(f"🌀 Cat bond pipeline initialized (ID: {self.execution_id})")

    def run_complete_pipeline(self) -> bool:
        """
        Execute the complete scrape -> aggregate -> snapshot pipeline

        Returns:
            bool: True if a snapshot was written, False otherwise
        """
        try:
            logger.info("=" * 80)
            logger.info("🌀 STARTING CAT BOND SNAPSHOT PIPELINE")
            logger.info("=" * 80)

            logger.info("📥 STEP 1: DATA COLLECTION")
            logger.info("-" * 40)
            deal_rows, loss_rows = self._execute_data_collection()
            self.pipeline_stats['steps_completed'].append('collection')

            logger.info("🔄 STEP 2: DATA TRANSFORMATION")
            logger.info("-" * 40)
            deals, losses = self._execute_data_transformation(deal_rows, loss_rows)
            self.pipeline_stats['steps_completed'].append('transformation')

            logger.info("💾 STEP 3: SNAPSHOT LOADING")
            logger.info("-" * 40)
            self.store.save_all({
                DEALS_KEY: deals,
                LOSSES_KEY: losses,
                METADATA_KEY: ScrapeMetadata.capture(
                    deal_rows=len(deal_rows),
                    loss_rows=len(loss_rows),
                ),
            })
            self.pipeline_stats['steps_completed'].append('loading')

            self._complete_pipeline_execution()
            return True

        except EmptySourceError as e:
            logger.error(f"❌ {str(e)}; no snapshot written")
            self.pipeline_stats['errors'].append(str(e))
            self._handle_pipeline_failure(e)
            return False
        except Exception as e:
            logger.error(f"❌ Pipeline failed: {str(e)}")
            self.pipeline_stats['errors'].append(str(e))
            self._handle_pipeline_failure(e)
            return False

    def _execute_data_collection(self):
        logger.info("Scraping deal directory...")
        deal_rows = self.fetch_deals()
        if not deal_rows:
            raise EmptySourceError("Deal directory")
        logger.info(f"✅ Successfully scraped {len(deal_rows)} deal records")

        logger.info("Scraping cat bond losses...")
        loss_rows = self.fetch_losses()
        if not loss_rows:
            raise EmptySourceError("Cat bond losses")
        logger.info(f"✅ Successfully scraped {len(loss_rows)} loss records")

        self.pipeline_stats['data_counts']['deals_collected'] = len(deal_rows)
        self.pipeline_stats['data_counts']['losses_collected'] = len(loss_rows)
        return deal_rows, loss_rows

    def _execute_data_transformation(self, deal_rows: List[RawRow], loss_rows: List[RawRow]):
        deals = DealsTransformer(as_of=self.as_of).transform(deal_rows)
        losses = LossesTransformer(as_of=self.as_of).transform(loss_rows)

        self.pipeline_stats['data_counts']['deals_processed'] = len(deals.raw_data)
        self.pipeline_stats['data_counts']['losses_processed'] = len(losses.raw_data)
        return deals, losses

    def _complete_pipeline_execution(self):
        duration = datetime.now() - self.start_time
        self.pipeline_stats['end_time'] = datetime.now().isoformat()
        self.pipeline_stats['duration_seconds'] = duration.total_seconds()
        self.pipeline_stats['success'] = True

        logger.info("=" * 80)
        logger.info("🎉 PIPELINE EXECUTION COMPLETED SUCCESSFULLY!")
        logger.info("=" * 80)
        logger.info(f"⏰ Total Execution Time: {duration.total_seconds():.1f}s")
        logger.info(f"📊 Steps Completed: {', '.join(self.pipeline_stats['steps_completed'])}")
        logger.info("📈 Records Flow:")
        for step, count in self.pipeline_stats['data_counts'].items():
            logger.info(f"   {step}: {count:,}")

    def _handle_pipeline_failure(self, error: Exception):
        duration = datetime.now() - self.start_time
        self.pipeline_stats['end_time'] = datetime.now().isoformat()
        self.pipeline_stats['duration_seconds'] = duration.total_seconds()
        self.pipeline_stats['success'] = False

        logger.error("=" * 80)
        logger.error("❌ PIPELINE EXECUTION FAILED!")
        logger.error("=" * 80)
        logger.error(f"📊 Steps Completed: {', '.join(self.pipeline_stats['steps_completed']) or 'none'}")
        logger.error(f"❌ Error: {str(error)}")


def main(argv: Optional[List[str]] = None):
    """Main execution function"""
    import argparse

    parser = argparse.ArgumentParser(description="Artemis cat bond snapshot pipeline")
    parser.add_argument("--database-url", default=None,
                        help="Snapshot database URL (defaults to DATABASE_URL)")
    parser.add_argument("--log-level", default="INFO",
                        help="Logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format='%(asctime)s - %(levelname)s - %(message)s')

    DATA_DIR.mkdir(parents=True, exist_ok=True)
    db_manager = DatabaseManager(args.database_url)
    db_manager.create_tables()

    pipeline = CatBondPipelineOrchestrator(
        store=SnapshotStore(db_manager),
        fetch_deals=fetch_deal_table,
        fetch_losses=fetch_loss_table,
    )
    if pipeline.run_complete_pipeline():
        print("🎉 Cat bond snapshot pipeline completed successfully!")
        sys.exit(0)
    else:
        print("❌ Cat bond snapshot pipeline failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
