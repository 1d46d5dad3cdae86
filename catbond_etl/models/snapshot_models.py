from sqlalchemy import Column, String, LargeBinary, DateTime
from sqlalchemy.sql import func
from .base import Base


class SnapshotBlob(Base):
    __tablename__ = 'snapshot_blobs'

    name = Column(String(100), primary_key=True)  # deals_processed, losses_processed, scrape_metadata
    payload = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
