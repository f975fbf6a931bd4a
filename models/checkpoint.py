from sqlalchemy import Column, String, DateTime, Index
from datetime import datetime
from models.base import Base, BigIntegerPK


class PartitionCheckpoint(Base):
    """
    Marks a search-store partition as fully ingested.

    Purpose:
    - Resume a sync without rescanning finished partitions
    - Let concurrent or repeated runs agree on what is done

    Design:
    - One row per partition, enforced by a unique index
    - Written once, after the last page of the partition is stored
    - Never updated or deleted
    """
    __tablename__ = "log_entries"

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    index_name = Column(String(255), nullable=False)
    inserted_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("uidx_index_name", "index_name", unique=True),
    )
