from sqlalchemy import Column, String, Text, DateTime, Index
from datetime import datetime
from models.base import Base, BigIntegerPK


class SyncedDocument(Base):
    """
    Relational projection of one Junos log document.

    Identity is (document_id, index_name): the search store assigns _id per
    index, so the same _id in two partitions is two documents. The unique
    index on that pair is the only dedup mechanism; rows are never updated.

    Source field mapping:
    - _id -> document_id
    - source_zone_name -> source_zone
    - every other column has the same name in _source
    """
    __tablename__ = "documents"

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)

    document_id = Column(String(255), nullable=False)
    index_name = Column(String(255), nullable=False, index=True)

    event_category = Column(String(255), nullable=True, index=True)
    event_timestamp = Column(DateTime, nullable=False, index=True)
    event_type = Column(String(255), nullable=True)
    host = Column(String(255), nullable=True)
    syslog_hostname = Column(String(255), nullable=True)
    source_zone = Column(String(255), nullable=True)
    application = Column(String(255), nullable=True)
    reason = Column(Text, nullable=True)
    category = Column(String(255), nullable=True)
    url = Column(Text, nullable=True)
    attack_name = Column(String(255), nullable=True)
    threat_severity = Column(String(32), nullable=True)

    inserted_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("uidx_document_id_index_name", "document_id", "index_name", unique=True),
    )
