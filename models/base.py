from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntegerPK = BigInteger().with_variant(Integer, "sqlite")


# ============================================================================
# ENUMS
# ============================================================================

class SyncStatus(str, enum.Enum):
    """Outcome of one sync run"""
    RUNNING = "running"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class PartitionState(str, enum.Enum):
    """Lifecycle of one partition within a run"""
    PENDING = "pending"
    SCANNING = "scanning"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
