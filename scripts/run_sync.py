"""
Script to run one incremental sync, or to seed a local search store

Usage:
    python scripts/run_sync.py                 # sync with now = current UTC time
    python scripts/run_sync.py --testrun       # sync with now = TESTRUN_NOW
    python scripts/run_sync.py --now 2023-01-02T09:00:00Z
    python scripts/run_sync.py --populate      # create and fill local partitions
"""

import argparse
import asyncio
import sys
import os
import logging
from datetime import datetime, timezone
from typing import List, Optional

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings, is_local_endpoint
from core.database import engine, async_session_maker
from core.exceptions import ConfigurationError, ETLException
from core.logging import setup_logging
from models.base import Base
# Import all models to ensure they are registered
from models.checkpoint import PartitionCheckpoint
from models.document import SyncedDocument
from models.sync_run import SyncRun
from ingestion.extractors.search_client import SearchStoreClient
from ingestion.generator import create_partitions, populate_partitions
from ingestion.runner import SyncRunner

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync Junos log partitions into the database")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--populate",
        action="store_true",
        help="create hourly partitions on a local search store and seed synthetic documents",
    )
    mode.add_argument(
        "--testrun",
        action="store_true",
        help=f"run against local stores with now fixed at TESTRUN_NOW ({settings.TESTRUN_NOW})",
    )
    mode.add_argument(
        "--now",
        help="ISO-8601 timestamp to use as the current time",
    )
    return parser.parse_args(argv)


def parse_now(value: str) -> datetime:
    """ISO-8601 timestamp as an aware UTC datetime (naive input is UTC)."""
    try:
        moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid timestamp: {value}",
            context={"value": value},
            original_exception=e
        )
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def ensure_local_endpoints(mode: str):
    """Test-only modes must never touch shared stores."""
    for name, url in (("ES_BASE_URL", settings.ES_BASE_URL), ("DATABASE_URL", settings.DATABASE_URL)):
        if not is_local_endpoint(url):
            raise ConfigurationError(
                f"{mode} only runs against local endpoints; {name} is not local",
                context={"mode": mode, "setting": name}
            )


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def populate():
    async with SearchStoreClient() as client:
        partitions = await create_partitions(client, settings.PARTITION_PREFIX, settings.POPULATE_DAYS)
        await populate_partitions(
            client,
            partitions,
            settings.POPULATE_DOCUMENTS_PER_PARTITION,
            settings.PARTITION_PREFIX,
            concurrency=settings.SYNC_CONCURRENCY * 2,
        )


async def run_sync(now: Optional[datetime] = None) -> dict:
    await create_tables()
    async with SearchStoreClient() as client:
        runner = SyncRunner(client, async_session_maker)
        return await runner.run(now)


async def main(argv: Optional[List[str]] = None) -> int:
    """Returns the process exit code."""
    args = parse_args(argv)

    try:
        if args.populate:
            ensure_local_endpoints("--populate")
            await populate()
            return 0

        now = None
        if args.testrun:
            ensure_local_endpoints("--testrun")
            now = parse_now(settings.TESTRUN_NOW)
        elif args.now:
            now = parse_now(args.now)

        summary = await run_sync(now)
        if summary["status"] == "failed":
            logger.error(f"Sync failed for every eligible partition: {', '.join(summary['failed_partitions'])}")
            return 1
        return 0

    except ETLException as e:
        logger.error(f"Sync error: {e}", extra={"error_context": e.to_dict()})
        return 1
    except Exception as e:
        logger.exception(f"Unexpected sync error: {str(e)}")
        return 1
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(main()))
