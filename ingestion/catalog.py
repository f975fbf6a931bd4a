"""
Partition discovery
"""

from typing import List
from ingestion.extractors.search_client import SearchStoreClient
from ingestion.partitions import parse_partition_time
import logging

logger = logging.getLogger(__name__)


class PartitionCatalog:
    """
    Lists the hourly partitions known to the search store.

    Only well-formed ``{prefix}-YYYY.MM.DD-HH`` names are returned, in
    ascending order. Anything else under the prefix is skipped with a
    warning so it can never take part in a string comparison against the
    horizon.
    """

    def __init__(self, client: SearchStoreClient, prefix: str):
        self.client = client
        self.prefix = prefix

    async def list_partitions(self) -> List[str]:
        names = await self.client.list_indices(f"{self.prefix}-*")

        partitions = []
        for name in names:
            if parse_partition_time(name, self.prefix) is None:
                logger.warning(f"Skipping index {name}: not a {self.prefix}-YYYY.MM.DD-HH partition")
                continue
            partitions.append(name)

        partitions = sorted(set(partitions))
        logger.info(f"Catalog lists {len(partitions)} partitions for prefix {self.prefix}")
        return partitions
