"""
Synthetic Junos log documents for local testing (populate mode).

Creates hourly partitions and fills them with documents built from a small
set of templates. Four templates satisfy one of the default match rules and
one never does, so a populated store always holds traffic the sync must
leave behind.
"""

import asyncio
import copy
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Tuple

from ingestion.extractors.search_client import SearchStoreClient
from ingestion.partitions import parse_partition_time, partition_name

import logging

logger = logging.getLogger(__name__)


_COMMON = {
    "host": "10.255.12.235",
    "syslog_hostname": "vSRX.apollogr",
    "receiving_host": "10.253.0.100",
    "source_address": "172.16.27.116",
    "destination_address": "239.192.152.143",
    "protocol_id": "17",
    "severity": 0,
    "facility": 0,
}

TEMPLATES: List[Dict[str, Any]] = [
    {
        "event_category": "apptrack",
        "event_type": "APPTRACK_SESSION_CLOSE",
        "application": "BITTORRENT",
        "nested_application": "UNKNOWN",
        "reason": "Closed by junos-dynapp",
        "source_zone_name": "business-Wired",
        "destination_zone_name": "business-Wired",
        "category": "P2P",
        "sub_category": "File-Sharing",
        "policy_name": "business-wired-appl-blocks",
    },
    {
        "event_category": "firewall",
        "event_type": "RT_FLOW_SESSION_CLOSE",
        "reason": "Closed by junos-dynapp",
        "source_zone_name": "crew-Wired",
        "destination_zone_name": "untrust",
        "application": "HTTP",
    },
    {
        "event_category": "ips",
        "event_type": "IDP_ATTACK_LOG_EVENT",
        "source_zone_name": "crew-Wired",
        "threat_severity": "HIGH",
        "attack_name": "HTTP:STC:SCRIPT:UNI-SHELLCODE",
    },
    {
        "event_category": "webfilter",
        "event_type": "WEBIFLTER_URL_PERMITTED",
        "category": "TELEGRAM",
        "source_zone_name": "crew-Wired",
        "url": "tools.dvdvideosoft.com/stat.jso",
    },
    {
        # matches no rule
        "event_category": "firewall",
        "event_type": "RT_FLOW_SESSION_CREATE",
        "source_zone_name": "guest-Wifi",
        "destination_zone_name": "untrust",
        "application": "DNS",
    },
]


def build_document(index_name: str, sequence: int, prefix: str) -> Tuple[str, Dict[str, Any]]:
    """
    Document number ``sequence`` of a partition.

    Returns:
        (document id, document body); the event timestamp falls inside the
        hour the partition covers
    """
    start = parse_partition_time(index_name, prefix)
    if start is None:
        raise ValueError(f"{index_name} is not a {prefix} partition")

    document = copy.deepcopy(_COMMON)
    document.update(TEMPLATES[sequence % len(TEMPLATES)])

    event_time = start + timedelta(seconds=(sequence * 37) % 3600)
    document["event_timestamp"] = event_time.isoformat()
    document["@timestamp"] = (event_time + timedelta(seconds=5)).isoformat().replace("+00:00", "Z")
    document["session_id_32"] = str(100000 + sequence)

    return str(sequence), document


async def create_partitions(client: SearchStoreClient, prefix: str, days: Iterable[str]) -> List[str]:
    """
    Ensure one partition per hour exists for each ``YYYY.MM.DD`` day.

    Returns:
        Every partition for those days, ascending (created or pre-existing)
    """
    existing = set(await client.list_indices(f"{prefix}-*"))

    partitions = []
    for day in days:
        midnight = datetime.strptime(day, "%Y.%m.%d")
        for hour in range(24):
            partitions.append(partition_name(prefix, midnight + timedelta(hours=hour)))

    created = 0
    for index_name in partitions:
        if index_name in existing:
            continue
        logger.info(f"Creating index {index_name}")
        await client.create_index(index_name)
        created += 1

    logger.info(f"{created} partitions created, {len(partitions) - created} already present")
    return sorted(partitions)


async def populate_partitions(
    client: SearchStoreClient,
    partitions: Iterable[str],
    count: int,
    prefix: str,
    concurrency: int = 8
) -> int:
    """
    PUT ``count`` synthetic documents into every partition.

    Any rejected write raises the client's SearchStoreError (status, headers
    and body in its context) and stops the populate.

    Returns:
        Number of documents written
    """
    semaphore = asyncio.Semaphore(concurrency)

    async def put(index_name: str, sequence: int):
        document_id, document = build_document(index_name, sequence, prefix)
        async with semaphore:
            await client.index_document(index_name, document_id, document)
        if sequence % 50 == 0:
            logger.info(f"Created document {sequence} on index {index_name}")

    jobs = [
        put(index_name, sequence)
        for index_name in partitions
        for sequence in range(1, count + 1)
    ]
    await asyncio.gather(*jobs)

    logger.info(f"Populated {len(jobs)} documents")
    return len(jobs)
