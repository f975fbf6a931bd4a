"""
Incremental sync pipeline for hourly Junos log partitions.

This package moves matching documents from the search store into the
relational database, one partition at a time:

Modules:
    partitions: Partition naming and the scan horizon
    catalog: Discovery of the partitions the search store holds
    checkpoints: Durable record of fully ingested partitions
    query: Match rules to search store filter
    runner: Orchestrator with bounded per-partition fan-out
    scheduler: APScheduler integration for periodic runs
    generator: Synthetic partitions and documents for local testing

Subpackages:
    extractors: Search store client and scrolled partition cursor
    loaders: Idempotent page writer

Architecture:
    For every run:

    1. Discover - list partitions, cut at the horizon, drop checkpointed ones
    2. Scan - scroll each eligible partition page by page
    3. Write - insert each page, skipping documents already stored
    4. Checkpoint - record the partition once it has been fully drained

    A partition that fails anywhere gets no checkpoint and is scanned again
    by the next run; its siblings are unaffected.

Usage:
    from ingestion.extractors.search_client import SearchStoreClient
    from ingestion.runner import SyncRunner

    async with SearchStoreClient() as client:
        summary = await SyncRunner(client, async_session_maker).run()
"""

__all__ = [
    "partitions",
    "catalog",
    "checkpoints",
    "query",
    "runner",
    "scheduler",
    "generator",
]
