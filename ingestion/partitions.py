"""
Partition naming and the scan horizon.

Partitions are hourly indices named ``{prefix}-YYYY.MM.DD-HH``. Every
numeric field is fixed width and zero padded, which is what makes plain
string comparison agree with chronological order. Names are only ever
built by ``partition_name`` and names read back from the search store are
checked with ``parse_partition_time`` before they are compared.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

_NAME_RE = re.compile(
    r"^(?P<prefix>.+)-(?P<year>\d{4})\.(?P<month>\d{2})\.(?P<day>\d{2})-(?P<hour>\d{2})$"
)


def _to_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def partition_name(prefix: str, moment: datetime) -> str:
    """Name of the partition holding ``moment`` (naive datetimes are taken as UTC)."""
    moment = _to_utc(moment)
    return (
        f"{prefix}-{moment.year:04d}.{moment.month:02d}.{moment.day:02d}"
        f"-{moment.hour:02d}"
    )


def parse_partition_time(name: str, prefix: str) -> Optional[datetime]:
    """
    Start of the hour a partition covers, or None when ``name`` is not a
    well-formed partition of ``prefix``.
    """
    match = _NAME_RE.match(name)
    if not match or match.group("prefix") != prefix:
        return None
    try:
        return datetime(
            int(match.group("year")),
            int(match.group("month")),
            int(match.group("day")),
            int(match.group("hour")),
            tzinfo=timezone.utc,
        )
    except ValueError:
        # e.g. month 13 or hour 24
        return None


def horizon_partition(prefix: str, now: datetime, skew_hours: int) -> str:
    """
    Latest partition that is safe to scan.

    Writers may still be appending to the current hour, and clocks between
    hosts drift, so the horizon trails ``now`` by ``skew_hours``.
    """
    return partition_name(prefix, _to_utc(now) - timedelta(hours=skew_hours))


def within_horizon(partitions: Iterable[str], horizon: str) -> List[str]:
    """Partitions at or before the horizon, ascending."""
    return sorted(p for p in partitions if p <= horizon)
