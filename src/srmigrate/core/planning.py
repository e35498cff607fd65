"""Partition and bucket capacity planning.

The planner estimates how fast a table grows from its size and age, picks
a time-range partition granularity from that rate, and sizes hash buckets
so that one partition's worth of data lands in roughly 1 GiB per bucket.

Tables under 100 GiB stay a single static partition; larger ones get a
rolling dynamic-partition window and an explicit range covering their
lifetime up to one unit past today.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from srmigrate.core.keys import classify_keys
from srmigrate.core.models import (
    DAY_SECONDS,
    GIB,
    MigrationRule,
    RuleBundleMap,
    TableBundle,
)

logger = logging.getLogger(__name__)

DAY_RATE_THRESHOLD = 10 * GIB
MONTH_RATE_THRESHOLD = GIB
DYNAMIC_PARTITION_MIN_SIZE = 100 * GIB
DYNAMIC_PARTITION_END = "3"
DYNAMIC_PARTITION_PREFIX = "auto_gen_p_"


class PartitionGranularity(str, Enum):
    """Time unit of a range partition."""

    DAY = "DAY"
    MONTH = "MONTH"
    YEAR = "YEAR"


@dataclass(frozen=True)
class PartitionRange:
    """Bounded range partitioning: [start, end) stepped by one `unit`."""

    start: date
    end: date
    unit: PartitionGranularity


@dataclass(frozen=True)
class PartitionPlan:
    """
    Outcome of partition planning for one table.

    Attributes:
        granularity: Chosen partition time unit.
        basis: Estimated bytes per partition, used to size buckets.
        dynamic_properties: Dynamic-partition properties; empty for tables
                            below the size threshold.
        partition_range: Explicit range; None for tables below the size
                         threshold.
    """

    granularity: PartitionGranularity
    basis: float
    dynamic_properties: dict[str, str] = field(default_factory=dict)
    partition_range: PartitionRange | None = None


@dataclass
class BundlePlan:
    """A bundle with its selected key and capacity plan."""

    bundle: TableBundle
    key_columns: list[str]
    partition: PartitionPlan
    buckets: int

    def bucket_count(self, rule: MigrationRule) -> int:
        """Explicit rule bucket count if set, else the computed one."""
        return rule.bucket_count if rule.bucket_count > 0 else self.buckets


PlannedRuleMap = dict[MigrationRule, list[BundlePlan]]


def age_in_days(created_at: datetime | None, now: datetime) -> int:
    """Whole days since creation, rounded up, at least 1."""
    if created_at is None:
        return 1
    if (created_at.tzinfo is None) != (now.tzinfo is None):
        created_at = created_at.replace(tzinfo=now.tzinfo)
    elapsed = (now - created_at).total_seconds()
    return max(1, math.ceil(elapsed / DAY_SECONDS))


def dynamic_partition_properties(granularity: PartitionGranularity) -> dict[str, str]:
    return {
        "dynamic_partition.enable": "true",
        "dynamic_partition.time_unit": granularity.value,
        "dynamic_partition.end": DYNAMIC_PARTITION_END,
        "dynamic_partition.prefix": DYNAMIC_PARTITION_PREFIX,
    }


def _first_of_month(day: date, months_ahead: int = 0) -> date:
    index = day.year * 12 + day.month - 1 + months_ahead
    return date(index // 12, index % 12 + 1, 1)


def partition_range(
    granularity: PartitionGranularity, created_at: datetime, now: datetime
) -> PartitionRange:
    """
    Range from the creation time (truncated to the unit) to one unit past now.
    """
    if granularity is PartitionGranularity.DAY:
        start = created_at.date()
        end = (now + timedelta(days=1)).date()
    elif granularity is PartitionGranularity.MONTH:
        start = _first_of_month(created_at.date())
        end = _first_of_month(now.date(), months_ahead=1)
    else:
        start = date(created_at.year, 1, 1)
        end = date(now.year + 1, 1, 1)
    return PartitionRange(start=start, end=end, unit=granularity)


def plan_partitions(
    size_bytes: int, created_at: datetime | None, now: datetime
) -> PartitionPlan:
    """
    Choose partition granularity and dynamic partitioning for a table.

    Growth rate is `size / age_days`. Above 10 GiB/day the table is split
    by DAY, above 1 GiB/day by MONTH, otherwise by YEAR; both comparisons
    are strict. The basis is the expected size of one partition.

    Args:
        size_bytes: Total table size.
        created_at: Table creation time (None is treated as `now`).
        now: Reference time for the age computation and range end.

    Returns:
        The partition plan.
    """
    days = age_in_days(created_at, now)
    rate = size_bytes / days

    if size_bytes > DAY_RATE_THRESHOLD * days:
        granularity, basis = PartitionGranularity.DAY, rate
    elif size_bytes > MONTH_RATE_THRESHOLD * days:
        granularity, basis = PartitionGranularity.MONTH, size_bytes * 30 / days
    else:
        granularity, basis = PartitionGranularity.YEAR, size_bytes * 365 / days

    if size_bytes < DYNAMIC_PARTITION_MIN_SIZE:
        return PartitionPlan(granularity=granularity, basis=basis)

    return PartitionPlan(
        granularity=granularity,
        basis=basis,
        dynamic_properties=dynamic_partition_properties(granularity),
        partition_range=partition_range(granularity, created_at or now, now),
    )


def plan_buckets(basis: float, backend_count: int) -> int:
    """
    Number of hash buckets for a partition of `basis` bytes.

    Roughly one bucket per GiB; once there is at least one GiB per backend
    the count is rounded up to a multiple of `backend_count`.
    """
    if backend_count < 1:
        raise ValueError("backend_count must be >= 1")
    if basis < GIB:
        return 1
    if basis < backend_count * GIB:
        return math.ceil(basis / GIB)
    return math.ceil(basis / GIB / backend_count) * backend_count


def plan_bundle(bundle: TableBundle, backend_count: int, now: datetime) -> BundlePlan:
    """Select the bundle key, reorder its columns and size its partitions."""
    key_columns = classify_keys(bundle)
    partition = plan_partitions(bundle.table.size_bytes, bundle.table.created_at, now)
    buckets = plan_buckets(partition.basis, backend_count)
    logger.debug(
        "Planned %s.%s.%s: key=%s unit=%s buckets=%d",
        *bundle.table.identifier,
        key_columns,
        partition.granularity.value,
        buckets,
    )
    return BundlePlan(
        bundle=bundle, key_columns=key_columns, partition=partition, buckets=buckets
    )


def plan_rule_map(
    rule_map: RuleBundleMap, backend_count: int, now: datetime | None = None
) -> PlannedRuleMap:
    """Plan every bundle of every rule; rules without bundles map to []."""
    now = now or datetime.now()
    return {
        rule: [plan_bundle(bundle, backend_count, now) for bundle in bundles]
        for rule, bundles in rule_map.items()
    }
