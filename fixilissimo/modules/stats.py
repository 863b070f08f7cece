"""
fixilissimo/modules/stats.py

Aggregation engine behind the location dashboard.

One grouped query per call: the owner's locations LEFT JOIN the owner's
projects, grouped by location and completion bucket. Locations without
projects come back as a single all-zero row, so every owned location appears
in the result. A project is "completed" only when status == 'completed';
every other value, unknown free text included, lands in "notCompleted".
Null budget/actual_cost/estimated_days count as 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from sqlalchemy import text

from fixilissimo import config
from fixilissimo.errors import NotFoundError
from fixilissimo.store import OwnershipStore
from fixilissimo.tenant import require_owner_id

COMPLETED = "completed"
NOT_COMPLETED = "notCompleted"

STATS_QUERY = """
    SELECT
        l.id AS location_id,
        CASE WHEN p.status = 'completed' THEN 'completed' ELSE 'notCompleted' END AS bucket,
        COUNT(p.id) AS project_count,
        COALESCE(SUM(p.budget), 0) AS total_budget,
        COALESCE(SUM(p.actual_cost), 0) AS total_spent,
        COALESCE(SUM(p.estimated_days), 0) AS total_estimated_days
    FROM locations l
    LEFT JOIN projects p
        ON p.owner_id = l.owner_id AND p.location = l.id
    WHERE l.owner_id = :owner_id {location_filter}
    GROUP BY l.id, CASE WHEN p.status = 'completed' THEN 'completed' ELSE 'notCompleted' END
"""


def _number(value: Any) -> float:
    # Postgres returns Decimal for SUM over integers
    if value is None:
        return 0
    number = float(value)
    return int(number) if number.is_integer() else number


@dataclass
class BucketStats:
    project_count: int = 0
    total_budget: float = 0
    total_spent: float = 0
    total_estimated_days: int = 0

    def add(self, project_count: int, budget: float, spent: float, days: int) -> None:
        self.project_count += project_count
        self.total_budget += budget
        self.total_spent += spent
        self.total_estimated_days += days

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectCount": self.project_count,
            "totalBudget": self.total_budget,
            "totalSpent": self.total_spent,
            "totalEstimatedDays": self.total_estimated_days,
        }


@dataclass
class LocationStats:
    completed: BucketStats = field(default_factory=BucketStats)
    not_completed: BucketStats = field(default_factory=BucketStats)

    @property
    def total(self) -> BucketStats:
        combined = BucketStats()
        for bucket in (self.completed, self.not_completed):
            combined.add(bucket.project_count, bucket.total_budget, bucket.total_spent, bucket.total_estimated_days)
        return combined

    def to_dict(self) -> Dict[str, Any]:
        return {
            COMPLETED: self.completed.to_dict(),
            NOT_COMPLETED: self.not_completed.to_dict(),
            **self.total.to_dict(),
        }


class StatsService:
    def __init__(self, store: OwnershipStore):
        self.store = store

    def location_stats(self, owner_id: int, location_id: Optional[str] = None) -> Dict[str, LocationStats]:
        """
        Stats keyed by location id for every owned location (or just location_id).

        Raises:
            NotFoundError: location_id given but not owned by the caller
        """
        owner_id = require_owner_id(owner_id)
        params: Dict[str, Any] = {"owner_id": owner_id}
        location_filter = ""
        if location_id is not None:
            location_filter = "AND l.id = :location_id"
            params["location_id"] = location_id

        with self.store.read() as conn:
            rows = conn.execute(text(STATS_QUERY.format(location_filter=location_filter)), params).fetchall()

        stats: Dict[str, LocationStats] = {}
        for row in rows:
            entry = stats.setdefault(row.location_id, LocationStats())
            bucket = entry.completed if row.bucket == COMPLETED else entry.not_completed
            bucket.add(
                int(row.project_count or 0),
                _number(row.total_budget),
                _number(row.total_spent),
                int(_number(row.total_estimated_days)),
            )

        if location_id is not None and location_id not in stats:
            raise NotFoundError("Location")

        if config.IS_DEV:
            print(f"[STATS] owner_id={owner_id}, locations={len(stats)}")
        return stats

    def all_locations(self, owner_id: int) -> Dict[str, Dict[str, Any]]:
        return {location: entry.to_dict() for location, entry in self.location_stats(owner_id).items()}

    def for_location(self, owner_id: int, location_id: str) -> Dict[str, Any]:
        return self.location_stats(owner_id, location_id)[location_id].to_dict()

    def project_count_for_location(self, owner_id: int, location_id: str) -> int:
        with self.store.read() as conn:
            self.store.get_location(conn, owner_id, location_id)
            return self.store.count_projects_in_location(conn, owner_id, location_id)
