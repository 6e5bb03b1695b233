"""
ProdPlan Core - Work Centers
============================

Work center master data: finite daily capacity, efficiency and an operating
calendar (weekdays, Monday = 0).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, FrozenSet, Iterable, List, Optional

from prodplan.errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)

ALL_WEEKDAYS: FrozenSet[int] = frozenset(range(7))


@dataclass
class WorkCenter:
    """A machine, line or station with finite capacity (minutes per day)."""
    work_center_id: str
    name: str = ""
    daily_capacity: float = 480.0
    efficiency: float = 1.0
    labor_cost_per_hour: float = 0.0
    overhead_cost_per_hour: float = 0.0
    operating_weekdays: FrozenSet[int] = field(default_factory=lambda: ALL_WEEKDAYS)
    holidays: FrozenSet[date] = field(default_factory=frozenset)

    def __post_init__(self):
        if self.daily_capacity < 0:
            raise InvalidInputError(
                f"Work center {self.work_center_id}: daily_capacity must be >= 0"
            )
        if self.efficiency <= 0:
            raise InvalidInputError(
                f"Work center {self.work_center_id}: efficiency must be > 0"
            )
        self.operating_weekdays = frozenset(self.operating_weekdays)
        self.holidays = frozenset(self.holidays)

    @property
    def effective_daily_capacity(self) -> float:
        return self.daily_capacity * self.efficiency

    def is_operating(self, day: date) -> bool:
        return day.weekday() in self.operating_weekdays and day not in self.holidays

    def capacity_on(self, day: date) -> float:
        """Available minutes on `day` (0 on non-operating days)."""
        return self.effective_daily_capacity if self.is_operating(day) else 0.0

    def to_dict(self) -> Dict:
        return {
            "work_center_id": self.work_center_id,
            "name": self.name,
            "daily_capacity": self.daily_capacity,
            "efficiency": self.efficiency,
            "labor_cost_per_hour": self.labor_cost_per_hour,
            "overhead_cost_per_hour": self.overhead_cost_per_hour,
            "operating_weekdays": sorted(self.operating_weekdays),
        }


class WorkCenterRegistry:
    """In-memory work center lookup."""

    def __init__(self, work_centers: Optional[Iterable[WorkCenter]] = None):
        self._work_centers: Dict[str, WorkCenter] = {}
        for wc in work_centers or ():
            self.add(wc)

    def add(self, work_center: WorkCenter) -> None:
        self._work_centers[work_center.work_center_id] = work_center

    def get(self, work_center_id: str) -> WorkCenter:
        wc = self._work_centers.get(work_center_id)
        if wc is None:
            raise NotFoundError("WorkCenter", work_center_id)
        return wc

    def __contains__(self, work_center_id: object) -> bool:
        return work_center_id in self._work_centers

    def all(self) -> List[WorkCenter]:
        return list(self._work_centers.values())
