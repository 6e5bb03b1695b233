"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    CAPACITY PLANNER — Finite Capacity Load Analysis
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Daily load vs capacity for a single work center over a date window.

Features:
- Load aggregation from production order capacity snapshots
- Utilization classification per day
- Bottleneck detection (overloaded days, contributing orders)
- Qualitative remediation recommendations

Mathematical Model:
─────────────────────────────────────────────────────────────────────────────────────────────────────

Parameters:
    C_d     : Capacity of the work center on day d (daily capacity × efficiency, 0 if not operating)
    T_o     : Minutes order o needs on the work center (setup + run)
    D_o     : Operating days in the planned window of order o

Load:
    L_d = Σ_o T_o / |D_o|          for d ∈ D_o

Utilization:
    U_d = L_d × 100 / C_d

Classification:
    U_d < 60          → underutilized
    60 ≤ U_d < 85     → normal
    85 ≤ U_d ≤ 100    → near_capacity
    U_d > 100         → overloaded    (overload = L_d - C_d)

The planner only reports; it never moves load.

═══════════════════════════════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta
from typing import Any, Dict, List, Optional
from enum import Enum
import logging
import numpy as np
import pandas as pd

from prodplan.errors import InfeasibleError, InvalidInputError
from prodplan.planning.production_orders import ProductionOrder, ProductionOrderRepository
from prodplan.planning.work_centers import WorkCenter, WorkCenterRegistry
from prodplan.settings import PlannerSettings, Settings

logger = logging.getLogger(__name__)


class UtilizationStatus(str, Enum):
    """Utilization band of a day."""
    UNDERUTILIZED = "underutilized"
    NORMAL = "normal"
    NEAR_CAPACITY = "near_capacity"
    OVERLOADED = "overloaded"


def classify_utilization(
    utilization: float,
    underutilized_below: float = 60.0,
    near_capacity_from: float = 85.0,
) -> UtilizationStatus:
    """Map a utilization percentage to its band (100% is still near_capacity)."""
    if utilization < underutilized_below:
        return UtilizationStatus.UNDERUTILIZED
    if utilization < near_capacity_from:
        return UtilizationStatus.NORMAL
    if utilization <= 100.0:
        return UtilizationStatus.NEAR_CAPACITY
    return UtilizationStatus.OVERLOADED


def _round_pct(value: float) -> Optional[float]:
    """Percent for export; None when unbounded (load on a day without capacity)."""
    return round(value, 2) if np.isfinite(value) else None


@dataclass
class DailyCapacity:
    """Load vs capacity on one day (minutes)."""
    date: date
    capacity: float
    load: float
    utilization: float  # percent
    status: UtilizationStatus
    overload: float = 0.0
    order_numbers: List[str] = field(default_factory=list)

    @property
    def available(self) -> float:
        return max(0.0, self.capacity - self.load)

    @property
    def operating(self) -> bool:
        return self.capacity > 0


@dataclass
class Bottleneck:
    """An overloaded day."""
    date: date
    overload: float
    utilization: float
    order_numbers: List[str]
    impact: str


@dataclass
class CapacityRecommendation:
    action: str  # "add_shift", "outsource"
    description: str
    estimated_cost: float = 0.0


@dataclass
class CapacityAnalysis:
    """Result of a capacity analysis for one work center."""
    work_center_id: str
    start: date
    end: date  # exclusive
    days: List[DailyCapacity] = field(default_factory=list)
    total_capacity: float = 0.0
    total_required: float = 0.0
    total_available: float = 0.0
    average_utilization: float = 0.0
    bottlenecks: List[Bottleneck] = field(default_factory=list)
    recommendations: List[CapacityRecommendation] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "date": d.date,
                    "capacity": d.capacity,
                    "load": d.load,
                    "utilization": d.utilization,
                    "status": d.status.value,
                    "overload": d.overload,
                }
                for d in self.days
            ],
            columns=["date", "capacity", "load", "utilization", "status", "overload"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "work_center_id": self.work_center_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "total_capacity": round(self.total_capacity, 2),
            "total_required": round(self.total_required, 2),
            "total_available": round(self.total_available, 2),
            "average_utilization": round(self.average_utilization, 2),
            "days": [
                {
                    "date": d.date.isoformat(),
                    "capacity": d.capacity,
                    "load": round(d.load, 2),
                    "utilization": _round_pct(d.utilization),
                    "operating": d.operating,
                    "status": d.status.value,
                    "overload": round(d.overload, 2),
                }
                for d in self.days
            ],
            "bottlenecks": [
                {
                    "date": b.date.isoformat(),
                    "overload": round(b.overload, 2),
                    "utilization": _round_pct(b.utilization),
                    "orders": b.order_numbers,
                    "impact": b.impact,
                }
                for b in self.bottlenecks
            ],
            "recommendations": [
                {"action": r.action, "description": r.description, "estimated_cost": r.estimated_cost}
                for r in self.recommendations
            ],
        }


class CapacityPlanner:
    """
    Finite capacity planner for a work center.
    """

    def __init__(
        self,
        work_centers: WorkCenterRegistry,
        orders: ProductionOrderRepository,
        settings: Optional[PlannerSettings] = None,
    ):
        self.work_centers = work_centers
        self.orders = orders
        self.settings = settings

    def analyze_capacity(self, work_center_id: str, start: date, end: date) -> CapacityAnalysis:
        """
        Analyze load vs capacity over days [start, end).

        Raises:
            NotFoundError: unknown work center
            InvalidInputError: empty window
            InfeasibleError: work center has no capacity
        """
        if end <= start:
            raise InvalidInputError(
                f"Analysis window is empty: {start.isoformat()} -> {end.isoformat()}"
            )
        wc = self.work_centers.get(work_center_id)
        if wc.daily_capacity <= 0:
            raise InfeasibleError(f"Work center {work_center_id} has zero daily capacity")

        settings = self.settings or Settings.get_config()
        n_days = (end - start).days
        days = [start + timedelta(days=i) for i in range(n_days)]

        capacity = np.array([wc.capacity_on(d) for d in days], dtype=float)
        load = np.zeros(n_days)
        contributors: List[List[str]] = [[] for _ in range(n_days)]

        orders = self.orders.orders_for_work_center(work_center_id, start, end)
        for order in orders:
            minutes = order.minutes_for(work_center_id)
            if minutes <= 0:
                continue
            load_days = self._load_days(wc, order)
            per_day = minutes / len(load_days)
            for d in load_days:
                idx = (d - start).days
                if 0 <= idx < n_days:
                    load[idx] += per_day
                    contributors[idx].append(order.order_number)

        daily: List[DailyCapacity] = []
        for i, d in enumerate(days):
            if capacity[i] > 0:
                utilization = load[i] * 100 / capacity[i]
            else:
                utilization = 0.0 if load[i] == 0 else float("inf")
            status = classify_utilization(
                utilization,
                settings.underutilized_below_pct,
                settings.near_capacity_from_pct,
            )
            daily.append(DailyCapacity(
                date=d,
                capacity=float(capacity[i]),
                load=float(load[i]),
                utilization=float(utilization),
                status=status,
                overload=float(max(0.0, load[i] - capacity[i])),
                order_numbers=contributors[i],
            ))

        total_capacity = float(capacity.sum())
        total_required = float(load.sum())
        analysis = CapacityAnalysis(
            work_center_id=work_center_id,
            start=start,
            end=end,
            days=daily,
            total_capacity=total_capacity,
            total_required=total_required,
            total_available=total_capacity - total_required,
            average_utilization=total_required / total_capacity * 100 if total_capacity > 0 else 0.0,
        )
        analysis.bottlenecks = self._find_bottlenecks(daily)
        analysis.recommendations = self._generate_recommendations(analysis, settings)

        logger.info(
            f"Capacity {work_center_id} {start.isoformat()}..{end.isoformat()}: "
            f"avg {analysis.average_utilization:.1f}%, {len(analysis.bottlenecks)} bottleneck(s) "
            f"from {len(orders)} order(s)"
        )
        return analysis

    def analyze_month(self, work_center_id: str, year: int, month: int) -> CapacityAnalysis:
        """Analyze one calendar month."""
        start = date(year, month, 1)
        return self.analyze_capacity(work_center_id, start, start + relativedelta(months=1))

    @staticmethod
    def _load_days(wc: WorkCenter, order: ProductionOrder) -> List[date]:
        if order.planned_end < order.planned_start:
            raise InvalidInputError(
                f"Order {order.order_number} has an empty planned window: "
                f"{order.planned_start.isoformat()} -> {order.planned_end.isoformat()}"
            )
        window = [
            order.planned_start + timedelta(days=i)
            for i in range(order.planned_days)
        ]
        operating = [d for d in window if wc.is_operating(d)]
        return operating or window

    @staticmethod
    def _find_bottlenecks(daily: List[DailyCapacity]) -> List[Bottleneck]:
        bottlenecks = []
        for d in daily:
            if d.status != UtilizationStatus.OVERLOADED:
                continue
            bottlenecks.append(Bottleneck(
                date=d.date,
                overload=d.overload,
                utilization=d.utilization,
                order_numbers=list(d.order_numbers),
                impact=(
                    f"{d.overload:.0f} min over capacity; "
                    f"{len(d.order_numbers)} order(s) at risk of delay"
                ),
            ))
        return bottlenecks

    @staticmethod
    def _generate_recommendations(
        analysis: CapacityAnalysis,
        settings: PlannerSettings,
    ) -> List[CapacityRecommendation]:
        recommendations = []

        if analysis.average_utilization > settings.high_utilization_pct:
            recommendations.append(CapacityRecommendation(
                action="add_shift",
                description=(
                    f"Average utilization {analysis.average_utilization:.1f}% exceeds "
                    f"{settings.high_utilization_pct:g}%: add overtime shifts or temporary "
                    f"workers to raise capacity by about 20%"
                ),
                estimated_cost=15000.0,
            ))

        if len(analysis.bottlenecks) > settings.bottleneck_limit:
            recommendations.append(CapacityRecommendation(
                action="outsource",
                description=(
                    f"{len(analysis.bottlenecks)} overloaded days: outsource excess load "
                    f"to partner facilities"
                ),
                estimated_cost=25000.0,
            ))

        return recommendations
