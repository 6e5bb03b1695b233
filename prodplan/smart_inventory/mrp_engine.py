"""
ProdPlan Core - MRP Engine
==========================

Material Requirements Planning (MRP) engine.

Features:
- Daily time buckets over a planning horizon
- Netting of gross requirements against projected on-hand
- Lead-time offsetting of planned order releases
- Purchase and production recommendations from the product BOM/routing

Mathematical Model:
──────────────────
    poh[n]  = poh[n-1] + receipts[n] - gross[n]        (poh[-1] = on-hand snapshot)
    net[n]  = max(0, -poh[n])
    por[n]  = max(0, net[n] - net[n-1])                (planned order receipt)
    rel[n - L] += por[n]                               (L = ceil(production LT) + ceil(purchasing LT))

Purchasing and production lead times are serialized: components must be on
hand before the first operation starts.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from prodplan.errors import InvalidInputError
from prodplan.settings import Settings
from prodplan.smart_inventory.bom_engine import BillOfMaterials, BOMRoutingProvider, Routing
from prodplan.smart_inventory.stock_state import InventorySnapshot

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


# ═══════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class MRPTimeBucket:
    """One planning day."""
    date: date
    gross_requirement: float = 0.0
    scheduled_receipts: float = 0.0
    projected_on_hand: float = 0.0
    net_requirement: float = 0.0
    planned_order_receipt: float = 0.0
    planned_order_release: float = 0.0


@dataclass
class PurchaseRecommendation:
    """Purchase order to release for a bought-in component."""
    component_id: str
    name: str
    quantity: float
    unit: str
    due_date: date  # must be on hand by this date
    release_date: date  # order must be placed by this date
    lead_time_days: float
    estimated_cost: float


@dataclass
class ProductionRecommendation:
    """Production order to release for the planned product."""
    product_id: str
    quantity: float
    start_date: date
    end_date: date
    lead_time_days: float


@dataclass
class MRPResult:
    """Result of an MRP run for a product."""
    product_id: str
    horizon_start: date
    horizon_end: date
    on_hand: float
    production_lead_time_days: float
    purchasing_lead_time_days: float
    buckets: List[MRPTimeBucket] = field(default_factory=list)
    purchase_orders: List[PurchaseRecommendation] = field(default_factory=list)
    production_orders: List[ProductionRecommendation] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def total_lead_time_days(self) -> float:
        return self.production_lead_time_days + self.purchasing_lead_time_days

    @property
    def total_net_requirement(self) -> float:
        return sum(b.planned_order_receipt for b in self.buckets)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert bucket list to DataFrame (one row per day)."""
        return pd.DataFrame(
            [asdict(b) for b in self.buckets],
            columns=[
                "date",
                "gross_requirement",
                "scheduled_receipts",
                "projected_on_hand",
                "net_requirement",
                "planned_order_receipt",
                "planned_order_release",
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "horizon_start": self.horizon_start.isoformat(),
            "horizon_end": self.horizon_end.isoformat(),
            "on_hand": self.on_hand,
            "production_lead_time_days": self.production_lead_time_days,
            "purchasing_lead_time_days": self.purchasing_lead_time_days,
            "total_lead_time_days": self.total_lead_time_days,
            "buckets": [
                {**asdict(b), "date": b.date.isoformat()} for b in self.buckets
            ],
            "purchase_orders": [
                {
                    **asdict(p),
                    "due_date": p.due_date.isoformat(),
                    "release_date": p.release_date.isoformat(),
                }
                for p in self.purchase_orders
            ],
            "production_orders": [
                {
                    **asdict(p),
                    "start_date": p.start_date.isoformat(),
                    "end_date": p.end_date.isoformat(),
                }
                for p in self.production_orders
            ],
            "warnings": list(self.warnings),
        }


# ═══════════════════════════════════════════════════════════════════════════════
# MRP ENGINE
# ═══════════════════════════════════════════════════════════════════════════════

def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def lead_time_offset(lead_time_days: float) -> timedelta:
    """Whole-day offset of a lead time (fractions round up)."""
    return timedelta(days=int(np.ceil(lead_time_days)))


class MRPEngine:
    """
    Material Requirements Planning engine.

    Implements single-level MRP logic:
    1. Bucket the horizon (daily)
    2. Netting (gross -> net requirements)
    3. Offsetting (lead time)
    4. Recommendations from BOM and routing
    """

    def __init__(
        self,
        provider: BOMRoutingProvider,
        inventory: InventorySnapshot,
        horizon_days: Optional[int] = None,
    ):
        self.provider = provider
        self.inventory = inventory
        self.horizon_days = horizon_days

    def run_mrp(
        self,
        product_id: str,
        demand_quantity: float,
        demand_date: DateLike,
        horizon_days: Optional[int] = None,
        start_date: Optional[DateLike] = None,
        scheduled_receipts: Optional[Iterable[Tuple[DateLike, float]]] = None,
    ) -> MRPResult:
        """
        Run MRP for a single demand.

        Args:
            product_id: Product to plan
            demand_quantity: Units required (> 0)
            demand_date: Date the units are required
            horizon_days: Number of daily buckets (default from settings)
            start_date: First bucket (default today)
            scheduled_receipts: Open supply as (date, quantity) pairs

        Returns:
            MRPResult with the full bucket sequence and recommendations
        """
        return self.run_mrp_for_demands(
            product_id,
            [(demand_date, demand_quantity)],
            horizon_days=horizon_days,
            start_date=start_date,
            scheduled_receipts=scheduled_receipts,
        )

    def run_mrp_for_demands(
        self,
        product_id: str,
        demands: Sequence[Tuple[DateLike, float]],
        horizon_days: Optional[int] = None,
        start_date: Optional[DateLike] = None,
        scheduled_receipts: Optional[Iterable[Tuple[DateLike, float]]] = None,
    ) -> MRPResult:
        """Run MRP for several (date, quantity) demands of the same product."""
        if horizon_days is None:
            horizon_days = self.horizon_days or Settings.get_config().mrp_horizon_days
        if horizon_days <= 0:
            raise InvalidInputError(f"Horizon must be positive, got {horizon_days} days")
        if not demands:
            raise InvalidInputError("At least one demand is required")

        start = _as_date(start_date) if start_date is not None else date.today()
        periods = [start + timedelta(days=i) for i in range(horizon_days)]

        gross = [0.0] * horizon_days
        for demand_date, quantity in demands:
            if quantity <= 0:
                raise InvalidInputError(f"Demand quantity must be positive, got {quantity}")
            gross[self._bucket_index(start, horizon_days, demand_date, "Demand")] += float(quantity)

        receipts = [0.0] * horizon_days
        for receipt_date, quantity in scheduled_receipts or ():
            if quantity < 0:
                raise InvalidInputError(f"Scheduled receipt must be >= 0, got {quantity}")
            receipts[self._bucket_index(start, horizon_days, receipt_date, "Scheduled receipt")] += float(quantity)

        # NotFoundError propagates for unknown products
        bom = self.provider.get_bom(product_id)
        routing = self.provider.get_routing(product_id)

        warnings: List[str] = []
        on_hand = self.inventory.get_on_hand(product_id)
        if on_hand is None:
            on_hand = 0.0
            msg = f"No inventory record for {product_id}; planning from zero on-hand"
            warnings.append(msg)
            logger.warning(msg)

        production_lt = routing.total_lead_time_days
        purchasing_lt = bom.max_lead_time_days
        total_lt = production_lt + purchasing_lt
        lead_buckets = lead_time_offset(production_lt).days + lead_time_offset(purchasing_lt).days

        logger.info(
            f"Running MRP for {product_id}: {len(demands)} demand(s), "
            f"horizon {horizon_days} days, lead time {total_lt:g} days"
        )

        buckets = [MRPTimeBucket(date=d) for d in periods]
        prev_poh = float(on_hand)
        prev_net = max(0.0, -prev_poh)
        for n, bucket in enumerate(buckets):
            bucket.gross_requirement = gross[n]
            bucket.scheduled_receipts = receipts[n]
            bucket.projected_on_hand = prev_poh + receipts[n] - gross[n]
            bucket.net_requirement = max(0.0, -bucket.projected_on_hand)

            receipt = max(0.0, bucket.net_requirement - prev_net)
            if receipt > 0:
                bucket.planned_order_receipt = receipt
                release_index = n - lead_buckets
                if release_index < 0:
                    msg = (
                        f"Planned release of {receipt:g} {product_id} for {bucket.date.isoformat()} "
                        f"is past due by {-release_index} day(s)"
                    )
                    warnings.append(msg)
                    logger.warning(msg)
                    release_index = 0
                buckets[release_index].planned_order_release += receipt

            prev_poh = bucket.projected_on_hand
            prev_net = bucket.net_requirement

        purchase_orders: List[PurchaseRecommendation] = []
        production_orders: List[ProductionRecommendation] = []
        for demand_date, quantity in demands:
            purchase_orders.extend(
                self._purchase_recommendations(bom, routing, float(quantity), _as_date(demand_date))
            )
            production_orders.append(self._production_recommendation(
                product_id, routing, float(quantity), _as_date(demand_date)
            ))

        result = MRPResult(
            product_id=product_id,
            horizon_start=periods[0],
            horizon_end=periods[-1],
            on_hand=float(on_hand),
            production_lead_time_days=production_lt,
            purchasing_lead_time_days=purchasing_lt,
            buckets=buckets,
            purchase_orders=purchase_orders,
            production_orders=production_orders,
            warnings=warnings,
        )

        logger.info(
            f"MRP for {product_id} done: net requirement {result.total_net_requirement:g}, "
            f"{len(purchase_orders)} purchase and {len(production_orders)} production recommendation(s)"
        )
        return result

    @staticmethod
    def _bucket_index(start: date, horizon_days: int, when: DateLike, label: str) -> int:
        index = (_as_date(when) - start).days
        if not 0 <= index < horizon_days:
            raise InvalidInputError(
                f"{label} date {_as_date(when).isoformat()} is outside the planning horizon "
                f"starting {start.isoformat()} ({horizon_days} days)"
            )
        return index

    @staticmethod
    def _purchase_recommendations(
        bom: BillOfMaterials,
        routing: Routing,
        demand_quantity: float,
        demand_date: date,
    ) -> List[PurchaseRecommendation]:
        """One purchase per non-phantom component, due before production starts."""
        due_date = demand_date - lead_time_offset(routing.total_lead_time_days)
        recommendations = []
        for component in bom.components:
            if component.is_phantom:
                continue
            recommendations.append(PurchaseRecommendation(
                component_id=component.component_id,
                name=component.name or component.component_id,
                quantity=component.gross_quantity(demand_quantity),
                unit=component.unit,
                due_date=due_date,
                release_date=due_date - lead_time_offset(component.lead_time_days),
                lead_time_days=component.lead_time_days,
                estimated_cost=component.unit_cost * component.quantity_per * demand_quantity,
            ))
        return recommendations

    @staticmethod
    def _production_recommendation(
        product_id: str,
        routing: Routing,
        demand_quantity: float,
        demand_date: date,
    ) -> ProductionRecommendation:
        return ProductionRecommendation(
            product_id=product_id,
            quantity=demand_quantity,
            start_date=demand_date - lead_time_offset(routing.total_lead_time_days),
            end_date=demand_date,
            lead_time_days=routing.total_lead_time_days,
        )
