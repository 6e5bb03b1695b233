"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    PLANNING ENGINE — Unified Planning Facade
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Wires master data, inventory, production orders and work centers into one
entry point for:
- MRP runs
- Capacity analysis
- Job-shop scheduling (dispatch rules or GA)
- Scheduling of existing production orders

═══════════════════════════════════════════════════════════════════════════════════════════════════════
"""

from datetime import date, datetime, time as dt_time, timedelta
from typing import List, Optional, Union
import logging

from prodplan.errors import InvalidInputError
from prodplan.models_common import CapacityRequest, MRPRequest, SchedulingRequest
from prodplan.planning.capacity_planner import CapacityAnalysis, CapacityPlanner
from prodplan.planning.production_orders import (
    InMemoryProductionOrderRepository,
    ProductionOrderRepository,
    ProductionOrderService,
)
from prodplan.planning.work_centers import WorkCenterRegistry
from prodplan.scheduling.engine import job_from_production_order, schedule_jobs
from prodplan.scheduling.types import DispatchRule, Job, JobShopResult
from prodplan.smart_inventory.bom_engine import BOMRoutingProvider
from prodplan.smart_inventory.mrp_engine import MRPEngine, MRPResult
from prodplan.smart_inventory.stock_state import StockState

logger = logging.getLogger(__name__)


class PlanningEngine:
    """
    Unified planning engine.

    Usage:
        engine = PlanningEngine(bom_engine, stock, work_centers)

        mrp = engine.run_mrp("FG-001", 100, date(2025, 3, 31))
        capacity = engine.analyze_capacity("WC-001", date(2025, 3, 1), date(2025, 4, 1))
        result = engine.schedule_production_orders([po.order_id], strategy="spt")
    """

    def __init__(
        self,
        master_data: BOMRoutingProvider,
        stock: StockState,
        work_centers: WorkCenterRegistry,
        orders: Optional[ProductionOrderRepository] = None,
    ):
        self.master_data = master_data
        self.stock = stock
        self.work_centers = work_centers
        self.orders = orders or InMemoryProductionOrderRepository()

        self.mrp = MRPEngine(master_data, stock)
        self.capacity = CapacityPlanner(work_centers, self.orders)
        self.production = ProductionOrderService(master_data, self.orders, stock)

    # ─────────────────────────────────────────────────────────────────────────
    # MRP / CAPACITY
    # ─────────────────────────────────────────────────────────────────────────

    def run_mrp(self, product_id: str, demand_quantity: float, demand_date: date, **kwargs) -> MRPResult:
        return self.mrp.run_mrp(product_id, demand_quantity, demand_date, **kwargs)

    def run_mrp_request(self, request: MRPRequest) -> MRPResult:
        return self.mrp.run_mrp(
            request.product_id,
            request.demand_quantity,
            request.demand_date,
            horizon_days=request.horizon_days,
            start_date=request.start_date,
        )

    def analyze_capacity(self, work_center_id: str, start: date, end: date) -> CapacityAnalysis:
        return self.capacity.analyze_capacity(work_center_id, start, end)

    def analyze_capacity_request(self, request: CapacityRequest) -> CapacityAnalysis:
        return self.capacity.analyze_capacity(request.work_center_id, request.start, request.end)

    # ─────────────────────────────────────────────────────────────────────────
    # SCHEDULING
    # ─────────────────────────────────────────────────────────────────────────

    def schedule_jobs(
        self,
        jobs: List[Job],
        strategy: Optional[Union[DispatchRule, str]] = None,
        **options,
    ) -> JobShopResult:
        """Schedule jobs, validating work centers against the registry."""
        return schedule_jobs(jobs, strategy, work_centers=self.work_centers, **options)

    def schedule_request(self, request: SchedulingRequest) -> JobShopResult:
        return self.schedule_jobs(
            request.to_jobs(),
            request.strategy,
            now=request.now,
            seed=request.seed,
            time_limit_sec=request.time_limit_sec,
        )

    def schedule_production_orders(
        self,
        order_ids: List[str],
        strategy: Optional[Union[DispatchRule, str]] = None,
        origin: Optional[datetime] = None,
        **options,
    ) -> JobShopResult:
        """
        Schedule existing production orders on their work centers.

        Due dates are the end of each order's planned end day, in hours from
        `origin` (default: start of the earliest planned start).
        """
        if not order_ids:
            raise InvalidInputError("No production orders to schedule")

        orders = [self.orders.get(order_id) for order_id in order_ids]
        if origin is None:
            origin = datetime.combine(min(o.planned_start for o in orders), dt_time.min)

        jobs = []
        for order in orders:
            due = datetime.combine(order.planned_end, dt_time.min) + timedelta(days=1)
            jobs.append(job_from_production_order(order, (due - origin).total_seconds() / 3600.0))

        logger.info(f"Scheduling {len(jobs)} production order(s) from {origin.isoformat()}")
        return self.schedule_jobs(jobs, strategy, **options)

