"""
Fixtures comuns para os testes do core de planeamento.
"""
from datetime import date, datetime
from typing import Callable, List

import pytest

from prodplan.planning.production_orders import (
    CapacityRequirement,
    InMemoryProductionOrderRepository,
    OrderPriority,
    OrderStatus,
    ProductionOrder,
)
from prodplan.planning.work_centers import WorkCenter, WorkCenterRegistry
from prodplan.scheduling.types import Job, JobOperation
from prodplan.smart_inventory.bom_engine import (
    BillOfMaterials,
    BOMComponent,
    BOMEngine,
    Routing,
    RoutingOperation,
)
from prodplan.smart_inventory.stock_state import StockState


@pytest.fixture
def start_day() -> date:
    return date(2025, 1, 1)


@pytest.fixture
def sample_bom() -> BillOfMaterials:
    """FG-001: 2 x COMP-001 (5% scrap, 7 days) + 3 x COMP-002 (3% scrap, 5 days)."""
    return BillOfMaterials(
        product_id="FG-001",
        components=[
            BOMComponent(
                component_id="COMP-001",
                name="Component A",
                quantity_per=2,
                scrap_factor=0.05,
                lead_time_days=7,
                unit_cost=10.0,
            ),
            BOMComponent(
                component_id="COMP-002",
                name="Component B",
                quantity_per=3,
                scrap_factor=0.03,
                lead_time_days=5,
                unit_cost=15.0,
            ),
        ],
    )


@pytest.fixture
def sample_routing() -> Routing:
    """Assembly on WC-001 then QC on WC-002; 2 days production lead time."""
    return Routing(
        product_id="FG-001",
        total_lead_time_days=2,
        operations=[
            RoutingOperation(
                sequence=10,
                name="Assembly",
                work_center_id="WC-001",
                setup_time=30,
                run_time_per_unit=15,
                queue_time=60,
                move_time=10,
                labor_cost=50,
                overhead_cost=25,
            ),
            RoutingOperation(
                sequence=20,
                name="Quality Control",
                work_center_id="WC-002",
                setup_time=15,
                run_time_per_unit=5,
                queue_time=30,
                move_time=5,
                labor_cost=40,
                overhead_cost=20,
            ),
        ],
    )


@pytest.fixture
def bom_engine(sample_bom, sample_routing) -> BOMEngine:
    engine = BOMEngine()
    engine.add_bom(sample_bom)
    engine.add_routing(sample_routing)
    return engine


@pytest.fixture
def stock() -> StockState:
    return StockState({"FG-001": 0, "COMP-001": 1000, "COMP-002": 1000})


@pytest.fixture
def work_centers() -> WorkCenterRegistry:
    return WorkCenterRegistry([
        WorkCenter("WC-001", name="Assembly", daily_capacity=480),
        WorkCenter("WC-002", name="Quality", daily_capacity=480),
    ])


@pytest.fixture
def order_repository() -> InMemoryProductionOrderRepository:
    return InMemoryProductionOrderRepository()


@pytest.fixture
def make_order(order_repository) -> Callable[..., ProductionOrder]:
    """Adds an order loading a work center for `minutes` over [start, end]."""
    counter = {"n": 0}

    def _make(
        minutes: float,
        start: date,
        end: date = None,
        work_center_id: str = "WC-001",
        status: OrderStatus = OrderStatus.PLANNED,
    ) -> ProductionOrder:
        counter["n"] += 1
        order = ProductionOrder(
            order_id=f"PO-{counter['n']}",
            order_number=f"PROD-2025-{counter['n']:05d}",
            product_id="FG-001",
            quantity=1,
            priority=OrderPriority.NORMAL,
            planned_start=start,
            planned_end=end or start,
            capacity_requirements=(
                CapacityRequirement(
                    sequence=10,
                    work_center_id=work_center_id,
                    operation_name="Assembly",
                    setup_time=0.0,
                    run_time=minutes,
                    estimated_cost=0.0,
                ),
            ),
            status=status,
            created_at=datetime(2025, 1, 1),
        )
        order_repository.add(order)
        return order

    return _make


@pytest.fixture
def shop_jobs() -> List[Job]:
    """
    3 jobs x 2 operations on M1/M2 (hours).

        J1: M1 1h -> M2 6h   due 10
        J2: M1 5h -> M2 1h   due 20
        J3: M1 2h -> M2 2h   due 30

    EDD (J1, J2, J3) gives makespan 10; SPT (J3, J2, J1) gives 14.
    """
    return [
        Job("J1", [JobOperation("J1-1", "M1", 1.0), JobOperation("J1-2", "M2", 6.0)], due_date=10.0),
        Job("J2", [JobOperation("J2-1", "M1", 5.0), JobOperation("J2-2", "M2", 1.0)], due_date=20.0),
        Job("J3", [JobOperation("J3-1", "M1", 2.0), JobOperation("J3-2", "M2", 2.0)], due_date=30.0),
    ]
