"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    PRODUCTION ORDERS — Requirement Snapshots & Lifecycle
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Production orders carry their own copy of material and capacity requirements,
computed once from BOM × quantity and Routing × quantity when the order is
created. Later edits to BOM or routing never change existing orders.

Lifecycle:
──────────
    planned ──release──▶ released ──start──▶ in_progress ──complete──▶ completed
       │                    │
       └──────cancel────────┴──▶ cancelled

    release: material availability check + reservation (MaterialAvailability)

Completion figures:
──────────────────
    yield %      = produced / ordered × 100
    scrap %      = scrap / ordered × 100
    variance     = actual cost - standard cost
    efficiency % = standard cost / actual cost × 100
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from prodplan.errors import (
    InvalidInputError,
    InvalidTransitionError,
    MaterialShortageError,
    NotFoundError,
)
from prodplan.smart_inventory.bom_engine import BOMRoutingProvider
from prodplan.smart_inventory.stock_state import MaterialAvailability

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════════════════════

class OrderPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class OrderStatus(str, Enum):
    PLANNED = "planned"
    RELEASED = "released"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses whose capacity requirements count as load
ACTIVE_STATUSES = frozenset({OrderStatus.PLANNED, OrderStatus.RELEASED, OrderStatus.IN_PROGRESS})

_TRANSITIONS: Dict[OrderStatus, Tuple[OrderStatus, ...]] = {
    OrderStatus.PLANNED: (OrderStatus.RELEASED, OrderStatus.CANCELLED),
    OrderStatus.RELEASED: (OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED),
    OrderStatus.IN_PROGRESS: (OrderStatus.COMPLETED,),
    OrderStatus.COMPLETED: (),
    OrderStatus.CANCELLED: (),
}


@dataclass(frozen=True)
class MaterialRequirement:
    """Material needed by an order (scrap included)."""
    component_id: str
    name: str
    required_quantity: float
    unit: str
    estimated_cost: float
    is_phantom: bool = False


@dataclass(frozen=True)
class CapacityRequirement:
    """Work center time needed by one routing operation (minutes)."""
    sequence: int
    work_center_id: str
    operation_name: str
    setup_time: float
    run_time: float
    estimated_cost: float

    @property
    def total_time(self) -> float:
        return self.setup_time + self.run_time


def _check_window(order_id: str, planned_start: date, planned_end: date) -> None:
    if planned_end < planned_start:
        raise InvalidInputError(
            f"Order {order_id}: planned end {planned_end.isoformat()} is before "
            f"planned start {planned_start.isoformat()}"
        )


@dataclass
class ProductionOrder:
    """Production order with immutable requirement snapshots."""
    order_id: str
    order_number: str
    product_id: str
    quantity: float
    priority: OrderPriority
    planned_start: date
    planned_end: date
    material_requirements: Tuple[MaterialRequirement, ...] = ()
    capacity_requirements: Tuple[CapacityRequirement, ...] = ()
    standard_cost: float = 0.0
    status: OrderStatus = OrderStatus.PLANNED
    sales_order_reference: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)

    # Execution
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None
    quantity_produced: Optional[float] = None
    quantity_scrap: Optional[float] = None
    actual_cost: Optional[float] = None
    variance: Optional[float] = None
    yield_pct: Optional[float] = None
    scrap_pct: Optional[float] = None
    efficiency_pct: Optional[float] = None

    def __post_init__(self):
        _check_window(self.order_id, self.planned_start, self.planned_end)

    @property
    def planned_days(self) -> int:
        return (self.planned_end - self.planned_start).days + 1

    def material_demand(self) -> Dict[str, float]:
        """Stocked material quantity per component (phantoms excluded)."""
        demand: Dict[str, float] = defaultdict(float)
        for req in self.material_requirements:
            if not req.is_phantom:
                demand[req.component_id] += req.required_quantity
        return dict(demand)

    def minutes_for(self, work_center_id: str) -> float:
        return sum(
            req.total_time
            for req in self.capacity_requirements
            if req.work_center_id == work_center_id
        )

    def to_dict(self) -> Dict:
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "priority": self.priority.value,
            "status": self.status.value,
            "planned_start": self.planned_start.isoformat(),
            "planned_end": self.planned_end.isoformat(),
            "standard_cost": round(self.standard_cost, 2),
            "material_requirements": len(self.material_requirements),
            "capacity_requirements": len(self.capacity_requirements),
            "actual_cost": self.actual_cost,
            "variance": self.variance,
            "yield_pct": self.yield_pct,
            "scrap_pct": self.scrap_pct,
            "efficiency_pct": self.efficiency_pct,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORY
# ═══════════════════════════════════════════════════════════════════════════════

class ProductionOrderRepository(ABC):
    """Persistence collaborator for production orders."""

    @abstractmethod
    def add(self, order: ProductionOrder) -> None:
        ...

    @abstractmethod
    def get(self, order_id: str) -> ProductionOrder:
        """Raises NotFoundError for unknown ids."""

    @abstractmethod
    def save(self, order: ProductionOrder) -> None:
        ...

    @abstractmethod
    def count_for_year(self, year: int) -> int:
        ...

    @abstractmethod
    def orders_for_work_center(
        self,
        work_center_id: str,
        start: date,
        end: date,
        statuses: Iterable[OrderStatus] = ACTIVE_STATUSES,
    ) -> List[ProductionOrder]:
        """Orders in `statuses` loading `work_center_id` whose planned window meets [start, end)."""


class InMemoryProductionOrderRepository(ProductionOrderRepository):

    def __init__(self):
        self._orders: Dict[str, ProductionOrder] = {}

    def add(self, order: ProductionOrder) -> None:
        if order.order_id in self._orders:
            raise InvalidInputError(f"Duplicate production order id {order.order_id}")
        self._orders[order.order_id] = order

    def get(self, order_id: str) -> ProductionOrder:
        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError("ProductionOrder", order_id)
        return order

    def save(self, order: ProductionOrder) -> None:
        if order.order_id not in self._orders:
            raise NotFoundError("ProductionOrder", order.order_id)
        self._orders[order.order_id] = order

    def count_for_year(self, year: int) -> int:
        return sum(1 for o in self._orders.values() if o.created_at.year == year)

    def orders_for_work_center(
        self,
        work_center_id: str,
        start: date,
        end: date,
        statuses: Iterable[OrderStatus] = ACTIVE_STATUSES,
    ) -> List[ProductionOrder]:
        statuses = frozenset(statuses)
        return [
            o for o in self._orders.values()
            if o.status in statuses
            and o.planned_start < end
            and o.planned_end >= start
            and any(r.work_center_id == work_center_id for r in o.capacity_requirements)
        ]

    def all(self) -> List[ProductionOrder]:
        return list(self._orders.values())


# ═══════════════════════════════════════════════════════════════════════════════
# SERVICE
# ═══════════════════════════════════════════════════════════════════════════════

class ProductionOrderService:
    """Creates production orders and drives their lifecycle."""

    def __init__(
        self,
        master_data: BOMRoutingProvider,
        repository: ProductionOrderRepository,
        materials: MaterialAvailability,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.master_data = master_data
        self.repository = repository
        self.materials = materials
        self.clock = clock

    def create_production_order(
        self,
        product_id: str,
        quantity: float,
        planned_start: date,
        planned_end: date,
        priority: OrderPriority = OrderPriority.NORMAL,
        sales_order_reference: Optional[str] = None,
    ) -> ProductionOrder:
        """
        Create a planned production order.

        Material and capacity requirements are copied from the current BOM and
        routing; standard cost = (BOM cost + routing cost) × quantity.
        """
        if quantity <= 0:
            raise InvalidInputError(f"Order quantity must be positive, got {quantity}")
        if planned_end < planned_start:
            raise InvalidInputError(
                f"Planned end {planned_end.isoformat()} is before planned start {planned_start.isoformat()}"
            )

        bom = self.master_data.get_bom(product_id)
        routing = self.master_data.get_routing(product_id)

        materials = tuple(
            MaterialRequirement(
                component_id=c.component_id,
                name=c.name or c.component_id,
                required_quantity=c.gross_quantity(quantity),
                unit=c.unit,
                estimated_cost=c.unit_cost * c.quantity_per * quantity,
                is_phantom=c.is_phantom,
            )
            for c in bom.components
        )
        capacity = tuple(
            CapacityRequirement(
                sequence=op.sequence,
                work_center_id=op.work_center_id,
                operation_name=op.name,
                setup_time=op.setup_time,
                run_time=op.run_time_per_unit * quantity,
                estimated_cost=op.total_cost * quantity,
            )
            for op in routing.operations
        )

        now = self.clock()
        order = ProductionOrder(
            order_id=uuid.uuid4().hex,
            order_number=self._next_order_number(now.year),
            product_id=product_id,
            quantity=float(quantity),
            priority=OrderPriority(priority),
            planned_start=planned_start,
            planned_end=planned_end,
            material_requirements=materials,
            capacity_requirements=capacity,
            standard_cost=(bom.total_cost + routing.total_cost) * quantity,
            sales_order_reference=sales_order_reference,
            created_at=now,
        )
        self.repository.add(order)
        logger.info(f"Created production order {order.order_number} for {quantity:g} x {product_id}")
        return order

    def release(self, order_id: str) -> ProductionOrder:
        """planned -> released, after checking and reserving materials."""
        order = self.repository.get(order_id)
        self._check_transition(order, OrderStatus.RELEASED)

        demand = order.material_demand()
        check = self.materials.check(demand)
        if not check.all_available:
            logger.warning(f"Material shortage for {order.order_number}: {', '.join(check.shortages)}")
            raise MaterialShortageError(
                f"Material shortage for {order.order_number}: {', '.join(check.shortages)}",
                check.shortages,
            )
        self.materials.reserve(order.order_id, demand)

        order.status = OrderStatus.RELEASED
        self.repository.save(order)
        logger.info(f"Released production order {order.order_number}")
        return order

    def start(self, order_id: str) -> ProductionOrder:
        order = self.repository.get(order_id)
        self._check_transition(order, OrderStatus.IN_PROGRESS)
        order.status = OrderStatus.IN_PROGRESS
        order.actual_start = self.clock()
        self.repository.save(order)
        return order

    def complete(
        self,
        order_id: str,
        quantity_produced: float,
        quantity_scrap: float = 0.0,
        actual_cost: float = 0.0,
    ) -> ProductionOrder:
        """in_progress -> completed, recording yield, scrap, variance and efficiency."""
        if quantity_produced < 0 or quantity_scrap < 0 or actual_cost < 0:
            raise InvalidInputError("Produced quantity, scrap and actual cost must be >= 0")

        order = self.repository.get(order_id)
        self._check_transition(order, OrderStatus.COMPLETED)

        order.status = OrderStatus.COMPLETED
        order.actual_end = self.clock()
        order.quantity_produced = float(quantity_produced)
        order.quantity_scrap = float(quantity_scrap)
        order.actual_cost = float(actual_cost)
        order.yield_pct = quantity_produced / order.quantity * 100
        order.scrap_pct = quantity_scrap / order.quantity * 100
        order.variance = actual_cost - order.standard_cost
        if order.standard_cost > 0 and actual_cost > 0:
            order.efficiency_pct = order.standard_cost / actual_cost * 100
        else:
            order.efficiency_pct = 100.0

        self.repository.save(order)
        logger.info(
            f"Completed {order.order_number}: yield {order.yield_pct:.1f}%, "
            f"efficiency {order.efficiency_pct:.1f}%"
        )
        return order

    def cancel(self, order_id: str) -> ProductionOrder:
        order = self.repository.get(order_id)
        self._check_transition(order, OrderStatus.CANCELLED)
        if order.status == OrderStatus.RELEASED:
            self.materials.release_reservation(order.order_id)
        order.status = OrderStatus.CANCELLED
        self.repository.save(order)
        return order

    def _next_order_number(self, year: int) -> str:
        sequence = self.repository.count_for_year(year) + 1
        return f"PROD-{year}-{sequence:05d}"

    @staticmethod
    def _check_transition(order: ProductionOrder, target: OrderStatus) -> None:
        if target not in _TRANSITIONS[order.status]:
            raise InvalidTransitionError(order.order_id, order.status.value, target.value)
