"""
Testes para Ordens de Produção - snapshot de requisitos e ciclo de vida
"""
import dataclasses
import re
from datetime import date, datetime

import pytest

from prodplan.errors import (
    InvalidInputError,
    InvalidTransitionError,
    MaterialShortageError,
    NotFoundError,
)
from prodplan.planning.production_orders import (
    OrderPriority,
    OrderStatus,
    ProductionOrderService,
)
from prodplan.smart_inventory.bom_engine import BillOfMaterials, BOMComponent
from prodplan.smart_inventory.stock_state import StockState


@pytest.fixture
def service(bom_engine, order_repository, stock) -> ProductionOrderService:
    return ProductionOrderService(
        bom_engine, order_repository, stock, clock=lambda: datetime(2025, 3, 1, 8, 0)
    )


def create(service, quantity=10):
    return service.create_production_order(
        "FG-001", quantity, date(2025, 3, 3), date(2025, 3, 4), priority=OrderPriority.HIGH
    )


class TestP1_Creation:
    """P1: Criação com snapshot de requisitos."""

    def test_order_number_sequence(self, service):
        first = create(service)
        second = create(service)

        assert re.fullmatch(r"PROD-\d{4}-\d{5}", first.order_number)
        assert first.order_number == "PROD-2025-00001"
        assert second.order_number == "PROD-2025-00002"
        assert first.status == OrderStatus.PLANNED

    def test_material_requirements(self, service):
        order = create(service, quantity=10)
        reqs = {r.component_id: r for r in order.material_requirements}

        assert reqs["COMP-001"].required_quantity == pytest.approx(21.0)
        assert reqs["COMP-002"].required_quantity == pytest.approx(30.9)
        assert reqs["COMP-001"].estimated_cost == pytest.approx(200.0)

    def test_capacity_requirements(self, service):
        order = create(service, quantity=10)
        assembly, qc = order.capacity_requirements

        assert assembly.work_center_id == "WC-001"
        assert assembly.setup_time == 30
        assert assembly.run_time == 150
        assert assembly.total_time == 180
        assert qc.total_time == 15 + 50
        assert order.minutes_for("WC-001") == 180

    def test_standard_cost(self, service):
        """P1.4: (custo BOM + custo routing) x quantidade."""
        order = create(service, quantity=10)
        # BOM: 2 x 10 + 3 x 15 = 65; routing: 75 + 60 = 135
        assert order.standard_cost == pytest.approx(2000.0)

    def test_snapshot_not_affected_by_bom_changes(self, service, bom_engine):
        """P1.5: Alterar a BOM depois não altera ordens existentes."""
        order = create(service, quantity=10)
        bom_engine.add_bom(BillOfMaterials(
            product_id="FG-001",
            components=[BOMComponent("COMP-999", quantity_per=7)],
        ))

        assert [r.component_id for r in order.material_requirements] == ["COMP-001", "COMP-002"]
        with pytest.raises(dataclasses.FrozenInstanceError):
            order.material_requirements[0].required_quantity = 0

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_invalid_quantity(self, service, quantity):
        with pytest.raises(InvalidInputError):
            create(service, quantity=quantity)

    def test_end_before_start(self, service):
        with pytest.raises(InvalidInputError):
            service.create_production_order("FG-001", 10, date(2025, 3, 4), date(2025, 3, 3))

    def test_unknown_product(self, service):
        with pytest.raises(NotFoundError):
            service.create_production_order("NOPE", 10, date(2025, 3, 3), date(2025, 3, 4))


class TestP2_Lifecycle:
    """P2: planned -> released -> in_progress -> completed."""

    def test_release_reserves_materials(self, service, stock):
        order = create(service, quantity=10)
        released = service.release(order.order_id)

        assert released.status == OrderStatus.RELEASED
        assert stock.items["COMP-001"].quantity_committed == pytest.approx(21.0)
        assert stock.get_available("COMP-001") == pytest.approx(1000 - 21.0)

    def test_release_with_shortage(self, bom_engine, order_repository):
        stock = StockState({"COMP-001": 5, "COMP-002": 1000})
        service = ProductionOrderService(bom_engine, order_repository, stock)
        order = create(service, quantity=10)

        with pytest.raises(MaterialShortageError) as exc:
            service.release(order.order_id)

        assert exc.value.shortages and "COMP-001" in exc.value.shortages[0]
        assert order_repository.get(order.order_id).status == OrderStatus.PLANNED
        assert stock.items["COMP-001"].quantity_committed == 0

    def test_full_lifecycle(self, service):
        order = create(service, quantity=10)
        service.release(order.order_id)
        started = service.start(order.order_id)
        assert started.status == OrderStatus.IN_PROGRESS
        assert started.actual_start == datetime(2025, 3, 1, 8, 0)

        done = service.complete(order.order_id, quantity_produced=9.5, quantity_scrap=0.5, actual_cost=2500.0)

        assert done.status == OrderStatus.COMPLETED
        assert done.yield_pct == pytest.approx(95.0)
        assert done.scrap_pct == pytest.approx(5.0)
        assert done.variance == pytest.approx(500.0)
        assert done.efficiency_pct == pytest.approx(80.0)

    def test_complete_requires_in_progress(self, service):
        order = create(service)
        with pytest.raises(InvalidTransitionError):
            service.complete(order.order_id, quantity_produced=10)

    def test_release_twice(self, service):
        order = create(service)
        service.release(order.order_id)
        with pytest.raises(InvalidTransitionError):
            service.release(order.order_id)

    def test_cancel_planned(self, service):
        order = create(service)
        assert service.cancel(order.order_id).status == OrderStatus.CANCELLED
        with pytest.raises(InvalidTransitionError):
            service.release(order.order_id)

    def test_cancel_released_frees_materials(self, service, stock):
        order = create(service, quantity=10)
        service.release(order.order_id)
        assert stock.get_available("COMP-001") == pytest.approx(1000 - 21.0)

        service.cancel(order.order_id)

        assert stock.get_available("COMP-001") == pytest.approx(1000.0)

    def test_unknown_order(self, service):
        with pytest.raises(NotFoundError):
            service.release("missing")

    def test_negative_completion_figures(self, service):
        order = create(service)
        service.release(order.order_id)
        service.start(order.order_id)
        with pytest.raises(InvalidInputError):
            service.complete(order.order_id, quantity_produced=-1)
