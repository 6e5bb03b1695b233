"""
ProdPlan Core - Planning
========================

Work centers, production orders and finite capacity analysis.

PlanningEngine (prodplan.planning.planning_engine) wires these together with
MRP and scheduling.
"""

from prodplan.planning.work_centers import WorkCenter, WorkCenterRegistry
from prodplan.planning.production_orders import (
    OrderPriority,
    OrderStatus,
    MaterialRequirement,
    CapacityRequirement,
    ProductionOrder,
    ProductionOrderRepository,
    InMemoryProductionOrderRepository,
    ProductionOrderService,
)
from prodplan.planning.capacity_planner import (
    UtilizationStatus,
    classify_utilization,
    DailyCapacity,
    Bottleneck,
    CapacityRecommendation,
    CapacityAnalysis,
    CapacityPlanner,
)

__all__ = [
    "WorkCenter",
    "WorkCenterRegistry",
    "OrderPriority",
    "OrderStatus",
    "MaterialRequirement",
    "CapacityRequirement",
    "ProductionOrder",
    "ProductionOrderRepository",
    "InMemoryProductionOrderRepository",
    "ProductionOrderService",
    "UtilizationStatus",
    "classify_utilization",
    "DailyCapacity",
    "Bottleneck",
    "CapacityRecommendation",
    "CapacityAnalysis",
    "CapacityPlanner",
]
