"""
ProdPlan Core
=============

Production planning and scheduling core:
- MRP (time-phased netting, purchase/production recommendations)
- Finite capacity analysis per work center
- Job-shop scheduling (FCFS, EDD, SPT, CR, genetic algorithm)
- Schedule performance evaluation
"""

from prodplan.errors import (
    PlanningError,
    NotFoundError,
    InvalidInputError,
    InvalidTransitionError,
    InfeasibleError,
    MaterialShortageError,
)
from prodplan.settings import PlannerSettings, Settings

from prodplan.smart_inventory import (
    BOMComponent,
    BillOfMaterials,
    RoutingOperation,
    Routing,
    BOMRoutingProvider,
    BOMEngine,
    InventorySnapshot,
    MaterialAvailability,
    StockState,
    MRPEngine,
    MRPResult,
    MRPTimeBucket,
)
from prodplan.scheduling import (
    DispatchRule,
    Job,
    JobOperation,
    Schedule,
    ScheduledSlot,
    JobShopResult,
    GeneticScheduler,
)
from prodplan.evaluation import SchedulePerformance, evaluate_schedule, check_schedule_feasibility
from prodplan.scheduling.engine import schedule_jobs, compare_strategies, job_from_production_order
from prodplan.planning import (
    WorkCenter,
    WorkCenterRegistry,
    ProductionOrder,
    ProductionOrderService,
    InMemoryProductionOrderRepository,
    CapacityPlanner,
    CapacityAnalysis,
)
from prodplan.planning.planning_engine import PlanningEngine

__version__ = "1.0.0"

__all__ = [
    # Errors
    "PlanningError",
    "NotFoundError",
    "InvalidInputError",
    "InvalidTransitionError",
    "InfeasibleError",
    "MaterialShortageError",
    # Settings
    "PlannerSettings",
    "Settings",
    # Master data / inventory / MRP
    "BOMComponent",
    "BillOfMaterials",
    "RoutingOperation",
    "Routing",
    "BOMRoutingProvider",
    "BOMEngine",
    "InventorySnapshot",
    "MaterialAvailability",
    "StockState",
    "MRPEngine",
    "MRPResult",
    "MRPTimeBucket",
    # Scheduling
    "DispatchRule",
    "Job",
    "JobOperation",
    "Schedule",
    "ScheduledSlot",
    "JobShopResult",
    "GeneticScheduler",
    "schedule_jobs",
    "compare_strategies",
    "job_from_production_order",
    # Evaluation
    "SchedulePerformance",
    "evaluate_schedule",
    "check_schedule_feasibility",
    # Planning
    "WorkCenter",
    "WorkCenterRegistry",
    "ProductionOrder",
    "ProductionOrderService",
    "InMemoryProductionOrderRepository",
    "CapacityPlanner",
    "CapacityAnalysis",
    "PlanningEngine",
]
