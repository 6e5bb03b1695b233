"""
ProdPlan Core - Scheduling Module
=================================

Job-shop scheduling:
- Heurísticas de dispatching (FCFS, EDD, SPT, CR)
- Algoritmo genético sobre permutações de jobs

Todas as estratégias partilham o construtor greedy build_schedule().
A entrada de alto nível é prodplan.scheduling.engine.schedule_jobs().
"""

from prodplan.scheduling.types import (
    DispatchRule,
    JobOperation,
    Job,
    ScheduledSlot,
    Schedule,
    JobShopResult,
)
from prodplan.scheduling.heuristics import (
    order_fcfs,
    order_edd,
    order_spt,
    order_critical_ratio,
    DISPATCH_FUNCTIONS,
    get_ordering,
    validate_jobs,
    build_schedule,
    HeuristicScheduler,
)
from prodplan.scheduling.genetic import (
    GeneticScheduler,
    GeneticResult,
    order_crossover,
    swap_mutation,
)

__all__ = [
    "DispatchRule",
    "JobOperation",
    "Job",
    "ScheduledSlot",
    "Schedule",
    "JobShopResult",
    "order_fcfs",
    "order_edd",
    "order_spt",
    "order_critical_ratio",
    "DISPATCH_FUNCTIONS",
    "get_ordering",
    "validate_jobs",
    "build_schedule",
    "HeuristicScheduler",
    "GeneticScheduler",
    "GeneticResult",
    "order_crossover",
    "swap_mutation",
]
