"""
ProdPlan Core - Evaluation
==========================

KPIs e verificação de viabilidade de schedules.
"""

from prodplan.evaluation.schedule_evaluator import (
    SchedulePerformance,
    evaluate_schedule,
    check_schedule_feasibility,
)

__all__ = [
    "SchedulePerformance",
    "evaluate_schedule",
    "check_schedule_feasibility",
]
