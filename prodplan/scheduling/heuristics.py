"""
ProdPlan Core - Heuristic Dispatching Rules
===========================================

Implementa regras de dispatching clássicas para job-shop scheduling:
- FCFS: First Come, First Served
- EDD: Earliest Due Date
- SPT: Shortest Processing Time
- CR: Critical Ratio

Cada regra apenas ordena os jobs; o construtor greedy (build_schedule) é
partilhado por todas as regras e pelo algoritmo genético.
"""

from __future__ import annotations

import logging
import time
from functools import partial
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from prodplan.errors import InfeasibleError, InvalidInputError
from prodplan.scheduling.types import DispatchRule, Job, Schedule, ScheduledSlot

if TYPE_CHECKING:
    from prodplan.planning.work_centers import WorkCenterRegistry

logger = logging.getLogger(__name__)

OrderingFunction = Callable[[List[Job]], List[Job]]


# ═══════════════════════════════════════════════════════════════════════════════
# DISPATCHING FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def order_fcfs(jobs: List[Job]) -> List[Job]:
    """
    FCFS - First Come, First Served.

    Mantém a ordem de chegada.
    """
    return list(jobs)


def order_edd(jobs: List[Job]) -> List[Job]:
    """
    EDD - Earliest Due Date.

    Ordena por data de entrega (mais cedo primeiro).
    Minimiza lateness máximo.
    """
    def due_key(job: Job) -> float:
        # Jobs sem due_date vão para o fim
        return job.due_date if job.due_date is not None else float("inf")

    return sorted(jobs, key=due_key)


def order_spt(jobs: List[Job]) -> List[Job]:
    """
    SPT - Shortest Processing Time.

    Ordena por tempo total (setup + processamento) do job.
    Minimiza tempo médio de fluxo.
    """
    return sorted(jobs, key=lambda job: job.total_time)


def order_critical_ratio(jobs: List[Job], now: float = 0.0) -> List[Job]:
    """
    CR - Critical Ratio.

    CR = (due_date - now) / total_time

    CR < 1: atrasado ou vai atrasar
    CR = 1: on schedule
    CR > 1: à frente

    Ordena por CR (menor primeiro = mais crítico).
    """
    def cr_key(job: Job) -> float:
        if job.due_date is None:
            return float("inf")
        return (job.due_date - now) / job.total_time

    return sorted(jobs, key=cr_key)


DISPATCH_FUNCTIONS: Dict[DispatchRule, OrderingFunction] = {
    DispatchRule.FCFS: order_fcfs,
    DispatchRule.EDD: order_edd,
    DispatchRule.SPT: order_spt,
    DispatchRule.CRITICAL_RATIO: order_critical_ratio,
}


def get_ordering(rule: DispatchRule, now: float = 0.0) -> OrderingFunction:
    """Ordering function of a dispatch rule."""
    rule = DispatchRule(rule)
    if rule == DispatchRule.CRITICAL_RATIO:
        return partial(order_critical_ratio, now=now)
    try:
        return DISPATCH_FUNCTIONS[rule]
    except KeyError:
        raise InvalidInputError(f"{rule.value} is not a dispatch rule") from None


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATION
# ═══════════════════════════════════════════════════════════════════════════════

def validate_jobs(jobs: List[Job], work_centers: Optional["WorkCenterRegistry"] = None) -> None:
    """
    Reject malformed job lists before any scheduling work.

    Raises:
        InvalidInputError: empty list, job without operations, duplicate job or operation ids,
            negative times
        InfeasibleError: zero-duration operation, zero-capacity work center
        NotFoundError: unknown work center (only when `work_centers` is given)
    """
    if not jobs:
        raise InvalidInputError("No jobs to schedule")

    seen = set()
    for job in jobs:
        if job.job_id in seen:
            raise InvalidInputError(f"Duplicate job id {job.job_id}")
        seen.add(job.job_id)

        if not job.operations:
            raise InvalidInputError(f"Job {job.job_id} has no operations")

        operation_ids = [op.operation_id for op in job.operations]
        if len(set(operation_ids)) != len(operation_ids):
            raise InvalidInputError(f"Job {job.job_id} has duplicate operation ids: {operation_ids}")

        for op in job.operations:
            if op.setup_time < 0 or op.processing_time < 0:
                raise InvalidInputError(
                    f"Job {job.job_id} operation {op.operation_id}: negative time"
                )
            if op.duration <= 0:
                raise InfeasibleError(
                    f"Job {job.job_id} operation {op.operation_id} has no capacity requirement "
                    f"(zero duration)"
                )
            if work_centers is not None:
                wc = work_centers.get(op.work_center_id)
                if wc.daily_capacity <= 0:
                    raise InfeasibleError(
                        f"Job {job.job_id} operation {op.operation_id} is routed to "
                        f"work center {op.work_center_id} with zero capacity"
                    )


# ═══════════════════════════════════════════════════════════════════════════════
# GREEDY CONSTRUCTOR
# ═══════════════════════════════════════════════════════════════════════════════

def build_schedule(ordered_jobs: List[Job]) -> Schedule:
    """
    Place each job's operations in the given job order.

    start = max(job cursor, work center next-free); both advance to the end.
    Non-preemptive, single pass: always feasible, not necessarily optimal.
    """
    schedule = Schedule()
    machine_availability: Dict[str, float] = {}

    for job in ordered_jobs:
        cursor = 0.0
        for op in job.operations:
            start = max(cursor, machine_availability.get(op.work_center_id, 0.0))
            end = start + op.duration
            schedule.add(ScheduledSlot(
                job_id=job.job_id,
                operation_id=op.operation_id,
                work_center_id=op.work_center_id,
                start_time=start,
                end_time=end,
                setup_time=op.setup_time,
                processing_time=op.processing_time,
            ))
            cursor = end
            machine_availability[op.work_center_id] = end

    return schedule


# ═══════════════════════════════════════════════════════════════════════════════
# HEURISTIC SCHEDULER CLASS
# ═══════════════════════════════════════════════════════════════════════════════

class HeuristicScheduler:
    """
    Scheduler com uma regra de dispatching fixa.
    """

    def __init__(self, rule: DispatchRule = DispatchRule.EDD, now: float = 0.0):
        self.rule = DispatchRule(rule)
        self.now = now
        self._order = get_ordering(self.rule, now)

    def order_jobs(self, jobs: List[Job]) -> List[Job]:
        return self._order(jobs)

    def schedule(self, jobs: List[Job]) -> Schedule:
        t0 = time.perf_counter()
        ordered = self.order_jobs(jobs)
        schedule = build_schedule(ordered)
        logger.debug(
            f"{self.rule.value}: {len(jobs)} jobs, makespan {schedule.makespan:.2f}h "
            f"in {time.perf_counter() - t0:.4f}s"
        )
        return schedule
