"""
ProdPlan Core - Schedule Evaluator

Performance KPIs and feasibility checks for job-shop schedules:
- makespan, flow time, lateness, tardiness
- utilization per work center
- overlap / precedence violation detection

Pure functions: the genetic optimizer uses the makespan as its fitness signal.
All times are hours from the schedule origin.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np

from prodplan.scheduling.types import Job, Schedule

logger = logging.getLogger(__name__)

_EPS = 1e-9


# ============================================================
# KPI COMPUTATION
# ============================================================

@dataclass
class SchedulePerformance:
    """KPIs of a schedule."""

    makespan: float = 0.0
    average_flow_time: float = 0.0
    average_lateness: float = 0.0  # negative = early on average

    # Delivery
    max_lateness: float = 0.0
    total_tardiness: float = 0.0
    late_jobs: int = 0

    # Resources (percent of makespan)
    utilization_by_work_center: Dict[str, float] = field(default_factory=dict)
    average_utilization: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'makespan': round(self.makespan, 2),
            'average_flow_time': round(self.average_flow_time, 2),
            'average_lateness': round(self.average_lateness, 2),
            'max_lateness': round(self.max_lateness, 2),
            'total_tardiness': round(self.total_tardiness, 2),
            'late_jobs': self.late_jobs,
            'utilization_by_work_center': {
                wc: round(u, 1) for wc, u in self.utilization_by_work_center.items()
            },
            'average_utilization': round(self.average_utilization, 1),
        }


def evaluate_schedule(schedule: Schedule, jobs: List[Job]) -> SchedulePerformance:
    """
    Compute schedule KPIs.

    Flow time of a job is the end of its last scheduled operation; lateness
    is flow time minus due date, for jobs that have one.
    """
    makespan = schedule.makespan

    completion: Dict[str, float] = {}
    for slot in schedule.slots():
        completion[slot.job_id] = max(completion.get(slot.job_id, 0.0), slot.end_time)

    flow_times = np.array([completion.get(job.job_id, 0.0) for job in jobs], dtype=float)
    lateness = np.array(
        [completion.get(job.job_id, 0.0) - job.due_date for job in jobs if job.due_date is not None],
        dtype=float,
    )

    utilization: Dict[str, float] = {}
    for wc, seq in schedule.by_work_center.items():
        busy = sum(s.duration for s in seq)
        utilization[wc] = busy / makespan * 100 if makespan > 0 else 0.0

    return SchedulePerformance(
        makespan=makespan,
        average_flow_time=float(np.mean(flow_times)) if flow_times.size else 0.0,
        average_lateness=float(np.mean(lateness)) if lateness.size else 0.0,
        max_lateness=float(np.max(lateness)) if lateness.size else 0.0,
        total_tardiness=float(np.sum(np.maximum(lateness, 0.0))) if lateness.size else 0.0,
        late_jobs=int(np.sum(lateness > _EPS)) if lateness.size else 0,
        utilization_by_work_center=utilization,
        average_utilization=float(np.mean(list(utilization.values()))) if utilization else 0.0,
    )


# ============================================================
# FEASIBILITY
# ============================================================

def check_schedule_feasibility(schedule: Schedule, jobs: List[Job]) -> List[str]:
    """
    List constraint violations of a schedule (empty when feasible).

    Checks resource exclusivity per work center, process-flow precedence
    within each job and that every operation was scheduled exactly once.
    """
    violations: List[str] = []

    for wc, seq in schedule.by_work_center.items():
        ordered = sorted(seq, key=lambda s: s.start_time)
        for prev, nxt in zip(ordered, ordered[1:]):
            if nxt.start_time < prev.end_time - _EPS:
                violations.append(
                    f"overlap on {wc}: {prev.job_id}/{prev.operation_id} ends {prev.end_time:g}, "
                    f"{nxt.job_id}/{nxt.operation_id} starts {nxt.start_time:g}"
                )

    placed: Dict[tuple, list] = {}
    for slot in schedule.slots():
        placed.setdefault((slot.job_id, slot.operation_id), []).append(slot)

    for job in jobs:
        previous = None
        for op in job.operations:
            slots = placed.get((job.job_id, op.operation_id), [])
            if not slots:
                violations.append(f"missing operation {job.job_id}/{op.operation_id}")
                previous = None
                continue
            if len(slots) > 1:
                violations.append(f"operation {job.job_id}/{op.operation_id} scheduled {len(slots)} times")
            slot = slots[0]
            if previous is not None and slot.start_time < previous.end_time - _EPS:
                violations.append(
                    f"precedence in {job.job_id}: {op.operation_id} starts {slot.start_time:g} "
                    f"before {previous.operation_id} ends {previous.end_time:g}"
                )
            previous = slot

    if violations:
        logger.warning(f"Schedule has {len(violations)} violation(s)")
    return violations
