"""
ProdPlan Core - Scheduling Types
================================

Tipos comuns para o job-shop scheduler (regras de dispatching e GA).

Estrutura:
- Job / JobOperation: Input do scheduler (tempos em horas)
- ScheduledSlot: Uma operação agendada num work center
- Schedule: work center -> slots ordenados por início
- JobShopResult: Output unificado (schedule + performance)
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import pandas as pd

if TYPE_CHECKING:
    from prodplan.evaluation.schedule_evaluator import SchedulePerformance


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class DispatchRule(str, Enum):
    """Estratégias de scheduling."""
    FCFS = "fcfs"                            # First Come, First Served
    EDD = "edd"                              # Earliest Due Date
    SPT = "spt"                              # Shortest Processing Time
    CRITICAL_RATIO = "critical_ratio"        # (due - now) / total time
    GENETIC_ALGORITHM = "genetic_algorithm"  # GA sobre permutações de jobs


# ═══════════════════════════════════════════════════════════════════════════════
# INPUT TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class JobOperation:
    """Operação de um job, ligada a um único work center (horas)."""
    operation_id: str
    work_center_id: str
    processing_time: float
    setup_time: float = 0.0

    @property
    def duration(self) -> float:
        return self.setup_time + self.processing_time


@dataclass
class Job:
    """
    Unidade de scheduling: operações em sequência de processo.

    due_date is measured in hours from the schedule origin.
    """
    job_id: str
    operations: List[JobOperation] = field(default_factory=list)
    due_date: Optional[float] = None
    priority: int = 0
    product_id: Optional[str] = None
    order_number: Optional[str] = None

    @property
    def total_time(self) -> float:
        return sum(op.duration for op in self.operations)


# ═══════════════════════════════════════════════════════════════════════════════
# OUTPUT TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ScheduledSlot:
    """Uma operação agendada."""
    job_id: str
    operation_id: str
    work_center_id: str
    start_time: float
    end_time: float
    setup_time: float = 0.0
    processing_time: float = 0.0

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


class Schedule:
    """Sequência de slots por work center."""

    def __init__(self, slots: Optional[Iterable[ScheduledSlot]] = None):
        self.by_work_center: Dict[str, List[ScheduledSlot]] = defaultdict(list)
        for slot in slots or ():
            self.add(slot)

    def add(self, slot: ScheduledSlot) -> None:
        sequence = self.by_work_center[slot.work_center_id]
        sequence.append(slot)
        if len(sequence) > 1 and sequence[-2].start_time > slot.start_time:
            sequence.sort(key=lambda s: s.start_time)

    @property
    def work_center_ids(self) -> List[str]:
        return list(self.by_work_center.keys())

    def slots(self) -> List[ScheduledSlot]:
        return [s for seq in self.by_work_center.values() for s in seq]

    def slots_for_job(self, job_id: str) -> List[ScheduledSlot]:
        return sorted(
            (s for s in self.slots() if s.job_id == job_id),
            key=lambda s: s.start_time,
        )

    @property
    def makespan(self) -> float:
        return max((s.end_time for s in self.slots()), default=0.0)

    def __len__(self) -> int:
        return sum(len(seq) for seq in self.by_work_center.values())

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "work_center_id": s.work_center_id,
                    "job_id": s.job_id,
                    "operation_id": s.operation_id,
                    "start_time": s.start_time,
                    "end_time": s.end_time,
                    "setup_time": s.setup_time,
                    "processing_time": s.processing_time,
                }
                for s in self.slots()
            ],
            columns=[
                "work_center_id", "job_id", "operation_id",
                "start_time", "end_time", "setup_time", "processing_time",
            ],
        )

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            wc: [
                {
                    "job_id": s.job_id,
                    "operation_id": s.operation_id,
                    "start_time": s.start_time,
                    "end_time": s.end_time,
                }
                for s in seq
            ]
            for wc, seq in self.by_work_center.items()
        }


@dataclass
class JobShopResult:
    """Resultado unificado do scheduler."""
    strategy: DispatchRule
    schedule: Schedule
    performance: "SchedulePerformance"
    job_order: List[str] = field(default_factory=list)
    solve_time_sec: float = 0.0
    history: List[float] = field(default_factory=list)  # GA: melhor makespan por geração
    timed_out: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "job_order": list(self.job_order),
            "solve_time_sec": round(self.solve_time_sec, 4),
            "timed_out": self.timed_out,
            "schedule": self.schedule.to_dict(),
            "performance": self.performance.to_dict(),
            "history": list(self.history),
        }
