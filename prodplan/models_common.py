"""
ProdPlan Core - Common Models
=============================

Modelos Pydantic para os pedidos que chegam de fora do core
(jobs de scheduling, execuções de MRP, análises de capacidade).
Validados à entrada e convertidos para os tipos internos (dataclasses).
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from prodplan.scheduling.types import DispatchRule, Job, JobOperation


# ═══════════════════════════════════════════════════════════════════════════════
# SCHEDULING
# ═══════════════════════════════════════════════════════════════════════════════

class OperationSpec(BaseModel):
    """Operação de um job (horas)."""
    operation_id: str
    work_center_id: str
    processing_time: float = Field(ge=0.0, description="Tempo de processamento (h)")
    setup_time: float = Field(default=0.0, ge=0.0, description="Tempo de setup (h)")


class JobSpec(BaseModel):
    """Job a agendar."""
    job_id: str
    operations: List[OperationSpec] = Field(default_factory=list)
    due_date: Optional[float] = Field(
        default=None,
        description="Horas desde a origem do plano"
    )
    priority: int = 0

    def to_job(self) -> Job:
        return Job(
            job_id=self.job_id,
            operations=[
                JobOperation(
                    operation_id=op.operation_id,
                    work_center_id=op.work_center_id,
                    processing_time=op.processing_time,
                    setup_time=op.setup_time,
                )
                for op in self.operations
            ],
            due_date=self.due_date,
            priority=self.priority,
        )


class SchedulingRequest(BaseModel):
    """Pedido de scheduling."""
    jobs: List[JobSpec] = Field(default_factory=list)
    strategy: Optional[DispatchRule] = None
    now: float = 0.0
    seed: Optional[int] = None
    time_limit_sec: Optional[float] = Field(default=None, gt=0.0)

    class Config:
        use_enum_values = True

    def to_jobs(self) -> List[Job]:
        return [spec.to_job() for spec in self.jobs]


# ═══════════════════════════════════════════════════════════════════════════════
# MRP / CAPACITY
# ═══════════════════════════════════════════════════════════════════════════════

class MRPRequest(BaseModel):
    """Pedido de execução de MRP."""
    product_id: str
    demand_quantity: float = Field(gt=0.0)
    demand_date: date
    horizon_days: Optional[int] = Field(default=None, gt=0)
    start_date: Optional[date] = None


class CapacityRequest(BaseModel):
    """Pedido de análise de capacidade (end exclusivo)."""
    work_center_id: str
    start: date
    end: date
