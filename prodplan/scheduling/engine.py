"""
ProdPlan Core - Scheduling Entry Point
======================================

schedule_jobs(): validação + estratégia + avaliação num único passo.

Also converts production orders into scheduling jobs and compares several
strategies on the same job set.
"""

from __future__ import annotations

import logging
import random
import time
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Union

from prodplan.evaluation.schedule_evaluator import evaluate_schedule
from prodplan.planning.production_orders import OrderPriority, ProductionOrder
from prodplan.scheduling.genetic import GeneticScheduler
from prodplan.scheduling.heuristics import HeuristicScheduler, validate_jobs
from prodplan.scheduling.types import DispatchRule, Job, JobOperation, JobShopResult
from prodplan.settings import Settings

if TYPE_CHECKING:
    from prodplan.planning.work_centers import WorkCenterRegistry

logger = logging.getLogger(__name__)

_PRIORITY_RANK = {
    OrderPriority.LOW: 0,
    OrderPriority.NORMAL: 1,
    OrderPriority.HIGH: 2,
    OrderPriority.URGENT: 3,
}


def schedule_jobs(
    jobs: List[Job],
    strategy: Optional[Union[DispatchRule, str]] = None,
    work_centers: Optional["WorkCenterRegistry"] = None,
    now: float = 0.0,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    time_limit_sec: Optional[float] = None,
    population_size: Optional[int] = None,
    generations: Optional[int] = None,
    mutation_rate: Optional[float] = None,
) -> JobShopResult:
    """
    Schedule jobs with a dispatch rule or the genetic optimizer.

    Args:
        jobs: Jobs to schedule (times in hours)
        strategy: DispatchRule (default from settings)
        work_centers: Optional registry to validate work center references
        now: Reference time for the critical ratio
        rng, seed, time_limit_sec, population_size, generations, mutation_rate:
            genetic optimizer options

    Returns:
        JobShopResult with schedule and performance
    """
    rule = DispatchRule(strategy or Settings.get_config().default_dispatch_rule)
    validate_jobs(jobs, work_centers)

    logger.info(f"Scheduling {len(jobs)} jobs with {rule.value}")
    t0 = time.perf_counter()

    history: List[float] = []
    timed_out = False
    if rule == DispatchRule.GENETIC_ALGORITHM:
        optimizer = GeneticScheduler(
            population_size=population_size,
            generations=generations,
            mutation_rate=mutation_rate,
            rng=rng,
            seed=seed,
            time_limit_sec=time_limit_sec,
        )
        ga = optimizer.optimize(jobs)
        schedule = ga.schedule
        job_order = ga.job_order
        history = ga.history
        timed_out = ga.timed_out
    else:
        scheduler = HeuristicScheduler(rule, now=now)
        job_order = [job.job_id for job in scheduler.order_jobs(jobs)]
        schedule = scheduler.schedule(jobs)

    performance = evaluate_schedule(schedule, jobs)
    elapsed = time.perf_counter() - t0

    logger.info(
        f"{rule.value}: makespan {performance.makespan:.2f}h, "
        f"avg lateness {performance.average_lateness:.2f}h in {elapsed:.3f}s"
    )
    return JobShopResult(
        strategy=rule,
        schedule=schedule,
        performance=performance,
        job_order=job_order,
        solve_time_sec=elapsed,
        history=history,
        timed_out=timed_out,
    )


def compare_strategies(
    jobs: List[Job],
    strategies: Optional[Iterable[DispatchRule]] = None,
    **options,
) -> Dict[DispatchRule, JobShopResult]:
    """Run several strategies on the same jobs (default: every dispatch rule)."""
    if strategies is None:
        strategies = [
            DispatchRule.FCFS,
            DispatchRule.EDD,
            DispatchRule.SPT,
            DispatchRule.CRITICAL_RATIO,
        ]
    results = {DispatchRule(s): schedule_jobs(jobs, s, **options) for s in strategies}
    best = min(results.values(), key=lambda r: r.performance.makespan)
    logger.info(f"Best strategy by makespan: {best.strategy.value} ({best.performance.makespan:.2f}h)")
    return results


def job_from_production_order(order: ProductionOrder, due_date: Optional[float] = None) -> Job:
    """
    Build a scheduling job from a production order's capacity snapshot.

    Snapshot times are minutes; jobs are scheduled in hours.
    """
    operations = [
        JobOperation(
            operation_id=f"{req.sequence}",
            work_center_id=req.work_center_id,
            setup_time=req.setup_time / 60.0,
            processing_time=req.run_time / 60.0,
        )
        for req in sorted(order.capacity_requirements, key=lambda r: r.sequence)
    ]
    return Job(
        job_id=order.order_id,
        operations=operations,
        due_date=due_date,
        priority=_PRIORITY_RANK[order.priority],
        product_id=order.product_id,
        order_number=order.order_number,
    )
