"""
Testes para o Job-Shop Scheduler - regras de dispatching e construtor greedy
"""
import pytest

from prodplan.errors import InfeasibleError, InvalidInputError, NotFoundError
from prodplan.evaluation.schedule_evaluator import check_schedule_feasibility
from prodplan.planning.work_centers import WorkCenter, WorkCenterRegistry
from prodplan.scheduling.engine import compare_strategies, schedule_jobs
from prodplan.scheduling.heuristics import (
    DISPATCH_FUNCTIONS,
    HeuristicScheduler,
    build_schedule,
    get_ordering,
    order_critical_ratio,
    order_edd,
    order_spt,
)
from prodplan.scheduling.types import DispatchRule, Job, JobOperation
from prodplan.settings import Settings


def ids(jobs):
    return [job.job_id for job in jobs]


class TestS1_Ordering:
    """S1: Funções de ordenação por regra."""

    def test_every_rule_has_an_ordering(self):
        for rule in DispatchRule:
            if rule != DispatchRule.GENETIC_ALGORITHM:
                assert rule in DISPATCH_FUNCTIONS

    def test_edd(self, shop_jobs):
        assert ids(order_edd(list(reversed(shop_jobs)))) == ["J1", "J2", "J3"]

    def test_spt(self, shop_jobs):
        assert ids(order_spt(shop_jobs)) == ["J3", "J2", "J1"]

    def test_critical_ratio(self, shop_jobs):
        # 10/7, 20/6, 30/4
        assert ids(order_critical_ratio(shop_jobs)) == ["J1", "J2", "J3"]

    def test_critical_ratio_uses_now(self):
        jobs = [
            Job("A", [JobOperation("A-1", "M1", 10.0)], due_date=30.0),
            Job("B", [JobOperation("B-1", "M1", 1.0)], due_date=24.0),
        ]
        # now=0: A=3.0, B=24.0 ; now=20: A=1.0, B=4.0
        assert ids(order_critical_ratio(jobs, now=0.0)) == ["A", "B"]
        assert ids(get_ordering(DispatchRule.CRITICAL_RATIO, now=20.0)(jobs)) == ["A", "B"]
        assert ids(order_critical_ratio(jobs, now=29.0)) == ["B", "A"]

    def test_ties_keep_input_order(self):
        jobs = [
            Job(f"J{i}", [JobOperation(f"J{i}-1", "M1", 2.0)], due_date=5.0)
            for i in range(5)
        ]
        for rule in (DispatchRule.FCFS, DispatchRule.EDD, DispatchRule.SPT, DispatchRule.CRITICAL_RATIO):
            assert ids(get_ordering(rule)(jobs)) == ["J0", "J1", "J2", "J3", "J4"]

    def test_jobs_without_due_date_last(self):
        jobs = [
            Job("X", [JobOperation("X-1", "M1", 1.0)]),
            Job("Y", [JobOperation("Y-1", "M1", 1.0)], due_date=3.0),
        ]
        assert ids(order_edd(jobs)) == ["Y", "X"]


class TestS2_GreedyConstruction:
    """S2: Construtor greedy partilhado."""

    def test_job_cursor_and_machine_marker(self, shop_jobs):
        schedule = build_schedule(shop_jobs)

        j2 = schedule.slots_for_job("J2")
        assert (j2[0].start_time, j2[0].end_time) == (1.0, 6.0)
        # M2 is busy with J1 until 7
        assert (j2[1].start_time, j2[1].end_time) == (7.0, 8.0)
        assert schedule.makespan == 10.0

    def test_setup_time_included(self):
        jobs = [Job("A", [JobOperation("A-1", "M1", processing_time=2.0, setup_time=0.5)])]
        slot = build_schedule(jobs).slots()[0]

        assert slot.end_time - slot.start_time == 2.5
        assert slot.setup_time == 0.5

    def test_fresh_state_per_call(self, shop_jobs):
        first = build_schedule(shop_jobs)
        second = build_schedule(shop_jobs)

        assert first.to_dict() == second.to_dict()

    def test_slots_ordered_per_work_center(self, shop_jobs):
        schedule = build_schedule(order_spt(shop_jobs))
        for seq in schedule.by_work_center.values():
            starts = [s.start_time for s in seq]
            assert starts == sorted(starts)


class TestS3_Feasibility:
    """S3: Todas as estratégias produzem schedules viáveis."""

    @pytest.mark.parametrize("strategy", list(DispatchRule))
    def test_feasible_for_every_strategy(self, shop_jobs, strategy):
        result = schedule_jobs(shop_jobs, strategy, seed=7, generations=15, population_size=10)

        assert check_schedule_feasibility(result.schedule, shop_jobs) == []
        for job in shop_jobs:
            slots = result.schedule.slots_for_job(job.job_id)
            for prev, nxt in zip(slots, slots[1:]):
                assert nxt.start_time >= prev.end_time

    @pytest.mark.parametrize("strategy", list(DispatchRule))
    def test_feasible_larger_instance(self, strategy):
        jobs = [
            Job(
                f"J{i}",
                [
                    JobOperation(f"J{i}-{k}", f"M{(i + k) % 3}", processing_time=1.0 + (i * k) % 4, setup_time=0.25)
                    for k in range(3)
                ],
                due_date=float(5 + 3 * i),
            )
            for i in range(8)
        ]
        result = schedule_jobs(jobs, strategy, seed=1, generations=10, population_size=12)

        assert check_schedule_feasibility(result.schedule, jobs) == []
        assert len(result.schedule) == 24


class TestS4_StrategySelection:
    """S4: EDD e SPT produzem schedules diferentes mas viáveis."""

    def test_edd_vs_spt(self, shop_jobs):
        edd = schedule_jobs(shop_jobs, DispatchRule.EDD)
        spt = schedule_jobs(shop_jobs, "spt")

        assert edd.job_order == ["J1", "J2", "J3"]
        assert spt.job_order == ["J3", "J2", "J1"]
        assert edd.performance.makespan == pytest.approx(10.0)
        assert spt.performance.makespan == pytest.approx(14.0)
        assert check_schedule_feasibility(edd.schedule, shop_jobs) == []
        assert check_schedule_feasibility(spt.schedule, shop_jobs) == []

    def test_deterministic(self, shop_jobs):
        a = schedule_jobs(shop_jobs, DispatchRule.SPT)
        b = schedule_jobs(shop_jobs, DispatchRule.SPT)
        assert a.schedule.to_dict() == b.schedule.to_dict()

    def test_default_strategy_from_settings(self, shop_jobs):
        Settings.override(default_dispatch_rule="spt")
        assert schedule_jobs(shop_jobs).strategy == DispatchRule.SPT

    def test_compare_strategies(self, shop_jobs):
        results = compare_strategies(shop_jobs)

        assert set(results) == {
            DispatchRule.FCFS, DispatchRule.EDD, DispatchRule.SPT, DispatchRule.CRITICAL_RATIO
        }
        assert results[DispatchRule.SPT].performance.makespan == pytest.approx(14.0)

    def test_heuristic_scheduler_class(self, shop_jobs):
        scheduler = HeuristicScheduler(DispatchRule.EDD)
        assert scheduler.schedule(shop_jobs).makespan == pytest.approx(10.0)

    def test_unknown_strategy(self, shop_jobs):
        with pytest.raises(ValueError):
            schedule_jobs(shop_jobs, "lifo")


class TestS5_Validation:
    """S5: Validação antes de qualquer cálculo."""

    def test_empty_job_list(self):
        with pytest.raises(InvalidInputError):
            schedule_jobs([], DispatchRule.EDD)

    def test_job_without_operations(self):
        with pytest.raises(InvalidInputError):
            schedule_jobs([Job("A", [])], DispatchRule.EDD)

    def test_duplicate_job_ids(self):
        jobs = [Job("A", [JobOperation("1", "M1", 1.0)]), Job("A", [JobOperation("1", "M1", 1.0)])]
        with pytest.raises(InvalidInputError):
            schedule_jobs(jobs, DispatchRule.EDD)

    def test_duplicate_operation_ids(self):
        job = Job("A", [JobOperation("1", "M1", 1.0), JobOperation("1", "M2", 1.0)])
        with pytest.raises(InvalidInputError):
            schedule_jobs([job], DispatchRule.EDD)

    def test_negative_time(self):
        with pytest.raises(InvalidInputError):
            schedule_jobs([Job("A", [JobOperation("1", "M1", -1.0)])], DispatchRule.EDD)

    def test_zero_duration_is_infeasible(self):
        with pytest.raises(InfeasibleError):
            schedule_jobs([Job("A", [JobOperation("1", "M1", 0.0)])], DispatchRule.EDD)

    def test_unknown_work_center(self, shop_jobs):
        registry = WorkCenterRegistry([WorkCenter("M1")])
        with pytest.raises(NotFoundError):
            schedule_jobs(shop_jobs, DispatchRule.EDD, work_centers=registry)

    def test_zero_capacity_work_center(self, shop_jobs):
        registry = WorkCenterRegistry([WorkCenter("M1"), WorkCenter("M2", daily_capacity=0)])
        with pytest.raises(InfeasibleError):
            schedule_jobs(shop_jobs, DispatchRule.EDD, work_centers=registry)
