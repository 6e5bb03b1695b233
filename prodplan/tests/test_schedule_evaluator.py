"""
Testes para o Schedule Evaluator - KPIs e verificação de viabilidade
"""
import pytest

from prodplan.evaluation.schedule_evaluator import (
    check_schedule_feasibility,
    evaluate_schedule,
)
from prodplan.scheduling.heuristics import build_schedule
from prodplan.scheduling.types import Job, JobOperation, Schedule, ScheduledSlot


class TestE1_KPIs:
    """E1: makespan, flow time, lateness, utilização."""

    def test_edd_schedule_kpis(self, shop_jobs):
        perf = evaluate_schedule(build_schedule(shop_jobs), shop_jobs)

        # J1 ends 7, J2 ends 8, J3 ends 10
        assert perf.makespan == pytest.approx(10.0)
        assert perf.average_flow_time == pytest.approx(25.0 / 3)
        assert perf.average_lateness == pytest.approx((-3 - 12 - 20) / 3)
        assert perf.utilization_by_work_center["M1"] == pytest.approx(80.0)
        assert perf.utilization_by_work_center["M2"] == pytest.approx(90.0)
        assert perf.average_utilization == pytest.approx(85.0)

    def test_tardiness(self):
        jobs = [
            Job("A", [JobOperation("A-1", "M1", 4.0)], due_date=2.0),
            Job("B", [JobOperation("B-1", "M1", 4.0)], due_date=10.0),
        ]
        perf = evaluate_schedule(build_schedule(jobs), jobs)

        # A: 4 - 2 = +2 ; B: 8 - 10 = -2
        assert perf.average_lateness == pytest.approx(0.0)
        assert perf.max_lateness == pytest.approx(2.0)
        assert perf.total_tardiness == pytest.approx(2.0)
        assert perf.late_jobs == 1

    def test_jobs_without_due_date_excluded_from_lateness(self):
        jobs = [Job("A", [JobOperation("A-1", "M1", 4.0)])]
        perf = evaluate_schedule(build_schedule(jobs), jobs)

        assert perf.average_flow_time == pytest.approx(4.0)
        assert perf.average_lateness == 0.0
        assert perf.late_jobs == 0

    def test_empty_schedule(self):
        perf = evaluate_schedule(Schedule(), [])

        assert perf.makespan == 0.0
        assert perf.utilization_by_work_center == {}

    def test_to_dict(self, shop_jobs):
        data = evaluate_schedule(build_schedule(shop_jobs), shop_jobs).to_dict()

        assert data["makespan"] == 10.0
        assert data["utilization_by_work_center"] == {"M1": 80.0, "M2": 90.0}


class TestE2_Feasibility:
    """E2: Deteção de sobreposições e violações de precedência."""

    def test_greedy_schedule_is_feasible(self, shop_jobs):
        assert check_schedule_feasibility(build_schedule(shop_jobs), shop_jobs) == []

    def test_overlap_detected(self):
        jobs = [
            Job("A", [JobOperation("A-1", "M1", 2.0)]),
            Job("B", [JobOperation("B-1", "M1", 2.0)]),
        ]
        schedule = Schedule([
            ScheduledSlot("A", "A-1", "M1", 0.0, 2.0),
            ScheduledSlot("B", "B-1", "M1", 1.0, 3.0),
        ])

        violations = check_schedule_feasibility(schedule, jobs)
        assert len(violations) == 1
        assert violations[0].startswith("overlap on M1")

    def test_precedence_violation_detected(self):
        jobs = [Job("A", [JobOperation("A-1", "M1", 2.0), JobOperation("A-2", "M2", 2.0)])]
        schedule = Schedule([
            ScheduledSlot("A", "A-1", "M1", 0.0, 2.0),
            ScheduledSlot("A", "A-2", "M2", 1.0, 3.0),
        ])

        violations = check_schedule_feasibility(schedule, jobs)
        assert len(violations) == 1
        assert violations[0].startswith("precedence in A")

    def test_missing_operation_detected(self):
        jobs = [Job("A", [JobOperation("A-1", "M1", 2.0), JobOperation("A-2", "M2", 2.0)])]
        schedule = Schedule([ScheduledSlot("A", "A-1", "M1", 0.0, 2.0)])

        assert check_schedule_feasibility(schedule, jobs) == ["missing operation A/A-2"]

    def test_schedule_keeps_slots_sorted(self):
        schedule = Schedule([
            ScheduledSlot("B", "B-1", "M1", 5.0, 6.0),
            ScheduledSlot("A", "A-1", "M1", 0.0, 2.0),
        ])

        assert [s.job_id for s in schedule.by_work_center["M1"]] == ["A", "B"]
        assert len(schedule.to_dataframe()) == 2
