from datetime import datetime

import pytest

from bsc.core.exceptions import MissingTargetError, UnknownDepartmentError
from bsc.schemas import (
    CSF,
    Department,
    KPIStatus,
    MeasurementStatus,
    Objective,
    ScorecardScope,
    ScorecardSnapshot,
    ScoreRating,
)
from bsc.services import AggregationEngine
from bsc.services.aggregation_service import kpi_leaves, weighted_mean
from bsc.tests.factories import YEAR, make_allocation, make_measurement


def company_scope(period=None):
    return ScorecardScope(year=YEAR, period=period)


def test_single_measured_kpi_rolls_up_to_overall(config, revenue_snapshot):
    result = AggregationEngine(config).aggregate(revenue_snapshot, company_scope())

    financial = result.perspectives[0]
    objective = financial.objectives[0]
    kpi = objective.csfs[0].kpis[0]

    assert kpi.score == pytest.approx(100)
    assert kpi.status == KPIStatus.ON_TARGET
    assert objective.score == pytest.approx(100)
    assert financial.score == pytest.approx(100)
    # solo se midió la perspectiva financiera: se renormaliza sobre ella
    assert result.overall_score == pytest.approx(100)
    assert result.rating == ScoreRating.EXCELLENT
    assert [p.score for p in result.perspectives[1:]] == [None, None, None]


def test_below_threshold_scores_zero(config, revenue_snapshot):
    snapshot = revenue_snapshot.model_copy(update={"measurements": [make_measurement(1, 1, 700)]})
    result = AggregationEngine(config).aggregate(snapshot, company_scope())
    kpi = result.perspectives[0].objectives[0].csfs[0].kpis[0]
    assert kpi.score == 0
    assert kpi.status == KPIStatus.FAIL
    assert result.overall_score == 0


def _two_csf_snapshot(measurements):
    return ScorecardSnapshot(
        objectives=[Objective(id=1, perspective_id=1, name="Doanh thu", weight=25, year=YEAR)],
        csfs=[CSF(id=1, objective_id=1, sort_order=1), CSF(id=2, objective_id=1, sort_order=2)],
        allocations=[
            make_allocation(1, 1, 10),
            make_allocation(2, 1, 5),
            make_allocation(3, 2, 10),
        ],
        measurements=measurements,
    )


def test_unmeasured_kpis_excluded_from_mean_but_counted(config):
    snapshot = _two_csf_snapshot(
        [make_measurement(1, 1, 1000), make_measurement(2, 3, 900)]
    )
    result = AggregationEngine(config).aggregate(snapshot, company_scope())
    objective = result.perspectives[0].objectives[0]
    first_csf, second_csf = objective.csfs

    assert first_csf.score == pytest.approx(100)
    assert first_csf.total_kpis == 2
    assert first_csf.measured_kpis == 1
    assert first_csf.measurement_progress == pytest.approx(50)
    assert first_csf.kpis[1].status == KPIStatus.NOT_MEASURED
    assert first_csf.kpis[1].score is None

    # objetivo: promedio ponderado plano de KPIs medidos (10*100 + 10*50) / 20
    assert objective.score == pytest.approx(75)
    assert objective.measurement_progress == pytest.approx(200 / 3)
    assert result.total_kpis == 3
    assert result.measured_kpis == 2


def test_objective_uses_flattened_kpis_not_csf_means(config):
    snapshot = _two_csf_snapshot(
        [make_measurement(1, 1, 1000), make_measurement(2, 2, 1000), make_measurement(3, 3, 800)]
    )
    objective = AggregationEngine(config).aggregate(snapshot, company_scope()).perspectives[0].objectives[0]
    # CSF 1 = 100, CSF 2 = 0; plano: (10*100 + 5*100 + 10*0) / 25 = 60
    assert objective.csfs[0].score == pytest.approx(100)
    assert objective.csfs[1].score == pytest.approx(0)
    assert objective.score == pytest.approx(60)


def test_perspective_and_overall_weighting(config):
    snapshot = ScorecardSnapshot(
        objectives=[
            Objective(id=1, perspective_id=1, name="A", weight=15, year=YEAR),
            Objective(id=2, perspective_id=1, name="B", weight=10, year=YEAR),
            Objective(id=3, perspective_id=2, name="C", weight=25, year=YEAR),
            Objective(id=4, perspective_id=1, name="Sin medir", weight=5, year=YEAR),
        ],
        csfs=[CSF(id=i, objective_id=i) for i in range(1, 5)],
        allocations=[make_allocation(i, i, 100) for i in range(1, 5)],
        measurements=[
            make_measurement(1, 1, 1000),
            make_measurement(2, 2, 900),
            make_measurement(3, 3, 1200),
        ],
    )
    result = AggregationEngine(config).aggregate(snapshot, company_scope())
    financial, customer = result.perspectives[0], result.perspectives[1]

    assert financial.score == pytest.approx((15 * 100 + 10 * 50) / 25)
    assert customer.score == pytest.approx(120)
    assert result.overall_score == pytest.approx((25 * 80 + 25 * 120) / 50)
    assert financial.weighted_score == pytest.approx(80 * 25 / 100)


def test_latest_measurement_wins_and_rejected_ignored(config, revenue_snapshot):
    snapshot = revenue_snapshot.model_copy(
        update={
            "measurements": [
                make_measurement(1, 1, 900, measured_at=datetime(YEAR, 1, 10)),
                make_measurement(2, 1, 1000, measured_at=datetime(YEAR, 2, 10)),
                make_measurement(
                    3, 1, 1200, measured_at=datetime(YEAR, 3, 10), status=MeasurementStatus.REJECTED
                ),
            ]
        }
    )
    kpi = next(kpi_leaves(AggregationEngine(config).aggregate(snapshot, company_scope()).perspectives[0]))
    assert kpi.actual_value == 1000
    assert kpi.score == pytest.approx(100)


def test_period_filters_measurements(config, revenue_snapshot):
    snapshot = revenue_snapshot.model_copy(
        update={
            "measurements": [
                make_measurement(1, 1, 900, measured_at=datetime(YEAR, 2, 10)),
                make_measurement(2, 1, 1100, measured_at=datetime(YEAR, 5, 10)),
            ]
        }
    )
    engine = AggregationEngine(config)
    assert engine.aggregate(snapshot, company_scope("2025-Q1")).overall_score == pytest.approx(50)
    assert engine.aggregate(snapshot, company_scope("2025-Q2")).overall_score == pytest.approx(110)
    assert engine.aggregate(snapshot, company_scope("2025-Q3")).overall_score is None


def test_department_view(config, departments):
    snapshot = ScorecardSnapshot(
        objectives=[
            Objective(id=1, perspective_id=1, name="Doanh thu", weight=25, year=YEAR),
            Objective(id=2, perspective_id=2, name="Khách hàng", weight=52, year=YEAR, department_id="sales"),
            Objective(id=3, perspective_id=3, name="Chỉ cho vận hành", weight=25, year=YEAR),
        ],
        csfs=[CSF(id=i, objective_id=i) for i in range(1, 4)],
        allocations=[
            make_allocation(1, 1, 25, department_ids=["sales"]),
            make_allocation(2, 2, 52),
            make_allocation(3, 3, 25, department_ids=["ops"]),
        ],
        measurements=[make_measurement(1, 1, 1000), make_measurement(2, 2, 900)],
        departments=departments,
    )
    result = AggregationEngine(config).aggregate(
        snapshot, ScorecardScope(department_id="sales", year=YEAR)
    )

    assert result.department_name == "Kinh doanh"
    objective_ids = [o.id for p in result.perspectives for o in p.objectives]
    assert objective_ids == [1, 2]
    assert result.perspectives[0].weight == 16
    assert result.perspectives[1].weight == 52
    assert result.overall_score == pytest.approx((16 * 100 + 52 * 50) / 68)


def test_unknown_department_scope(config, revenue_snapshot):
    with pytest.raises(UnknownDepartmentError):
        AggregationEngine(config).aggregate(
            revenue_snapshot, ScorecardScope(department_id="ghost", year=YEAR)
        )


def test_missing_goal_surfaces_even_without_measurement(config, revenue_snapshot):
    snapshot = revenue_snapshot.model_copy(
        update={"allocations": [make_allocation(1, 1, 100, target_goal=None)], "measurements": []}
    )
    with pytest.raises(MissingTargetError):
        AggregationEngine(config).aggregate(snapshot, company_scope())


def test_aggregate_is_deterministic_and_order_independent(config, balanced_snapshot):
    measurements = [
        make_measurement(i + 1, allocation.id, 800 + 17 * i)
        for i, allocation in enumerate(balanced_snapshot.allocations)
    ]
    snapshot = balanced_snapshot.model_copy(update={"measurements": measurements})
    shuffled = ScorecardSnapshot(
        objectives=list(reversed(snapshot.objectives)),
        csfs=list(reversed(snapshot.csfs)),
        allocations=list(reversed(snapshot.allocations)),
        measurements=list(reversed(snapshot.measurements)),
    )
    engine = AggregationEngine(config)

    first = engine.aggregate(snapshot, company_scope())
    second = engine.aggregate(snapshot, company_scope())
    third = engine.aggregate(shuffled, company_scope())

    assert first == second
    assert first.model_dump() == third.model_dump()
    assert first.measurement_progress == pytest.approx(100)


def test_weighted_mean_edge_cases():
    assert weighted_mean([]) is None
    assert weighted_mean([(0, 40), (0, 80)]) is None
    assert weighted_mean([(1, 50), (3, 100)]) == pytest.approx(87.5)


def test_zero_weight_perspective_does_not_decide_overall(config):
    department = Department(
        id="growth",
        name="Tăng trưởng",
        primary_perspective_ids=[2],
        department_weights={1: 0, 2: 60, 3: 20, 4: 20},
    )
    snapshot = ScorecardSnapshot(
        objectives=[Objective(id=1, perspective_id=1, name="Doanh thu", weight=25, year=YEAR)],
        csfs=[CSF(id=1, objective_id=1)],
        allocations=[make_allocation(1, 1, 25)],
        measurements=[make_measurement(1, 1, 900)],
        departments=[department],
    )
    result = AggregationEngine(config).aggregate(
        snapshot, ScorecardScope(department_id="growth", year=YEAR)
    )

    financial = result.perspectives[0]
    assert financial.weight == 0
    assert financial.score == pytest.approx(50)
    assert result.measured_kpis == 1
    assert result.overall_score is None
    assert result.rating is None


def test_zero_weight_kpis_leave_objective_unscored(config, revenue_snapshot):
    snapshot = revenue_snapshot.model_copy(update={"allocations": [make_allocation(1, 1, 0)]})
    result = AggregationEngine(config).aggregate(snapshot, company_scope())
    objective = result.perspectives[0].objectives[0]
    assert objective.measured_kpis == 1
    assert objective.score is None
    assert result.perspectives[0].score is None
    assert result.overall_score is None
