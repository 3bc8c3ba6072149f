from datetime import datetime

import pytest

from bsc.schemas import (
    CSF,
    CompanyConfig,
    Department,
    Objective,
    Perspective,
    ScorecardSnapshot,
)
from bsc.services import InMemoryScorecardStore
from bsc.tests.factories import YEAR, make_allocation, make_measurement


@pytest.fixture
def perspectives():
    return [
        Perspective(id=1, name="Tài chính", name_en="Financial", sort_order=1, company_weight=25),
        Perspective(id=2, name="Khách hàng", name_en="Customer", sort_order=2, company_weight=25),
        Perspective(id=3, name="Quy trình", name_en="Process", sort_order=3, company_weight=25),
        Perspective(id=4, name="Học hỏi", name_en="Learning", sort_order=4, company_weight=25),
    ]


@pytest.fixture
def config(perspectives):
    return CompanyConfig(perspectives=perspectives)


@pytest.fixture
def revenue_snapshot():
    """Un objetivo financiero con un KPI medido en su meta."""
    return ScorecardSnapshot(
        objectives=[
            Objective(id=1, perspective_id=1, name="Tăng doanh thu", weight=25, year=YEAR),
        ],
        csfs=[CSF(id=1, objective_id=1, content="Mở rộng thị trường")],
        allocations=[make_allocation(1, csf_id=1, weight=100)],
        measurements=[make_measurement(1, 1, 1000)],
    )


@pytest.fixture
def balanced_snapshot():
    """Pesos consistentes en todos los niveles para la empresa."""
    objectives = []
    csfs = []
    allocations = []
    for perspective_id in range(1, 5):
        for offset, weight in ((0, 15.0), (1, 10.0)):
            objective_id = perspective_id * 10 + offset
            objectives.append(
                Objective(
                    id=objective_id,
                    perspective_id=perspective_id,
                    name=f"Mục tiêu {objective_id}",
                    weight=weight,
                    year=YEAR,
                )
            )
            csfs.append(CSF(id=objective_id, objective_id=objective_id))
            allocations.append(make_allocation(objective_id * 10 + 1, objective_id, weight * 0.6))
            allocations.append(make_allocation(objective_id * 10 + 2, objective_id, weight * 0.4))
    return ScorecardSnapshot(objectives=objectives, csfs=csfs, allocations=allocations)


@pytest.fixture
def departments():
    """Cuatro departamentos cuyo promedio coincide con el peso de empresa."""
    return [
        Department(
            id="finance",
            name="Tài chính - Kế toán",
            primary_perspective_ids=[1],
            department_weights={1: 52, 2: 16, 3: 16, 4: 16},
        ),
        Department(
            id="sales",
            name="Kinh doanh",
            primary_perspective_ids=[2],
            department_weights={1: 16, 2: 52, 3: 16, 4: 16},
        ),
        Department(
            id="ops",
            name="Vận hành",
            primary_perspective_ids=[3],
            department_weights={1: 16, 2: 16, 3: 52, 4: 16},
        ),
        Department(
            id="hr",
            name="Nhân sự",
            primary_perspective_ids=[4],
            department_weights={1: 16, 2: 16, 3: 16, 4: 52},
        ),
    ]


@pytest.fixture
def department_store(config, departments):
    """Dos departamentos con KPIs medidos en 2024 y 2025."""
    objectives = [
        Objective(id=1, perspective_id=1, name="Tăng doanh thu", weight=25, year=YEAR),
        Objective(id=2, perspective_id=1, name="Tăng doanh thu", weight=25, year=YEAR - 1),
    ]
    csfs = [CSF(id=1, objective_id=1), CSF(id=2, objective_id=2)]
    allocations = [
        make_allocation(1, 1, 50, department_ids=["sales"]),
        make_allocation(2, 1, 50, department_ids=["ops"]),
        make_allocation(3, 2, 50, department_ids=["sales"], year=YEAR - 1),
        make_allocation(4, 2, 50, department_ids=["ops"], year=YEAR - 1),
    ]
    measurements = [
        make_measurement(1, 1, 1000),
        make_measurement(2, 2, 900),
        make_measurement(3, 3, 900, measured_at=datetime(YEAR - 1, 6, 1)),
        make_measurement(4, 4, 900, measured_at=datetime(YEAR - 1, 6, 1)),
    ]
    return InMemoryScorecardStore(
        objectives=objectives,
        csfs=csfs,
        allocations=allocations,
        measurements=measurements,
        departments=departments,
        config=config,
    )
