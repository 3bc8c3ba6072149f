from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from bsc.core.exceptions import UnknownDepartmentError, UnknownObjectiveError
from bsc.core.periods import ReportingPeriod
from bsc.schemas.department import Department
from bsc.schemas.kpi import KPIAllocation, Measurement, MeasurementStatus
from bsc.schemas.strategic import CSF, Objective, ObjectiveLink


class ScorecardScope(BaseModel):
    """Alcance de un scorecard: empresa (sin departamento) o un departamento."""
    department_id: Optional[str] = None
    year: int = Field(..., ge=1900, le=9999)
    period: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ScorecardSnapshot(BaseModel):
    """Fotografía materializada de las entidades; el motor no consulta nada más."""
    objectives: List[Objective] = Field(default_factory=list)
    csfs: List[CSF] = Field(default_factory=list)
    allocations: List[KPIAllocation] = Field(default_factory=list)
    measurements: List[Measurement] = Field(default_factory=list)
    departments: List[Department] = Field(default_factory=list)
    links: List[ObjectiveLink] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def objectives_by_id(self) -> Dict[int, Objective]:
        return {o.id: o for o in self.objectives}

    @property
    def departments_by_id(self) -> Dict[str, Department]:
        return {d.id: d for d in self.departments}

    def objective(self, objective_id: int) -> Objective:
        found = self.objectives_by_id.get(objective_id)
        if found is None:
            raise UnknownObjectiveError(f"Objetivo {objective_id} no encontrado")
        return found

    def department(self, department_id: str) -> Department:
        found = self.departments_by_id.get(department_id)
        if found is None:
            raise UnknownDepartmentError(f"Departamento {department_id!r} no encontrado")
        return found

    def csfs_by_objective(self) -> Dict[int, List[CSF]]:
        grouped: Dict[int, List[CSF]] = {}
        for csf in self.csfs:
            grouped.setdefault(csf.objective_id, []).append(csf)
        return grouped

    def allocations_by_csf(self) -> Dict[int, List[KPIAllocation]]:
        grouped: Dict[int, List[KPIAllocation]] = {}
        for allocation in self.allocations:
            grouped.setdefault(allocation.csf_id, []).append(allocation)
        return grouped

    def allocations_by_objective(self) -> Dict[int, List[KPIAllocation]]:
        """Asignaciones agrupadas por el objetivo dueño de su CSF."""
        csf_owner = {csf.id: csf.objective_id for csf in self.csfs}
        grouped: Dict[int, List[KPIAllocation]] = {}
        for allocation in self.allocations:
            objective_id = csf_owner.get(allocation.csf_id)
            if objective_id is not None:
                grouped.setdefault(objective_id, []).append(allocation)
        return grouped

    def latest_measurements(
        self, period: Optional[ReportingPeriod] = None
    ) -> Dict[int, Measurement]:
        """Última medición vigente por asignación (se ignoran las rechazadas)."""
        latest: Dict[int, Measurement] = {}
        for measurement in self.measurements:
            if measurement.status == MeasurementStatus.REJECTED:
                continue
            if period is not None and not period.contains(measurement.measured_at):
                continue
            current = latest.get(measurement.allocation_id)
            if current is None or (measurement.measured_at, measurement.id) > (
                current.measured_at,
                current.id,
            ):
                latest[measurement.allocation_id] = measurement
        return latest
