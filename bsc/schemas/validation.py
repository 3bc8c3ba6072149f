from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ViolationCode(str, Enum):
    PERSPECTIVE_TOTAL = "perspective_total"
    OBJECTIVE_SUM = "objective_sum"
    KPI_SUM = "kpi_sum"
    DEPARTMENT_TOTAL = "department_total"
    PRIMARY_BELOW_MIN = "primary_below_min"
    DUAL_PRIMARY_BELOW_MIN = "dual_primary_below_min"
    CROSS_DEPARTMENT_IMBALANCE = "cross_department_imbalance"


class WarningCode(str, Enum):
    NO_PRIMARY_PERSPECTIVE = "no_primary_perspective"
    WEIGHTS_NOT_CONFIGURED = "weights_not_configured"


class ScopeType(str, Enum):
    COMPANY = "company"
    PERSPECTIVE = "perspective"
    OBJECTIVE = "objective"
    DEPARTMENT = "department"


class WeightViolation(BaseModel):
    """Regla de negocio incumplida, con valor observado vs esperado."""
    code: ViolationCode
    scope_type: ScopeType
    scope_id: Optional[str] = None
    perspective_id: Optional[int] = None
    department_id: Optional[str] = None
    year: Optional[int] = None
    observed: float
    expected: float
    message: str


class WeightWarning(BaseModel):
    code: WarningCode
    department_id: Optional[str] = None
    message: str


class ValidationReport(BaseModel):
    """Reporte acumulado: válido si no hay violaciones."""
    violations: List[WeightViolation] = Field(default_factory=list)
    warnings: List[WeightWarning] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def for_code(self, code: ViolationCode) -> List[WeightViolation]:
        return [v for v in self.violations if v.code == code]


# ========== ESTADO DE PESOS (vista de empresa) ==========
class KPIWeightStatus(BaseModel):
    id: int
    name: str
    weight: float


class ObjectiveWeightStatus(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    weight: float
    kpis_sum: float
    is_valid: bool
    kpis: List[KPIWeightStatus] = Field(default_factory=list)


class PerspectiveWeightStatus(BaseModel):
    id: int
    name: str
    color: Optional[str] = None
    weight: float
    objectives_sum: float
    is_valid: bool
    objective_count: int
    invalid_objectives_count: int
    objectives: List[ObjectiveWeightStatus] = Field(default_factory=list)


class CompanyWeightReport(ValidationReport):
    total_perspectives_weight: float
    is_perspectives_total_valid: bool
    perspectives: List[PerspectiveWeightStatus] = Field(default_factory=list)


class DepartmentWeightReport(ValidationReport):
    department_id: str
    department_name: str
    total_weight: float
