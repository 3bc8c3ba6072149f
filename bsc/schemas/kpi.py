from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class KPITrend(str, Enum):
    POSITIVE = "POSITIVE"  # mayor es mejor
    NEGATIVE = "NEGATIVE"  # menor es mejor


class MeasurementStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# ========== ASIGNACIÓN DE KPI ==========
class KPIAllocation(BaseModel):
    """KPI de la biblioteca asignado a un CSF, con metas y peso."""
    id: int = Field(..., ge=1)
    csf_id: int = Field(..., ge=1)
    kpi_library_id: int = Field(..., ge=1)
    name: str = ""
    unit: Optional[str] = None
    weight: float = Field(..., ge=0.0, le=100.0, description="Peso dentro del objetivo (%)")
    trend: KPITrend = KPITrend.POSITIVE

    target_min: Optional[float] = None
    target_threshold: Optional[float] = None
    target_goal: Optional[float] = None
    target_max: Optional[float] = None

    year: int = Field(..., ge=1900, le=9999)
    department_ids: List[str] = Field(
        default_factory=list, description="Vacío = aplica a todos los departamentos"
    )

    model_config = ConfigDict(frozen=True)

    def applies_to(self, department_id: Optional[str]) -> bool:
        """Una asignación sin departamentos aplica a todos."""
        if department_id is None or not self.department_ids:
            return True
        return department_id in self.department_ids


# ========== MEDICIONES ==========
def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Fechas con zona horaria se guardan como UTC sin zona."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class MeasurementCreate(BaseModel):
    """Resultado real capturado por un usuario."""
    allocation_id: int = Field(..., ge=1)
    actual_value: float
    note: Optional[str] = Field(None, max_length=1000)
    measured_at: Optional[datetime] = None
    status: MeasurementStatus = MeasurementStatus.SUBMITTED

    @field_validator("measured_at")
    @classmethod
    def normalize_measured_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class Measurement(BaseModel):
    """Medición inmutable; una corrección crea una medición nueva."""
    id: int = Field(..., ge=1)
    allocation_id: int = Field(..., ge=1)
    actual_value: float
    measured_at: datetime
    score_percent: Optional[float] = None
    status: MeasurementStatus = MeasurementStatus.SUBMITTED
    note: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("measured_at")
    @classmethod
    def normalize_measured_at(cls, v: datetime) -> datetime:
        return to_naive_utc(v)
