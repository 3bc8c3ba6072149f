from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from bsc.schemas.kpi import KPITrend


class KPIStatus(str, Enum):
    NOT_MEASURED = "NOT_MEASURED"
    FAIL = "FAIL"
    BELOW_TARGET = "BELOW_TARGET"
    ON_TARGET = "ON_TARGET"
    ABOVE_TARGET = "ABOVE_TARGET"


class ScoreRating(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    POOR = "poor"

    @classmethod
    def from_score(cls, score: Optional[float]) -> Optional["ScoreRating"]:
        """Clasifica un puntaje agregado en bandas de desempeño."""
        if score is None:
            return None
        if score >= 90:
            return cls.EXCELLENT
        elif score >= 70:
            return cls.GOOD
        elif score >= 50:
            return cls.AVERAGE
        else:
            return cls.POOR


class KPIEvaluation(BaseModel):
    score: float
    status: KPIStatus


class _NodeBase(BaseModel):
    id: int
    name: str
    weight: float
    score: Optional[float] = None
    weighted_score: Optional[float] = None
    total_kpis: int = 0
    measured_kpis: int = 0
    measurement_progress: float = 0.0

    @property
    def measured(self) -> bool:
        return self.measured_kpis > 0


# ========== ÁRBOL DEL SCORECARD ==========
class KPINode(_NodeBase):
    kind: Literal["kpi"] = "kpi"
    allocation_id: int
    unit: Optional[str] = None
    trend: KPITrend
    target_min: float
    target_threshold: float
    target_goal: float
    target_max: float
    actual_value: Optional[float] = None
    measured_at: Optional[datetime] = None
    status: KPIStatus = KPIStatus.NOT_MEASURED


class CSFNode(_NodeBase):
    kind: Literal["csf"] = "csf"
    kpis: List[KPINode] = Field(default_factory=list)


class ObjectiveNode(_NodeBase):
    kind: Literal["objective"] = "objective"
    code: Optional[str] = None
    department_id: Optional[str] = None
    csfs: List[CSFNode] = Field(default_factory=list)


class PerspectiveNode(_NodeBase):
    kind: Literal["perspective"] = "perspective"
    sort_order: int
    color: Optional[str] = None
    objectives: List[ObjectiveNode] = Field(default_factory=list)


ScorecardNode = Annotated[
    Union[PerspectiveNode, ObjectiveNode, CSFNode, KPINode],
    Field(discriminator="kind"),
]


class ScorecardResult(BaseModel):
    department_id: Optional[str] = None
    department_name: Optional[str] = None
    year: int
    period: Optional[str] = None
    perspectives: List[PerspectiveNode] = Field(default_factory=list)
    overall_score: Optional[float] = None
    rating: Optional[ScoreRating] = None
    total_kpis: int = 0
    measured_kpis: int = 0
    measurement_progress: float = 0.0
