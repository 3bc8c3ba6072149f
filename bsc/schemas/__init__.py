from .department import Department
from .kpi import (
    KPIAllocation,
    KPITrend,
    Measurement,
    MeasurementCreate,
    MeasurementStatus,
)
from .link import ConnectivityReport, LinkRule, LinkValidationResult
from .ranking import PerspectiveScore, RankedEntry, RankTrend
from .scorecard import (
    CSFNode,
    KPIEvaluation,
    KPINode,
    KPIStatus,
    ObjectiveNode,
    PerspectiveNode,
    ScorecardNode,
    ScorecardResult,
    ScoreRating,
)
from .snapshot import ScorecardScope, ScorecardSnapshot
from .strategic import CSF, CompanyConfig, Objective, ObjectiveLink, Perspective
from .validation import (
    CompanyWeightReport,
    DepartmentWeightReport,
    ObjectiveWeightStatus,
    PerspectiveWeightStatus,
    ScopeType,
    ValidationReport,
    ViolationCode,
    WarningCode,
    WeightViolation,
    WeightWarning,
)

__all__ = [
    "CSF",
    "CSFNode",
    "CompanyConfig",
    "CompanyWeightReport",
    "ConnectivityReport",
    "Department",
    "DepartmentWeightReport",
    "KPIAllocation",
    "KPIEvaluation",
    "KPINode",
    "KPIStatus",
    "KPITrend",
    "LinkRule",
    "LinkValidationResult",
    "Measurement",
    "MeasurementCreate",
    "MeasurementStatus",
    "Objective",
    "ObjectiveLink",
    "ObjectiveNode",
    "ObjectiveWeightStatus",
    "Perspective",
    "PerspectiveNode",
    "PerspectiveScore",
    "PerspectiveWeightStatus",
    "RankTrend",
    "RankedEntry",
    "ScopeType",
    "ScoreRating",
    "ScorecardNode",
    "ScorecardResult",
    "ScorecardScope",
    "ScorecardSnapshot",
    "ValidationReport",
    "ViolationCode",
    "WarningCode",
    "WeightViolation",
    "WeightWarning",
]
