"""
Validación de pesos en todos los niveles de la jerarquía BSC.

Empresa: perspectivas -> objetivos -> KPIs.
Departamento: balance interno de perspectivas y reglas de perspectiva
principal, más el balance promedio entre departamentos.

Las reglas de negocio nunca lanzan excepciones: cada incumplimiento se
acumula en el reporte para poder mostrarlos todos a la vez.
"""

import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from bsc.schemas.department import Department
from bsc.schemas.kpi import KPIAllocation
from bsc.schemas.snapshot import ScorecardSnapshot
from bsc.schemas.strategic import CompanyConfig, Objective, Perspective
from bsc.schemas.validation import (
    CompanyWeightReport,
    DepartmentWeightReport,
    KPIWeightStatus,
    ObjectiveWeightStatus,
    PerspectiveWeightStatus,
    ScopeType,
    ValidationReport,
    ViolationCode,
    WarningCode,
    WeightViolation,
    WeightWarning,
)


class WeightValidator:
    def __init__(self, config: CompanyConfig):
        self.config = config
        self.logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Nivel empresa
    # ------------------------------------------------------------------
    def validate_company_weights(
        self, snapshot: ScorecardSnapshot, year: Optional[int] = None
    ) -> CompanyWeightReport:
        objectives = [o for o in snapshot.objectives if year is None or o.year == year]
        for objective in objectives:
            self.config.perspective(objective.perspective_id)

        violations: List[WeightViolation] = []

        total = math.fsum(p.company_weight for p in self.config.perspectives)
        total_valid = self._matches(total, 100.0)
        if not total_valid:
            violations.append(
                WeightViolation(
                    code=ViolationCode.PERSPECTIVE_TOTAL,
                    scope_type=ScopeType.COMPANY,
                    observed=total,
                    expected=100.0,
                    message=f"La suma de pesos de las perspectivas es {total:.2f}%, debe ser 100%",
                )
            )

        for (department_id, scope_year), scoped in sorted(
            _group_by_scope(objectives).items(), key=_scope_sort_key
        ):
            department = snapshot.department(department_id) if department_id else None
            for perspective in self.config.ordered_perspectives:
                violation = self._check_objective_sum(
                    perspective, scoped, department_id, department, scope_year
                )
                if violation is not None:
                    violations.append(violation)

        allocations_by_objective = snapshot.allocations_by_objective()
        for objective in sorted(objectives, key=lambda o: o.id):
            applicable = _applicable(allocations_by_objective.get(objective.id, []), objective)
            kpis_sum = math.fsum(a.weight for a in applicable)
            if not self._matches(kpis_sum, objective.weight):
                violations.append(
                    WeightViolation(
                        code=ViolationCode.KPI_SUM,
                        scope_type=ScopeType.OBJECTIVE,
                        scope_id=str(objective.id),
                        perspective_id=objective.perspective_id,
                        department_id=objective.department_id,
                        year=objective.year,
                        observed=kpis_sum,
                        expected=objective.weight,
                        message=(
                            f"Objetivo '{objective.name}': la suma de KPIs es {kpis_sum:.2f}%, "
                            f"debe ser {objective.weight:.2f}%"
                        ),
                    )
                )

        report = CompanyWeightReport(
            violations=violations,
            total_perspectives_weight=total,
            is_perspectives_total_valid=total_valid,
            perspectives=self._status_tree(objectives, allocations_by_objective, year),
        )
        self._log_report("empresa", report)
        return report

    def _check_objective_sum(
        self,
        perspective: Perspective,
        scoped: Sequence[Objective],
        department_id: Optional[str],
        department: Optional[Department],
        year: int,
    ) -> Optional[WeightViolation]:
        expected = self._perspective_weight(perspective, department)
        in_perspective = [o for o in scoped if o.perspective_id == perspective.id]
        observed = math.fsum(o.weight for o in in_perspective)
        if self._matches(observed, expected):
            return None
        owner = f"departamento {department_id}" if department_id else "empresa"
        return WeightViolation(
            code=ViolationCode.OBJECTIVE_SUM,
            scope_type=ScopeType.PERSPECTIVE,
            scope_id=str(perspective.id),
            perspective_id=perspective.id,
            department_id=department_id,
            year=year,
            observed=observed,
            expected=expected,
            message=(
                f"Perspectiva '{perspective.name}' ({owner}, {year}): la suma de objetivos "
                f"es {observed:.2f}%, debe ser {expected:.2f}%"
            ),
        )

    def _perspective_weight(
        self, perspective: Perspective, department: Optional[Department]
    ) -> float:
        if department is not None and department.has_weights:
            return department.weight_for(perspective.id)
        return perspective.company_weight

    def _status_tree(
        self,
        objectives: Sequence[Objective],
        allocations_by_objective: Dict[int, List[KPIAllocation]],
        year: Optional[int],
    ) -> List[PerspectiveWeightStatus]:
        """Desglose por perspectiva de los objetivos raíz de la empresa."""
        root = [o for o in objectives if o.department_id is None]
        if year is None and root:
            year = max(o.year for o in root)
        root = [o for o in root if o.year == year]

        statuses = []
        for perspective in self.config.ordered_perspectives:
            objective_statuses = []
            for objective in sorted(root, key=lambda o: o.id):
                if objective.perspective_id != perspective.id:
                    continue
                applicable = _applicable(allocations_by_objective.get(objective.id, []), objective)
                kpis_sum = math.fsum(a.weight for a in applicable)
                objective_statuses.append(
                    ObjectiveWeightStatus(
                        id=objective.id,
                        name=objective.name,
                        code=objective.code,
                        weight=objective.weight,
                        kpis_sum=kpis_sum,
                        is_valid=self._matches(kpis_sum, objective.weight),
                        kpis=[
                            KPIWeightStatus(id=a.id, name=a.name, weight=a.weight)
                            for a in sorted(applicable, key=lambda a: a.id)
                        ],
                    )
                )
            objectives_sum = math.fsum(s.weight for s in objective_statuses)
            statuses.append(
                PerspectiveWeightStatus(
                    id=perspective.id,
                    name=perspective.name,
                    color=perspective.color,
                    weight=perspective.company_weight,
                    objectives_sum=objectives_sum,
                    is_valid=self._matches(objectives_sum, perspective.company_weight),
                    objective_count=len(objective_statuses),
                    invalid_objectives_count=sum(1 for s in objective_statuses if not s.is_valid),
                    objectives=objective_statuses,
                )
            )
        return statuses

    # ------------------------------------------------------------------
    # Nivel departamento
    # ------------------------------------------------------------------
    def validate_department_weights(self, department: Department) -> DepartmentWeightReport:
        for perspective_id in list(department.department_weights) + department.primary_perspective_ids:
            self.config.perspective(perspective_id)

        violations: List[WeightViolation] = []
        warnings: List[WeightWarning] = []

        total = math.fsum(department.weight_for(p.id) for p in self.config.perspectives)
        if not department.has_weights:
            warnings.append(
                WeightWarning(
                    code=WarningCode.WEIGHTS_NOT_CONFIGURED,
                    department_id=department.id,
                    message=(
                        f"El departamento '{department.name}' no tiene pesos configurados; "
                        "se excluye del balance entre departamentos"
                    ),
                )
            )
        if not self._matches(total, 100.0):
            violations.append(
                WeightViolation(
                    code=ViolationCode.DEPARTMENT_TOTAL,
                    scope_type=ScopeType.DEPARTMENT,
                    scope_id=department.id,
                    department_id=department.id,
                    observed=total,
                    expected=100.0,
                    message=(
                        f"Departamento '{department.name}': la suma de pesos es "
                        f"{total:.2f}%, debe ser 100%"
                    ),
                )
            )

        primary = department.primary_perspective_ids
        if not primary:
            warnings.append(
                WeightWarning(
                    code=WarningCode.NO_PRIMARY_PERSPECTIVE,
                    department_id=department.id,
                    message=f"El departamento '{department.name}' no tiene perspectiva principal",
                )
            )
        elif len(primary) == 1:
            observed = department.weight_for(primary[0])
            if self._below(observed, self.config.primary_single_min):
                name = self.config.perspective(primary[0]).name
                violations.append(
                    WeightViolation(
                        code=ViolationCode.PRIMARY_BELOW_MIN,
                        scope_type=ScopeType.DEPARTMENT,
                        scope_id=department.id,
                        perspective_id=primary[0],
                        department_id=department.id,
                        observed=observed,
                        expected=self.config.primary_single_min,
                        message=(
                            f"La perspectiva principal '{name}' tiene {observed:.2f}%, "
                            f"debe ser al menos {self.config.primary_single_min:.0f}%"
                        ),
                    )
                )
        else:
            observed = math.fsum(department.weight_for(p) for p in primary)
            if self._below(observed, self.config.primary_dual_min):
                violations.append(
                    WeightViolation(
                        code=ViolationCode.DUAL_PRIMARY_BELOW_MIN,
                        scope_type=ScopeType.DEPARTMENT,
                        scope_id=department.id,
                        department_id=department.id,
                        observed=observed,
                        expected=self.config.primary_dual_min,
                        message=(
                            f"Las dos perspectivas principales suman {observed:.2f}%, "
                            f"deben sumar al menos {self.config.primary_dual_min:.0f}%"
                        ),
                    )
                )

        report = DepartmentWeightReport(
            violations=violations,
            warnings=warnings,
            department_id=department.id,
            department_name=department.name,
            total_weight=total,
        )
        self._log_report(f"departamento {department.id}", report)
        return report

    def validate_cross_department_balance(
        self, departments: Iterable[Department]
    ) -> List[WeightViolation]:
        """Promedio por perspectiva de los departamentos vs peso de empresa."""
        configured = [d for d in departments if d.has_weights]
        if not configured:
            return []

        violations = []
        for perspective in self.config.ordered_perspectives:
            mean = math.fsum(d.weight_for(perspective.id) for d in configured) / len(configured)
            gap = abs(mean - perspective.company_weight)
            if gap - self.config.cross_department_tolerance > self.config.weight_tolerance:
                violations.append(
                    WeightViolation(
                        code=ViolationCode.CROSS_DEPARTMENT_IMBALANCE,
                        scope_type=ScopeType.PERSPECTIVE,
                        scope_id=str(perspective.id),
                        perspective_id=perspective.id,
                        observed=mean,
                        expected=perspective.company_weight,
                        message=(
                            f"Perspectiva '{perspective.name}': el promedio de departamentos es "
                            f"{mean:.2f}%, se aleja más de "
                            f"{self.config.cross_department_tolerance:.0f} puntos del peso "
                            f"de empresa ({perspective.company_weight:.2f}%)"
                        ),
                    )
                )
        return violations

    def validate_departments(self, departments: Sequence[Department]) -> ValidationReport:
        """Valida cada departamento y el balance global entre todos ellos."""
        violations: List[WeightViolation] = []
        warnings: List[WeightWarning] = []
        for department in sorted(departments, key=lambda d: d.id):
            report = self.validate_department_weights(department)
            violations.extend(report.violations)
            warnings.extend(report.warnings)
        violations.extend(self.validate_cross_department_balance(departments))

        report = ValidationReport(violations=violations, warnings=warnings)
        self._log_report("departamentos", report)
        return report

    # ------------------------------------------------------------------
    def _matches(self, observed: float, expected: float) -> bool:
        return abs(observed - expected) <= self.config.weight_tolerance

    def _below(self, observed: float, minimum: float) -> bool:
        return observed < minimum - self.config.weight_tolerance

    def _log_report(self, scope: str, report: ValidationReport) -> None:
        self.logger.info(
            "Validación de pesos (%s): %d violaciones, %d advertencias",
            scope,
            len(report.violations),
            len(report.warnings),
        )
        for violation in report.violations:
            self.logger.debug("%s: %s", violation.code.value, violation.message)


def _group_by_scope(
    objectives: Iterable[Objective],
) -> Dict[Tuple[Optional[str], int], List[Objective]]:
    grouped: Dict[Tuple[Optional[str], int], List[Objective]] = {}
    for objective in objectives:
        grouped.setdefault((objective.department_id, objective.year), []).append(objective)
    return grouped


def _scope_sort_key(item) -> Tuple[str, int]:
    (department_id, year), _ = item
    return (department_id or "", year)


def _applicable(allocations: Iterable[KPIAllocation], objective: Objective) -> List[KPIAllocation]:
    return [
        a for a in allocations
        if a.year == objective.year and a.applies_to(objective.department_id)
    ]
