"""
Agregación del scorecard de abajo hacia arriba:
KPI -> CSF -> Objetivo -> Perspectiva -> Puntaje general.

Los KPIs sin medición no entran al promedio ponderado (los pesos se
renormalizan sobre lo medido), pero sí cuentan para el avance de medición.
"""

import logging
import math
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from bsc.core.periods import resolve_period
from bsc.schemas.department import Department
from bsc.schemas.kpi import KPIAllocation, Measurement
from bsc.schemas.scorecard import (
    CSFNode,
    KPINode,
    KPIStatus,
    ObjectiveNode,
    PerspectiveNode,
    ScorecardNode,
    ScorecardResult,
    ScoreRating,
)
from bsc.schemas.snapshot import ScorecardScope, ScorecardSnapshot
from bsc.schemas.strategic import CSF, CompanyConfig, Objective, Perspective
from bsc.services.scoring_service import ScoringService


def children_of(node: ScorecardNode) -> Sequence[ScorecardNode]:
    if isinstance(node, PerspectiveNode):
        return node.objectives
    if isinstance(node, ObjectiveNode):
        return node.csfs
    if isinstance(node, CSFNode):
        return node.kpis
    if isinstance(node, KPINode):
        return ()
    raise TypeError(f"Nodo de scorecard desconocido: {type(node).__name__}")


def kpi_leaves(node: ScorecardNode) -> Iterator[KPINode]:
    """Recorre todas las hojas KPI bajo un nodo."""
    if isinstance(node, KPINode):
        yield node
        return
    for child in children_of(node):
        yield from kpi_leaves(child)


def weighted_mean(pairs: Sequence[Tuple[float, float]]) -> Optional[float]:
    """Promedio ponderado de (peso, puntaje); None si no hay peso medido."""
    total_weight = math.fsum(weight for weight, _ in pairs)
    if total_weight <= 0:
        return None
    return math.fsum(weight * score for weight, score in pairs) / total_weight


def _progress(total: int, measured: int) -> float:
    return measured / total * 100.0 if total else 0.0


def _contribution(score: Optional[float], weight: float) -> Optional[float]:
    return None if score is None else score * weight / 100.0


class AggregationEngine:
    def __init__(self, config: CompanyConfig, scoring: Optional[ScoringService] = None):
        self.config = config
        self.scoring = scoring or ScoringService.from_config(config)
        self.logger = logging.getLogger(__name__)

    def aggregate(self, snapshot: ScorecardSnapshot, scope: ScorecardScope) -> ScorecardResult:
        period = resolve_period(scope.year, scope.period)
        department = (
            snapshot.department(scope.department_id) if scope.department_id else None
        )
        latest = snapshot.latest_measurements(period)
        csfs_by_objective = snapshot.csfs_by_objective()
        allocations_by_csf = snapshot.allocations_by_csf()

        objective_nodes: Dict[int, List[ObjectiveNode]] = {}
        for objective in sorted(self._objectives_in_scope(snapshot, scope), key=lambda o: o.id):
            self.config.perspective(objective.perspective_id)
            node = self._objective_node(
                objective,
                csfs_by_objective.get(objective.id, []),
                allocations_by_csf,
                latest,
                scope,
            )
            if node is not None:
                objective_nodes.setdefault(objective.perspective_id, []).append(node)

        perspectives = [
            self._perspective_node(p, objective_nodes.get(p.id, []), department)
            for p in self.config.ordered_perspectives
        ]

        overall = weighted_mean(
            [(p.weight, p.score) for p in perspectives if p.measured and p.score is not None]
        )
        total = sum(p.total_kpis for p in perspectives)
        measured = sum(p.measured_kpis for p in perspectives)

        result = ScorecardResult(
            department_id=scope.department_id,
            department_name=department.name if department else None,
            year=scope.year,
            period=period.label if period else None,
            perspectives=perspectives,
            overall_score=overall,
            rating=ScoreRating.from_score(overall),
            total_kpis=total,
            measured_kpis=measured,
            measurement_progress=_progress(total, measured),
        )
        self.logger.debug(
            "Scorecard %s/%s/%s: puntaje=%s, KPIs medidos %d/%d",
            scope.department_id or "empresa",
            scope.year,
            scope.period or "-",
            overall,
            measured,
            total,
        )
        return result

    def _objectives_in_scope(
        self, snapshot: ScorecardSnapshot, scope: ScorecardScope
    ) -> List[Objective]:
        owners = {None} if scope.department_id is None else {None, scope.department_id}
        return [
            o for o in snapshot.objectives
            if o.year == scope.year and o.department_id in owners
        ]

    def _objective_node(
        self,
        objective: Objective,
        csfs: Sequence[CSF],
        allocations_by_csf: Dict[int, List[KPIAllocation]],
        latest: Dict[int, Measurement],
        scope: ScorecardScope,
    ) -> Optional[ObjectiveNode]:
        csf_nodes = []
        for csf in sorted(csfs, key=lambda c: (c.sort_order, c.id)):
            allocations = [
                a for a in allocations_by_csf.get(csf.id, [])
                if a.year == scope.year and a.applies_to(scope.department_id)
            ]
            kpis = [self._kpi_node(a, latest.get(a.id)) for a in sorted(allocations, key=lambda a: a.id)]
            csf_nodes.append(self._csf_node(csf, kpis))

        node = ObjectiveNode(
            id=objective.id,
            name=objective.name,
            code=objective.code,
            department_id=objective.department_id,
            weight=objective.weight,
            csfs=csf_nodes,
        )
        leaves = list(kpi_leaves(node))
        # objetivos de empresa sin KPIs asignados al departamento no aplican
        if scope.department_id is not None and objective.department_id is None and not leaves:
            return None

        score = weighted_mean([(k.weight, k.score) for k in leaves if k.score is not None])
        return self._with_totals(node, leaves, score)

    def _csf_node(self, csf: CSF, kpis: List[KPINode]) -> CSFNode:
        node = CSFNode(
            id=csf.id, name=csf.content, weight=math.fsum(k.weight for k in kpis), kpis=kpis
        )
        score = weighted_mean([(k.weight, k.score) for k in kpis if k.score is not None])
        # el CSF no tiene peso propio: su contribución se refleja en el objetivo
        return self._with_totals(node, kpis, score).model_copy(update={"weighted_score": None})

    def _kpi_node(self, allocation: KPIAllocation, measurement: Optional[Measurement]) -> KPINode:
        targets = self.scoring.resolve_targets(allocation)
        fields = dict(
            id=allocation.id,
            allocation_id=allocation.id,
            name=allocation.name,
            unit=allocation.unit,
            weight=allocation.weight,
            trend=allocation.trend,
            target_min=targets.minimum,
            target_threshold=targets.threshold,
            target_goal=targets.goal,
            target_max=targets.maximum,
            total_kpis=1,
        )
        if measurement is None:
            return KPINode(**fields, status=KPIStatus.NOT_MEASURED)

        evaluation = self.scoring.evaluate(allocation, measurement.actual_value)
        return KPINode(
            **fields,
            actual_value=measurement.actual_value,
            measured_at=measurement.measured_at,
            score=evaluation.score,
            weighted_score=_contribution(evaluation.score, allocation.weight),
            status=evaluation.status,
            measured_kpis=1,
            measurement_progress=100.0,
        )

    def _perspective_node(
        self,
        perspective: Perspective,
        objectives: List[ObjectiveNode],
        department: Optional[Department],
    ) -> PerspectiveNode:
        weight = perspective.company_weight
        if department is not None:
            if department.has_weights:
                weight = department.weight_for(perspective.id)
            else:
                self.logger.debug(
                    "Departamento %s sin pesos; se usa el peso de empresa", department.id
                )

        node = PerspectiveNode(
            id=perspective.id,
            name=perspective.name,
            sort_order=perspective.sort_order,
            color=perspective.color,
            weight=weight,
            objectives=objectives,
        )
        score = weighted_mean(
            [(o.weight, o.score) for o in objectives if o.measured and o.score is not None]
        )
        return self._with_totals(node, list(kpi_leaves(node)), score)

    @staticmethod
    def _with_totals(node, leaves: Sequence[KPINode], score: Optional[float]):
        total = len(leaves)
        measured = sum(1 for k in leaves if k.score is not None)
        return node.model_copy(
            update={
                "score": score,
                "weighted_score": _contribution(score, node.weight),
                "total_kpis": total,
                "measured_kpis": measured,
                "measurement_progress": _progress(total, measured),
            }
        )
