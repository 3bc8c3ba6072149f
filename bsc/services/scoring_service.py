"""
Cálculo del desempeño de un KPI (0-120%).

Fórmula lineal por tramos:
- Debajo del umbral: 0% (no cumple).
- Entre umbral y meta: 0-100% lineal.
- Entre meta y máximo: bono de 100% hasta el techo (120%).

Los KPIs de tendencia NEGATIVA (menor es mejor) se reflejan dentro del
intervalo [min, max] para reutilizar la misma fórmula creciente.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from bsc.core.config import settings
from bsc.core.exceptions import InvalidMeasurementError, MissingTargetError
from bsc.schemas.kpi import KPIAllocation, KPITrend
from bsc.schemas.scorecard import KPIEvaluation, KPIStatus
from bsc.schemas.strategic import CompanyConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedTargets:
    """Metas con los valores por defecto ya aplicados."""
    minimum: float
    threshold: float
    goal: float
    maximum: float

    def effective(self, trend: KPITrend) -> "ResolvedTargets":
        if trend != KPITrend.NEGATIVE:
            return self
        pivot = self.minimum + self.maximum
        return ResolvedTargets(
            minimum=self.minimum,
            threshold=pivot - self.goal,
            goal=pivot - self.threshold,
            maximum=self.maximum,
        )


class ScoringService:
    def __init__(
        self,
        threshold_ratio: float = settings.DEFAULT_THRESHOLD_RATIO,
        max_ratio: float = settings.DEFAULT_MAX_RATIO,
        bonus_ceiling: float = settings.BONUS_CEILING,
    ):
        self.threshold_ratio = threshold_ratio
        self.max_ratio = max_ratio
        self.bonus_ceiling = bonus_ceiling

    @classmethod
    def from_config(cls, config: CompanyConfig) -> "ScoringService":
        return cls(
            threshold_ratio=config.default_threshold_ratio,
            max_ratio=config.default_max_ratio,
            bonus_ceiling=config.bonus_ceiling,
        )

    def resolve_targets(self, allocation: KPIAllocation) -> ResolvedTargets:
        """Aplica los valores por defecto de min, umbral y máximo."""
        goal = allocation.target_goal
        if goal is None or not math.isfinite(goal):
            logger.warning("Asignación %s sin meta definida", allocation.id)
            raise MissingTargetError(
                f"La asignación {allocation.id} no tiene meta (target_goal)"
            )
        return ResolvedTargets(
            minimum=_or_default(allocation.target_min, 0.0),
            threshold=_or_default(allocation.target_threshold, goal * self.threshold_ratio),
            goal=goal,
            maximum=_or_default(allocation.target_max, goal * self.max_ratio),
        )

    def evaluate(self, allocation: KPIAllocation, actual_value: float) -> KPIEvaluation:
        if actual_value is None or not math.isfinite(actual_value):
            logger.warning(
                "Valor medido inválido %r para asignación %s", actual_value, allocation.id
            )
            raise InvalidMeasurementError(
                f"Valor medido inválido para la asignación {allocation.id}: {actual_value!r}"
            )

        targets = self.resolve_targets(allocation).effective(allocation.trend)
        actual = actual_value
        if allocation.trend == KPITrend.NEGATIVE:
            actual = targets.minimum + targets.maximum - actual_value

        if actual < targets.threshold:
            return KPIEvaluation(score=0.0, status=KPIStatus.FAIL)

        actual = min(actual, targets.maximum)
        bonus_span = self.bonus_ceiling - 100.0

        if actual > targets.goal and targets.maximum > targets.goal:
            score = 100.0 + (actual - targets.goal) / (targets.maximum - targets.goal) * bonus_span
        elif targets.goal > targets.threshold:
            score = (actual - targets.threshold) / (targets.goal - targets.threshold) * 100.0
        else:
            # umbral == meta: alcanzar el umbral equivale a cumplir la meta
            score = 100.0

        score = max(0.0, min(self.bonus_ceiling, score))
        return KPIEvaluation(score=score, status=_status_for(score))

    def score(self, allocation: KPIAllocation, actual_value: float) -> float:
        return self.evaluate(allocation, actual_value).score


def _or_default(value: Optional[float], default: float) -> float:
    return default if value is None else value


def _status_for(score: float) -> KPIStatus:
    if math.isclose(score, 100.0, abs_tol=1e-9):
        return KPIStatus.ON_TARGET
    if score > 100.0:
        return KPIStatus.ABOVE_TARGET
    return KPIStatus.BELOW_TARGET


def score(allocation: KPIAllocation, actual_value: float) -> float:
    """Atajo con los valores por defecto de settings."""
    return ScoringService().score(allocation, actual_value)
