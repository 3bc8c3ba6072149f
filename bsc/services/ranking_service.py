import logging
from typing import List, Optional, Sequence

from bsc.core.periods import previous_scope
from bsc.schemas.ranking import PerspectiveScore, RankedEntry, RankTrend
from bsc.schemas.scorecard import ScorecardResult
from bsc.schemas.snapshot import ScorecardScope, ScorecardSnapshot
from bsc.schemas.strategic import CompanyConfig
from bsc.services.aggregation_service import AggregationEngine
from bsc.services.snapshot_service import SnapshotProvider


class RankingService:
    """Ordena departamentos por puntaje general y compara con el periodo anterior."""

    def __init__(
        self,
        provider: SnapshotProvider,
        config: CompanyConfig,
        engine: Optional[AggregationEngine] = None,
    ):
        self.provider = provider
        self.config = config
        self.engine = engine or AggregationEngine(config)
        self.logger = logging.getLogger(__name__)

    def rank(
        self,
        department_ids: Sequence[str],
        year: int,
        period: Optional[str] = None,
    ) -> List[RankedEntry]:
        snapshot = self.provider.get_snapshot(year)
        previous_year, previous_period = previous_scope(year, period)
        previous_snapshot = (
            snapshot if previous_year == year else self.provider.get_snapshot(previous_year)
        )

        rows = []
        for department_id in sorted(set(department_ids)):
            current = self.engine.aggregate(
                snapshot, ScorecardScope(department_id=department_id, year=year, period=period)
            )
            previous_score = self._previous_score(
                previous_snapshot, department_id, previous_year, previous_period
            )
            rows.append((snapshot.department(department_id), current, previous_score))

        rows.sort(
            key=lambda row: (
                row[1].overall_score is None,
                -(row[1].overall_score or 0.0),
                -row[1].measurement_progress,
                row[0].name,
                row[0].id,
            )
        )

        entries = [
            self._entry(position, department, current, previous_score)
            for position, (department, current, previous_score) in enumerate(rows, start=1)
        ]
        self.logger.debug(
            "Ranking %s/%s: %d departamentos", year, period or "-", len(entries)
        )
        return entries

    def _previous_score(
        self,
        snapshot: ScorecardSnapshot,
        department_id: str,
        year: int,
        period: Optional[str],
    ) -> Optional[float]:
        if department_id not in snapshot.departments_by_id:
            return None
        result = self.engine.aggregate(
            snapshot, ScorecardScope(department_id=department_id, year=year, period=period)
        )
        return result.overall_score

    def classify_trend(
        self, current: Optional[float], previous: Optional[float]
    ) -> RankTrend:
        if current is None or previous is None:
            return RankTrend.NEW
        delta = current - previous
        if abs(delta) < self.config.trend_epsilon:
            return RankTrend.STABLE
        return RankTrend.UP if delta > 0 else RankTrend.DOWN

    def _entry(
        self,
        position: int,
        department,
        current: ScorecardResult,
        previous_score: Optional[float],
    ) -> RankedEntry:
        score = current.overall_score
        delta = None if score is None or previous_score is None else score - previous_score
        return RankedEntry(
            rank=position,
            department_id=department.id,
            department_name=department.name,
            primary_perspectives=[
                self.config.perspective(pid).name for pid in department.primary_perspective_ids
            ],
            overall_score=score,
            measurement_progress=current.measurement_progress,
            rating=current.rating,
            previous_score=previous_score,
            delta=delta,
            trend=self.classify_trend(score, previous_score),
            perspective_scores=[
                PerspectiveScore(perspective_id=p.id, perspective_name=p.name, score=p.score)
                for p in current.perspectives
            ],
        )
