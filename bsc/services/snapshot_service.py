"""
Frontera con la capa de datos: proveedor de snapshots y receptor de
mediciones. El motor nunca escribe directamente; las mediciones nuevas
se registran aquí y reaparecen en el siguiente snapshot.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from bsc.core.exceptions import UnknownAllocationError
from bsc.schemas.department import Department
from bsc.schemas.kpi import KPIAllocation, Measurement, MeasurementCreate
from bsc.schemas.snapshot import ScorecardSnapshot
from bsc.schemas.strategic import CSF, CompanyConfig, Objective, ObjectiveLink
from bsc.services.scoring_service import ScoringService


class SnapshotProvider(ABC):
    """Entrega entidades materializadas para un año."""

    @abstractmethod
    def get_snapshot(self, year: int) -> ScorecardSnapshot:
        pass


class MeasurementSink(ABC):
    """Persiste una medición capturada por un usuario."""

    @abstractmethod
    def record(self, measurement_in: MeasurementCreate) -> Measurement:
        pass


class InMemoryScorecardStore(SnapshotProvider, MeasurementSink):
    """Almacén en memoria que implementa ambas fronteras."""

    def __init__(
        self,
        objectives: Iterable[Objective] = (),
        csfs: Iterable[CSF] = (),
        allocations: Iterable[KPIAllocation] = (),
        measurements: Iterable[Measurement] = (),
        departments: Iterable[Department] = (),
        links: Iterable[ObjectiveLink] = (),
        config: Optional[CompanyConfig] = None,
        scoring: Optional[ScoringService] = None,
    ):
        self.objectives: List[Objective] = list(objectives)
        self.csfs: List[CSF] = list(csfs)
        self.allocations: List[KPIAllocation] = list(allocations)
        self.measurements: List[Measurement] = list(measurements)
        self.departments: List[Department] = list(departments)
        self.links: List[ObjectiveLink] = list(links)
        if scoring is None:
            scoring = ScoringService.from_config(config) if config else ScoringService()
        self.scoring = scoring
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: ScorecardSnapshot,
        config: Optional[CompanyConfig] = None,
        scoring: Optional[ScoringService] = None,
    ) -> "InMemoryScorecardStore":
        return cls(
            objectives=snapshot.objectives,
            csfs=snapshot.csfs,
            allocations=snapshot.allocations,
            measurements=snapshot.measurements,
            departments=snapshot.departments,
            links=snapshot.links,
            config=config,
            scoring=scoring,
        )

    def get_snapshot(self, year: int) -> ScorecardSnapshot:
        with self._lock:
            objectives = [o for o in self.objectives if o.year == year]
            objective_ids = {o.id for o in objectives}
            csfs = [c for c in self.csfs if c.objective_id in objective_ids]
            allocations = [a for a in self.allocations if a.year == year]
            allocation_ids = {a.id for a in allocations}
            return ScorecardSnapshot(
                objectives=objectives,
                csfs=csfs,
                allocations=allocations,
                measurements=[m for m in self.measurements if m.allocation_id in allocation_ids],
                departments=list(self.departments),
                links=[
                    link for link in self.links
                    if link.from_objective_id in objective_ids
                    and link.to_objective_id in objective_ids
                ],
            )

    def record(self, measurement_in: MeasurementCreate) -> Measurement:
        with self._lock:
            allocation = next(
                (a for a in self.allocations if a.id == measurement_in.allocation_id), None
            )
            if allocation is None:
                raise UnknownAllocationError(
                    f"Asignación {measurement_in.allocation_id} no encontrada"
                )
            measurement = Measurement(
                id=max((m.id for m in self.measurements), default=0) + 1,
                allocation_id=allocation.id,
                actual_value=measurement_in.actual_value,
                measured_at=measurement_in.measured_at or datetime.now(timezone.utc),
                score_percent=self.scoring.score(allocation, measurement_in.actual_value),
                status=measurement_in.status,
                note=measurement_in.note,
            )
            self.measurements.append(measurement)

        self.logger.info(
            "Medición %s registrada para asignación %s: %.2f (%.1f%%)",
            measurement.id,
            allocation.id,
            measurement.actual_value,
            measurement.score_percent,
        )
        return measurement
