"""
Periodos de reporte del scorecard.

Formatos aceptados: "2025" (año), "2025-H1" (semestre), "2025-Q3"
(trimestre) y "2025-07" (mes).
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, Tuple

from bsc.core.exceptions import InvalidPeriodError


class PeriodGranularity(str, Enum):
    YEAR = "year"
    HALF = "half"
    QUARTER = "quarter"
    MONTH = "month"


_PERIODS_PER_YEAR = {
    PeriodGranularity.YEAR: 1,
    PeriodGranularity.HALF: 2,
    PeriodGranularity.QUARTER: 4,
    PeriodGranularity.MONTH: 12,
}

_PERIOD_PATTERN = re.compile(r"^(\d{4})(?:-(?:(H)([12])|(Q)([1-4])|(\d{2})))?$")


@dataclass(frozen=True)
class ReportingPeriod:
    year: int
    granularity: PeriodGranularity
    index: int = 1

    @property
    def label(self) -> str:
        if self.granularity == PeriodGranularity.HALF:
            return f"{self.year}-H{self.index}"
        if self.granularity == PeriodGranularity.QUARTER:
            return f"{self.year}-Q{self.index}"
        if self.granularity == PeriodGranularity.MONTH:
            return f"{self.year}-{self.index:02d}"
        return str(self.year)

    @property
    def start(self) -> date:
        months = 12 // _PERIODS_PER_YEAR[self.granularity]
        return date(self.year, (self.index - 1) * months + 1, 1)

    @property
    def end(self) -> date:
        months = 12 // _PERIODS_PER_YEAR[self.granularity]
        last_month = self.index * months
        if last_month == 12:
            return date(self.year, 12, 31)
        return date(self.year, last_month + 1, 1) - timedelta(days=1)

    def contains(self, moment: datetime | date) -> bool:
        """Indica si la fecha cae dentro del periodo (extremos incluidos)."""
        day = moment.date() if isinstance(moment, datetime) else moment
        return self.start <= day <= self.end

    def previous(self) -> "ReportingPeriod":
        if self.index > 1:
            return ReportingPeriod(self.year, self.granularity, self.index - 1)
        return ReportingPeriod(
            self.year - 1, self.granularity, _PERIODS_PER_YEAR[self.granularity]
        )


def parse_period(label: str) -> ReportingPeriod:
    """Convierte una etiqueta de periodo en ReportingPeriod."""
    match = _PERIOD_PATTERN.match((label or "").strip().upper())
    if not match:
        raise InvalidPeriodError(f"Periodo inválido: {label!r}")

    year = int(match.group(1))
    if match.group(2):
        return ReportingPeriod(year, PeriodGranularity.HALF, int(match.group(3)))
    if match.group(4):
        return ReportingPeriod(year, PeriodGranularity.QUARTER, int(match.group(5)))
    if match.group(6):
        month = int(match.group(6))
        if not 1 <= month <= 12:
            raise InvalidPeriodError(f"Mes fuera de rango en periodo {label!r}")
        return ReportingPeriod(year, PeriodGranularity.MONTH, month)
    return ReportingPeriod(year, PeriodGranularity.YEAR)


def resolve_period(year: int, period: Optional[str]) -> Optional[ReportingPeriod]:
    """Valida que el periodo pertenezca al año del scorecard."""
    if period is None:
        return None
    parsed = parse_period(period)
    if parsed.year != year:
        raise InvalidPeriodError(
            f"El periodo {period!r} no pertenece al año {year}"
        )
    return parsed


def previous_scope(year: int, period: Optional[str]) -> Tuple[int, Optional[str]]:
    """Retorna (año, periodo) inmediatamente anterior al indicado."""
    parsed = resolve_period(year, period)
    if parsed is None or parsed.granularity == PeriodGranularity.YEAR:
        return year - 1, None if parsed is None else str(year - 1)
    prev = parsed.previous()
    return prev.year, prev.label
