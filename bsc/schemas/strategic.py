from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bsc.core.config import Settings, settings as default_settings
from bsc.core.exceptions import UnknownPerspectiveError


# ========== PERSPECTIVAS ==========
class Perspective(BaseModel):
    """Perspectiva BSC (carril del mapa estratégico)."""
    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=100)
    name_en: Optional[str] = None
    sort_order: int = Field(..., ge=1, description="1 = carril superior (Financiera)")
    company_weight: float = Field(..., ge=0.0, le=100.0, description="Peso a nivel empresa (%)")
    color: Optional[str] = None

    model_config = ConfigDict(frozen=True)


# ========== OBJETIVOS ==========
class Objective(BaseModel):
    """Objetivo estratégico dentro de una perspectiva."""
    id: int = Field(..., ge=1)
    perspective_id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=200)
    code: Optional[str] = Field(None, max_length=50)
    weight: float = Field(..., ge=0.0, le=100.0, description="Peso dentro de su perspectiva (%)")
    year: int = Field(..., ge=1900, le=9999)
    department_id: Optional[str] = Field(None, description="None = raíz de la empresa")
    theme_id: Optional[int] = Field(None, description="Tema estratégico, sin efecto en pesos")

    model_config = ConfigDict(frozen=True)


class CSF(BaseModel):
    """Factor crítico de éxito: agrupa KPIs, no tiene peso propio."""
    id: int = Field(..., ge=1)
    objective_id: int = Field(..., ge=1)
    content: str = ""
    sort_order: int = 0

    model_config = ConfigDict(frozen=True)


class ObjectiveLink(BaseModel):
    """Flecha causal del mapa estratégico (de abajo hacia arriba)."""
    id: Optional[int] = None
    from_objective_id: int = Field(..., ge=1)
    to_objective_id: int = Field(..., ge=1)

    model_config = ConfigDict(frozen=True)


# ========== CONFIGURACIÓN DE EMPRESA ==========
class CompanyConfig(BaseModel):
    """
    Configuración explícita de la empresa: las perspectivas con su peso
    corporativo y las tolerancias de todas las reglas del motor.
    """
    perspectives: List[Perspective] = Field(..., min_length=1)

    weight_tolerance: float = Field(0.01, gt=0.0)
    primary_single_min: float = Field(50.0, ge=0.0, le=100.0)
    primary_dual_min: float = Field(70.0, ge=0.0, le=100.0)
    cross_department_tolerance: float = Field(5.0, ge=0.0)
    max_lane_jump: int = Field(2, ge=1)
    default_threshold_ratio: float = Field(0.8, gt=0.0)
    default_max_ratio: float = Field(1.2, gt=0.0)
    bonus_ceiling: float = Field(120.0, ge=100.0)
    trend_epsilon: float = Field(0.5, ge=0.0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_unique_perspectives(self) -> "CompanyConfig":
        ids = [p.id for p in self.perspectives]
        if len(set(ids)) != len(ids):
            raise ValueError("IDs de perspectiva duplicados")
        orders = [p.sort_order for p in self.perspectives]
        if len(set(orders)) != len(orders):
            raise ValueError("Orden (sort_order) de perspectiva duplicado")
        return self

    @classmethod
    def from_settings(
        cls,
        perspectives: List[Perspective],
        source: Optional[Settings] = None,
    ) -> "CompanyConfig":
        source = source or default_settings
        return cls(
            perspectives=perspectives,
            weight_tolerance=source.WEIGHT_TOLERANCE,
            primary_single_min=source.PRIMARY_SINGLE_MIN,
            primary_dual_min=source.PRIMARY_DUAL_MIN,
            cross_department_tolerance=source.CROSS_DEPARTMENT_TOLERANCE,
            max_lane_jump=source.MAX_LANE_JUMP,
            default_threshold_ratio=source.DEFAULT_THRESHOLD_RATIO,
            default_max_ratio=source.DEFAULT_MAX_RATIO,
            bonus_ceiling=source.BONUS_CEILING,
            trend_epsilon=source.TREND_EPSILON,
        )

    @property
    def perspectives_by_id(self) -> Dict[int, Perspective]:
        return {p.id: p for p in self.perspectives}

    @property
    def ordered_perspectives(self) -> List[Perspective]:
        return sorted(self.perspectives, key=lambda p: p.sort_order)

    @property
    def top_sort_order(self) -> int:
        return min(p.sort_order for p in self.perspectives)

    @property
    def bottom_sort_order(self) -> int:
        return max(p.sort_order for p in self.perspectives)

    def perspective(self, perspective_id: int) -> Perspective:
        found = self.perspectives_by_id.get(perspective_id)
        if found is None:
            raise UnknownPerspectiveError(f"Perspectiva {perspective_id} no encontrada")
        return found
