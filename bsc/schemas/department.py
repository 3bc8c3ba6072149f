from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Department(BaseModel):
    """Departamento con su balance interno de perspectivas."""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    code: Optional[str] = None
    parent_id: Optional[str] = None
    primary_perspective_ids: List[int] = Field(default_factory=list, max_length=2)
    department_weights: Dict[int, float] = Field(
        default_factory=dict, description="Perspectiva -> peso (%) del departamento"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("primary_perspective_ids")
    @classmethod
    def validate_primary_ids(cls, v: List[int]) -> List[int]:
        if len(set(v)) != len(v):
            raise ValueError("Perspectivas principales duplicadas")
        return v

    @field_validator("department_weights")
    @classmethod
    def validate_weights(cls, v: Dict[int, float]) -> Dict[int, float]:
        for perspective_id, weight in v.items():
            if not 0.0 <= weight <= 100.0:
                raise ValueError(
                    f"Peso fuera de rango para perspectiva {perspective_id}: {weight}"
                )
        return v

    @property
    def has_weights(self) -> bool:
        return bool(self.department_weights)

    def weight_for(self, perspective_id: int) -> float:
        return self.department_weights.get(perspective_id, 0.0)
