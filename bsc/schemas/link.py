from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class LinkRule(str, Enum):
    HORIZONTAL = "horizontal_link"
    DOWNWARD = "downward_link"
    JUMP_EXCEEDED = "bounded_jump_exceeded"
    DUPLICATE = "duplicate_link"


class LinkValidationResult(BaseModel):
    valid: bool
    rule: Optional[LinkRule] = None
    reason: Optional[str] = None
    jump: Optional[int] = None


class ConnectivityReport(BaseModel):
    """Diagnóstico no bloqueante de objetivos sin conexión causal."""
    missing_outgoing: List[int] = Field(default_factory=list)
    missing_incoming: List[int] = Field(default_factory=list)
    disconnected_objective_ids: List[int] = Field(default_factory=list)

    @property
    def is_connected(self) -> bool:
        return not self.disconnected_objective_ids
