from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from bsc.schemas.scorecard import ScoreRating


class RankTrend(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    STABLE = "STABLE"
    NEW = "NEW"


class PerspectiveScore(BaseModel):
    perspective_id: int
    perspective_name: str
    score: Optional[float] = None


class RankedEntry(BaseModel):
    rank: int = Field(..., ge=1)
    department_id: str
    department_name: str
    primary_perspectives: List[str] = Field(default_factory=list)
    overall_score: Optional[float] = None
    measurement_progress: float = 0.0
    rating: Optional[ScoreRating] = None
    previous_score: Optional[float] = None
    delta: Optional[float] = None
    trend: RankTrend = RankTrend.NEW
    perspective_scores: List[PerspectiveScore] = Field(default_factory=list)
