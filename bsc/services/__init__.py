from .aggregation_service import AggregationEngine
from .link_service import LinkValidator
from .ranking_service import RankingService
from .scoring_service import ScoringService, score
from .snapshot_service import InMemoryScorecardStore, MeasurementSink, SnapshotProvider
from .weight_service import WeightValidator

__all__ = [
    "AggregationEngine",
    "InMemoryScorecardStore",
    "LinkValidator",
    "MeasurementSink",
    "RankingService",
    "ScoringService",
    "SnapshotProvider",
    "WeightValidator",
    "score",
]
