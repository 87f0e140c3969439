"""
Topic demand signals and content gap mining.

Scores how attractive a topic set is for a content creator from a sample of
content items, and finds adjacent topics that pair well with it but are
under-covered.
"""
from .cache import DemandSignalCache
from .config import DEFAULT_CONFIG, EngineConfig
from .demand import DemandSignal, InvalidTopicsError, TrendsBoost, compute_demand_signal
from .gaps import ContentGapMiner, GapReport, IngredientGap
from .service import DemandInsightsService

__version__ = "0.1.0"

__all__ = [
    "DemandSignalCache",
    "DEFAULT_CONFIG",
    "EngineConfig",
    "DemandSignal",
    "InvalidTopicsError",
    "TrendsBoost",
    "compute_demand_signal",
    "ContentGapMiner",
    "GapReport",
    "IngredientGap",
    "DemandInsightsService",
]
