"""
Data models for content gap mining.
"""
from dataclasses import dataclass
from typing import List, Literal, Optional

from ..demand.models import DemandBand, WireModel


@dataclass
class CooccurrenceStats:
    """How a candidate topic pairs with the base topics across the pool."""
    topic: str
    weighted_score: float  # sum of log10(views) over items containing the topic
    raw_count: int
    total_views: int
    avg_views: float


class IngredientGap(WireModel):
    """An adjacent topic that pairs well with the base set but is under-covered."""
    ingredient: str
    co_occurrence_count: int
    video_count: int
    gap_score: float
    demand_band: Optional[DemandBand] = None
    trends_insight: Optional[str] = None
    trends_growth: Optional[float] = None
    is_breakout: bool = False


class GapReport(WireModel):
    base_ingredients: List[str]
    gaps: List[IngredientGap]
    total_videos: int
    source: Literal["recipe_analysis"] = "recipe_analysis"
