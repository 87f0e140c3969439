"""
Data models for demand analysis.

Inputs and intermediate results are frozen dataclasses; anything returned to
callers is a pydantic model that serialises to camelCase JSON.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DemandBand = Literal["hot", "growing", "stable", "niche", "unknown"]
ContentGapType = Literal["underserved", "saturated", "balanced", "emerging"]
OpportunityType = Literal[
    "quality_gap",
    "freshness_gap",
    "underserved",
    "trending",
    "google_breakout",
    "velocity_mismatch",
]
OpportunityPriority = Literal["high", "medium", "low"]


def _parse_timestamp(value) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_views(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class TopicTag:
    """A topic extracted from a content item by the tagging pipeline."""
    name: str
    confidence: float


@dataclass(frozen=True)
class ContentItem:
    """Snapshot of a content item (e.g. a recipe video) and its topic tags."""
    item_id: str
    view_count: Optional[int]
    published_at: datetime
    title: str = ""
    description: str = ""
    tags: Tuple[TopicTag, ...] = field(default_factory=tuple)

    @property
    def views(self) -> int:
        """View count with unknown treated as zero."""
        return self.view_count or 0

    @property
    def text(self) -> str:
        return f"{self.title} {self.description}"

    def tag_names(self, min_confidence: float = 0.0) -> set:
        return {t.name for t in self.tags if t.confidence >= min_confidence}

    @classmethod
    def from_dict(cls, data: dict) -> "ContentItem":
        """Build an item from the collaborator's JSON shape."""
        tags = tuple(
            TopicTag(name=str(t["name"]).lower().strip(), confidence=float(t.get("confidence", 1.0)))
            for t in data.get("tags", []) or []
        )
        return cls(
            item_id=str(data.get("id", "")),
            view_count=_parse_views(data.get("viewCount", data.get("view_count"))),
            published_at=_parse_timestamp(data.get("publishedAt", data.get("published_at"))),
            title=data.get("title", "") or "",
            description=data.get("description", "") or "",
            tags=tags,
        )


@dataclass(frozen=True)
class QualityDistribution:
    """How concentrated success is among top performers."""
    top_performer_views: int
    bottom_performer_views: int
    outlier_ratio: int  # 0-100


@dataclass(frozen=True)
class FreshnessAnalysis:
    """Recency mix of the sample."""
    avg_age_days: int
    recent_video_count: int
    recent_video_avg_views: int
    is_emerging_topic: bool


class WireModel(BaseModel):
    """Base for JSON output shapes."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class MarketMetrics(WireModel):
    total_views: int = 0
    avg_views: int = 0
    median_views: int = 0
    avg_views_per_day: int = 0
    video_count: int = 0


class TrendsBoost(WireModel):
    """External search-interest signal."""
    interest_score: float  # 0-100
    week_over_week_growth: float  # percent, signed
    is_breakout: bool = False


class ContentGap(WireModel):
    score: int  # 0-100
    type: ContentGapType
    reasoning: str


class ContentOpportunity(WireModel):
    type: OpportunityType
    title: str
    description: str
    priority: OpportunityPriority


class DemandSignal(WireModel):
    """Demand classification for a topic set."""
    demand_score: int
    demand_band: DemandBand
    market_metrics: MarketMetrics
    content_gap: ContentGap
    opportunities: List[ContentOpportunity]
    confidence: float
    sample_size: int
    trends_boost: Optional[TrendsBoost] = None
