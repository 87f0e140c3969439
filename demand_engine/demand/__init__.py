"""Demand signal computation for topic sets."""
from .calculator import compute_demand_signal
from .models import (
    ContentGap,
    ContentItem,
    ContentOpportunity,
    DemandSignal,
    MarketMetrics,
    TopicTag,
    TrendsBoost,
)
from .topics import InvalidTopicsError, normalize_topics, topic_key

__all__ = [
    "compute_demand_signal",
    "ContentGap",
    "ContentItem",
    "ContentOpportunity",
    "DemandSignal",
    "MarketMetrics",
    "TopicTag",
    "TrendsBoost",
    "InvalidTopicsError",
    "normalize_topics",
    "topic_key",
]
