"""
Demand signal calculator.

Turns a sample of content items fetched for a topic set into a DemandSignal:
relevance filter -> market metrics / quality / freshness -> content gap ->
demand score and band -> opportunities and confidence.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from ..config import DEFAULT_CONFIG, EngineConfig
from .competition import calculate_content_gap
from .metrics import (
    calculate_freshness,
    calculate_market_metrics,
    calculate_quality_distribution,
)
from .models import (
    ContentGap,
    ContentItem,
    ContentOpportunity,
    DemandSignal,
    MarketMetrics,
    TrendsBoost,
)
from .relevance import filter_relevant_items
from .scoring import calculate_confidence, demand_score, generate_opportunities
from .topics import normalize_topics

logger = logging.getLogger(__name__)


def unknown_signal() -> DemandSignal:
    """Signal returned when there is nothing to analyse."""
    return DemandSignal(
        demand_score=0,
        demand_band="unknown",
        market_metrics=MarketMetrics(),
        content_gap=ContentGap(
            score=0,
            type="balanced",
            reasoning="Insufficient data to analyze demand.",
        ),
        opportunities=[],
        confidence=0.0,
        sample_size=0,
    )


def sparse_signal(matched: int) -> DemandSignal:
    """Signal for a relevant sample too small to compute statistics on.

    A handful of matches suggests an untapped combination; none at all
    means we simply know nothing.
    """
    if matched <= 0:
        return unknown_signal().model_copy(update={
            "content_gap": ContentGap(
                score=0,
                type="balanced",
                reasoning="No videos found for this specific combination.",
            ),
        })

    plural = "s" if matched > 1 else ""
    return DemandSignal(
        demand_score=0,
        demand_band="niche",
        market_metrics=MarketMetrics(),
        content_gap=ContentGap(
            score=80,
            type="underserved",
            reasoning=f"Only {matched} video{plural} found for this combination. Potential opportunity.",
        ),
        opportunities=[ContentOpportunity(
            type="underserved",
            title="Untapped Combination",
            description=(
                "Very few videos exist for this ingredient combination. "
                "This could be a unique content opportunity."
            ),
            priority="high",
        )],
        confidence=0.0,
        sample_size=matched,
    )


def compute_demand_signal(
    items: Sequence[ContentItem],
    topics: Sequence[str],
    trends_boost: Optional[TrendsBoost] = None,
    *,
    now: Optional[datetime] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> DemandSignal:
    """Compute the demand signal for a topic set from an item sample.

    Pure: no I/O, and the same (items, topics, trends_boost, now) always
    yields the same signal.

    Args:
        items: Items fetched for the topic set (search results).
        topics: 1-5 topics; normalised here.
        trends_boost: Optional external search-interest signal.
        now: Reference time for ages and recency. Defaults to current UTC.
        config: Scorer tables.

    Raises:
        InvalidTopicsError: If the topic list is empty or has more than 5 entries.
    """
    topics = normalize_topics(topics)
    if now is None:
        now = datetime.now(timezone.utc)

    if not items:
        return unknown_signal()

    relevant = filter_relevant_items(items, topics, config.relevance)
    if len(relevant) < config.relevance.min_relevant_items:
        logger.debug(
            "Only %d relevant items for %s, returning sparse signal",
            len(relevant), topics,
        )
        return sparse_signal(len(relevant))

    metrics = calculate_market_metrics(relevant, now)
    quality = calculate_quality_distribution(relevant, config.metrics)
    freshness = calculate_freshness(relevant, now, config.metrics)
    gap = calculate_content_gap(
        metrics,
        quality,
        freshness,
        topic_count=len(topics),
        trends_boost=trends_boost,
        barrier_config=config.barrier,
        opportunity_config=config.opportunity,
        classifier_config=config.classifier,
    )
    score, band = demand_score(metrics, gap, freshness, trends_boost, config.demand)
    opportunities = generate_opportunities(
        metrics, quality, freshness, gap, trends_boost, config.opportunity_list
    )
    confidence = calculate_confidence(len(relevant), metrics, trends_boost, config.confidence)

    logger.debug(
        "Demand for %s: score=%d band=%s gap=%s/%d sample=%d confidence=%.2f",
        topics, score, band, gap.type, gap.score, len(relevant), confidence,
    )

    return DemandSignal(
        demand_score=score,
        demand_band=band,
        market_metrics=metrics,
        content_gap=gap,
        opportunities=opportunities,
        confidence=confidence,
        sample_size=len(relevant),
        trends_boost=trends_boost,
    )
