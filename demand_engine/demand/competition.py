"""
Competition barrier, opportunity score and market classification.

Barrier and opportunity are two independent 0-100 scores: the barrier says
how hard it is for a newcomer to rank, the opportunity says how favourable
entering is. The classifier maps both (plus a timing signal) to a gap type
through an ordered decision table.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ..config import (
    DEFAULT_CONFIG,
    BarrierConfig,
    ClassifierConfig,
    OpportunityConfig,
)
from .models import (
    ContentGap,
    ContentGapType,
    FreshnessAnalysis,
    MarketMetrics,
    QualityDistribution,
    TrendsBoost,
)
from .tiers import points_above, points_at_least, points_at_most, points_below

logger = logging.getLogger(__name__)


def competition_barrier(
    metrics: MarketMetrics,
    freshness: FreshnessAnalysis,
    config: BarrierConfig = DEFAULT_CONFIG.barrier,
) -> int:
    """Competition barrier score (0-100, higher = harder to compete).

    Components:
      - view barrier (max 40): high average views mean established content
      - incumbent advantage (max 30): few recent items mean old content ranks
      - supply pressure (max 20): more items competing for the same slots
      - algorithm lock-in (max 10): old sample with almost no recent items
    """
    barrier = points_at_least(metrics.avg_views, config.view_tiers)

    recent_ratio = (
        freshness.recent_video_count / metrics.video_count
        if metrics.video_count > 0 else 0
    )
    barrier += points_below(recent_ratio, config.incumbent_tiers)
    barrier += points_above(metrics.video_count, config.supply_tiers)

    if (freshness.avg_age_days > config.lock_in_min_age_days
            and freshness.recent_video_count < config.lock_in_max_recent):
        barrier += config.lock_in_points

    return min(config.max_score, barrier)


def opportunity_timing_bonus(
    metrics: MarketMetrics,
    freshness: FreshnessAnalysis,
    trends_boost: Optional[TrendsBoost] = None,
    config: OpportunityConfig = DEFAULT_CONFIG.opportunity,
) -> int:
    """Timing component of the opportunity score (max 25)."""
    bonus = 0
    if trends_boost is not None:
        if trends_boost.is_breakout:
            bonus += config.breakout_points
        else:
            bonus += points_above(trends_boost.week_over_week_growth, config.growth_tiers)

    # Recent uploads outperforming the sample average: new items can win
    if freshness.recent_video_avg_views > metrics.avg_views * config.recent_outperform_ratio:
        bonus += config.recent_outperform_points

    return min(config.max_timing_bonus, bonus)


def opportunity_score(
    metrics: MarketMetrics,
    freshness: FreshnessAnalysis,
    barrier: int,
    topic_count: int,
    trends_boost: Optional[TrendsBoost] = None,
    config: OpportunityConfig = DEFAULT_CONFIG.opportunity,
) -> int:
    """Opportunity score (0-100, higher = better for a new creator).

    Components:
      - accessibility (max 35): inverse of the barrier
      - demand validation (max 25): an audience demonstrably exists
      - timing (max 25): search growth, recent items outperforming
      - niche advantage (max 15): specific multi-topic sets, few items
    """
    score = points_at_most(barrier, config.accessibility_tiers)

    demand = points_at_least(metrics.avg_views, config.demand_tiers)
    score += demand or config.demand_floor_points

    score += opportunity_timing_bonus(metrics, freshness, trends_boost, config)

    score += points_at_least(topic_count, config.niche_tiers)
    if (metrics.video_count < config.underserved_max_videos
            and metrics.avg_views >= config.underserved_min_views):
        score += config.underserved_points

    return min(config.max_score, score)


def emergence_timing_bonus(
    freshness: FreshnessAnalysis,
    trends_boost: Optional[TrendsBoost] = None,
    config: ClassifierConfig = DEFAULT_CONFIG.classifier,
) -> int:
    """Timing signal the classifier uses to detect emerging markets."""
    bonus = 0
    if trends_boost is not None and trends_boost.is_breakout:
        bonus += config.breakout_timing
    elif trends_boost is not None and trends_boost.week_over_week_growth > config.growth_timing_threshold:
        bonus += config.growth_timing
    if freshness.recent_video_avg_views > 0 and freshness.is_emerging_topic:
        bonus += config.emerging_timing
    return bonus


@dataclass(frozen=True)
class MarketSignals:
    """Inputs to the market classifier."""
    barrier: int
    opportunity: int
    timing_bonus: int


@dataclass(frozen=True)
class ClassifierRule:
    """One row of the market decision table."""
    name: str
    predicate: Callable[[MarketSignals, ClassifierConfig], bool]
    gap_type: ContentGapType
    reasoning: str


# Evaluated top-down, first match wins.
CLASSIFIER_RULES: Tuple[ClassifierRule, ...] = (
    ClassifierRule(
        name="saturated",
        predicate=lambda s, c: s.barrier > c.saturated_barrier,
        gap_type="saturated",
        reasoning="High competition - established content dominates rankings",
    ),
    ClassifierRule(
        name="high_barrier",
        predicate=lambda s, c: (
            s.barrier > c.high_barrier and s.opportunity < c.high_barrier_max_opportunity
        ),
        gap_type="saturated",
        reasoning="Difficult market - significant barrier to compete",
    ),
    ClassifierRule(
        name="emerging",
        predicate=lambda s, c: (
            s.opportunity > c.emerging_min_opportunity and s.timing_bonus >= c.emerging_min_timing
        ),
        gap_type="emerging",
        reasoning="Emerging trend - time-sensitive opportunity",
    ),
    ClassifierRule(
        name="opportunity",
        predicate=lambda s, c: (
            s.barrier < c.underserved_max_barrier and s.opportunity > c.underserved_min_opportunity
        ),
        gap_type="underserved",
        reasoning="Good opportunity - validated demand with accessible competition",
    ),
    ClassifierRule(
        name="niche_opportunity",
        predicate=lambda s, c: (
            s.barrier < c.niche_max_barrier and s.opportunity >= c.niche_min_opportunity
        ),
        gap_type="underserved",
        reasoning="Niche opportunity - smaller audience but very accessible",
    ),
)

BALANCED_RULE = ClassifierRule(
    name="balanced",
    predicate=lambda s, c: True,
    gap_type="balanced",
    reasoning="Moderate competition with uncertain opportunity",
)


def classify_market(
    signals: MarketSignals,
    config: ClassifierConfig = DEFAULT_CONFIG.classifier,
) -> ClassifierRule:
    """Return the first decision-table rule matching the signals."""
    for rule in CLASSIFIER_RULES:
        if rule.predicate(signals, config):
            return rule
    return BALANCED_RULE


def calculate_content_gap(
    metrics: MarketMetrics,
    quality: QualityDistribution,
    freshness: FreshnessAnalysis,
    topic_count: int = 1,
    trends_boost: Optional[TrendsBoost] = None,
    barrier_config: BarrierConfig = DEFAULT_CONFIG.barrier,
    opportunity_config: OpportunityConfig = DEFAULT_CONFIG.opportunity,
    classifier_config: ClassifierConfig = DEFAULT_CONFIG.classifier,
) -> ContentGap:
    """Classify the market and score the gap (opportunity-based, 0-100)."""
    barrier = competition_barrier(metrics, freshness, barrier_config)
    opportunity = opportunity_score(
        metrics, freshness, barrier, topic_count, trends_boost, opportunity_config
    )
    signals = MarketSignals(
        barrier=barrier,
        opportunity=opportunity,
        timing_bonus=emergence_timing_bonus(freshness, trends_boost, classifier_config),
    )
    rule = classify_market(signals, classifier_config)

    score = opportunity
    # High variance among performers: quality content can still break through
    if quality.outlier_ratio > opportunity_config.quality_bonus_min_outlier:
        score = min(opportunity_config.max_score, score + opportunity_config.quality_bonus_points)

    logger.debug(
        "Market classified as %s via rule '%s' (barrier=%d, opportunity=%d, timing=%d)",
        rule.gap_type, rule.name, barrier, opportunity, signals.timing_bonus,
    )
    return ContentGap(score=score, type=rule.gap_type, reasoning=rule.reasoning)
