"""
Demand score, demand band, opportunity list and confidence.
"""
import logging
import math
from typing import List, Optional, Tuple

from ..config import (
    DEFAULT_CONFIG,
    ConfidenceConfig,
    DemandScoreConfig,
    OpportunityListConfig,
)
from .metrics import round_half_up
from .models import (
    ContentGap,
    ContentGapType,
    ContentOpportunity,
    DemandBand,
    FreshnessAnalysis,
    MarketMetrics,
    QualityDistribution,
    TrendsBoost,
)
from .tiers import points_above, points_at_least

logger = logging.getLogger(__name__)


def format_views(views: float) -> str:
    """Human-readable view count: 1.2M, 34.5K, 999."""
    if views >= 1_000_000:
        return f"{views / 1_000_000:.1f}M"
    if views >= 1000:
        return f"{views / 1000:.1f}K"
    return str(int(views))


def has_trends_profile(trends_boost: Optional[TrendsBoost]) -> bool:
    """Whether the trends-weighted score profile applies."""
    return trends_boost is not None and trends_boost.interest_score > 0


def view_component(
    avg_views: float,
    with_trends: bool = False,
    config: DemandScoreConfig = DEFAULT_CONFIG.demand,
) -> float:
    """Log-scaled audience size contribution to the demand score."""
    weight, cap = (
        (config.trends_view_weight, config.trends_view_cap) if with_trends
        else (config.view_weight, config.view_cap)
    )
    return min(cap, math.log10(max(1, avg_views)) * weight)


def velocity_component(
    avg_views_per_day: float,
    with_trends: bool = False,
    config: DemandScoreConfig = DEFAULT_CONFIG.demand,
) -> float:
    """Log-scaled views-per-day contribution to the demand score."""
    weight, cap = (
        (config.trends_velocity_weight, config.trends_velocity_cap) if with_trends
        else (config.velocity_weight, config.velocity_cap)
    )
    return min(cap, math.log10(max(1, avg_views_per_day)) * weight)


def band_for_score(
    score: int,
    video_count: int,
    gap_type: ContentGapType,
    config: DemandScoreConfig = DEFAULT_CONFIG.demand,
) -> DemandBand:
    """Map a demand score to its band.

    Saturated markets are capped at 'stable'.
    """
    band = points_at_least(score, config.band_tiers, default=None)
    if band is None:
        band = "niche" if video_count >= config.niche_min_videos else "unknown"

    if gap_type == "saturated" and band in ("hot", "growing"):
        band = "stable"
    return band


def demand_score(
    metrics: MarketMetrics,
    gap: ContentGap,
    freshness: FreshnessAnalysis,
    trends_boost: Optional[TrendsBoost] = None,
    config: DemandScoreConfig = DEFAULT_CONFIG.demand,
) -> Tuple[int, DemandBand]:
    """Combine scale, gap, velocity, freshness and trends into a 0-100 score.

    Weight profile without trends: views 40, gap 35%, velocity 15,
    freshness 10. With trends: views 30, gap 30%, velocity 10, freshness 10,
    trends 20.

    Returns:
        (score, band)
    """
    with_trends = has_trends_profile(trends_boost)
    gap_weight = config.trends_gap_weight if with_trends else config.gap_weight

    views = view_component(metrics.avg_views, with_trends, config)
    gap_part = gap.score * gap_weight
    velocity = velocity_component(metrics.avg_views_per_day, with_trends, config)

    fresh = 0
    if freshness.is_emerging_topic:
        fresh = config.emerging_bonus
    elif freshness.recent_video_avg_views > metrics.avg_views:
        fresh = config.recent_outperform_bonus

    trends = 0.0
    if trends_boost is not None:
        trends += min(config.interest_cap, trends_boost.interest_score / config.interest_divisor)
        trends += points_above(trends_boost.week_over_week_growth, config.growth_bonus_tiers)
        if trends_boost.is_breakout:
            trends += config.breakout_bonus

    raw = views + gap_part + velocity + fresh + trends
    score = round_half_up(max(0.0, min(100.0, raw)))
    band = band_for_score(score, metrics.video_count, gap.type, config)

    logger.debug(
        "Demand score %d (%s): views=%.1f gap=%.1f velocity=%.1f fresh=%d trends=%.1f",
        score, band, views, gap_part, velocity, fresh, trends,
    )
    return score, band


def generate_opportunities(
    metrics: MarketMetrics,
    quality: QualityDistribution,
    freshness: FreshnessAnalysis,
    gap: ContentGap,
    trends_boost: Optional[TrendsBoost] = None,
    config: OpportunityListConfig = DEFAULT_CONFIG.opportunity_list,
) -> List[ContentOpportunity]:
    """Turn the analysis into prioritised, human-readable suggestions.

    Saturated markets never get quality, freshness or backup-trending
    suggestions.
    """
    opportunities: List[ContentOpportunity] = []
    saturated = gap.type == "saturated"

    if (not saturated
            and quality.outlier_ratio > config.quality_min_outlier
            and quality.bottom_performer_views < quality.top_performer_views * config.quality_bottom_share):
        opportunities.append(ContentOpportunity(
            type="quality_gap",
            title="Quality Opportunity",
            description=(
                f"Top videos average {format_views(quality.top_performer_views)} views while most get "
                f"{format_views(quality.bottom_performer_views)}. High-quality content could capture "
                f"significant audience."
            ),
            priority="high" if quality.outlier_ratio > config.quality_high_outlier else "medium",
        ))

    if (not saturated
            and gap.type != "balanced"
            and freshness.recent_video_count < config.freshness_max_recent
            and config.freshness_min_views < metrics.avg_views < config.freshness_max_views
            and metrics.video_count < config.freshness_max_videos):
        opportunities.append(ContentOpportunity(
            type="freshness_gap",
            title="Content Freshness Gap",
            description=(
                f"Few recent uploads among top-ranking videos ({freshness.recent_video_count} of "
                f"{metrics.video_count} from last 90 days). With {format_views(metrics.avg_views)} "
                f"avg views, new quality content could rank well."
            ),
            priority="high",
        ))

    if gap.type == "underserved":
        opportunities.append(ContentOpportunity(
            type="underserved",
            title="Good Opportunity",
            description=gap.reasoning,
            priority="high",
        ))

    if gap.type == "emerging":
        opportunities.append(ContentOpportunity(
            type="trending",
            title="Emerging Trend",
            description=gap.reasoning,
            priority="high",
        ))

    if (not saturated
            and gap.type != "emerging"
            and freshness.is_emerging_topic
            and freshness.recent_video_avg_views > config.trending_min_recent_views):
        opportunities.append(ContentOpportunity(
            type="trending",
            title="Growing Topic",
            description=(
                f"{freshness.recent_video_count} recent videos averaging "
                f"{format_views(freshness.recent_video_avg_views)} views. This topic is gaining momentum."
            ),
            priority="medium",
        ))

    if trends_boost is not None and trends_boost.is_breakout:
        growth = trends_boost.week_over_week_growth
        growth_text = ">100%" if growth > 100 else f"+{round_half_up(growth)}%"
        opportunities.append(ContentOpportunity(
            type="google_breakout",
            title="Google Trends Breakout",
            description=(
                f"This topic is experiencing explosive search growth ({growth_text} week-over-week). "
                f"First-mover advantage available."
            ),
            priority="high",
        ))

    if (trends_boost is not None
            and not trends_boost.is_breakout
            and trends_boost.week_over_week_growth > config.velocity_min_growth
            and freshness.recent_video_count < config.velocity_max_recent):
        opportunities.append(ContentOpportunity(
            type="velocity_mismatch",
            title="Search Demand Outpacing Content",
            description=(
                f"Searches growing +{round_half_up(trends_boost.week_over_week_growth)}% but only "
                f"{freshness.recent_video_count} new videos in 90 days. Supply gap widening."
            ),
            priority="high",
        ))

    return opportunities


def calculate_confidence(
    sample_size: int,
    metrics: MarketMetrics,
    trends_boost: Optional[TrendsBoost] = None,
    config: ConfidenceConfig = DEFAULT_CONFIG.confidence,
) -> float:
    """How much to trust the signal (0-1).

    Sample size contributes up to 0.6, healthy metrics up to 0.2 and an
    external search-interest signal up to 0.2.
    """
    confidence = min(config.sample_cap, sample_size / config.sample_divisor)

    if metrics.avg_views > config.views_threshold:
        confidence += config.views_bonus
    if metrics.video_count >= config.videos_threshold:
        confidence += config.videos_bonus

    if trends_boost is not None and trends_boost.interest_score > 0:
        confidence += config.trends_bonus
        if trends_boost.interest_score > config.strong_interest_threshold:
            confidence += config.strong_interest_bonus

    return max(0.0, min(1.0, confidence))
