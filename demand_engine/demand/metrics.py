"""
Sample statistics: market scale, quality distribution and freshness.
"""
import math
from datetime import datetime, timedelta
from typing import Sequence

import numpy as np

from ..config import DEFAULT_CONFIG, MetricsConfig
from .models import ContentItem, FreshnessAnalysis, MarketMetrics, QualityDistribution


SECONDS_PER_DAY = 24 * 60 * 60
# Tolerance for share comparisons (10 * 0.3 != 3.0 in floating point)
_EPS = 1e-9


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def age_days(item: ContentItem, now: datetime) -> int:
    """Whole days since the item was published."""
    return math.floor((now - item.published_at).total_seconds() / SECONDS_PER_DAY)


def _ceil_share(count: int, share: float) -> int:
    return math.ceil(count * share - _EPS)


def calculate_market_metrics(
    items: Sequence[ContentItem],
    now: datetime,
) -> MarketMetrics:
    """Scale and velocity statistics over items with a positive view count.

    video_count is always the size of the input sample, even when every
    item is dropped for having no views.
    """
    if not items:
        return MarketMetrics()

    viewed = [i for i in items if i.views > 0]
    if not viewed:
        return MarketMetrics(video_count=len(items))

    views = np.array([i.views for i in viewed], dtype=np.float64)
    ages = np.array([max(1, age_days(i, now)) for i in viewed], dtype=np.float64)

    total_views = sum(i.views for i in viewed)
    sorted_views = sorted(i.views for i in viewed)

    return MarketMetrics(
        total_views=total_views,
        avg_views=round_half_up(total_views / len(viewed)),
        median_views=sorted_views[len(sorted_views) // 2],
        avg_views_per_day=round_half_up(float(np.mean(views / ages))),
        video_count=len(items),
    )


def calculate_quality_distribution(
    items: Sequence[ContentItem],
    config: MetricsConfig = DEFAULT_CONFIG.metrics,
) -> QualityDistribution:
    """Compare the mean of the top performers with the bottom half."""
    views = np.sort(np.array([i.views for i in items if i.views > 0], dtype=np.float64))[::-1]

    if len(views) < config.min_items_for_outliers:
        return QualityDistribution(
            top_performer_views=int(views[0]) if len(views) else 0,
            bottom_performer_views=int(views[-1]) if len(views) else 0,
            outlier_ratio=0,
        )

    top_count = max(1, _ceil_share(len(views), config.top_performer_share))
    bottom_count = max(1, _ceil_share(len(views), config.bottom_performer_share))
    top = float(np.mean(views[:top_count]))
    bottom = float(np.mean(views[-bottom_count:]))

    if bottom > 0:
        ratio = top / bottom
    else:
        ratio = config.max_outlier_ratio if top > 0 else 0

    return QualityDistribution(
        top_performer_views=round_half_up(top),
        bottom_performer_views=round_half_up(bottom),
        outlier_ratio=min(config.max_outlier_ratio, round_half_up(ratio)),
    )


def calculate_freshness(
    items: Sequence[ContentItem],
    now: datetime,
    config: MetricsConfig = DEFAULT_CONFIG.metrics,
) -> FreshnessAnalysis:
    """Recency mix and whether recent uploads keep up with older ones.

    An item is recent when published less than recent_window_days ago.
    A topic is emerging when enough of the sample is recent and recent items
    average at least half the views of older ones.
    """
    if not items:
        return FreshnessAnalysis(
            avg_age_days=0,
            recent_video_count=0,
            recent_video_avg_views=0,
            is_emerging_topic=False,
        )

    window = timedelta(days=config.recent_window_days)
    recent = [i for i in items if now - i.published_at < window]
    older = [i for i in items if now - i.published_at >= window]

    avg_age = float(np.mean([age_days(i, now) for i in items]))
    recent_avg = float(np.mean([i.views for i in recent])) if recent else 0.0
    older_avg = float(np.mean([i.views for i in older])) if older else 0.0

    is_emerging = (
        len(recent) >= len(items) * config.emerging_recent_share - _EPS
        and recent_avg >= older_avg * config.emerging_views_ratio
    )

    return FreshnessAnalysis(
        avg_age_days=round_half_up(avg_age),
        recent_video_count=len(recent),
        recent_video_avg_views=round_half_up(recent_avg),
        is_emerging_topic=is_emerging,
    )
