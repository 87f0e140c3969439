"""
Content gap miner.

Finds topics that frequently appear alongside a base topic set in
well-performing items but have little content of their own for the
combined set.
"""
import asyncio
import logging
import math
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np
import pandas as pd

from ..config import DEFAULT_CONFIG, GapMinerConfig
from ..demand.metrics import round_half_up
from ..demand.models import ContentItem, TrendsBoost
from ..demand.tiers import points_above
from ..demand.topics import normalize_topics, required_topic_matches, topic_key
from ..trends.fetcher import TrendsProvider
from .models import CooccurrenceStats, GapReport, IngredientGap

logger = logging.getLogger(__name__)


class GapStore(Protocol):
    """Storage lookups the miner needs (see Database)."""

    def get_top_tagged_items(
        self, topics: Sequence[str], min_views: int, min_confidence: float, limit: int,
    ) -> List[ContentItem]:
        ...

    def count_items_with_topics(self, topics: Sequence[str], min_confidence: float) -> int:
        ...

    def get_demand_band(self, key: str) -> Optional[str]:
        ...


def matching_items(
    items: Sequence[ContentItem],
    base_topics: Sequence[str],
    min_confidence: float,
) -> List[ContentItem]:
    """Items tagged with enough of the base topics."""
    required = required_topic_matches(len(base_topics))
    base = set(base_topics)
    return [
        item for item in items
        if len(base & item.tag_names(min_confidence)) >= required
    ]


def mine_cooccurrences(
    items: Sequence[ContentItem],
    base_topics: Sequence[str],
    config: GapMinerConfig = DEFAULT_CONFIG.gaps,
) -> List[CooccurrenceStats]:
    """Aggregate non-base tags across items, weighted by log10(views).

    Returns stats sorted by topic name.
    """
    base = set(base_topics)
    rows = []
    for item in items:
        views = item.view_count or config.default_views
        for topic in item.tag_names(config.min_tag_confidence) - base:
            rows.append({"topic": topic, "item_id": item.item_id, "views": views})

    if not rows:
        return []

    df = pd.DataFrame(rows)
    df["weight"] = np.log10(df["views"].astype(float))
    grouped = df.groupby("topic").agg(
        weighted_score=("weight", "sum"),
        raw_count=("item_id", "count"),
        total_views=("views", "sum"),
    ).sort_index()

    return [
        CooccurrenceStats(
            topic=topic,
            weighted_score=float(row.weighted_score),
            raw_count=int(row.raw_count),
            total_views=int(row.total_views),
            avg_views=float(row.total_views) / int(row.raw_count),
        )
        for topic, row in grouped.iterrows()
    ]


def min_occurrences(survivor_count: int, config: GapMinerConfig = DEFAULT_CONFIG.gaps) -> int:
    """Co-occurrence floor: 15% of survivors, but never more than 3."""
    return min(
        config.max_min_occurrences,
        math.ceil(survivor_count * config.min_occurrence_share),
    )


def trends_adjustment(
    trends_boost: Optional[TrendsBoost],
    config: GapMinerConfig = DEFAULT_CONFIG.gaps,
) -> Tuple[float, Optional[str]]:
    """Multiplier and insight text for a candidate's search trend."""
    if trends_boost is None:
        return 1.0, None

    growth = trends_boost.week_over_week_growth
    if trends_boost.is_breakout:
        return config.breakout_multiplier, "BREAKOUT - Immediate opportunity window"

    for rank, (threshold, multiplier) in enumerate(config.growth_multipliers):
        if growth > threshold:
            if rank == 0:
                return multiplier, f"Trending up {round_half_up(growth)}% this week"
            return multiplier, f"Growing interest (+{round_half_up(growth)}%)"

    if growth < config.decline_threshold:
        return config.decline_multiplier, f"Declining interest ({round_half_up(growth)}%)"

    return 1.0, None


def score_gap_candidate(
    stats: CooccurrenceStats,
    combined_count: int,
    survivor_count: int,
    trends_boost: Optional[TrendsBoost] = None,
    config: GapMinerConfig = DEFAULT_CONFIG.gaps,
) -> Tuple[float, Optional[str]]:
    """Gap score for a candidate topic.

    Pairing strength (log-view weight scaled by how often the topic appears)
    divided by how much content already covers the combined set, then
    adjusted for proven audience size and search trend.

    Returns:
        (gap_score, trends_insight)
    """
    pairing_strength = stats.weighted_score * (stats.raw_count / survivor_count)
    score = pairing_strength / (combined_count + 1)
    score *= points_above(stats.avg_views, config.views_multipliers, default=1.0)

    multiplier, insight = trends_adjustment(trends_boost, config)
    return score * multiplier, insight


class ContentGapMiner:
    """Mines adjacent-topic gaps for a base topic set."""

    def __init__(
        self,
        store: GapStore,
        trends: Optional[TrendsProvider] = None,
        config: GapMinerConfig = DEFAULT_CONFIG.gaps,
        max_concurrency: int = 8,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.store = store
        self.trends = trends
        self.config = config
        self.max_concurrency = max_concurrency

    async def find_content_gaps(self, base_topics: Sequence[str]) -> GapReport:
        """Rank adjacent topics for the base set.

        Raises:
            InvalidTopicsError: If the topic list is empty or has more than 5 entries.
        """
        base = normalize_topics(base_topics)

        pool = await asyncio.to_thread(
            self.store.get_top_tagged_items,
            base,
            min_views=self.config.min_views,
            min_confidence=self.config.min_tag_confidence,
            limit=self.config.pool_size,
        )
        survivors = matching_items(pool, base, self.config.min_tag_confidence)

        if len(survivors) < self.config.min_surviving_items:
            logger.info(
                "Only %d/%d items match %s, too few to mine gaps",
                len(survivors), len(pool), base,
            )
            return GapReport(base_ingredients=base, gaps=[], total_videos=len(survivors))

        floor = min_occurrences(len(survivors), self.config)
        candidates = [
            s for s in mine_cooccurrences(survivors, base, self.config)
            if s.raw_count >= floor
        ]
        logger.info(
            "Evaluating %d candidates for %s (%d items, min occurrences %d)",
            len(candidates), base, len(survivors), floor,
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)
        results = await asyncio.gather(*(
            self._evaluate_candidate(stats, base, len(survivors), semaphore)
            for stats in candidates
        ))

        gaps = [g for g in results if g is not None]
        gaps.sort(key=lambda g: (-g.gap_score, g.ingredient))

        return GapReport(
            base_ingredients=base,
            gaps=gaps[:self.config.max_gaps],
            total_videos=len(survivors),
        )

    async def _trends_boost(self, topic: str) -> Optional[TrendsBoost]:
        if self.trends is None:
            return None
        try:
            return await self.trends.get_trends_boost([topic])
        except Exception as e:
            logger.warning("Trends unavailable for %s, scoring without boost: %s", topic, e)
            return None

    async def _evaluate_candidate(
        self,
        stats: CooccurrenceStats,
        base: List[str],
        survivor_count: int,
        semaphore: asyncio.Semaphore,
    ) -> Optional[IngredientGap]:
        """Run the lookups for one candidate; None if a storage lookup fails."""
        combined = [*base, stats.topic]
        async with semaphore:
            try:
                combined_count = await asyncio.to_thread(
                    self.store.count_items_with_topics,
                    combined,
                    min_confidence=self.config.coverage_tag_confidence,
                )
                band = await asyncio.to_thread(self.store.get_demand_band, topic_key(combined))
            except Exception as e:
                logger.warning("Skipping candidate %s: %s", stats.topic, e)
                return None
            trends_boost = await self._trends_boost(stats.topic)

        score, insight = score_gap_candidate(
            stats, combined_count, survivor_count, trends_boost, self.config
        )
        return IngredientGap(
            ingredient=stats.topic,
            co_occurrence_count=stats.raw_count,
            video_count=combined_count,
            gap_score=score,
            demand_band=band,
            trends_insight=insight,
            trends_growth=trends_boost.week_over_week_growth if trends_boost else None,
            is_breakout=trends_boost.is_breakout if trends_boost else False,
        )
