"""
Service boundary: demand analysis and gap mining over a database.
"""
import asyncio
import logging
from datetime import datetime
from typing import Optional, Sequence

from .cache import DemandSignalCache
from .config import DEFAULT_CONFIG, EngineConfig
from .db.database import Database
from .demand.calculator import compute_demand_signal
from .demand.models import ContentItem, DemandSignal, TrendsBoost
from .demand.topics import normalize_topics
from .gaps.miner import ContentGapMiner
from .gaps.models import GapReport
from .trends.fetcher import TrendsProvider

logger = logging.getLogger(__name__)


class DemandInsightsService:
    """Entry point for callers (CLI, API handlers).

    Topic lists are validated here, before any scorer runs.
    """

    def __init__(
        self,
        db: Database,
        trends: Optional[TrendsProvider] = None,
        cache: Optional[DemandSignalCache] = None,
        config: EngineConfig = DEFAULT_CONFIG,
        max_concurrency: int = 8,
    ):
        self.db = db
        self.trends = trends
        self.cache = cache
        self.config = config
        self.miner = ContentGapMiner(
            db, trends=trends, config=config.gaps, max_concurrency=max_concurrency,
        )

    async def _trends_boost(self, topics: Sequence[str]) -> Optional[TrendsBoost]:
        if self.trends is None:
            return None
        try:
            return await self.trends.get_trends_boost(topics)
        except Exception as e:
            logger.warning("Trends unavailable for %s: %s", list(topics), e)
            return None

    async def analyze(
        self,
        topics: Sequence[str],
        items: Optional[Sequence[ContentItem]] = None,
        now: Optional[datetime] = None,
    ) -> DemandSignal:
        """Demand signal for a topic set.

        Args:
            topics: 1-5 topics.
            items: Item sample to analyse. When omitted, items tagged with the
                   topics are loaded from the database and the result is cached.
            now: Reference time for ages and recency.

        Raises:
            InvalidTopicsError: If the topic list is empty or has more than 5 entries.
        """
        topics = normalize_topics(topics)

        async def compute() -> DemandSignal:
            sample = items
            if sample is None:
                sample = await asyncio.to_thread(self.db.get_items_for_topics, topics)
            boost = await self._trends_boost(topics)
            signal = compute_demand_signal(
                sample, topics, boost, now=now, config=self.config
            )
            if signal.sample_size > 0:
                await asyncio.to_thread(self.db.save_demand_signal, topics, signal)
            logger.info(
                "Demand for %s: %s (score=%d, sample=%d)",
                topics, signal.demand_band, signal.demand_score, signal.sample_size,
            )
            return signal

        # An explicit sample is specific to this call and must not be shared
        if self.cache is None or items is not None:
            return await compute()
        return await self.cache.get_or_compute(topics, compute)

    async def find_content_gaps(self, topics: Sequence[str]) -> GapReport:
        """Adjacent-topic gaps for a base topic set."""
        topics = normalize_topics(topics)
        return await self.miner.find_content_gaps(topics)

    def invalidate(self, topics: Sequence[str]) -> bool:
        """Drop a cached signal so the next analyze() recomputes it."""
        if self.cache is None:
            return False
        return self.cache.invalidate(normalize_topics(topics))
