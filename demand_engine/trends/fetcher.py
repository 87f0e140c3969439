"""
Search-interest boost from stored daily trend points.

Trend points are collected by an external job; this module only reads them
and condenses them into a TrendsBoost. Lookup failures never fail a demand
computation: they are logged and treated as "no boost".
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Protocol, Sequence

import numpy as np

from ..db.database import Database, TrendPoint
from ..demand.metrics import round_half_up
from ..demand.models import TrendsBoost

logger = logging.getLogger(__name__)

WINDOW_DAYS = 14
WEEK = 7


class TrendsProvider(Protocol):
    """Anything that can supply a search-interest boost for keywords."""

    async def get_trends_boost(self, keywords: Sequence[str]) -> Optional[TrendsBoost]:
        ...


def week_over_week_growth(values: Sequence[float]) -> float:
    """Percent change of the last week's mean against the week before.

    Args:
        values: Daily interest values, newest first.

    Returns:
        Growth rounded half up to one decimal; 0.0 without a previous week to
        compare against or when the previous week averaged zero.
    """
    if len(values) <= WEEK:
        return 0.0
    last_week = float(np.mean(values[:WEEK]))
    previous_week = float(np.mean(values[WEEK:2 * WEEK]))
    if previous_week <= 0:
        return 0.0
    return round_half_up((last_week - previous_week) * 100 / previous_week * 10) / 10


def boost_from_points(points: Sequence[TrendPoint]) -> Optional[TrendsBoost]:
    """Condense trend points (newest first) into a boost."""
    if not points:
        return None
    values = [p.interest_value for p in points]
    return TrendsBoost(
        interest_score=points[0].interest_value,
        week_over_week_growth=week_over_week_growth(values),
        is_breakout=any(p.is_breakout for p in points),
    )


def aggregate_boosts(boosts: Sequence[Optional[TrendsBoost]]) -> Optional[TrendsBoost]:
    """Combine per-keyword boosts: highest interest, mean growth, any breakout."""
    valid = [b for b in boosts if b is not None]
    if not valid:
        return None
    return TrendsBoost(
        interest_score=max(b.interest_score for b in valid),
        week_over_week_growth=float(np.mean([b.week_over_week_growth for b in valid])),
        is_breakout=any(b.is_breakout for b in valid),
    )


class TrendsFetcher:
    """Reads trend points from the database and builds boosts."""

    def __init__(
        self,
        db: Database,
        window_days: int = WINDOW_DAYS,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.db = db
        self.window_days = window_days
        self.clock = clock

    def keyword_boost(self, keyword: str) -> Optional[TrendsBoost]:
        """Boost for a single keyword from its last window of points."""
        since = self.clock() - timedelta(days=self.window_days)
        points = self.db.get_trend_points(keyword, since=since, limit=self.window_days)
        return boost_from_points(points)

    async def get_trends_boost(self, keywords: Sequence[str]) -> Optional[TrendsBoost]:
        """Aggregated boost for keywords, or None when unavailable."""
        if not keywords:
            return None

        try:
            boosts: List[Optional[TrendsBoost]] = []
            for keyword in keywords:
                boosts.append(await asyncio.to_thread(self.keyword_boost, keyword))
        except Exception as e:
            logger.warning(f"Trends lookup failed for {list(keywords)}: {e}")
            return None

        return aggregate_boosts(boosts)
