"""
Tests for DemandInsightsService.
"""
import logging
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import NOW
from demand_engine.cache import DemandSignalCache
from demand_engine.demand.models import ContentItem, TopicTag, TrendsBoost
from demand_engine.demand.topics import InvalidTopicsError
from demand_engine.service import DemandInsightsService


def seed_miso_videos(db):
    """10 miso videos: butter tagged on 5, garlic on 2."""
    for i in range(10):
        tags = [TopicTag("miso", 0.9)]
        if i < 5:
            tags.append(TopicTag("butter", 0.8))
        if i in (5, 6):
            tags.append(TopicTag("garlic", 0.7))
        db.save_item(ContentItem(
            item_id=f"v{i}",
            view_count=10_000 + i * 1000,
            published_at=NOW - timedelta(days=15 + 30 * i),
            title=f"Miso recipe {i}",
            tags=tuple(tags),
        ))


@pytest.fixture
def seeded_db(db):
    seed_miso_videos(db)
    return db


class TestAnalyze:
    """Tests for analyze()."""

    @pytest.mark.asyncio
    async def test_loads_sample_and_persists(self, seeded_db):
        service = DemandInsightsService(seeded_db)
        signal = await service.analyze(["Miso"], now=NOW)

        assert signal.sample_size == 10
        assert seeded_db.get_demand_band("miso") == signal.demand_band

    @pytest.mark.asyncio
    async def test_empty_sample_not_persisted(self, db):
        signal = await DemandInsightsService(db).analyze(["miso"], now=NOW)
        assert signal.demand_band == "unknown"
        assert db.get_demand_band("miso") is None

    @pytest.mark.asyncio
    async def test_invalid_topics(self, seeded_db):
        service = DemandInsightsService(seeded_db)
        with pytest.raises(InvalidTopicsError):
            await service.analyze([])
        with pytest.raises(InvalidTopicsError):
            await service.analyze(["a", "b", "c", "d", "e", "f"])

    @pytest.mark.asyncio
    async def test_trends_boost_applied(self, seeded_db):
        boost = TrendsBoost(interest_score=65, week_over_week_growth=12.0)
        trends = MagicMock()
        trends.get_trends_boost = AsyncMock(return_value=boost)

        signal = await DemandInsightsService(seeded_db, trends=trends).analyze(["miso"], now=NOW)

        trends.get_trends_boost.assert_awaited_once_with(["miso"])
        assert signal.trends_boost == boost

    @pytest.mark.asyncio
    async def test_trends_failure_degrades(self, seeded_db, caplog):
        trends = MagicMock()
        trends.get_trends_boost = AsyncMock(side_effect=RuntimeError("provider down"))

        with caplog.at_level(logging.WARNING):
            signal = await DemandInsightsService(seeded_db, trends=trends).analyze(["miso"], now=NOW)

        assert signal.trends_boost is None
        assert signal.sample_size == 10
        assert "Trends unavailable" in caplog.text


class TestCaching:
    """Tests for the cached analyze() path."""

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, seeded_db):
        service = DemandInsightsService(seeded_db, cache=DemandSignalCache())
        with patch.object(
            seeded_db, "get_items_for_topics", wraps=seeded_db.get_items_for_topics
        ) as loader:
            first = await service.analyze(["miso"], now=NOW)
            second = await service.analyze(["MISO"], now=NOW)

        assert loader.call_count == 1
        assert second is first

    @pytest.mark.asyncio
    async def test_explicit_items_bypass_cache(self, seeded_db):
        cache = DemandSignalCache()
        service = DemandInsightsService(seeded_db, cache=cache)
        items = seeded_db.get_items_for_topics(["miso"])[:4]

        signal = await service.analyze(["miso"], items=items, now=NOW)

        assert signal.sample_size == 4
        assert cache.stats()["size"] == 0

    @pytest.mark.asyncio
    async def test_invalidate(self, seeded_db):
        service = DemandInsightsService(seeded_db, cache=DemandSignalCache())
        with patch.object(
            seeded_db, "get_items_for_topics", wraps=seeded_db.get_items_for_topics
        ) as loader:
            await service.analyze(["miso"], now=NOW)
            assert service.invalidate(["Miso"]) is True
            await service.analyze(["miso"], now=NOW)

        assert loader.call_count == 2

    def test_invalidate_without_cache(self, seeded_db):
        assert DemandInsightsService(seeded_db).invalidate(["miso"]) is False


class TestFindContentGaps:
    """Tests for find_content_gaps()."""

    @pytest.mark.asyncio
    async def test_gaps_from_database(self, seeded_db):
        report = await DemandInsightsService(seeded_db).find_content_gaps(["Miso"])

        assert report.base_ingredients == ["miso"]
        assert report.total_videos == 10
        assert {g.ingredient for g in report.gaps} == {"butter", "garlic"}
        butter = next(g for g in report.gaps if g.ingredient == "butter")
        assert butter.co_occurrence_count == 5
        assert butter.video_count == 5

    @pytest.mark.asyncio
    async def test_gap_carries_persisted_band(self, seeded_db):
        service = DemandInsightsService(seeded_db)
        combo = [
            ContentItem(
                item_id=f"c{i}", view_count=8000,
                published_at=NOW - timedelta(days=10), title="Miso butter noodles",
            )
            for i in range(4)
        ]
        signal = await service.analyze(["miso", "butter"], items=combo, now=NOW)

        report = await service.find_content_gaps(["miso"])
        butter = next(g for g in report.gaps if g.ingredient == "butter")
        assert butter.demand_band == signal.demand_band

    @pytest.mark.asyncio
    async def test_invalid_topics(self, seeded_db):
        with pytest.raises(InvalidTopicsError):
            await DemandInsightsService(seeded_db).find_content_gaps([])
