"""
Tests for market metrics, quality distribution and freshness.
"""
from datetime import timedelta

import pytest

from conftest import NOW
from demand_engine.demand.metrics import (
    age_days,
    calculate_freshness,
    calculate_market_metrics,
    calculate_quality_distribution,
    round_half_up,
)
from demand_engine.demand.models import ContentItem


def make_item(views, days_old=10, item_id=None):
    return ContentItem(
        item_id=item_id or f"v{views}-{days_old}",
        view_count=views,
        published_at=NOW - timedelta(days=days_old),
        title="miso",
    )


class TestRoundHalfUp:
    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(2.4) == 2


class TestAgeDays:
    def test_whole_days(self):
        assert age_days(make_item(1, days_old=30), NOW) == 30

    def test_partial_day_floors(self):
        item = ContentItem("x", 1, NOW - timedelta(hours=36))
        assert age_days(item, NOW) == 1


class TestMarketMetrics:
    """Tests for calculate_market_metrics."""

    def test_basic_metrics(self):
        items = [make_item(100), make_item(200), make_item(300), make_item(0)]
        m = calculate_market_metrics(items, NOW)
        assert m.total_views == 600
        assert m.avg_views == 200
        assert m.median_views == 200
        assert m.avg_views_per_day == 20
        # Count is the pre-filter sample size
        assert m.video_count == 4

    def test_median_is_upper_middle_for_even_counts(self):
        items = [make_item(v) for v in (400, 100, 300, 200)]
        assert calculate_market_metrics(items, NOW).median_views == 300

    def test_per_day_is_mean_of_ratios(self):
        """Mean of views/age per item, not total views over total age."""
        items = [make_item(1000, days_old=10), make_item(1000, days_old=100)]
        # (100 + 10) / 2 = 55; total/total would give 2000/110 = 18
        assert calculate_market_metrics(items, NOW).avg_views_per_day == 55

    def test_age_floor_of_one_day(self):
        items = [make_item(50, days_old=0)]
        assert calculate_market_metrics(items, NOW).avg_views_per_day == 50

    def test_missing_views_dropped(self):
        items = [make_item(100), ContentItem("none", None, NOW - timedelta(days=5))]
        m = calculate_market_metrics(items, NOW)
        assert m.avg_views == 100
        assert m.video_count == 2

    def test_empty_sample(self):
        m = calculate_market_metrics([], NOW)
        assert m.avg_views == 0
        assert m.video_count == 0

    def test_all_zero_views_keeps_count(self):
        m = calculate_market_metrics([make_item(0), make_item(0)], NOW)
        assert m.total_views == 0
        assert m.avg_views == 0
        assert m.video_count == 2


class TestQualityDistribution:
    """Tests for calculate_quality_distribution."""

    def test_fewer_than_three_items(self):
        q = calculate_quality_distribution([make_item(500), make_item(100)])
        assert q.top_performer_views == 500
        assert q.bottom_performer_views == 100
        assert q.outlier_ratio == 0

    def test_no_items(self):
        q = calculate_quality_distribution([])
        assert (q.top_performer_views, q.bottom_performer_views, q.outlier_ratio) == (0, 0, 0)

    def test_zero_view_items_do_not_count(self):
        q = calculate_quality_distribution([make_item(500), make_item(100), make_item(0)])
        assert q.outlier_ratio == 0

    def test_top_ten_percent_vs_bottom_half(self):
        views = [10000, 1000, 900, 800, 700, 600, 500, 400, 300, 100]
        q = calculate_quality_distribution([make_item(v) for v in views])
        assert q.top_performer_views == 10000
        # Bottom five: 600, 500, 400, 300, 100
        assert q.bottom_performer_views == 380
        assert q.outlier_ratio == 26

    def test_slices_round_up(self):
        """Five items: top ceil(0.5) = 1, bottom ceil(2.5) = 3."""
        views = [1000, 400, 300, 200, 100]
        q = calculate_quality_distribution([make_item(v) for v in views])
        assert q.top_performer_views == 1000
        assert q.bottom_performer_views == 200
        assert q.outlier_ratio == 5

    def test_ratio_capped_at_100(self):
        items = [make_item(1_000_000), make_item(1, item_id="a"), make_item(1, item_id="b")]
        assert calculate_quality_distribution(items).outlier_ratio == 100

    @pytest.mark.parametrize("views", [[5, 5, 5], [1, 10, 100, 1000], [7] * 20])
    def test_ratio_in_range(self, views):
        items = [make_item(v, item_id=str(i)) for i, v in enumerate(views)]
        assert 0 <= calculate_quality_distribution(items).outlier_ratio <= 100


class TestFreshness:
    """Tests for calculate_freshness."""

    def test_exactly_thirty_percent_recent_is_emerging(self):
        items = [make_item(1000, days_old=10, item_id=f"r{i}") for i in range(3)]
        items += [make_item(1000, days_old=200, item_id=f"o{i}") for i in range(7)]
        f = calculate_freshness(items, NOW)
        assert f.recent_video_count == 3
        assert f.recent_video_avg_views == 1000
        assert f.avg_age_days == 143
        assert f.is_emerging_topic is True

    def test_too_few_recent(self):
        items = [make_item(1000, days_old=10, item_id=f"r{i}") for i in range(2)]
        items += [make_item(1000, days_old=200, item_id=f"o{i}") for i in range(8)]
        assert calculate_freshness(items, NOW).is_emerging_topic is False

    def test_recent_items_underperforming(self):
        items = [make_item(100, days_old=10, item_id=f"r{i}") for i in range(5)]
        items += [make_item(1000, days_old=200, item_id=f"o{i}") for i in range(5)]
        assert calculate_freshness(items, NOW).is_emerging_topic is False

    def test_no_older_items(self):
        items = [make_item(10, days_old=5, item_id=str(i)) for i in range(4)]
        assert calculate_freshness(items, NOW).is_emerging_topic is True

    def test_ninety_days_is_not_recent(self):
        f = calculate_freshness([make_item(100, days_old=90)], NOW)
        assert f.recent_video_count == 0

    def test_empty(self):
        f = calculate_freshness([], NOW)
        assert f.recent_video_count == 0
        assert f.is_emerging_topic is False
