"""
Tests for the CLI module.
"""
import json
import logging
import sys
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from conftest import NOW
from demand_engine.cli import load_items, main, parse_args
from demand_engine.db.database import Database, TrendPoint
from demand_engine.demand.models import ContentItem, TopicTag


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "cli.db")


@pytest.fixture
def seeded_db_path(db_path):
    """Database with 6 miso videos and no other topic tags."""
    with Database(db_path) as db:
        db.ensure_tables()
        for i in range(6):
            db.save_item(ContentItem(
                item_id=f"v{i}",
                view_count=20_000 * (i + 1),
                published_at=NOW - timedelta(days=20 + 40 * i),
                title=f"Miso glazed recipe {i}",
                tags=(TopicTag("miso", 0.9),),
            ))
    return db_path


def write_items(path, count, title="Miso soup"):
    items = [
        {
            "id": f"item{i}",
            "title": title,
            "description": "",
            "viewCount": str(5000 * (i + 1)),
            "publishedAt": "2025-01-15T10:00:00Z",
        }
        for i in range(count)
    ]
    path.write_text(json.dumps({"items": items}))
    return str(path)


class TestParseArgs:
    """Tests for argument parsing."""

    def test_demand_command(self):
        """Test parsing demand command."""
        with patch.object(sys, 'argv', ['cli.py', '--db-path', '/test/db.sqlite', 'demand', 'miso', 'pasta']):
            args = parse_args()
            assert args.command == "demand"
            assert args.db_path == "/test/db.sqlite"
            assert args.topics == ["miso", "pasta"]
            assert args.items is None
            assert args.no_trends is False

    def test_demand_with_items(self):
        args = parse_args(['--db-path', 'x.db', 'demand', 'miso', '--items', 'v.json', '--no-trends'])
        assert args.items == 'v.json'
        assert args.no_trends is True

    def test_gaps_command(self):
        args = parse_args(['--db-path', 'x.db', '--json', 'gaps', 'miso', '--max-concurrency', '3'])
        assert args.command == "gaps"
        assert args.json is True
        assert args.max_concurrency == 3

    def test_gaps_default_concurrency(self):
        assert parse_args(['--db-path', 'x.db', 'gaps', 'miso']).max_concurrency == 8

    def test_trends_command(self):
        args = parse_args(['--db-path', 'x.db', 'trends', 'miso'])
        assert args.command == "trends"
        assert args.topics == ["miso"]

    def test_history_command(self):
        args = parse_args(['--db-path', 'x.db', 'history', '--limit', '20'])
        assert args.command == "history"
        assert args.limit == 20

    def test_missing_db_path(self):
        """Test that missing db-path raises error."""
        with pytest.raises(SystemExit):
            parse_args(['demand', 'miso'])

    def test_missing_command(self):
        with pytest.raises(SystemExit):
            parse_args(['--db-path', 'x.db'])


class TestLoadItems:
    def test_object_with_items(self, tmp_path):
        items = load_items(write_items(tmp_path / "items.json", 2))
        assert [i.item_id for i in items] == ["item0", "item1"]
        assert items[1].view_count == 10_000

    def test_plain_list(self, tmp_path):
        path = tmp_path / "items.json"
        path.write_text(json.dumps([
            {"id": "a", "title": "Miso", "viewCount": None, "publishedAt": "2025-01-15T10:00:00Z"},
        ]))
        [item] = load_items(str(path))
        assert item.view_count is None
        assert item.published_at.tzinfo is not None

    def test_malformed_items_skipped(self, tmp_path, caplog):
        path = tmp_path / "items.json"
        path.write_text(json.dumps({"items": [
            {"id": "good", "title": "Miso", "viewCount": 10, "publishedAt": "2025-01-15T10:00:00Z"},
            {"id": "no-date", "title": "Miso", "viewCount": 10},
            {"id": "bad-tag", "publishedAt": "2025-01-15T10:00:00Z", "tags": [{"confidence": 0.9}]},
            "not an item",
        ]}))

        with caplog.at_level(logging.WARNING):
            items = load_items(str(path))

        assert [i.item_id for i in items] == ["good"]
        assert caplog.text.count("Skipping malformed item") == 3


class TestDemandCommand:
    """Tests for the demand command."""

    @pytest.mark.asyncio
    async def test_items_file(self, db_path, tmp_path, capsys):
        items = write_items(tmp_path / "items.json", 4)
        result = await main(['--db-path', db_path, '--json', 'demand', 'Miso', '--items', items, '--no-trends'])

        assert result["command"] == "demand"
        assert result["topics"] == ["miso"]
        assert result["signal"]["sampleSize"] == 4
        printed = json.loads(capsys.readouterr().out)
        assert printed["signal"]["demandBand"] == result["signal"]["demandBand"]

    @pytest.mark.asyncio
    async def test_from_database_persists(self, seeded_db_path):
        result = await main(['--db-path', seeded_db_path, '--json', 'demand', 'miso'])
        assert result["signal"]["sampleSize"] == 6

        history = await main(['--db-path', seeded_db_path, '--json', 'history'])
        assert [s["topic_key"] for s in history["signals"]] == ["miso"]
        assert history["signals"][0]["demand_band"] == result["signal"]["demandBand"]

    @pytest.mark.asyncio
    async def test_empty_database(self, db_path):
        result = await main(['--db-path', db_path, '--json', 'demand', 'miso'])
        assert result["signal"]["demandBand"] == "unknown"
        history = await main(['--db-path', db_path, '--json', 'history'])
        assert history["signals"] == []

    @pytest.mark.asyncio
    async def test_config_file(self, db_path, tmp_path):
        items = write_items(tmp_path / "items.json", 2)
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"relevance": {"min_relevant_items": 2}}))

        result = await main([
            '--db-path', db_path, '--json', '--config', str(config),
            'demand', 'miso', '--items', items, '--no-trends',
        ])
        assert result["signal"]["marketMetrics"]["videoCount"] == 2

    @pytest.mark.asyncio
    async def test_invalid_topics_exit_code(self, db_path):
        with pytest.raises(SystemExit) as exc:
            await main(['--db-path', db_path, 'demand', 'a', 'b', 'c', 'd', 'e', 'f'])
        assert exc.value.code == 2

    @pytest.mark.asyncio
    async def test_text_output(self, db_path, tmp_path, capsys):
        items = write_items(tmp_path / "items.json", 4)
        await main(['--db-path', db_path, 'demand', 'miso', '--items', items, '--no-trends'])
        out = capsys.readouterr().out
        assert "Command: demand" in out
        assert "Demand:" in out
        assert "Content gap:" in out


class TestGapsCommand:
    @pytest.mark.asyncio
    async def test_no_cooccurring_topics(self, seeded_db_path):
        result = await main(['--db-path', seeded_db_path, '--json', 'gaps', 'miso'])
        report = result["report"]
        assert report["baseIngredients"] == ["miso"]
        assert report["totalVideos"] == 6
        # Nothing co-occurs with miso in the seeded videos
        assert report["gaps"] == []

    @pytest.mark.asyncio
    async def test_text_output(self, seeded_db_path, capsys):
        await main(['--db-path', seeded_db_path, 'gaps', 'miso'])
        assert "No content gaps found." in capsys.readouterr().out


class TestTrendsCommand:
    @pytest.mark.asyncio
    async def test_no_data(self, db_path):
        result = await main(['--db-path', db_path, '--json', 'trends', 'miso'])
        assert result == {"command": "trends", "topics": ["miso"], "boost": None}

    @pytest.mark.asyncio
    async def test_recent_point(self, db_path):
        with Database(db_path) as db:
            db.ensure_tables()
            db.save_trend_point(TrendPoint("miso", datetime.now(timezone.utc), 70, is_breakout=True))

        result = await main(['--db-path', db_path, '--json', 'trends', 'miso'])
        assert result["boost"] == {
            "interestScore": 70.0,
            "weekOverWeekGrowth": 0.0,
            "isBreakout": True,
        }
