#!/usr/bin/env python3
"""
CLI for topic demand analysis and content gap mining

Usage:
    python -m demand_engine.cli --db-path /path/to/db.sqlite demand miso pasta
    python -m demand_engine.cli --db-path /path/to/db.sqlite demand miso --items videos.json
    python -m demand_engine.cli --db-path /path/to/db.sqlite gaps miso pasta
    python -m demand_engine.cli --db-path /path/to/db.sqlite trends miso
    python -m demand_engine.cli --db-path /path/to/db.sqlite history --limit 20
"""
import argparse
import asyncio
import json
import logging
import sys

from .config import DEFAULT_CONFIG, EngineConfig
from .db.database import Database
from .demand.models import ContentItem
from .demand.topics import InvalidTopicsError, normalize_topics
from .service import DemandInsightsService
from .trends.fetcher import TrendsFetcher

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Topic demand signals and content gaps"
    )
    parser.add_argument(
        "--db-path",
        required=True,
        help="Path to SQLite database"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON"
    )
    parser.add_argument(
        "--config",
        help="JSON file with scoring threshold overrides"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Demand command
    demand_parser = subparsers.add_parser(
        "demand",
        help="Compute the demand signal for a topic set"
    )
    demand_parser.add_argument(
        "topics",
        nargs="+",
        help="1-5 topics, e.g. miso pasta"
    )
    demand_parser.add_argument(
        "--items",
        help="JSON file with the item sample (default: items stored in the database)"
    )
    demand_parser.add_argument(
        "--no-trends",
        action="store_true",
        help="Ignore stored search-interest data"
    )

    # Gaps command
    gaps_parser = subparsers.add_parser(
        "gaps",
        help="Find adjacent topics that pair well but are under-covered"
    )
    gaps_parser.add_argument(
        "topics",
        nargs="+",
        help="1-5 base topics"
    )
    gaps_parser.add_argument(
        "--max-concurrency",
        type=int,
        default=8,
        help="Parallel candidate lookups (default: 8)"
    )

    # Trends command
    trends_parser = subparsers.add_parser(
        "trends",
        help="Show the aggregated search-interest boost for topics"
    )
    trends_parser.add_argument(
        "topics",
        nargs="+",
        help="Keywords to look up"
    )

    # History command
    history_parser = subparsers.add_parser(
        "history",
        help="Show recently computed demand signals"
    )
    history_parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Max signals to show (default: 10)"
    )

    return parser.parse_args(argv)


def load_items(path: str) -> list:
    """Read an item sample: a JSON list, or an object with an "items" list."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("items", [])

    items = []
    for i, raw in enumerate(data):
        try:
            items.append(ContentItem.from_dict(raw))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Skipping malformed item #%d in %s: %s", i, path, e)
    return items


async def cmd_demand(db: Database, args, config: EngineConfig) -> dict:
    """Execute the demand command."""
    trends = None if args.no_trends else TrendsFetcher(db)
    service = DemandInsightsService(db, trends=trends, config=config)
    items = load_items(args.items) if args.items else None

    signal = await service.analyze(args.topics, items=items)
    return {
        "command": "demand",
        "topics": normalize_topics(args.topics),
        "signal": signal.to_wire(),
    }


async def cmd_gaps(db: Database, args, config: EngineConfig) -> dict:
    """Execute the gaps command."""
    service = DemandInsightsService(
        db, trends=TrendsFetcher(db), config=config,
        max_concurrency=args.max_concurrency,
    )
    report = await service.find_content_gaps(args.topics)
    return {
        "command": "gaps",
        "report": report.to_wire(),
    }


async def cmd_trends(db: Database, args) -> dict:
    """Execute the trends command."""
    topics = normalize_topics(args.topics)
    boost = await TrendsFetcher(db).get_trends_boost(topics)
    return {
        "command": "trends",
        "topics": topics,
        "boost": boost.to_wire() if boost else None,
    }


def cmd_history(db: Database, args) -> dict:
    """Execute the history command."""
    return {
        "command": "history",
        "signals": db.get_demand_signal_history(limit=args.limit),
    }


def print_result(command: str, result: dict) -> None:
    """Pretty-print a command result."""
    print(f"\n{'=' * 50}")
    print(f"Command: {result['command']}")
    print(f"{'=' * 50}")

    if command == "demand":
        s = result["signal"]
        m = s["marketMetrics"]
        gap = s["contentGap"]
        print(f"Topics: {', '.join(result['topics'])}")
        print(f"Demand: {s['demandScore']}/100 ({s['demandBand']})")
        print(f"Confidence: {s['confidence']:.2f} (sample of {s['sampleSize']})")
        print(f"\nContent gap: {gap['type']} ({gap['score']}/100)")
        print(f"  {gap['reasoning']}")
        print("\nMarket:")
        print(f"  Videos: {m['videoCount']}")
        print(f"  Avg views: {m['avgViews']:,}")
        print(f"  Median views: {m['medianViews']:,}")
        print(f"  Avg views/day: {m['avgViewsPerDay']:,}")
        if s.get("trendsBoost"):
            tb = s["trendsBoost"]
            breakout = " BREAKOUT" if tb["isBreakout"] else ""
            print(f"\nSearch interest: {tb['interestScore']:.0f} "
                  f"({tb['weekOverWeekGrowth']:+.1f}% week over week){breakout}")
        if s["opportunities"]:
            print("\nOpportunities:")
            for opp in s["opportunities"]:
                print(f"  [{opp['priority']}] {opp['title']}")
                print(f"      {opp['description']}")

    elif command == "gaps":
        r = result["report"]
        print(f"Base topics: {', '.join(r['baseIngredients'])}")
        print(f"Matching videos: {r['totalVideos']}")
        if not r["gaps"]:
            print("No content gaps found.")
        for i, g in enumerate(r["gaps"], 1):
            band = g.get("demandBand") or "n/a"
            print(f"\n  #{i} [{g['gapScore']:.3f}] {g['ingredient']}")
            print(f"     Pairs in {g['coOccurrenceCount']} videos, "
                  f"{g['videoCount']} cover the combination | demand: {band}")
            if g.get("trendsInsight"):
                print(f"     {g['trendsInsight']}")

    elif command == "trends":
        print(f"Keywords: {', '.join(result['topics'])}")
        boost = result["boost"]
        if boost is None:
            print("No search-interest data.")
        else:
            print(f"  Interest: {boost['interestScore']:.0f}")
            print(f"  Week over week: {boost['weekOverWeekGrowth']:+.1f}%")
            print(f"  Breakout: {'yes' if boost['isBreakout'] else 'no'}")

    elif command == "history":
        signals = result.get("signals", [])
        if not signals:
            print("No demand signals found.")
        else:
            print("\n  SCORE | BAND     | GAP         | TOPICS")
            print("  " + "-" * 55)
            for s in signals:
                print(f"  {s['demand_score']:>5} | {s['demand_band']:<8} | "
                      f"{(s['gap_type'] or ''):<11} | {s['topic_key']}")

    print(f"{'=' * 50}\n")


async def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    config = EngineConfig.from_json(args.config) if args.config else DEFAULT_CONFIG

    try:
        with Database(args.db_path) as db:
            db.ensure_tables()
            if args.command == "demand":
                result = await cmd_demand(db, args, config)
            elif args.command == "gaps":
                result = await cmd_gaps(db, args, config)
            elif args.command == "trends":
                result = await cmd_trends(db, args)
            elif args.command == "history":
                result = cmd_history(db, args)
            else:
                logger.error(f"Unknown command: {args.command}")
                sys.exit(1)
    except InvalidTopicsError as e:
        logger.error(f"Invalid topics: {e}")
        sys.exit(2)

    # Output results
    if args.json:
        print(json.dumps(result, indent=2))
    else:
        print_result(args.command, result)
    return result


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
