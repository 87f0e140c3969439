"""
SQLite storage for content items, trend points and demand signals.
"""
import json
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..demand.models import ContentItem, DemandSignal, TopicTag
from ..demand.topics import topic_key


@dataclass
class TrendPoint:
    """Daily search-interest value for a keyword."""
    keyword: str
    date: datetime
    interest_value: int
    is_breakout: bool = False


def _parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _placeholders(values: Sequence[Any]) -> str:
    return ", ".join("?" for _ in values)


class Database:
    """Database adapter for content items, trends and demand signals.

    Methods are synchronous. A lock serialises access so the same
    connection can be used from worker threads (asyncio.to_thread).
    """

    def __init__(self, connection_string: str):
        """
        Initialize database connection.

        Args:
            connection_string: Path to the SQLite .db file.

        Raises:
            ValueError: If given a URL instead of a file path.
        """
        if "://" in connection_string:
            raise ValueError(f"Expected a SQLite database path, got {connection_string!r}")
        self.connection_string = connection_string
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def connect(self) -> None:
        """Establish database connection."""
        self._conn = sqlite3.connect(self.connection_string, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _require_conn(self) -> sqlite3.Connection:
        if not self._conn:
            raise RuntimeError("Database not connected")
        return self._conn

    def ensure_tables(self) -> None:
        """Create tables if they don't exist."""
        conn = self._require_conn()

        with self._lock:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS content_items (
                    item_id TEXT PRIMARY KEY,
                    title TEXT,
                    description TEXT,
                    view_count INTEGER,
                    published_at TIMESTAMP NOT NULL,
                    collected_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS item_topics (
                    item_id TEXT NOT NULL REFERENCES content_items(item_id),
                    topic TEXT NOT NULL,
                    confidence REAL NOT NULL DEFAULT 1.0,
                    PRIMARY KEY (item_id, topic)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS trend_points (
                    keyword TEXT NOT NULL,
                    date TIMESTAMP NOT NULL,
                    interest_value INTEGER NOT NULL,
                    is_breakout INTEGER DEFAULT 0,
                    fetched_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (keyword, date)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS demand_signals (
                    topic_key TEXT PRIMARY KEY,
                    demand_score INTEGER NOT NULL,
                    demand_band TEXT NOT NULL,
                    gap_type TEXT,
                    confidence REAL,
                    sample_size INTEGER,
                    payload TEXT,
                    computed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_item_topics_topic
                ON item_topics(topic, confidence)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_content_items_views
                ON content_items(view_count DESC)
            """)
            conn.commit()

    # Content items

    def save_item(self, item: ContentItem) -> None:
        """Insert or update an item and replace its topic tags."""
        conn = self._require_conn()

        with self._lock:
            conn.execute("""
                INSERT INTO content_items
                    (item_id, title, description, view_count, published_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(item_id) DO UPDATE SET
                    title = excluded.title,
                    description = excluded.description,
                    view_count = COALESCE(excluded.view_count, content_items.view_count),
                    published_at = excluded.published_at
            """, (
                item.item_id, item.title, item.description,
                item.view_count, item.published_at.isoformat(),
            ))
            conn.execute("DELETE FROM item_topics WHERE item_id = ?", (item.item_id,))
            conn.executemany("""
                INSERT OR REPLACE INTO item_topics (item_id, topic, confidence)
                VALUES (?, ?, ?)
            """, [(item.item_id, t.name, t.confidence) for t in item.tags])
            conn.commit()

    def _load_items(
        self, rows: Iterable[sqlite3.Row], min_confidence: float = 0.0,
    ) -> List[ContentItem]:
        """Build items from content_items rows, attaching tags >= min_confidence."""
        rows = list(rows)
        if not rows:
            return []

        ids = [row["item_id"] for row in rows]
        tag_rows = self._conn.execute(f"""
            SELECT item_id, topic, confidence FROM item_topics
            WHERE item_id IN ({_placeholders(ids)}) AND confidence >= ?
            ORDER BY item_id, topic
        """, (*ids, min_confidence)).fetchall()

        tags: Dict[str, List[TopicTag]] = {}
        for row in tag_rows:
            tags.setdefault(row["item_id"], []).append(
                TopicTag(name=row["topic"], confidence=row["confidence"])
            )

        return [
            ContentItem(
                item_id=row["item_id"],
                view_count=row["view_count"],
                published_at=_parse_datetime(row["published_at"]),
                title=row["title"] or "",
                description=row["description"] or "",
                tags=tuple(tags.get(row["item_id"], [])),
            )
            for row in rows
        ]

    def get_items_for_topics(self, topics: Sequence[str], limit: int = 50) -> List[ContentItem]:
        """Items tagged with any of the topics, most viewed first.

        This is the search sample the demand calculator filters for relevance.
        """
        conn = self._require_conn()
        topics = list(topics)
        if not topics:
            return []

        with self._lock:
            rows = conn.execute(f"""
                SELECT c.item_id, c.title, c.description, c.view_count, c.published_at
                FROM content_items c
                WHERE EXISTS (
                    SELECT 1 FROM item_topics t
                    WHERE t.item_id = c.item_id AND t.topic IN ({_placeholders(topics)})
                )
                ORDER BY COALESCE(c.view_count, 0) DESC, c.item_id
                LIMIT ?
            """, (*topics, limit)).fetchall()
            return self._load_items(rows)

    def get_top_tagged_items(
        self,
        topics: Sequence[str],
        min_views: int = 1000,
        min_confidence: float = 0.6,
        limit: int = 100,
    ) -> List[ContentItem]:
        """Most viewed items with at least one topic tagged at min_confidence.

        Only tags at or above min_confidence are attached to the returned items.
        """
        conn = self._require_conn()
        topics = list(topics)
        if not topics:
            return []

        with self._lock:
            rows = conn.execute(f"""
                SELECT c.item_id, c.title, c.description, c.view_count, c.published_at
                FROM content_items c
                WHERE c.view_count >= ?
                  AND EXISTS (
                    SELECT 1 FROM item_topics t
                    WHERE t.item_id = c.item_id
                      AND t.topic IN ({_placeholders(topics)})
                      AND t.confidence >= ?
                  )
                ORDER BY c.view_count DESC, c.item_id
                LIMIT ?
            """, (min_views, *topics, min_confidence, limit)).fetchall()
            return self._load_items(rows, min_confidence)

    def count_items_with_topics(self, topics: Sequence[str], min_confidence: float = 0.5) -> int:
        """Count items tagged with every one of the topics at min_confidence."""
        conn = self._require_conn()
        topics = sorted(set(topics))
        if not topics:
            return 0

        with self._lock:
            row = conn.execute(f"""
                SELECT COUNT(*) AS n FROM (
                    SELECT item_id FROM item_topics
                    WHERE topic IN ({_placeholders(topics)}) AND confidence >= ?
                    GROUP BY item_id
                    HAVING COUNT(DISTINCT topic) = ?
                )
            """, (*topics, min_confidence, len(topics))).fetchone()
            return row["n"]

    # Trends

    def save_trend_point(self, point: TrendPoint) -> None:
        """Insert or update a daily interest value."""
        conn = self._require_conn()

        with self._lock:
            conn.execute("""
                INSERT INTO trend_points (keyword, date, interest_value, is_breakout, fetched_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(keyword, date) DO UPDATE SET
                    interest_value = excluded.interest_value,
                    is_breakout = excluded.is_breakout,
                    fetched_at = excluded.fetched_at
            """, (
                point.keyword.lower(), point.date.isoformat(), point.interest_value,
                1 if point.is_breakout else 0, datetime.now(timezone.utc).isoformat(),
            ))
            conn.commit()

    def get_trend_points(
        self, keyword: str, since: Optional[datetime] = None, limit: int = 14,
    ) -> List[TrendPoint]:
        """Trend points for a keyword, newest first."""
        conn = self._require_conn()

        query = """
            SELECT keyword, date, interest_value, is_breakout
            FROM trend_points
            WHERE keyword = ?
        """
        params: List[Any] = [keyword.lower()]
        if since is not None:
            query += " AND date >= ?"
            params.append(since.isoformat())
        query += " ORDER BY date DESC LIMIT ?"
        params.append(limit)

        with self._lock:
            rows = conn.execute(query, params).fetchall()

        return [
            TrendPoint(
                keyword=row["keyword"],
                date=_parse_datetime(row["date"]),
                interest_value=row["interest_value"],
                is_breakout=row["is_breakout"] == 1,
            )
            for row in rows
        ]

    # Demand signals

    def save_demand_signal(self, topics: Sequence[str], signal: DemandSignal) -> None:
        """Persist the latest signal for a topic set, keyed by its sorted topic key."""
        conn = self._require_conn()

        with self._lock:
            conn.execute("""
                INSERT INTO demand_signals
                    (topic_key, demand_score, demand_band, gap_type,
                     confidence, sample_size, payload, computed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(topic_key) DO UPDATE SET
                    demand_score = excluded.demand_score,
                    demand_band = excluded.demand_band,
                    gap_type = excluded.gap_type,
                    confidence = excluded.confidence,
                    sample_size = excluded.sample_size,
                    payload = excluded.payload,
                    computed_at = excluded.computed_at
            """, (
                topic_key(topics), signal.demand_score, signal.demand_band,
                signal.content_gap.type, signal.confidence, signal.sample_size,
                json.dumps(signal.to_wire()), datetime.now(timezone.utc).isoformat(),
            ))
            conn.commit()

    def get_demand_band(self, key: str) -> Optional[str]:
        """Persisted demand band for a topic key such as 'garlic|miso'."""
        conn = self._require_conn()

        with self._lock:
            row = conn.execute(
                "SELECT demand_band FROM demand_signals WHERE topic_key = ?", (key,)
            ).fetchone()
        return row["demand_band"] if row else None

    def get_demand_signal_history(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Most recently computed demand signals.

        Args:
            limit: Max number of signals to return.

        Returns:
            List of dicts with the key, score, band and gap type of each signal.
        """
        conn = self._require_conn()

        with self._lock:
            rows = conn.execute("""
                SELECT topic_key, demand_score, demand_band, gap_type,
                       confidence, sample_size, computed_at
                FROM demand_signals
                ORDER BY computed_at DESC, topic_key
                LIMIT ?
            """, (limit,)).fetchall()

        return [
            {
                "topic_key": row["topic_key"],
                "topics": row["topic_key"].split("|"),
                "demand_score": row["demand_score"],
                "demand_band": row["demand_band"],
                "gap_type": row["gap_type"],
                "confidence": row["confidence"],
                "sample_size": row["sample_size"],
                "computed_at": row["computed_at"],
            }
            for row in rows
        ]
