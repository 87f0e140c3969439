"""
Relevance filter: which fetched items are actually about the topic set.
"""
import logging
from typing import List, Sequence

from ..config import DEFAULT_CONFIG, RelevanceConfig
from .models import ContentItem
from .topics import relevance_threshold

logger = logging.getLogger(__name__)


def topic_in_text(
    topic: str,
    text: str,
    min_part_length: int = DEFAULT_CONFIG.relevance.compound_part_min_length,
) -> bool:
    """Check whether a topic appears in text, tolerating compound spellings.

    "soy sauce" matches "soy sauce", "soysauce", or text containing both
    "soy" and "sauce" separately.
    """
    topic = topic.lower()
    text = text.lower()

    if topic in text:
        return True

    compact = "".join(topic.split())
    if compact != topic and compact in text:
        return True

    parts = topic.split()
    if len(parts) == 2 and all(len(p) >= min_part_length and p in text for p in parts):
        return True

    return False


def item_relevance(
    item: ContentItem,
    topics: Sequence[str],
    config: RelevanceConfig = DEFAULT_CONFIG.relevance,
) -> float:
    """Fraction of topics present in the item's title and description."""
    if not topics:
        return 1.0
    text = item.text.lower()
    matched = sum(
        1 for t in topics if topic_in_text(t, text, config.compound_part_min_length)
    )
    return matched / len(topics)


def filter_relevant_items(
    items: Sequence[ContentItem],
    topics: Sequence[str],
    config: RelevanceConfig = DEFAULT_CONFIG.relevance,
) -> List[ContentItem]:
    """Keep items whose relevance clears the threshold for this topic count."""
    threshold = relevance_threshold(len(topics))
    relevant = [i for i in items if item_relevance(i, topics, config) >= threshold]
    logger.debug(
        "Relevance filter kept %d/%d items (threshold=%.2f, topics=%s)",
        len(relevant), len(items), threshold, list(topics),
    )
    return relevant
