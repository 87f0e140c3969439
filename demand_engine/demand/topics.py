"""
Topic set normalisation and the shared topic-matching rule.
"""
import math
from typing import Iterable, List

MIN_TOPICS = 1
MAX_TOPICS = 5


class InvalidTopicsError(ValueError):
    """Raised when a topic list is empty or too long."""


def normalize_topics(topics: Iterable[str]) -> List[str]:
    """Lower-case, strip and de-duplicate topics, then validate the count.

    Args:
        topics: Raw topic strings from the caller.

    Returns:
        Normalised topics in their original order.

    Raises:
        InvalidTopicsError: If fewer than 1 or more than 5 topics remain.
    """
    if isinstance(topics, str):
        raise InvalidTopicsError("Topics must be a list of strings, not a string")

    normalized: List[str] = []
    for topic in topics:
        name = str(topic).lower().strip()
        if name and name not in normalized:
            normalized.append(name)

    if not MIN_TOPICS <= len(normalized) <= MAX_TOPICS:
        raise InvalidTopicsError(
            f"Expected {MIN_TOPICS}-{MAX_TOPICS} topics, got {len(normalized)}"
        )
    return normalized


def topic_key(topics: Iterable[str]) -> str:
    """Order-independent key for a topic set, e.g. 'garlic|miso'."""
    return "|".join(sorted(t.lower().strip() for t in topics))


def required_topic_matches(topic_count: int) -> int:
    """How many topics of a set an item must contain to count as relevant.

    A single topic must match exactly; larger sets need half of the topics
    (rounded up) and never fewer than two.
    """
    if topic_count <= 1:
        return 1
    return max(2, math.ceil(topic_count * 0.5))


def relevance_threshold(topic_count: int) -> float:
    """Minimum matched/total ratio for an item to be relevant."""
    if topic_count <= 0:
        return 0.0
    return required_topic_matches(topic_count) / topic_count
