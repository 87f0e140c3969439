"""Lookups over ordered (threshold, points) tier tables."""
from typing import Sequence, Tuple, TypeVar

T = TypeVar("T")


def points_at_least(value: float, tiers: Sequence[Tuple[float, T]], default=0):
    """Points of the first tier whose threshold is <= value."""
    for threshold, points in tiers:
        if value >= threshold:
            return points
    return default


def points_above(value: float, tiers: Sequence[Tuple[float, T]], default=0):
    """Points of the first tier whose threshold is < value."""
    for threshold, points in tiers:
        if value > threshold:
            return points
    return default


def points_below(value: float, tiers: Sequence[Tuple[float, T]], default=0):
    """Points of the first tier whose threshold is > value."""
    for threshold, points in tiers:
        if value < threshold:
            return points
    return default


def points_at_most(value: float, tiers: Sequence[Tuple[float, T]], default=0):
    """Points of the first tier whose threshold is >= value."""
    for threshold, points in tiers:
        if value <= threshold:
            return points
    return default
