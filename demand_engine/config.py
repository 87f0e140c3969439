"""
Scoring configuration.

Every numeric threshold used by the scorers lives here, grouped per scorer
so each table can be tuned and tested without touching control flow.
Tier tables are ordered (threshold, points) pairs, evaluated top-down.
"""
import dataclasses
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

CONFIG_VERSION = "2026.02"


@dataclass(frozen=True)
class RelevanceConfig:
    """Minimum relevant-sample size for a full demand signal."""
    min_relevant_items: int = 3
    compound_part_min_length: int = 3


@dataclass(frozen=True)
class MetricsConfig:
    """Freshness and quality-distribution parameters."""
    recent_window_days: int = 90
    emerging_recent_share: float = 0.3
    emerging_views_ratio: float = 0.5
    top_performer_share: float = 0.1
    bottom_performer_share: float = 0.5
    min_items_for_outliers: int = 3
    max_outlier_ratio: int = 100


@dataclass(frozen=True)
class BarrierConfig:
    """Competition barrier (0-100, higher = harder to rank)."""
    # avg views >= threshold -> points
    view_tiers: Tuple[Tuple[int, int], ...] = (
        (1_000_000, 40),
        (500_000, 35),
        (100_000, 30),
        (50_000, 20),
        (10_000, 10),
    )
    # recent ratio < threshold -> points
    incumbent_tiers: Tuple[Tuple[float, int], ...] = (
        (0.1, 30),
        (0.2, 20),
        (0.4, 10),
    )
    # video count > threshold -> points
    supply_tiers: Tuple[Tuple[int, int], ...] = (
        (50, 20),
        (30, 15),
        (15, 10),
        (5, 5),
    )
    lock_in_min_age_days: int = 365
    lock_in_max_recent: int = 3
    lock_in_points: int = 10
    max_score: int = 100


@dataclass(frozen=True)
class OpportunityConfig:
    """Opportunity score (0-100, higher = better for a newcomer)."""
    # barrier <= threshold -> points
    accessibility_tiers: Tuple[Tuple[int, int], ...] = (
        (20, 35),
        (40, 28),
        (60, 18),
        (80, 8),
    )
    # avg views >= threshold -> points
    demand_tiers: Tuple[Tuple[int, int], ...] = (
        (50_000, 25),
        (20_000, 20),
        (10_000, 15),
        (5_000, 10),
    )
    demand_floor_points: int = 5
    breakout_points: int = 15
    # week-over-week growth > threshold -> points
    growth_tiers: Tuple[Tuple[float, int], ...] = (
        (30.0, 10),
        (10.0, 5),
    )
    recent_outperform_ratio: float = 1.2
    recent_outperform_points: int = 10
    max_timing_bonus: int = 25
    # topic count >= threshold -> points
    niche_tiers: Tuple[Tuple[int, int], ...] = (
        (3, 10),
        (2, 5),
    )
    underserved_max_videos: int = 10
    underserved_min_views: int = 10_000
    underserved_points: int = 5
    quality_bonus_min_outlier: int = 20
    quality_bonus_points: int = 10
    max_score: int = 100


@dataclass(frozen=True)
class ClassifierConfig:
    """Market classifier cut-offs and its timing signal."""
    saturated_barrier: int = 60
    high_barrier: int = 40
    high_barrier_max_opportunity: int = 40
    emerging_min_opportunity: int = 60
    emerging_min_timing: int = 15
    underserved_max_barrier: int = 40
    underserved_min_opportunity: int = 50
    niche_max_barrier: int = 30
    niche_min_opportunity: int = 30
    breakout_timing: int = 15
    growth_timing_threshold: float = 30.0
    growth_timing: int = 10
    emerging_timing: int = 10


@dataclass(frozen=True)
class DemandScoreConfig:
    """Weights and band cut-offs for the final demand score."""
    view_weight: float = 8.0
    view_cap: float = 40.0
    gap_weight: float = 0.35
    velocity_weight: float = 5.0
    velocity_cap: float = 15.0
    # profile used when an external search-interest signal is present
    trends_view_weight: float = 6.0
    trends_view_cap: float = 30.0
    trends_gap_weight: float = 0.30
    trends_velocity_weight: float = 3.33
    trends_velocity_cap: float = 10.0
    emerging_bonus: int = 10
    recent_outperform_bonus: int = 5
    interest_divisor: float = 10.0
    interest_cap: float = 10.0
    # week-over-week growth > threshold -> points
    growth_bonus_tiers: Tuple[Tuple[float, int], ...] = (
        (50.0, 5),
        (20.0, 3),
        (0.0, 1),
    )
    breakout_bonus: int = 5
    # score >= threshold -> band
    band_tiers: Tuple[Tuple[int, str], ...] = (
        (75, "hot"),
        (55, "growing"),
        (35, "stable"),
    )
    niche_min_videos: int = 3


@dataclass(frozen=True)
class OpportunityListConfig:
    """Triggers for the human-readable opportunity list."""
    quality_min_outlier: int = 15
    quality_high_outlier: int = 25
    quality_bottom_share: float = 0.1
    freshness_max_recent: int = 3
    freshness_min_views: int = 30_000
    freshness_max_views: int = 300_000
    freshness_max_videos: int = 15
    trending_min_recent_views: int = 10_000
    velocity_min_growth: float = 30.0
    velocity_max_recent: int = 5


@dataclass(frozen=True)
class ConfidenceConfig:
    sample_divisor: float = 25.0
    sample_cap: float = 0.6
    views_threshold: int = 10_000
    views_bonus: float = 0.1
    videos_threshold: int = 10
    videos_bonus: float = 0.1
    trends_bonus: float = 0.1
    strong_interest_threshold: float = 50.0
    strong_interest_bonus: float = 0.1


@dataclass(frozen=True)
class GapMinerConfig:
    """Co-occurrence mining parameters."""
    pool_size: int = 100
    min_views: int = 1000
    min_tag_confidence: float = 0.6
    coverage_tag_confidence: float = 0.5
    min_surviving_items: int = 5
    min_occurrence_share: float = 0.15
    max_min_occurrences: int = 3
    default_views: int = 1000
    # avg views > threshold -> multiplier
    views_multipliers: Tuple[Tuple[int, float], ...] = (
        (100_000, 1.5),
        (50_000, 1.25),
    )
    breakout_multiplier: float = 2.0
    # week-over-week growth > threshold -> multiplier
    growth_multipliers: Tuple[Tuple[float, float], ...] = (
        (30.0, 1.5),
        (10.0, 1.25),
    )
    decline_threshold: float = -20.0
    decline_multiplier: float = 0.75
    max_gaps: int = 10


@dataclass(frozen=True)
class EngineConfig:
    """All scorer tables, versioned together."""
    version: str = CONFIG_VERSION
    relevance: RelevanceConfig = field(default_factory=RelevanceConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    barrier: BarrierConfig = field(default_factory=BarrierConfig)
    opportunity: OpportunityConfig = field(default_factory=OpportunityConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    demand: DemandScoreConfig = field(default_factory=DemandScoreConfig)
    opportunity_list: OpportunityListConfig = field(default_factory=OpportunityListConfig)
    confidence: ConfidenceConfig = field(default_factory=ConfidenceConfig)
    gaps: GapMinerConfig = field(default_factory=GapMinerConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Build a config from partial overrides.

        Args:
            data: Mapping of section name -> {field: value}, plus an optional
                  top-level "version".

        Raises:
            ValueError: On an unknown section or field.
        """
        base = cls()
        updates: Dict[str, Any] = {}
        for section, values in data.items():
            if section == "version":
                updates["version"] = str(values)
                continue
            if section not in _SECTIONS:
                raise ValueError(f"Unknown config section: {section}")
            if not isinstance(values, dict):
                raise ValueError(f"Config section '{section}' must be a mapping")
            updates[section] = _override(getattr(base, section), values)
        return dataclasses.replace(base, **updates)

    @classmethod
    def from_json(cls, path: str) -> "EngineConfig":
        """Load overrides from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


_SECTIONS = {
    f.name for f in dataclasses.fields(EngineConfig) if f.name != "version"
}


def _override(section, values: Dict[str, Any]):
    known = {f.name: f for f in dataclasses.fields(section)}
    changes = {}
    for name, value in values.items():
        if name not in known:
            raise ValueError(
                f"Unknown field '{name}' in {type(section).__name__}"
            )
        # JSON has no tuples; tier tables arrive as nested lists
        if isinstance(value, list):
            value = tuple(tuple(v) if isinstance(v, list) else v for v in value)
        changes[name] = value
    return dataclasses.replace(section, **changes)


DEFAULT_CONFIG = EngineConfig()
