"""
Tests for scoring configuration.
"""
import dataclasses
import json

import pytest

from demand_engine.config import CONFIG_VERSION, DEFAULT_CONFIG, EngineConfig


class TestDefaults:
    def test_version(self):
        assert DEFAULT_CONFIG.version == CONFIG_VERSION

    def test_tables_ordered_top_down(self):
        thresholds = [t for t, _ in DEFAULT_CONFIG.barrier.view_tiers]
        assert thresholds == sorted(thresholds, reverse=True)
        bands = [b for _, b in DEFAULT_CONFIG.demand.band_tiers]
        assert bands == ["hot", "growing", "stable"]

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.relevance.min_relevant_items = 1


class TestFromDict:
    def test_partial_override(self):
        config = EngineConfig.from_dict({"relevance": {"min_relevant_items": 5}})
        assert config.relevance.min_relevant_items == 5
        assert config.relevance.compound_part_min_length == 3
        assert config.gaps == DEFAULT_CONFIG.gaps

    def test_lists_become_tuples(self):
        config = EngineConfig.from_dict({
            "demand": {"band_tiers": [[80, "hot"], [60, "growing"], [40, "stable"]]},
        })
        assert config.demand.band_tiers == ((80, "hot"), (60, "growing"), (40, "stable"))

    def test_version_override(self):
        assert EngineConfig.from_dict({"version": 2027}).version == "2027"

    def test_unknown_section(self):
        with pytest.raises(ValueError, match="Unknown config section"):
            EngineConfig.from_dict({"ranking": {}})

    def test_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown field"):
            EngineConfig.from_dict({"gaps": {"pool": 10}})

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError):
            EngineConfig.from_dict({"gaps": 10})

    def test_default_untouched(self):
        EngineConfig.from_dict({"gaps": {"max_gaps": 3}})
        assert DEFAULT_CONFIG.gaps.max_gaps == 10


class TestFromJson:
    def test_load(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"gaps": {"max_gaps": 5, "breakout_multiplier": 3.0}}))
        config = EngineConfig.from_json(str(path))
        assert config.gaps.max_gaps == 5
        assert config.gaps.breakout_multiplier == 3.0

    def test_to_dict(self):
        data = DEFAULT_CONFIG.to_dict()
        assert data["version"] == CONFIG_VERSION
        assert data["gaps"]["pool_size"] == 100
