"""
Tests for draft snapshot serialization.
"""

import json
import pytest
from datetime import date

from models.data_models import Addon, CampaignConfig, FeeMode, ManualAllocation, PlanningMode
from business_logic.draft_snapshot import SNAPSHOT_VERSION, SnapshotError, dumps, loads, restore, serialize


def sample_config() -> CampaignConfig:
    return CampaignConfig(
        platforms=["Meta", "TikTok"],
        total_investment=12000.0,
        fee_mode=FeeMode.INTEGRATED,
        is_first_release=False,
        completed_releases=3,
        selected_addons=[Addon.CONTENT_ADAPTATION],
        planning_mode=PlanningMode.EQUAL_SPLIT,
        percentages={"Meta": 50.0, "TikTok": 50.0},
        amounts={"Meta": 6000.0, "TikTok": 6000.0},
        manual_allocation=ManualAllocation(
            percentages={"Meta": 75.0, "TikTok": 25.0},
            amounts={"Meta": 9000.0, "TikTok": 3000.0},
            planning_mode=PlanningMode.AMOUNT
        ),
        release_date=date(2024, 11, 8),
        manual_end_date=date(2024, 11, 17),
        film_title="Harvest Moon",
        genre="Drama",
        target_audience="adults",
        territory="Portugal",
        campaign_id="c-42"
    )


class TestDraftSnapshot:
    """Snapshots are JSON-safe and restore to an equal configuration."""

    def test_snapshot_is_json_safe(self):
        snapshot = serialize(sample_config())

        assert snapshot['version'] == SNAPSHOT_VERSION
        assert snapshot['release_date'] == "2024-11-08"
        assert snapshot['fee_mode'] == "integrated"
        assert snapshot['selected_addons'] == ["adaptacion"]
        assert json.loads(json.dumps(snapshot)) == snapshot

    def test_restore_gives_equal_config(self):
        config = sample_config()
        assert restore(serialize(config)) == config

    def test_json_helpers(self):
        config = sample_config()
        assert loads(dumps(config)) == config

    def test_empty_config(self):
        assert restore(serialize(CampaignConfig())) == CampaignConfig()

    @pytest.mark.parametrize("mutation", [
        {'version': 2},
        {'fee_mode': "bundled"},
        {'selected_addons': ["poster"]},
        {'release_date': "15/05/2024"},
        {'percentages': {"Meta": "lots"}},
        {'platforms': ["Meta", "Meta"]},
        {'total_investment': -1},
        {'total_investment': float("nan")},
        {'total_investment': float("inf")},
        {'percentages': {"Meta": float("nan")}},
        {'manual_allocation': "garbage"},
        {'manual_allocation': {'planning_mode': ["amount"]}},
        {'selected_addons': 7},
        {'platforms': "Meta"},
        {'film_title': 42},
        {'campaign_id': 42},
    ])
    def test_malformed_snapshot_raises(self, mutation):
        snapshot = serialize(sample_config())
        snapshot.update(mutation)

        with pytest.raises(SnapshotError):
            restore(snapshot)

    def test_invalid_json_raises(self):
        with pytest.raises(SnapshotError):
            loads("{not json")

    def test_non_mapping_raises(self):
        with pytest.raises(SnapshotError):
            restore(["not", "a", "dict"])

    def test_non_finite_total_in_json_raises(self):
        payload = dumps(sample_config()).replace('"total_investment": 12000.0', '"total_investment": NaN')
        assert "NaN" in payload

        with pytest.raises(SnapshotError):
            loads(payload)

    def test_null_text_fields_restore_as_empty(self):
        snapshot = serialize(sample_config())
        for field in ("film_title", "genre", "target_audience", "territory"):
            snapshot[field] = None

        config = restore(snapshot)

        assert config.film_title == ""
        assert config.genre == ""
        assert config.target_audience == ""
        assert config.territory == ""
