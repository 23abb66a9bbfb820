"""
Tests for the budget allocation reducers.
"""

import pytest

from models.data_models import CampaignConfig, FeeMode, PlanningMode
from business_logic import budget_allocator as allocator
from business_logic.fee_calculator import calculate_fees


def equal_config(platforms, total) -> CampaignConfig:
    config = CampaignConfig(total_investment=total)
    for platform in platforms:
        config = allocator.add_platform(config, platform).config
    return config


class TestEqualSplit:
    """Equal split across the selected platforms."""

    def test_three_platforms_split_nine_thousand(self):
        config = equal_config(["Meta", "TikTok", "YouTube"], 9000.0)

        assert config.amounts == {"Meta": 3000.0, "TikTok": 3000.0, "YouTube": 3000.0}
        assert config.percentages == {"Meta": 33.33, "TikTok": 33.33, "YouTube": 33.34}
        assert allocator.allocation_sum(config) == pytest.approx(100.0)

    def test_amounts_sum_to_total(self):
        config = equal_config(["Meta", "TikTok", "YouTube"], 10000.0)

        assert sum(config.amounts.values()) == pytest.approx(10000.0)
        assert config.amounts["YouTube"] == pytest.approx(3333.34)

    def test_six_platforms_spread_the_remainder(self):
        platforms = [f"P{i}" for i in range(6)]

        split = allocator.equal_split_percentages(platforms)

        assert list(split.values()) == [16.66, 16.66, 16.67, 16.67, 16.67, 16.67]
        assert allocator.equal_split_amounts(platforms, 10000.0)["P0"] == 1666.66

    @pytest.mark.parametrize("count", [7, 300, 1500, 10001])
    def test_shares_stay_non_negative_for_many_platforms(self, count):
        platforms = [f"P{i}" for i in range(count)]

        percentages = allocator.equal_split_percentages(platforms)
        amounts = allocator.equal_split_amounts(platforms, 12345.67)

        assert min(percentages.values()) >= 0
        assert max(percentages.values()) - min(percentages.values()) <= 0.0100001
        assert sum(percentages.values()) == pytest.approx(100.0)
        assert min(amounts.values()) >= 0
        assert sum(amounts.values()) == pytest.approx(12345.67)

    def test_adding_platform_resplits(self):
        config = equal_config(["Meta"], 1000.0)
        config = allocator.add_platform(config, "TikTok").config

        assert config.percentages == {"Meta": 50.0, "TikTok": 50.0}
        assert config.amounts == {"Meta": 500.0, "TikTok": 500.0}

    def test_duplicate_platform_is_ignored(self):
        config = equal_config(["Meta"], 1000.0)
        update = allocator.add_platform(config, "Meta")

        assert update.is_valid
        assert update.config.platforms == ["Meta"]

    def test_empty_platform_name_rejected(self):
        update = allocator.add_platform(CampaignConfig(), "  ")

        assert not update.is_valid
        assert update.issues[0].field == "platforms"


class TestManualAllocation:
    """Percentage-driven and amount-driven edits."""

    def setup_method(self):
        self.config = equal_config(["Meta", "TikTok"], 10000.0)

    def test_set_percentage_recomputes_amount_only(self):
        update = allocator.set_percentage(self.config, "Meta", "70")

        assert update.is_valid
        config = update.config
        assert config.planning_mode == PlanningMode.PERCENTAGE
        assert config.percentages["Meta"] == 70.0
        assert config.amounts["Meta"] == 7000.0
        assert config.percentages["TikTok"] == 50.0
        assert config.total_investment == 10000.0

    def test_set_percentage_does_not_mutate_input(self):
        allocator.set_percentage(self.config, "Meta", 70)

        assert self.config.percentages["Meta"] == 50.0
        assert self.config.planning_mode == PlanningMode.EQUAL_SPLIT

    def test_set_amount_updates_total_and_all_percentages(self):
        config = allocator.set_amount(self.config, "Meta", 3000).config
        config = allocator.set_amount(config, "TikTok", "7000").config

        assert config.planning_mode == PlanningMode.AMOUNT
        assert config.total_investment == 10000.0
        assert config.percentages["Meta"] == pytest.approx(30.0)
        assert config.percentages["TikTok"] == pytest.approx(70.0)
        assert allocator.allocation_sum(config) == pytest.approx(100.0)

    def test_amount_percentage_round_trip(self):
        config = allocator.set_amount(self.config, "Meta", 1234.56).config
        config = allocator.set_amount(config, "TikTok", 4321.09).config

        percentage = config.percentages["Meta"]
        config = allocator.set_percentage(config, "Meta", percentage).config

        assert config.amounts["Meta"] == pytest.approx(1234.56, abs=0.01)

    def test_all_zero_amounts_do_not_divide_by_zero(self):
        config = allocator.set_amount(self.config, "Meta", 0).config
        config = allocator.set_amount(config, "TikTok", 0).config

        assert config.total_investment == 0.0
        assert config.percentages == {"Meta": 0.0, "TikTok": 0.0}

    @pytest.mark.parametrize("value", ["-5", "101", "abc", "", "nan"])
    def test_invalid_percentage_rejected(self, value):
        update = allocator.set_percentage(self.config, "Meta", value)

        assert not update.is_valid
        assert update.config is self.config
        assert update.issues[0].field == "percentages.Meta"

    def test_negative_amount_rejected(self):
        update = allocator.set_amount(self.config, "Meta", -1)

        assert not update.is_valid
        assert update.issues[0].field == "amounts.Meta"

    def test_comma_decimal_accepted(self):
        update = allocator.set_percentage(self.config, "Meta", "42,5")

        assert update.is_valid
        assert update.config.percentages["Meta"] == 42.5

    def test_unknown_platform_rejected(self):
        update = allocator.set_amount(self.config, "Snapchat", 100)

        assert not update.is_valid

    def test_new_platform_starts_at_zero_in_manual_mode(self):
        config = allocator.set_percentage(self.config, "Meta", 60).config
        config = allocator.add_platform(config, "YouTube").config

        assert config.percentages["YouTube"] == 0.0
        assert config.amounts["YouTube"] == 0.0
        assert config.percentages["Meta"] == 60.0

    def test_removing_platform_in_amount_mode_updates_total(self):
        config = allocator.set_amount(self.config, "Meta", 4000).config
        config = allocator.remove_platform(config, "TikTok").config

        assert config.platforms == ["Meta"]
        assert config.total_investment == 4000.0
        assert config.percentages == {"Meta": pytest.approx(100.0)}
        assert "TikTok" not in config.amounts


class TestPlanningModeSwitch:
    """Switching planning modes keeps manual work."""

    def setup_method(self):
        config = equal_config(["Meta", "TikTok"], 10000.0)
        config = allocator.set_percentage(config, "Meta", 80).config
        self.config = allocator.set_percentage(config, "TikTok", 20).config

    def test_equal_split_then_back_restores_percentages(self):
        config = allocator.set_planning_mode(self.config, PlanningMode.EQUAL_SPLIT).config
        assert config.percentages == {"Meta": 50.0, "TikTok": 50.0}

        config = allocator.set_planning_mode(config, PlanningMode.PERCENTAGE).config
        assert config.percentages == {"Meta": 80.0, "TikTok": 20.0}
        assert config.amounts == {"Meta": 8000.0, "TikTok": 2000.0}
        assert config.manual_allocation is None

    def test_restore_in_amount_mode_sets_total_from_amounts(self):
        config = allocator.set_amount(self.config, "Meta", 9000).config
        config = allocator.set_planning_mode(config, PlanningMode.EQUAL_SPLIT).config
        config = allocator.set_planning_mode(config, PlanningMode.AMOUNT).config

        assert config.amounts == {"Meta": 9000.0, "TikTok": 2000.0}
        assert config.total_investment == 11000.0

    def test_switch_between_manual_modes_keeps_values(self):
        config = allocator.set_planning_mode(self.config, PlanningMode.AMOUNT).config

        assert config.planning_mode == PlanningMode.AMOUNT
        assert config.percentages == self.config.percentages
        assert config.amounts == self.config.amounts


class TestNormalizeAndPayload:
    """Normalization, balance checks and persisted shapes."""

    def test_normalize_rescales_to_hundred(self):
        config = equal_config(["Meta", "TikTok", "YouTube"], 3000.0)
        config = allocator.set_percentage(config, "Meta", 10).config
        config = allocator.set_percentage(config, "TikTok", 10).config
        config = allocator.set_percentage(config, "YouTube", 10).config

        normalized = allocator.normalize(config).config

        assert allocator.allocation_sum(normalized) == pytest.approx(100.0)
        assert all(value >= 0 for value in normalized.percentages.values())

    def test_normalize_all_zero_falls_back_to_equal_split(self):
        config = equal_config(["Meta", "TikTok"], 3000.0)
        config = allocator.set_percentage(config, "Meta", 0).config
        config = allocator.set_percentage(config, "TikTok", 0).config

        normalized = allocator.normalize(config).config

        assert normalized.percentages == {"Meta": 50.0, "TikTok": 50.0}

    def test_balance_tolerance(self):
        config = equal_config(["Meta", "TikTok"], 1000.0)
        config = allocator.set_percentage(config, "Meta", 50.4).config

        assert allocator.is_allocation_balanced(config)

        config = allocator.set_percentage(config, "Meta", 50.5).config
        assert not allocator.is_allocation_balanced(config)

    def test_platform_budget_payload(self):
        config = equal_config(["Meta", "TikTok", "YouTube"], 9000.0)

        assert allocator.platform_budget_payload(config) == [
            {'platform_name': "Meta", 'budget_percent': 33.33},
            {'platform_name': "TikTok", 'budget_percent': 33.33},
            {'platform_name': "YouTube", 'budget_percent': 33.34},
        ]

    def test_net_amounts_in_integrated_mode(self):
        config = equal_config(["Meta", "TikTok"], 10000.0)
        config.fee_mode = FeeMode.INTEGRATED
        breakdown = calculate_fees(config)

        net = allocator.net_platform_amounts(config, breakdown)

        assert sum(net.values()) == pytest.approx(breakdown.effective_ad_investment, abs=0.02)
        assert net["Meta"] < config.amounts["Meta"]
