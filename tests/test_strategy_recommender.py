"""
Tests for strategy recommendations and seeding the allocation from a scenario.
"""

import pytest

from models.data_models import CampaignConfig, PlanningMode, ReleaseSize, Scenario
from business_logic import budget_allocator as allocator
from business_logic.strategy_recommender import (
    StrategyRecommender, apply_scenario, weights_to_percentages
)


def weights_of(platforms):
    return {p.platform: p.weight for p in platforms}


class TestStrategyRecommender:
    """Platform mix, phasing and investment advice by release size and genre."""

    def setup_method(self):
        self.recommender = StrategyRecommender()

    def test_nothing_without_release_size(self):
        assert self.recommender.recommend(None) is None
        assert self.recommender.recommend("") is None

    def test_unknown_release_size_raises(self):
        with pytest.raises(ValueError):
            self.recommender.recommend("huge")

    def test_medium_release(self):
        recommendation = self.recommender.recommend("mediano", "Drama")

        assert recommendation.release_size == ReleaseSize.MEDIUM
        assert weights_of(recommendation.recommended_platforms) == {
            "Instagram": 30.0, "TikTok": 25.0, "YouTube": 25.0, "Facebook": 20.0
        }
        phases = recommendation.phase_weights
        assert (phases.pre, phases.premiere, phases.post) == (50.0, 35.0, 15.0)
        investment = recommendation.investment_range
        assert (investment.min, investment.recommended, investment.max) == (15000.0, 35000.0, 60000.0)

    def test_reasoning(self):
        reasoning = self.recommender.recommend(ReleaseSize.MEDIUM, "Drama").reasoning

        assert reasoning[0] == "For a medium release we recommend 4 main platforms."
        assert reasoning[1] == "Instagram is the priority platform: balanced reach and engagement."
        assert reasoning[2] == "The drama genre responds especially well on Instagram and TikTok."
        assert reasoning[3] == "Phasing: 50% pre-release, 35% premiere weekend, 15% post-release."

    def test_reasoning_skips_genre_line_without_genre(self):
        reasoning = self.recommender.recommend(ReleaseSize.LIMITED).reasoning

        assert len(reasoning) == 3

    def test_genre_overrides_existing_platforms_only(self):
        platforms = self.recommender.recommend(ReleaseSize.LIMITED, " Horror ").recommended_platforms

        assert weights_of(platforms) == {"Instagram": 30.0, "Facebook": 30.0, "YouTube": 30.0}
        assert platforms[0].reason == "Striking stories and reels"

    def test_action_genre_alias(self):
        platforms = self.recommender.recommend(ReleaseSize.MASSIVE, "Acción").recommended_platforms

        weights = weights_of(platforms)
        assert weights["TikTok"] == 30.0
        assert weights["Instagram"] == 30.0
        assert weights["Twitter"] == 10.0

    def test_scenarios(self):
        recommendation = self.recommender.recommend(ReleaseSize.MEDIUM, "Drama")

        conservative = recommendation.scenario(Scenario.CONSERVATIVE)
        assert [p.platform for p in conservative.platforms] == ["Instagram", "TikTok"]
        assert conservative.investment.recommended == pytest.approx(18000.0)
        assert conservative.investment.max == pytest.approx(22500.0)
        assert conservative.phase_weights.pre == 70.0

        standard = recommendation.scenario(Scenario.STANDARD)
        assert standard.investment == recommendation.investment_range
        assert standard.estimated_reach == "1M-1.5M"

        aggressive = recommendation.scenario(Scenario.AGGRESSIVE)
        assert aggressive.investment.min == 35000.0
        assert aggressive.investment.recommended == 60000.0
        assert aggressive.investment.max == pytest.approx(90000.0)
        assert aggressive.phase_weights.premiere == 50.0

    def test_scenario_platforms_are_independent_copies(self):
        recommendation = self.recommender.recommend(ReleaseSize.MEDIUM)

        recommendation.scenario(Scenario.STANDARD).platforms[0].weight = 99.0

        assert recommendation.recommended_platforms[0].weight == 30.0


class TestWeightsToPercentages:
    """Weights scaled to percentages at two decimals."""

    def test_weights_summing_to_hundred_are_kept(self):
        platforms = StrategyRecommender().recommend(ReleaseSize.MEDIUM).recommended_platforms

        assert weights_to_percentages(platforms) == {
            "Instagram": 30.0, "TikTok": 25.0, "YouTube": 25.0, "Facebook": 20.0
        }

    def test_uneven_weights_are_rescaled(self):
        platforms = StrategyRecommender().recommend(ReleaseSize.LIMITED, "horror").recommended_platforms

        percentages = weights_to_percentages(platforms)

        assert percentages == {"Instagram": 33.34, "Facebook": 33.33, "YouTube": 33.33}

    def test_zero_weights_fall_back_to_equal_split(self):
        platforms = StrategyRecommender().recommend(ReleaseSize.LIMITED).recommended_platforms
        for platform in platforms:
            platform.weight = 0.0

        assert weights_to_percentages(platforms) == {"Instagram": 33.33, "Facebook": 33.33, "YouTube": 33.34}


class TestApplyScenario:
    """Seeding the allocation from a scenario."""

    def setup_method(self):
        config = CampaignConfig(total_investment=10000.0)
        for platform in ["Meta", "TikTok"]:
            config = allocator.add_platform(config, platform).config
        self.config = config
        self.recommendation = StrategyRecommender().recommend(ReleaseSize.MEDIUM, "Drama")

    def test_standard_scenario(self):
        update = apply_scenario(self.config, self.recommendation.scenario(Scenario.STANDARD))
        config = update.config

        assert update.is_valid
        assert sorted(config.platforms) == ["Facebook", "Instagram", "TikTok", "YouTube"]
        assert config.total_investment == 35000.0
        assert config.planning_mode == PlanningMode.PERCENTAGE
        assert config.percentages == {"Instagram": 30.0, "TikTok": 25.0, "YouTube": 25.0, "Facebook": 20.0}
        assert config.amounts["Instagram"] == pytest.approx(10500.0)
        assert config.amounts["Facebook"] == pytest.approx(7000.0)
        assert allocator.is_allocation_balanced(config)

    def test_conservative_scenario_rescales_two_platforms(self):
        update = apply_scenario(self.config, self.recommendation.scenario(Scenario.CONSERVATIVE))
        config = update.config

        assert config.platforms == ["TikTok", "Instagram"]
        assert config.percentages == {"Instagram": 54.55, "TikTok": 45.45}
        assert config.total_investment == pytest.approx(18000.0)
        assert sum(config.amounts.values()) == pytest.approx(18000.0)

    def test_input_config_is_untouched(self):
        apply_scenario(self.config, self.recommendation.scenario(Scenario.AGGRESSIVE))

        assert self.config.platforms == ["Meta", "TikTok"]
        assert self.config.total_investment == 10000.0

    def test_scenario_without_platforms_is_rejected(self):
        scenario = self.recommendation.scenario(Scenario.STANDARD)
        scenario.platforms = []

        update = apply_scenario(self.config, scenario)

        assert not update.is_valid
        assert update.config is self.config
        assert update.issues[0].field == "platforms"
