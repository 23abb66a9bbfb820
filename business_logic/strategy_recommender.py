"""
Rule-based strategy recommendations for a film release.

From the release size and genre, recommends a platform mix with weights,
a pre/premiere/post phasing and an investment range, plus conservative,
standard and aggressive scenarios. A chosen scenario can be applied to a
CampaignConfig to seed the budget allocation.
"""

import logging
import math
from dataclasses import replace
from typing import Dict, List, Optional, Union

from config.policies import (
    AllocationPolicy, DEFAULT_ALLOCATION_POLICY, DEFAULT_STRATEGY_POLICY, StrategyPolicy
)
from models.data_models import (
    CampaignConfig, InvestmentRange, PhaseWeights, PlatformWeight, ReleaseSize,
    Scenario, ScenarioRecommendation, StrategyRecommendation, ValidationIssue, ValidationSeverity
)
from .budget_allocator import (
    AllocationUpdate, add_platform, equal_split_percentages, remove_platform,
    set_percentage, set_total_investment
)

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

RELEASE_SIZE_LABELS = {
    ReleaseSize.LIMITED: "limited",
    ReleaseSize.MEDIUM: "medium",
    ReleaseSize.MASSIVE: "wide",
}


def weights_to_percentages(weights: List[PlatformWeight], decimals: int = 2) -> Dict[str, float]:
    """
    Scale platform weights to percentages summing to 100.

    Uses largest-remainder rounding at the given precision; ties go to the
    platform listed first. Non-positive weights fall back to an equal split.
    """
    platforms = [w.platform for w in weights]
    total = sum(max(0.0, w.weight) for w in weights)
    if not platforms:
        return {}
    if total <= 0:
        return equal_split_percentages(platforms, decimals)

    scale = 10 ** decimals
    units = 100 * scale
    raw = [max(0.0, w.weight) / total * units for w in weights]
    shares = [math.floor(value) for value in raw]

    leftover = units - sum(shares)
    by_remainder = sorted(range(len(raw)), key=lambda i: (-(raw[i] - shares[i]), i))
    for i in by_remainder[:leftover]:
        shares[i] += 1

    return {platform: share / scale for platform, share in zip(platforms, shares)}


class StrategyRecommender:
    """Builds strategy recommendations from the policy rule tables."""

    def __init__(self, policy: StrategyPolicy = DEFAULT_STRATEGY_POLICY):
        self.policy = policy

    def genre_key(self, genre: Optional[str]) -> Optional[str]:
        """Map a free-text genre onto a key of the genre adjustment table."""
        return self.policy.genre_aliases.get((genre or "").strip().lower())

    def platform_weights(self, release_size: ReleaseSize, genre: Optional[str] = None) -> List[PlatformWeight]:
        """Base platform mix for the release size with genre overrides applied."""
        platforms = [
            PlatformWeight(platform=name, weight=weight, reason=reason)
            for name, weight, reason in self.policy.base_platforms[release_size]
        ]

        key = self.genre_key(genre)
        if key is not None:
            by_name = {p.platform: p for p in platforms}
            for name, weight, reason in self.policy.genre_adjustments.get(key, ()):
                # Platforms outside the base mix are not added
                if name in by_name:
                    by_name[name].weight = weight
                    by_name[name].reason = reason

        return platforms

    def recommend(self, release_size: Union[ReleaseSize, str, None],
                  genre: Optional[str] = None) -> Optional[StrategyRecommendation]:
        """
        Recommend a strategy for a release.

        Args:
            release_size: Release size, as enum or its value; nothing is
                recommended without one
            genre: Free-text genre; known genres adjust the platform weights

        Returns:
            StrategyRecommendation, or None when no release size is given

        Raises:
            ValueError: If release_size is not a known size
        """
        if release_size is None or release_size == "":
            return None
        size = release_size if isinstance(release_size, ReleaseSize) else ReleaseSize(release_size)

        platforms = self.platform_weights(size, genre)
        phases = PhaseWeights(*self.policy.phase_weights[size])
        investment = InvestmentRange(*self.policy.investment_ranges[size])

        recommendation = StrategyRecommendation(
            release_size=size,
            recommended_platforms=platforms,
            phase_weights=phases,
            investment_range=investment,
            scenarios=self._scenarios(size, platforms, phases, investment),
            reasoning=self._reasoning(size, genre, platforms, phases)
        )

        logger.debug(f"Recommended {len(platforms)} platforms for a {size.value} release")
        return recommendation

    def _scenarios(self, size: ReleaseSize, platforms: List[PlatformWeight],
                   phases: PhaseWeights, investment: InvestmentRange) -> List[ScenarioRecommendation]:
        policy = self.policy

        ranges = {
            Scenario.CONSERVATIVE: InvestmentRange(
                min=investment.min,
                recommended=investment.min * policy.conservative_recommended_factor,
                max=investment.min * policy.conservative_max_factor
            ),
            Scenario.STANDARD: replace(investment),
            Scenario.AGGRESSIVE: InvestmentRange(
                min=investment.recommended,
                recommended=investment.max,
                max=investment.max * policy.aggressive_max_factor
            ),
        }

        scenarios = []
        for scenario in (Scenario.CONSERVATIVE, Scenario.STANDARD, Scenario.AGGRESSIVE):
            mix = platforms
            if scenario == Scenario.CONSERVATIVE:
                mix = platforms[:policy.conservative_platform_count]

            phase_override = policy.scenario_phase_weights.get(scenario)
            reach, clicks, ctr = policy.estimated_impact[scenario][size]

            scenarios.append(ScenarioRecommendation(
                scenario=scenario,
                investment=ranges[scenario],
                platforms=[replace(p) for p in mix],
                phase_weights=PhaseWeights(*phase_override) if phase_override else replace(phases),
                estimated_reach=reach,
                estimated_clicks=clicks,
                estimated_ctr=ctr,
                description=policy.scenario_descriptions[scenario]
            ))

        return scenarios

    def _reasoning(self, size: ReleaseSize, genre: Optional[str],
                   platforms: List[PlatformWeight], phases: PhaseWeights) -> List[str]:
        lead = platforms[0]
        reasoning = [
            f"For a {RELEASE_SIZE_LABELS[size]} release we recommend {len(platforms)} main platforms.",
            f"{lead.platform} is the priority platform: {lead.reason.lower()}.",
        ]

        if genre and genre.strip():
            runner_up = platforms[1].platform if len(platforms) > 1 else "visual platforms"
            reasoning.append(
                f"The {genre.strip().lower()} genre responds especially well on {lead.platform} and {runner_up}."
            )

        reasoning.append(
            f"Phasing: {phases.pre:g}% pre-release, {phases.premiere:g}% premiere weekend, "
            f"{phases.post:g}% post-release."
        )
        return reasoning


def apply_scenario(config: CampaignConfig, scenario: ScenarioRecommendation,
                   policy: AllocationPolicy = DEFAULT_ALLOCATION_POLICY) -> AllocationUpdate:
    """
    Seed the allocation from a recommended scenario.

    Selects exactly the scenario's platforms, sets the total to its
    recommended investment and sets each platform's percentage from the
    scenario weights, leaving the config in percentage-driven mode.

    Args:
        config: Current configuration
        scenario: Scenario to apply
        policy: Allocation tolerances and precision

    Returns:
        AllocationUpdate; the unchanged input config when any step is rejected
    """
    if not scenario.platforms:
        return AllocationUpdate(config, [ValidationIssue(
            ValidationSeverity.ERROR, "The selected scenario has no platforms.", "platforms"
        )])

    targets = [w.platform for w in scenario.platforms]
    new_config = config
    for platform in list(new_config.platforms):
        if platform not in targets:
            new_config = remove_platform(new_config, platform, policy).config

    for platform in targets:
        update = add_platform(new_config, platform, policy)
        if not update.is_valid:
            return AllocationUpdate(config, update.issues)
        new_config = update.config

    update = set_total_investment(new_config, scenario.investment.recommended, policy)
    if not update.is_valid:
        return AllocationUpdate(config, update.issues)
    new_config = update.config

    for platform, percentage in weights_to_percentages(scenario.platforms, policy.percentage_decimals).items():
        update = set_percentage(new_config, platform, percentage)
        if not update.is_valid:
            return AllocationUpdate(config, update.issues)
        new_config = update.config

    logger.info(f"Applied {scenario.scenario.value} scenario across {len(targets)} platforms")
    return AllocationUpdate(new_config, [])
