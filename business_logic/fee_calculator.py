"""
Fee calculation for campaign configurations.

This module computes the itemized fee breakdown for both fee modes:

* Additional: fees are computed on the entered investment and added on top.
* Integrated: the entered amount is the whole budget; the effective ad
  investment is solved so that investment plus its own fees equals the budget.

Fee amounts depend on the investment they are charged on, so the Integrated
mode inverts the fee schedule segment by segment. Every fee parameter is
constant between two consecutive policy thresholds, which gives a closed-form
inverse per segment. Values are never rounded here; callers round when they
display or persist.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from config.policies import FeePolicy, DEFAULT_FEE_POLICY
from models.data_models import CampaignConfig, FeeBreakdown, FeeMode, round_money

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Relative residual accepted when verifying a solved effective investment
INVERSION_TOLERANCE = 1e-9


class FeeInversionError(ArithmeticError):
    """Raised when no fee segment reproduces the requested total budget."""
    pass


@dataclass
class FeeComponents:
    """Fees charged on a given effective ad investment."""
    fixed_fee: float
    variable_fee: float
    variable_fee_rate: float
    setup_fee: float
    volume_discount: float

    @property
    def total(self) -> float:
        return self.fixed_fee + self.variable_fee + self.setup_fee


class FeeCalculator:
    """
    Computes fee breakdowns from a campaign configuration.

    The calculator is stateless apart from its policy and is safe to call on
    every keystroke.
    """

    def __init__(self, policy: Optional[FeePolicy] = None):
        """
        Initialize the fee calculator.

        Args:
            policy: Fee schedule to apply. Defaults to the standard policy.
        """
        self.policy = policy or DEFAULT_FEE_POLICY

    def calculate(self, config: CampaignConfig) -> FeeBreakdown:
        """
        Calculate the fee breakdown for a configuration.

        An Integrated budget smaller than the fixed fees leaves an effective
        investment of 0 while total_fees still carries the full fixed charge,
        so effective + fees exceeds the budget. Validation rejects such
        budgets as below the minimum investment.

        Args:
            config: Campaign configuration (platforms, investment, fee mode,
                first-release flag, completed releases, add-ons)

        Returns:
            FeeBreakdown with unrounded amounts

        Raises:
            FeeInversionError: If the Integrated budget cannot be inverted
        """
        platform_count = len(config.platforms)
        investment = max(0.0, float(config.total_investment))
        addons_cost = self.addons_base_cost(config)

        if config.fee_mode == FeeMode.INTEGRATED:
            effective = self.solve_effective_investment(
                investment, platform_count, config.is_first_release, config.completed_releases
            )
            components = self.fee_components(
                effective, platform_count, config.is_first_release, config.completed_releases
            )
            total_estimated = investment + addons_cost
        elif config.fee_mode == FeeMode.ADDITIONAL:
            effective = investment
            components = self.fee_components(
                effective, platform_count, config.is_first_release, config.completed_releases
            )
            total_estimated = effective + components.total + addons_cost
        else:
            raise ValueError(f"Unsupported fee mode: {config.fee_mode}")

        logger.debug(
            f"Fees for {investment:.2f} ({config.fee_mode.value}): "
            f"effective={effective:.2f} fees={components.total:.2f}"
        )

        return FeeBreakdown(
            ad_investment=investment,
            effective_ad_investment=effective,
            fixed_fee=components.fixed_fee,
            variable_fee=components.variable_fee,
            variable_fee_rate=components.variable_fee_rate,
            setup_fee=components.setup_fee,
            volume_discount=components.volume_discount,
            addons_base_cost=addons_cost,
            total_fees=components.total,
            total_estimated=total_estimated,
            fee_mode=config.fee_mode
        )

    def addons_base_cost(self, config: CampaignConfig) -> float:
        """Sum of base costs of the selected add-ons, independent of fee mode."""
        return sum(self.policy.addon_prices.get(addon, 0.0) for addon in set(config.selected_addons))

    def variable_fee_rate(self, investment: float) -> float:
        """Get the variable fee rate for an effective investment."""
        for lower_bound, rate in self.policy.variable_fee_tiers:
            if investment >= lower_bound:
                return rate
        return self.policy.variable_fee_tiers[-1][1]

    def volume_discount_applies(self, completed_releases: int) -> bool:
        """Check if the release is the third engagement or later."""
        return completed_releases + 1 >= self.policy.volume_discount_from_release

    def fee_components(self, investment: float, platform_count: int,
                       is_first_release: bool, completed_releases: int = 0) -> FeeComponents:
        """
        Compute every fee charged on an effective ad investment.

        Args:
            investment: Effective ad investment the fees are charged on
            platform_count: Number of selected platforms
            is_first_release: Whether the one-time setup fee applies
            completed_releases: Campaigns the distributor already launched

        Returns:
            FeeComponents for this investment
        """
        policy = self.policy
        large = investment >= policy.large_investment_threshold

        fixed_fee = 0.0
        setup_fee = 0.0

        if not large and platform_count > 0:
            if investment < policy.small_campaign_threshold:
                fixed_fee += policy.base_campaign_fee
            if investment < policy.platform_fee_waiver_threshold:
                billable = max(0, platform_count - policy.free_platforms)
                fixed_fee += billable * policy.platform_fee

            if is_first_release:
                setup_fee = platform_count * policy.setup_fee_per_platform

        rate = self.variable_fee_rate(investment)
        variable_fee = investment * rate

        volume_discount = 0.0
        if self.volume_discount_applies(completed_releases):
            volume_discount = (fixed_fee + variable_fee) * policy.volume_discount_rate
            fixed_fee *= (1 - policy.volume_discount_rate)
            variable_fee *= (1 - policy.volume_discount_rate)

        return FeeComponents(
            fixed_fee=fixed_fee,
            variable_fee=variable_fee,
            variable_fee_rate=rate,
            setup_fee=setup_fee,
            volume_discount=volume_discount
        )

    def _segments(self) -> List[Tuple[float, float]]:
        """Investment ranges within which every fee parameter is constant, highest first."""
        policy = self.policy
        bounds = {0.0, policy.small_campaign_threshold, policy.platform_fee_waiver_threshold,
                  policy.large_investment_threshold}
        bounds.update(lower for lower, _ in policy.variable_fee_tiers)
        ordered = sorted(b for b in bounds if b >= 0)

        segments = []
        for i, lower in enumerate(ordered):
            upper = ordered[i + 1] if i + 1 < len(ordered) else float('inf')
            segments.append((lower, upper))
        return list(reversed(segments))

    def solve_effective_investment(self, total_budget: float, platform_count: int,
                                   is_first_release: bool, completed_releases: int = 0) -> float:
        """
        Find the effective investment E with E + fees(E) = total_budget.

        Segments are tried from the highest investment down, so when the
        schedule allows more than one solution the one giving the most
        media spend wins. Each segment is linear in E:
        E + d*(F + r*E) + S = B  =>  E = (B - d*F - S) / (1 + d*r).

        Args:
            total_budget: Gross budget entered in Integrated mode
            platform_count: Number of selected platforms
            is_first_release: Whether the one-time setup fee applies
            completed_releases: Campaigns the distributor already launched

        Returns:
            Effective ad investment (0 when fixed fees exceed the budget)

        Raises:
            FeeInversionError: If no segment reproduces the budget
        """
        if total_budget <= 0:
            return 0.0

        discount = 1 - self.policy.volume_discount_rate if self.volume_discount_applies(completed_releases) else 1.0

        for lower, upper in self._segments():
            # Parameters are constant across the segment, so sample them at its lower bound
            sample = self.fee_components(lower, platform_count, is_first_release, 0)
            fixed = sample.fixed_fee
            rate = sample.variable_fee_rate
            setup = sample.setup_fee

            candidate = (total_budget - discount * fixed - setup) / (1 + discount * rate)

            if lower == 0.0 and candidate < 0:
                logger.debug(f"Budget {total_budget:.2f} does not cover fixed fees; effective investment is 0")
                return 0.0

            if not (lower - self._tolerance(lower) <= candidate < upper):
                continue

            candidate = max(candidate, lower)
            components = self.fee_components(candidate, platform_count, is_first_release, completed_releases)
            residual = abs(candidate + components.total - total_budget)
            if residual <= self._tolerance(total_budget):
                return candidate

        raise FeeInversionError(
            f"Could not derive the effective investment for an integrated budget of {total_budget:.2f}"
        )

    def _tolerance(self, magnitude: float) -> float:
        return max(1.0, abs(magnitude)) * INVERSION_TOLERANCE

    def minimum_integrated_budget(self, platform_count: int, is_first_release: bool,
                                  completed_releases: int = 0) -> float:
        """Integrated budget needed to reach the minimum effective investment."""
        minimum = self.policy.minimum_investment
        components = self.fee_components(minimum, platform_count, is_first_release, completed_releases)
        return minimum + components.total


def calculate_fees(config: CampaignConfig, policy: Optional[FeePolicy] = None) -> FeeBreakdown:
    """Convenience wrapper around FeeCalculator.calculate."""
    return FeeCalculator(policy).calculate(config)


def summarize_fees(breakdown: FeeBreakdown) -> Dict[str, float]:
    """Rounded figures for on-screen cost summaries."""
    return {
        'effective_ad_investment': round_money(breakdown.effective_ad_investment),
        'fixed_fee': round_money(breakdown.fixed_fee),
        'variable_fee': round_money(breakdown.variable_fee),
        'variable_fee_rate_percent': round(breakdown.variable_fee_rate * 100, 2),
        'setup_fee': round_money(breakdown.setup_fee),
        'volume_discount': round_money(breakdown.volume_discount),
        'addons_base_cost': round_money(breakdown.addons_base_cost),
        'total_fees': round_money(breakdown.total_fees),
        'total_estimated': round_money(breakdown.total_estimated),
    }
