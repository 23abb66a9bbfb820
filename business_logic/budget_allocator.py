"""
Budget allocation across advertising platforms.

Keeps per-platform percentages, per-platform amounts and the total
investment consistent whichever side the user edits. Every function is a
pure reducer: it takes a CampaignConfig and returns an AllocationUpdate
holding a new config (or the unchanged one when the edit is rejected)
plus the validation issues the edit produced.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Union

from config.policies import AllocationPolicy, DEFAULT_ALLOCATION_POLICY
from models.data_models import (
    CampaignConfig, FeeBreakdown, ManualAllocation, PlanningMode,
    ValidationIssue, ValidationSeverity, round_money
)
from .campaign_validator import parse_number

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

NumericInput = Union[float, int, str]


@dataclass
class AllocationUpdate:
    """Result of a single allocation edit."""
    config: CampaignConfig
    issues: List[ValidationIssue]

    @property
    def is_valid(self) -> bool:
        return not any(issue.severity == ValidationSeverity.ERROR for issue in self.issues)


def copy_config(config: CampaignConfig, **changes) -> CampaignConfig:
    """Copy a config, detaching the mutable collections from the original."""
    changes.setdefault('platforms', list(config.platforms))
    changes.setdefault('percentages', dict(config.percentages))
    changes.setdefault('amounts', dict(config.amounts))
    changes.setdefault('selected_addons', list(config.selected_addons))
    return replace(config, **changes)


def _rejected(config: CampaignConfig, message: str, field: str) -> AllocationUpdate:
    logger.debug(f"Rejected allocation edit on {field}: {message}")
    return AllocationUpdate(config, [ValidationIssue(ValidationSeverity.ERROR, message, field)])


def _amount_for(total: float, percentage: float) -> float:
    return round_money(total * percentage / 100)


def _split_units(platforms: List[str], units: int, scale: int) -> Dict[str, float]:
    base, remainder = divmod(units, len(platforms))
    first_extra = len(platforms) - remainder
    return {
        platform: (base + (1 if index >= first_extra else 0)) / scale
        for index, platform in enumerate(platforms)
    }


def equal_split_percentages(platforms: List[str], decimals: int = 2) -> Dict[str, float]:
    """
    Split 100% evenly in steps of the kept precision.

    Leftover steps go one each to the last platforms, so every share stays
    within one step of the others and the shares sum to exactly 100.

    Args:
        platforms: Platforms in display order
        decimals: Decimal places kept on each share

    Returns:
        Mapping of platform to percentage summing to 100
    """
    if not platforms:
        return {}

    scale = 10 ** decimals
    return _split_units(platforms, 100 * scale, scale)


def equal_split_amounts(platforms: List[str], total: float) -> Dict[str, float]:
    """Split the total evenly in cents; leftover cents go to the last platforms."""
    if not platforms:
        return {}

    cents = int(round_money(total) * 100 + 0.5) if total > 0 else 0
    return _split_units(platforms, cents, 100)


def _percentages_from_amounts(platforms: List[str], amounts: Dict[str, float], total: float) -> Dict[str, float]:
    if total <= 0:
        return {platform: 0.0 for platform in platforms}
    return {platform: amounts.get(platform, 0.0) / total * 100 for platform in platforms}


def _apply_equal_split(config: CampaignConfig, policy: AllocationPolicy) -> CampaignConfig:
    return copy_config(
        config,
        percentages=equal_split_percentages(config.platforms, policy.percentage_decimals),
        amounts=equal_split_amounts(config.platforms, config.total_investment)
    )


def set_percentage(config: CampaignConfig, platform: str, value: NumericInput) -> AllocationUpdate:
    """
    Set one platform's percentage and recompute its amount.

    Other platforms are left untouched; the running sum is checked when the
    user tries to leave the step, not here.

    Args:
        config: Current configuration
        platform: Platform being edited
        value: New percentage (0-100), numeric or raw form string

    Returns:
        AllocationUpdate in percentage-driven planning mode
    """
    field = f"percentages.{platform}"

    if platform not in config.platforms:
        return _rejected(config, f"{platform} is not a selected platform.", field)

    percentage = parse_number(value)
    if percentage is None:
        return _rejected(config, f"Enter a numeric percentage for {platform}.", field)
    if percentage < 0 or percentage > 100:
        return _rejected(config, f"The percentage for {platform} must be between 0 and 100.", field)

    new_config = copy_config(config, planning_mode=PlanningMode.PERCENTAGE)
    new_config.percentages[platform] = percentage
    new_config.amounts[platform] = _amount_for(config.total_investment, percentage)
    for other in new_config.platforms:
        new_config.percentages.setdefault(other, 0.0)
        new_config.amounts.setdefault(other, _amount_for(config.total_investment, new_config.percentages[other]))

    return AllocationUpdate(new_config, [])


def set_amount(config: CampaignConfig, platform: str, value: NumericInput) -> AllocationUpdate:
    """
    Set one platform's amount; the total becomes the sum of all amounts.

    Every percentage is recomputed from the new total. A zero total yields
    zero percentages instead of dividing by zero.

    Args:
        config: Current configuration
        platform: Platform being edited
        value: New amount (>= 0), numeric or raw form string

    Returns:
        AllocationUpdate in amount-driven planning mode with an updated total
    """
    field = f"amounts.{platform}"

    if platform not in config.platforms:
        return _rejected(config, f"{platform} is not a selected platform.", field)

    amount = parse_number(value)
    if amount is None:
        return _rejected(config, f"Enter a numeric amount for {platform}.", field)
    if amount < 0:
        return _rejected(config, f"The amount for {platform} cannot be negative.", field)

    new_config = copy_config(config, planning_mode=PlanningMode.AMOUNT)
    new_config.amounts[platform] = round_money(amount)
    for other in new_config.platforms:
        new_config.amounts.setdefault(other, 0.0)

    total = round_money(sum(new_config.amounts[p] for p in new_config.platforms))
    new_config.total_investment = total
    new_config.percentages = _percentages_from_amounts(new_config.platforms, new_config.amounts, total)

    return AllocationUpdate(new_config, [])


def set_total_investment(config: CampaignConfig, value: NumericInput,
                         policy: AllocationPolicy = DEFAULT_ALLOCATION_POLICY) -> AllocationUpdate:
    """Change the total investment and re-derive amounts from the percentages."""
    field = "total_investment"

    total = parse_number(value)
    if total is None:
        return _rejected(config, "Enter a numeric investment amount.", field)
    if total < 0:
        return _rejected(config, "The investment cannot be negative.", field)

    new_config = copy_config(config, total_investment=total)
    if new_config.planning_mode == PlanningMode.EQUAL_SPLIT:
        return AllocationUpdate(_apply_equal_split(new_config, policy), [])

    new_config.amounts = {
        platform: _amount_for(total, new_config.percentages.get(platform, 0.0))
        for platform in new_config.platforms
    }
    return AllocationUpdate(new_config, [])


def add_platform(config: CampaignConfig, platform: str,
                 policy: AllocationPolicy = DEFAULT_ALLOCATION_POLICY) -> AllocationUpdate:
    """
    Select a platform.

    Equal split redistributes 100% across all platforms; manual modes start
    the new platform at zero and leave existing allocations untouched.
    """
    name = (platform or "").strip()
    if not name:
        return _rejected(config, "Platform name cannot be empty.", "platforms")
    if name in config.platforms:
        return AllocationUpdate(config, [])

    new_config = copy_config(config)
    new_config.platforms.append(name)

    if new_config.planning_mode == PlanningMode.EQUAL_SPLIT:
        return AllocationUpdate(_apply_equal_split(new_config, policy), [])

    new_config.percentages[name] = 0.0
    new_config.amounts[name] = 0.0
    return AllocationUpdate(new_config, [])


def remove_platform(config: CampaignConfig, platform: str,
                    policy: AllocationPolicy = DEFAULT_ALLOCATION_POLICY) -> AllocationUpdate:
    """
    Deselect a platform and drop it from both maps.

    In amount-driven mode the total follows the remaining amounts.
    """
    if platform not in config.platforms:
        return AllocationUpdate(config, [])

    new_config = copy_config(config)
    new_config.platforms.remove(platform)
    new_config.percentages.pop(platform, None)
    new_config.amounts.pop(platform, None)

    if new_config.planning_mode == PlanningMode.EQUAL_SPLIT:
        return AllocationUpdate(_apply_equal_split(new_config, policy), [])

    if new_config.planning_mode == PlanningMode.AMOUNT:
        total = round_money(sum(new_config.amounts.get(p, 0.0) for p in new_config.platforms))
        new_config.total_investment = total
        new_config.percentages = _percentages_from_amounts(new_config.platforms, new_config.amounts, total)

    return AllocationUpdate(new_config, [])


def set_planning_mode(config: CampaignConfig, mode: PlanningMode,
                      policy: AllocationPolicy = DEFAULT_ALLOCATION_POLICY) -> AllocationUpdate:
    """
    Switch between equal split, percentage-driven and amount-driven planning.

    Leaving the manual modes for equal split keeps the manual allocation
    aside; coming back restores it instead of starting from the equal split.
    Switching between the two manual modes keeps the values as they are.
    """
    current = config.planning_mode
    if mode == current:
        return AllocationUpdate(config, [])

    if mode == PlanningMode.EQUAL_SPLIT:
        stash = ManualAllocation(
            percentages=dict(config.percentages),
            amounts=dict(config.amounts),
            planning_mode=current
        )
        new_config = copy_config(config, planning_mode=mode, manual_allocation=stash)
        return AllocationUpdate(_apply_equal_split(new_config, policy), [])

    if current != PlanningMode.EQUAL_SPLIT:
        return AllocationUpdate(copy_config(config, planning_mode=mode), [])

    stash = config.manual_allocation
    new_config = copy_config(config, planning_mode=mode, manual_allocation=None)
    if stash is None:
        # Nothing entered manually yet: the equal split becomes the starting point
        return AllocationUpdate(new_config, [])

    platforms = new_config.platforms
    if mode == PlanningMode.AMOUNT:
        amounts = {p: stash.amounts.get(p, 0.0) for p in platforms}
        total = round_money(sum(amounts.values()))
        new_config.amounts = amounts
        new_config.total_investment = total
        new_config.percentages = _percentages_from_amounts(platforms, amounts, total)
    else:
        percentages = {p: stash.percentages.get(p, 0.0) for p in platforms}
        new_config.percentages = percentages
        new_config.amounts = {p: _amount_for(new_config.total_investment, percentages[p]) for p in platforms}

    logger.debug(f"Restored manual allocation for {len(platforms)} platforms in {mode.value} mode")
    return AllocationUpdate(new_config, [])


def normalize(config: CampaignConfig, policy: AllocationPolicy = DEFAULT_ALLOCATION_POLICY) -> AllocationUpdate:
    """
    Rescale percentages so they add up to exactly 100.

    All-zero allocations fall back to an equal split. The largest share
    absorbs the rounding remainder so no share can turn negative.
    """
    platforms = config.platforms
    if not platforms:
        return AllocationUpdate(config, [])

    current_sum = allocation_sum(config)
    if current_sum <= 0:
        percentages = equal_split_percentages(platforms, policy.percentage_decimals)
    else:
        decimals = policy.percentage_decimals
        percentages = {
            p: round(config.percentages.get(p, 0.0) / current_sum * 100, decimals)
            for p in platforms
        }
        largest = max(platforms, key=lambda p: percentages[p])
        remainder = 100 - sum(percentages.values())
        percentages[largest] = round(percentages[largest] + remainder, decimals)

    new_config = copy_config(config, percentages=percentages)
    if new_config.planning_mode == PlanningMode.EQUAL_SPLIT:
        new_config.amounts = equal_split_amounts(platforms, new_config.total_investment)
    else:
        new_config.amounts = {p: _amount_for(new_config.total_investment, percentages[p]) for p in platforms}

    return AllocationUpdate(new_config, [])


def allocation_sum(config: CampaignConfig) -> float:
    """Running sum of the selected platforms' percentages."""
    return sum(config.percentages.get(platform, 0.0) for platform in config.platforms)


def is_allocation_balanced(config: CampaignConfig, tolerance: Optional[float] = None) -> bool:
    """Check that allocations sum to 100% within tolerance; trivially true with nothing to split."""
    if tolerance is None:
        tolerance = DEFAULT_ALLOCATION_POLICY.percentage_tolerance
    if not config.platforms or config.total_investment <= 0:
        return True
    total = allocation_sum(config)
    return math.isfinite(total) and abs(total - 100) < tolerance


def platform_budget_payload(config: CampaignConfig) -> List[Dict[str, object]]:
    """Per-platform percentages in the persisted shape; amounts are never persisted."""
    if config.planning_mode == PlanningMode.EQUAL_SPLIT:
        percentages = equal_split_percentages(config.platforms)
    else:
        percentages = config.percentages

    return [
        {'platform_name': platform, 'budget_percent': round(percentages.get(platform, 0.0), 2)}
        for platform in config.platforms
    ]


def net_platform_amounts(config: CampaignConfig, breakdown: FeeBreakdown) -> Dict[str, float]:
    """
    Amount reaching each platform once fees are carved out.

    Only differs from the gross amounts in integrated fee mode, where the
    effective investment is below the entered budget.
    """
    gross_total = config.total_investment
    ratio = breakdown.effective_ad_investment / gross_total if gross_total > 0 else 0.0
    return {platform: round_money(config.amounts.get(platform, 0.0) * ratio) for platform in config.platforms}
