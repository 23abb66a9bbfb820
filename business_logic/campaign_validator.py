"""
Validation of campaign configurations before the wizard moves on.

Validation problems are returned as ValidationResult values so the wizard
can show each message next to the field it belongs to. Nothing in this
module raises for user-correctable input.
"""

import logging
import math
from typing import List, Optional, Union

from config.policies import (
    AllocationPolicy, FeePolicy, DEFAULT_ALLOCATION_POLICY, DEFAULT_FEE_POLICY
)
from models.data_models import (
    CampaignConfig, ConflictLevel, ConflictReport, FeeBreakdown, FeeMode, PlanningMode,
    ValidationIssue, ValidationResult, ValidationSeverity, WizardStep
)
from .timeline import TimelineResult, validate_manual_end_date

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_number(raw: Union[float, int, str, None]) -> Optional[float]:
    """
    Parse a numeric form value.

    Accepts numbers and strings such as "1500", "1500.50" or "1500,50".
    Returns None for empty, non-numeric or non-finite input.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip().replace(" ", "")
        if not text:
            return None
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            value = float(text)
        except ValueError:
            return None

    return value if math.isfinite(value) else None


def blocks_progression(report: Optional[ConflictReport], is_admin: bool = False) -> bool:
    """High-severity conflicts stop non-admin users; everything else is advisory."""
    return report is not None and report.level == ConflictLevel.HIGH and not is_admin


class CampaignValidator:
    """
    Validates a campaign configuration step by step.

    Checks mirror the wizard steps: film details and dates, platforms and
    budget, add-ons, and the final review which re-runs everything.
    """

    def __init__(self,
                 fee_policy: Optional[FeePolicy] = None,
                 allocation_policy: Optional[AllocationPolicy] = None,
                 min_investment: Optional[float] = None):
        """
        Initialize the validator.

        Args:
            fee_policy: Fee schedule (minimum investment)
            allocation_policy: Tolerance for the 100% allocation sum
            min_investment: Optional override of the policy minimum
        """
        self.fee_policy = fee_policy or DEFAULT_FEE_POLICY
        self.allocation_policy = allocation_policy or DEFAULT_ALLOCATION_POLICY
        self.min_investment = min_investment if min_investment is not None else self.fee_policy.minimum_investment

    def validate_step(self,
                      step: WizardStep,
                      config: CampaignConfig,
                      fees: Optional[FeeBreakdown] = None,
                      timeline_result: Optional[TimelineResult] = None,
                      conflict_report: Optional[ConflictReport] = None,
                      is_admin: bool = False) -> ValidationResult:
        """
        Validate everything the given step requires before moving on.

        Args:
            step: Wizard step being left
            config: Current configuration
            fees: Fee breakdown for the configuration (budget step)
            timeline_result: Derived timeline with its issues (dates step)
            conflict_report: Latest conflict report, if any
            is_admin: Admins are never blocked by conflicts

        Returns:
            ValidationResult with field-attributed issues
        """
        issues: List[ValidationIssue] = []

        if step in (WizardStep.FILM_AND_DATES, WizardStep.REVIEW):
            issues.extend(self.validate_film_details(config))
            issues.extend(self.validate_schedule(config, timeline_result))
            issues.extend(self.validate_conflicts(conflict_report, is_admin))

        if step in (WizardStep.PLATFORMS_AND_BUDGET, WizardStep.REVIEW):
            issues.extend(self.validate_platforms(config))
            issues.extend(self.validate_allocation(config))
            issues.extend(self.validate_investment(config, fees))

        result = ValidationResult.from_issues(issues)
        if not result.is_valid:
            logger.info(f"Step {step.name} blocked by {result.total_errors} error(s)")
        return result

    def validate_film_details(self, config: CampaignConfig) -> List[ValidationIssue]:
        """Required film fields."""
        issues = []

        if not config.film_title.strip():
            issues.append(ValidationIssue(ValidationSeverity.ERROR, "The film title is required.", "film_title"))
        if not config.genre.strip():
            issues.append(ValidationIssue(ValidationSeverity.ERROR, "Select a genre.", "genre"))
        if not config.territory.strip():
            issues.append(ValidationIssue(ValidationSeverity.ERROR, "The release territory is required.", "territory"))
        if not config.target_audience.strip():
            issues.append(ValidationIssue(
                ValidationSeverity.WARNING,
                "Describe the target audience so conflicts with similar campaigns can be detected.",
                "target_audience"
            ))

        return issues

    def validate_schedule(self, config: CampaignConfig,
                          timeline_result: Optional[TimelineResult] = None) -> List[ValidationIssue]:
        """Release date presence and manual end date ordering."""
        if config.release_date is None:
            return [ValidationIssue(ValidationSeverity.ERROR, "Select a release date.", "release_date")]

        if timeline_result is not None:
            return list(timeline_result.issues)

        if config.manual_end_date is not None:
            issue = validate_manual_end_date(config.release_date, config.manual_end_date)
            if issue is not None:
                return [issue]

        return []

    def validate_conflicts(self, report: Optional[ConflictReport], is_admin: bool = False) -> List[ValidationIssue]:
        """Turn the latest conflict report into blocking or advisory issues."""
        if report is None or report.level == ConflictLevel.NONE:
            return []

        titles = ", ".join(conflict.film_title for conflict in report.conflicts[:3])

        if blocks_progression(report, is_admin):
            return [ValidationIssue(
                ValidationSeverity.ERROR,
                f"High conflict with other campaigns ({titles}). Adjust the dates or audience before continuing.",
                "release_date"
            )]

        return [ValidationIssue(
            ValidationSeverity.WARNING,
            f"Possible overlap with other campaigns ({titles}).",
            "release_date"
        )]

    def validate_platforms(self, config: CampaignConfig) -> List[ValidationIssue]:
        if not config.platforms:
            return [ValidationIssue(ValidationSeverity.ERROR, "Select at least one platform.", "platforms")]
        return []

    def validate_allocation(self, config: CampaignConfig) -> List[ValidationIssue]:
        """
        Check the per-platform split adds up to 100% within tolerance.

        Equal split is correct by construction and is not checked.
        """
        if config.planning_mode == PlanningMode.EQUAL_SPLIT:
            return []
        if not config.platforms or config.total_investment <= 0:
            return []

        issues = []
        for platform in config.platforms:
            percentage = config.percentages.get(platform, 0.0)
            if percentage < 0 or percentage > 100:
                issues.append(ValidationIssue(
                    ValidationSeverity.ERROR,
                    f"The percentage for {platform} must be between 0 and 100.",
                    f"percentages.{platform}"
                ))

        total = sum(config.percentages.get(platform, 0.0) for platform in config.platforms)
        if abs(total - 100) >= self.allocation_policy.percentage_tolerance:
            issues.append(ValidationIssue(
                ValidationSeverity.ERROR,
                f"Platform percentages must add up to 100%. Current total: {total:.1f}%",
                "percentages"
            ))

        return issues

    def validate_investment(self, config: CampaignConfig,
                            fees: Optional[FeeBreakdown] = None) -> List[ValidationIssue]:
        """
        Check the investment against the policy minimum.

        In integrated mode the minimum applies to the effective investment
        left after fees.
        """
        if parse_number(config.total_investment) is None:
            return [ValidationIssue(ValidationSeverity.ERROR, "Enter a valid investment amount.", "total_investment")]
        if config.total_investment < 0:
            return [ValidationIssue(ValidationSeverity.ERROR, "The investment cannot be negative.", "total_investment")]

        minimum = self.min_investment

        if config.fee_mode == FeeMode.INTEGRATED and fees is not None:
            effective = fees.effective_ad_investment
            if effective < minimum:
                return [ValidationIssue(
                    ValidationSeverity.ERROR,
                    f"With integrated fees the effective media investment would be {effective:,.0f}. "
                    f"The minimum is {minimum:,.0f}. Increase the budget or switch to additional fees.",
                    "total_investment"
                )]
            return []

        if config.total_investment < minimum:
            return [ValidationIssue(
                ValidationSeverity.ERROR,
                f"The minimum advertising investment is {minimum:,.0f}. Adjust the amount to continue.",
                "total_investment"
            )]

        return []
