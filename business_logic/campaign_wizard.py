"""
Campaign Wizard - Owns the campaign configuration for one wizard session.

Every edit goes through a mutation method that runs the relevant reducer,
commits the new configuration only when it is valid, and hands back the
ValidationResult so the form can show messages next to the right field.
Fees and the timeline are derived on demand; conflict checks run
asynchronously through the debounced ConflictDetector.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple, Union

from config.policies import (
    AllocationPolicy, ConflictPolicy, TimelinePolicy,
    DEFAULT_ALLOCATION_POLICY, DEFAULT_TIMELINE_POLICY
)
from config.settings import AppConfig, config_manager
from models.data_models import (
    Addon, CampaignConfig, ConflictCriteria, ConflictReport, FeeBreakdown, FeeMode,
    PlanningMode, ReleaseSize, Scenario, StrategyRecommendation, ValidationIssue, ValidationResult,
    ValidationSeverity, WizardStep
)
from . import budget_allocator
from . import draft_snapshot
from . import strategy_recommender
from .budget_allocator import AllocationUpdate, copy_config, platform_budget_payload
from .campaign_validator import CampaignValidator
from .conflict_detector import ConflictDetector
from .error_handler import error_handler
from .fee_calculator import FeeCalculator, FeeInversionError
from .strategy_recommender import StrategyRecommender
from .timeline import TimelineResult, derive_timeline, premiere_weekend, validate_manual_end_date

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DateInput = Union[date, datetime, str, None]

FILM_FIELDS = ('film_title', 'genre', 'target_audience', 'territory', 'campaign_id')


def _parse_date(value: DateInput) -> Optional[date]:
    """Accept date objects or ISO strings; None for anything unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _error(message: str, field: str) -> ValidationResult:
    return ValidationResult.from_issues([ValidationIssue(ValidationSeverity.ERROR, message, field)])


class CampaignWizard:
    """
    Wizard session for configuring one film campaign.

    The wizard is the only owner of its CampaignConfig. Reducers never
    mutate the config they receive, so a rejected edit leaves the session
    exactly as it was.
    """

    def __init__(self,
                 config: Optional[CampaignConfig] = None,
                 fee_calculator: Optional[FeeCalculator] = None,
                 conflict_detector: Optional[ConflictDetector] = None,
                 validator: Optional[CampaignValidator] = None,
                 allocation_policy: Optional[AllocationPolicy] = None,
                 timeline_policy: Optional[TimelinePolicy] = None,
                 recommender: Optional[StrategyRecommender] = None):
        """
        Initialize the wizard session.

        Args:
            config: Starting configuration, e.g. a restored draft
            fee_calculator: Fee schedule implementation
            conflict_detector: Debounced conflict checker; without one,
                conflict checks report no conflict
            validator: Step validator
            allocation_policy: Rounding and tolerance for allocations
            timeline_policy: Offsets used to derive the calendar
            recommender: Strategy rule engine used to seed the allocation
        """
        self.config = config or CampaignConfig()
        self.fee_calculator = fee_calculator or FeeCalculator()
        self.conflict_detector = conflict_detector
        self.allocation_policy = allocation_policy or DEFAULT_ALLOCATION_POLICY
        self.validator = validator or CampaignValidator(
            fee_policy=self.fee_calculator.policy,
            allocation_policy=self.allocation_policy
        )
        self.timeline_policy = timeline_policy or DEFAULT_TIMELINE_POLICY
        self.recommender = recommender or StrategyRecommender()
        self.conflict_report: Optional[ConflictReport] = None

        logger.info("CampaignWizard initialized")

    def _commit(self, update: AllocationUpdate) -> ValidationResult:
        if update.is_valid:
            self.config = update.config
        return ValidationResult.from_issues(update.issues)

    # Budget and platforms

    def set_percentage(self, platform: str, value: Union[float, int, str]) -> ValidationResult:
        return self._commit(budget_allocator.set_percentage(self.config, platform, value))

    def set_amount(self, platform: str, value: Union[float, int, str]) -> ValidationResult:
        return self._commit(budget_allocator.set_amount(self.config, platform, value))

    def set_total_investment(self, value: Union[float, int, str]) -> ValidationResult:
        return self._commit(budget_allocator.set_total_investment(self.config, value, self.allocation_policy))

    def add_platform(self, platform: str) -> ValidationResult:
        return self._commit(budget_allocator.add_platform(self.config, platform, self.allocation_policy))

    def remove_platform(self, platform: str) -> ValidationResult:
        return self._commit(budget_allocator.remove_platform(self.config, platform, self.allocation_policy))

    def toggle_platform(self, platform: str) -> ValidationResult:
        """Select the platform when it is not selected, deselect it otherwise."""
        if platform in self.config.platforms:
            return self.remove_platform(platform)
        return self.add_platform(platform)

    def set_planning_mode(self, mode: Union[PlanningMode, str]) -> ValidationResult:
        try:
            planning_mode = mode if isinstance(mode, PlanningMode) else PlanningMode(mode)
        except ValueError:
            return _error(f"Unknown planning mode: {mode}", "planning_mode")
        return self._commit(budget_allocator.set_planning_mode(self.config, planning_mode, self.allocation_policy))

    def set_fee_mode(self, mode: Union[FeeMode, str]) -> ValidationResult:
        try:
            fee_mode = mode if isinstance(mode, FeeMode) else FeeMode(mode)
        except ValueError:
            return _error(f"Unknown fee mode: {mode}", "fee_mode")

        self.config = copy_config(self.config, fee_mode=fee_mode)
        return ValidationResult.from_issues([])

    def toggle_addon(self, addon: Union[Addon, str]) -> ValidationResult:
        try:
            selected = addon if isinstance(addon, Addon) else Addon(addon)
        except ValueError:
            return _error(f"Unknown add-on: {addon}", "selected_addons")

        addons = [a for a in self.config.selected_addons if a != selected]
        if len(addons) == len(self.config.selected_addons):
            addons.append(selected)

        self.config = copy_config(self.config, selected_addons=addons)
        return ValidationResult.from_issues([])

    def set_release_history(self, is_first_release: bool, completed_releases: int = 0) -> ValidationResult:
        """Record whether this is the distributor's first release and how many came before."""
        if completed_releases < 0:
            return _error("Completed releases cannot be negative.", "completed_releases")
        if is_first_release and completed_releases > 0:
            return _error("A first release cannot have completed releases.", "completed_releases")

        self.config = copy_config(
            self.config, is_first_release=is_first_release, completed_releases=completed_releases
        )
        return ValidationResult.from_issues([])

    # Strategy

    def recommend_strategy(self, release_size: Union[ReleaseSize, str, None]) -> Optional[StrategyRecommendation]:
        """Recommendation for the film's genre; None without a known release size."""
        try:
            return self.recommender.recommend(release_size, self.config.genre)
        except ValueError:
            logger.info(f"No strategy for unknown release size: {release_size!r}")
            return None

    def apply_scenario(self, release_size: Union[ReleaseSize, str, None],
                       scenario: Union[Scenario, str] = Scenario.STANDARD) -> ValidationResult:
        """Seed platforms, total investment and percentages from a recommended scenario."""
        try:
            chosen = scenario if isinstance(scenario, Scenario) else Scenario(scenario)
        except ValueError:
            return _error(f"Unknown scenario: {scenario}", "scenario")

        recommendation = self.recommend_strategy(release_size)
        if recommendation is None:
            return _error("Select the release size to get a recommended strategy.", "release_size")

        return self._commit(strategy_recommender.apply_scenario(
            self.config, recommendation.scenario(chosen), self.allocation_policy
        ))

    # Dates

    def set_release_date(self, value: DateInput) -> ValidationResult:
        """
        Set the release date.

        A manual end date that no longer falls after the new premiere
        weekend is cleared, with a warning.
        """
        release = _parse_date(value)
        if release is None:
            return _error("Enter a valid release date.", "release_date")

        changes: Dict[str, Any] = {'release_date': release}
        issues = []

        manual_end = self.config.manual_end_date
        if manual_end is not None and validate_manual_end_date(release, manual_end) is not None:
            changes['manual_end_date'] = None
            issues.append(ValidationIssue(
                ValidationSeverity.WARNING,
                "The campaign end date was reset because it no longer falls after the premiere weekend.",
                "campaign_end_date"
            ))

        self.config = copy_config(self.config, **changes)
        return ValidationResult.from_issues(issues)

    def set_manual_end_date(self, value: DateInput) -> ValidationResult:
        """Set an explicit campaign end; rejected unless strictly after the premiere weekend."""
        if self.config.release_date is None:
            return _error("Select a release date before changing the campaign end date.", "campaign_end_date")

        end = _parse_date(value)
        if end is None:
            return _error("Enter a valid campaign end date.", "campaign_end_date")

        issue = validate_manual_end_date(self.config.release_date, end)
        if issue is not None:
            return ValidationResult.from_issues([issue])

        self.config = copy_config(self.config, manual_end_date=end)
        return ValidationResult.from_issues([])

    def clear_manual_end_date(self) -> ValidationResult:
        self.config = copy_config(self.config, manual_end_date=None)
        return ValidationResult.from_issues([])

    def update_film_details(self, **fields) -> ValidationResult:
        """
        Update film title, genre, audience, territory or campaign id.

        Unknown field names are rejected without changing anything.
        """
        unknown = [name for name in fields if name not in FILM_FIELDS]
        if unknown:
            return _error(f"Unknown film field(s): {', '.join(sorted(unknown))}", unknown[0])

        changes = {}
        for name, value in fields.items():
            if name == 'campaign_id':
                changes[name] = str(value) if value not in (None, "") else None
            else:
                changes[name] = (value or "").strip()

        self.config = copy_config(self.config, **changes)
        return ValidationResult.from_issues([])

    # Derived views

    def fees(self) -> FeeBreakdown:
        """Current fee breakdown. Raises FeeInversionError if the budget cannot be inverted."""
        return self.fee_calculator.calculate(self.config)

    def timeline(self) -> Optional[TimelineResult]:
        """Current calendar, or None until a release date is set."""
        if self.config.release_date is None:
            return None
        return derive_timeline(
            self.config.release_date,
            self.config.has_content_adaptation,
            self.config.manual_end_date,
            self.timeline_policy
        )

    def conflict_criteria(self) -> Optional[ConflictCriteria]:
        """Criteria for a conflict check, or None while genre or release date is missing."""
        if self.config.release_date is None or not self.config.genre.strip():
            return None

        weekend_start, weekend_end = premiere_weekend(self.config.release_date)
        return ConflictCriteria(
            genre=self.config.genre,
            target_audience=self.config.target_audience,
            territory=self.config.territory,
            premiere_start=weekend_start,
            premiere_end=weekend_end,
            platforms=list(self.config.platforms),
            exclude_campaign_id=self.config.campaign_id
        )

    async def check_conflicts(self) -> Optional[ConflictReport]:
        """
        Run a debounced conflict check for the current configuration.

        Returns:
            The report for this call, or None when a newer call superseded it
        """
        criteria = self.conflict_criteria()
        if criteria is None or self.conflict_detector is None:
            self.conflict_report = ConflictReport.none()
            return self.conflict_report

        report = await self.conflict_detector.check(criteria)
        if report is not None:
            self.conflict_report = report
        return report

    def _fees_or_issue(self) -> Tuple[Optional[FeeBreakdown], Optional[ValidationIssue]]:
        try:
            return self.fees(), None
        except FeeInversionError as e:
            error_info = error_handler.handle_computation_error(e, "fee calculation")
            error_handler.log_error(error_info, "Fee calculation")
            return None, ValidationIssue(ValidationSeverity.ERROR, error_info.user_message, "total_investment")

    def can_advance(self, step: Union[WizardStep, int], is_admin: bool = False) -> ValidationResult:
        """
        Validate everything the step requires before the user may continue.

        Args:
            step: Step being left
            is_admin: Admins are not blocked by high conflicts

        Returns:
            ValidationResult; is_valid tells whether the wizard may advance
        """
        wizard_step = step if isinstance(step, WizardStep) else WizardStep(step)

        fees, fee_issue = self._fees_or_issue()
        result = self.validator.validate_step(
            wizard_step,
            self.config,
            fees=fees,
            timeline_result=self.timeline(),
            conflict_report=self.conflict_report,
            is_admin=is_admin
        )

        if fee_issue is not None and wizard_step in (WizardStep.PLATFORMS_AND_BUDGET, WizardStep.REVIEW):
            return ValidationResult.from_issues(result.issues + [fee_issue])
        return result

    def prepare_submission(self, is_admin: bool = False) -> Tuple[bool, Optional[Dict[str, Any]], ValidationResult]:
        """
        Validate the whole configuration and build the submission payload.

        Args:
            is_admin: Admins are not blocked by high conflicts

        Returns:
            Tuple of (success, payload or None, ValidationResult)
        """
        result = self.can_advance(WizardStep.REVIEW, is_admin)
        if not result.is_valid:
            logger.info(f"Submission blocked by {result.total_errors} error(s)")
            return False, None, result

        try:
            payload = build_submission_payload(self.config, self.fees(), self.timeline())
        except Exception as e:
            error_info = error_handler.classify_error(e, "submission payload")
            error_handler.log_error(error_info, "Campaign submission")
            issue = ValidationIssue(ValidationSeverity.ERROR, error_info.user_message, error_info.field)
            return False, None, ValidationResult.from_issues(result.issues + [issue])

        logger.info(f"Prepared submission for '{self.config.film_title}' on {len(self.config.platforms)} platforms")
        return True, payload, result

    # Drafts

    def serialize(self) -> Dict[str, Any]:
        return draft_snapshot.serialize(self.config)

    def restore(self, snapshot: Dict[str, Any]) -> ValidationResult:
        """Replace the session state with a saved draft; a bad draft leaves it untouched."""
        try:
            config = draft_snapshot.restore(snapshot)
        except draft_snapshot.SnapshotError as e:
            logger.warning(f"Could not restore draft: {str(e)}")
            return _error(f"The saved draft could not be restored: {str(e)}", "draft")

        self._discard_pending_checks()
        self.config = config
        return ValidationResult.from_issues([])

    def reset(self):
        """Start over with an empty configuration."""
        self._discard_pending_checks()
        self.config = CampaignConfig()

    def _discard_pending_checks(self):
        if self.conflict_detector is not None:
            self.conflict_detector.cancel_pending()
        self.conflict_report = None


def build_submission_payload(config: CampaignConfig,
                             fees: FeeBreakdown,
                             timeline_result: Optional[TimelineResult]) -> Dict[str, Any]:
    """
    Flatten a validated configuration into the shape persisted by the backend.

    Per-platform amounts are not persisted; only percentages are.
    """
    payload: Dict[str, Any] = {
        'film_title': config.film_title,
        'genre': config.genre,
        'target_audience': config.target_audience,
        'territory': config.territory,
        'is_first_release': config.is_first_release,
        'completed_releases': config.completed_releases,
        'selected_addons': [addon.value for addon in config.selected_addons],
        'planning_mode': config.planning_mode.value,
    }
    if config.campaign_id:
        payload['campaign_id'] = config.campaign_id

    payload.update(fees.to_payload())
    if timeline_result is not None:
        payload.update(timeline_result.timeline.to_payload())
    payload['platforms'] = platform_budget_payload(config)

    return payload


def create_campaign_wizard(app_config: Optional[AppConfig] = None, lookup=None) -> CampaignWizard:
    """
    Build a wizard wired to the configured campaign lookup.

    Uses the HTTP lookup when a lookup URL is configured and the local
    Excel campaign registry otherwise.

    Args:
        app_config: Settings; loaded from secrets/environment when omitted
        lookup: Explicit lookup collaborator, overriding the configured one
    """
    settings = app_config or config_manager.load_config()

    if lookup is None:
        if settings.conflict_lookup_url:
            from data.http_lookup import HttpCampaignLookup
            lookup = HttpCampaignLookup(
                settings.conflict_lookup_url,
                settings.conflict_lookup_api_key,
                settings.conflict_lookup_timeout_seconds
            )
        else:
            from data.manager import CampaignRegistry
            lookup = CampaignRegistry(settings.campaign_registry_path, settings.cache_timeout_hours)

    allocation_policy = AllocationPolicy(percentage_tolerance=settings.percentage_tolerance)
    detector = ConflictDetector(
        lookup,
        debounce_seconds=settings.conflict_debounce_seconds,
        policy=ConflictPolicy(date_window_days=settings.conflict_date_window_days)
    )
    fee_calculator = FeeCalculator()
    validator = CampaignValidator(
        fee_policy=fee_calculator.policy,
        allocation_policy=allocation_policy,
        min_investment=settings.min_investment
    )

    return CampaignWizard(
        fee_calculator=fee_calculator,
        conflict_detector=detector,
        validator=validator,
        allocation_policy=allocation_policy
    )
