"""
Core data models for the campaign configuration engine.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Optional, Any


def round_money(value: float) -> float:
    """Round a monetary value half-up to cents for display or storage."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class FeeMode(Enum):
    """Whether fees are carved out of the budget or added on top of it."""
    INTEGRATED = "integrated"
    ADDITIONAL = "additional"


class PlanningMode(Enum):
    """How the user drives the per-platform budget split."""
    EQUAL_SPLIT = "simple"
    PERCENTAGE = "percentage"
    AMOUNT = "amount"


class Addon(Enum):
    """Optional services with a fixed base cost."""
    CONTENT_ADAPTATION = "adaptacion"
    MICROSITE = "microsite"
    EMAIL_WHATSAPP = "emailWhatsapp"


class ConflictLevel(Enum):
    """Severity of scheduling/audience conflicts with other campaigns."""
    NONE = "none"
    LOW = "low"
    HIGH = "high"


class OverlapDimension(Enum):
    """Dimension along which two campaigns overlap."""
    GENRE = "genre"
    DATE_RANGE = "date_range"
    AUDIENCE = "audience"
    TERRITORY = "territory"
    PLATFORM = "platform"


class WizardStep(Enum):
    """Wizard steps that gate progression."""
    FILM_AND_DATES = 1
    PLATFORMS_AND_BUDGET = 2
    ADDONS = 3
    REVIEW = 4


class ReleaseSize(Enum):
    """Scale of the theatrical release, used to seed strategy recommendations."""
    LIMITED = "limitado"
    MEDIUM = "mediano"
    MASSIVE = "masivo"


class Scenario(Enum):
    """Investment appetite of a recommended strategy."""
    CONSERVATIVE = "conservador"
    STANDARD = "estandar"
    AGGRESSIVE = "agresivo"


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class ValidationIssue:
    """A user-correctable problem attributed to a specific field."""
    severity: ValidationSeverity
    message: str
    field: Optional[str] = None


@dataclass
class ValidationResult:
    """Outcome of validating an edit or a wizard step."""
    is_valid: bool
    issues: List[ValidationIssue]
    total_errors: int
    total_warnings: int

    @classmethod
    def from_issues(cls, issues: List[ValidationIssue]) -> "ValidationResult":
        errors = sum(1 for issue in issues if issue.severity == ValidationSeverity.ERROR)
        warnings = sum(1 for issue in issues if issue.severity == ValidationSeverity.WARNING)
        return cls(is_valid=errors == 0, issues=list(issues), total_errors=errors, total_warnings=warnings)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == ValidationSeverity.ERROR]

    def messages_for(self, field: str) -> List[str]:
        return [issue.message for issue in self.issues if issue.field == field]


@dataclass
class ManualAllocation:
    """Manually entered allocation kept aside while equal split is active."""
    percentages: Dict[str, float]
    amounts: Dict[str, float]
    planning_mode: PlanningMode


@dataclass
class CampaignConfig:
    """Single source of truth edited by the campaign wizard."""
    platforms: List[str] = field(default_factory=list)
    total_investment: float = 0.0
    fee_mode: FeeMode = FeeMode.ADDITIONAL
    is_first_release: bool = True
    completed_releases: int = 0
    selected_addons: List[Addon] = field(default_factory=list)
    planning_mode: PlanningMode = PlanningMode.EQUAL_SPLIT
    percentages: Dict[str, float] = field(default_factory=dict)
    amounts: Dict[str, float] = field(default_factory=dict)
    manual_allocation: Optional[ManualAllocation] = None
    release_date: Optional[date] = None
    manual_end_date: Optional[date] = None
    film_title: str = ""
    genre: str = ""
    target_audience: str = ""
    territory: str = ""
    campaign_id: Optional[str] = None

    @property
    def has_content_adaptation(self) -> bool:
        return Addon.CONTENT_ADAPTATION in self.selected_addons


@dataclass
class FeeBreakdown:
    """Itemized fees for a campaign configuration (derived, never stored)."""
    ad_investment: float
    effective_ad_investment: float
    fixed_fee: float
    variable_fee: float
    variable_fee_rate: float
    setup_fee: float
    volume_discount: float
    addons_base_cost: float
    total_fees: float
    total_estimated: float
    fee_mode: FeeMode

    def to_payload(self) -> Dict[str, Any]:
        """Fields persisted with a submitted campaign, rounded to cents."""
        return {
            'ad_investment_amount': round_money(self.ad_investment),
            'effective_ad_investment_amount': round_money(self.effective_ad_investment),
            'fixed_fee_amount': round_money(self.fixed_fee),
            'variable_fee_amount': round_money(self.variable_fee),
            'setup_fee_amount': round_money(self.setup_fee),
            'addons_base_amount': round_money(self.addons_base_cost),
            'total_estimated_amount': round_money(self.total_estimated),
            'fee_mode': self.fee_mode.value,
        }


@dataclass
class CampaignTimeline:
    """Calendar milestones derived from a release date."""
    release_date: date
    pre_start_date: date
    pre_end_date: date
    premiere_weekend_start: date
    premiere_weekend_end: date
    campaign_end_date: date
    creatives_deadline: date
    final_report_date: date
    includes_content_adaptation: bool = False

    def to_payload(self) -> Dict[str, str]:
        return {
            'release_date': self.release_date.isoformat(),
            'pre_start_date': self.pre_start_date.isoformat(),
            'pre_end_date': self.pre_end_date.isoformat(),
            'premiere_weekend_start': self.premiere_weekend_start.isoformat(),
            'premiere_weekend_end': self.premiere_weekend_end.isoformat(),
            'campaign_end_date': self.campaign_end_date.isoformat(),
            'creatives_deadline': self.creatives_deadline.isoformat(),
            'final_report_date': self.final_report_date.isoformat(),
        }


@dataclass
class ConflictCriteria:
    """Inputs for a conflict check against other campaigns."""
    genre: str
    target_audience: str
    territory: str
    premiere_start: date
    premiere_end: date
    platforms: List[str] = field(default_factory=list)
    exclude_campaign_id: Optional[str] = None


@dataclass
class ExistingCampaign:
    """Campaign metadata returned by the campaign-lookup collaborator."""
    campaign_id: str
    film_title: str
    genre: str
    premiere_start: date
    premiere_end: Optional[date] = None
    target_audience: str = ""
    territory: str = ""
    platforms: List[str] = field(default_factory=list)


@dataclass
class CampaignConflict:
    """A single overlapping campaign and why it overlaps."""
    campaign_id: str
    film_title: str
    premiere_start: date
    dimensions: List[OverlapDimension]
    reasons: List[str]
    score: int


@dataclass
class ConflictReport:
    """Advisory conflict report for UI display only."""
    level: ConflictLevel
    conflicts: List[CampaignConflict] = field(default_factory=list)
    score: int = 0

    @classmethod
    def none(cls) -> "ConflictReport":
        return cls(level=ConflictLevel.NONE)


@dataclass
class PlatformWeight:
    """Recommended share of the budget for one platform."""
    platform: str
    weight: float
    reason: str


@dataclass
class PhaseWeights:
    """Budget split across campaign phases, in percent."""
    pre: float
    premiere: float
    post: float


@dataclass
class InvestmentRange:
    """Suggested investment bounds for a release."""
    min: float
    recommended: float
    max: float


@dataclass
class ScenarioRecommendation:
    """One ready-to-apply strategy variant."""
    scenario: Scenario
    investment: InvestmentRange
    platforms: List[PlatformWeight]
    phase_weights: PhaseWeights
    estimated_reach: str
    estimated_clicks: str
    estimated_ctr: str
    description: str


@dataclass
class StrategyRecommendation:
    """Platform mix, phasing and investment advice for a release."""
    release_size: ReleaseSize
    recommended_platforms: List[PlatformWeight]
    phase_weights: PhaseWeights
    investment_range: InvestmentRange
    scenarios: List[ScenarioRecommendation]
    reasoning: List[str] = field(default_factory=list)

    def scenario(self, scenario: Scenario) -> Optional[ScenarioRecommendation]:
        for candidate in self.scenarios:
            if candidate.scenario == scenario:
                return candidate
        return None
