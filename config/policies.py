"""
Business policy constants for fees, timelines, allocations and conflicts.

Values here are commercial policy, not code: they are grouped into frozen
dataclasses so callers can pass an alternative policy instead of editing
the calculators.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

from models.data_models import Addon, ReleaseSize, Scenario


@dataclass(frozen=True)
class FeePolicy:
    """Fee schedule applied by the FeeCalculator."""
    minimum_investment: float = 1000.0

    # Charged once per campaign (with at least one platform) on small budgets
    base_campaign_fee: float = 500.0
    small_campaign_threshold: float = 11000.0

    # Per-platform fee; the first platform is included
    platform_fee: float = 200.0
    free_platforms: int = 1
    platform_fee_waiver_threshold: float = 30000.0

    # (lower bound of effective investment, rate), highest first
    variable_fee_tiers: Tuple[Tuple[float, float], ...] = (
        (100000.0, 0.06),
        (50000.0, 0.08),
        (35000.0, 0.09),
        (0.0, 0.10),
    )

    # Above this only the variable fee applies
    large_investment_threshold: float = 100000.0

    setup_fee_per_platform: float = 150.0

    volume_discount_rate: float = 0.20
    volume_discount_from_release: int = 3

    addon_prices: Dict[Addon, float] = field(default_factory=lambda: {
        Addon.CONTENT_ADAPTATION: 290.0,
        Addon.MICROSITE: 490.0,
        Addon.EMAIL_WHATSAPP: 390.0,
    })


@dataclass(frozen=True)
class TimelinePolicy:
    """Offsets used to derive campaign milestones."""
    pre_campaign_days: int = 14
    creatives_lead_business_days: int = 3
    adaptation_extra_business_days: int = 0
    final_report_business_days: int = 3


@dataclass(frozen=True)
class AllocationPolicy:
    """Tolerances for the per-platform budget split."""
    percentage_tolerance: float = 0.5
    percentage_decimals: int = 2


@dataclass(frozen=True)
class ConflictPolicy:
    """Scoring weights and thresholds for conflict classification."""
    date_window_days: int = 14
    genre_score: int = 4
    date_score: int = 4
    audience_score: int = 2
    territory_score: int = 1
    platform_score: int = 1
    min_shared_keywords: int = 2
    min_keyword_length: int = 4
    high_threshold: int = 8


@dataclass(frozen=True)
class StrategyPolicy:
    """Rule tables behind strategy recommendations."""

    # (platform, weight, reason) in priority order
    base_platforms: Dict[ReleaseSize, Tuple[Tuple[str, float, str], ...]] = field(default_factory=lambda: {
        ReleaseSize.LIMITED: (
            ("Instagram", 40.0, "Urban, film-loving audience"),
            ("Facebook", 30.0, "Precise interest targeting"),
            ("YouTube", 30.0, "Pre-roll on specialist channels"),
        ),
        ReleaseSize.MEDIUM: (
            ("Instagram", 30.0, "Balanced reach and engagement"),
            ("TikTok", 25.0, "Virality and a young audience"),
            ("YouTube", 25.0, "Long-form video and awareness"),
            ("Facebook", 20.0, "Cross-generational reach"),
        ),
        ReleaseSize.MASSIVE: (
            ("Instagram", 25.0, "Maximum urban coverage"),
            ("TikTok", 25.0, "Mass virality"),
            ("YouTube", 20.0, "Video and retargeting"),
            ("Facebook", 20.0, "Mass reach"),
            ("Twitter", 10.0, "Conversation and trends"),
        ),
    })

    # Overrides only touch platforms already in the base mix
    genre_adjustments: Dict[str, Tuple[Tuple[str, float, str], ...]] = field(default_factory=lambda: {
        "terror": (
            ("TikTok", 35.0, "Viral jump-scare clips"),
            ("Instagram", 30.0, "Striking stories and reels"),
        ),
        "familiar": (
            ("Facebook", 35.0, "Parents and families"),
            ("YouTube", 30.0, "Family-safe video"),
        ),
        "accion": (
            ("TikTok", 30.0, "Viral action clips"),
            ("Instagram", 30.0, "Dynamic reels"),
        ),
    })
    genre_aliases: Dict[str, str] = field(default_factory=lambda: {
        "terror": "terror",
        "horror": "terror",
        "familiar": "familiar",
        "family": "familiar",
        "accion": "accion",
        "acción": "accion",
        "action": "accion",
    })

    # (pre, premiere, post)
    phase_weights: Dict[ReleaseSize, Tuple[float, float, float]] = field(default_factory=lambda: {
        ReleaseSize.LIMITED: (60.0, 30.0, 10.0),
        ReleaseSize.MEDIUM: (50.0, 35.0, 15.0),
        ReleaseSize.MASSIVE: (40.0, 40.0, 20.0),
    })
    scenario_phase_weights: Dict[Scenario, Tuple[float, float, float]] = field(default_factory=lambda: {
        Scenario.CONSERVATIVE: (70.0, 25.0, 5.0),
        Scenario.AGGRESSIVE: (35.0, 50.0, 15.0),
    })

    # (min, recommended, max)
    investment_ranges: Dict[ReleaseSize, Tuple[float, float, float]] = field(default_factory=lambda: {
        ReleaseSize.LIMITED: (3000.0, 8500.0, 15000.0),
        ReleaseSize.MEDIUM: (15000.0, 35000.0, 60000.0),
        ReleaseSize.MASSIVE: (60000.0, 125000.0, 250000.0),
    })
    conservative_recommended_factor: float = 1.2
    conservative_max_factor: float = 1.5
    aggressive_max_factor: float = 1.5
    conservative_platform_count: int = 2

    # (reach, clicks, ctr)
    estimated_impact: Dict[Scenario, Dict[ReleaseSize, Tuple[str, str, str]]] = field(default_factory=lambda: {
        Scenario.CONSERVATIVE: {
            ReleaseSize.LIMITED: ("150K-250K", "6K-10K", "4.0-4.5%"),
            ReleaseSize.MEDIUM: ("600K-900K", "24K-36K", "4.0-4.5%"),
            ReleaseSize.MASSIVE: ("2M-3M", "80K-120K", "4.0-4.5%"),
        },
        Scenario.STANDARD: {
            ReleaseSize.LIMITED: ("250K-400K", "10K-16K", "4.0%"),
            ReleaseSize.MEDIUM: ("1M-1.5M", "40K-60K", "4.0%"),
            ReleaseSize.MASSIVE: ("4M-6M", "160K-240K", "4.0%"),
        },
        Scenario.AGGRESSIVE: {
            ReleaseSize.LIMITED: ("400K-600K", "16K-24K", "4.0-4.2%"),
            ReleaseSize.MEDIUM: ("1.5M-2.5M", "60K-100K", "4.0-4.2%"),
            ReleaseSize.MASSIVE: ("6M-10M", "240K-400K", "4.0-4.2%"),
        },
    })
    scenario_descriptions: Dict[Scenario, str] = field(default_factory=lambda: {
        Scenario.CONSERVATIVE: "Safe approach with fewer platforms and more weight before the premiere. "
                               "Suited to testing the market with controlled risk.",
        Scenario.STANDARD: "Balance between reach and efficiency, based on similar successful campaigns.",
        Scenario.AGGRESSIVE: "Maximum coverage and frequency, weighted on the premiere weekend "
                             "to saturate the market and maximize attendance.",
    })


DEFAULT_FEE_POLICY = FeePolicy()
DEFAULT_TIMELINE_POLICY = TimelinePolicy()
DEFAULT_ALLOCATION_POLICY = AllocationPolicy()
DEFAULT_CONFLICT_POLICY = ConflictPolicy()
DEFAULT_STRATEGY_POLICY = StrategyPolicy()
