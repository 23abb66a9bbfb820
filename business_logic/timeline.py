"""
Campaign calendar derivation from a film's release date.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple, Union

import pandas as pd
from pandas.tseries.offsets import BDay

from config.policies import TimelinePolicy, DEFAULT_TIMELINE_POLICY
from models.data_models import CampaignTimeline, ValidationIssue, ValidationSeverity

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

FRIDAY = 4


@dataclass
class TimelineResult:
    """Derived timeline plus any issue with the requested end date."""
    timeline: CampaignTimeline
    issues: List[ValidationIssue]

    @property
    def is_valid(self) -> bool:
        return not any(issue.severity == ValidationSeverity.ERROR for issue in self.issues)


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def add_business_days(start: date, days: int) -> date:
    """Shift a date by weekdays only; negative values move backwards."""
    if days == 0:
        return start
    return (pd.Timestamp(start) + BDay(days)).date()


def premiere_weekend(release_date: Union[date, datetime]) -> Tuple[date, date]:
    """
    Friday-Sunday span treated as the premiere weekend.

    Friday to Sunday releases fall inside their own weekend; Monday to
    Thursday releases use the following Friday.
    """
    release = _as_date(release_date)
    weekday = release.weekday()

    if weekday >= FRIDAY:
        friday = release - timedelta(days=weekday - FRIDAY)
    else:
        friday = release + timedelta(days=FRIDAY - weekday)

    return friday, friday + timedelta(days=2)


def validate_manual_end_date(release_date: Union[date, datetime],
                             manual_end_date: Union[date, datetime]) -> Optional[ValidationIssue]:
    """An explicit campaign end must fall strictly after the premiere weekend."""
    _, weekend_end = premiere_weekend(release_date)
    end = _as_date(manual_end_date)

    if end <= weekend_end:
        return ValidationIssue(
            ValidationSeverity.ERROR,
            f"The campaign end date must be after the premiere weekend ({weekend_end.isoformat()}).",
            "campaign_end_date"
        )
    return None


def derive_timeline(release_date: Union[date, datetime],
                    has_content_adaptation_addon: bool = False,
                    manual_end_date: Optional[Union[date, datetime]] = None,
                    policy: TimelinePolicy = DEFAULT_TIMELINE_POLICY) -> TimelineResult:
    """
    Derive every campaign milestone from the release date.

    Args:
        release_date: Film release date (time of day is ignored)
        has_content_adaptation_addon: Adds the policy's extra lead time for
            creative adaptation to the creatives deadline
        manual_end_date: Optional campaign end later than the premiere weekend
        policy: Offsets for the pre-campaign window and deadlines

    Returns:
        TimelineResult; a rejected manual end date yields an error issue and
        a timeline ending with the premiere weekend
    """
    release = _as_date(release_date)
    weekend_start, weekend_end = premiere_weekend(release)

    pre_start = release - timedelta(days=policy.pre_campaign_days)
    pre_end = release - timedelta(days=1)

    issues: List[ValidationIssue] = []
    campaign_end = weekend_end
    if manual_end_date is not None:
        issue = validate_manual_end_date(release, manual_end_date)
        if issue is None:
            campaign_end = _as_date(manual_end_date)
        else:
            issues.append(issue)

    lead_days = policy.creatives_lead_business_days
    if has_content_adaptation_addon:
        lead_days += policy.adaptation_extra_business_days

    timeline = CampaignTimeline(
        release_date=release,
        pre_start_date=pre_start,
        pre_end_date=pre_end,
        premiere_weekend_start=weekend_start,
        premiere_weekend_end=weekend_end,
        campaign_end_date=campaign_end,
        creatives_deadline=add_business_days(pre_start, -lead_days),
        final_report_date=add_business_days(campaign_end, policy.final_report_business_days),
        includes_content_adaptation=has_content_adaptation_addon
    )

    return TimelineResult(timeline=timeline, issues=issues)


def days_until(target: Union[date, datetime], today: Optional[date] = None) -> int:
    """Signed number of days from today to a milestone (negative when past)."""
    reference = today or date.today()
    return (_as_date(target) - reference).days
