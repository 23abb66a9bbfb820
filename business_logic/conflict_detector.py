"""
Conflict detection against other active campaigns.

A campaign conflicts with another when they share a genre; overlapping
premiere dates, audience keywords, territory and platforms make the
conflict stronger. Detection is advisory: lookup failures degrade to
"no conflict" and are only logged.
"""

import asyncio
import logging
import re
from datetime import date, timedelta
from typing import List, Optional, Protocol

from config.policies import ConflictPolicy, DEFAULT_CONFLICT_POLICY
from models.data_models import (
    CampaignConflict, ConflictCriteria, ConflictLevel, ConflictReport,
    ExistingCampaign, OverlapDimension
)
from .error_handler import error_handler

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class CampaignLookupError(Exception):
    """Raised by lookup collaborators when existing campaigns cannot be fetched."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CampaignLookup(Protocol):
    """Collaborator returning campaigns active around a date range."""

    async def find_active_campaigns(self, start: date, end: date,
                                    exclude_campaign_id: Optional[str] = None) -> List[ExistingCampaign]:
        ...


def _normalize(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def _keywords(text: Optional[str], min_length: int) -> List[str]:
    return [word for word in re.split(r"\s+", _normalize(text)) if len(word) >= min_length]


def _ranges_close(start_a: date, end_a: date, start_b: date, end_b: date, window_days: int) -> bool:
    """True when two ranges overlap or start within the window of each other."""
    if start_a <= end_b and start_b <= end_a:
        return True
    return abs((start_a - start_b).days) <= window_days


def classify_conflicts(criteria: ConflictCriteria,
                       campaigns: List[ExistingCampaign],
                       policy: ConflictPolicy = DEFAULT_CONFLICT_POLICY) -> ConflictReport:
    """
    Score existing campaigns against the criteria.

    Args:
        criteria: The campaign being configured
        campaigns: Candidate campaigns from the lookup collaborator
        policy: Scoring weights and thresholds

    Returns:
        ConflictReport with conflicts ordered by score, then premiere date
    """
    genre = _normalize(criteria.genre)
    if not genre:
        return ConflictReport.none()

    own_keywords = set(_keywords(criteria.target_audience, policy.min_keyword_length))
    own_platforms = {_normalize(p) for p in criteria.platforms}

    conflicts: List[CampaignConflict] = []

    for campaign in campaigns:
        if criteria.exclude_campaign_id and campaign.campaign_id == criteria.exclude_campaign_id:
            continue
        if _normalize(campaign.genre) != genre:
            continue

        dimensions = [OverlapDimension.GENRE]
        reasons = ["Same film genre"]
        score = policy.genre_score

        campaign_end = campaign.premiere_end or campaign.premiere_start
        if _ranges_close(criteria.premiere_start, criteria.premiere_end,
                         campaign.premiere_start, campaign_end, policy.date_window_days):
            days_apart = abs((criteria.premiere_start - campaign.premiere_start).days)
            dimensions.append(OverlapDimension.DATE_RANGE)
            reasons.append(f"Premiere dates are close ({days_apart} days apart)")
            score += policy.date_score

        shared_keywords = own_keywords & set(_keywords(campaign.target_audience, policy.min_keyword_length))
        if len(shared_keywords) >= policy.min_shared_keywords:
            dimensions.append(OverlapDimension.AUDIENCE)
            reasons.append(f"Similar audience ({len(shared_keywords)} shared keywords)")
            score += policy.audience_score

        if _normalize(criteria.territory) and _normalize(campaign.territory) == _normalize(criteria.territory):
            dimensions.append(OverlapDimension.TERRITORY)
            reasons.append("Same territory")
            score += policy.territory_score

        shared_platforms = own_platforms & {_normalize(p) for p in campaign.platforms}
        if shared_platforms:
            dimensions.append(OverlapDimension.PLATFORM)
            reasons.append(f"Shared platforms: {', '.join(sorted(shared_platforms))}")
            score += policy.platform_score

        conflicts.append(CampaignConflict(
            campaign_id=campaign.campaign_id,
            film_title=campaign.film_title or "Untitled film",
            premiere_start=campaign.premiere_start,
            dimensions=dimensions,
            reasons=reasons,
            score=score
        ))

    conflicts.sort(key=lambda c: (-c.score, c.premiere_start))
    total_score = sum(conflict.score for conflict in conflicts)

    if total_score >= policy.high_threshold:
        level = ConflictLevel.HIGH
    elif total_score > 0:
        level = ConflictLevel.LOW
    else:
        level = ConflictLevel.NONE

    return ConflictReport(level=level, conflicts=conflicts, score=total_score)


class ConflictDetector:
    """
    Debounced, stale-safe conflict checks against a lookup collaborator.

    Every call to check() waits for the quiet window. Only the most recent
    call reaches the collaborator; earlier calls resolve to None. A result
    that arrives after a newer call started is discarded the same way.
    """

    def __init__(self, lookup: CampaignLookup,
                 debounce_seconds: float = 0.5,
                 policy: Optional[ConflictPolicy] = None):
        """
        Initialize the detector.

        Args:
            lookup: Collaborator returning existing campaigns
            debounce_seconds: Quiet window before a query is sent
            policy: Scoring weights and date window
        """
        self.lookup = lookup
        self.debounce_seconds = debounce_seconds
        self.policy = policy or DEFAULT_CONFLICT_POLICY
        self.last_report: Optional[ConflictReport] = None
        self.is_checking = False
        self._generation = 0

    async def check(self, criteria: ConflictCriteria) -> Optional[ConflictReport]:
        """
        Check the criteria for conflicts once input has settled.

        Args:
            criteria: Genre, audience, territory, premiere range, platforms

        Returns:
            ConflictReport for the latest call, or None when this call was
            superseded by a newer one
        """
        self._generation += 1
        generation = self._generation

        await asyncio.sleep(self.debounce_seconds)
        if generation != self._generation:
            logger.debug("Conflict check superseded during debounce window")
            return None

        self.is_checking = True
        try:
            report = await self._query(criteria)
        finally:
            if generation == self._generation:
                self.is_checking = False

        if generation != self._generation:
            logger.debug("Discarding stale conflict report")
            return None

        self.last_report = report
        return report

    def cancel_pending(self):
        """Invalidate every outstanding check, e.g. when the wizard is reset."""
        self._generation += 1
        self.is_checking = False

    async def _query(self, criteria: ConflictCriteria) -> ConflictReport:
        window = timedelta(days=self.policy.date_window_days)
        try:
            campaigns = await self.lookup.find_active_campaigns(
                criteria.premiere_start - window,
                criteria.premiere_end + window,
                criteria.exclude_campaign_id
            )
        except Exception as e:
            error_info = error_handler.classify_error(e, "conflict lookup")
            error_handler.log_error(error_info, "Conflict detection")
            return ConflictReport.none()

        report = classify_conflicts(criteria, campaigns, self.policy)
        logger.info(f"Conflict check: {report.level.value} ({len(report.conflicts)} campaigns, score {report.score})")
        return report
