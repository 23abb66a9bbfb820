"""
Snapshot and restore of wizard drafts.

The engine never stores drafts itself; callers persist the JSON-safe
snapshot wherever they like (browser storage, a session table) and hand it
back to restore() later.
"""

import json
import logging
import math
from datetime import date
from typing import Any, Dict, List, Optional

from models.data_models import Addon, CampaignConfig, FeeMode, ManualAllocation, PlanningMode

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class SnapshotError(ValueError):
    """Raised when a snapshot cannot be turned back into a configuration."""
    pass


def _date_or_none(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_date(value: Optional[str], field: str) -> Optional[date]:
    if value in (None, ""):
        return None
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"Invalid date for {field}: {value!r}") from e


def _float_map(raw: Any, field: str) -> Dict[str, float]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SnapshotError(f"{field} must be a mapping")
    try:
        values = {str(key): float(value) for key, value in raw.items()}
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"{field} contains a non-numeric value") from e
    if not all(math.isfinite(value) for value in values.values()):
        raise SnapshotError(f"{field} contains a non-finite value")
    return values


def _list(raw: Any, field: str) -> List[Any]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise SnapshotError(f"{field} must be a list")
    return raw


def _text(raw: Any, field: str) -> str:
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise SnapshotError(f"{field} must be text")
    return raw


def serialize(config: CampaignConfig) -> Dict[str, Any]:
    """
    Turn a configuration into a JSON-safe snapshot.

    Args:
        config: Configuration to snapshot

    Returns:
        Versioned dictionary with ISO dates and enum values
    """
    manual = None
    if config.manual_allocation is not None:
        manual = {
            'percentages': dict(config.manual_allocation.percentages),
            'amounts': dict(config.manual_allocation.amounts),
            'planning_mode': config.manual_allocation.planning_mode.value,
        }

    return {
        'version': SNAPSHOT_VERSION,
        'platforms': list(config.platforms),
        'total_investment': config.total_investment,
        'fee_mode': config.fee_mode.value,
        'is_first_release': config.is_first_release,
        'completed_releases': config.completed_releases,
        'selected_addons': [addon.value for addon in config.selected_addons],
        'planning_mode': config.planning_mode.value,
        'percentages': dict(config.percentages),
        'amounts': dict(config.amounts),
        'manual_allocation': manual,
        'release_date': _date_or_none(config.release_date),
        'manual_end_date': _date_or_none(config.manual_end_date),
        'film_title': config.film_title,
        'genre': config.genre,
        'target_audience': config.target_audience,
        'territory': config.territory,
        'campaign_id': config.campaign_id,
    }


def restore(snapshot: Dict[str, Any]) -> CampaignConfig:
    """
    Rebuild a configuration from a snapshot.

    Args:
        snapshot: Dictionary produced by serialize()

    Returns:
        CampaignConfig equal to the one that was serialized

    Raises:
        SnapshotError: If the snapshot is malformed or from an unknown version
    """
    if not isinstance(snapshot, dict):
        raise SnapshotError("Snapshot must be a mapping")

    version = snapshot.get('version')
    if version != SNAPSHOT_VERSION:
        raise SnapshotError(f"Unsupported snapshot version: {version!r}")

    try:
        fee_mode = FeeMode(snapshot.get('fee_mode', FeeMode.ADDITIONAL.value))
        planning_mode = PlanningMode(snapshot.get('planning_mode', PlanningMode.EQUAL_SPLIT.value))
        addons = [Addon(value) for value in _list(snapshot.get('selected_addons'), 'selected_addons')]

        manual = None
        raw_manual = snapshot.get('manual_allocation')
        if raw_manual is not None and not isinstance(raw_manual, dict):
            raise SnapshotError("manual_allocation must be a mapping")
        if raw_manual:
            manual = ManualAllocation(
                percentages=_float_map(raw_manual.get('percentages'), 'manual_allocation.percentages'),
                amounts=_float_map(raw_manual.get('amounts'), 'manual_allocation.amounts'),
                planning_mode=PlanningMode(raw_manual.get('planning_mode', PlanningMode.PERCENTAGE.value))
            )
    except (TypeError, ValueError) as e:
        if isinstance(e, SnapshotError):
            raise
        raise SnapshotError(f"Invalid enum value in snapshot: {str(e)}") from e

    platforms = [_text(p, 'platforms') for p in _list(snapshot.get('platforms'), 'platforms')]
    if len(set(platforms)) != len(platforms):
        raise SnapshotError("Snapshot lists a platform more than once")

    try:
        total_investment = float(snapshot.get('total_investment', 0.0))
        completed_releases = int(snapshot.get('completed_releases', 0))
    except (TypeError, ValueError, OverflowError) as e:
        raise SnapshotError("Snapshot contains a non-numeric investment or release count") from e

    if not math.isfinite(total_investment):
        raise SnapshotError("Snapshot total investment must be a finite number")
    if total_investment < 0:
        raise SnapshotError("Snapshot total investment cannot be negative")

    campaign_id = snapshot.get('campaign_id')
    if campaign_id is not None and not isinstance(campaign_id, str):
        raise SnapshotError("campaign_id must be text")

    config = CampaignConfig(
        platforms=platforms,
        total_investment=total_investment,
        fee_mode=fee_mode,
        is_first_release=bool(snapshot.get('is_first_release', True)),
        completed_releases=completed_releases,
        selected_addons=addons,
        planning_mode=planning_mode,
        percentages=_float_map(snapshot.get('percentages'), 'percentages'),
        amounts=_float_map(snapshot.get('amounts'), 'amounts'),
        manual_allocation=manual,
        release_date=_parse_date(snapshot.get('release_date'), 'release_date'),
        manual_end_date=_parse_date(snapshot.get('manual_end_date'), 'manual_end_date'),
        film_title=_text(snapshot.get('film_title'), 'film_title'),
        genre=_text(snapshot.get('genre'), 'genre'),
        target_audience=_text(snapshot.get('target_audience'), 'target_audience'),
        territory=_text(snapshot.get('territory'), 'territory'),
        campaign_id=campaign_id
    )

    logger.debug(f"Restored draft with {len(platforms)} platforms")
    return config


def dumps(config: CampaignConfig) -> str:
    """Serialize a configuration straight to a JSON string."""
    return json.dumps(serialize(config))


def loads(payload: str) -> CampaignConfig:
    """Restore a configuration from a JSON string."""
    try:
        snapshot = json.loads(payload)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Draft is not valid JSON: {str(e)}") from e
    return restore(snapshot)
