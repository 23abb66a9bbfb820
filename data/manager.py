"""
Campaign registry backed by a local Excel sheet of existing campaigns.
"""

import asyncio
import logging
import os
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Any
from dataclasses import dataclass
import hashlib

from business_logic.conflict_detector import CampaignLookupError
from models.data_models import ExistingCampaign
from .parsers import CampaignSheetParser

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass
class RegistryCacheEntry:
    """Parsed campaigns with the metadata used to invalidate them."""
    campaigns: List[ExistingCampaign]
    file_path: str
    file_hash: str
    last_updated: datetime
    last_accessed: datetime


class CampaignRegistry:
    """
    Campaign lookup over an Excel registry file.

    Parsed campaigns are cached in memory and re-read when the file
    content changes or the cache outlives its TTL.
    """

    def __init__(self, file_path: str = "campaigns.xlsx", cache_ttl_hours: int = 24,
                 sheet_name: Optional[str] = None):
        """
        Initialize the registry.

        Args:
            file_path: Path to the campaign Excel file
            cache_ttl_hours: Time-to-live for parsed campaigns in hours
            sheet_name: Sheet holding the campaigns; the first when omitted
        """
        self.file_path = file_path
        self.sheet_name = sheet_name
        self.cache_ttl = timedelta(hours=cache_ttl_hours)
        self._cache: Optional[RegistryCacheEntry] = None

    def _get_file_hash(self, file_path: str) -> str:
        """
        Calculate MD5 hash of a file for change detection.

        Args:
            file_path: Path to the file

        Returns:
            MD5 hash string, empty when the file cannot be read
        """
        try:
            with open(file_path, 'rb') as f:
                file_hash = hashlib.md5()
                for chunk in iter(lambda: f.read(4096), b""):
                    file_hash.update(chunk)
                return file_hash.hexdigest()
        except OSError as e:
            logger.error(f"Error calculating file hash for {file_path}: {str(e)}")
            return ""

    def _is_cache_valid(self, cache_entry: RegistryCacheEntry) -> bool:
        if not os.path.exists(cache_entry.file_path):
            logger.warning(f"Cached file no longer exists: {cache_entry.file_path}")
            return False

        if self._get_file_hash(cache_entry.file_path) != cache_entry.file_hash:
            logger.info(f"Campaign registry has been modified: {cache_entry.file_path}")
            return False

        if datetime.now() - cache_entry.last_updated > self.cache_ttl:
            logger.info(f"Campaign registry cache has expired for: {cache_entry.file_path}")
            return False

        return True

    def load_campaigns(self, force_refresh: bool = False) -> List[ExistingCampaign]:
        """
        Load and cache the campaigns in the registry.

        Args:
            force_refresh: Ignore the cache and parse the file again

        Returns:
            Active campaigns from the registry

        Raises:
            FileNotFoundError: If the registry file is missing
            ValueError: If the sheet is malformed
        """
        if (not force_refresh and
                self._cache and
                self._cache.file_path == self.file_path and
                self._is_cache_valid(self._cache)):
            self._cache.last_accessed = datetime.now()
            logger.debug("Using in-memory campaign registry cache")
            return self._cache.campaigns

        logger.info(f"Parsing campaign registry from: {self.file_path}")
        parser = CampaignSheetParser(self.file_path, self.sheet_name)
        campaigns = parser.parse_campaigns()

        now = datetime.now()
        self._cache = RegistryCacheEntry(
            campaigns=campaigns,
            file_path=self.file_path,
            file_hash=self._get_file_hash(self.file_path),
            last_updated=now,
            last_accessed=now
        )
        return campaigns

    async def find_active_campaigns(self, start: date, end: date,
                                    exclude_campaign_id: Optional[str] = None) -> List[ExistingCampaign]:
        """
        Campaigns whose premiere range touches [start, end].

        Raises:
            CampaignLookupError: If the registry cannot be read
        """
        try:
            campaigns = await asyncio.to_thread(self.load_campaigns)
        except (OSError, ValueError) as e:
            raise CampaignLookupError(f"Campaign registry unavailable: {str(e)}") from e

        matches = []
        for campaign in campaigns:
            if exclude_campaign_id and campaign.campaign_id == exclude_campaign_id:
                continue
            campaign_end = campaign.premiere_end or campaign.premiere_start
            if campaign.premiere_start <= end and start <= campaign_end:
                matches.append(campaign)

        logger.debug(f"Registry returned {len(matches)} campaigns between {start} and {end}")
        return matches

    def clear_cache(self):
        """Drop the parsed campaigns so the next lookup re-reads the file."""
        self._cache = None
        logger.info("Campaign registry cache cleared")

    def get_cache_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the cached registry.

        Returns:
            Dictionary containing cache statistics
        """
        stats = {
            'in_memory': self._cache is not None,
            'file_path': self.file_path,
            'campaign_count': 0,
            'last_updated': None,
            'last_accessed': None
        }

        if self._cache:
            stats['campaign_count'] = len(self._cache.campaigns)
            stats['last_updated'] = self._cache.last_updated.isoformat()
            stats['last_accessed'] = self._cache.last_accessed.isoformat()

        return stats
