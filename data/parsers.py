"""
Data parser for Excel files listing existing film campaigns.
"""

import pandas as pd
import logging
from typing import Dict, List, Optional, Any
from datetime import date
from pathlib import Path

from models.data_models import ExistingCampaign

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['campaign_id', 'film_title', 'genre', 'premiere_start']
OPTIONAL_COLUMNS = ['premiere_end', 'target_audience', 'territory', 'platforms', 'status']

# Campaigns in these states no longer compete for audience attention
INACTIVE_STATUSES = {'cancelled', 'canceled', 'archived', 'finished', 'completed', 'rejected'}

# Header aliases seen in exports from the campaign backend
COLUMN_ALIASES = {
    'id': 'campaign_id',
    'film_genre': 'genre',
    'title': 'film_title',
    'premiere_date': 'premiere_start',
}


class CampaignSheetParser:
    """
    Parser for Excel sheets listing campaigns already booked by distributors.

    One row per campaign. Platforms are a comma-separated list. Rows with a
    missing id or an unreadable premiere date are skipped with a warning.
    """

    def __init__(self, file_path: str, sheet_name: Optional[str] = None):
        """
        Initialize the parser with a campaign sheet path.

        Args:
            file_path: Path to the Excel file
            sheet_name: Sheet to read; the first sheet when omitted
        """
        self.file_path = Path(file_path)
        self.sheet_name = sheet_name

        if not self.file_path.exists():
            raise FileNotFoundError(f"Campaign sheet not found: {file_path}")

    def get_sheet_names(self) -> List[str]:
        excel_file = pd.ExcelFile(self.file_path)
        return list(excel_file.sheet_names)

    def read_frame(self) -> pd.DataFrame:
        """
        Read the sheet into a DataFrame with normalized column names.

        Raises:
            ValueError: If the sheet cannot be read or lacks required columns
        """
        try:
            df = pd.read_excel(self.file_path, sheet_name=self.sheet_name or 0)
        except Exception as e:
            logger.error(f"Error reading campaign sheet {self.file_path}: {str(e)}")
            raise ValueError(f"Failed to read campaign sheet {self.file_path.name}: {str(e)}") from e

        df.columns = [self._normalize_column(col) for col in df.columns]

        missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise ValueError(f"Campaign sheet is missing required column(s): {', '.join(missing)}")

        return df

    @staticmethod
    def _normalize_column(column: Any) -> str:
        name = str(column).strip().lower().replace(' ', '_')
        return COLUMN_ALIASES.get(name, name)

    def parse_campaigns(self, include_inactive: bool = False) -> List[ExistingCampaign]:
        """
        Extract campaigns from the sheet.

        Args:
            include_inactive: Keep cancelled or finished campaigns

        Returns:
            List of ExistingCampaign objects in sheet order
        """
        df = self.read_frame()
        campaigns = []
        skipped = 0

        for index, row in df.iterrows():
            campaign = self._parse_row(row)
            if campaign is None:
                skipped += 1
                logger.warning(f"Skipping campaign sheet row {index + 2}: missing id or premiere date")
                continue

            status = self._clean_text(row.get('status', ''))
            if not include_inactive and status.lower() in INACTIVE_STATUSES:
                continue

            campaigns.append(campaign)

        logger.info(f"Parsed {len(campaigns)} campaigns from {self.file_path.name} ({skipped} rows skipped)")
        return campaigns

    def _parse_row(self, row: pd.Series) -> Optional[ExistingCampaign]:
        campaign_id = self._clean_text(row.get('campaign_id'))
        premiere_start = self._parse_date(row.get('premiere_start'))

        if not campaign_id or premiere_start is None:
            return None

        return ExistingCampaign(
            campaign_id=campaign_id,
            film_title=self._clean_text(row.get('film_title')),
            genre=self._clean_text(row.get('genre')),
            premiere_start=premiere_start,
            premiere_end=self._parse_date(row.get('premiere_end')),
            target_audience=self._clean_text(row.get('target_audience')),
            territory=self._clean_text(row.get('territory')),
            platforms=self._split_platforms(row.get('platforms'))
        )

    @staticmethod
    def _clean_text(value: Any) -> str:
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return ''
        if isinstance(value, float) and value.is_integer():
            # Numeric ids come back from Excel as floats
            return str(int(value))
        return str(value).strip()

    @staticmethod
    def _parse_date(value: Any) -> Optional[date]:
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None
        parsed = pd.to_datetime(value, errors='coerce')
        if pd.isna(parsed):
            return None
        return parsed.date()

    @staticmethod
    def _split_platforms(value: Any) -> List[str]:
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return []
        return [name.strip() for name in str(value).split(',') if name.strip()]

    def summarize(self) -> Dict[str, Any]:
        """Counts by genre and territory, for registry status displays."""
        campaigns = self.parse_campaigns(include_inactive=True)
        by_genre: Dict[str, int] = {}
        by_territory: Dict[str, int] = {}

        for campaign in campaigns:
            by_genre[campaign.genre or 'Unknown'] = by_genre.get(campaign.genre or 'Unknown', 0) + 1
            by_territory[campaign.territory or 'Unknown'] = by_territory.get(campaign.territory or 'Unknown', 0) + 1

        return {
            'total_campaigns': len(campaigns),
            'by_genre': by_genre,
            'by_territory': by_territory
        }
