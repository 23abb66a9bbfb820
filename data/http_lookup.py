"""
HTTP campaign lookup against the campaign backend's conflict RPC.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx
import pandas as pd

from business_logic.conflict_detector import CampaignLookupError
from models.data_models import ExistingCampaign

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

RPC_PATH = "/rest/v1/rpc/get_active_campaigns_for_conflicts"

# Sent when there is no campaign to exclude; matches no real campaign
NIL_CAMPAIGN_ID = "00000000-0000-0000-0000-000000000000"


class HttpCampaignLookup:
    """Fetches active campaigns from the backend for conflict checks."""

    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the lookup.

        Args:
            base_url: Backend root URL
            api_key: Key sent as both apikey and bearer token
            timeout: Request timeout in seconds
            transport: Custom transport, e.g. httpx.MockTransport in tests
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def find_active_campaigns(self, start: date, end: date,
                                    exclude_campaign_id: Optional[str] = None) -> List[ExistingCampaign]:
        """
        Call the conflict RPC for campaigns active between start and end.

        Raises:
            CampaignLookupError: On transport failure, non-2xx status or a malformed body
        """
        payload = {
            "check_start_date": start.isoformat(),
            "check_end_date": end.isoformat(),
            "exclude_campaign_id": exclude_campaign_id or NIL_CAMPAIGN_ID,
        }
        body = await self._post_json(url=f"{self.base_url}{RPC_PATH}", payload=payload)

        campaigns = []
        for row in body:
            campaign = self._parse_row(row)
            if campaign is not None:
                campaigns.append(campaign)

        logger.debug(f"Conflict RPC returned {len(campaigns)} campaigns")
        return campaigns

    async def _post_json(self, *, url: str, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=self._headers())
        except httpx.TransportError as exc:
            raise CampaignLookupError(f"Network error while calling the campaign backend: {exc}") from exc

        if response.status_code >= 400:
            raise CampaignLookupError(
                f"Campaign lookup failed ({response.status_code}): {response.text}",
                status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise CampaignLookupError("Campaign lookup returned invalid JSON") from exc

        if body is None:
            return []
        if not isinstance(body, list):
            raise CampaignLookupError("Campaign lookup response must be a JSON array")
        return body

    @staticmethod
    def _parse_row(row: Any) -> Optional[ExistingCampaign]:
        if not isinstance(row, dict):
            return None

        campaign_id = row.get("campaign_id") or row.get("id")
        premiere_start = _parse_date(row.get("premiere_start"))
        if not campaign_id or premiere_start is None:
            logger.warning(f"Ignoring campaign without id or premiere date: {row!r}")
            return None

        platforms = row.get("platforms") or []
        if isinstance(platforms, str):
            platforms = [name.strip() for name in platforms.split(",") if name.strip()]

        return ExistingCampaign(
            campaign_id=str(campaign_id),
            film_title=row.get("film_title") or "",
            genre=row.get("film_genre") or row.get("genre") or "",
            premiere_start=premiere_start,
            premiere_end=_parse_date(row.get("premiere_end")),
            target_audience=row.get("target_audience") or "",
            territory=row.get("territory") or "",
            platforms=[str(name) for name in platforms]
        )


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()
