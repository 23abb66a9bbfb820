"""
Tests for the HTTP campaign lookup using httpx.MockTransport.
"""

import json
import pytest
from datetime import date

import httpx

from business_logic.conflict_detector import CampaignLookupError, ConflictDetector
from business_logic.error_handler import ErrorCategory, error_handler
from data.http_lookup import NIL_CAMPAIGN_ID, RPC_PATH, HttpCampaignLookup
from models.data_models import ConflictCriteria, ConflictLevel


def make_lookup(handler) -> HttpCampaignLookup:
    return HttpCampaignLookup(
        "https://backend.example.com/",
        api_key="test-key",
        transport=httpx.MockTransport(handler)
    )


class TestHttpCampaignLookup:
    """Requests sent to and responses read from the conflict RPC."""

    @pytest.mark.asyncio
    async def test_request_shape_and_parsing(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen['path'] = request.url.path
            seen['body'] = json.loads(request.content)
            seen['apikey'] = request.headers.get('apikey')
            return httpx.Response(200, json=[
                {
                    'campaign_id': 'c-1',
                    'film_title': 'Night Train',
                    'film_genre': 'Thriller',
                    'premiere_start': '2024-05-17T00:00:00+00:00',
                    'premiere_end': '2024-05-19',
                    'target_audience': 'urban young adults',
                    'territory': 'Spain',
                },
                {'campaign_id': 'c-2', 'film_title': 'No date'},
            ])

        campaigns = await make_lookup(handler).find_active_campaigns(date(2024, 5, 3), date(2024, 6, 2))

        assert seen['path'] == RPC_PATH
        assert seen['body'] == {
            'check_start_date': '2024-05-03',
            'check_end_date': '2024-06-02',
            'exclude_campaign_id': NIL_CAMPAIGN_ID,
        }
        assert seen['apikey'] == 'test-key'

        assert len(campaigns) == 1
        campaign = campaigns[0]
        assert campaign.genre == 'Thriller'
        assert campaign.premiere_start == date(2024, 5, 17)
        assert campaign.premiere_end == date(2024, 5, 19)
        assert campaign.platforms == []

    @pytest.mark.asyncio
    async def test_exclude_id_is_forwarded(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen['body'] = json.loads(request.content)
            return httpx.Response(200, json=[])

        await make_lookup(handler).find_active_campaigns(date(2024, 5, 3), date(2024, 6, 2), 'abc')

        assert seen['body']['exclude_campaign_id'] == 'abc'

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        lookup = make_lookup(lambda request: httpx.Response(500, text="internal"))

        with pytest.raises(CampaignLookupError) as exc_info:
            await lookup.find_active_campaigns(date(2024, 5, 3), date(2024, 6, 2))

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_non_list_body_raises(self):
        lookup = make_lookup(lambda request: httpx.Response(200, json={'message': 'nope'}))

        with pytest.raises(CampaignLookupError):
            await lookup.find_active_campaigns(date(2024, 5, 3), date(2024, 6, 2))

    @pytest.mark.asyncio
    async def test_transport_failure_is_a_network_error_and_degrades(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        detector = ConflictDetector(make_lookup(handler), debounce_seconds=0)
        criteria = ConflictCriteria(
            genre="Thriller",
            target_audience="",
            territory="Spain",
            premiere_start=date(2024, 5, 17),
            premiere_end=date(2024, 5, 19)
        )

        report = await detector.check(criteria)

        assert report.level == ConflictLevel.NONE
        assert error_handler.error_history[-1].category == ErrorCategory.NETWORK_ERROR
