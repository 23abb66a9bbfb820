# Data layer for the campaign configuration engine

from .parsers import CampaignSheetParser
from .manager import CampaignRegistry
from .http_lookup import HttpCampaignLookup

__all__ = ['CampaignSheetParser', 'CampaignRegistry', 'HttpCampaignLookup']
