"""Data models shared by the client, the protocol adapters and the CLI."""

from tscompat.models.analytics import AnalyticsRule
from tscompat.models.curation import CurationSet, Override, OverrideExclude, OverrideInclude, OverrideRule
from tscompat.models.item import SetItem
from tscompat.models.resources import Preset, StopwordsSet
from tscompat.models.server import ServerInfo
from tscompat.models.synonym import Synonym, SynonymSet

__all__ = [
    "AnalyticsRule",
    "CurationSet",
    "Override",
    "OverrideExclude",
    "OverrideInclude",
    "OverrideRule",
    "Preset",
    "ServerInfo",
    "SetItem",
    "StopwordsSet",
    "Synonym",
    "SynonymSet",
]
