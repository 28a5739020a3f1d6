"""Core session, protocol selection and concurrency-safe mutation."""

from tscompat.core.analytics import ANALYTICS_RULES, AnalyticsRuleService
from tscompat.core.engine import CompatEngine
from tscompat.core.locks import MutexRegistry
from tscompat.core.mutator import SharedSetMutator, deadline
from tscompat.core.overrides import OverrideService
from tscompat.core.protocol import ProtocolChoice, ProtocolFamily, WireProtocol, select_protocol
from tscompat.core.resources import GatedResource, PresetService, StopwordsService
from tscompat.core.synonyms import SynonymService

__all__ = [
    "ANALYTICS_RULES",
    "AnalyticsRuleService",
    "CompatEngine",
    "GatedResource",
    "MutexRegistry",
    "OverrideService",
    "PresetService",
    "ProtocolChoice",
    "ProtocolFamily",
    "SharedSetMutator",
    "StopwordsService",
    "SynonymService",
    "WireProtocol",
    "deadline",
    "select_protocol",
]
