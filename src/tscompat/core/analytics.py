"""Analytics rules — one endpoint, two request body shapes.

``/analytics/rules/{name}`` exists from v28, but v30 changed the body from
nested ``params.source`` / ``params.destination`` blocks to a top-level
``collection`` with flat params. The shape is picked per call from the
session's ``FeatureChecker``, the same way the synonym and override
protocols are: flat on v30+, nested below, nested (assumed) when the version
is unknown. Responses in either shape decode into the flat ``AnalyticsRule``.
"""

from __future__ import annotations

import logging

from tscompat.core.protocol import ProtocolChoice, ProtocolFamily, WireProtocol, select_protocol
from tscompat.core.resources import GatedResource
from tscompat.models.analytics import AnalyticsRule
from tscompat.versioning.features import Feature

logger = logging.getLogger(__name__)

ANALYTICS_RULES = ProtocolFamily(
    name="analytics rule",
    modern=Feature.FLAT_ANALYTICS_RULES,
    legacy=Feature.ANALYTICS_RULES,
    unsupported_detail="analytics rules need Typesense v28.0 or later",
)


class AnalyticsRuleService(GatedResource):
    """Analytics rules (v28+)."""

    feature = Feature.ANALYTICS_RULES
    resource = "typesense_analytics_rule"

    def body_format(self) -> ProtocolChoice:
        return select_protocol(self._checker, ANALYTICS_RULES)

    async def upsert(self, rule: AnalyticsRule, *, timeout: float | None = None) -> AnalyticsRule:
        """Create or replace ``rule`` using the body shape the server expects."""
        timeout = self._preflight(timeout)
        choice = self.body_format()
        logger.debug("upsert analytics rule %s with %s body", rule.name, choice.protocol.value)
        body = rule.modern_body() if choice.protocol is WireProtocol.MODERN else rule.legacy_body()
        return await self._client.upsert_analytics_rule(rule.name, body, timeout=timeout)

    async def get(self, name: str, *, timeout: float | None = None) -> AnalyticsRule | None:
        timeout = self._preflight(timeout)
        return await self._client.get_analytics_rule(name, timeout=timeout)

    async def delete(self, name: str, *, timeout: float | None = None) -> None:
        timeout = self._preflight(timeout)
        await self._client.delete_analytics_rule(name, timeout=timeout)

    async def list(self, *, timeout: float | None = None) -> list[AnalyticsRule]:
        timeout = self._preflight(timeout)
        return await self._client.list_analytics_rules(timeout=timeout)
