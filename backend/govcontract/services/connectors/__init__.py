from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, List, Optional
import logging

from .base import BaseConnector, ConnectorResult
from .usaspending import USASpendingConnector
from .grants_gov import GrantsGovConnector
from .sam_gov import SAMGovConnector
from ..caching import RedisCache

logger = logging.getLogger(__name__)


class ConnectorRunner:
    """
    Registry + executor for the government data connectors.

    - Runs the selected connectors concurrently via asyncio.
    - Returns {"opportunities": [...], "sources": {name: total}, "errors": [...]}.
    - A failing connector contributes an error entry; it never raises.
    """

    def __init__(self, connectors: Dict[str, BaseConnector]) -> None:
        self._connectors = dict(connectors)

    @property
    def names(self) -> List[str]:
        return list(self._connectors)

    def _get_connector(self, name: str) -> BaseConnector | None:
        return self._connectors.get(name)

    async def search(
        self,
        keyword: str | None = None,
        limit: int = 25,
        sources: Optional[Iterable[str]] = None,
    ) -> Dict[str, Any]:
        selected = list(sources) if sources else self.names

        async def _run(name: str, conn: BaseConnector) -> ConnectorResult:
            res = await conn.fetch(keyword=keyword, limit=limit)
            logger.info(
                "Connector '%s' completed search",
                conn.name,
                extra={"connector": conn.name, "step": "search"},
            )
            return res

        names: List[str] = []
        tasks = []
        errors: List[Dict[str, str]] = []
        for name in selected:
            connector = self._get_connector(name)
            if not connector:
                logger.warning(
                    "No connector registered for '%s'; skipping",
                    name,
                    extra={"connector": name},
                )
                errors.append({"source": name, "error": "Unknown source"})
                continue
            names.append(name)
            tasks.append(_run(name, connector))

        results = await asyncio.gather(*tasks, return_exceptions=True)

        opportunities: List[dict] = []
        totals: Dict[str, int] = {}
        for name, res in zip(names, results):
            if isinstance(res, BaseException):
                logger.error(
                    "Connector '%s' failed: %s",
                    name,
                    res,
                    exc_info=res,
                    extra={"connector": name, "step": "search"},
                )
                errors.append({"source": name, "error": "Source unavailable"})
                continue
            if not res:
                # Connector not configured (e.g. missing API key)
                continue
            found = res.get("opportunities") or []
            opportunities.extend(found)
            totals[name] = int(res.get("total") or len(found))

        return {"opportunities": opportunities, "sources": totals, "errors": errors}


def build_connectors(settings, cache: RedisCache | None = None) -> ConnectorRunner:
    ttl = settings.GOV_CACHE_TTL_SECONDS
    max_results = settings.GOV_SEARCH_MAX_RESULTS
    return ConnectorRunner(
        {
            "usaspending": USASpendingConnector(
                settings.USASPENDING_BASE_URL,
                timeout=settings.USASPENDING_TIMEOUT_SECONDS,
                max_results=max_results,
                cache=cache,
                cache_ttl=ttl,
            ),
            "grants_gov": GrantsGovConnector(
                settings.GRANTS_GOV_BASE_URL,
                timeout=settings.GRANTS_GOV_TIMEOUT_SECONDS,
                max_results=max_results,
                cache=cache,
                cache_ttl=ttl,
            ),
            "sam_gov": SAMGovConnector(
                settings.SAM_BASE_URL,
                settings.SAM_API_KEY,
                timeout=settings.SAM_TIMEOUT_SECONDS,
                max_results=max_results,
                cache=cache,
                cache_ttl=ttl,
            ),
        }
    )
