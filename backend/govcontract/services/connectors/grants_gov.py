# backend/govcontract/services/connectors/grants_gov.py
from __future__ import annotations

from typing import Any, Dict, Optional
import logging

import httpx
from tenacity import retry, wait_exponential, stop_after_attempt, retry_if_exception_type

from .base import BaseConnector, ConnectorResult, normalized_opportunity
from ..caching import RedisCache

logger = logging.getLogger(__name__)


def normalize_grant(hit: Dict[str, Any]) -> dict:
    opp_id = str(hit.get("id") or "")
    cfda = hit.get("cfdaList") or []
    return normalized_opportunity(
        source="grants.gov",
        external_id=opp_id,
        title=hit.get("title") or "Federal Grant Opportunity",
        agency=hit.get("agency") or hit.get("agencyName") or hit.get("agencyCode"),
        description=f"CFDA: {', '.join(cfda)}" if cfda else None,
        solicitation_number=hit.get("number"),
        type="grant",
        posted_date=hit.get("openDate"),
        deadline=hit.get("closeDate") or None,
        url=f"https://www.grants.gov/search-results-detail/{opp_id}" if opp_id else None,
        raw=hit,
    )


class GrantsGovConnector(BaseConnector):
    name = "grants_gov"

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        max_results: int = 25,
        cache: Optional[RedisCache] = None,
        cache_ttl: int = 3600,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_results = max_results
        self.cache = cache
        self.cache_ttl = cache_ttl

    @retry(
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(httpx.HTTPError),
    )
    async def fetch(self, keyword: str | None = None, limit: int | None = None, **_: Any) -> ConnectorResult:
        rows = max(1, min(limit or self.max_results, 100))
        body: Dict[str, Any] = {
            "rows": rows,
            "oppStatuses": "forecasted|posted",
        }
        if keyword:
            body["keyword"] = keyword.strip()

        cache_key = f"grants_gov:{keyword or ''}:{rows}"
        if self.cache:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return ConnectorResult(cached)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(f"{self.base_url}/search2", json=body)
            if 400 <= resp.status_code < 500:
                logger.warning(
                    "Grants.gov rejected search (status %s)",
                    resp.status_code,
                    extra={"connector": self.name, "status_code": resp.status_code},
                )
                return ConnectorResult({"opportunities": [], "total": 0})
            resp.raise_for_status()
            payload = resp.json()

        if payload.get("errorcode") not in (None, 0):
            logger.warning(
                "Grants.gov returned error code %s: %s",
                payload.get("errorcode"),
                payload.get("msg"),
                extra={"connector": self.name},
            )
            return ConnectorResult({"opportunities": [], "total": 0})

        data = payload.get("data") or {}
        hits = data.get("oppHits") or []
        result = {
            "opportunities": [normalize_grant(h) for h in hits],
            "total": data.get("hitCount", len(hits)),
        }
        if self.cache:
            await self.cache.set(cache_key, result, ttl=self.cache_ttl)
        return ConnectorResult(result)
