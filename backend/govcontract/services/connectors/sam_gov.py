# backend/govcontract/services/connectors/sam_gov.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, Optional
import logging

import httpx
from tenacity import retry, wait_exponential, stop_after_attempt, retry_if_exception_type

from .base import BaseConnector, ConnectorResult, normalized_opportunity, to_float
from ..caching import RedisCache

logger = logging.getLogger(__name__)

# SAM.gov caps the posted date window at one year
POSTED_WINDOW_DAYS = 90


def normalize_notice(notice: Dict[str, Any]) -> dict:
    naics = notice.get("naicsCode")
    award = notice.get("award") or {}
    amount = to_float(award.get("amount"))
    return normalized_opportunity(
        source="sam.gov",
        external_id=notice.get("noticeId") or "",
        title=notice.get("title") or "Federal Contract Opportunity",
        agency=notice.get("fullParentPathName") or notice.get("departmentName"),
        # SAM returns a link to the description, not the text itself
        description=None,
        solicitation_number=notice.get("solicitationNumber"),
        type="opportunity",
        naics_codes=[str(naics)] if naics else [],
        set_aside=notice.get("typeOfSetAsideDescription") or notice.get("typeOfSetAside"),
        posted_date=notice.get("postedDate"),
        deadline=notice.get("responseDeadLine"),
        award_floor=amount,
        award_ceiling=amount,
        url=notice.get("uiLink"),
        raw=notice,
    )


class SAMGovConnector(BaseConnector):
    name = "sam_gov"

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        timeout: int = 30,
        max_results: int = 25,
        cache: Optional[RedisCache] = None,
        cache_ttl: int = 3600,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.max_results = max_results
        self.cache = cache
        self.cache_ttl = cache_ttl

    def build_params(self, keyword: str | None, limit: int, today: date | None = None) -> Dict[str, Any]:
        today = today or date.today()
        params: Dict[str, Any] = {
            "api_key": self.api_key,
            "postedFrom": (today - timedelta(days=POSTED_WINDOW_DAYS)).strftime("%m/%d/%Y"),
            "postedTo": today.strftime("%m/%d/%Y"),
            "ptype": "o,k,p",  # solicitations, combined synopsis, presolicitations
            "limit": max(1, min(limit, 1000)),
            "offset": 0,
        }
        if keyword:
            params["title"] = keyword.strip()
        return params

    @retry(
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(httpx.HTTPError),
    )
    async def fetch(self, keyword: str | None = None, limit: int | None = None, **_: Any) -> ConnectorResult:
        if not self.api_key:
            return ConnectorResult({})

        params = self.build_params(keyword, limit or self.max_results)

        cache_key = f"sam_gov:{keyword or ''}:{params['limit']}:{params['postedTo']}"
        if self.cache:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return ConnectorResult(cached)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.get(f"{self.base_url}/search", params=params)
            if 400 <= resp.status_code < 500:
                logger.warning(
                    "SAM.gov rejected search (status %s)",
                    resp.status_code,
                    extra={"connector": self.name, "status_code": resp.status_code},
                )
                return ConnectorResult({"opportunities": [], "total": 0})
            resp.raise_for_status()
            data = resp.json()

        notices = data.get("opportunitiesData") or []
        result = {
            "opportunities": [normalize_notice(n) for n in notices],
            "total": data.get("totalRecords", len(notices)),
        }
        if self.cache:
            await self.cache.set(cache_key, result, ttl=self.cache_ttl)
        return ConnectorResult(result)
