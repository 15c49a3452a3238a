# backend/govcontract/services/connectors/usaspending.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional
import logging

import httpx
from tenacity import retry, wait_exponential, stop_after_attempt, retry_if_exception_type

from .base import BaseConnector, ConnectorResult, normalized_opportunity, to_float
from ..caching import RedisCache

logger = logging.getLogger(__name__)

# Definitive contracts, purchase orders, delivery orders, BPA calls
CONTRACT_AWARD_TYPE_CODES = ["A", "B", "C", "D"]

AWARD_FIELDS = [
    "Award ID",
    "Recipient Name",
    "Awarding Agency",
    "Awarding Sub Agency",
    "Award Amount",
    "Description",
    "Start Date",
    "End Date",
    "NAICS",
    "generated_internal_id",
]


def _naics_codes(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, dict):
        code = value.get("code")
        return [str(code)] if code else []
    return [str(value)]


def normalize_award(row: Dict[str, Any]) -> dict:
    internal_id = row.get("generated_internal_id")
    award_id = row.get("Award ID") or internal_id or ""
    amount = to_float(row.get("Award Amount"))
    return normalized_opportunity(
        source="usaspending.gov",
        external_id=internal_id or award_id,
        title=(row.get("Description") or "").strip() or "Federal Contract Award",
        agency=row.get("Awarding Agency"),
        description=row.get("Description"),
        solicitation_number=award_id or None,
        type="award",
        naics_codes=_naics_codes(row.get("NAICS")),
        posted_date=row.get("Start Date"),
        deadline=row.get("End Date"),
        award_floor=amount,
        award_ceiling=amount,
        url=f"https://www.usaspending.gov/award/{internal_id}" if internal_id else None,
        raw=row,
    )


class USASpendingConnector(BaseConnector):
    """Historical federal contract awards (competitive intelligence)."""

    name = "usaspending"

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

    def build_request(self, keyword: str | None, limit: int, today: date | None = None) -> Dict[str, Any]:
        today = today or date.today()
        filters: Dict[str, Any] = {
            "award_type_codes": CONTRACT_AWARD_TYPE_CODES,
            "time_period": [
                {
                    "start_date": (today - timedelta(days=365)).isoformat(),
                    "end_date": today.isoformat(),
                }
            ],
        }
        # The API rejects keywords shorter than three characters
        if keyword and len(keyword.strip()) >= 3:
            filters["keywords"] = [keyword.strip()]
        return {
            "filters": filters,
            "fields": AWARD_FIELDS,
            "page": 1,
            "limit": max(1, min(limit, 100)),
            "sort": "Award Amount",
            "order": "desc",
        }

    @retry(
        wait=wait_exponential(multiplier=1, min=1, max=10),
        stop=stop_after_attempt(3),
        retry=retry_if_exception_type(httpx.HTTPError),
    )
    async def fetch(self, keyword: str | None = None, limit: int | None = None, **_: Any) -> ConnectorResult:
        body = self.build_request(keyword, limit or self.max_results)

        cache_key = f"usaspending:{keyword or ''}:{body['limit']}"
        if self.cache:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return ConnectorResult(cached)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                f"{self.base_url}/search/spending_by_award/",
                json=body,
                headers={"User-Agent": "GovContractAI/1.0"},
            )
            if 400 <= resp.status_code < 500:
                logger.warning(
                    "USAspending rejected search (status %s)",
                    resp.status_code,
                    extra={"connector": self.name, "status_code": resp.status_code},
                )
                return ConnectorResult({"opportunities": [], "total": 0})
            resp.raise_for_status()
            data = resp.json()

        rows = data.get("results") or []
        result = {
            "opportunities": [normalize_award(r) for r in rows],
            "total": (data.get("page_metadata") or {}).get("total", len(rows)),
        }
        if self.cache:
            await self.cache.set(cache_key, result, ttl=self.cache_ttl)
        return ConnectorResult(result)
