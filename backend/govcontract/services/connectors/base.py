from abc import ABC, abstractmethod
from typing import Any


class ConnectorResult(dict):
    """Light wrapper: {"opportunities": [...], "total": int}."""


class BaseConnector(ABC):
    name: str

    @abstractmethod
    async def fetch(self, **kwargs: Any) -> ConnectorResult:
        ...


def to_float(value: Any) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(str(value).replace(",", "").replace("$", ""))
    except (TypeError, ValueError):
        return None


def normalized_opportunity(
    *,
    source: str,
    external_id: str,
    title: str,
    agency: str | None = None,
    description: str | None = None,
    solicitation_number: str | None = None,
    type: str = "contract",
    naics_codes: list[str] | None = None,
    set_aside: str | None = None,
    posted_date: str | None = None,
    deadline: str | None = None,
    award_floor: float | None = None,
    award_ceiling: float | None = None,
    url: str | None = None,
    raw: dict | None = None,
) -> dict:
    """Common record shape shared by every government data connector."""
    return {
        "source": source,
        "external_id": str(external_id),
        "title": title,
        "agency": agency,
        "description": description,
        "solicitation_number": solicitation_number,
        "type": type,
        "naics_codes": naics_codes or [],
        "set_aside": set_aside,
        "jurisdiction": "federal",
        "posted_date": posted_date,
        "deadline": deadline,
        "award_floor": award_floor,
        "award_ceiling": award_ceiling,
        "url": url,
        "raw": raw,
    }
