from typing import Any

from pydantic import BaseModel


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


def envelope(data: Any) -> dict:
    """Success envelope shared by every JSON action handler."""
    return {"success": True, "data": data}


def paginate(page: int, limit: int, total: int) -> Pagination:
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=(total + limit - 1) // limit if limit else 0,
    )
