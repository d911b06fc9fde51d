"""Pagination contract shared by every list endpoint.

Query parameters:
    - page: 1-based page number (default: 1, clamped to 1..MAX_PAGE)
    - limit: items per page (default: 20, clamped to 1..100)

Response shape:
    {
        "data": [...],
        "pagination": {"total": 150, "page": 2, "limit": 20, "pages": 8},
        "_links": {"self": "...?page=2", "next": "...?page=3", "prev": "...?page=1"}
    }
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100
# Keeps skip = (page - 1) * limit inside a BSON int64
MAX_PAGE = (2**63 - 1) // MAX_LIMIT


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _to_int(raw: Any, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    text = str(raw).strip()
    if not text:
        return default
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return default


def parse_page_params(query: Mapping[str, Any]) -> PageParams:
    """Translate raw query parameters into bounded page parameters.

    Total and idempotent: out-of-range values clamp, garbage falls back to
    the defaults, and feeding the result back in yields the same values.
    """
    page = min(MAX_PAGE, max(1, _to_int(query.get("page"), DEFAULT_PAGE)))
    limit = min(MAX_LIMIT, max(1, _to_int(query.get("limit"), DEFAULT_LIMIT)))
    return PageParams(page=page, limit=limit)


def build_pagination(total: int, params: PageParams) -> dict:
    return {
        "total": total,
        "page": params.page,
        "limit": params.limit,
        "pages": math.ceil(total / params.limit) if total else 0,
    }


def build_links(base_url: str, query: Mapping[str, Any], params: PageParams, pages: int) -> dict:
    """Build self/next/prev links that preserve the caller's other filters."""
    def _link(page: int) -> str:
        args = {key: value for key, value in query.items() if key not in {"page", "limit"} and value not in (None, "")}
        args["page"] = page
        args["limit"] = params.limit
        return f"{base_url}?{urlencode(args)}"

    links: dict[str, Optional[str]] = {"self": _link(params.page)}
    if params.page < pages:
        links["next"] = _link(params.page + 1)
    if params.page > 1:
        links["prev"] = _link(min(params.page - 1, max(pages, 1)))
    return links
