# utils/paging_helpers.py
"""
Cursor paging helpers.

The query layer is asked for more rows than the page needs:
one extra row tells us whether another page exists, and when paging
from a cursor the cursor row itself comes back first and is dropped.
"""

import base64
from typing import Any, Callable, Dict, Optional, Sequence, TypeVar

from core.config import settings
from schemas.paging_models import Edge, PageInfo, PagedResult, PageRequest, PageResult

T = TypeVar("T")


def base64_encode(source: str) -> str:
    return base64.b64encode(source.encode("utf-8")).decode("ascii")


def base64_decode(source: str) -> str:
    return base64.b64decode(source.encode("ascii")).decode("utf-8")


def build_overfetch_size(limit: int, cursor_supplied: bool) -> int:
    return limit + (2 if cursor_supplied else 1)


def get_paged_query(limit: int, after: Optional[str] = None) -> Dict[str, Any]:
    """Query arguments (take/cursor) for a page of `limit` rows after the row with id `after`."""
    query: Dict[str, Any] = {"take": build_overfetch_size(limit, after is not None)}
    if after is not None:
        query["cursor"] = {"id": after}
    return query


def slice_paged_results(rows: Sequence[T], limit: int, is_using_cursor: bool) -> PageResult[T]:
    """
    Slice over-fetched rows into a page.

    Args:
        rows: rows returned for a query built with `get_paged_query`
        limit: requested page size
        is_using_cursor: whether the query started from a cursor

    Returns:
        PageResult with at most `limit` rows
    """
    rows = list(rows)

    if is_using_cursor:
        if len(rows) >= limit + 2:
            return PageResult(data=rows[1:limit + 1], has_more_rows=True)
        elif len(rows) > 1:
            return PageResult(data=rows[1:], has_more_rows=False)
        else:
            return PageResult(data=[], has_more_rows=False)

    if len(rows) >= limit + 1:
        return PageResult(data=rows[:limit], has_more_rows=True)
    return PageResult(data=rows, has_more_rows=False)


def resolve_page_limit(limit: Optional[int]) -> int:
    """Requested page size, defaulted and capped by the paging settings."""
    if limit is None:
        return settings.DEFAULT_PAGE_LIMIT
    return min(limit, settings.MAX_PAGE_LIMIT)


def query_for_page(request: PageRequest) -> Dict[str, Any]:
    return get_paged_query(resolve_page_limit(request.limit), request.after)


def slice_page(rows: Sequence[T], request: PageRequest) -> PageResult[T]:
    """Slice rows fetched with `query_for_page(request)`."""
    return slice_paged_results(rows, resolve_page_limit(request.limit), request.after is not None)


def to_paged_result(page: PageResult[T], cursor_of: Callable[[T], str]) -> PagedResult[T]:
    """Convert a sliced page into edges/pageInfo with base64 cursors."""
    edges = [Edge(cursor=base64_encode(cursor_of(node)), node=node) for node in page.data]
    return PagedResult(
        edges=edges,
        page_info=PageInfo(
            has_next_page=page.has_more_rows,
            start_cursor=edges[0].cursor if edges else None,
            end_cursor=edges[-1].cursor if edges else None,
        ),
    )
