# app/schemas/paging_models.py
from pydantic import BaseModel, Field
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class PageRequest(BaseModel):
    limit: Optional[int] = Field(default=None, gt=0, description="Rows per page; DEFAULT_PAGE_LIMIT when omitted")
    after: Optional[str] = Field(default=None, description="Id of the last row of the previous page")


class PageResult(BaseModel, Generic[T]):
    """At most `limit` rows plus whether strictly more matching rows exist."""
    data: List[T] = Field(default_factory=list)
    has_more_rows: bool = False


class Edge(BaseModel, Generic[T]):
    cursor: str
    node: T


class PageInfo(BaseModel):
    has_next_page: bool = False
    start_cursor: Optional[str] = None
    end_cursor: Optional[str] = None


class PagedResult(BaseModel, Generic[T]):
    """Connection shape handed to API resolvers"""
    edges: List[Edge[T]] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo)
