import math
from pydantic import BaseModel, field_validator
from typing import Any, Optional

MIN_PAGE = 1
MIN_LIMIT = 5


class Image(BaseModel):
    id: Optional[str] = None
    filename: str
    url: str


class PaginationReq(BaseModel):
    """Page/limit pair; both are clamped to their minimums on construction."""

    page: int = MIN_PAGE
    limit: int = MIN_LIMIT

    @field_validator("page", mode="before")
    @classmethod
    def _clamp_page(cls, v: Any) -> int:
        v = int(v) if v is not None else MIN_PAGE
        return max(v, MIN_PAGE)

    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, v: Any) -> int:
        v = int(v) if v is not None else MIN_LIMIT
        return max(v, MIN_LIMIT)


class SortReq(BaseModel):
    order_by: str = ""
    sort_by: str = ""


class PaginateRes(BaseModel):
    data: Any
    page: int
    limit: int
    total_page: int
    total_item: int

    @classmethod
    def of(cls, data: Any, req: PaginationReq, total_item: int) -> "PaginateRes":
        return cls(
            data=data,
            page=req.page,
            limit=req.limit,
            total_page=math.ceil(total_item / req.limit),
            total_item=total_item,
        )


class ErrorResponse(BaseModel):
    traceId: str
    msg: str


class Monitor(BaseModel):
    name: str
    version: str
