from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator

from app.models.appinfo import Category
from app.models.common import Image, PaginationReq, SortReq


class Product(BaseModel):
    id: str = ""
    title: str = ""
    description: str = ""
    category: Optional[Category] = None
    price: float = 0
    images: List[Image] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("images", mode="before")
    @classmethod
    def _images_never_null(cls, v):
        return v or []


class ProductFilter(PaginationReq, SortReq):
    id: str = ""
    # Matches title and description.
    search: str = ""


class ProductReq(BaseModel):
    """Body for insert and sparse update.

    On update, empty strings, a zero price, a missing/zero category id and an
    empty image list all mean "leave unchanged".
    """

    title: str = ""
    description: str = ""
    price: float = 0
    category: Optional[Category] = None
    images: List[Image] = []
