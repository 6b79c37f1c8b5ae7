from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, field_validator

from app.models.common import PaginationReq, SortReq
from app.models.product import Product


class OrderStatus(str, Enum):
    WAITING = "waiting"
    SHIPPING = "shipping"
    COMPLETED = "completed"
    CANCELED = "canceled"


class TransferSlip(BaseModel):
    id: str = ""
    filename: str = ""
    url: str = ""
    created_at: str = ""


class ProductsOrder(BaseModel):
    id: Optional[str] = None
    qty: int
    # Snapshot of the product taken when the order was placed.
    product: Optional[Product] = None


class Order(BaseModel):
    id: str = ""
    user_id: str = ""
    transfer_slip: Optional[TransferSlip] = None
    products: List[ProductsOrder] = []
    address: str = ""
    contact: str = ""
    status: str = ""
    total_paid: float = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("products", mode="before")
    @classmethod
    def _products_never_null(cls, v):
        return v or []


class OrderReq(BaseModel):
    # Honoured only for admin callers; customers always order for themselves.
    user_id: Optional[str] = None
    products: List[ProductsOrder] = []
    address: str = ""
    contact: str = ""
    transfer_slip: Optional[TransferSlip] = None
    # Accepted for compatibility and ignored: the total is computed server side.
    total_paid: Optional[float] = None


class OrderUpdateReq(BaseModel):
    status: Optional[str] = None
    transfer_slip: Optional[TransferSlip] = None


class OrderFilter(PaginationReq, SortReq):
    # Matches transfer slip, address and contact.
    search: str = ""
    status: str = ""
    # YYYY-MM-DD, validated by the router.
    start_date: str = ""
    end_date: str = ""
