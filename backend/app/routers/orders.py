import re
from datetime import date
from enum import Enum

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.common import PaginateRes
from app.models.order import Order, OrderFilter, OrderReq, OrderUpdateReq
from app.models.user import UserClaims, UserRole
from app.repositories.orders_repository import OrdersRepository
from app.repositories.products_repository import ProductsRepository
from app.routers.files import get_file_service
from app.services.file_service import FileService
from app.services.middlewares import authorize, params_check
from app.services.order_service import OrderService
from app.utils.errors import AppError, ErrorKind, api_errors

router = APIRouter(prefix="/v1/orders", tags=["orders"])

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


class OrdersCode(Enum):
    FIND_ONE = "orders-001"
    FIND = "orders-002"
    INSERT = "orders-003"
    UPDATE = "orders-004"


def get_order_service(db: Session = Depends(get_db), files: FileService = Depends(get_file_service)) -> OrderService:
    return OrderService(OrdersRepository(db), ProductsRepository(db, files))


def check_date(name: str, value: str) -> None:
    if not value:
        return
    message = f"{name} must be in YYYY-MM-DD format"
    if not DATE_PATTERN.fullmatch(value):
        raise AppError(ErrorKind.VALIDATION, message)
    try:
        date.fromisoformat(value)
    except ValueError:
        raise AppError(ErrorKind.VALIDATION, message)


@router.get("", response_model=PaginateRes)
def find_order(
    page: int = 1,
    limit: int = 5,
    order_by: str = "",
    sort_by: str = "",
    search: str = "",
    status: str = "",
    start_date: str = "",
    end_date: str = "",
    _: UserClaims = Depends(authorize(UserRole.ADMIN)),
    service: OrderService = Depends(get_order_service),
):
    with api_errors(OrdersCode.FIND):
        check_date("start_date", start_date)
        check_date("end_date", end_date)
        req = OrderFilter(
            page=page,
            limit=limit,
            order_by=order_by,
            sort_by=sort_by,
            search=search,
            status=status,
            start_date=start_date,
            end_date=end_date,
        )
        return service.find_order(req)


@router.get("/{user_id}/{order_id}", response_model=Order)
def find_one_order(
    user_id: str,
    order_id: str,
    claims: UserClaims = Depends(params_check),
    service: OrderService = Depends(get_order_service),
):
    with api_errors(OrdersCode.FIND_ONE):
        return service.find_one_order(order_id, claims)


@router.post("/{user_id}", response_model=Order, status_code=status.HTTP_201_CREATED)
def insert_order(
    user_id: str,
    req: OrderReq,
    claims: UserClaims = Depends(params_check),
    service: OrderService = Depends(get_order_service),
):
    with api_errors(OrdersCode.INSERT):
        req.user_id = req.user_id or user_id
        return service.insert_order(req, claims)


@router.patch("/{user_id}/{order_id}", response_model=Order)
def update_order(
    user_id: str,
    order_id: str,
    req: OrderUpdateReq,
    claims: UserClaims = Depends(params_check),
    service: OrderService = Depends(get_order_service),
):
    with api_errors(OrdersCode.UPDATE):
        return service.update_order(order_id, req, claims)
