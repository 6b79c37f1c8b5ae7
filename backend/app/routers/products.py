from enum import Enum

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.common import PaginateRes
from app.models.product import Product, ProductFilter, ProductReq
from app.models.user import UserClaims, UserRole
from app.repositories.products_repository import ProductsRepository
from app.routers.files import get_file_service
from app.services.file_service import FileService
from app.services.middlewares import api_key_auth, authorize
from app.services.product_service import ProductService
from app.utils.errors import api_errors

router = APIRouter(prefix="/v1/products", tags=["products"])


class ProductsCode(Enum):
    FIND_ONE = "products-001"
    FIND = "products-002"
    INSERT = "products-003"
    UPDATE = "products-004"
    DELETE = "products-005"


def get_product_service(db: Session = Depends(get_db), files: FileService = Depends(get_file_service)) -> ProductService:
    return ProductService(ProductsRepository(db, files), files)


@router.get("", response_model=PaginateRes, dependencies=[Depends(api_key_auth)])
def find_product(
    page: int = 1,
    limit: int = 5,
    order_by: str = "",
    sort_by: str = "",
    id: str = "",
    search: str = "",
    service: ProductService = Depends(get_product_service),
):
    with api_errors(ProductsCode.FIND):
        req = ProductFilter(page=page, limit=limit, order_by=order_by, sort_by=sort_by, id=id, search=search)
        return service.find_product(req)


@router.get("/{product_id}", response_model=Product, dependencies=[Depends(api_key_auth)])
def find_one_product(product_id: str, service: ProductService = Depends(get_product_service)):
    with api_errors(ProductsCode.FIND_ONE):
        return service.find_one_product(product_id)


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
def insert_product(
    req: ProductReq,
    _: UserClaims = Depends(authorize(UserRole.ADMIN)),
    service: ProductService = Depends(get_product_service),
):
    with api_errors(ProductsCode.INSERT):
        return service.insert_product(req)


@router.patch("/{product_id}", response_model=Product)
def update_product(
    product_id: str,
    req: ProductReq,
    _: UserClaims = Depends(authorize(UserRole.ADMIN)),
    service: ProductService = Depends(get_product_service),
):
    with api_errors(ProductsCode.UPDATE):
        return service.update_product(product_id, req)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: str,
    _: UserClaims = Depends(authorize(UserRole.ADMIN)),
    service: ProductService = Depends(get_product_service),
):
    with api_errors(ProductsCode.DELETE):
        service.delete_product(product_id)
