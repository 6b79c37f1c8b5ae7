from enum import Enum
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.appinfo import ApiKeyResponse, Category, CategoryFilter
from app.models.user import UserClaims, UserRole
from app.repositories.appinfo_repository import AppinfoRepository
from app.services.appinfo_service import AppinfoService
from app.services.middlewares import api_key_auth, authorize
from app.utils.errors import api_errors

router = APIRouter(prefix="/v1/appinfo", tags=["appinfo"])


class AppinfoCode(Enum):
    GENERATE_API_KEY = "appinfo-001"
    FIND_CATEGORY = "appinfo-002"
    INSERT_CATEGORY = "appinfo-003"
    DELETE_CATEGORY = "appinfo-004"


def get_appinfo_service(db: Session = Depends(get_db)) -> AppinfoService:
    return AppinfoService(AppinfoRepository(db))


@router.get("/apikey", response_model=ApiKeyResponse)
def generate_api_key(
    _: UserClaims = Depends(authorize(UserRole.ADMIN)),
    service: AppinfoService = Depends(get_appinfo_service),
):
    with api_errors(AppinfoCode.GENERATE_API_KEY):
        return service.generate_api_key()


@router.get("/categories", response_model=List[Category], dependencies=[Depends(api_key_auth)])
def find_category(title: Optional[str] = None, service: AppinfoService = Depends(get_appinfo_service)):
    with api_errors(AppinfoCode.FIND_CATEGORY):
        return service.find_category(CategoryFilter(title=title))


@router.post("/categories", response_model=List[Category], status_code=status.HTTP_201_CREATED)
def insert_category(
    req: List[Category],
    _: UserClaims = Depends(authorize(UserRole.ADMIN)),
    service: AppinfoService = Depends(get_appinfo_service),
):
    with api_errors(AppinfoCode.INSERT_CATEGORY):
        return service.insert_category(req)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    _: UserClaims = Depends(authorize(UserRole.ADMIN)),
    service: AppinfoService = Depends(get_appinfo_service),
):
    with api_errors(AppinfoCode.DELETE_CATEGORY):
        service.delete_category(category_id)
