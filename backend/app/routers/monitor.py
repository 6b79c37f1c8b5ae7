from fastapi import APIRouter

from app.config import settings
from app.models.common import Monitor

router = APIRouter(tags=["monitor"])


@router.get("/", response_model=Monitor)
def health_check():
    return Monitor(name=settings.APP_NAME, version=settings.APP_VERSION)
