from pydantic import BaseModel
from typing import Optional


class Category(BaseModel):
    id: int = 0
    title: str = ""


class CategoryFilter(BaseModel):
    title: Optional[str] = None


class ApiKeyResponse(BaseModel):
    api_key: str
