from typing import List

from app.models.appinfo import ApiKeyResponse, Category, CategoryFilter
from app.repositories.appinfo_repository import AppinfoRepository
from app.services.auth import TokenKind, new_auth
from app.utils.errors import AppError, ErrorKind


class AppinfoService:

    def __init__(self, repo: AppinfoRepository):
        self.repo = repo

    def generate_api_key(self) -> ApiKeyResponse:
        return ApiKeyResponse(api_key=new_auth(TokenKind.API_KEY).sign_token())

    def find_category(self, req: CategoryFilter) -> List[Category]:
        return self.repo.find_category(req)

    def insert_category(self, req: List[Category]) -> List[Category]:
        if any(not c.title.strip() for c in req):
            raise AppError(ErrorKind.VALIDATION, "category title is required")
        return self.repo.insert_category(req)

    def delete_category(self, category_id: int) -> None:
        self.repo.delete_category(category_id)
