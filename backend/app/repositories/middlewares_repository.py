from typing import List

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.user import Role
from app.utils.errors import translate_db_error


class MiddlewaresRepository:

    def __init__(self, db: Session):
        self.db = db

    def find_access_token(self, user_id: str, access_token: str) -> bool:
        """True when exactly one live session holds this access token."""
        try:
            count = self.db.execute(
                text("""
                    SELECT COUNT(*)
                    FROM "oauth"
                    WHERE "user_id" = :user_id
                    AND "access_token" = :access_token;
                """),
                {"user_id": user_id, "access_token": access_token},
            ).scalar()
        except SQLAlchemyError as e:
            raise translate_db_error(e, "failed to find access token") from e
        return count == 1

    def find_role(self) -> List[Role]:
        try:
            rows = self.db.execute(
                text('SELECT "id", "title" FROM "roles" ORDER BY "id";')
            ).mappings().all()
        except SQLAlchemyError as e:
            raise translate_db_error(e, "roles are not found") from e
        return [Role.model_validate(dict(r)) for r in rows]
