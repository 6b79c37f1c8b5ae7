from typing import List

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.appinfo import Category, CategoryFilter
from app.patterns.sql_builder import QueryState, values_groups
from app.utils.errors import AppError, ErrorKind, translate_db_error


class AppinfoRepository:

    def __init__(self, db: Session):
        self.db = db

    def find_category(self, req: CategoryFilter) -> List[Category]:
        state = QueryState()
        state.append("""
            SELECT
                "id",
                "title"
            FROM "categories"
        """)
        if req.title:
            (p,) = state.bind(f"%{req.title.lower()}%")
            state.append(f'        WHERE LOWER("title") LIKE {p}\n')
        state.append('        ORDER BY "id";')

        try:
            rows = self.db.execute(state.statement(), state.params).mappings().all()
        except SQLAlchemyError as e:
            raise translate_db_error(e, "categories are not found") from e
        return [Category.model_validate(dict(r)) for r in rows]

    def insert_category(self, req: List[Category]) -> List[Category]:
        if not req:
            raise AppError(ErrorKind.VALIDATION, "no categories to insert")
        state = QueryState()
        state.append('\n            INSERT INTO "categories" ("title")\n            VALUES\n            ')
        state.append(values_groups(state, [(c.title,) for c in req]))
        state.append('\n            RETURNING "id";')

        try:
            ids = self.db.execute(state.statement(), state.params).scalars().all()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_db_error(e, "failed to insert category", ErrorKind.TRANSACTION) from e

        for category, category_id in zip(req, ids):
            category.id = category_id
        return req

    def delete_category(self, category_id: int) -> None:
        try:
            result = self.db.execute(text('DELETE FROM "categories" WHERE "id" = :id;'), {"id": category_id})
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_db_error(e, "delete category failed") from e
        if result.rowcount == 0:
            raise AppError(ErrorKind.NOT_FOUND, f"category {category_id} not found")
