from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.config import settings
from app.models.product import ProductReq
from app.patterns.update_product import build_insert_images
from app.utils.errors import AppError, ErrorKind, translate_db_error
from app.utils.logger import logger


class InsertProductBuilder:

    def __init__(self, db: Session, req: ProductReq):
        self.db = db
        self.req = req
        self.product_id = ""

    def init_transaction(self) -> None:
        self.db.execute(text(f"SET LOCAL statement_timeout = {int(settings.DB_TX_TIMEOUT_MS)}"))

    def insert_product(self) -> None:
        self.product_id = self.db.execute(
            text("""
                INSERT INTO "products" (
                    "title",
                    "description",
                    "price"
                )
                VALUES (:p1, :p2, :p3)
                RETURNING "id";
            """),
            {"p1": self.req.title, "p2": self.req.description, "p3": self.req.price},
        ).scalar_one()

    def insert_category(self) -> None:
        self.db.execute(
            text("""
                INSERT INTO "products_categories" (
                    "product_id",
                    "category_id"
                )
                VALUES (:p1, :p2);
            """),
            {"p1": self.product_id, "p2": self.req.category.id},
        )

    def insert_images(self) -> None:
        if not self.req.images:
            return
        state = build_insert_images(self.product_id, self.req.images)
        self.db.execute(state.statement(), state.params)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


class InsertProductEngineer:

    def __init__(self, builder: InsertProductBuilder):
        self.builder = builder

    def insert_product(self) -> str:
        if self.builder.req.category is None or self.builder.req.category.id <= 0:
            raise AppError(ErrorKind.VALIDATION, "category id is required")

        steps = (
            ("failed to begin transaction", self.builder.init_transaction),
            ("failed to insert product", self.builder.insert_product),
            ("failed to insert product category", self.builder.insert_category),
            ("failed to insert images", self.builder.insert_images),
            ("failed to commit transaction", self.builder.commit),
        )
        for step, run in steps:
            try:
                run()
            except Exception as e:
                self.builder.rollback()
                raise translate_db_error(e, step, ErrorKind.TRANSACTION) from e

        logger.info(f"Inserted product {self.builder.product_id}")
        return self.builder.product_id
