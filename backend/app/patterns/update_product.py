from __future__ import annotations

from typing import List, Optional, Protocol

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.config import settings
from app.models.common import Image
from app.models.files import DeleteFileReq
from app.models.product import ProductReq
from app.patterns.sql_builder import QueryState, values_groups
from app.utils.errors import AppError, ErrorKind, translate_db_error
from app.utils.logger import logger

PRODUCT_IMAGES_DIR = "images/products"


class FileDeleter(Protocol):
    def delete_files(self, req: List[DeleteFileReq]) -> None: ...


def product_image_destination(filename: str) -> str:
    return f"{PRODUCT_IMAGES_DIR}/{filename}"


def build_insert_images(product_id: str, images: List[Image]) -> QueryState:
    state = QueryState()
    rows = [(img.filename, img.url, product_id) for img in images]
    state.append("""
        INSERT INTO "images" (
            "filename",
            "url",
            "product_id"
        )
        VALUES
        """)
    state.append(values_groups(state, rows))
    state.append(";")
    return state


class UpdateProductBuilder:
    """Sparse product update.

    Only title, description and price values that are set take part in the
    ``SET`` list. Category reassignment and image replacement run in the same
    transaction as the header update.
    """

    def __init__(self, db: Session, product_id: str, req: ProductReq, files: FileDeleter):
        self.db = db
        self.product_id = product_id
        self.req = req
        self.files = files

    def init_transaction(self) -> None:
        self.db.execute(text(f"SET LOCAL statement_timeout = {int(settings.DB_TX_TIMEOUT_MS)}"))

    def build_update(self) -> Optional[QueryState]:
        """Return the header ``UPDATE`` or None when no header field is set."""
        state = QueryState()
        fields = []
        if self.req.title:
            (p,) = state.bind(self.req.title)
            fields.append(f'"title" = {p}')
        if self.req.description:
            (p,) = state.bind(self.req.description)
            fields.append(f'"description" = {p}')
        if self.req.price:
            (p,) = state.bind(self.req.price)
            fields.append(f'"price" = {p}')

        if not fields:
            return None

        (id_p,) = state.bind(self.product_id)
        state.append('\n        UPDATE "products" SET\n            ')
        state.append(",\n            ".join(fields))
        state.append(f'\n        WHERE "id" = {id_p};')
        return state

    def update_product(self) -> None:
        state = self.build_update()
        if state is None:
            return
        result = self.db.execute(state.statement(), state.params)
        if result.rowcount == 0:
            raise AppError(ErrorKind.NOT_FOUND, f"product {self.product_id} not found")

    def update_category(self) -> None:
        if self.req.category is None or self.req.category.id <= 0:
            return
        self.db.execute(
            text("""
                INSERT INTO "products_categories" (
                    "category_id",
                    "product_id"
                )
                VALUES (:p1, :p2)
                ON CONFLICT ("product_id") DO UPDATE SET
                    "category_id" = EXCLUDED."category_id";
            """),
            {"p1": self.req.category.id, "p2": self.product_id},
        )

    def get_old_images(self) -> List[Image]:
        rows = self.db.execute(
            text("""
                SELECT
                    "id",
                    "filename",
                    "url"
                FROM "images"
                WHERE "product_id" = :p1;
            """),
            {"p1": self.product_id},
        ).mappings().all()
        return [Image(id=str(r["id"]), filename=r["filename"], url=r["url"]) for r in rows]

    def delete_old_images(self) -> None:
        images = self.get_old_images()
        if images:
            self.files.delete_files(
                [DeleteFileReq(destination=product_image_destination(img.filename)) for img in images]
            )
        self.db.execute(
            text('DELETE FROM "images" WHERE "product_id" = :p1;'),
            {"p1": self.product_id},
        )

    def insert_images(self) -> None:
        state = build_insert_images(self.product_id, self.req.images)
        self.db.execute(state.statement(), state.params)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


class UpdateProductEngineer:

    def __init__(self, builder: UpdateProductBuilder):
        self.builder = builder

    def update_product(self) -> None:
        steps = [
            ("failed to begin transaction", self.builder.init_transaction),
            ("failed to update product", self.builder.update_product),
            ("failed to update category", self.builder.update_category),
        ]
        if self.builder.req.images:
            steps += [
                ("failed to delete old images", self.builder.delete_old_images),
                ("failed to insert images", self.builder.insert_images),
            ]
        steps.append(("failed to commit transaction", self.builder.commit))

        for step, run in steps:
            try:
                run()
            except Exception as e:
                self.builder.rollback()
                raise translate_db_error(e, step, ErrorKind.TRANSACTION) from e

        logger.info(f"Updated product {self.builder.product_id}")
