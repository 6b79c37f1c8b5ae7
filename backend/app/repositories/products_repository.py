from typing import List, Tuple

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.product import Product, ProductFilter, ProductReq
from app.patterns.find_product import PRODUCT_COLUMNS, FindProductBuilder, FindProductEngineer
from app.patterns.insert_product import InsertProductBuilder, InsertProductEngineer
from app.patterns.sql_builder import decode_json
from app.patterns.update_product import FileDeleter, UpdateProductBuilder, UpdateProductEngineer
from app.utils.errors import AppError, ErrorKind, translate_db_error

FIND_ONE_PRODUCT_SQL = text(f"""
    SELECT
        to_jsonb("t")
    FROM (
        SELECT{PRODUCT_COLUMNS}        FROM "products" "p"
        WHERE "p"."id" = :p1
        LIMIT 1
    ) AS "t";
""")


class ProductsRepository:

    def __init__(self, db: Session, files: FileDeleter):
        self.db = db
        self.files = files

    def find_one_product(self, product_id: str) -> Product:
        try:
            raw = self.db.execute(FIND_ONE_PRODUCT_SQL, {"p1": product_id}).scalar()
        except SQLAlchemyError as e:
            raise translate_db_error(e, "failed to get product") from e
        if raw is None:
            raise AppError(ErrorKind.NOT_FOUND, f"product {product_id} not found")
        return Product.model_validate(decode_json(raw))

    def find_product(self, req: ProductFilter) -> Tuple[List[Product], int]:
        engineer = FindProductEngineer(self.db, FindProductBuilder(req))
        result = engineer.find_product()
        count = engineer.count_product()
        return result, count

    def insert_product(self, req: ProductReq) -> Product:
        product_id = InsertProductEngineer(InsertProductBuilder(self.db, req)).insert_product()
        return self.find_one_product(product_id)

    def update_product(self, product_id: str, req: ProductReq) -> Product:
        builder = UpdateProductBuilder(self.db, product_id, req, self.files)
        UpdateProductEngineer(builder).update_product()
        return self.find_one_product(product_id)

    def delete_product(self, product_id: str) -> None:
        try:
            result = self.db.execute(text('DELETE FROM "products" WHERE "id" = :id;'), {"id": product_id})
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_db_error(e, "failed to delete product") from e
        if result.rowcount == 0:
            raise AppError(ErrorKind.NOT_FOUND, f"product {product_id} not found")
