from __future__ import annotations

from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.common import MIN_LIMIT, MIN_PAGE
from app.models.product import Product, ProductFilter
from app.patterns.sql_builder import QueryState, decode_json, resolve_sort
from app.utils.errors import ErrorKind, translate_db_error

PRODUCT_SORT_COLUMNS = {
    "id": '"p"."id"',
    "title": '"p"."title"',
    "price": '"p"."price"',
    "created_at": '"p"."created_at"',
}
PRODUCT_DEFAULT_SORT = "title"

# Shared projection for one product: category as an object, images as an array.
PRODUCT_COLUMNS = """
            "p"."id",
            "p"."title",
            "p"."description",
            "p"."price",
            (
                SELECT
                    to_jsonb("ct")
                FROM (
                    SELECT
                        "c"."id",
                        "c"."title"
                    FROM "categories" "c"
                        LEFT JOIN "products_categories" "pc" ON "pc"."category_id" = "c"."id"
                    WHERE "pc"."product_id" = "p"."id"
                ) AS "ct"
            ) AS "category",
            "p"."created_at",
            "p"."updated_at",
            (
                SELECT
                    COALESCE(array_to_json(array_agg("it")), '[]'::json)
                FROM (
                    SELECT
                        "i"."id",
                        "i"."filename",
                        "i"."url"
                    FROM "images" "i"
                    WHERE "i"."product_id" = "p"."id"
                ) AS "it"
            ) AS "images"
"""

FIND_PRODUCT_BASE = f"""
    SELECT
        array_to_json(array_agg("at"))
    FROM (
        SELECT{PRODUCT_COLUMNS}        FROM "products" "p"
        WHERE 1 = 1"""

FIND_PRODUCT_CLOSE = """
    ) AS "at";"""

COUNT_PRODUCT_BASE = """
    SELECT
        COUNT(*) AS "count"
    FROM "products" "p"
    WHERE 1 = 1"""


def build_where_id(state: QueryState, req: ProductFilter) -> None:
    if not req.id:
        return
    (p,) = state.bind(req.id)
    state.append(f"""
        AND "p"."id" = {p}""")


def build_where_search(state: QueryState, req: ProductFilter) -> None:
    if not req.search:
        return
    pattern = f"%{req.search.lower()}%"
    p1, p2 = state.bind(pattern, pattern)
    state.append(f"""
        AND (
            LOWER("p"."title") LIKE {p1} OR
            LOWER("p"."description") LIKE {p2}
        )""")


def build_sort(state: QueryState, req: ProductFilter) -> None:
    column, direction = resolve_sort(req.order_by, req.sort_by, PRODUCT_SORT_COLUMNS, PRODUCT_DEFAULT_SORT)
    state.append(f"""
        ORDER BY {column} {direction}""")


def build_paginate(state: QueryState, req: ProductFilter) -> None:
    page = max(req.page, MIN_PAGE)
    limit = max(req.limit, MIN_LIMIT)
    offset_p, limit_p = state.bind((page - 1) * limit, limit)
    state.append(f"""
        OFFSET {offset_p} LIMIT {limit_p}""")


class FindProductBuilder:

    def __init__(self, req: ProductFilter):
        self.req = req
        self.state = QueryState()

    def _where(self) -> None:
        build_where_id(self.state, self.req)
        build_where_search(self.state, self.req)

    def build_find(self) -> QueryState:
        self.state.reset()
        self.state.append(FIND_PRODUCT_BASE)
        self._where()
        build_sort(self.state, self.req)
        build_paginate(self.state, self.req)
        self.state.append(FIND_PRODUCT_CLOSE)
        return self.state

    def build_count(self) -> QueryState:
        self.state.reset()
        self.state.append(COUNT_PRODUCT_BASE)
        self._where()
        return self.state


class FindProductEngineer:

    def __init__(self, db: Session, builder: FindProductBuilder):
        self.db = db
        self.builder = builder

    def find_product(self) -> List[Product]:
        state = self.builder.build_find()
        try:
            raw = self.db.execute(state.statement(), state.params).scalar()
        except SQLAlchemyError as e:
            raise translate_db_error(e, "find product", ErrorKind.INTERNAL)

        rows = decode_json(raw)
        if not rows:
            return []
        return [Product.model_validate(row) for row in rows]

    def count_product(self) -> int:
        state = self.builder.build_count()
        try:
            count = self.db.execute(state.statement(), state.params).scalar()
        except SQLAlchemyError as e:
            raise translate_db_error(e, "count product", ErrorKind.INTERNAL)
        return int(count or 0)
