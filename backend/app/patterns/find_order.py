from __future__ import annotations

from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.common import MIN_LIMIT, MIN_PAGE
from app.models.order import Order, OrderFilter
from app.patterns.sql_builder import QueryState, decode_json, resolve_sort
from app.utils.errors import ErrorKind, translate_db_error
from app.utils.logger import logger

# Requested sort keys -> trusted column expressions.
ORDER_SORT_COLUMNS = {
    "id": '"o"."id"',
    "created_at": '"o"."created_at"',
    "updated_at": '"o"."updated_at"',
    "status": '"o"."status"',
    "total_paid": '"o"."total_paid"',
}
ORDER_DEFAULT_SORT = "id"

FIND_ORDER_BASE = """
    SELECT
        array_to_json(array_agg("at"))
    FROM (
        SELECT
            "o"."id",
            "o"."user_id",
            "o"."transfer_slip",
            (
                SELECT
                    COALESCE(array_to_json(array_agg("pt")), '[]'::json)
                FROM (
                    SELECT
                        "spo"."id",
                        "spo"."qty",
                        "spo"."product"
                    FROM "products_orders" "spo"
                    WHERE "spo"."order_id" = "o"."id"
                ) AS "pt"
            ) AS "products",
            "o"."address",
            "o"."contact",
            "o"."status",
            "o"."total_paid",
            "o"."created_at",
            "o"."updated_at"
        FROM "orders" "o"
        WHERE 1 = 1"""

FIND_ORDER_CLOSE = """
    ) AS "at";"""

COUNT_ORDER_BASE = """
    SELECT
        COUNT(*) AS "count"
    FROM "orders" "o"
    WHERE 1 = 1"""


def build_where_search(state: QueryState, req: OrderFilter) -> None:
    if not req.search:
        return
    pattern = f"%{req.search.lower()}%"
    p1, p2, p3 = state.bind(pattern, pattern, pattern)
    state.append(f"""
        AND (
            LOWER(CAST("o"."transfer_slip" AS text)) LIKE {p1} OR
            LOWER("o"."address") LIKE {p2} OR
            LOWER("o"."contact") LIKE {p3}
        )""")


def build_where_status(state: QueryState, req: OrderFilter) -> None:
    if not req.status:
        return
    (p,) = state.bind(req.status.lower())
    state.append(f"""
        AND LOWER("o"."status") = {p}""")


def build_where_date(state: QueryState, req: OrderFilter) -> None:
    # Whole calendar days: the end date is included through end of day.
    if req.start_date:
        (p,) = state.bind(req.start_date)
        state.append(f"""
        AND "o"."created_at" >= CAST({p} AS DATE)""")
    if req.end_date:
        (p,) = state.bind(req.end_date)
        state.append(f"""
        AND "o"."created_at" < CAST({p} AS DATE) + 1""")


def build_sort(state: QueryState, req: OrderFilter) -> None:
    column, direction = resolve_sort(req.order_by, req.sort_by, ORDER_SORT_COLUMNS, ORDER_DEFAULT_SORT)
    state.append(f"""
        ORDER BY {column} {direction}""")


def build_paginate(state: QueryState, req: OrderFilter) -> None:
    page = max(req.page, MIN_PAGE)
    limit = max(req.limit, MIN_LIMIT)
    offset_p, limit_p = state.bind((page - 1) * limit, limit)
    state.append(f"""
        OFFSET {offset_p} LIMIT {limit_p}""")


class FindOrderBuilder:
    """Builds the page query and the count query for one ``OrderFilter``.

    Both queries apply the same predicates in the same order. Every build
    starts from an empty state, so one builder serves find and count.
    """

    def __init__(self, req: OrderFilter):
        self.req = req
        self.state = QueryState()

    def _where(self) -> None:
        build_where_search(self.state, self.req)
        build_where_status(self.state, self.req)
        build_where_date(self.state, self.req)

    def build_find(self) -> QueryState:
        self.state.reset()
        self.state.append(FIND_ORDER_BASE)
        self._where()
        build_sort(self.state, self.req)
        build_paginate(self.state, self.req)
        self.state.append(FIND_ORDER_CLOSE)
        return self.state

    def build_count(self) -> QueryState:
        self.state.reset()
        self.state.append(COUNT_ORDER_BASE)
        self._where()
        return self.state


class FindOrderEngineer:

    def __init__(self, db: Session, builder: FindOrderBuilder):
        self.db = db
        self.builder = builder

    def find_order(self) -> List[Order]:
        state = self.builder.build_find()
        try:
            raw = self.db.execute(state.statement(), state.params).scalar()
        except SQLAlchemyError as e:
            raise translate_db_error(e, "find order", ErrorKind.INTERNAL)

        rows = decode_json(raw)
        if not rows:
            return []
        return [Order.model_validate(row) for row in rows]

    def count_order(self) -> int:
        state = self.builder.build_count()
        try:
            count = self.db.execute(state.statement(), state.params).scalar()
        except SQLAlchemyError as e:
            raise translate_db_error(e, "count order", ErrorKind.INTERNAL)
        logger.debug(f"count order filter={self.builder.req.model_dump()} count={count}")
        return int(count or 0)
