from typing import List, Tuple

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.order import Order, OrderFilter, OrderUpdateReq
from app.patterns.find_order import FindOrderBuilder, FindOrderEngineer
from app.patterns.insert_order import InsertOrderBuilder, InsertOrderEngineer
from app.patterns.sql_builder import QueryState, as_json, decode_json
from app.utils.errors import AppError, ErrorKind, translate_db_error

FIND_ONE_ORDER_SQL = text("""
    SELECT
        to_jsonb("t")
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
        WHERE "o"."id" = :p1
    ) AS "t";
""")


class OrdersRepository:

    def __init__(self, db: Session):
        self.db = db

    def find_one_order(self, order_id: str) -> Order:
        try:
            raw = self.db.execute(FIND_ONE_ORDER_SQL, {"p1": order_id}).scalar()
        except SQLAlchemyError as e:
            raise translate_db_error(e, "failed to get order") from e
        if raw is None:
            raise AppError(ErrorKind.NOT_FOUND, f"order {order_id} not found")
        return Order.model_validate(decode_json(raw))

    def find_order(self, req: OrderFilter) -> Tuple[List[Order], int]:
        engineer = FindOrderEngineer(self.db, FindOrderBuilder(req))
        result = engineer.find_order()
        count = engineer.count_order()
        return result, count

    def insert_order(self, req: Order) -> str:
        return InsertOrderEngineer(InsertOrderBuilder(self.db, req)).insert_order()

    def update_order(self, order_id: str, req: OrderUpdateReq) -> bool:
        """Apply the supplied fields; returns False when there was nothing to update."""
        state = QueryState()
        fields = []
        if req.status:
            (p,) = state.bind(req.status)
            fields.append(f'"status" = {p}')
        if req.transfer_slip is not None:
            (p,) = state.bind(as_json(req.transfer_slip))
            fields.append(f'"transfer_slip" = CAST({p} AS jsonb)')
        if not fields:
            return False

        (id_p,) = state.bind(order_id)
        state.append('UPDATE "orders" SET ' + ", ".join(fields) + f' WHERE "id" = {id_p};')
        try:
            result = self.db.execute(state.statement(), state.params)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise translate_db_error(e, "failed to update order") from e
        if result.rowcount == 0:
            raise AppError(ErrorKind.NOT_FOUND, f"order {order_id} not found")
        return True
