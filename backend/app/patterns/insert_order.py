from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.config import settings
from app.models.order import Order
from app.patterns.sql_builder import QueryState, as_json, values_groups
from app.utils.errors import AppError, ErrorKind, translate_db_error
from app.utils.logger import logger

JSONB = "CAST({} AS jsonb)"


class InsertOrderBuilder:
    """Writes one order header and all of its line items in one transaction."""

    def __init__(self, db: Session, req: Order):
        self.db = db
        self.req = req

    def init_transaction(self) -> None:
        # Session.execute opens the transaction; bound it with a local timeout.
        self.db.execute(text(f"SET LOCAL statement_timeout = {int(settings.DB_TX_TIMEOUT_MS)}"))

    def build_order(self) -> QueryState:
        state = QueryState()
        p = state.bind(
            self.req.user_id,
            self.req.contact,
            self.req.address,
            as_json(self.req.transfer_slip) if self.req.transfer_slip else None,
            self.req.status,
            self.req.total_paid,
        )
        state.append(f"""
            INSERT INTO "orders" (
                "user_id",
                "contact",
                "address",
                "transfer_slip",
                "status",
                "total_paid"
            )
            VALUES ({p[0]}, {p[1]}, {p[2]}, {JSONB.format(p[3])}, {p[4]}, {p[5]})
            RETURNING "id";""")
        return state

    def insert_order(self) -> None:
        state = self.build_order()
        self.req.id = self.db.execute(state.statement(), state.params).scalar_one()

    def build_products_order(self) -> QueryState:
        state = QueryState()
        rows = [(self.req.id, item.qty, as_json(item.product)) for item in self.req.products]
        state.append("""
            INSERT INTO "products_orders" (
                "order_id",
                "qty",
                "product"
            )
            VALUES
            """)
        state.append(values_groups(state, rows, casts=("", "", JSONB)))
        state.append(";")
        return state

    def insert_products_order(self) -> None:
        state = self.build_products_order()
        self.db.execute(state.statement(), state.params)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


class InsertOrderEngineer:

    def __init__(self, builder: InsertOrderBuilder):
        self.builder = builder

    def insert_order(self) -> str:
        if not self.builder.req.products:
            raise AppError(ErrorKind.VALIDATION, "order has no products")

        steps = (
            ("failed to begin transaction", self.builder.init_transaction),
            ("failed to insert order", self.builder.insert_order),
            ("failed to insert products order", self.builder.insert_products_order),
            ("failed to commit transaction", self.builder.commit),
        )
        for step, run in steps:
            try:
                run()
            except Exception as e:
                self.builder.rollback()
                raise translate_db_error(e, step, ErrorKind.TRANSACTION) from e

        logger.info(f"Inserted order {self.builder.req.id} with {len(self.builder.req.products)} line item(s)")
        return self.builder.req.id
