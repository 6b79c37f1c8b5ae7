import uuid
from datetime import datetime, timezone
from typing import List

from app.models.common import PaginateRes
from app.models.order import Order, OrderFilter, OrderReq, OrderStatus, OrderUpdateReq, ProductsOrder, TransferSlip
from app.models.user import UserClaims, UserRole
from app.repositories.orders_repository import OrdersRepository
from app.repositories.products_repository import ProductsRepository
from app.utils.errors import AppError, ErrorKind
from app.utils.logger import logger

ORDER_STATUSES = tuple(s.value for s in OrderStatus)


def stamp_transfer_slip(slip: TransferSlip) -> TransferSlip:
    """Fill in the id and upload time of a transfer slip when the client left them out."""
    return slip.model_copy(update={
        "id": slip.id or str(uuid.uuid4()),
        "created_at": slip.created_at or datetime.now(timezone.utc).isoformat(),
    })


class OrderService:

    def __init__(self, repo: OrdersRepository, products: ProductsRepository):
        self.repo = repo
        self.products = products

    def _check_owner(self, order: Order, claims: UserClaims) -> None:
        if claims.role != UserRole.ADMIN and order.user_id != claims.id:
            raise AppError(ErrorKind.FORBIDDEN, "no permission to access this order")

    def find_one_order(self, order_id: str, claims: UserClaims) -> Order:
        order = self.repo.find_one_order(order_id)
        self._check_owner(order, claims)
        return order

    def find_order(self, req: OrderFilter) -> PaginateRes:
        orders, count = self.repo.find_order(req)
        return PaginateRes.of(orders, req, count)

    def snapshot_products(self, items: List[ProductsOrder]) -> List[ProductsOrder]:
        """Replace client product data with the current stored product."""
        if not items:
            raise AppError(ErrorKind.VALIDATION, "order has no products")
        result = []
        for item in items:
            if item.qty < 1:
                raise AppError(ErrorKind.VALIDATION, "qty must be at least 1")
            if item.product is None or not item.product.id:
                raise AppError(ErrorKind.VALIDATION, "product id is required")
            product = self.products.find_one_product(item.product.id)
            result.append(ProductsOrder(qty=item.qty, product=product))
        return result

    def insert_order(self, req: OrderReq, claims: UserClaims) -> Order:
        owner = claims.id
        if claims.role == UserRole.ADMIN and req.user_id:
            owner = req.user_id

        products = self.snapshot_products(req.products)
        total_paid = round(sum(item.product.price * item.qty for item in products), 2)
        order = Order(
            user_id=owner,
            transfer_slip=stamp_transfer_slip(req.transfer_slip) if req.transfer_slip else None,
            products=products,
            address=req.address,
            contact=req.contact,
            status=OrderStatus.WAITING.value,
            total_paid=total_paid,
        )
        order_id = self.repo.insert_order(order)
        logger.info(f"User {claims.id} placed order {order_id} total_paid={total_paid}")
        return self.repo.find_one_order(order_id)

    def update_order(self, order_id: str, req: OrderUpdateReq, claims: UserClaims) -> Order:
        order = self.repo.find_one_order(order_id)
        self._check_owner(order, claims)

        if req.status is not None:
            status = req.status.strip().lower()
            if status not in ORDER_STATUSES:
                raise AppError(ErrorKind.VALIDATION, f"status must be one of {', '.join(ORDER_STATUSES)}")
            if claims.role != UserRole.ADMIN and status != OrderStatus.CANCELED.value:
                raise AppError(ErrorKind.FORBIDDEN, "customers may only cancel an order")
            req = req.model_copy(update={"status": status})
        if req.transfer_slip is not None:
            req = req.model_copy(update={"transfer_slip": stamp_transfer_slip(req.transfer_slip)})

        if not self.repo.update_order(order_id, req):
            return order
        return self.repo.find_one_order(order_id)
