from app.models.common import PaginateRes
from app.models.files import DeleteFileReq
from app.models.product import Product, ProductFilter, ProductReq
from app.patterns.update_product import FileDeleter, product_image_destination
from app.repositories.products_repository import ProductsRepository
from app.utils.errors import AppError, ErrorKind
from app.utils.logger import logger


class ProductService:

    def __init__(self, repo: ProductsRepository, files: FileDeleter):
        self.repo = repo
        self.files = files

    def find_one_product(self, product_id: str) -> Product:
        return self.repo.find_one_product(product_id)

    def find_product(self, req: ProductFilter) -> PaginateRes:
        products, count = self.repo.find_product(req)
        return PaginateRes.of(products, req, count)

    def insert_product(self, req: ProductReq) -> Product:
        if not req.title:
            raise AppError(ErrorKind.VALIDATION, "title is required")
        if req.price <= 0:
            raise AppError(ErrorKind.VALIDATION, "price must be greater than 0")
        return self.repo.insert_product(req)

    def update_product(self, product_id: str, req: ProductReq) -> Product:
        if req.price < 0:
            raise AppError(ErrorKind.VALIDATION, "price must not be negative")
        return self.repo.update_product(product_id, req)

    def delete_product(self, product_id: str) -> None:
        product = self.repo.find_one_product(product_id)
        if product.images:
            self.files.delete_files(
                [DeleteFileReq(destination=product_image_destination(img.filename)) for img in product.images]
            )
        self.repo.delete_product(product_id)
        logger.info(f"Deleted product {product_id} with {len(product.images)} image(s)")
