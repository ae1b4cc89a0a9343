# app/services/product_service.py
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from sqlmodel import Session

from app.core.config import get_settings
from app.core.errors import NotFound, UpstreamMediaError, ValidationError
from app.core.storage_utils import MediaStore
from app.models.category import Category
from app.models.product import Product
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import ProductRepository
from app.services.product_form import (
    ProductForm,
    ProductFormResult,
    UploadedImage,
    check_image_files,
    parse_product_form,
)

logger = logging.getLogger(__name__)


class ProductService:
    """
    Business logic for Product writes.

    Responsibilities:
      - form coercion + validation (via product_form)
      - category existence check at write time
      - image upload/delete orchestration with the media store

    Failure rules:
      - uploads always happen before the DB write
      - if the DB write fails, every image uploaded by this request is
        deleted again before the error propagates
      - deleting images a product no longer uses is best-effort: failures
        are logged, never raised
    """

    def __init__(
        self,
        repo: ProductRepository,
        category_repo: CategoryRepository,
        media: MediaStore,
        max_images: int | None = None,
        max_image_bytes: int | None = None,
        empty_clears: bool | None = None,
    ):
        settings = get_settings()
        self.repo = repo
        self.category_repo = category_repo
        self.media = media
        # unset limits and policy follow the application settings
        self.max_images = settings.MAX_PRODUCT_IMAGES if max_images is None else max_images
        self.max_image_bytes = (
            settings.MAX_IMAGE_BYTES if max_image_bytes is None else max_image_bytes
        )
        self.empty_clears = settings.EMPTY_FIELD_CLEARS if empty_clears is None else empty_clears

    # ----- Helpers -----

    def _validate(self, form: ProductForm, partial: bool) -> ProductFormResult:
        check_image_files(
            form.files,
            max_files=self.max_images,
            max_bytes=self.max_image_bytes,
        )
        result = parse_product_form(
            form.fields,
            partial=partial,
            empty_clears=self.empty_clears,
        )
        if not result.ok:
            raise ValidationError(
                "Invalid product data",
                [err.as_dict() for err in result.errors],
            )
        return result

    def _require_category(self, session: Session, raw_id: str) -> Category:
        try:
            category_id = uuid.UUID(str(raw_id))
        except ValueError:
            raise NotFound("Category not found")

        category = self.category_repo.get_by_id(session, category_id)
        if not category:
            raise NotFound("Category not found")
        return category

    def _upload_images(self, files: Sequence[UploadedImage]) -> list[str]:
        """
        Upload files concurrently; URLs come back in submission order.

        If any upload fails, the ones that succeeded are removed again and
        UpstreamMediaError is raised.
        """
        if not files:
            return []

        with ThreadPoolExecutor(max_workers=len(files)) as pool:
            futures = [
                pool.submit(self.media.upload, f.data, f.content_type, f.filename)
                for f in files
            ]

        urls: list[str] = []
        failures: list[Exception] = []
        for future in futures:
            try:
                urls.append(future.result())
            except Exception as exc:
                failures.append(exc)

        if failures:
            logger.error(
                "%d of %d image uploads failed: %s",
                len(failures), len(files), failures[0],
            )
            self._discard_images(urls, reason="aborted upload")
            raise UpstreamMediaError("Image upload failed") from failures[0]

        return urls

    def _discard_images(self, urls: Sequence[str], reason: str) -> list[str]:
        """
        Best-effort delete of every URL.

        Every deletion is attempted; failures are collected and logged.

        Returns:
            URLs that could not be deleted.
        """
        failed: list[str] = []
        for url in urls:
            try:
                self.media.delete(url)
            except Exception as exc:
                failed.append(url)
                logger.warning("Could not delete image %s (%s): %s", url, reason, exc)

        if failed:
            logger.warning(
                "Image cleanup (%s) left %d of %d files behind",
                reason, len(failed), len(urls),
            )
        return failed

    # ----- Reads -----

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int | None = None,
        category_id: uuid.UUID | None = None,
    ) -> list[Product]:
        return self.repo.list(session, skip=skip, limit=limit, category_id=category_id)

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise NotFound("Product not found")
        return product

    # ----- Writes -----

    def create_product(self, session: Session, form: ProductForm) -> Product:
        """
        Create a product from a submitted form.

        validate -> category must exist -> upload images -> insert.
        """
        result = self._validate(form, partial=False)
        values = dict(result.values)
        category = self._require_category(session, values.pop("category_id"))

        urls = self._upload_images(form.files)

        product = Product(**values, category_id=category.id, images=urls)
        try:
            return self.repo.create(session, product)
        except Exception:
            logger.error("Product insert failed, removing %d uploaded image(s)", len(urls))
            self._discard_images(urls, reason="failed create")
            raise

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        form: ProductForm,
    ) -> Product:
        """
        Partial update of a product.

        - Fields missing from the form keep their stored value.
        - images = submitted `existingImages` that belong to this product,
          followed by the newly uploaded files. Anything else the product
          had is deleted from storage after the write succeeds.
        """
        result = self._validate(form, partial=True)
        product = self.get_product(session, product_id)

        values = dict(result.values)
        if "category_id" in values:
            values["category_id"] = self._require_category(session, values["category_id"]).id

        current = list(product.images or [])
        kept = [url for url in result.existing_images if url in current]
        if len(kept) + len(form.files) > self.max_images:
            raise ValidationError.for_field(
                "images",
                f"A product can have at most {self.max_images} images",
            )
        dropped = [url for url in current if url not in kept]

        new_urls = self._upload_images(form.files)

        for attr, value in values.items():
            setattr(product, attr, value)
        product.images = kept + new_urls

        try:
            product = self.repo.update(session, product)
        except Exception:
            logger.error("Product update failed, removing %d uploaded image(s)", len(new_urls))
            self._discard_images(new_urls, reason="failed update")
            raise

        self._discard_images(dropped, reason="replaced on update")
        return product

    def delete_product(self, session: Session, product_id: uuid.UUID) -> None:
        """
        Delete a product and clean up its images in Storage.

        Storage failures never block the row deletion.
        """
        product = self.get_product(session, product_id)
        self._discard_images(list(product.images or []), reason="product deleted")
        self.repo.delete(session, product)
