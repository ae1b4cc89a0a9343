# app/routers/products.py
import uuid

from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session
from starlette.datastructures import UploadFile

from app.core.auth import require_admin
from app.core.config import get_settings
from app.core.errors import UploadRejected
from app.core.storage_utils import MediaStore, get_media_store
from app.database import get_session
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.common import DataResponse, ListResponse, MessageResponse
from app.schemas.product import ProductRead
from app.services.product_form import (
    ProductForm,
    UploadedImage,
    oversized_image_problem,
    too_many_images,
)
from app.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

IMAGE_FIELD = "images"


def get_product_service(media: MediaStore = Depends(get_media_store)) -> ProductService:
    return ProductService(ProductRepository(), CategoryRepository(), media)


async def read_product_form(request: Request) -> ProductForm:
    """
    Read a multipart (or urlencoded) product submission.

    - text parts are kept as lists so repeated / indexed keys survive
    - file parts must use the `images` field; empty file inputs are skipped
    - file count and size ceilings are enforced while reading, so an
      oversized part is never pulled into memory
    """
    settings = get_settings()
    max_files = settings.MAX_PRODUCT_IMAGES
    max_bytes = settings.MAX_IMAGE_BYTES

    form = await request.form()
    product_form = ProductForm()

    for key, value in form.multi_items():
        if not isinstance(value, UploadFile):
            product_form.fields.setdefault(key, []).append(value)
            continue

        if not value.filename and not value.size:
            continue
        if key != IMAGE_FIELD:
            raise UploadRejected(f"Unexpected file field '{key}', use '{IMAGE_FIELD}'")
        if len(product_form.files) >= max_files:
            raise too_many_images(max_files)

        filename = value.filename or "upload"
        if value.size is not None and value.size > max_bytes:
            raise UploadRejected(
                "Rejected image upload", [oversized_image_problem(filename, max_bytes)]
            )
        # one byte past the ceiling is enough to tell it is too large
        data = await value.read(max_bytes + 1)
        if len(data) > max_bytes:
            raise UploadRejected(
                "Rejected image upload", [oversized_image_problem(filename, max_bytes)]
            )

        product_form.files.append(
            UploadedImage(
                filename=filename,
                content_type=value.content_type or "",
                data=data,
                size=len(data),
            )
        )

    return product_form


def _read(product) -> ProductRead:
    return ProductRead.model_validate(product)


# -------- Public endpoints --------


@router.get("", response_model=ListResponse[ProductRead])
def list_products(
    category: uuid.UUID | None = None,
    skip: int = 0,
    limit: int | None = None,
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    List products, newest first, each with its category inline.

    - Public endpoint.
    - `category` narrows the list to one category id.
    """
    products = service.list_products(session, skip=skip, limit=limit, category_id=category)
    data = [_read(p) for p in products]
    return ListResponse[ProductRead](count=len(data), data=data)


@router.get("/{product_id}", response_model=DataResponse[ProductRead])
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    Get a single product by id.

    - Public endpoint.
    """
    return DataResponse[ProductRead](data=_read(service.get_product(session, product_id)))


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=DataResponse[ProductRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    form: ProductForm = Depends(read_product_form),
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    Create a new product (admin only).

    Multipart fields: name, price, category, originalPrice, discount,
    description, material, careInstructions, sizes[i], stock, rating,
    reviewsCount, isNew; up to 3 files under `images`.
    """
    product = service.create_product(session, form)
    return DataResponse[ProductRead](data=_read(product))


@router.put(
    "/{product_id}",
    response_model=DataResponse[ProductRead],
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: uuid.UUID,
    form: ProductForm = Depends(read_product_form),
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    Update an existing product (admin only).

    - Omitted fields keep their value.
    - Send the image URLs to keep as existingImages[i]; images not listed
      are removed from the product and from Storage.
    """
    product = service.update_product(session, product_id, form)
    return DataResponse[ProductRead](data=_read(product))


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    Delete a product and its images (admin only).
    """
    service.delete_product(session, product_id)
    return MessageResponse(message="Product deleted successfully")
