# app/schemas/product.py
import uuid
from datetime import datetime

from app.schemas.category import CategoryRead
from app.schemas.common import CamelModel


class ProductRead(CamelModel):
    """
    Product representation for clients.

    `category` is the referenced Category expanded inline, not just its id.
    Product writes arrive as multipart form data and are parsed by
    `app.services.product_form`, so there is no create/update schema here.
    """

    id: uuid.UUID
    name: str
    price: float
    original_price: float | None = None
    discount: str | None = None
    category: CategoryRead | None = None
    images: list[str] = []
    description: str | None = None
    material: str | None = None
    care_instructions: str | None = None
    sizes: list[str] = []
    stock: int = 0
    rating: float = 0
    reviews_count: int = 0
    is_new: bool = False
    created_at: datetime
    updated_at: datetime
