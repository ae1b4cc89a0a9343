# app/models/product.py
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field, Relationship

from app.models.category import utcnow

if TYPE_CHECKING:
    from app.models.category import Category


class Product(SQLModel, table=True):
    """
    Product catalog entry.

    - category_id points at exactly one Category (checked at write time).
    - images is the ordered list of public Storage URLs (0..3); the product
      owns those files and deletes them with itself.
    - sizes keeps the order the admin submitted.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=200,
        index=True,
        description="Display name of the product",
    )

    price: float = Field(
        gt=0,
        description="Unit price",
    )

    original_price: float | None = Field(
        default=None,
        ge=0,
        description="Price before discount, if any",
    )

    discount: str | None = Field(
        default=None,
        description="Display label such as '20% OFF' (not computed)",
    )

    # Always set on write. Only becomes NULL when the category is deleted
    # with BLOCK_REFERENCED_CATEGORY_DELETE turned off.
    category_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="categories.id",
        ondelete="SET NULL",
        index=True,
        description="FK to categories.id",
    )

    images: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Ordered public URLs in Supabase Storage",
    )

    description: str | None = Field(default=None)
    material: str | None = Field(default=None)
    care_instructions: str | None = Field(default=None)

    sizes: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    stock: int = Field(
        default=0,
        ge=0,
        description="How many units currently in stock",
    )

    rating: float = Field(default=0, ge=0)

    reviews_count: int = Field(default=0, ge=0)

    is_new: bool = Field(
        default=False,
        index=True,
        description="Shown with a 'new arrival' badge",
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last modification timestamp (UTC)",
    )

    category: Optional["Category"] = Relationship(back_populates="products")
