# app/models/category.py
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlmodel import SQLModel, Field, Relationship

if TYPE_CHECKING:
    from app.models.product import Product


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(SQLModel, table=True):
    """
    Catalog category (e.g. "Silk", "Cotton").

    - name is unique case-insensitively; the repository enforces it
      since the column itself stores the name as submitted.
    - Products reference a category; they never own it.
    """

    __tablename__ = "categories"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=100,
        index=True,
        description="Display name, unique ignoring case",
    )

    description: str | None = Field(default=None)

    image: str | None = Field(
        default=None,
        description="Optional cover image URL",
    )

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether the category is shown on the storefront",
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last modification timestamp (UTC)",
    )

    products: list["Product"] = Relationship(back_populates="category")
