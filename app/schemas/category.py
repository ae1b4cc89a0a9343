# app/schemas/category.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.schemas.common import CamelModel


class CategoryCreate(CamelModel):
    """
    Payload for creating a category.

    - name is trimmed and must not be empty.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    name: str = Field(max_length=100)
    description: str | None = None
    image: str | None = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class CategoryUpdate(CamelModel):
    """
    Partial update payload for categories.
    Fields left out of the request body are not touched.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    name: str | None = Field(default=None, max_length=100)
    description: str | None = None
    image: str | None = None
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        # Only runs for values present in the body; an explicit null is an error.
        if v is None:
            raise ValueError("name cannot be empty")
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("is_active")
    @classmethod
    def reject_null_flag(cls, v: bool | None) -> bool | None:
        if v is None:
            raise ValueError("isActive must be true or false")
        return v


class CategoryRead(CamelModel):
    """Category representation for clients."""

    id: uuid.UUID
    name: str
    description: str | None = None
    image: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
