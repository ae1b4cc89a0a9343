# app/schemas/common.py
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """
    Base for API schemas.

    Python attributes stay snake_case; JSON uses camelCase
    (`is_active` <-> `isActive`). Either spelling is accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DataResponse(BaseModel, Generic[T]):
    """Success envelope: {"success": true, "data": ...}."""

    success: bool = True
    data: T


class ListResponse(BaseModel, Generic[T]):
    success: bool = True
    count: int
    data: list[T]


class MessageResponse(BaseModel):
    success: bool = True
    message: str
