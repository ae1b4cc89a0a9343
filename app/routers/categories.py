# app/routers/categories.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_admin
from app.core.config import get_settings
from app.database import get_session
from app.repositories.category_repo import CategoryRepository
from app.schemas.category import CategoryCreate, CategoryRead, CategoryUpdate
from app.schemas.common import DataResponse, ListResponse, MessageResponse
from app.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])


def get_category_service() -> CategoryService:
    settings = get_settings()
    return CategoryService(
        CategoryRepository(),
        block_referenced_delete=settings.BLOCK_REFERENCED_CATEGORY_DELETE,
    )


# -------- Public endpoints --------


@router.get("", response_model=ListResponse[CategoryRead])
def list_categories(
    active: bool | None = None,
    sort: str | None = None,
    order: str = "asc",
    session: Session = Depends(get_session),
    service: CategoryService = Depends(get_category_service),
):
    """
    List categories.

    - `active=true|false` filters on isActive.
    - `sort` is one of name, createdAt, updatedAt; `order` is asc or desc.
    """
    categories = service.list_categories(session, active=active, sort=sort, order=order)
    data = [CategoryRead.model_validate(c) for c in categories]
    return ListResponse[CategoryRead](count=len(data), data=data)


@router.get("/{category_id}", response_model=DataResponse[CategoryRead])
def get_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: CategoryService = Depends(get_category_service),
):
    category = service.get_category(session, category_id)
    return DataResponse[CategoryRead](data=CategoryRead.model_validate(category))


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=DataResponse[CategoryRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
    service: CategoryService = Depends(get_category_service),
):
    """
    Create a new category (admin only).

    Names are unique ignoring case: "Silk" blocks "silk".
    """
    category = service.create_category(session, payload)
    return DataResponse[CategoryRead](data=CategoryRead.model_validate(category))


@router.put(
    "/{category_id}",
    response_model=DataResponse[CategoryRead],
    dependencies=[Depends(require_admin)],
)
def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
    service: CategoryService = Depends(get_category_service),
):
    """
    Update an existing category (admin only).
    """
    category = service.update_category(session, category_id, payload)
    return DataResponse[CategoryRead](data=CategoryRead.model_validate(category))


@router.delete(
    "/{category_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
def delete_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
    service: CategoryService = Depends(get_category_service),
):
    """
    Delete a category (admin only).

    Refused while products still use it, unless
    BLOCK_REFERENCED_CATEGORY_DELETE is turned off.
    """
    service.delete_category(session, category_id)
    return MessageResponse(message="Category deleted successfully")
