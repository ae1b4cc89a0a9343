# app/services/category_service.py
import uuid

from sqlmodel import Session

from app.core.errors import NotFound, ValidationError
from app.models.category import Category
from app.repositories.category_repo import SORT_COLUMNS, CategoryRepository
from app.schemas.category import CategoryCreate, CategoryUpdate


class CategoryService:
    """
    Business logic for Category.

    Responsibilities:
      - map missing rows to NotFound
      - validate list sorting options
      - apply the configured policy for deleting referenced categories
    """

    def __init__(self, repo: CategoryRepository, block_referenced_delete: bool = True):
        self.repo = repo
        self.block_referenced_delete = block_referenced_delete

    def list_categories(
        self,
        session: Session,
        active: bool | None = None,
        sort: str | None = None,
        order: str = "asc",
    ) -> list[Category]:
        if sort is not None and sort not in SORT_COLUMNS:
            raise ValidationError.for_field(
                "sort",
                f"sort must be one of: {', '.join(SORT_COLUMNS)}",
            )
        order = order.lower()
        if order not in ("asc", "desc"):
            raise ValidationError.for_field("order", "order must be 'asc' or 'desc'")
        return self.repo.list(session, active=active, sort=sort, order=order)

    def get_category(self, session: Session, category_id: uuid.UUID) -> Category:
        category = self.repo.get_by_id(session, category_id)
        if not category:
            raise NotFound("Category not found")
        return category

    def create_category(self, session: Session, payload: CategoryCreate) -> Category:
        category = Category(**payload.model_dump())
        return self.repo.create(session, category)

    def update_category(
        self,
        session: Session,
        category_id: uuid.UUID,
        payload: CategoryUpdate,
    ) -> Category:
        """Only fields present in the request body are changed."""
        category = self.get_category(session, category_id)
        for attr, value in payload.model_dump(exclude_unset=True).items():
            setattr(category, attr, value)
        return self.repo.update(session, category)

    def delete_category(self, session: Session, category_id: uuid.UUID) -> None:
        category = self.get_category(session, category_id)
        self.repo.delete(
            session,
            category,
            block_if_referenced=self.block_referenced_delete,
        )
