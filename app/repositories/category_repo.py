# app/repositories/category_repo.py
import uuid
from typing import Literal

from sqlalchemy import func
from sqlmodel import Session, select

from app.core.errors import Conflict
from app.models.category import Category, utcnow
from app.repositories.product_repo import ProductRepository

SORT_COLUMNS = {
    "name": Category.name,
    "createdAt": Category.created_at,
    "updatedAt": Category.updated_at,
}


class CategoryRepository:
    """
    Data access layer for Category.

    - CRUD + queries, no FastAPI.
    - Owns the case-insensitive name uniqueness rule and the
      "referenced by products" delete check, raising domain errors.
    """

    def __init__(self, products: ProductRepository | None = None):
        self.products = products or ProductRepository()

    def get_by_id(self, session: Session, category_id: uuid.UUID) -> Category | None:
        return session.get(Category, category_id)

    def get_by_name(
        self,
        session: Session,
        name: str,
        exclude_id: uuid.UUID | None = None,
    ) -> Category | None:
        """Case-insensitive lookup on the trimmed name, optionally skipping one row."""
        stmt = select(Category).where(func.lower(Category.name) == name.strip().lower())
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        return session.exec(stmt).first()

    def list(
        self,
        session: Session,
        active: bool | None = None,
        sort: str | None = None,
        order: Literal["asc", "desc"] = "asc",
    ) -> list[Category]:
        stmt = select(Category)
        if active is not None:
            stmt = stmt.where(Category.is_active == active)

        column = SORT_COLUMNS.get(sort or "createdAt", Category.created_at)
        stmt = stmt.order_by(column.desc() if order == "desc" else column.asc())
        return list(session.exec(stmt).all())

    def _ensure_name_available(
        self,
        session: Session,
        name: str,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        clash = self.get_by_name(session, name, exclude_id=exclude_id)
        if clash is not None:
            raise Conflict(f"Category '{clash.name}' already exists")

    def create(self, session: Session, category: Category) -> Category:
        self._ensure_name_available(session, category.name)
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    def update(self, session: Session, category: Category) -> Category:
        try:
            with session.no_autoflush:
                self._ensure_name_available(session, category.name, exclude_id=category.id)
        except Conflict:
            # discard the pending in-memory changes
            session.rollback()
            raise
        category.updated_at = utcnow()
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    def count_products(self, session: Session, category_id: uuid.UUID) -> int:
        return self.products.count_by_category(session, category_id)

    def delete(
        self,
        session: Session,
        category: Category,
        block_if_referenced: bool = True,
    ) -> None:
        """
        Delete a category permanently.

        Args:
            block_if_referenced: raise Conflict instead of deleting when
                products still reference this category.
        """
        if block_if_referenced:
            in_use = self.count_products(session, category.id)
            if in_use:
                raise Conflict(
                    f"Category is used by {in_use} product(s); "
                    "reassign or delete them first"
                )
        session.delete(category)
        session.commit()
