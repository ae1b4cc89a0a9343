# app/repositories/product_repo.py
import uuid

from sqlalchemy import func
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from app.models.category import utcnow
from app.models.product import Product


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - Every read eager-loads the referenced Category so callers can
      return it inline without a second round-trip.
    - A failed commit is rolled back before the error propagates, so the
      service can run its compensation with a clean session.
    """

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(
            Product,
            product_id,
            options=[selectinload(Product.category)],
        )

    def list(
        self,
        session: Session,
        skip: int = 0,
        limit: int | None = None,
        category_id: uuid.UUID | None = None,
    ) -> list[Product]:
        stmt = select(Product).options(selectinload(Product.category))
        if category_id is not None:
            stmt = stmt.where(Product.category_id == category_id)
        stmt = stmt.order_by(Product.created_at.desc()).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(session.exec(stmt).all())

    def _commit(self, session: Session, product: Product) -> Product:
        session.add(product)
        try:
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(product)
        return product

    def create(self, session: Session, product: Product) -> Product:
        return self._commit(session, product)

    def update(self, session: Session, product: Product) -> Product:
        product.updated_at = utcnow()
        return self._commit(session, product)

    def delete(self, session: Session, product: Product) -> None:
        session.delete(product)
        session.commit()

    def count_by_category(self, session: Session, category_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Product).where(Product.category_id == category_id)
        return int(session.exec(stmt).one() or 0)
