"""
Product Service — CRUD, validation and search for production recipes.

Write rules:
  - composition percentages must total 100 % (± 0.01) when any are supplied
  - names/units must be safe and non-empty after sanitisation
  - product names are unique (case-insensitive) among live products
  - only the creator or an ADMIN may update or delete a product
  - percentages are stored rounded to 2 dp (half-up); line order is kept
    in sort_order
  - delete is soft (deleted_at); deleted products behave as not found
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from synprod.models.orm_models import Product, ProductComposition, ProductIngredient, Role, User
from synprod.models.schemas import ProductRequest
from synprod.services import input_sanitizer
from synprod.services.catalogs import ProductType
from synprod.services.exceptions import (
    DuplicateProduct,
    NotProductOwner,
    ProductNotFound,
    ProductValidationError,
)
from synprod.services.recipe_scaler import total_composition_percentage

logger = logging.getLogger("synprod-products")

COMPOSITION_TOTAL_TARGET = 100.0
COMPOSITION_TOTAL_TOLERANCE = 0.01


# ---------------------------------------------------------------------------
# Validation helpers (pure)
# ---------------------------------------------------------------------------

def round_percentage(percentage: Optional[float]) -> Optional[float]:
    if percentage is None:
        return None
    return float(Decimal(str(percentage)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def check_composition_total(compositions) -> None:
    if not compositions:
        return
    total = total_composition_percentage(compositions)
    if abs(total - COMPOSITION_TOTAL_TARGET) > COMPOSITION_TOTAL_TOLERANCE:
        raise ProductValidationError(
            f"Total composition percentage must equal 100%. Current total: {total:g}%"
        )


def _check_text(value: Optional[str], label: str) -> None:
    if not input_sanitizer.is_safe(value):
        raise ProductValidationError(f"{label} contains invalid or dangerous content")
    cleaned = input_sanitizer.sanitize(value)
    if not cleaned or not cleaned.strip():
        raise ProductValidationError(f"{label} cannot be empty or contain only HTML/script tags")


def validate_product_input(request: ProductRequest) -> None:
    """Raise ProductValidationError for anything that would not survive sanitisation."""
    check_composition_total(request.compositions)
    _check_text(request.name, "Product name")
    for pos, comp in enumerate(request.compositions, start=1):
        _check_text(comp.component_name, f"Component name at position {pos}")
    for pos, ing in enumerate(request.ingredients, start=1):
        _check_text(ing.ingredient_name, f"Ingredient name at position {pos}")
        _check_text(ing.unit, f"Unit at position {pos}")


def build_compositions(request: ProductRequest) -> List[ProductComposition]:
    return [
        ProductComposition(
            component_name=input_sanitizer.sanitize(c.component_name),
            percentage=round_percentage(c.percentage),
            notes=input_sanitizer.sanitize_description(c.notes),
            sort_order=idx,
        )
        for idx, c in enumerate(request.compositions)
    ]


def build_ingredients(request: ProductRequest) -> List[ProductIngredient]:
    return [
        ProductIngredient(
            ingredient_name=input_sanitizer.sanitize(i.ingredient_name),
            quantity=i.quantity,
            unit=input_sanitizer.sanitize(i.unit),
            notes=input_sanitizer.sanitize_description(i.notes),
            sort_order=idx,
        )
        for idx, i in enumerate(request.ingredients)
    ]


def ensure_can_modify(product: Product, user: User, action: str) -> None:
    if product.created_by_id != user.id and user.role != Role.ADMIN:
        logger.warning(
            f"User {user.id} attempted to {action} product {product.id} owned by {product.created_by_id}"
        )
        raise NotProductOwner(f"You can only {action} products you created")


def _like(term: Optional[str]) -> Optional[str]:
    cleaned = input_sanitizer.sanitize_search(term)
    return f"%{cleaned}%" if cleaned else None


# ---------------------------------------------------------------------------
# ProductService
# ---------------------------------------------------------------------------

class ProductService:

    def __init__(self, db: AsyncSession):
        self.db = db

    def _live(self):
        return select(Product).where(Product.deleted_at.is_(None))

    async def list_products(self) -> List[Product]:
        result = await self.db.execute(self._live().order_by(Product.name))
        return list(result.scalars().all())

    async def get_product(self, product_id: int) -> Product:
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        product = result.scalar_one_or_none()
        if product is None or product.is_deleted:
            raise ProductNotFound(product_id)
        return product

    async def search_products(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        component_name: Optional[str] = None,
        ingredient_name: Optional[str] = None,
        product_type: Optional[ProductType] = None,
    ) -> List[Product]:
        query = self._live()
        name_pattern = _like(name)
        if name_pattern:
            query = query.where(Product.name.ilike(name_pattern))
        description_pattern = _like(description)
        if description_pattern:
            query = query.where(Product.description.ilike(description_pattern))
        component_pattern = _like(component_name)
        if component_pattern:
            query = query.where(
                Product.compositions.any(ProductComposition.component_name.ilike(component_pattern))
            )
        ingredient_pattern = _like(ingredient_name)
        if ingredient_pattern:
            query = query.where(
                Product.ingredients.any(ProductIngredient.ingredient_name.ilike(ingredient_pattern))
            )
        if product_type is not None:
            query = query.where(Product.product_type == product_type)
        result = await self.db.execute(query.order_by(Product.name))
        return list(result.scalars().all())

    async def filter_options(self) -> dict:
        live = Product.deleted_at.is_(None)
        types = await self.db.execute(
            select(Product.product_type).where(live).distinct()
        )
        components = await self.db.execute(
            select(ProductComposition.component_name)
            .join(Product, ProductComposition.product_id == Product.id)
            .where(live).distinct().order_by(ProductComposition.component_name)
        )
        ingredients = await self.db.execute(
            select(ProductIngredient.ingredient_name)
            .join(Product, ProductIngredient.product_id == Product.id)
            .where(live).distinct().order_by(ProductIngredient.ingredient_name)
        )
        return {
            "product_types": sorted(types.scalars().all(), key=lambda t: t.value),
            "components": list(components.scalars().all()),
            "ingredients": list(ingredients.scalars().all()),
        }

    async def products_by_user(self, user: User) -> List[Product]:
        result = await self.db.execute(
            self._live().where(Product.created_by_id == user.id).order_by(Product.created_at.desc())
        )
        return list(result.scalars().all())

    async def _name_taken(self, name: str, exclude_id: Optional[int] = None) -> bool:
        query = select(Product.id).where(
            func.lower(Product.name) == name.strip().lower(),
            Product.deleted_at.is_(None),
        )
        if exclude_id is not None:
            query = query.where(Product.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none() is not None

    async def create_product(self, request: ProductRequest, user: User) -> Product:
        validate_product_input(request)
        if await self._name_taken(request.name):
            raise DuplicateProduct(request.name)

        product = Product(
            name=input_sanitizer.sanitize(request.name),
            description=input_sanitizer.sanitize_description(request.description),
            product_type=request.product_type,
            created_by_id=user.id,
            compositions=build_compositions(request),
            ingredients=build_ingredients(request),
        )
        self.db.add(product)
        await self.db.flush()
        await self.db.refresh(product)
        logger.info(f"Product created: {product.name!r} by {user.email}", extra={"product_id": product.id})
        return product

    async def update_product(self, product_id: int, request: ProductRequest, user: User) -> Product:
        validate_product_input(request)
        product = await self.get_product(product_id)
        ensure_can_modify(product, user, "update")
        if await self._name_taken(request.name, exclude_id=product_id):
            raise DuplicateProduct(request.name)

        product.name = input_sanitizer.sanitize(request.name)
        product.description = input_sanitizer.sanitize_description(request.description)
        product.product_type = request.product_type
        product.compositions = build_compositions(request)
        product.ingredients = build_ingredients(request)
        await self.db.flush()
        await self.db.refresh(product)
        logger.info(f"Product updated by {user.email}", extra={"product_id": product.id})
        return product

    async def delete_product(self, product_id: int, user: User) -> None:
        product = await self.get_product(product_id)
        ensure_can_modify(product, user, "delete")
        product.deleted_at = datetime.now(timezone.utc)
        await self.db.flush()
        logger.info(f"Product {product_id} soft deleted by user {user.id}", extra={"product_id": product_id})
