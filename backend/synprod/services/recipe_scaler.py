"""
RecipeScaler — order-capacity calculator for production recipes.

A recipe is defined for one base unit of its product type (e.g. 380 g of
Greek yogurt): compositions are percentages of that weight, ingredients are
absolute quantities per base unit. Scaling to an order:

    total_weight     = base_weight × order_quantity × unit_multiplier
    component_weight = total_weight × percentage / 100
    ingredient_qty   = quantity × (total_weight / base_weight)

Inverse (user types a target total weight):

    order_quantity   = max(target, 0) / (base_weight × unit_multiplier)

A NaN or infinite order quantity is rejected like a negative one; a NaN or
infinite target weight counts as 0.

Percentages are used exactly as stored. A recipe that is mid-edit and does
not yet sum to 100 % still scales each component independently.

All values are returned unrounded; display rounding is the caller's job so
chained computations (screen → PDF) do not compound rounding error.
"""

import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from synprod.services.catalogs import (
    CapacityUnit,
    ProductType,
    default_capacity_unit,
    get_capacity_unit,
    get_product_type_info,
    resolve_product_type,
)
from synprod.services.exceptions import InvalidQuantity


@dataclass(frozen=True)
class ScaledComposition:
    composition: Any
    scaled_weight: float


@dataclass(frozen=True)
class ScaledIngredient:
    ingredient: Any
    scaled_quantity: float


@dataclass(frozen=True)
class ScaleResult:
    product_type: ProductType
    capacity_unit: CapacityUnit
    order_quantity: float
    base_weight: float
    base_weight_unit: str
    total_weight: float
    per_composition: List[ScaledComposition] = field(default_factory=list)
    per_ingredient: List[ScaledIngredient] = field(default_factory=list)

    @property
    def ratio(self) -> float:
        """Number of base units contained in the order."""
        return self.total_weight / self.base_weight

    @property
    def total_percentage(self) -> float:
        return total_composition_percentage(s.composition for s in self.per_composition)


def total_composition_percentage(compositions) -> float:
    return sum((c.percentage or 0.0) for c in compositions)


class RecipeScaler:
    """
    Stateless scaling engine. Safe to share across threads and requests;
    identical inputs always produce bit-identical outputs.
    """

    def scale(
        self,
        product_type,
        compositions: Sequence[Any],
        ingredients: Sequence[Any],
        order_quantity: float,
        capacity_unit_key: str,
    ) -> ScaleResult:
        """
        Scale compositions and ingredients to an order.

        ``compositions`` items need a ``percentage`` attribute and
        ``ingredients`` items a ``quantity`` attribute (ORM rows, pydantic
        models and the dataclasses in synprod.models.recipe all qualify).

        Raises InvalidProductType, InvalidCapacityUnit or InvalidQuantity.
        """
        ptype = resolve_product_type(product_type)
        info = get_product_type_info(ptype)
        unit = get_capacity_unit(ptype, capacity_unit_key)
        if order_quantity is None or not math.isfinite(order_quantity) or order_quantity < 0:
            raise InvalidQuantity(order_quantity)

        base_weight = info.base_weight
        total_weight = base_weight * order_quantity * unit.multiplier
        ratio = total_weight / base_weight

        per_composition = [
            ScaledComposition(c, total_weight * (c.percentage or 0.0) / 100)
            for c in compositions
        ]
        per_ingredient = [
            ScaledIngredient(i, (i.quantity or 0.0) * ratio)
            for i in ingredients
        ]

        return ScaleResult(
            product_type=ptype,
            capacity_unit=unit,
            order_quantity=order_quantity,
            base_weight=base_weight,
            base_weight_unit=info.base_weight_unit,
            total_weight=total_weight,
            per_composition=per_composition,
            per_ingredient=per_ingredient,
        )

    def scale_recipe(
        self,
        recipe: Any,
        order_quantity: float,
        capacity_unit_key: Optional[str] = None,
    ) -> ScaleResult:
        """Scale a Recipe/Product; falls back to the type's first capacity unit."""
        unit_key = capacity_unit_key or default_capacity_unit(recipe.product_type).key
        return self.scale(
            recipe.product_type,
            recipe.compositions or [],
            recipe.ingredients or [],
            order_quantity,
            unit_key,
        )

    def total_weight_to_quantity(
        self,
        product_type,
        capacity_unit_key: str,
        target_total_weight: float,
    ) -> float:
        """Inverse of the total-weight step. Negative or non-finite targets clamp to 0."""
        info = get_product_type_info(product_type)
        unit = get_capacity_unit(product_type, capacity_unit_key)
        target = target_total_weight
        if target is None or not math.isfinite(target) or target < 0:
            target = 0.0
        return target / (info.base_weight * unit.multiplier)
