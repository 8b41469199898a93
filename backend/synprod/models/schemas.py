"""Pydantic request/response models shared by the auth, user, product and recipe routers."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from synprod.models.orm_models import Role, UserStatus
from synprod.services.catalogs import ProductType, get_product_type_info
from synprod.services.recipe_scaler import ScaleResult, total_composition_percentage


# ── Users ─────────────────────────────────────────────────────────────────────

class UserResponse(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Role
    status: UserStatus
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            status=user.status,
            created_at=user.created_at,
        )


class UpdateUserRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=255)
    role: Role
    status: UserStatus


# ── Recipe lines ──────────────────────────────────────────────────────────────

class CompositionIn(BaseModel):
    component_name: str = Field(..., min_length=1, max_length=100)
    percentage: float = Field(..., ge=0, le=100)
    notes: Optional[str] = Field(None, max_length=255)
    sort_order: Optional[int] = None


class IngredientIn(BaseModel):
    ingredient_name: str = Field(..., min_length=1, max_length=100)
    quantity: float = Field(..., gt=0, description="Amount per one base unit of the product")
    unit: str = Field(..., min_length=1, max_length=20, description="Free-form, e.g. g, tsp")
    notes: Optional[str] = Field(None, max_length=255)
    sort_order: Optional[int] = None


class CompositionOut(CompositionIn):
    model_config = ConfigDict(from_attributes=True)
    id: Optional[int] = None


class IngredientOut(IngredientIn):
    model_config = ConfigDict(from_attributes=True)
    id: Optional[int] = None


# ── Products ──────────────────────────────────────────────────────────────────

class ProductRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    product_type: ProductType
    compositions: List[CompositionIn] = Field(default_factory=list)
    ingredients: List[IngredientIn] = Field(default_factory=list)


class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    product_type: ProductType
    compositions: List[CompositionOut] = Field(default_factory=list)
    ingredients: List[IngredientOut] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by_name: Optional[str] = None
    total_composition_percentage: float = 0.0
    base_weight: float
    base_weight_unit: str
    base_weight_display: str

    @classmethod
    def from_product(cls, product) -> "ProductResponse":
        info = get_product_type_info(product.product_type)
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            product_type=product.product_type,
            compositions=[CompositionOut.model_validate(c) for c in product.compositions],
            ingredients=[IngredientOut.model_validate(i) for i in product.ingredients],
            created_at=product.created_at,
            updated_at=product.updated_at,
            created_by_name=product.created_by_name,
            total_composition_percentage=round(total_composition_percentage(product.compositions), 2),
            base_weight=info.base_weight,
            base_weight_unit=info.base_weight_unit,
            base_weight_display=info.base_weight_display,
        )


class FilterOptionsResponse(BaseModel):
    product_types: List[ProductType]
    components: List[str]
    ingredients: List[str]


# ── Scaling ───────────────────────────────────────────────────────────────────

class ScaleRequest(BaseModel):
    order_quantity: float
    capacity_unit: Optional[str] = Field(None, description="Defaults to the product type's first unit")


class CalculateRequest(ScaleRequest):
    product_type: str
    compositions: List[CompositionIn] = Field(default_factory=list)
    ingredients: List[IngredientIn] = Field(default_factory=list)


class QuantityForWeightRequest(BaseModel):
    total_weight: float
    capacity_unit: Optional[str] = None


class QuantityForWeightResponse(BaseModel):
    product_type: ProductType
    capacity_unit: str
    total_weight: float
    order_quantity: float


class ScaledCompositionOut(BaseModel):
    component_name: str
    percentage: float
    notes: Optional[str] = None
    sort_order: Optional[int] = None
    scaled_weight: float


class ScaledIngredientOut(BaseModel):
    ingredient_name: str
    quantity: float
    unit: str
    notes: Optional[str] = None
    sort_order: Optional[int] = None
    scaled_quantity: float


class ScaleResponse(BaseModel):
    product_type: ProductType
    capacity_unit: str
    capacity_unit_label: str
    multiplier: float
    order_quantity: float
    base_weight: float
    base_weight_unit: str
    total_weight: float
    total_percentage: float
    compositions: List[ScaledCompositionOut]
    ingredients: List[ScaledIngredientOut]

    @classmethod
    def from_result(cls, result: ScaleResult) -> "ScaleResponse":
        return cls(
            product_type=result.product_type,
            capacity_unit=result.capacity_unit.key,
            capacity_unit_label=result.capacity_unit.label,
            multiplier=result.capacity_unit.multiplier,
            order_quantity=result.order_quantity,
            base_weight=result.base_weight,
            base_weight_unit=result.base_weight_unit,
            total_weight=result.total_weight,
            total_percentage=result.total_percentage,
            compositions=[
                ScaledCompositionOut(
                    component_name=s.composition.component_name,
                    percentage=s.composition.percentage,
                    notes=s.composition.notes,
                    sort_order=s.composition.sort_order,
                    scaled_weight=s.scaled_weight,
                )
                for s in result.per_composition
            ],
            ingredients=[
                ScaledIngredientOut(
                    ingredient_name=s.ingredient.ingredient_name,
                    quantity=s.ingredient.quantity,
                    unit=s.ingredient.unit,
                    notes=s.ingredient.notes,
                    sort_order=s.ingredient.sort_order,
                    scaled_quantity=s.scaled_quantity,
                )
                for s in result.per_ingredient
            ],
        )
