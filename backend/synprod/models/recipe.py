"""Plain recipe value objects, shape-compatible with the ORM rows in orm_models."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class Composition:
    component_name: str
    percentage: float
    notes: Optional[str] = None
    sort_order: Optional[int] = None


@dataclass(frozen=True)
class Ingredient:
    ingredient_name: str
    quantity: float
    unit: str
    notes: Optional[str] = None
    sort_order: Optional[int] = None


@dataclass
class Recipe:
    name: str
    product_type: str
    compositions: List[Composition] = field(default_factory=list)
    ingredients: List[Ingredient] = field(default_factory=list)
    description: Optional[str] = None
    id: Optional[int] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
