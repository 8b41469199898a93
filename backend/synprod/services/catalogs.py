"""
Product type and order-capacity catalogs.

Static, process-wide configuration consumed by the recipe scaler:
  - PRODUCT_TYPE_INFO : ProductType -> base unit weight + display name
  - CAPACITY_OPTIONS  : ProductType -> unit key -> {label, multiplier}

A multiplier is relative to one base unit (1 = one base weight per order unit,
e.g. one 380 g tub of Greek yogurt; 5.5 = one drinks pouch holds 5.5 × 220 g).
Lookups raise named errors instead of returning None so a missing unit can
never turn into a silent NaN downstream.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Union

from synprod.services.exceptions import InvalidCapacityUnit, InvalidProductType


class ProductType(str, Enum):
    GREEK_YOGURT = "GREEK_YOGURT"
    CHEESE = "CHEESE"
    DRINKS = "DRINKS"


@dataclass(frozen=True)
class ProductTypeInfo:
    display_name: str
    base_weight: float
    base_weight_unit: str

    @property
    def base_weight_display(self) -> str:
        return f"{self.base_weight:g}{self.base_weight_unit}"


@dataclass(frozen=True)
class CapacityUnit:
    key: str
    label: str
    multiplier: float


# ---------------------------------------------------------------------------
# Catalog tables
# ---------------------------------------------------------------------------

PRODUCT_TYPE_INFO: Dict[ProductType, ProductTypeInfo] = {
    ProductType.GREEK_YOGURT: ProductTypeInfo("Greek Yogurt", 380.0, "g"),
    ProductType.CHEESE:       ProductTypeInfo("Cheese", 400.0, "g"),
    ProductType.DRINKS:       ProductTypeInfo("Drinks", 220.0, "g"),
}

# Insertion order matters: the first unit is the default selection.
CAPACITY_OPTIONS: Dict[ProductType, Dict[str, CapacityUnit]] = {
    ProductType.GREEK_YOGURT: {
        "tubs": CapacityUnit("tubs", "Tubs", 1.0),
    },
    ProductType.CHEESE: {
        "tubs": CapacityUnit("tubs", "Tubs", 1.0),
    },
    ProductType.DRINKS: {
        "bottles": CapacityUnit("bottles", "Bottles", 1.0),
        "pouches": CapacityUnit("pouches", "Pouches", 5.5),
    },
}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def resolve_product_type(product_type: Union[ProductType, str]) -> ProductType:
    """Coerce a ProductType or its string value; raise InvalidProductType otherwise."""
    if isinstance(product_type, ProductType):
        return product_type
    try:
        return ProductType(product_type)
    except ValueError:
        raise InvalidProductType(product_type) from None


def get_product_type_info(product_type: Union[ProductType, str]) -> ProductTypeInfo:
    ptype = resolve_product_type(product_type)
    info = PRODUCT_TYPE_INFO.get(ptype)
    if info is None:
        raise InvalidProductType(product_type)
    return info


def get_capacity_units(product_type: Union[ProductType, str]) -> List[CapacityUnit]:
    ptype = resolve_product_type(product_type)
    units = CAPACITY_OPTIONS.get(ptype)
    if not units:
        raise InvalidProductType(product_type)
    return list(units.values())


def get_capacity_unit(product_type: Union[ProductType, str], capacity_unit_key: str) -> CapacityUnit:
    ptype = resolve_product_type(product_type)
    units = CAPACITY_OPTIONS.get(ptype)
    if not units:
        raise InvalidProductType(product_type)
    unit = units.get(capacity_unit_key)
    if unit is None:
        raise InvalidCapacityUnit(ptype.value, capacity_unit_key)
    return unit


def default_capacity_unit(product_type: Union[ProductType, str]) -> CapacityUnit:
    """First configured unit for the product type (the calculator's initial selection)."""
    return get_capacity_units(product_type)[0]


def catalog_summary() -> List[dict]:
    """Serialisable view of both catalogs, one entry per product type."""
    return [
        {
            "product_type": ptype.value,
            "display_name": info.display_name,
            "base_weight": info.base_weight,
            "base_weight_unit": info.base_weight_unit,
            "base_weight_display": info.base_weight_display,
            "capacity_units": [
                {"key": u.key, "label": u.label, "multiplier": u.multiplier}
                for u in CAPACITY_OPTIONS[ptype].values()
            ],
        }
        for ptype, info in PRODUCT_TYPE_INFO.items()
    ]
