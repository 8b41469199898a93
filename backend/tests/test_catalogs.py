"""Catalog lookups: base weights, capacity units and defaults."""

import pytest

from synprod.services.catalogs import (
    CAPACITY_OPTIONS,
    PRODUCT_TYPE_INFO,
    ProductType,
    catalog_summary,
    default_capacity_unit,
    get_capacity_unit,
    get_capacity_units,
    get_product_type_info,
    resolve_product_type,
)
from synprod.services.exceptions import InvalidCapacityUnit, InvalidProductType


class TestProductTypeInfo:

    @pytest.mark.parametrize("ptype,weight", [
        ("GREEK_YOGURT", 380.0),
        ("CHEESE", 400.0),
        ("DRINKS", 220.0),
    ])
    def test_base_weights(self, ptype, weight):
        info = get_product_type_info(ptype)
        assert info.base_weight == weight
        assert info.base_weight_unit == "g"

    def test_base_weight_display(self):
        assert get_product_type_info(ProductType.DRINKS).base_weight_display == "220g"

    def test_every_type_has_units(self):
        assert set(PRODUCT_TYPE_INFO) == set(CAPACITY_OPTIONS)
        for ptype in ProductType:
            assert get_capacity_units(ptype)

    def test_unknown_type(self):
        with pytest.raises(InvalidProductType) as exc_info:
            resolve_product_type("BUTTER")
        assert exc_info.value.product_type == "BUTTER"


class TestCapacityUnits:

    def test_drinks_units_in_order(self):
        keys = [u.key for u in get_capacity_units("DRINKS")]
        assert keys == ["bottles", "pouches"]

    def test_pouch_multiplier(self):
        assert get_capacity_unit("DRINKS", "pouches").multiplier == 5.5

    def test_default_is_first(self):
        assert default_capacity_unit("DRINKS").key == "bottles"
        assert default_capacity_unit("GREEK_YOGURT").key == "tubs"

    def test_unit_not_offered_for_type(self):
        with pytest.raises(InvalidCapacityUnit) as exc_info:
            get_capacity_unit("CHEESE", "pouches")
        assert exc_info.value.product_type == "CHEESE"


class TestCatalogSummary:

    def test_summary_shape(self):
        summary = catalog_summary()
        assert [entry["product_type"] for entry in summary] == ["GREEK_YOGURT", "CHEESE", "DRINKS"]
        drinks = summary[2]
        assert drinks["base_weight_display"] == "220g"
        assert drinks["capacity_units"][1] == {"key": "pouches", "label": "Pouches", "multiplier": 5.5}
