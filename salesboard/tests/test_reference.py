from decimal import Decimal

from salesboard.domain.reference import ReferenceData


def _refs(**overrides):
    data = dict(
        products=[
            {"product_id": 1, "product_name": "Parent", "parent_id": 0},
            {"product_id": 2, "product_name": "Variant", "parent_id": 1},
            {"product_id": 3, "product_name": "Grandchild", "parent_id": 2},
            {"product_id": 4, "product_name": "Orphan", "parent_id": None},
        ],
        links=[
            {"id": 20, "product_id": 1, "supplier_id": 200},
            {"id": 10, "product_id": 1, "supplier_id": 100},
        ],
        suppliers=[
            {"id": 100, "supplier_name": "Purefoods Corp"},
            {"id": 200, "supplier_name": "Other Supplier"},
        ],
    )
    data.update(overrides)
    return ReferenceData.build(**data)


def test_primary_supplier_is_lowest_link_id():
    refs = _refs()
    assert refs.effective_supplier("1") == "100"
    assert refs.supplier_name_for("1") == "Purefoods Corp"


def test_variant_falls_back_to_parent_supplier():
    refs = _refs()
    assert refs.effective_supplier("2") == "100"


def test_parent_fallback_is_single_level():
    refs = _refs()
    assert refs.effective_supplier("3") is None


def test_unlinked_and_unknown_products_resolve_to_none():
    refs = _refs()
    assert refs.effective_supplier("4") is None
    assert refs.effective_supplier("999") is None
    assert refs.supplier_name_for("999") is None


def test_unit_cost_prefers_cost_per_unit():
    refs = _refs(
        products=[
            {"product_id": 1, "cost_per_unit": "4.50", "estimated_unit_cost": 3},
            {"product_id": 2, "cost_per_unit": None, "estimated_unit_cost": "3"},
            {"product_id": 3},
        ]
    )
    assert refs.unit_cost("1") == Decimal("4.50")
    assert refs.unit_cost("2") == Decimal("3")
    assert refs.unit_cost("3") == Decimal("0")
    assert refs.unit_cost("404") == Decimal("0")


def test_brand_and_section_names_are_resolved():
    refs = _refs(
        products=[
            {"product_id": 1, "product_brand": 5, "product_section": {"section_id": 9}},
            {"product_id": 2, "product_brand": {"brand_id": 6, "brand_name": "Cdo"}},
        ],
        brands=[{"brand_id": 5, "brand_name": "Lucky Me"}],
        sections=[{"section_id": 9, "section_name": "Noodles"}],
    )
    assert refs.product("1").brand == "LUCKY ME"
    assert refs.product("1").section == "NOODLES"
    assert refs.product("2").brand == "CDO"


def test_salesman_division_is_canonicalised():
    refs = _refs(
        salesmen=[{"id": 7, "division_id": 1}, {"id": 8, "division_id": 99}],
        divisions=[{"division_id": 1, "division_name": "FROZEN GOODS"}],
    )
    assert refs.division_for_salesman("7") == "Frozen Goods"
    assert refs.division_for_salesman("8") is None
    assert refs.division_for_salesman("404") is None
