"""Lookup tables built from the flat Directus collections."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional

from ..utils import rel_id, to_decimal
from .divisions import canonical_division


@dataclass(frozen=True)
class ProductRecord:
    product_id: str
    name: str
    brand: str
    section: str
    parent_id: Optional[str]
    unit_cost: Decimal


def _name_map(rows: Iterable[Mapping[str, Any]], id_field: str, name_field: str) -> Dict[str, str]:
    result: Dict[str, str] = {}
    for row in rows:
        key = rel_id(row.get(id_field))
        if key:
            result[key] = str(row.get(name_field) or "").upper()
    return result


def _lookup_name(raw: Any, names: Mapping[str, str], name_field: str) -> str:
    if isinstance(raw, dict) and raw.get(name_field):
        return str(raw[name_field]).upper()
    return names.get(rel_id(raw), "")


def _link_sort_key(row: Mapping[str, Any]):
    raw = row.get("id")
    try:
        return (0, int(raw))
    except (TypeError, ValueError):
        return (1, 0)


def _parent_of(product_id: str, raw_parent: Any) -> Optional[str]:
    parent = rel_id(raw_parent)
    if not parent or parent == "0" or parent == product_id:
        return None
    return parent


class ReferenceData:
    """Key -> value maps shared by one aggregation run.

    Usage:
        refs = ReferenceData.build(products=..., links=..., suppliers=...)
        refs.supplier_name_for("42")
    """

    def __init__(
        self,
        products: Dict[str, ProductRecord],
        primary_supplier: Dict[str, str],
        supplier_names: Dict[str, str],
        salesman_division: Dict[str, str],
        division_names: Dict[str, str],
    ) -> None:
        self.products = products
        self.primary_supplier = primary_supplier
        self.supplier_names = supplier_names
        self.salesman_division = salesman_division
        self.division_names = division_names

    @classmethod
    def build(
        cls,
        *,
        products: Iterable[Mapping[str, Any]] = (),
        links: Iterable[Mapping[str, Any]] = (),
        suppliers: Iterable[Mapping[str, Any]] = (),
        salesmen: Iterable[Mapping[str, Any]] = (),
        divisions: Iterable[Mapping[str, Any]] = (),
        brands: Iterable[Mapping[str, Any]] = (),
        sections: Iterable[Mapping[str, Any]] = (),
    ) -> "ReferenceData":
        brand_names = _name_map(brands, "brand_id", "brand_name")
        section_names = _name_map(sections, "section_id", "section_name")

        product_map: Dict[str, ProductRecord] = {}
        for row in products:
            pid = rel_id(row.get("product_id"))
            if not pid:
                continue
            cost = to_decimal(row.get("cost_per_unit")) or to_decimal(
                row.get("estimated_unit_cost")
            )
            product_map[pid] = ProductRecord(
                product_id=pid,
                name=str(row.get("product_name") or ""),
                brand=_lookup_name(row.get("product_brand"), brand_names, "brand_name"),
                section=_lookup_name(
                    row.get("product_section"), section_names, "section_name"
                ),
                parent_id=_parent_of(pid, row.get("parent_id")),
                unit_cost=cost,
            )

        primary: Dict[str, str] = {}
        for row in sorted(links, key=_link_sort_key):
            pid = rel_id(row.get("product_id"))
            sid = rel_id(row.get("supplier_id"))
            if pid and sid and pid not in primary:
                primary[pid] = sid

        supplier_names: Dict[str, str] = {}
        for row in suppliers:
            sid = rel_id(row.get("id"))
            if sid:
                supplier_names[sid] = str(row.get("supplier_name") or "").strip()

        salesman_division: Dict[str, str] = {}
        for row in salesmen:
            sid = rel_id(row.get("id"))
            did = rel_id(row.get("division_id"))
            if sid and did:
                salesman_division[sid] = did

        division_names: Dict[str, str] = {}
        for row in divisions:
            did = rel_id(row.get("division_id"))
            name = canonical_division(row.get("division_name"))
            if did and name:
                division_names[did] = name

        return cls(product_map, primary, supplier_names, salesman_division, division_names)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def product(self, product_id: str) -> Optional[ProductRecord]:
        return self.products.get(product_id)

    def unit_cost(self, product_id: str) -> Decimal:
        record = self.products.get(product_id)
        return record.unit_cost if record else Decimal("0")

    def effective_supplier(self, product_id: str) -> Optional[str]:
        """Return the supplier linked to the product, or to its parent.

        Only one parent level is consulted.
        """
        supplier = self.primary_supplier.get(product_id)
        if supplier:
            return supplier
        record = self.products.get(product_id)
        if record and record.parent_id:
            return self.primary_supplier.get(record.parent_id)
        return None

    def supplier_name_for(self, product_id: str) -> Optional[str]:
        supplier_id = self.effective_supplier(product_id)
        if supplier_id is None:
            return None
        return self.supplier_names.get(supplier_id) or None

    def division_for_salesman(self, salesman_id: str) -> Optional[str]:
        division_id = self.salesman_division.get(salesman_id)
        if not division_id:
            return None
        return self.division_names.get(division_id)

    def counts(self) -> Dict[str, int]:
        return {
            "productsIndexed": len(self.products),
            "productsWithSupplier": len(self.primary_supplier),
        }


__all__ = ["ProductRecord", "ReferenceData"]
