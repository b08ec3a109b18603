"""Product to sales division classification rules.

Every comparison is a case-insensitive substring test, so a keyword such as
``Fiesta`` claims any product whose brand or name merely contains it. That
looseness is the accepted behaviour of the dashboard; tighten the tables here
rather than the matching.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

DRY_GOODS = "Dry Goods"
FROZEN_GOODS = "Frozen Goods"
INDUSTRIAL = "Industrial"
MAMA_PINAS = "Mama Pina's"
UNASSIGNED = "Unassigned"

ALL_DIVISIONS: Tuple[str, ...] = (DRY_GOODS, FROZEN_GOODS, INDUSTRIAL, MAMA_PINAS)
DEFAULT_DIVISION = DRY_GOODS

# Scanned in ALL_DIVISIONS order, keywords in list order.
DIVISION_BRANDS: Dict[str, List[str]] = {
    DRY_GOODS: [
        "Lucky Me",
        "Nescafe",
        "Kopiko",
        "Bear Brand",
        "Maggi",
        "Surf",
        "Downy",
        "Richeese",
        "Richoco",
        "Keratin",
        "KeratinPlus",
        "Dove",
        "Palmolive",
        "Safeguard",
        "Sunsilk",
        "Cream Silk",
        "Head & Shoulders",
        "Colgate",
        "Close Up",
        "Bioderm",
        "Casino",
        "Efficascent",
        "Great Taste",
        "Presto",
        "Tide",
        "Ariel",
        "Champion",
        "Callee",
        "Systemack",
        "Wings",
        "Pride",
        "Smart",
    ],
    FROZEN_GOODS: [
        "CDO",
        "Tender Juicy",
        "Mekeni",
        "Virginia",
        "Purefoods",
        "Aviko",
        "Swift",
        "Argentina",
        "Star",
        "Holiday",
        "Highland",
        "Bibbo",
        "Home Made",
        "Young Pork",
    ],
    INDUSTRIAL: [
        "Mama Sita",
        "Datu Puti",
        "Silver Swan",
        "Golden Fiesta",
        "LPG",
        "Solane",
        "Gasul",
        "Fiesta",
        "UFC",
        "Super Q",
        "Biguerlai",
        "Equal",
        "Jufran",
    ],
    MAMA_PINAS: ["Mama Pina", "Mama Pinas", "Mama Pina's"],
}

DIVISION_SECTIONS: Dict[str, List[str]] = {
    DRY_GOODS: [
        "Grocery",
        "Canned",
        "Noodles",
        "Beverages",
        "Non-Food",
        "Personal Care",
        "Snacks",
        "Biscuits",
        "Candy",
        "Coffee",
        "Milk",
        "Powder",
    ],
    FROZEN_GOODS: [
        "Frozen",
        "Meat",
        "Processed Meat",
        "Cold Cuts",
        "Ice Cream",
        "Hotdog",
        "Chicken",
        "Pork",
    ],
    INDUSTRIAL: [
        "Condiments",
        "Oil",
        "Sacks",
        "Sugar",
        "Flour",
        "Industrial",
        "Gas",
        "Rice",
        "Salt",
    ],
    MAMA_PINAS: ["Franchise", "Ready to Eat", "Kiosk", "Mama Pina", "MP"],
}

# Supplier name keyword -> division, first containing key wins.
SUPPLIER_DIVISIONS: List[Tuple[str, str]] = [
    ("MEN2", DRY_GOODS),
    ("MEN2 MARKETING", DRY_GOODS),
    ("PUREFOODS", FROZEN_GOODS),
    ("CDO", FROZEN_GOODS),
    ("INDUSTRIAL", INDUSTRIAL),
    ("MAMA PINA", MAMA_PINAS),
    ("VIRGINIA", FROZEN_GOODS),
    ("AVIKO", FROZEN_GOODS),
    ("MEKENI", FROZEN_GOODS),
    ("TIONGSAN", DRY_GOODS),
    ("CSI", DRY_GOODS),
    ("COSTSAVER", DRY_GOODS),
]


def _upper(value: Optional[str]) -> str:
    return str(value or "").upper()


def _match_keywords(text: str, table: Dict[str, List[str]]) -> Optional[str]:
    if not text:
        return None
    for division in ALL_DIVISIONS:
        for keyword in table.get(division, ()):
            if keyword.upper() in text:
                return division
    return None


def match_brand(brand: Optional[str], name: Optional[str]) -> Optional[str]:
    brand_upper = _upper(brand)
    name_upper = _upper(name)
    for division in ALL_DIVISIONS:
        for keyword in DIVISION_BRANDS.get(division, ()):
            key = keyword.upper()
            if (brand_upper and key in brand_upper) or (name_upper and key in name_upper):
                return division
    return None


def match_section(section: Optional[str]) -> Optional[str]:
    return _match_keywords(_upper(section), DIVISION_SECTIONS)


def match_supplier(supplier_name: Optional[str]) -> Optional[str]:
    supplier_upper = _upper(supplier_name)
    if not supplier_upper:
        return None
    for key, division in SUPPLIER_DIVISIONS:
        if key in supplier_upper:
            return division
    return None


def classify_division(
    brand: Optional[str],
    section: Optional[str],
    name: Optional[str],
    supplier_name: Optional[str] = None,
) -> str:
    """Return the division of a product; never ``None``."""
    division = match_brand(brand, name)
    if division:
        return division

    division = match_section(section)
    if division:
        return division

    division = match_supplier(supplier_name)
    if division:
        return division

    if "FROZEN" in _upper(section) or "HOTDOG" in _upper(name):
        return FROZEN_GOODS

    return DEFAULT_DIVISION


def canonical_division(name: Optional[str]) -> Optional[str]:
    """Map a stored division name onto the fixed spelling when it matches."""
    if not name:
        return None
    text = str(name).strip()
    for division in ALL_DIVISIONS:
        if division.upper() == text.upper():
            return division
    return text or None


__all__ = [
    "ALL_DIVISIONS",
    "DEFAULT_DIVISION",
    "DIVISION_BRANDS",
    "DIVISION_SECTIONS",
    "DRY_GOODS",
    "FROZEN_GOODS",
    "INDUSTRIAL",
    "MAMA_PINAS",
    "SUPPLIER_DIVISIONS",
    "UNASSIGNED",
    "canonical_division",
    "classify_division",
    "match_brand",
    "match_section",
    "match_supplier",
]
