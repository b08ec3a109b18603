"""
Executive sales dashboard - joins the flat Directus collections and rolls
them up per division.

Usage:
    query = ExecutiveQuery.from_args(request.args)
    result = ExecutiveDashboardService(query).build()
    return jsonify(result.payload), result.status_code
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ..config import directus_base_url, directus_token
from ..directus import CollectionSpec, FetchErrors, fetch_collections
from ..utils import (
    ZERO,
    date_part,
    in_range,
    is_truthy,
    normalize_date,
    percent,
    rel_id,
    round_cents,
    round_money,
    to_decimal,
)
from .divisions import (
    ALL_DIVISIONS,
    UNASSIGNED,
    canonical_division,
    classify_division,
)
from .reference import ReferenceData

LOGGER = logging.getLogger(__name__)

NO_SUPPLIER = "No Supplier"
TOP_SUPPLIERS = 10
CANCELLED_STATUSES = {"void", "cancelled"}

COLLECTION_SPECS: Tuple[CollectionSpec, ...] = (
    CollectionSpec(
        "sales_invoice",
        "invoice_id,invoice_no,invoice_date,status,is_cancelled",
    ),
    CollectionSpec(
        "sales_invoice_details",
        "invoice_no,product_id,quantity,total_amount,discount_amount",
    ),
    CollectionSpec(
        "products",
        "product_id,product_name,product_brand,product_section,parent_id,"
        "cost_per_unit,estimated_unit_cost",
    ),
    CollectionSpec("product_per_supplier", "id,product_id,supplier_id"),
    CollectionSpec("suppliers", "id,supplier_name"),
    CollectionSpec("salesman", "id,division_id"),
    CollectionSpec("division", "division_id,division_name"),
    CollectionSpec("sales_return", "id,return_number,return_date"),
    CollectionSpec(
        "sales_return_details",
        "return_no,product_id,total_amount,discount_amount",
    ),
    CollectionSpec(
        "collection",
        "collection_date,salesman_id,totalAmount,isCancelled",
        page_size=300,
    ),
    CollectionSpec("brand", "brand_id,brand_name"),
    CollectionSpec("sections", "section_id,section_name"),
)

WARNING_MESSAGES = {
    "collection": (
        "Collections data temporarily unavailable. "
        "KPI collection rate may be incomplete."
    ),
    "sales_return": "Returns data unavailable. Net sales exclude returns.",
    "sales_return_details": "Returns data unavailable. Net sales exclude returns.",
    "products": "Product data unavailable. COGS and divisions may be inaccurate.",
}


@dataclass(frozen=True)
class ExecutiveQuery:
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    division: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "ExecutiveQuery":
        raw_division = (args.get("division") or "").strip()
        division = None
        if raw_division and raw_division.lower() != "all":
            division = canonical_division(raw_division)
        return cls(
            from_date=normalize_date(args.get("fromDate")),
            to_date=normalize_date(args.get("toDate")),
            division=division,
        )

    def accepts(self, division: str) -> bool:
        return self.division is None or self.division == division


@dataclass
class DivisionStats:
    sales: Decimal = ZERO
    returns: Decimal = ZERO
    cogs: Decimal = ZERO
    collections: Decimal = ZERO

    @property
    def net_sales(self) -> Decimal:
        return self.sales - self.returns

    @property
    def gross_margin(self) -> Decimal:
        net = self.net_sales
        return percent(net - self.cogs, net)

    @property
    def collection_rate(self) -> Decimal:
        return percent(self.collections, self.net_sales)

    def is_empty(self) -> bool:
        return not (self.sales or self.returns or self.cogs or self.collections)

    def to_kpi(self) -> Dict[str, float]:
        return {
            "totalSales": round_money(self.sales),
            "totalReturns": round_money(self.returns),
            "totalNetSales": round_money(self.net_sales),
            "totalCOGS": round_money(self.cogs),
            "totalCollected": round_money(self.collections),
            "grossMargin": round_money(self.gross_margin),
            "collectionRate": round_money(self.collection_rate),
        }


@dataclass
class TrendBucket:
    sales: Decimal = ZERO
    returns: Decimal = ZERO
    collections: Decimal = ZERO


@dataclass
class AggregationCounts:
    invoices_in_range: int = 0
    line_items_used: int = 0
    return_items_used: int = 0
    collections_used: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "invoicesInRange": self.invoices_in_range,
            "lineItemsUsed": self.line_items_used,
            "returnItemsUsed": self.return_items_used,
            "collectionsUsed": self.collections_used,
        }


def _invoice_ref(value: Any) -> str:
    """Line items reference invoices by id, number or an expanded object."""
    if isinstance(value, dict):
        for key in ("invoice_id", "invoice_no", "id"):
            if value.get(key) is not None:
                return str(value[key])
        return ""
    return rel_id(value)


def _invoice_is_void(invoice: Mapping[str, Any]) -> bool:
    status = str(invoice.get("status") or "").strip().lower()
    return status in CANCELLED_STATUSES or is_truthy(invoice.get("is_cancelled"))


class ExecutiveAggregator:
    """Single-request accumulator for sales, returns and collections."""

    def __init__(self, query: ExecutiveQuery, refs: ReferenceData) -> None:
        self.query = query
        self.refs = refs
        self.grand = DivisionStats()
        self.divisions: "OrderedDict[str, DivisionStats]" = OrderedDict()
        for name in ALL_DIVISIONS:
            if query.accepts(name):
                self.divisions[name] = DivisionStats()
        if query.division and query.division not in self.divisions:
            self.divisions[query.division] = DivisionStats()
        self.trend: Dict[str, TrendBucket] = {}
        self.months: Set[str] = set()
        self.heatmap: Dict[str, Dict[str, Dict[str, Decimal]]] = {}
        self.supplier_sales: Dict[str, Dict[str, Decimal]] = {}
        self.counts = AggregationCounts()
        self._invoices: Dict[str, Tuple[str, Mapping[str, Any]]] = {}
        self._division_cache: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _stats(self, division: str) -> DivisionStats:
        stats = self.divisions.get(division)
        if stats is None:
            stats = self.divisions[division] = DivisionStats()
        return stats

    def _bucket(self, month: str) -> TrendBucket:
        bucket = self.trend.get(month)
        if bucket is None:
            bucket = self.trend[month] = TrendBucket()
        return bucket

    def division_for_product(self, product_id: str) -> str:
        cached = self._division_cache.get(product_id)
        if cached is not None:
            return cached
        record = self.refs.product(product_id)
        division = classify_division(
            record.brand if record else None,
            record.section if record else None,
            record.name if record else None,
            self.refs.supplier_name_for(product_id),
        )
        self._division_cache[product_id] = division
        return division

    def _in_range(self, day: Optional[str]) -> bool:
        return in_range(day, self.query.from_date, self.query.to_date)

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------
    def add_invoices(self, invoices: Iterable[Mapping[str, Any]]) -> None:
        for invoice in invoices:
            day = date_part(invoice.get("invoice_date"))
            if not self._in_range(day) or _invoice_is_void(invoice):
                continue
            entry = (day, invoice)
            primary = rel_id(invoice.get("invoice_id"))
            if primary:
                self._invoices[primary] = entry
            number = rel_id(invoice.get("invoice_no"))
            if number:
                self._invoices.setdefault(number, entry)
            self.months.add(day[:7])
            self._bucket(day[:7])
            self.counts.invoices_in_range += 1

    def add_line_items(self, details: Iterable[Mapping[str, Any]]) -> None:
        for item in details:
            entry = self._invoices.get(_invoice_ref(item.get("invoice_no")))
            if entry is None:
                continue
            day, _invoice = entry

            product_id = rel_id(item.get("product_id"))
            division = self.division_for_product(product_id)
            if not self.query.accepts(division):
                continue

            net = to_decimal(item.get("total_amount")) - to_decimal(
                item.get("discount_amount")
            )
            cogs = self.refs.unit_cost(product_id) * to_decimal(item.get("quantity"))
            month = day[:7]

            self.grand.sales += net
            self.grand.cogs += cogs
            stats = self._stats(division)
            stats.sales += net
            stats.cogs += cogs
            self._bucket(month).sales += net
            self.counts.line_items_used += 1

            if net <= 0:
                continue

            supplier = self.refs.supplier_name_for(product_id) or NO_SUPPLIER
            row = self.heatmap.setdefault(division, {}).setdefault(supplier, {})
            row[month] = row.get(month, ZERO) + net
            ranking = self.supplier_sales.setdefault(division, {})
            ranking[supplier] = ranking.get(supplier, ZERO) + net

    def add_returns(
        self,
        returns: Iterable[Mapping[str, Any]],
        return_details: Iterable[Mapping[str, Any]],
    ) -> None:
        return_dates: Dict[str, str] = {}
        for header in returns:
            day = date_part(header.get("return_date"))
            if not self._in_range(day):
                continue
            for key in ("id", "return_number"):
                ref = rel_id(header.get(key))
                if ref:
                    return_dates.setdefault(ref, day)

        for item in return_details:
            day = return_dates.get(rel_id(item.get("return_no")))
            if day is None:
                continue

            product_id = rel_id(item.get("product_id"))
            division = self.division_for_product(product_id)
            if not self.query.accepts(division):
                continue

            value = abs(
                to_decimal(item.get("total_amount"))
                - to_decimal(item.get("discount_amount"))
            )
            self.grand.returns += value
            self._stats(division).returns += value
            self._bucket(day[:7]).returns += value
            self.counts.return_items_used += 1

    def add_collections(self, collections: Iterable[Mapping[str, Any]]) -> None:
        for row in collections:
            day = date_part(row.get("collection_date"))
            if not self._in_range(day) or is_truthy(row.get("isCancelled")):
                continue

            division = (
                self.refs.division_for_salesman(rel_id(row.get("salesman_id")))
                or UNASSIGNED
            )
            if not self.query.accepts(division):
                continue

            amount = to_decimal(row.get("totalAmount"))
            self.grand.collections += amount
            self._stats(division).collections += amount
            self._bucket(day[:7]).collections += amount
            self.counts.collections_used += 1

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def finalize(self) -> Dict[str, Any]:
        months = sorted(self.months)

        kpi_by_division = OrderedDict()
        for name, stats in self.divisions.items():
            if name not in ALL_DIVISIONS and name != self.query.division and stats.is_empty():
                continue
            kpi_by_division[name] = stats.to_kpi()

        division_sales = sorted(
            (
                (name, stats.net_sales)
                for name, stats in self.divisions.items()
                if name != UNASSIGNED
            ),
            key=lambda pair: pair[1],
            reverse=True,
        )

        heatmap_final: Dict[str, List[dict]] = {}
        for division, suppliers in self.heatmap.items():
            rows = []
            for supplier, cells in suppliers.items():
                rounded = {month: round_cents(cells.get(month, ZERO)) for month in months}
                # Row total is the sum of the published cells.
                total = sum(rounded.values(), ZERO)
                row: Dict[str, Any] = {"supplier": supplier, "total": round_money(total)}
                for month in months:
                    row[month] = float(rounded[month])
                rows.append((total, row))
            rows.sort(key=lambda pair: pair[0], reverse=True)
            heatmap_final[division] = [row for _total, row in rows]

        supplier_final: Dict[str, List[dict]] = {}
        for division, ranking in self.supplier_sales.items():
            ranked = sorted(ranking.items(), key=lambda pair: pair[1], reverse=True)
            supplier_final[division] = [
                {"name": name, "netSales": round_money(value)}
                for name, value in ranked[:TOP_SUPPLIERS]
            ]

        sales_trend = [
            {
                "date": month,
                "sales": round_money(bucket.sales),
                "returns": round_money(bucket.returns),
                "netSales": round_money(bucket.sales - bucket.returns),
                "collections": round_money(bucket.collections),
            }
            for month, bucket in sorted(self.trend.items())
        ]

        return {
            "kpi": self.grand.to_kpi(),
            "kpiByDivision": kpi_by_division,
            "divisionSales": [
                {"division": name, "netSales": round_money(value)}
                for name, value in division_sales
            ],
            "salesTrend": sales_trend,
            "supplierSalesByDivision": supplier_final,
            "heatmapDataByDivision": heatmap_final,
        }


@dataclass
class DashboardResult:
    payload: Dict[str, Any]
    status_code: int = 200
    outcome: str = "ok"
    warnings: List[str] = field(default_factory=list)


Fetcher = Callable[[Iterable[CollectionSpec], FetchErrors], Dict[str, List[dict]]]


class ExecutiveDashboardService:
    """Fetch every collection, aggregate and shape the response payload."""

    def __init__(
        self,
        query: ExecutiveQuery,
        fetcher: Optional[Fetcher] = None,
        errors: Optional[FetchErrors] = None,
    ) -> None:
        self.query = query
        self.fetcher = fetcher or fetch_collections
        self.errors = errors if errors is not None else FetchErrors()
        self.data: Dict[str, List[dict]] = {}

    def debug_info(self, counts: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "directusUrl": directus_base_url() + "/",
            "hasToken": bool(directus_token()),
            "fromDate": self.query.from_date,
            "toDate": self.query.to_date,
            "division": self.query.division or "all",
            "counts": {spec.name: len(self.data.get(spec.name, [])) for spec in COLLECTION_SPECS},
            "errors": self.errors.as_list(),
        }
        if counts:
            info["counts"].update(counts)
        return info

    def _warnings(self) -> List[str]:
        warnings: List[str] = []
        for name in sorted(self.errors.collections()):
            message = WARNING_MESSAGES.get(
                name, f"Collection '{name}' unavailable; dependent figures may be incomplete."
            )
            if message not in warnings:
                warnings.append(message)
        return warnings

    def build(self) -> DashboardResult:
        self.data = self.fetcher(COLLECTION_SPECS, self.errors)

        if self.errors and not any(self.data.get(spec.name) for spec in COLLECTION_SPECS):
            LOGGER.error(
                "Every Directus collection failed to load (%s errors)", len(self.errors)
            )
            return DashboardResult(
                payload={
                    "error": "Failed to load any data from Directus",
                    "data": {},
                    "_debug": self.debug_info(),
                },
                status_code=500,
                outcome="fetch_failed",
            )

        refs = ReferenceData.build(
            products=self.data.get("products", []),
            links=self.data.get("product_per_supplier", []),
            suppliers=self.data.get("suppliers", []),
            salesmen=self.data.get("salesman", []),
            divisions=self.data.get("division", []),
            brands=self.data.get("brand", []),
            sections=self.data.get("sections", []),
        )

        aggregator = ExecutiveAggregator(self.query, refs)
        aggregator.add_invoices(self.data.get("sales_invoice", []))
        aggregator.add_line_items(self.data.get("sales_invoice_details", []))
        aggregator.add_returns(
            self.data.get("sales_return", []),
            self.data.get("sales_return_details", []),
        )
        aggregator.add_collections(self.data.get("collection", []))

        payload = aggregator.finalize()
        warnings = self._warnings()
        payload["warnings"] = warnings
        counts = aggregator.counts.to_dict()
        counts.update(refs.counts())
        payload["_debug"] = self.debug_info(counts)

        return DashboardResult(
            payload=payload,
            status_code=200,
            outcome="partial" if self.errors else "ok",
            warnings=warnings,
        )


__all__ = [
    "COLLECTION_SPECS",
    "DashboardResult",
    "DivisionStats",
    "ExecutiveAggregator",
    "ExecutiveDashboardService",
    "ExecutiveQuery",
    "NO_SUPPLIER",
    "TOP_SUPPLIERS",
]
