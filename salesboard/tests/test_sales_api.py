from salesboard.domain.executive import COLLECTION_SPECS
from salesboard.metrics import EXECUTIVE_REQUESTS_TOTAL


def _seed(fake_directus):
    fake_directus.collections.update(
        {
            "sales_invoice": [
                {"invoice_id": 1, "invoice_no": "A-1", "invoice_date": "2024-03-10"},
                {"invoice_id": 2, "invoice_no": "A-2", "invoice_date": "2024-02-10"},
            ],
            "sales_invoice_details": [
                {"invoice_no": "A-1", "product_id": 7, "quantity": 10,
                 "total_amount": 100, "discount_amount": 5},
                {"invoice_no": "A-2", "product_id": 7, "quantity": 1, "total_amount": 500},
            ],
            "products": [
                {"product_id": 7, "product_name": "Pancit Canton", "product_brand": 1, "cost_per_unit": 3},
            ],
            "brand": [{"brand_id": 1, "brand_name": "Lucky Me"}],
            "salesman": [{"id": 5, "division_id": 1}],
            "division": [{"division_id": 1, "division_name": "Dry Goods"}],
            "collection": [
                {"collection_date": "2024-03-11", "salesman_id": 5, "totalAmount": 40, "isCancelled": 0},
            ],
        }
    )


def _counter(outcome):
    return EXECUTIVE_REQUESTS_TOTAL.labels(outcome=outcome)._value.get()


def test_executive_dashboard_returns_every_section(client, fake_directus):
    _seed(fake_directus)
    before = _counter("ok")

    response = client.get(
        "/api/sales/executive?fromDate=03/01/2024&toDate=03/31/2024&division=all"
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert set(payload) >= {
        "kpi",
        "kpiByDivision",
        "divisionSales",
        "salesTrend",
        "supplierSalesByDivision",
        "heatmapDataByDivision",
        "warnings",
        "_debug",
    }
    assert payload["kpi"]["totalSales"] == 95.0
    assert payload["kpi"]["totalCOGS"] == 30.0
    assert payload["kpi"]["totalCollected"] == 40.0
    assert payload["salesTrend"][0]["date"] == "2024-03"
    assert payload["_debug"]["fromDate"] == "2024-03-01"
    assert payload["_debug"]["toDate"] == "2024-03-31"
    assert payload["_debug"]["hasToken"] is True
    assert payload["_debug"]["counts"]["sales_invoice"] == 2
    assert "test-token" not in response.get_data(as_text=True)
    assert response.headers["Cache-Control"] == "no-store"
    assert _counter("ok") == before + 1


def test_partial_failure_is_reported_as_warning(client, fake_directus):
    _seed(fake_directus)
    fake_directus.fail_always("collection", 403)

    response = client.get("/api/sales/executive?fromDate=2024-03-01&toDate=2024-03-31")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["kpi"]["totalCollected"] == 0.0
    assert payload["warnings"]
    assert payload["_debug"]["errors"][0]["collection"] == "collection"


def test_total_directus_failure_returns_500(client, fake_directus):
    for spec in COLLECTION_SPECS:
        fake_directus.fail_always(spec.name, 401)
    before = _counter("fetch_failed")

    response = client.get("/api/sales/executive")

    assert response.status_code == 500
    payload = response.get_json()
    assert payload["error"] == "Failed to load any data from Directus"
    assert payload["data"] == {}
    assert len(payload["_debug"]["errors"]) == len(COLLECTION_SPECS)
    assert _counter("fetch_failed") == before + 1


def test_unexpected_error_returns_500_with_hint(client, fake_directus, monkeypatch):
    _seed(fake_directus)

    def explode(self):
        raise RuntimeError("aggregation exploded")

    monkeypatch.setattr(
        "salesboard.domain.executive.ExecutiveAggregator.finalize", explode
    )
    before = _counter("error")

    response = client.get("/api/sales/executive")

    assert response.status_code == 500
    payload = response.get_json()
    assert payload["error"] == "Failed to build executive sales dashboard"
    assert payload["details"] == "aggregation exploded"
    assert "_debug.errors" in payload["hint"]
    assert payload["_debug"]["division"] == "all"
    assert _counter("error") == before + 1


def test_division_query_parameter_filters(client, fake_directus):
    _seed(fake_directus)

    response = client.get("/api/sales/executive?division=Frozen%20Goods")

    payload = response.get_json()
    assert response.status_code == 200
    assert list(payload["kpiByDivision"]) == ["Frozen Goods"]
    assert payload["kpi"]["totalSales"] == 0.0
