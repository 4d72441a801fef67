import pytest
from fastapi.testclient import TestClient

from conftest import make_product, stock
from stockwatch.main import app
from stockwatch.routers import stock as stock_router

client = TestClient(app)


@pytest.fixture(autouse=True)
def clean_state():
    service = stock_router.controller.service
    service.reset()
    service.notifications.clear()
    yield
    service.reset()
    service.notifications.clear()


def test_root_and_health():
    assert client.get("/").json()["service"] == "Stock Level Monitoring Service"
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["tracked_products"] == 0


def test_ingest_reports_transitions_once():
    body = {"products": [make_product(1, "Beans", stocks=[stock(40, 10)])]}

    first = client.post("/stock/ingest", json=body)
    assert first.status_code == 200
    assert first.json()["ingested"] == 1
    transition = first.json()["transitions"][0]
    assert transition["previous_status"] is None
    assert transition["current_status"]["total_quantity"] == 40
    assert transition["action"] == "initial"

    second = client.post("/stock/ingest", json=body)
    assert second.json()["transitions"] == []


def test_ingest_tolerates_malformed_products():
    response = client.post("/stock/ingest", json={"products": [{"id": 3}, "junk", {"id": 4, "stocks": [{"quantity": "x"}]}]})
    assert response.status_code == 200
    assert response.json()["ingested"] == 3


def test_alerts_endpoint():
    body = {"products": [
        make_product(1, "Shirt", stocks=[stock(0, 5, variant="S"), stock(3, 5, variant="M")]),
        make_product(2, "Gift Card", price=500),
    ]}
    response = client.post("/stock/alerts", json=body)

    assert response.status_code == 200
    data = response.json()
    assert data["total_alerts"] == 3
    assert [a["display_name"] for a in data["out_of_stock"]] == ["Shirt (S)", "Gift Card"]
    assert [a["display_name"] for a in data["low_stock"]] == ["Shirt (M)"]
    assert data["out_of_stock"][1]["is_variant"] is False
    # Alert queries never record statuses
    assert client.get("/stock/status/1").status_code == 404


def test_status_forget_and_reset():
    client.post("/stock/ingest", json={"products": [make_product(8, "Cups", stocks=[stock(4, 8)])]})

    status = client.get("/stock/status/8").json()
    assert status["is_low_stock"] is True
    assert status["low_stock_threshold"] == 8

    assert client.delete("/stock/status/8").json() == {"product_id": 8, "forgotten": True}
    assert client.delete("/stock/status/8").json()["forgotten"] is False
    assert client.get("/stock/status/8").status_code == 404

    client.post("/stock/ingest", json={"products": [make_product(9), make_product(10)]})
    assert client.post("/stock/reset").json() == {"cleared": 2}


def test_invalid_product_id():
    response = client.get("/stock/status/0")
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "Invalid product id"


def test_branch_refresh_and_notifications():
    response = client.post("/stock/branches/1/refresh")
    assert response.status_code == 200
    data = response.json()
    assert data["branch_changed"] is True
    assert data["products"] == 4
    assert len(data["transitions"]) == 4
    assert data["alerts"]["total_alerts"] > 0

    quiet = client.post("/stock/branches/1/refresh").json()
    assert quiet["transitions"] == []

    notifications = client.get("/stock/notifications").json()
    assert notifications["count"] == 4
    # Newest first
    assert notifications["notifications"][0]["product_id"] == 104

    assert client.get("/stock/notifications", params={"limit": 1}).json()["count"] == 1


def test_branch_refresh_source_unavailable(monkeypatch):
    class DownSource:
        async def get_products(self, branch_id):
            raise ConnectionError("down")

    service = stock_router.controller.service
    monkeypatch.setattr(service, "source", DownSource())
    monkeypatch.setattr(service, "retries", 0)

    response = client.post("/stock/branches/1/refresh")
    assert response.status_code == 503
    assert response.json()["detail"]["error"] == "Product source unavailable"


def test_invalid_branch_id():
    assert client.post("/stock/branches/0/refresh").status_code == 400
