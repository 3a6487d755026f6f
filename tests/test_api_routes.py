from decimal import Decimal

import httpx
import pytest


@pytest.fixture()
async def api_client(session_factory, insight_engine):
    from main import app
    from spendsense.core.database import get_db
    from spendsense.core.dependencies import get_insight_engine

    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_insight_engine] = lambda: insight_engine
    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_insight_engine, None)


async def _register(client, owner_id="alice", device_token="device-alice"):
    response = await client.put(
        f"/api/users/{owner_id}",
        json={"name": "Alice", "email": f"{owner_id}@example.com", "device_token": device_token},
    )
    assert response.status_code == 200
    return response.json()


async def test_health(api_client):
    response = await api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok", "scheduler": "off"}


async def test_profile_upsert_and_email_conflict(api_client):
    profile = await _register(api_client)
    assert profile == {"id": "alice", "name": "Alice", "email": "alice@example.com", "has_device_token": True}

    response = await api_client.put("/api/users/bob", json={"email": "alice@example.com"})
    assert response.status_code == 409

    response = await api_client.put("/api/users/alice/device-token", json={"device_token": None})
    assert response.json()["has_device_token"] is False


async def test_unknown_user_is_404(api_client):
    response = await api_client.get("/api/users/ghost/expenses")

    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"


async def test_expense_creation_triggers_insights(api_client, transport):
    await _register(api_client)
    for day, amount in (("2026-03-02", "50"), ("2026-03-05", "50")):
        response = await api_client.post(
            "/api/users/alice/expenses",
            json={"amount": amount, "category": "Food", "occurred_at": f"{day}T02:00:00Z"},
        )
        assert response.status_code == 201

    response = await api_client.post(
        "/api/users/alice/expenses",
        json={"amount": "75.00", "category": "Food", "occurred_at": "2026-03-18T00:30:00Z"},
    )
    assert response.status_code == 201
    assert Decimal(response.json()["amount"]) == Decimal("75")

    alerts = (await api_client.get("/api/users/alice/insights", params={"kind": "Alert"})).json()
    titles = [alert["title"] for alert in alerts]
    # The first two Food expenses each count as a new category (up to one prior record)
    assert titles == ["High Spending on Food", "New Category: Food", "New Category: Food"]

    latest = (await api_client.get("/api/users/alice/insights/latest")).json()["insight"]
    assert latest["title"] == "High Spending on Food"
    assert (await api_client.get("/api/users/alice/insights/unread-count")).json() == {"unread": 3}

    response = await api_client.post(f"/api/users/alice/insights/{latest['id']}/acknowledge")
    assert response.status_code == 200
    assert response.json()["acknowledged"] is True
    assert (await api_client.get("/api/users/alice/insights/unread-count")).json() == {"unread": 2}

    assert len(transport.sent) == 3


async def test_expense_requires_category_and_positive_amount(api_client):
    await _register(api_client)

    missing_category = await api_client.post("/api/users/alice/expenses", json={"amount": "5"})
    negative = await api_client.post("/api/users/alice/expenses", json={"amount": "-5", "category": "Food"})

    assert missing_category.status_code == 422
    assert negative.status_code == 422


async def test_delete_expense_rechecks_balance(api_client):
    await _register(api_client)
    await api_client.post("/api/users/alice/income", json={"amount": "100", "occurred_at": "2026-03-01T00:00:00Z"})
    created = await api_client.post(
        "/api/users/alice/expenses",
        json={"amount": "150", "category": "Rent", "occurred_at": "2026-03-10T00:00:00Z"},
    )
    record_id = created.json()["id"]
    alerts = (await api_client.get("/api/users/alice/insights", params={"kind": "Alert"})).json()
    assert "Negative Balance Alert" in [alert["title"] for alert in alerts]

    response = await api_client.delete(f"/api/users/alice/expenses/{record_id}")
    assert response.status_code == 204

    insights = (await api_client.get("/api/users/alice/insights")).json()
    titles = [insight["title"] for insight in insights]
    assert "Negative Balance Alert" not in titles
    assert "Balance Back to Positive!" in titles

    missing = await api_client.delete(f"/api/users/alice/expenses/{record_id}")
    assert missing.status_code == 404


async def test_latest_insight_is_null_when_empty(api_client):
    await _register(api_client)

    response = await api_client.get("/api/users/alice/insights/latest", params={"kind": "Advice"})

    assert response.json() == {"insight": None}


async def test_budget_upsert(api_client):
    await _register(api_client)

    created = await api_client.put("/api/users/alice/budgets/2026-03", json={"total_amount": "1200.00"})
    updated = await api_client.put("/api/users/alice/budgets/2026-03", json={"total_amount": "900"})
    invalid = await api_client.put("/api/users/alice/budgets/2026-13", json={"total_amount": "1"})

    assert created.status_code == 200
    assert Decimal(updated.json()["total_amount"]) == Decimal("900")
    assert invalid.status_code == 422
    listed = (await api_client.get("/api/users/alice/budgets")).json()
    assert [budget["month_key"] for budget in listed] == ["2026-03"]
