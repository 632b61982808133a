"""
Web API 테스트

InMemory Ledger를 app.state에 주입하고 httpx ASGITransport로 호출.
"""

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio

from engine.bootstrap import Ledger
from web.app import app


@pytest_asyncio.fixture
async def client(ledger: Ledger) -> AsyncGenerator[httpx.AsyncClient, None]:
    app.state.ledger = ledger
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http
    app.state.ledger = None


def _tx(**overrides) -> dict:
    body = {
        "date": "2026-03-01",
        "description": "Gala dinner tickets",
        "amount": "300",
        "type": "Income",
        "category": "Projects & Activities",
    }
    body.update(overrides)
    return body


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["mode"] == "development"


class TestTransactionsApi:

    @pytest.mark.asyncio
    async def test_create_and_get(self, client: httpx.AsyncClient) -> None:
        created = await client.post("/api/transactions", json=_tx())
        assert created.status_code == 201
        tx_id = created.json()["id"]

        fetched = await client.get(f"/api/transactions/{tx_id}")

        assert fetched.status_code == 200
        body = fetched.json()
        assert body["id"] == tx_id
        assert body["amount"] == "300"
        assert body["status"] == "Pending"
        assert body["date"] == "2026-03-01T00:00:00.000000+00:00"

    @pytest.mark.asyncio
    async def test_list_filters(self, client: httpx.AsyncClient) -> None:
        await client.post("/api/transactions", json=_tx())
        await client.post("/api/transactions", json=_tx(type="Expense", category="Administrative"))

        response = await client.get("/api/transactions", params={"type": "Expense"})

        assert [t["category"] for t in response.json()] == ["Administrative"]

    @pytest.mark.asyncio
    async def test_missing_transaction_is_404(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/transactions/ghost")

        assert response.status_code == 404
        assert response.json()["error"] == "TransactionNotFound"

    @pytest.mark.asyncio
    async def test_invalid_amount_is_422(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/api/transactions", json=_tx(amount="-5"))

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client: httpx.AsyncClient) -> None:
        tx_id = (await client.post("/api/transactions", json=_tx(project_id="p1"))).json()["id"]

        patched = await client.patch(
            f"/api/transactions/{tx_id}", json={"description": "Gala", "project_id": None}
        )
        assert patched.status_code == 204
        body = (await client.get(f"/api/transactions/{tx_id}")).json()
        assert body["description"] == "Gala"
        assert "project_id" not in body

        assert (await client.delete(f"/api/transactions/{tx_id}")).status_code == 204
        assert (await client.get(f"/api/transactions/{tx_id}")).status_code == 404


class TestSplitsApi:

    @pytest.mark.asyncio
    async def test_sum_mismatch_is_409(self, client: httpx.AsyncClient) -> None:
        tx_id = (await client.post("/api/transactions", json=_tx())).json()["id"]

        response = await client.put(
            f"/api/transactions/{tx_id}/splits",
            json={"splits": [{"category": "Membership", "amount": "100"}]},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "SplitSumMismatch"

    @pytest.mark.asyncio
    async def test_upsert_splits(self, client: httpx.AsyncClient) -> None:
        tx_id = (await client.post("/api/transactions", json=_tx())).json()["id"]

        response = await client.put(
            f"/api/transactions/{tx_id}/splits",
            json={"splits": [
                {"category": "Membership", "amount": "100"},
                {"category": "Projects & Activities", "amount": "200"},
            ]},
        )

        assert response.status_code == 200
        assert len(response.json()["ids"]) == 2
        parent = (await client.get(f"/api/transactions/{tx_id}")).json()
        assert parent["is_split"] is True
        assert parent["category"] == ""


class TestAccountsApi:

    @pytest.mark.asyncio
    async def test_balance_and_reconcile(self, client: httpx.AsyncClient) -> None:
        account_id = (await client.post(
            "/api/accounts", json={"name": "Maybank", "initial_balance": "1000"}
        )).json()["id"]
        await client.post("/api/transactions", json=_tx(bank_account_id=account_id, status="Cleared"))

        balance = await client.get(f"/api/accounts/{account_id}/balance")
        assert balance.json()["total"] == "1300"

        reconciled = await client.post(
            f"/api/accounts/{account_id}/reconcile",
            json={"statement_balance": "1300", "date": "2026-03-31"},
        )
        assert reconciled.status_code == 200
        assert reconciled.json()["status"] == "completed"
        assert reconciled.json()["discrepancies"] == []

    @pytest.mark.asyncio
    async def test_unknown_account_is_404(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/accounts/ghost/balance")

        assert response.status_code == 404


class TestReportsApi:

    @pytest.mark.asyncio
    async def test_summary(self, client: httpx.AsyncClient) -> None:
        await client.post("/api/transactions", json=_tx())

        response = await client.get("/api/reports/summary", params={"year": 2026})

        assert response.status_code == 200
        assert response.json()["total_income"] == "300"

    @pytest.mark.asyncio
    async def test_invalid_report_type(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/reports/financial", params={"report_type": "weekly", "year": 2026})

        assert response.status_code == 422
