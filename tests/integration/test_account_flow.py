import pytest
from httpx import AsyncClient

ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob"}


class TestAccount:
    async def test_new_user_gets_starting_balance(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/accounts/me", headers={"X-User-Id": "newcomer"})
        data = resp.json()["data"]
        assert data["user_id"] == "newcomer"
        assert data["available_balance"] == 10_000
        assert data["available_display"] == "$10,000.00"

    async def test_blank_user_header(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/accounts/me", headers={"X-User-Id": "  "})
        assert resp.status_code == 401

    async def test_ledger(self, client: AsyncClient, create_binary) -> None:
        market = await create_binary(ante=500)
        await client.post(
            "/api/v1/trades",
            json={"market_id": market["id"], "side": "BUY", "outcome": "NO", "amount": 40},
            headers=ALICE,
        )
        ledger = (await client.get("/api/v1/accounts/me/ledger", headers=ALICE)).json()["data"]
        assert [(e["entry_type"], e["amount"]) for e in ledger] == [
            ("MARKET_ANTE", -500),
            ("AMM_BUY", -40),
        ]
        assert ledger[-1]["balance_after"] == 9_460
        assert ledger[0]["reference_id"] == market["id"]


class TestPositions:
    async def test_position_marked_to_market(self, client: AsyncClient, create_binary) -> None:
        market = await create_binary()
        trade = (
            await client.post(
                "/api/v1/trades",
                json={"market_id": market["id"], "side": "BUY", "outcome": "YES", "amount": 100},
                headers=BOB,
            )
        ).json()["data"]

        data = (await client.get("/api/v1/positions", headers=BOB)).json()["data"]
        assert data["total"] == 1
        pos = data["items"][0]
        assert pos["market_id"] == market["id"]
        assert pos["outcome"] == "YES"
        assert pos["shares"] == pytest.approx(trade["shares"])
        assert pos["invested"] == pytest.approx(100)
        assert pos["current_probability"] == pytest.approx(trade["prob_after"])
        assert pos["mark_value"] == pytest.approx(trade["shares"] * trade["prob_after"])

    async def test_filter_by_market(self, client: AsyncClient, create_binary) -> None:
        market = await create_binary()
        await client.post(f"/api/v1/markets/{market['id']}/split", json={"amount": 5}, headers=BOB)
        data = (
            await client.get("/api/v1/positions", params={"market_id": "mkt_other"}, headers=BOB)
        ).json()["data"]
        assert data["items"] == []


class TestHealth:
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["mirror"] == "memory"
