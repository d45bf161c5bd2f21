"""Limit order endpoints on a market promoted to the main phase."""

import pytest
from httpx import AsyncClient

from src.pm_common.enums import MarketPhase

BOB = {"X-User-Id": "bob"}
CAROL = {"X-User-Id": "carol"}


async def _main_market(engine, create_binary) -> str:
    market = await create_binary()
    (await engine.load_market(market["id"])).phase = MarketPhase.MAIN
    return market["id"]


async def _order(client: AsyncClient, headers: dict, **body):
    return await client.post("/api/v1/orders", json=body, headers=headers)


class TestPlaceOrder:
    async def test_sandbox_rejects_limit_orders(self, client: AsyncClient, create_binary) -> None:
        market = await create_binary()
        resp = await _order(
            client, CAROL, market_id=market["id"], side="BID", outcome="YES", limit_prob=0.4, quantity=10
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == 3004

    async def test_resting_bid_freezes_cash(self, client: AsyncClient, engine, create_binary) -> None:
        mid = await _main_market(engine, create_binary)
        resp = await _order(
            client, CAROL, market_id=mid, side="BID", outcome="YES", limit_prob=0.4, quantity=10
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["order"]["status"] == "OPEN"
        assert data["fills"] == []

        account = (await client.get("/api/v1/accounts/me", headers=CAROL)).json()["data"]
        assert account["frozen_balance"] == pytest.approx(4)
        assert account["available_balance"] == pytest.approx(9_996)

        book = (await client.get(f"/api/v1/markets/{mid}/orderbook")).json()["data"]["books"]
        assert book == [
            {
                "answer_id": None,
                "outcome": "YES",
                "bids": [{"price": 0.4, "total_quantity": 10.0, "order_count": 1}],
                "asks": [],
            }
        ]

    async def test_ask_crosses_resting_bid(self, client: AsyncClient, engine, create_binary) -> None:
        mid = await _main_market(engine, create_binary)
        await client.post(
            "/api/v1/trades",
            json={"market_id": mid, "side": "BUY", "outcome": "YES", "amount": 100},
            headers=BOB,
        )
        await _order(client, CAROL, market_id=mid, side="BID", outcome="YES", limit_prob=0.4, quantity=10)
        resp = await _order(
            client, BOB, market_id=mid, side="ASK", outcome="YES", limit_prob=0.35, quantity=10
        )
        data = resp.json()["data"]
        assert data["order"]["status"] == "FILLED"
        assert len(data["fills"]) == 1
        assert data["fills"][0]["price"] == 0.4
        assert data["fills"][0]["quantity"] == 10

        carol = (await client.get("/api/v1/accounts/me", headers=CAROL)).json()["data"]
        assert carol["frozen_balance"] == pytest.approx(0)
        assert carol["available_balance"] == pytest.approx(9_996)
        bob = (await client.get("/api/v1/accounts/me", headers=BOB)).json()["data"]
        assert bob["available_balance"] == pytest.approx(9_904)

        positions = (await client.get("/api/v1/positions", headers=CAROL)).json()["data"]
        assert positions["items"][0]["shares"] == pytest.approx(10)

    async def test_ask_needs_shares(self, client: AsyncClient, engine, create_binary) -> None:
        mid = await _main_market(engine, create_binary)
        resp = await _order(client, CAROL, market_id=mid, side="ASK", outcome="NO", limit_prob=0.6, quantity=5)
        assert resp.status_code == 422
        assert resp.json()["code"] == 5001

    async def test_fill_or_kill_without_depth(self, client: AsyncClient, engine, create_binary) -> None:
        mid = await _main_market(engine, create_binary)
        resp = await _order(
            client,
            CAROL,
            market_id=mid,
            side="BID",
            outcome="YES",
            limit_prob=0.5,
            quantity=5,
            time_in_force="FOK",
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 6002
        account = (await client.get("/api/v1/accounts/me", headers=CAROL)).json()["data"]
        assert account["frozen_balance"] == 0

    async def test_out_of_range_price(self, client: AsyncClient, engine, create_binary) -> None:
        mid = await _main_market(engine, create_binary)
        resp = await _order(client, CAROL, market_id=mid, side="BID", outcome="YES", limit_prob=1, quantity=5)
        assert resp.status_code == 422


class TestCancelOrder:
    async def test_owner_cancel_releases_cash(self, client: AsyncClient, engine, create_binary) -> None:
        mid = await _main_market(engine, create_binary)
        placed = await _order(
            client, CAROL, market_id=mid, side="BID", outcome="YES", limit_prob=0.3, quantity=10
        )
        order_id = placed.json()["data"]["order"]["id"]

        resp = await client.post(f"/api/v1/orders/{order_id}/cancel", headers=BOB)
        assert resp.status_code == 403
        assert resp.json()["code"] == 8002

        resp = await client.post(f"/api/v1/orders/{order_id}/cancel", headers=CAROL)
        assert resp.json()["data"]["status"] == "CANCELLED"
        account = (await client.get("/api/v1/accounts/me", headers=CAROL)).json()["data"]
        assert account["available_balance"] == pytest.approx(10_000)

        resp = await client.post(f"/api/v1/orders/{order_id}/cancel", headers=CAROL)
        assert resp.json()["code"] == 4006

    async def test_unknown_order(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/orders/ord_missing/cancel", headers=CAROL)
        assert resp.status_code == 404

    async def test_list_orders(self, client: AsyncClient, engine, create_binary) -> None:
        mid = await _main_market(engine, create_binary)
        placed = await _order(
            client, CAROL, market_id=mid, side="BID", outcome="YES", limit_prob=0.3, quantity=10
        )
        order_id = placed.json()["data"]["order"]["id"]
        await client.post(f"/api/v1/orders/{order_id}/cancel", headers=CAROL)

        open_orders = (await client.get("/api/v1/orders", headers=CAROL)).json()["data"]
        assert open_orders["total"] == 0
        everything = (
            await client.get("/api/v1/orders", params={"include_closed": "true"}, headers=CAROL)
        ).json()["data"]
        assert [o["id"] for o in everything["items"]] == [order_id]
