"""Oracle propose / challenge / finalize / check over HTTP, driven by the fake clock."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob"}
CAROL = {"X-User-Id": "carol"}


async def _oracle_market(create_binary, clock, asset: str = "bitcoin", target: float = 100_000) -> str:
    deadline = clock.current + timedelta(seconds=60)
    market = await create_binary(
        resolution_source={
            "type": "crypto_price",
            "deadline": deadline.isoformat(),
            "asset": asset,
            "target_price": target,
            "condition": "gte",
        }
    )
    return market["id"]


class TestPropose:
    async def test_before_deadline(self, client: AsyncClient, clock, create_binary) -> None:
        mid = await _oracle_market(create_binary, clock)
        resp = await client.post("/api/v1/oracle/propose", json={"market_id": mid}, headers=BOB)
        assert resp.status_code == 409
        assert resp.json()["code"] == 7002

    async def test_proposal_from_price_feed(self, client: AsyncClient, clock, create_binary) -> None:
        mid = await _oracle_market(create_binary, clock)
        clock.advance(61)
        resp = await client.post("/api/v1/oracle/propose", json={"market_id": mid}, headers=BOB)
        data = resp.json()["data"]
        assert data["resolution"] == "YES"
        assert data["observed_value"] == 105_000
        assert data["proposed_by"] == "bob"

        status = (await client.get(f"/api/v1/oracle/{mid}")).json()["data"]
        assert status["oracle_status"] == "PROVISIONAL"
        assert status["resolution_source"]["asset"] == "bitcoin"

    async def test_source_unavailable(self, client: AsyncClient, clock, create_binary) -> None:
        mid = await _oracle_market(create_binary, clock, asset="dogecoin")
        clock.advance(61)
        resp = await client.post("/api/v1/oracle/propose", json={"market_id": mid}, headers=BOB)
        assert resp.status_code == 502
        status = (await client.get(f"/api/v1/oracle/{mid}")).json()["data"]
        assert status["oracle_status"] == "UNRESOLVED"

    async def test_market_without_source(self, client: AsyncClient, create_binary) -> None:
        market = await create_binary()
        resp = await client.post("/api/v1/oracle/propose", json={"market_id": market["id"]}, headers=BOB)
        assert resp.json()["code"] == 7001


class TestDispute:
    async def test_unchallenged_finalize(self, client: AsyncClient, clock, create_binary) -> None:
        mid = await _oracle_market(create_binary, clock)
        clock.advance(61)
        await client.post("/api/v1/oracle/propose", json={"market_id": mid}, headers=BOB)

        early = await client.post("/api/v1/oracle/finalize", json={"market_id": mid}, headers=BOB)
        assert early.json()["code"] == 7003

        clock.advance(120)
        resp = await client.post("/api/v1/oracle/finalize", json={"market_id": mid}, headers=BOB)
        data = resp.json()["data"]
        assert data["resolution"] == "YES"
        assert data["challenger_won"] is None
        assert data["settlement"]["market_resolved"] is True

    async def test_successful_challenge(self, client: AsyncClient, clock, create_binary) -> None:
        mid = await _oracle_market(create_binary, clock)
        clock.advance(61)
        await client.post("/api/v1/oracle/propose", json={"market_id": mid}, headers=BOB)

        resp = await client.post(
            "/api/v1/oracle/challenge",
            json={"market_id": mid, "reason": "exchange feed was stale"},
            headers=CAROL,
        )
        assert resp.json()["data"]["bond_amount"] == 100
        balance = (await client.get("/api/v1/accounts/me", headers=CAROL)).json()["data"]
        assert balance["available_balance"] == 9_900

        again = await client.post(
            "/api/v1/oracle/challenge", json={"market_id": mid, "reason": "me too"}, headers=BOB
        )
        assert again.json()["code"] == 7002

        resp = await client.post(
            "/api/v1/oracle/finalize", json={"market_id": mid, "resolution": "NO"}, headers=ALICE
        )
        data = resp.json()["data"]
        assert data["resolution"] == "NO"
        assert data["challenger_won"] is True
        assert data["challenger_payout"] == pytest.approx(150)
        balance = (await client.get("/api/v1/accounts/me", headers=CAROL)).json()["data"]
        assert balance["available_balance"] == pytest.approx(10_050)

    async def test_challenge_after_window(self, client: AsyncClient, clock, create_binary) -> None:
        mid = await _oracle_market(create_binary, clock)
        clock.advance(61)
        await client.post("/api/v1/oracle/propose", json={"market_id": mid}, headers=BOB)
        clock.advance(121)
        resp = await client.post(
            "/api/v1/oracle/challenge", json={"market_id": mid, "reason": "late"}, headers=CAROL
        )
        assert resp.json()["code"] == 7003


class TestCheck:
    async def test_sweep_proposes_then_finalizes(self, client: AsyncClient, clock, create_binary) -> None:
        mid = await _oracle_market(create_binary, clock)
        await create_binary()

        first = (await client.post("/api/v1/oracle/check")).json()["data"]
        assert first["checked"] == 1
        assert first["details"] == [{"market_id": mid, "status": "UNRESOLVED", "action": "waiting"}]

        clock.advance(61)
        second = (await client.post("/api/v1/oracle/check")).json()["data"]
        assert second["proposed"] == 1

        clock.advance(120)
        third = (await client.post("/api/v1/oracle/check")).json()["data"]
        assert third["finalized"] == 1

        detail = (await client.get(f"/api/v1/markets/{mid}")).json()["data"]
        assert detail["phase"] == "resolved"
        assert detail["oracle_status"] == "FINALIZED"

    async def test_feed_errors_are_reported(self, client: AsyncClient, clock, create_binary) -> None:
        await _oracle_market(create_binary, clock, asset="dogecoin")
        clock.advance(61)
        report = (await client.post("/api/v1/oracle/check")).json()["data"]
        assert report["errors"] == 1
        assert report["details"][0]["action"] == "error"
