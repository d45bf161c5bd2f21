"""Integration-test fixtures.

Every test gets its own engine (in-memory mirror, fake clock, fake price
feed) installed behind the app, so tests never share market state.
"""

import pytest
from httpx import AsyncClient

API = "/api/v1"


def as_user(user_id: str) -> dict[str, str]:
    return {"X-User-Id": user_id}


@pytest.fixture
async def create_binary(client: AsyncClient):
    """Factory: create a binary market as `creator` and return its detail payload."""

    async def _create(creator: str = "alice", ante: float = 1000.0, **extra):
        body = {"question": "Will BTC close above $100k?", "ante": ante, **extra}
        resp = await client.post(f"{API}/markets", json=body, headers=as_user(creator))
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create


@pytest.fixture
async def create_multi(client: AsyncClient):
    async def _create(
        creator: str = "alice",
        answers: list[str] | None = None,
        sum_to_one: bool = True,
        ante: float = 1000.0,
    ):
        body = {
            "question": "Who wins the election?",
            "kind": "multi_choice",
            "ante": ante,
            "answers": answers or ["Alice", "Bob", "Carol"],
            "should_answers_sum_to_one": sum_to_one,
        }
        resp = await client.post(f"{API}/markets", json=body, headers=as_user(creator))
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create
