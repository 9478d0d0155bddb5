"""Unit tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from xchain_router.api.endpoints import get_optimizer, get_tracker
from xchain_router.api.main import app
from xchain_router.routing.optimizer import RouteOptimizer
from tests.helpers import (
    ARC,
    BASE,
    FLX_ARC,
    ONE_FLX,
    ONE_USDC,
    USDC_ARC,
    make_config,
    make_pool,
    make_tracker,
)

POOLS = [
    make_pool(ARC, reserve_a=500 * ONE_FLX, reserve_b=ONE_USDC // 2),
    make_pool(BASE, reserve_a=5000 * ONE_FLX, reserve_b=5 * ONE_USDC),
]


@pytest.fixture
def tracker():
    return make_tracker(make_config(source_ids=(ARC, BASE)), POOLS)


@pytest.fixture
def client(tracker):
    """Test client with the tracker and optimizer injected."""
    app.dependency_overrides[get_tracker] = lambda: tracker
    app.dependency_overrides[get_optimizer] = lambda: RouteOptimizer(tracker.config)
    yield TestClient(app)
    app.dependency_overrides.clear()


def _quote(amount=str(4000 * ONE_FLX), **extra):
    return {"tokenIn": "FLX", "tokenOut": "USDC", "amountIn": amount, **extra}


class TestDepthEndpoints:
    """Tests for the depth read endpoints."""

    def test_all_depths(self, client):
        """Every source is listed with camelCase pools and decimal-string amounts."""
        response = client.get("/api/lp-depths")

        assert response.status_code == 200
        data = response.json()
        assert set(data["sources"]) == {ARC, BASE}
        pool = data["sources"][ARC][0]
        assert pool["reserveA"] == str(500 * ONE_FLX)
        assert pool["isSyntheticFallback"] is False
        assert data["lastRefresh"] is not None

    def test_one_source(self, client):
        """A single source's pools are returned."""
        response = client.get(f"/api/lp-depths/{BASE}")

        assert response.status_code == 200
        assert response.json()["sourceId"] == BASE
        assert len(response.json()["pools"]) == 1

    def test_unknown_source_is_404(self, client):
        """Unconfigured sources are not found."""
        response = client.get("/api/lp-depths/solana")
        assert response.status_code == 404

    def test_liquidity(self, client):
        """Pair reserves are summed across sources."""
        response = client.get("/api/liquidity", params={"tokenA": FLX_ARC, "tokenB": USDC_ARC})

        assert response.status_code == 200
        data = response.json()
        assert data["totalReserveA"] == str(500 * ONE_FLX)
        assert data["poolCount"] == 1

    def test_liquidity_requires_both_tokens(self, client):
        """Missing query parameters are rejected."""
        response = client.get("/api/liquidity", params={"tokenA": FLX_ARC})
        assert response.status_code == 422


class TestQuoteEndpoint:
    """Tests for POST /api/quote."""

    def test_split_quote(self, client):
        """A large order is split and recommended for multi-source execution."""
        response = client.post("/api/quote", json=_quote())

        assert response.status_code == 200
        data = response.json()
        assert data["recommendation"] == "multi_source"
        assert data["requiresMultiSource"] is True
        assert data["label"] == "Local + base"
        assert data["netOutput"] == str(166_332 + 1_663_329 - 100_200)
        assert data["unfilledAmount"] == str(1250 * ONE_FLX)
        assert [t["sourceId"] for t in data["transfers"]] == [BASE]
        assert "partial_fill" in {w["kind"] for w in data["warnings"]}

    def test_local_quote(self, client):
        """A small order stays local."""
        response = client.post("/api/quote", json=_quote(str(ONE_FLX)))

        assert response.status_code == 200
        assert response.json()["recommendation"] == "local"
        assert response.json()["transfers"] == []

    def test_unserved_pair_is_404(self, client):
        """No liquidity anywhere is a 404."""
        response = client.post("/api/quote", json={**_quote(), "tokenOut": "WETH"})
        assert response.status_code == 404

    def test_unknown_execution_source_is_404(self, client):
        """An unconfigured execution source is a 404."""
        response = client.post("/api/quote", json=_quote(executionSource="solana"))
        assert response.status_code == 404

    @pytest.mark.parametrize("amount", ["-1", "1.5", "abc", str(2**256)])
    def test_invalid_amount_is_422(self, client, amount):
        """Amounts must be uint256 decimal strings."""
        response = client.post("/api/quote", json=_quote(amount))
        assert response.status_code == 422

    def test_optimizer_failure_is_500(self, client):
        """Unexpected optimizer errors are logged and reported as 500."""

        class ExplodingOptimizer:
            """Optimizer that always raises."""

            def get_quote(self, *_args):
                raise RuntimeError("Boom!")

        app.dependency_overrides[get_optimizer] = lambda: ExplodingOptimizer()

        response = client.post("/api/quote", json=_quote())

        assert response.status_code == 500
        assert response.json()["detail"] == "Route optimization failed"


class TestRouteEndpoint:
    """Tests for POST /api/route."""

    def test_plan_returned(self, client):
        """The route comes with a canonical plan and its hash."""
        response = client.post(
            "/api/route",
            json=_quote(requestId="req-1", userAddress="0x" + "12" * 20),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["planHash"].startswith("0x")
        assert len(data["planHash"]) == 66
        assert data["plan"]["planHash"] == data["planHash"]
        assert data["plan"]["metadata"]["requestId"] == "req-1"
        assert [h["type"] for h in data["plan"]["hops"]] == ["swap", "bridge", "swap"]
        assert data["route"]["label"] == "Local + base"

    def test_hash_independent_of_request_metadata(self, client):
        """The same route commits to the same hash for different requests."""
        first = client.post("/api/route", json=_quote(requestId="a")).json()
        second = client.post("/api/route", json=_quote(requestId="b", expirySeconds=600)).json()
        assert first["planHash"] == second["planHash"]

    def test_invalid_user_address_is_422(self, client):
        """User addresses must be 20-byte hex."""
        response = client.post("/api/route", json=_quote(userAddress="0x1234"))
        assert response.status_code == 422


class TestAppLevel:
    """Tests for health, startup state and request limits."""

    def test_not_initialized_is_503(self):
        """Without a started tracker the routing endpoints are unavailable."""
        client = TestClient(app)
        response = client.post("/api/quote", json=_quote())
        assert response.status_code == 503

    def test_health_before_startup(self):
        """Health reports starting until the tracker exists."""
        client = TestClient(app)
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "starting"}

    def test_health_with_tracker(self, tracker, monkeypatch):
        """Health reports the tracker's refresh state."""
        monkeypatch.setattr(app.state, "tracker", tracker, raising=False)
        client = TestClient(app)

        data = client.get("/health").json()

        assert data["status"] == "ok"
        assert data["sources"] == 2
        assert data["refreshing"] is False
        assert data["refresh_errors"] == 0

    def test_oversized_request_returns_413(self):
        """Request with Content-Length exceeding limit returns 413."""
        client = TestClient(app)
        response = client.post(
            "/api/quote",
            json=_quote(),
            headers={"Content-Length": str(20 * 1024 * 1024)},
        )
        assert response.status_code == 413
        assert response.json()["detail"] == "Request too large"
