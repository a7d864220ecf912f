"""
API tests for portfolio, option and session endpoints.

Tests cover:
- Startup with the anonymous local session
- Stock and option trades through HTTP
- Error mapping (400, 404, 422)
- Transaction history ordering
- Manual and visibility refresh
- Option chain and Greeks endpoints
- Switching between owner and anonymous sessions
"""

from decimal import Decimal

from fastapi.testclient import TestClient

from tests.conftest import DeterministicMarketProvider, make_chain, make_leg


OPTION_SYMBOL = "AAPL300118C00190000"


def _buy_call(client: TestClient, contracts: int = 2, premium: str = "3.00"):
    return client.post(
        "/portfolio/options/buy",
        json={
            "symbol": OPTION_SYMBOL,
            "underlying": "aapl",
            "option_type": "call",
            "strike": "190",
            "expiration_date": "2030-01-18",
            "contracts": contracts,
            "premium": premium,
        },
    )


# =============================================================================
# BASIC ENDPOINT TESTS
# =============================================================================


class TestBasics:
    """Health and initial portfolio."""

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_new_portfolio_has_initial_cash(self, client: TestClient):
        """
        GIVEN a fresh anonymous session
        WHEN I GET /portfolio
        THEN cash and total value are 100000 with no holdings
        """
        response = client.get("/portfolio")

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["cash"]) == Decimal("100000")
        assert Decimal(data["total_value"]) == Decimal("100000")
        assert data["holdings"] == []
        assert data["option_holdings"] == []

    def test_anonymous_portfolio_written_to_data_dir(self, client: TestClient, tmp_path):
        assert (tmp_path / "local_portfolio.json").exists()


# =============================================================================
# STOCK TRADE TESTS
# =============================================================================


class TestStockTrades:
    """Buying and selling shares over HTTP."""

    def test_buy_at_quote(self, client: TestClient):
        """
        GIVEN AAPL quoted at 185.50
        WHEN I buy 10 without a price
        THEN a BUY at 185.50 is created and cash falls by 1855
        """
        response = client.post("/portfolio/stocks/buy", json={"ticker": "aapl", "shares": "10"})

        assert response.status_code == 201
        txn = response.json()
        assert txn["txn_type"] == "BUY"
        assert txn["ticker"] == "AAPL"
        assert Decimal(txn["price"]) == Decimal("185.50")

        portfolio = client.get("/portfolio").json()
        assert Decimal(portfolio["cash"]) == Decimal("98145")
        [holding] = portfolio["holdings"]
        assert Decimal(holding["shares"]) == Decimal("10")

    def test_sell_realizes_pnl(self, client: TestClient):
        client.post("/portfolio/stocks/buy", json={"ticker": "AAPL", "shares": "10", "price": "150"})

        response = client.post(
            "/portfolio/stocks/sell", json={"ticker": "AAPL", "shares": "4", "price": "160"}
        )

        assert response.status_code == 201
        assert Decimal(response.json()["realized_pnl"]) == Decimal("40")

    def test_sell_all(self, client: TestClient):
        """
        GIVEN 10 AAPL
        WHEN I POST sell-all without a body
        THEN all 10 shares are sold at the quote and the holding is gone
        """
        client.post("/portfolio/stocks/buy", json={"ticker": "AAPL", "shares": "10", "price": "150"})

        response = client.post("/portfolio/stocks/AAPL/sell-all")

        assert response.status_code == 201
        assert Decimal(response.json()["quantity"]) == Decimal("10")
        assert client.get("/portfolio").json()["holdings"] == []

    def test_insufficient_cash_returns_400(self, client: TestClient):
        response = client.post(
            "/portfolio/stocks/buy", json={"ticker": "AAPL", "shares": "1000", "price": "500"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INSUFFICIENT_CASH"

    def test_sell_unheld_returns_404(self, client: TestClient):
        response = client.post(
            "/portfolio/stocks/sell", json={"ticker": "MSFT", "shares": "1", "price": "100"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_invalid_payload_returns_422(self, client: TestClient):
        response = client.post("/portfolio/stocks/buy", json={"ticker": "AAPL", "shares": "-5"})

        assert response.status_code == 422

    def test_transactions_newest_first(self, client: TestClient):
        client.post("/portfolio/stocks/buy", json={"ticker": "AAPL", "shares": "1", "price": "150"})
        client.post("/portfolio/stocks/buy", json={"ticker": "MSFT", "shares": "1", "price": "300"})

        data = client.get("/portfolio/transactions").json()

        assert data["total"] == 2
        assert [t["ticker"] for t in data["transactions"]] == ["MSFT", "AAPL"]


# =============================================================================
# OPTION TRADE TESTS
# =============================================================================


class TestOptionTrades:
    """Buying and selling option contracts over HTTP."""

    def test_buy_option(self, client: TestClient):
        """
        GIVEN 100000 cash
        WHEN I buy 2 calls at 3.00
        THEN 600 is debited and the option holding is listed
        """
        response = _buy_call(client)

        assert response.status_code == 201
        assert response.json()["txn_type"] == "OPTION_BUY"

        portfolio = client.get("/portfolio").json()
        assert Decimal(portfolio["cash"]) == Decimal("99400")
        [option] = portfolio["option_holdings"]
        assert option["symbol"] == OPTION_SYMBOL
        assert option["underlying"] == "AAPL"
        assert Decimal(option["market_value"]) == Decimal("600")

    def test_sell_option(self, client: TestClient):
        _buy_call(client)

        response = client.post(
            "/portfolio/options/sell",
            json={"symbol": OPTION_SYMBOL, "contracts": 1, "premium": "4.50"},
        )

        assert response.status_code == 201
        assert Decimal(response.json()["realized_pnl"]) == Decimal("150")
        assert client.get("/portfolio").json()["option_holdings"][0]["contracts"] == 1

    def test_sell_too_many_contracts_returns_400(self, client: TestClient):
        _buy_call(client)

        response = client.post(
            "/portfolio/options/sell", json={"symbol": OPTION_SYMBOL, "contracts": 5}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INSUFFICIENT_CONTRACTS"


# =============================================================================
# REFRESH TESTS
# =============================================================================


class TestRefresh:
    """Manual and visibility-triggered refresh ticks."""

    def test_refresh_updates_prices(self, client: TestClient):
        """
        GIVEN AAPL bought at 150 and quoted at 185.50
        WHEN I POST /portfolio/refresh
        THEN the tick persists the new price
        """
        client.post("/portfolio/stocks/buy", json={"ticker": "AAPL", "shares": "10", "price": "150"})

        response = client.post("/portfolio/refresh")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "persisted"
        assert data["prices_updated"] == 1
        holding = client.get("/portfolio").json()["holdings"][0]
        assert Decimal(holding["current_price"]) == Decimal("185.5")

    def test_refresh_without_changes(self, client: TestClient):
        response = client.post("/portfolio/refresh", params={"reason": "visibility"})

        assert response.status_code == 200
        assert response.json()["status"] == "unchanged"
        assert response.json()["reason"] == "visibility"

    def test_unknown_reason_rejected(self, client: TestClient):
        assert client.post("/portfolio/refresh", params={"reason": "cron"}).status_code == 422


# =============================================================================
# OPTION CHAIN AND GREEKS TESTS
# =============================================================================


class TestOptionsEndpoints:
    """Normalized chains and single-contract Greeks."""

    def test_chain_normalized_with_greeks(
        self, client: TestClient, deterministic_provider: DeterministicMarketProvider
    ):
        """
        GIVEN an AAPL chain with one call and one put
        WHEN I GET /options/AAPL/chain
        THEN both contracts are returned priced against the AAPL quote
        """
        deterministic_provider.chains["AAPL"] = make_chain(
            "AAPL",
            180.0,
            "2030-01-18",
            calls=[make_leg("AAPL300118C00150000", 150, 20.0)],
            puts=[make_leg("AAPL300118P00200000", 200, 25.0)],
        )

        response = client.get("/options/aapl/chain")

        assert response.status_code == 200
        data = response.json()
        assert data["symbol"] == "AAPL"
        assert Decimal(data["underlying_price"]) == Decimal("185.5")
        assert data["expirations"] == ["2030-01-18"]
        call, put = data["contracts"]
        # Stale call premium floored at intrinsic 35.50
        assert Decimal(call["price"]) == Decimal("35.5")
        assert call["option_type"] == "call"
        assert 0 < call["greeks"]["delta"] < 1
        assert put["option_type"] == "put"
        assert -1 < put["greeks"]["delta"] < 0

    def test_missing_chain_returns_404(self, client: TestClient):
        response = client.get("/options/ZZZZ/chain")

        assert response.status_code == 404

    def test_greeks_endpoint(self, client: TestClient):
        response = client.post(
            "/options/greeks",
            json={
                "option_type": "call",
                "underlying_price": 100,
                "strike": 100,
                "expiration_date": "2024-08-05",
                "implied_volatility": 0.25,
                "as_of": "2024-06-03T16:00:00",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert 0.5 < data["delta"] < 0.6
        assert data["gamma"] > 0
        assert data["theta"] < 0
        assert data["vega"] > 0

    def test_greeks_without_volatility_are_null(self, client: TestClient):
        response = client.post(
            "/options/greeks",
            json={
                "option_type": "put",
                "underlying_price": 100,
                "strike": 100,
                "expiration_date": "2030-01-18",
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "delta": None,
            "gamma": None,
            "theta": None,
            "vega": None,
            "implied_volatility": None,
        }


# =============================================================================
# SESSION TESTS
# =============================================================================


class TestSessions:
    """Switching between owner and anonymous sessions."""

    def test_owner_session_isolated_from_anonymous(self, client: TestClient):
        """
        GIVEN a buy in the anonymous session
        WHEN I open a session for owner alice
        THEN alice starts with a fresh portfolio
        AND reopening the anonymous session shows the original buy
        """
        client.post("/portfolio/stocks/buy", json={"ticker": "AAPL", "shares": "1", "price": "100"})

        opened = client.post("/session", json={"owner_id": "alice"})

        assert opened.status_code == 200
        assert opened.json()["owner_id"] == "alice"
        assert opened.json()["anonymous"] is False
        assert opened.json()["loaded"] is True
        assert client.get("/portfolio").json()["holdings"] == []

        client.post("/portfolio/stocks/buy", json={"ticker": "MSFT", "shares": "2", "price": "300"})

        anonymous = client.post("/session", json={})
        assert anonymous.json()["anonymous"] is True
        assert [h["ticker"] for h in client.get("/portfolio").json()["holdings"]] == ["AAPL"]

        client.post("/session", json={"owner_id": "alice"})
        assert [h["ticker"] for h in client.get("/portfolio").json()["holdings"]] == ["MSFT"]

    def test_each_open_is_a_new_session(self, client: TestClient):
        first = client.post("/session", json={"owner_id": "bob"}).json()
        second = client.post("/session", json={"owner_id": "bob"}).json()

        assert first["session_id"] != second["session_id"]
