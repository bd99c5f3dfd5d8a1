"""Unit tests for currency, help, preference and health routes.

Also covers the error envelope mapping and the correlation ID middleware.
"""

import pytest
from fastapi.testclient import TestClient
from starlette.status import (
    HTTP_200_OK,
    HTTP_400_BAD_REQUEST,
    HTTP_402_PAYMENT_REQUIRED,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_502_BAD_GATEWAY,
)

from campreserv.models import ErrorCode, Portfolio, PortfolioPark
from campreserv_api.exceptions import get_http_status_for_error
from campreserv_api.middleware.correlation import CORRELATION_ID_HEADER

USER = {"X-User-Id": "user-1"}
RATES = [
    {"base": "USD", "quote": "CAD", "rate": 1.36},
    {"base": "USD", "quote": "EUR", "rate": 0.9},
]


@pytest.fixture
def fx_configured(client: TestClient) -> TestClient:
    response = client.post(
        "/api/currency-tax",
        json={"base_currency": "USD", "reporting_currency": "USD", "fx_rates": RATES},
    )
    assert response.status_code == HTTP_200_OK
    return client


@pytest.fixture
def portfolio(portfolio_service, fx_configured) -> Portfolio:
    portfolio = Portfolio(
        id="pf-north",
        name="North Woods",
        home_currency="USD",
        parks=[
            PortfolioPark(
                park_id="p-lake", name="Lakeside", region="MN", currency="USD",
                occupancy=0.8, adr=90.0, revpar=72.0, revenue=100000,
            ),
            PortfolioPark(
                park_id="p-pine", name="Pine Ridge", region="ON", currency="CAD",
                occupancy=0.6, adr=70.0, revpar=38.0, revenue=136000,
            ),
        ],
    )
    portfolio_service.save_portfolio(portfolio)
    return portfolio


class TestCurrencyRoutes:
    """Tests for /api/currency-tax."""

    def test_defaults(self, client: TestClient) -> None:
        config = client.get("/api/currency-tax").json()

        assert config["base_currency"] == "USD"
        assert config["fx_rates"] == []

    def test_partial_update(self, fx_configured: TestClient) -> None:
        response = fx_configured.post("/api/currency-tax", json={"reporting_currency": "cad"})

        config = response.json()
        assert config["reporting_currency"] == "CAD"
        assert len(config["fx_rates"]) == 2

    def test_invalid_code(self, client: TestClient) -> None:
        response = client.post("/api/currency-tax", json={"base_currency": "DOLLARS"})

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == ErrorCode.INVALID_CURRENCY.value

    def test_convert_cross_rate(self, fx_configured: TestClient) -> None:
        response = fx_configured.post(
            "/api/currency-tax/convert",
            json={"amount": 100, "from_currency": "CAD", "to_currency": "EUR"},
        )

        assert response.status_code == HTTP_200_OK
        assert response.json()["rate"] == 0.661765
        assert response.json()["converted"] == 66.18


class TestPortfolioRoutes:
    def test_report(self, client: TestClient, portfolio) -> None:
        report = client.get("/api/portfolios/pf-north/report").json()

        assert report["rollup"]["revenue_home"] == 200000
        assert report["rollup"]["currency"] == "USD"

    def test_view_with_query_currency(self, client: TestClient, portfolio) -> None:
        view = client.get(
            "/api/portfolios/pf-north/report/view", params={"reportingCurrency": "CAD"}
        ).json()

        assert view["reporting_currency"] == "CAD"
        assert view["rollup"]["revenue_home"] == 272000

    def test_view_uses_stored_preference(self, client: TestClient, portfolio) -> None:
        client.put("/api/preferences/campreserv:reportingCurrency", json={"value": "EUR"}, headers=USER)

        view = client.get("/api/portfolios/pf-north/report/view", headers=USER).json()

        assert view["reporting_currency"] == "EUR"
        assert view["rollup"]["currency"] == "EUR"

    def test_view_without_fx(self, client: TestClient, portfolio) -> None:
        view = client.get(
            "/api/portfolios/pf-north/report/view",
            params={"reportingCurrency": "CAD", "fx": "false"},
        ).json()

        assert {row["display_currency"] for row in view["rows"]} == {"USD", "CAD"}

    def test_unknown_portfolio(self, client: TestClient) -> None:
        response = client.get("/api/portfolios/pf-missing/report/view")

        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == ErrorCode.PORTFOLIO_NOT_FOUND.value


class TestHelpRoutes:
    """Tests for /api/help."""

    @pytest.fixture(autouse=True)
    def no_ai(self, monkeypatch) -> None:
        monkeypatch.delenv("AI_SUPPORT_BASE_URL", raising=False)

    def test_search(self, client: TestClient) -> None:
        result = client.get("/api/help/search", params={"q": "refund"}).json()

        assert "payments-refund" in [topic["id"] for topic in result["topics"]]
        assert result["ai_used"] is False

    def test_topic(self, client: TestClient) -> None:
        assert client.get("/api/help/topics/booking-new").json()["id"] == "booking-new"
        assert client.get("/api/help/topics/nope").status_code == HTTP_404_NOT_FOUND

    def test_pin_toggle(self, client: TestClient) -> None:
        pinned = client.post("/api/help/topics/booking-new/pin", headers=USER).json()
        unpinned = client.post("/api/help/topics/booking-new/pin", headers=USER).json()

        assert pinned == {"pins": ["booking-new"]}
        assert unpinned == {"pins": []}

    def test_viewed_and_feedback(self, client: TestClient) -> None:
        client.post("/api/help/topics/booking-new/viewed", headers=USER)
        recent = client.post("/api/help/topics/check-in-out/viewed", headers=USER).json()
        feedback = client.post(
            "/api/help/topics/check-in-out/feedback", json={"helpful": True}, headers=USER
        ).json()

        assert recent == {"recent": ["check-in-out", "booking-new"]}
        assert feedback == {"feedback": {"check-in-out": True}}

    def test_user_header_required(self, client: TestClient) -> None:
        response = client.post("/api/help/topics/booking-new/pin")

        assert response.status_code == HTTP_400_BAD_REQUEST

    def test_unknown_topic_pin(self, client: TestClient) -> None:
        response = client.post("/api/help/topics/nope/pin", headers=USER)

        assert response.status_code == HTTP_404_NOT_FOUND


class TestPreferenceRoutes:
    def test_set_get_delete(self, client: TestClient) -> None:
        put = client.put("/api/preferences/campreserv:locale", json={"value": "fr-CA"}, headers=USER)
        assert put.json() == {"key": "campreserv:locale", "value": "fr-CA"}

        stored = client.get("/api/preferences", headers=USER).json()
        assert stored == {"user_id": "user-1", "preferences": {"campreserv:locale": "fr-CA"}}

        deleted = client.delete("/api/preferences/campreserv:locale", headers=USER)
        assert deleted.json()["success"] is True
        assert client.get("/api/preferences", headers=USER).json()["preferences"] == {}

    def test_preferences_are_per_user(self, client: TestClient) -> None:
        client.put("/api/preferences/campreserv:locale", json={"value": "fr-CA"}, headers=USER)

        other = client.get("/api/preferences", headers={"X-User-Id": "user-2"}).json()

        assert other["preferences"] == {}

    def test_unknown_key(self, client: TestClient) -> None:
        response = client.put("/api/preferences/theme", json={"value": "dark"}, headers=USER)

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == ErrorCode.INVALID_PREFERENCE_KEY.value


class TestHealth:
    def test_ping(self, client: TestClient) -> None:
        body = client.get("/api/ping").json()

        assert body["status"] == "ok"
        assert body["service"] == "campreserv-api"

    def test_health(self, client: TestClient) -> None:
        body = client.get("/api/health").json()

        assert body["status"] == "ok"
        assert body["checks"] == {"dynamodb": "ok"}


class TestCorrelationId:
    def test_echoes_request_header(self, client: TestClient) -> None:
        response = client.get("/api/ping", headers={CORRELATION_ID_HEADER: "corr-42"})

        assert response.headers[CORRELATION_ID_HEADER] == "corr-42"

    def test_generated_when_absent(self, client: TestClient) -> None:
        response = client.get("/api/ping")

        assert response.headers[CORRELATION_ID_HEADER]


class TestErrorStatusMapping:
    @pytest.mark.parametrize(
        "code,status",
        [
            (ErrorCode.RESERVATION_NOT_FOUND, HTTP_404_NOT_FOUND),
            (ErrorCode.SITE_UNAVAILABLE, HTTP_409_CONFLICT),
            (ErrorCode.HOLD_EXPIRED, HTTP_409_CONFLICT),
            (ErrorCode.DEPOSIT_REQUIRED, HTTP_402_PAYMENT_REQUIRED),
            (ErrorCode.STRIPE_API_ERROR, HTTP_502_BAD_GATEWAY),
            (ErrorCode.INVALID_DATE_RANGE, HTTP_400_BAD_REQUEST),
        ],
    )
    def test_status_for_code(self, code: ErrorCode, status: int) -> None:
        assert get_http_status_for_error(code) == status

    @pytest.mark.parametrize(
        ("key", "value"),
        [("campreserv:locale", 1.5), ("campreserv:help:pins", "booking-new")],
    )
    def test_wrong_value_shape(self, client: TestClient, key: str, value) -> None:
        response = client.put(f"/api/preferences/{key}", json={"value": value}, headers=USER)

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == ErrorCode.INVALID_PREFERENCE_VALUE.value
        assert client.get("/api/preferences", headers=USER).json()["preferences"] == {}
