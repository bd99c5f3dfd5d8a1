"""Unit tests for the campreserv HTTP client.

Requests never leave the process: an httpx.MockTransport records them and
answers with canned JSON built from real service results.
"""

import datetime as dt

import httpx
import pytest

from campreserv.client import CampreservAPIError, CampreservClient
from campreserv.models import Hold, PaymentMethod

BASE_URL = "https://api.test"


class Recorder:
    """Mock transport handler returning queued responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def client(recorder):
    with CampreservClient(BASE_URL, transport=httpx.MockTransport(recorder)) as c:
        yield c


@pytest.fixture
def hold(hold_service) -> Hold:
    return hold_service.create_hold(
        "cg-test", "site-a1", dt.date(2030, 7, 10), dt.date(2030, 7, 13), hold_minutes=30
    )


class TestRequests:
    def test_base_url_gets_api_prefix(self, client, recorder, hold):
        recorder.responses.append(httpx.Response(200, json=[hold.model_dump(mode="json")]))

        holds = client.list_holds("cg-test")

        assert str(recorder.last.url) == f"{BASE_URL}/api/holds/campgrounds/cg-test"
        assert holds[0].id == hold.id
        assert holds[0].expires_at == hold.expires_at

    def test_base_url_from_environment(self, monkeypatch, recorder, hold):
        monkeypatch.setenv("CAMPRESERV_API_URL", "https://env.test/")
        recorder.responses.append(httpx.Response(200, json=hold.model_dump(mode="json")))

        with CampreservClient(transport=httpx.MockTransport(recorder)) as client:
            client.release_hold(hold.id)

        assert recorder.last.method == "DELETE"
        assert str(recorder.last.url) == f"https://env.test/api/holds/{hold.id}"

    def test_correlation_id_header(self, recorder, hold):
        recorder.responses.append(httpx.Response(200, json=hold.model_dump(mode="json")))

        with CampreservClient(
            BASE_URL, correlation_id="corr-123", transport=httpx.MockTransport(recorder)
        ) as client:
            client.create_hold("cg-test", "site-a1", dt.date(2030, 7, 10), dt.date(2030, 7, 13))

        assert recorder.last.headers["X-Correlation-ID"] == "corr-123"

    def test_site_status_params(self, client, recorder):
        recorder.responses.append(httpx.Response(200, json=[]))

        client.get_sites_with_status(
            "cg-test", dt.date(2030, 7, 10), dt.date(2030, 7, 13), rigLength=30, siteType=None
        )

        params = recorder.last.url.params
        assert params["arrivalDate"] == "2030-07-10"
        assert params["departureDate"] == "2030-07-13"
        assert params["rigLength"] == "30"
        assert "siteType" not in params

    def test_record_payment_body(self, client, recorder):
        recorder.responses.append(
            httpx.Response(
                200,
                json={"payment_id": "PAY-1", "status": "completed", "amount": 5000,
                      "change_due_cents": 1000},
            )
        )

        result = client.record_payment("RES-1", PaymentMethod.CASH, 5000, cash_received_cents=6000)

        assert recorder.last.url.path == "/api/reservations/RES-1/payments"
        assert result.change_due_cents == 1000

    def test_help_search_drops_empty_params(self, client, recorder):
        recorder.responses.append(httpx.Response(200, json={"query": "refund", "topics": []}))

        client.search_help("refund", role="finance")

        assert dict(recorder.last.url.params) == {"q": "refund", "role": "finance"}

    def test_preferences_use_user_header(self, client, recorder):
        recorder.responses.append(
            httpx.Response(200, json={"preferences": {"campreserv:locale": "en-US"}})
        )
        recorder.responses.append(httpx.Response(200, json={"value": "fr-CA"}))

        assert client.get_preferences("user-1") == {"campreserv:locale": "en-US"}
        assert client.set_preference("user-1", "campreserv:locale", "fr-CA") == "fr-CA"

        assert recorder.last.method == "PUT"
        assert recorder.last.headers["X-User-Id"] == "user-1"


class TestErrors:
    def test_error_envelope(self, client, recorder):
        recorder.responses.append(
            httpx.Response(
                404,
                json={"error_code": "ERR_RES_001", "message": "Reservation not found"},
            )
        )

        with pytest.raises(CampreservAPIError) as exc_info:
            client.get_reservation("RES-404")

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_code == "ERR_RES_001"
        assert exc_info.value.message == "Reservation not found"

    def test_validation_detail_list(self, client, recorder):
        recorder.responses.append(httpx.Response(422, json={"detail": [{"loc": ["body"]}]}))

        with pytest.raises(CampreservAPIError) as exc_info:
            client.get_quote("cg-test", "site-a1", dt.date(2030, 7, 13), dt.date(2030, 7, 10))

        assert exc_info.value.error_code is None
        assert exc_info.value.message == "Unprocessable Entity"

    def test_non_json_error(self, client, recorder):
        recorder.responses.append(httpx.Response(502, text="upstream down"))

        with pytest.raises(CampreservAPIError) as exc_info:
            client.get_campgrounds()

        assert str(exc_info.value) == "502 ERR_HTTP: Bad Gateway"
