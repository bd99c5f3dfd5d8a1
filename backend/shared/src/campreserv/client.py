"""HTTP client for the campreserv REST API.

Usage:
    with CampreservClient("https://api.example.com") as client:
        campgrounds = client.get_campgrounds()
"""

import datetime as dt
import os
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter

from campreserv.models import (
    CancellationResult,
    Campground,
    ConversionResult,
    CurrencyTaxConfig,
    Dispute,
    HelpSearchResult,
    Hold,
    PaymentMethod,
    PaymentResult,
    Payout,
    PayoutDetail,
    PayoutReconSummary,
    PortfolioReport,
    Quote,
    Reservation,
    ReservationCreate,
    SiteClass,
    SiteWithStatus,
)
from campreserv.utils.logging import get_correlation_id, get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_TIMEOUT_SECONDS = 10.0

ModelT = TypeVar("ModelT", bound=BaseModel)


class CampreservAPIError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, error_code: str | None, message: str):
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        super().__init__(f"{status_code} {error_code or 'ERR_HTTP'}: {message}")


class CampreservClient:
    """Synchronous client over httpx.Client."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        correlation_id: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        base = base_url or os.environ.get("CAMPRESERV_API_URL", DEFAULT_BASE_URL)
        self.correlation_id = correlation_id
        self._client = httpx.Client(
            base_url=f"{base.rstrip('/')}/api", timeout=timeout, transport=transport
        )

    def __enter__(self) -> "CampreservClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        correlation_id = self.correlation_id or get_correlation_id()
        if correlation_id:
            headers["X-Correlation-ID"] = correlation_id

        response = self._client.request(method, path, headers=headers, **kwargs)
        if response.is_error:
            raise self._error(response)
        return response

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._send(method, path, **kwargs)
        return response.json() if response.content else None

    @staticmethod
    def _error(response: httpx.Response) -> CampreservAPIError:
        error_code = None
        message = response.reason_phrase
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            error_code = body.get("error_code")
            detail = body.get("detail")
            message = body.get("message") or (detail if isinstance(detail, str) else message)
        logger.warning(
            "API %s %s failed: %d %s",
            response.request.method,
            response.request.url.path,
            response.status_code,
            error_code or message,
        )
        return CampreservAPIError(response.status_code, error_code, message)

    def _get(self, model: type[ModelT], path: str, **kwargs: Any) -> ModelT:
        return model.model_validate_json(self._send("GET", path, **kwargs).content)

    def _post(self, model: type[ModelT], path: str, **kwargs: Any) -> ModelT:
        return model.model_validate_json(self._send("POST", path, **kwargs).content)

    def _list(self, model: type[ModelT], path: str, **kwargs: Any) -> list[ModelT]:
        content = self._send("GET", path, **kwargs).content
        return TypeAdapter(list[model]).validate_json(content)  # type: ignore[valid-type]

    # Campgrounds

    def get_campgrounds(self) -> list[Campground]:
        return self._list(Campground, "/campgrounds")

    def get_site_classes(self, campground_id: str) -> list[SiteClass]:
        return self._list(SiteClass, f"/campgrounds/{campground_id}/site-classes")

    def get_sites_with_status(
        self,
        campground_id: str,
        arrival: dt.date,
        departure: dt.date,
        **filters: Any,
    ) -> list[SiteWithStatus]:
        """Site status for a window; filters use the API's camelCase names."""
        params = {"arrivalDate": arrival.isoformat(), "departureDate": departure.isoformat()}
        params.update({key: value for key, value in filters.items() if value is not None})
        return self._list(SiteWithStatus, f"/campgrounds/{campground_id}/sites/status", params=params)

    def get_quote(
        self, campground_id: str, site_id: str, arrival: dt.date, departure: dt.date
    ) -> Quote:
        return self._post(
            Quote,
            f"/campgrounds/{campground_id}/quote",
            json={
                "site_id": site_id,
                "arrival_date": arrival.isoformat(),
                "departure_date": departure.isoformat(),
            },
        )

    # Reservations and holds

    def create_reservation(self, data: ReservationCreate) -> Reservation:
        return self._post(Reservation, "/reservations", json=data.model_dump(mode="json"))

    def get_reservation(self, reservation_id: str) -> Reservation:
        return self._get(Reservation, f"/reservations/{reservation_id}")

    def cancel_reservation(
        self,
        reservation_id: str,
        cancellation_date: dt.date | None = None,
        reason: str | None = None,
    ) -> CancellationResult:
        body = {
            "cancellation_date": cancellation_date.isoformat() if cancellation_date else None,
            "reason": reason,
        }
        return self._post(CancellationResult, f"/reservations/{reservation_id}/cancel", json=body)

    def create_hold(
        self,
        campground_id: str,
        site_id: str,
        arrival: dt.date,
        departure: dt.date,
        hold_minutes: int = 30,
        note: str | None = None,
    ) -> Hold:
        return self._post(
            Hold,
            "/holds",
            json={
                "campground_id": campground_id,
                "site_id": site_id,
                "arrival_date": arrival.isoformat(),
                "departure_date": departure.isoformat(),
                "hold_minutes": hold_minutes,
                "note": note,
            },
        )

    def release_hold(self, hold_id: str) -> Hold:
        return Hold.model_validate_json(self._send("DELETE", f"/holds/{hold_id}").content)

    def list_holds(self, campground_id: str) -> list[Hold]:
        return self._list(Hold, f"/holds/campgrounds/{campground_id}")

    # Payments, payouts and disputes

    def record_payment(
        self,
        reservation_id: str,
        method: PaymentMethod,
        amount_cents: int,
        cash_received_cents: int | None = None,
        note: str | None = None,
    ) -> PaymentResult:
        return self._post(
            PaymentResult,
            f"/reservations/{reservation_id}/payments",
            json={
                "method": method.value,
                "amount_cents": amount_cents,
                "cash_received_cents": cash_received_cents,
                "note": note,
            },
        )

    def list_payouts(self, campground_id: str, status: str | None = None) -> list[Payout]:
        params = {"status": status} if status else None
        return self._list(Payout, f"/campgrounds/{campground_id}/payouts", params=params)

    def get_payout(self, campground_id: str, payout_id: str) -> PayoutDetail:
        return self._get(PayoutDetail, f"/campgrounds/{campground_id}/payouts/{payout_id}")

    def get_payout_recon(self, campground_id: str, payout_id: str) -> PayoutReconSummary:
        return self._get(
            PayoutReconSummary, f"/campgrounds/{campground_id}/payouts/{payout_id}/recon"
        )

    def list_disputes(self, campground_id: str, status: str | None = None) -> list[Dispute]:
        params = {"status": status} if status else None
        return self._list(Dispute, f"/campgrounds/{campground_id}/disputes", params=params)

    # Currency and portfolios

    def get_currency_tax_config(self) -> CurrencyTaxConfig:
        return self._get(CurrencyTaxConfig, "/currency-tax")

    def convert_currency(
        self, amount: float, from_currency: str, to_currency: str
    ) -> ConversionResult:
        return self._post(
            ConversionResult,
            "/currency-tax/convert",
            json={"amount": amount, "from_currency": from_currency, "to_currency": to_currency},
        )

    def get_portfolio_report(self, portfolio_id: str) -> PortfolioReport:
        return self._get(PortfolioReport, f"/portfolios/{portfolio_id}/report")

    # Help and preferences

    def search_help(
        self, query: str, role: str | None = None, context: str | None = None
    ) -> HelpSearchResult:
        params = {"q": query, "role": role, "context": context}
        return self._get(
            HelpSearchResult,
            "/help/search",
            params={key: value for key, value in params.items() if value is not None},
        )

    def get_preferences(self, user_id: str) -> dict[str, Any]:
        data = self._request("GET", "/preferences", headers={"X-User-Id": user_id})
        return data["preferences"]

    def set_preference(self, user_id: str, key: str, value: Any) -> Any:
        data = self._request(
            "PUT", f"/preferences/{key}", headers={"X-User-Id": user_id}, json={"value": value}
        )
        return data["value"]
