"""Currency settings, conversion and portfolio report endpoints."""

from fastapi import APIRouter, Depends, Header, Query

from campreserv.models import (
    ConversionResult,
    CurrencyTaxConfig,
    FxRate,
    PortfolioReport,
    PortfolioReportView,
)
from campreserv.services.fx import CurrencyService, PortfolioService, build_report_view
from campreserv.services.preferences import REPORTING_CURRENCY, PreferencesService
from campreserv_api.dependencies import (
    get_currency_service,
    get_portfolio_service,
    get_preferences_service,
)
from campreserv_api.models.requests import ConvertRequest, CurrencyConfigUpdateRequest

router = APIRouter(tags=["currency"])


@router.get("/currency-tax", summary="Get currency settings", response_model=CurrencyTaxConfig)
async def get_currency_tax_config(
    service: CurrencyService = Depends(get_currency_service),
) -> CurrencyTaxConfig:
    return service.get_config()


@router.post(
    "/currency-tax",
    summary="Update currency settings",
    description="Partial update; omitted fields keep their stored value.",
    response_model=CurrencyTaxConfig,
    responses={400: {"description": "Invalid currency code"}},
)
async def update_currency_tax_config(
    body: CurrencyConfigUpdateRequest,
    service: CurrencyService = Depends(get_currency_service),
) -> CurrencyTaxConfig:
    fx_rates = (
        [FxRate(**fx.model_dump()) for fx in body.fx_rates] if body.fx_rates is not None else None
    )
    return service.update_config(
        base_currency=body.base_currency,
        reporting_currency=body.reporting_currency,
        fx_provider=body.fx_provider,
        fx_rates=fx_rates,
    )


@router.post(
    "/currency-tax/convert",
    summary="Convert an amount",
    response_model=ConversionResult,
    responses={400: {"description": "Invalid currency code"}},
)
async def convert_currency(
    body: ConvertRequest,
    service: CurrencyService = Depends(get_currency_service),
) -> ConversionResult:
    return service.convert(body.amount, body.from_currency, body.to_currency)


@router.get(
    "/portfolios/{portfolio_id}/report",
    summary="Portfolio report in the home currency",
    response_model=PortfolioReport,
    responses={404: {"description": "Portfolio not found"}},
)
async def get_portfolio_report(
    portfolio_id: str,
    service: PortfolioService = Depends(get_portfolio_service),
) -> PortfolioReport:
    return service.get_report(portfolio_id)


@router.get(
    "/portfolios/{portfolio_id}/report/view",
    summary="Portfolio report in a reporting currency",
    description="""
The reporting currency is taken from `reportingCurrency`, else the caller's
stored preference (with `X-User-Id`), else the configured reporting currency,
else the portfolio home currency. `fx=false` keeps rows in park currencies.
""",
    response_model=PortfolioReportView,
    responses={404: {"description": "Portfolio not found"}},
)
async def get_portfolio_report_view(
    portfolio_id: str,
    reporting_currency: str | None = Query(default=None, alias="reportingCurrency"),
    fx: bool = Query(default=True),
    x_user_id: str | None = Header(default=None),
    portfolios: PortfolioService = Depends(get_portfolio_service),
    currency: CurrencyService = Depends(get_currency_service),
    preferences: PreferencesService = Depends(get_preferences_service),
) -> PortfolioReportView:
    report = portfolios.get_report(portfolio_id)
    if not reporting_currency and x_user_id:
        reporting_currency = preferences.get(x_user_id, REPORTING_CURRENCY)
    return build_report_view(
        report, currency.get_config(), reporting_currency=reporting_currency, fx_enabled=fx
    )
