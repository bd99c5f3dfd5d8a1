"""Currency conversion and cross-park portfolio reporting."""

from typing import TYPE_CHECKING, Any

from campreserv.models import (
    CampreservError,
    ConversionResult,
    CurrencyTaxConfig,
    ErrorCode,
    FxRate,
    Portfolio,
    PortfolioPark,
    PortfolioParkMetrics,
    PortfolioReport,
    PortfolioReportRow,
    PortfolioReportView,
    PortfolioRollup,
)
from campreserv.utils.items import as_datetime, as_decimal, as_float, as_int, round_half_up, utc_now
from campreserv.utils.logging import get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

CONFIG_ID = "default"


def _round(value: float, places: int) -> float:
    return float(round_half_up(value, places))


def _round_cents(value: float) -> int:
    return int(round_half_up(value))


def resolve_rate(
    fx_rates: list[FxRate],
    base_currency: str | None,
    from_currency: str,
    to_currency: str,
) -> float:
    """Rate to multiply an amount in `from_currency` by to get `to_currency`.

    Uses a direct rate, else the inverse of the reverse rate, else a cross
    rate through the base currency. Falls back to 1 when nothing applies.
    """
    if from_currency == to_currency:
        return 1.0
    for fx in fx_rates:
        if fx.base == from_currency and fx.quote == to_currency:
            return fx.rate
    for fx in fx_rates:
        if fx.base == to_currency and fx.quote == from_currency:
            return _round(1 / fx.rate, 6)

    if base_currency and base_currency not in (from_currency, to_currency):
        to_base = resolve_rate(fx_rates, base_currency, from_currency, base_currency)
        from_base = resolve_rate(fx_rates, base_currency, base_currency, to_currency)
        return _round(to_base * from_base, 6) or 1.0

    return 1.0


def build_report_view(
    report: PortfolioReport,
    config: CurrencyTaxConfig | None,
    reporting_currency: str | None = None,
    fx_enabled: bool = True,
) -> PortfolioReportView:
    """Convert a home-currency report into the chosen reporting currency.

    With FX disabled every row stays in its park currency at rate 1.
    """
    fx_rates = config.fx_rates if config else []
    base_currency = config.base_currency if config else report.home_currency
    target = (
        reporting_currency
        or (config.reporting_currency if config else None)
        or report.home_currency
        or "USD"
    )

    rows = []
    for metric in report.metrics:
        rate = resolve_rate(fx_rates, base_currency, metric.currency, target) if fx_enabled else 1.0
        rows.append(
            PortfolioReportRow(
                **metric.model_dump(),
                display_currency=target if fx_enabled else metric.currency,
                display_adr=_round(metric.adr * rate, 2),
                display_revpar=_round(metric.revpar * rate, 2),
                display_revenue=_round_cents(metric.revenue * rate),
                fx_rate=rate,
            )
        )

    rollup = report.rollup
    if fx_enabled and rollup.currency != target:
        rate = resolve_rate(fx_rates, base_currency, rollup.currency, target)
        rollup = PortfolioRollup(
            currency=target,
            revenue_home=_round_cents(rollup.revenue_home * rate),
            occupancy=rollup.occupancy,
            adr=_round(rollup.adr * rate, 2),
            revpar=_round(rollup.revpar * rate, 2),
        )

    codes = {metric.currency for metric in report.metrics}
    for fx in fx_rates:
        codes.update((fx.base, fx.quote))
    if report.home_currency:
        codes.add(report.home_currency)

    return PortfolioReportView(
        portfolio_id=report.portfolio_id,
        reporting_currency=target,
        fx_enabled=fx_enabled,
        rows=rows,
        rollup=rollup,
        currency_options=sorted(codes),
    )


def _normalize_code(code: str) -> str:
    normalized = (code or "").strip().upper()
    if len(normalized) != 3 or not normalized.isalpha():
        raise CampreservError(ErrorCode.INVALID_CURRENCY, details={"currency": code})
    return normalized


class CurrencyService:
    """Stored currency settings and conversions."""

    TABLE = "currency-config"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get_config(self) -> CurrencyTaxConfig:
        item = self.db.get_item(self.TABLE, {"config_id": CONFIG_ID})
        return self._item_to_config(item) if item else CurrencyTaxConfig()

    def update_config(
        self,
        base_currency: str | None = None,
        reporting_currency: str | None = None,
        fx_provider: str | None = None,
        fx_rates: list[FxRate] | None = None,
    ) -> CurrencyTaxConfig:
        """Update settings; arguments left as None keep their stored value.

        Raises:
            CampreservError: INVALID_CURRENCY for malformed codes
        """
        current = self.get_config()
        update: dict[str, Any] = {"updated_at": utc_now()}
        if base_currency is not None:
            update["base_currency"] = _normalize_code(base_currency)
        if reporting_currency is not None:
            update["reporting_currency"] = _normalize_code(reporting_currency)
        if fx_provider is not None:
            update["fx_provider"] = fx_provider
        if fx_rates is not None:
            update["fx_rates"] = [
                fx.model_copy(
                    update={"base": _normalize_code(fx.base), "quote": _normalize_code(fx.quote)}
                )
                for fx in fx_rates
            ]
        config = current.model_copy(update=update)
        self.db.put_item(self.TABLE, self._config_to_item(config))
        logger.info(
            "Currency config updated: base=%s reporting=%s rates=%d",
            config.base_currency,
            config.reporting_currency,
            len(config.fx_rates),
        )
        return config

    def convert(self, amount: float, from_currency: str, to_currency: str) -> ConversionResult:
        config = self.get_config()
        source = _normalize_code(from_currency)
        target = _normalize_code(to_currency)
        rate = resolve_rate(config.fx_rates, config.base_currency, source, target)
        return ConversionResult(
            amount=float(amount),
            from_currency=source,
            to_currency=target,
            rate=rate,
            converted=_round(amount * rate, 2),
            as_of=config.updated_at or utc_now(),
        )

    def _config_to_item(self, config: CurrencyTaxConfig) -> dict[str, Any]:
        return {
            "config_id": CONFIG_ID,
            "base_currency": config.base_currency,
            "reporting_currency": config.reporting_currency,
            "fx_provider": config.fx_provider,
            "fx_rates": [
                {
                    "base": fx.base,
                    "quote": fx.quote,
                    "rate": as_decimal(fx.rate),
                    "as_of": fx.as_of.isoformat() if fx.as_of else None,
                }
                for fx in config.fx_rates
            ],
            "updated_at": config.updated_at.isoformat() if config.updated_at else None,
        }

    def _item_to_config(self, item: dict[str, Any]) -> CurrencyTaxConfig:
        return CurrencyTaxConfig(
            base_currency=item.get("base_currency", "USD"),
            reporting_currency=item.get("reporting_currency", "USD"),
            fx_provider=item.get("fx_provider", "manual"),
            fx_rates=[
                FxRate(
                    base=fx["base"],
                    quote=fx["quote"],
                    rate=float(fx["rate"]),
                    as_of=as_datetime(fx.get("as_of")),
                )
                for fx in item.get("fx_rates", [])
            ],
            updated_at=as_datetime(item.get("updated_at")),
        )


class PortfolioService:
    """Portfolios of parks and their home-currency reports."""

    TABLE = "portfolios"

    def __init__(self, db: "DynamoDBService", currency: CurrencyService) -> None:
        self.db = db
        self.currency = currency

    def list_portfolios(self) -> list[Portfolio]:
        portfolios = [self._item_to_portfolio(item) for item in self.db.scan(self.TABLE)]
        return sorted(portfolios, key=lambda p: p.name.lower())

    def get_portfolio(self, portfolio_id: str) -> Portfolio:
        item = self.db.get_item(self.TABLE, {"portfolio_id": portfolio_id})
        if not item:
            raise CampreservError(
                ErrorCode.PORTFOLIO_NOT_FOUND, details={"portfolio_id": portfolio_id}
            )
        return self._item_to_portfolio(item)

    def get_report(self, portfolio_id: str) -> PortfolioReport:
        """Per-park metrics plus a rollup in the portfolio's home currency."""
        portfolio = self.get_portfolio(portfolio_id)
        config = self.currency.get_config()
        home = portfolio.home_currency

        metrics = []
        for park in portfolio.parks:
            fx_to_home = resolve_rate(config.fx_rates, config.base_currency, park.currency, home)
            metrics.append(
                PortfolioParkMetrics(
                    park_id=park.park_id,
                    name=park.name,
                    region=park.region,
                    currency=park.currency,
                    occupancy=park.occupancy,
                    adr=park.adr,
                    revpar=park.revpar,
                    revenue=park.revenue,
                    revenue_home=_round_cents(park.revenue * fx_to_home),
                    fx_to_home=fx_to_home,
                    tax_summary=park.tax_summary,
                )
            )

        count = len(metrics)

        def mean(values: list[float]) -> float:
            return _round(sum(values) / count, 2) if count else 0.0

        rollup = PortfolioRollup(
            currency=home,
            revenue_home=sum(m.revenue_home for m in metrics),
            occupancy=mean([m.occupancy for m in metrics]),
            adr=mean([m.adr for m in metrics]),
            revpar=mean([m.revpar for m in metrics]),
        )
        return PortfolioReport(
            portfolio_id=portfolio.id,
            home_currency=home,
            as_of=utc_now(),
            metrics=metrics,
            rollup=rollup,
        )

    def save_portfolio(self, portfolio: Portfolio) -> None:
        self.db.put_item(
            self.TABLE,
            {
                "portfolio_id": portfolio.id,
                "name": portfolio.name,
                "home_currency": portfolio.home_currency,
                "parks": [
                    {
                        "park_id": park.park_id,
                        "name": park.name,
                        "region": park.region,
                        "currency": park.currency,
                        "occupancy": as_decimal(park.occupancy),
                        "adr": as_decimal(park.adr),
                        "revpar": as_decimal(park.revpar),
                        "revenue": park.revenue,
                        **({"tax_summary": park.tax_summary} if park.tax_summary else {}),
                    }
                    for park in portfolio.parks
                ],
            },
        )

    def _item_to_portfolio(self, item: dict[str, Any]) -> Portfolio:
        return Portfolio(
            id=item["portfolio_id"],
            name=item["name"],
            home_currency=item.get("home_currency", "USD"),
            parks=[
                PortfolioPark(
                    park_id=park["park_id"],
                    name=park["name"],
                    region=park.get("region", ""),
                    currency=park.get("currency", "USD"),
                    occupancy=as_float(park.get("occupancy"), 0.0),
                    adr=as_float(park.get("adr"), 0.0),
                    revpar=as_float(park.get("revpar"), 0.0),
                    revenue=as_int(park.get("revenue"), 0),
                    tax_summary=park.get("tax_summary"),
                )
                for park in item.get("parks", [])
            ],
        )
