"""Currency configuration and portfolio reporting models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FxRate(BaseModel):
    """Exchange rate: 1 unit of base = rate units of quote."""

    model_config = ConfigDict(strict=True)

    base: str = Field(..., examples=["USD"])
    quote: str = Field(..., examples=["CAD"])
    rate: float = Field(..., gt=0, examples=[1.36])
    as_of: datetime | None = None


class CurrencyTaxConfig(BaseModel):
    """Platform currency settings."""

    model_config = ConfigDict(strict=True)

    base_currency: str = Field(default="USD")
    reporting_currency: str = Field(default="USD")
    fx_provider: str = Field(default="manual", examples=["manual", "openexchangerates"])
    fx_rates: list[FxRate] = Field(default_factory=list)
    updated_at: datetime | None = None


class ConversionResult(BaseModel):
    """Result of converting an amount between currencies."""

    model_config = ConfigDict(strict=True)

    amount: float
    from_currency: str
    to_currency: str
    rate: float
    converted: float
    as_of: datetime


class PortfolioPark(BaseModel):
    """Operating metrics of one park as stored on a portfolio."""

    model_config = ConfigDict(strict=True)

    park_id: str
    name: str
    region: str = ""
    currency: str = "USD"
    occupancy: float = Field(default=0.0, ge=0, le=1, description="Occupied fraction")
    adr: float = Field(default=0.0, ge=0, description="Average daily rate")
    revpar: float = Field(default=0.0, ge=0, description="Revenue per available site-night")
    revenue: int = Field(default=0, ge=0, description="Revenue in park currency cents")
    tax_summary: str | None = None


class Portfolio(BaseModel):
    """A group of parks reported together."""

    model_config = ConfigDict(strict=True)

    id: str
    name: str
    home_currency: str = "USD"
    parks: list[PortfolioPark] = Field(default_factory=list)


class PortfolioParkMetrics(BaseModel):
    """Per-park row of a portfolio report."""

    model_config = ConfigDict(strict=True)

    park_id: str
    name: str
    region: str
    currency: str
    occupancy: float
    adr: float
    revpar: float
    revenue: int
    revenue_home: int
    fx_to_home: float
    tax_summary: str | None = None


class PortfolioRollup(BaseModel):
    """Portfolio totals in one currency."""

    model_config = ConfigDict(strict=True)

    currency: str
    revenue_home: int
    occupancy: float
    adr: float
    revpar: float


class PortfolioReport(BaseModel):
    """Portfolio report in the home currency."""

    model_config = ConfigDict(strict=True)

    portfolio_id: str
    home_currency: str
    as_of: datetime
    metrics: list[PortfolioParkMetrics]
    rollup: PortfolioRollup


class PortfolioReportRow(PortfolioParkMetrics):
    """Per-park row converted to the reporting currency."""

    display_currency: str
    display_adr: float
    display_revpar: float
    display_revenue: int
    fx_rate: float


class PortfolioReportView(BaseModel):
    """Portfolio report as shown in a chosen reporting currency."""

    model_config = ConfigDict(strict=True)

    portfolio_id: str
    reporting_currency: str
    fx_enabled: bool
    rows: list[PortfolioReportRow]
    rollup: PortfolioRollup
    currency_options: list[str]
