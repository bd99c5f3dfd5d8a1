"""API routes package.

Routers are organized by domain and registered in main.py with the /api
prefix:

- health: liveness and readiness
- campgrounds: campgrounds, site classes, sites, site status, guest search
- pricing: quotes and cancellation policies
- holds: site holds
- reservations: reservation lifecycle
- payments: payments and the booking draft summary
- payouts: payouts, reconciliation and disputes
- currency: currency settings, conversion and portfolio reports
- help: help search and help panel state
- preferences: per-user preferences
- webhooks: Stripe events
"""

from campreserv_api.routes.campgrounds import router as campgrounds_router
from campreserv_api.routes.currency import router as currency_router
from campreserv_api.routes.health import router as health_router
from campreserv_api.routes.help import router as help_router
from campreserv_api.routes.holds import router as holds_router
from campreserv_api.routes.payments import router as payments_router
from campreserv_api.routes.payouts import router as payouts_router
from campreserv_api.routes.preferences import router as preferences_router
from campreserv_api.routes.pricing import router as pricing_router
from campreserv_api.routes.reservations import router as reservations_router
from campreserv_api.routes.webhooks import router as webhooks_router

__all__ = [
    "campgrounds_router",
    "currency_router",
    "health_router",
    "help_router",
    "holds_router",
    "payments_router",
    "payouts_router",
    "preferences_router",
    "pricing_router",
    "reservations_router",
    "webhooks_router",
]
