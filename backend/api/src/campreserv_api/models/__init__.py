"""API-specific request/response models.

Domain models (Reservation, Payment, Payout, etc.) are in campreserv.models
and are reused here where appropriate.

Modules:
- common: Shared response wrappers
- requests: Request bodies
"""

__all__: list[str] = []
