"""Derived state for the staff booking flow.

Everything here is a pure function of a BookingDraft (plus guest and
reservation lists for the guest picker), so the same numbers the desk sees
can be computed and tested server-side.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation

from campreserv.models import (
    BookingDraft,
    BookingDraftSummary,
    CardMode,
    Guest,
    PaymentMethod,
    Reservation,
    ReservationCreate,
    ReservationStatus,
)
from campreserv.utils.items import round_half_up

DEFAULT_STAY_NIGHTS = 2
GUEST_SEARCH_LIMIT = 6
LOCK_FEE_REASON = "Site lock fee"
ESTIMATE_REASON = "Manual rate estimate"


def default_departure(arrival: dt.date) -> dt.date:
    return arrival + dt.timedelta(days=DEFAULT_STAY_NIGHTS)


def parse_money_to_cents(value: str | None) -> int:
    """Parse a typed dollar amount ("125.5") to cents, rounding half up.

    Blank or unparseable input is 0.
    """
    if value is None or not str(value).strip():
        return 0
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return 0
    if not amount.is_finite():
        return 0
    return int(round_half_up(amount * 100))


def format_cents(cents: int) -> str:
    return f"{round_half_up(Decimal(cents) / 100, 2)}"


def fallback_nightly_rate(draft: BookingDraft) -> int | None:
    """Nightly rate to estimate with when no server quote is available."""
    site = draft.site
    if site is None:
        return None
    if site.default_rate is not None:
        return site.default_rate
    if site.site_class_id:
        for site_class in draft.site_classes:
            if site_class.id == site.site_class_id and site_class.default_rate is not None:
                return site_class.default_rate
    for site_class in draft.site_classes:
        if site_class.name.lower() == site.site_type.lower() and site_class.default_rate is not None:
            return site_class.default_rate
    return None


def cash_note(received_cents: int, change_due_cents: int) -> str:
    note = f"Cash received ${format_cents(received_cents)}"
    if change_due_cents:
        note += f" • Change due ${format_cents(change_due_cents)}"
    return note


def summarize(draft: BookingDraft) -> BookingDraftSummary:
    """Derive totals, cash handling and readiness from a draft."""
    arrival = draft.arrival_date
    departure = draft.departure_date
    if arrival and departure is None:
        departure = default_departure(arrival)

    date_range_valid = bool(arrival and departure and departure > arrival)
    nights = max(1, (departure - arrival).days) if arrival and departure else 1

    rate = fallback_nightly_rate(draft)
    fallback_subtotal = rate * nights if rate is not None else None
    pricing_total = (
        draft.quote_total_cents if draft.quote_total_cents is not None else fallback_subtotal
    )
    is_estimate = draft.quote_total_cents is None and fallback_subtotal is not None

    fee = draft.campground.site_selection_fee_cents if draft.campground else 0
    lock_fee = fee if draft.lock_site and fee > 0 else 0
    estimated_total = pricing_total + lock_fee if pricing_total is not None else None

    payment_amount = parse_money_to_cents(draft.payment_amount)
    payment_amount_default = (
        format_cents(estimated_total) if estimated_total and estimated_total > 0 else None
    )
    if estimated_total is not None:
        total = estimated_total
    elif payment_amount > 0:
        total = payment_amount
    else:
        total = 0

    method = draft.payment_method
    is_cash = method == PaymentMethod.CASH
    received = parse_money_to_cents(draft.cash_received)
    change_due = received - payment_amount if is_cash and received > payment_amount else 0
    cash_short = payment_amount - received if is_cash and 0 < received < payment_amount else 0

    payment_ready = (
        method is not None
        and payment_amount > 0
        and (not is_cash or received >= payment_amount)
        and not (method == PaymentMethod.CARD and draft.card_mode == CardMode.READER)
    )
    can_create = (
        payment_ready
        and draft.campground is not None
        and bool(draft.guest_id)
        and draft.site is not None
        and date_range_valid
        and pricing_total is not None
    )

    is_card = method == PaymentMethod.CARD
    paid = 0 if is_card else payment_amount

    if lock_fee > 0:
        override_reason = LOCK_FEE_REASON
    elif is_estimate or draft.quote_error:
        override_reason = ESTIMATE_REASON
    else:
        override_reason = None

    return BookingDraftSummary(
        arrival_date=arrival,
        departure_date=departure,
        nights=nights,
        date_range_valid=date_range_valid,
        fallback_nightly_rate=rate,
        fallback_subtotal=fallback_subtotal,
        pricing_total=pricing_total,
        is_estimate=is_estimate,
        lock_fee=lock_fee,
        estimated_total=estimated_total,
        total_cents=total,
        payment_amount_cents=payment_amount,
        payment_amount_default=payment_amount_default,
        change_due_cents=change_due,
        cash_short_cents=cash_short,
        cash_note=cash_note(received, change_due) if is_cash and received > 0 else None,
        payment_ready=payment_ready,
        can_create=can_create,
        reservation_status=ReservationStatus.PENDING if is_card else ReservationStatus.CONFIRMED,
        paid_amount=paid,
        balance_amount=max(0, total - paid),
        override_reason=override_reason,
        needs_override_approval=override_reason is not None,
        override_ready=override_reason is None or bool(draft.override_approved_by),
    )


def to_reservation_create(draft: BookingDraft, guest_id: str | None = None) -> ReservationCreate:
    """Build the reservation request the desk would submit for this draft.

    Raises:
        ValueError: if campground, site, guest or dates are missing
    """
    summary = summarize(draft)
    guest_id = guest_id or draft.guest_id
    if not (draft.campground and draft.site and guest_id and summary.date_range_valid):
        raise ValueError("Draft needs a campground, site, guest and valid dates")

    notes = [part for part in (draft.notes, summary.cash_note) if part]
    return ReservationCreate(
        campground_id=draft.campground.id,
        guest_id=guest_id,
        site_id=draft.site.id,
        arrival_date=summary.arrival_date,
        departure_date=summary.departure_date,
        adults=draft.adults,
        children=draft.children,
        rig_type=draft.rig_type,
        rig_length=draft.rig_length,
        total_amount=summary.total_cents,
        paid_amount=summary.paid_amount,
        payment_method=draft.payment_method,
        status=summary.reservation_status,
        notes=" • ".join(notes) or None,
        hold_id=draft.hold_id,
        override_reason=summary.override_reason,
        override_approved_by=draft.override_approved_by if summary.override_reason else None,
    )


def search_guests(guests: list[Guest], query: str, limit: int = GUEST_SEARCH_LIMIT) -> list[Guest]:
    """Case-insensitive substring match on name, email or phone."""
    needle = (query or "").strip().lower()
    if not needle:
        return []

    matches = []
    for guest in guests:
        first = guest.primary_first_name.lower()
        last = guest.primary_last_name.lower()
        fields = (
            first,
            last,
            (guest.email or "").lower(),
            (guest.phone or "").lower(),
            f"{first} {last}".strip(),
        )
        if any(needle in field for field in fields):
            matches.append(guest)
            if len(matches) >= limit:
                break
    return matches


def has_stayed(guest_id: str, reservations: list[Reservation], today: dt.date) -> bool:
    """True if the guest has a stay that has started or already ended."""
    for reservation in reservations:
        if reservation.guest_id != guest_id:
            continue
        if reservation.status == ReservationStatus.CANCELLED:
            continue
        if reservation.status in (ReservationStatus.CHECKED_IN, ReservationStatus.CHECKED_OUT):
            return True
        if reservation.departure_date <= today:
            return True
    return False
