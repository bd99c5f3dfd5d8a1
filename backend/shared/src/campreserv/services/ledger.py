"""Reservation ledger: credits for money received, debits for money returned."""

import uuid
from typing import TYPE_CHECKING, Any, Iterable

from campreserv.models import LedgerDirection, LedgerEntry
from campreserv.utils.items import as_datetime, compact, utc_now
from campreserv.utils.logging import get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


class LedgerService:
    """Append-only ledger entries keyed to reservations."""

    TABLE = "ledger-entries"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def _entry_id(self, dedupe_key: str | None) -> str:
        if dedupe_key:
            # same key -> same id, so the conditional put rejects repeats
            return f"LED-{uuid.uuid5(uuid.NAMESPACE_URL, dedupe_key).hex[:16].upper()}"
        return f"LED-{uuid.uuid4().hex[:16].upper()}"

    def post_entry(
        self,
        campground_id: str,
        reservation_id: str,
        direction: LedgerDirection,
        amount_cents: int,
        description: str,
        source: str,
        dedupe_key: str | None = None,
    ) -> bool:
        """Post a ledger entry.

        Returns:
            True if posted, False if an entry with the same dedupe_key exists
        """
        entry = LedgerEntry(
            entry_id=self._entry_id(dedupe_key),
            campground_id=campground_id,
            reservation_id=reservation_id,
            direction=direction,
            amount_cents=abs(amount_cents),
            description=description,
            source=source,
            created_at=utc_now(),
        )
        item = self._entry_to_item(entry)
        item["dedupe_key"] = dedupe_key
        posted = self.db.put_item(
            self.TABLE,
            compact(item),
            condition_expression="attribute_not_exists(entry_id)",
        )
        if not posted:
            logger.info("Ledger entry for %s already posted, skipping", dedupe_key)
        return posted

    def list_for_reservation(self, reservation_id: str) -> list[LedgerEntry]:
        items = self.db.query_by_gsi(
            self.TABLE, "reservation_id-index", "reservation_id", reservation_id
        )
        entries = [self._item_to_entry(item) for item in items]
        return sorted(entries, key=lambda e: e.created_at)

    def net_for_reservations(self, reservation_ids: Iterable[str]) -> int:
        """Credits minus debits across the given reservations, in cents."""
        net = 0
        for reservation_id in set(reservation_ids):
            for entry in self.list_for_reservation(reservation_id):
                if entry.direction == LedgerDirection.CREDIT:
                    net += entry.amount_cents
                else:
                    net -= entry.amount_cents
        return net

    def _entry_to_item(self, entry: LedgerEntry) -> dict[str, Any]:
        return {
            "entry_id": entry.entry_id,
            "campground_id": entry.campground_id,
            "reservation_id": entry.reservation_id,
            "direction": entry.direction.value,
            "amount_cents": entry.amount_cents,
            "description": entry.description,
            "source": entry.source,
            "created_at": entry.created_at.isoformat(),
        }

    def _item_to_entry(self, item: dict[str, Any]) -> LedgerEntry:
        return LedgerEntry(
            entry_id=item["entry_id"],
            campground_id=item["campground_id"],
            reservation_id=item["reservation_id"],
            direction=LedgerDirection(item["direction"]),
            amount_cents=int(item["amount_cents"]),
            description=item.get("description", ""),
            source=item.get("source", "payment"),
            created_at=as_datetime(item["created_at"]),
        )
