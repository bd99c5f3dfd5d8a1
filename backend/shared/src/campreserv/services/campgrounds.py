"""Campground, site class and site lookups."""

from typing import TYPE_CHECKING, Any

from campreserv.models import (
    BlackoutDate,
    Campground,
    CampreservError,
    CancellationRule,
    DepositRule,
    ErrorCode,
    FeeType,
    MaintenanceTicket,
    Site,
    SiteClass,
    SiteType,
)
from campreserv.utils.items import as_date, as_datetime, as_int, compact, utc_now

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService


OPEN_MAINTENANCE_STATUSES = frozenset({"open", "in_progress"})


class CampgroundService:
    """Read access to campgrounds and their inventory."""

    CAMPGROUNDS_TABLE = "campgrounds"
    SITE_CLASSES_TABLE = "site-classes"
    SITES_TABLE = "sites"
    BLACKOUTS_TABLE = "blackout-dates"
    MAINTENANCE_TABLE = "maintenance-tickets"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize campground service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    # Campgrounds

    def list_campgrounds(self) -> list[Campground]:
        items = self.db.scan(self.CAMPGROUNDS_TABLE)
        campgrounds = [self._item_to_campground(item) for item in items]
        return sorted(campgrounds, key=lambda c: c.name.lower())

    def get_campground(self, campground_id: str) -> Campground:
        """Get a campground by ID.

        Raises:
            CampreservError: CAMPGROUND_NOT_FOUND if it does not exist
        """
        item = self.db.get_item(self.CAMPGROUNDS_TABLE, {"campground_id": campground_id})
        if not item:
            raise CampreservError(
                ErrorCode.CAMPGROUND_NOT_FOUND, details={"campground_id": campground_id}
            )
        return self._item_to_campground(item)

    def save_campground(self, campground: Campground) -> Campground:
        """Create or replace a campground record."""
        now = utc_now()
        campground = campground.model_copy(
            update={"created_at": campground.created_at or now, "updated_at": now}
        )
        self.db.put_item(self.CAMPGROUNDS_TABLE, self._campground_to_item(campground))
        return campground

    def set_cancellation_rules(
        self, campground_id: str, rules: list[CancellationRule]
    ) -> Campground:
        """Replace a campground's cancellation rules."""
        attrs = self.db.update_item(
            self.CAMPGROUNDS_TABLE,
            {"campground_id": campground_id},
            "SET cancellation_rules = :rules, updated_at = :now",
            {
                ":rules": [self._rule_to_item(rule) for rule in rules],
                ":now": utc_now().isoformat(),
            },
            condition_expression="attribute_exists(campground_id)",
        )
        if attrs is None:
            raise CampreservError(
                ErrorCode.CAMPGROUND_NOT_FOUND, details={"campground_id": campground_id}
            )
        return self._item_to_campground(attrs)

    # Site classes and sites

    def list_site_classes(self, campground_id: str) -> list[SiteClass]:
        items = self.db.query_by_campground(self.SITE_CLASSES_TABLE, campground_id)
        classes = [self._item_to_site_class(item) for item in items]
        return sorted(classes, key=lambda c: c.name.lower())

    def get_site_class(self, site_class_id: str) -> SiteClass | None:
        item = self.db.get_item(self.SITE_CLASSES_TABLE, {"site_class_id": site_class_id})
        return self._item_to_site_class(item) if item else None

    def list_sites(self, campground_id: str, *, active_only: bool = True) -> list[Site]:
        """List a campground's sites sorted by name."""
        items = self.db.query_by_campground(self.SITES_TABLE, campground_id)
        sites = [self._item_to_site(item) for item in items]
        if active_only:
            sites = [site for site in sites if site.is_active]
        return sorted(sites, key=lambda s: s.name)

    def get_site(self, site_id: str, campground_id: str | None = None) -> Site:
        """Get a site, optionally checking it belongs to a campground.

        Raises:
            CampreservError: SITE_NOT_FOUND if missing or in another campground
        """
        item = self.db.get_item(self.SITES_TABLE, {"site_id": site_id})
        if not item or (campground_id and item.get("campground_id") != campground_id):
            raise CampreservError(ErrorCode.SITE_NOT_FOUND, details={"site_id": site_id})
        return self._item_to_site(item)

    # Closures

    def list_blackouts(self, campground_id: str) -> list[BlackoutDate]:
        items = self.db.query_by_campground(self.BLACKOUTS_TABLE, campground_id)
        return [self._item_to_blackout(item) for item in items]

    def list_open_maintenance(self, campground_id: str) -> list[MaintenanceTicket]:
        items = self.db.query_by_campground(self.MAINTENANCE_TABLE, campground_id)
        tickets = [self._item_to_ticket(item) for item in items]
        return [t for t in tickets if t.site_id and t.status in OPEN_MAINTENANCE_STATUSES]

    # Item conversion

    def _rule_to_item(self, rule: CancellationRule) -> dict[str, Any]:
        return {
            "id": rule.id,
            "days_before_arrival": rule.days_before_arrival,
            "fee_type": rule.fee_type.value,
            "fee_amount": rule.fee_amount,
            "applies_to": list(rule.applies_to),
        }

    def _item_to_rule(self, item: dict[str, Any]) -> CancellationRule:
        return CancellationRule(
            id=item["id"],
            days_before_arrival=int(item["days_before_arrival"]),
            fee_type=FeeType(item["fee_type"]),
            fee_amount=int(item.get("fee_amount", 0)),
            applies_to=list(item.get("applies_to", [])),
        )

    def _campground_to_item(self, campground: Campground) -> dict[str, Any]:
        return compact(
            {
                "campground_id": campground.id,
                "name": campground.name,
                "slug": campground.slug,
                "currency": campground.currency,
                "site_selection_fee_cents": campground.site_selection_fee_cents,
                "deposit_rule": campground.deposit_rule.value,
                "deposit_percentage": campground.deposit_percentage,
                "cancellation_rules": [
                    self._rule_to_item(rule) for rule in campground.cancellation_rules
                ],
                "created_at": campground.created_at.isoformat() if campground.created_at else None,
                "updated_at": campground.updated_at.isoformat() if campground.updated_at else None,
            }
        )

    def _item_to_campground(self, item: dict[str, Any]) -> Campground:
        return Campground(
            id=item["campground_id"],
            name=item["name"],
            slug=item.get("slug", item["campground_id"]),
            currency=item.get("currency", "USD"),
            site_selection_fee_cents=as_int(item.get("site_selection_fee_cents"), 0),
            deposit_rule=DepositRule(item.get("deposit_rule", DepositRule.NONE.value)),
            deposit_percentage=as_int(item.get("deposit_percentage")),
            cancellation_rules=[
                self._item_to_rule(rule) for rule in item.get("cancellation_rules", [])
            ],
            created_at=as_datetime(item.get("created_at")),
            updated_at=as_datetime(item.get("updated_at")),
        )

    def _item_to_site_class(self, item: dict[str, Any]) -> SiteClass:
        return SiteClass(
            id=item["site_class_id"],
            campground_id=item["campground_id"],
            name=item["name"],
            default_rate=int(item.get("default_rate", 0)),
            site_type=SiteType(item.get("site_type", SiteType.RV.value)),
            max_occupancy=as_int(item.get("max_occupancy")),
            rig_max_length=as_int(item.get("rig_max_length")),
            is_active=bool(item.get("is_active", True)),
        )

    def _item_to_site(self, item: dict[str, Any]) -> Site:
        return Site(
            id=item["site_id"],
            campground_id=item["campground_id"],
            name=item["name"],
            site_number=item.get("site_number", item["name"]),
            site_type=SiteType(item["site_type"]),
            site_class_id=item.get("site_class_id"),
            max_occupancy=as_int(item.get("max_occupancy")),
            rig_max_length=as_int(item.get("rig_max_length")),
            accessible=bool(item.get("accessible", False)),
            amenity_tags=list(item.get("amenity_tags", [])),
            default_rate=as_int(item.get("default_rate")),
            is_active=bool(item.get("is_active", True)),
        )

    def _item_to_blackout(self, item: dict[str, Any]) -> BlackoutDate:
        return BlackoutDate(
            id=item["blackout_id"],
            campground_id=item["campground_id"],
            site_id=item.get("site_id"),
            start_date=as_date(item["start_date"]),
            end_date=as_date(item["end_date"]),
            reason=item.get("reason"),
        )

    def _item_to_ticket(self, item: dict[str, Any]) -> MaintenanceTicket:
        return MaintenanceTicket(
            id=item["ticket_id"],
            campground_id=item["campground_id"],
            site_id=item.get("site_id"),
            title=item.get("title", ""),
            status=item.get("status", "open"),
        )
