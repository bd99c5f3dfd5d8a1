"""Per-user UI preferences: selected campground, help panel state and more."""

from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Key
from pydantic import TypeAdapter, ValidationError

from campreserv.models import CampreservError, ErrorCode
from campreserv.utils.items import utc_now
from campreserv.utils.logging import get_logger

if TYPE_CHECKING:
    from campreserv.models import Campground

    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

HELP_PINS = "campreserv:help:pins"
HELP_RECENT = "campreserv:help:recent"
HELP_FEEDBACK = "campreserv:help:feedback"
HELP_ROLE = "campreserv:help:role"
SELECTED_CAMPGROUND = "campreserv:selectedCampground"
SELECTED_PORTFOLIO = "campreserv:selectedPortfolio"
LOCALE = "campreserv:locale"
REPORTING_CURRENCY = "campreserv:reportingCurrency"

PREFERENCE_KEYS = frozenset(
    {
        HELP_PINS,
        HELP_RECENT,
        HELP_FEEDBACK,
        HELP_ROLE,
        SELECTED_CAMPGROUND,
        SELECTED_PORTFOLIO,
        LOCALE,
        REPORTING_CURRENCY,
    }
)

_TOPIC_IDS = TypeAdapter(list[str])
_TEXT = TypeAdapter(str)

# Keys not listed hold a single string
VALUE_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    HELP_PINS: _TOPIC_IDS,
    HELP_RECENT: _TOPIC_IDS,
    HELP_FEEDBACK: TypeAdapter(dict[str, bool]),
}


def validate_key(key: str) -> str:
    if key not in PREFERENCE_KEYS:
        raise CampreservError(ErrorCode.INVALID_PREFERENCE_KEY, details={"key": key})
    return key


def validate_value(key: str, value: Any) -> Any:
    """Check a value against the shape its key stores.

    Raises:
        CampreservError: INVALID_PREFERENCE_VALUE
    """
    try:
        return VALUE_ADAPTERS.get(key, _TEXT).validate_python(value, strict=True)
    except ValidationError as e:
        raise CampreservError(
            ErrorCode.INVALID_PREFERENCE_VALUE,
            details={"key": key, "error": e.errors()[0]["msg"]},
        ) from e


class PreferencesService:
    """Key/value preferences stored per user in user-preferences."""

    TABLE = "user-preferences"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get(self, user_id: str, key: str, default: Any = None) -> Any:
        item = self.db.get_item(self.TABLE, {"user_id": user_id, "pref_key": validate_key(key)})
        return item["value"] if item else default

    def set(self, user_id: str, key: str, value: Any) -> Any:
        value = validate_value(validate_key(key), value)
        self.db.put_item(
            self.TABLE,
            {
                "user_id": user_id,
                "pref_key": key,
                "value": value,
                "updated_at": utc_now().isoformat(),
            },
        )
        logger.debug("Preference %s set for %s", key, user_id)
        return value

    def delete(self, user_id: str, key: str) -> None:
        self.db.delete_item(self.TABLE, {"user_id": user_id, "pref_key": validate_key(key)})

    def get_all(self, user_id: str) -> dict[str, Any]:
        items = self.db.query(self.TABLE, Key("user_id").eq(user_id))
        return {item["pref_key"]: item["value"] for item in items}

    def resolve_selected_campground(
        self, user_id: str, campgrounds: list["Campground"]
    ) -> str | None:
        """Keep the stored campground if it still exists, else pick the first one."""
        stored = self.get(user_id, SELECTED_CAMPGROUND)
        ids = [campground.id for campground in campgrounds]
        if stored in ids:
            return stored
        selected = ids[0] if ids else None
        if selected is None:
            self.delete(user_id, SELECTED_CAMPGROUND)
        else:
            self.set(user_id, SELECTED_CAMPGROUND, selected)
        return selected
