"""Vehicles and the VINs a subscriber tracks."""

import calendar
from datetime import datetime, timezone

from aragorn.serialization.entity import Entity

VIN_LENGTH = 17
MINIMUM_UPDATE_MONTHS = 6
DISTANT_PAST = datetime(1, 1, 1, tzinfo=timezone.utc)

VEHICLE_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "mk", "as": "make"},
    {"field": "mo", "as": "model"},
    {"field": "yr", "as": "year", "type": "number"},
]

VIN_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "vin"},
    {
        "field": "ut",
        "as": "updated_at",
        "type": "timestamp",
        "default": DISTANT_PAST,
        "internal": True,
    },
    {"field": "update_allowed_on", "type": "timestamp", "synthetic": True},
    {"field": "rv", "as": "reviewed", "type": "boolean", "default": False, "outbound": True},
    {"field": "cp", "as": "campaigns", "type": "array"},
    {"embeds_one": "vehicle"},
]


def generate_vkey(make, model, year) -> str | None:
    """Lookup key shared by vehicles and the recall campaigns that affect them."""
    if not (make and model and year):
        return None
    return f"{str(make).strip()}|{str(model).strip()}|{str(year).strip()}".lower()


def add_months(value: datetime, months: int) -> datetime:
    month = value.month - 1 + months
    year = value.year + month // 12
    month = month % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


class Vehicle(Entity):
    """Make, model and year of a vehicle."""

    @property
    def is_present(self) -> bool:
        return bool(
            self.attributes.get("make")
            or self.attributes.get("model")
            or self.attributes.get("year")
        )

    def reset(self) -> None:
        for key in ("make", "model", "year"):
            self.attributes[key] = None

    def to_vkey(self) -> str | None:
        return generate_vkey(
            self.attributes.get("make"),
            self.attributes.get("model"),
            self.attributes.get("year"),
        )


class Vin(Entity):
    """A VIN registered under a subscription, with the vehicle it decodes to."""

    @property
    def vin(self) -> str | None:
        return self.attributes.get("vin")

    @vin.setter
    def vin(self, value: str | None) -> None:
        # A new VIN invalidates the campaigns found for the old one
        if self.attributes.get("vin") == value:
            return
        self.attributes["vin"] = value
        self.attributes["campaigns"] = []
        vehicle = self.attributes.get("vehicle")
        if vehicle is not None and not self.has_vin:
            vehicle.reset()

    @property
    def has_vin(self) -> bool:
        vin = self.attributes.get("vin")
        return bool(vin) and len(vin) == VIN_LENGTH

    @property
    def update_allowed_on(self) -> datetime:
        return add_months(self.attributes.get("updated_at") or DISTANT_PAST, MINIMUM_UPDATE_MONTHS)

    def allows_updates(self, now: datetime | None = None) -> bool:
        return self.update_allowed_on <= (now or datetime.now(timezone.utc))

    def to_vkey(self) -> str | None:
        vehicle = self.attributes.get("vehicle")
        return vehicle.to_vkey() if vehicle is not None else None
