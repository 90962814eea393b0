"""Billing plans and coupons mirrored from the payment provider.

Both are read-only on the wire and are rendered without a self link.
"""

from aragorn.serialization.entity import Entity

INTERVALS = ("month", "year")
DURATIONS = ("forever",)

PLAN_FIELDS = [
    {"field": "_id", "as": "id", "outbound": True},
    {"field": "name", "outbound": True},
    {"field": "amount", "type": "number", "outbound": True},
    {"field": "interval", "outbound": True},
    {"field": "recalls", "type": "boolean", "outbound": True},
    {"field": "vins", "type": "number", "outbound": True},
]

COUPON_FIELDS = [
    {"field": "_id", "as": "id", "outbound": True},
    {"field": "name", "outbound": True},
    {"field": "duration", "outbound": True},
    {"field": "amount_off", "type": "number", "outbound": True},
    {"field": "percent_off", "type": "number", "outbound": True},
]


class Plan(Entity):
    self_link = False

    @property
    def is_yearly(self) -> bool:
        return self.attributes.get("interval") == INTERVALS[1]

    @property
    def for_recalls(self) -> bool:
        return bool(self.attributes.get("recalls"))

    @property
    def for_vehicles(self) -> bool:
        vins = self.attributes.get("vins")
        return isinstance(vins, int) and vins > 0


class Coupon(Entity):
    self_link = False

    @property
    def is_free_forever(self) -> bool:
        return (
            self.attributes.get("duration") in DURATIONS
            and (self.attributes.get("percent_off") or 0) >= 100
        )
