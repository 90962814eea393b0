"""Paid subscriptions embedded in a user."""

from datetime import datetime, timezone

from aragorn.serialization.entity import Entity

ACTIVE_STATUS = ("incomplete", "active", "past_due")

SUBSCRIPTION_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "so", "as": "started_on", "type": "timestamp", "outbound": True},
    {"field": "ro", "as": "renews_on", "type": "timestamp", "outbound": True},
    {"field": "xo", "as": "expires_on", "type": "timestamp", "outbound": True},
    {"field": "st", "as": "status", "internal": True},
    {"field": "si", "as": "stripe_id", "internal": True},
    {"field": "pi", "as": "plan_id", "outbound": True},
    {"field": "rc", "as": "recalls", "type": "boolean", "default": False, "outbound": True},
    {"field": "cv", "as": "count_vins", "type": "number", "default": 0, "outbound": True},
    {"field": "vk", "as": "vkeys", "type": "array", "internal": True},
    {"embeds_many": "vins", "outbound": True},
]


class Subscription(Entity):
    """A billing-provider subscription and the VINs it covers."""

    def is_active(self, at_time: datetime | None = None) -> bool:
        expires_on = self.attributes.get("expires_on")
        if expires_on is None:
            return self.attributes.get("status") in ACTIVE_STATUS
        return (at_time or datetime.now(timezone.utc)) <= expires_on

    def for_plan(self, plan) -> bool:
        plan_id = plan.id if isinstance(plan, Entity) else plan
        return self.attributes.get("plan_id") == plan_id

    def vin_from_id(self, vin_id) -> Entity | None:
        if not self.attributes.get("count_vins"):
            return None
        for vin in self.attributes.get("vins") or []:
            if str(vin.id) == str(vin_id):
                return vin
        return None
