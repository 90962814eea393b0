from aragorn.models.billing import COUPON_FIELDS, PLAN_FIELDS, Coupon, Plan
from aragorn.models.recall import RECALL_FIELDS, VEHICLE_RECALL_FIELDS, Recall, VehicleRecall
from aragorn.models.subscription import SUBSCRIPTION_FIELDS, Subscription
from aragorn.models.user import PREFERENCE_FIELDS, USER_FIELDS, Preference, User
from aragorn.models.vehicle import VEHICLE_FIELDS, VIN_FIELDS, Vehicle, Vin
from aragorn.serialization.registry import SchemaRegistry


def declare_models(registry: SchemaRegistry) -> SchemaRegistry:
    """Declare every domain entity type, embedded types before their parents."""
    registry.declare(Recall, RECALL_FIELDS)
    registry.declare(Vehicle, VEHICLE_FIELDS)
    registry.declare(VehicleRecall, VEHICLE_RECALL_FIELDS)
    registry.declare(Vin, VIN_FIELDS)
    registry.declare(Subscription, SUBSCRIPTION_FIELDS)
    registry.declare(Preference, PREFERENCE_FIELDS, singleton=True)
    registry.declare(User, USER_FIELDS)
    registry.declare(Plan, PLAN_FIELDS)
    registry.declare(Coupon, COUPON_FIELDS)
    return registry


def build_registry() -> SchemaRegistry:
    """Return a frozen registry holding every domain entity type."""
    registry = declare_models(SchemaRegistry())
    registry.freeze()
    return registry


__all__ = [
    "declare_models",
    "build_registry",
    "Coupon",
    "Plan",
    "Recall",
    "VehicleRecall",
    "Subscription",
    "Preference",
    "User",
    "Vehicle",
    "Vin",
]
