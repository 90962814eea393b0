"""Tests for the domain entity declarations."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from aragorn.config import Settings
from aragorn.models import (
    Coupon,
    Plan,
    Recall,
    Subscription,
    User,
    VehicleRecall,
    Vin,
    build_registry,
    declare_models,
)
from aragorn.models.vehicle import add_months, generate_vkey
from aragorn.serialization.envelope import EnvelopeBuilder
from aragorn.serialization.errors import SchemaError
from aragorn.serialization.registry import SchemaRegistry

VIN = "1HGCM82633A004352"


@pytest.fixture
def models() -> SchemaRegistry:
    return build_registry()


@pytest.fixture
def envelope(models: SchemaRegistry, settings: Settings) -> EnvelopeBuilder:
    return EnvelopeBuilder(models, settings)


def test_build_registry_declares_every_type(models: SchemaRegistry) -> None:
    assert models.frozen
    assert sorted(schema.path for schema in models) == [
        "coupons",
        "plans",
        "preference",
        "recalls",
        "subscriptions",
        "users",
        "vehicle_recalls",
        "vehicles",
        "vins",
    ]
    assert models.get("vehicleRecalls").entity_class is VehicleRecall


def test_declarations_are_idempotent(models: SchemaRegistry) -> None:
    registry = declare_models(SchemaRegistry())

    declare_models(registry)

    assert len(registry) == len(models)


def test_frozen_registry_rejects_new_types(models: SchemaRegistry) -> None:
    class Invoice(Recall):
        pass

    with pytest.raises(SchemaError):
        models.declare(Invoice, [{"field": "_id", "as": "id"}])


class TestUser:
    def test_password_is_write_only(self, envelope: EnvelopeBuilder) -> None:
        user = envelope.from_wire(
            User,
            {"user": {"data": {"attributes": {"firstName": "Ada", "password": " correct   horse "}}}},
        )

        assert user.check_password("correct horse")
        assert not user.check_password("wrong horse")
        attributes = envelope.serialize(envelope.to_wire(user))["data"]["attributes"]
        assert "password" not in attributes
        assert "passwordDigest" not in attributes
        assert attributes["firstName"] == "Ada"

    def test_blank_password_keeps_the_digest(self, models: SchemaRegistry) -> None:
        user = models.new(User, "u1", password="secret")
        digest = user.attributes["password_digest"]

        user.assign({"password": "   "})

        assert user.attributes["password_digest"] == digest

    def test_new_password_clears_the_reset_token(self, models: SchemaRegistry) -> None:
        user = models.new(User, "u1", reset_password_token="abc")

        user.assign({"password": "secret"})

        assert user.attributes["reset_password_token"] is None

    def test_server_managed_fields_are_ignored_inbound(self, envelope: EnvelopeBuilder) -> None:
        user = envelope.from_wire(
            User,
            {
                "data": {
                    "attributes": {
                        "emailErrors": 9,
                        "emailSuspended": True,
                        "subscriptions": [{"planId": "gold"}],
                        "registered": True,
                    }
                }
            },
        )

        assert user.attributes["email_errors"] == 0
        assert not user.email_suspended
        assert user.attributes["subscriptions"] == []
        assert not user.registered

    def test_synthetic_fields_are_rendered(
        self, models: SchemaRegistry, envelope: EnvelopeBuilder
    ) -> None:
        user = models.new(
            User,
            "u1",
            email="ada@example.com",
            email_errors=3,
            email_confirmed_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            customer_id="cus_1",
        )

        attributes = envelope.serialize(envelope.to_wire(user))["data"]["attributes"]

        assert attributes["emailSuspended"] is True
        assert attributes["emailConfirmed"] is True
        assert attributes["phoneConfirmed"] is False
        assert attributes["registered"] is True
        assert "emailErrors" not in attributes
        assert "customerId" not in attributes

    def test_preference_and_subscriptions_are_embedded(
        self, models: SchemaRegistry, envelope: EnvelopeBuilder
    ) -> None:
        user = models.new(
            User,
            "u1",
            preference_attributes={"alert_by_phone": False},
            subscriptions_attributes=[{"id": "s1", "plan_id": "gold", "status": "active"}],
        )

        rendered = envelope.serialize(envelope.to_wire(user))

        preference = rendered["data"]["attributes"]["preference"]
        assert preference["alertByPhone"] is False
        assert preference["alertByEmail"] is True
        assert "id" not in preference
        subscription = rendered["data"]["attributes"]["subscriptions"][0]
        assert subscription["id"] == "s1"
        assert subscription["planId"] == "gold"
        assert "status" not in subscription
        assert user.attributes["subscriptions"][0].root_parent is user

    def test_role_defaults_to_member(self, models: SchemaRegistry) -> None:
        user = models.new(User)

        assert user.attributes["role"] == "member"
        assert not user.is_admin


class TestVin:
    def test_changing_the_vin_clears_campaigns(self, models: SchemaRegistry) -> None:
        vin = models.new(
            Vin,
            "v1",
            vin=VIN,
            campaigns=["12V000"],
            vehicle_attributes={"make": "Honda", "model": "Accord", "year": 2003},
        )
        assert vin.has_vin
        assert vin.to_vkey() == "honda|accord|2003"

        vin.assign({"vin": "SHORT"})

        assert vin.attributes["campaigns"] == []
        assert not vin.has_vin
        assert not vin.attributes["vehicle"].is_present
        assert vin.to_vkey() is None

    def test_same_vin_keeps_campaigns(self, models: SchemaRegistry) -> None:
        vin = models.new(Vin, "v1", vin=VIN, campaigns=["12V000"])

        vin.assign({"vin": VIN})

        assert vin.attributes["campaigns"] == ["12V000"]

    def test_updates_are_allowed_six_months_later(self, models: SchemaRegistry) -> None:
        vin = models.new(Vin, "v1", updated_at=datetime(2024, 8, 31, tzinfo=timezone.utc))

        assert vin.update_allowed_on == datetime(2025, 2, 28, tzinfo=timezone.utc)
        assert vin.allows_updates(datetime(2025, 3, 1, tzinfo=timezone.utc))
        assert not vin.allows_updates(datetime(2025, 2, 27, tzinfo=timezone.utc))
        assert models.new(Vin).allows_updates()

    def test_wire_attributes(self, models: SchemaRegistry, envelope: EnvelopeBuilder) -> None:
        vin = models.new(
            Vin,
            "v1",
            vin=VIN,
            updated_at=datetime(2024, 8, 31, tzinfo=timezone.utc),
            vehicle_attributes={"make": "Honda", "model": "Accord", "year": 2003},
        )

        attributes = envelope.serialize(envelope.to_wire(vin))["data"]["attributes"]

        assert attributes == {
            "vin": VIN,
            "updateAllowedOn": "2025-02-28T00:00:00.000000+00:00",
            "reviewed": False,
            "campaigns": [],
            "vehicle": {"make": "Honda", "model": "Accord", "year": 2003},
        }


def test_vehicle_recall_keys(models: SchemaRegistry, envelope: EnvelopeBuilder) -> None:
    recall = models.new(
        VehicleRecall,
        "vr1",
        campaign_id="19V123",
        vehicles_attributes=[
            {"make": "Ford", "model": "F-150", "year": 2019},
            {"make": "Ford ", "model": "F-150", "year": "2019"},
            {},
        ],
    )

    assert recall.refresh_vkeys() == ["ford|f-150|2019"]
    attributes = envelope.serialize(envelope.to_wire(recall))["data"]["attributes"]
    assert "vkeys" not in attributes
    assert attributes["campaignId"] == "19V123"
    assert len(attributes["vehicles"]) == 3


def test_recall_states(models: SchemaRegistry) -> None:
    unreviewed = models.new(Recall, "r1")
    sent = models.new(Recall, "r2", state="sent")

    assert unreviewed.needs_review
    assert sent.compare_state(unreviewed) == 1
    assert unreviewed.compare_state(sent) == -1
    assert sent.compare_state(sent) == 0


def test_subscription_activity(models: SchemaRegistry) -> None:
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    open_ended = models.new(Subscription, "s1", status="past_due")
    expired = models.new(
        Subscription, "s2", status="active", expires_on=datetime(2024, 1, 1, tzinfo=timezone.utc)
    )

    assert open_ended.is_active(now)
    assert not expired.is_active(now)
    assert not models.new(Subscription, "s3", status="canceled").is_active(now)


def test_subscription_vins(models: SchemaRegistry) -> None:
    subscription = models.new(
        Subscription, "s1", plan_id="gold", vins_attributes=[{"id": "v1", "vin": VIN}]
    )

    assert subscription.vin_from_id("v1") is None
    subscription.assign({"count_vins": 1})
    assert subscription.vin_from_id("v1").vin == VIN
    assert subscription.vin_from_id("v2") is None
    assert subscription.for_plan("gold")


class TestBilling:
    def test_plans_render_without_a_self_link(
        self, models: SchemaRegistry, envelope: EnvelopeBuilder
    ) -> None:
        plan = models.new(
            Plan, "gold", name="Gold", amount=1000, interval="year", recalls=True, vins=3
        )

        rendered = envelope.serialize(envelope.to_wire(plan))

        assert rendered["data"] == {
            "type": "plans",
            "id": "gold",
            "attributes": {
                "name": "Gold",
                "amount": 1000,
                "interval": "year",
                "recalls": True,
                "vins": 3,
            },
        }
        assert plan.is_yearly
        assert plan.for_recalls
        assert plan.for_vehicles

    def test_plans_are_read_only(self, envelope: EnvelopeBuilder) -> None:
        plan = envelope.from_wire(Plan, {"data": {"id": "free", "attributes": {"name": "Free"}}})
        trusted = envelope.from_wire(
            Plan, {"data": {"id": "free", "attributes": {"name": "Free"}}}, all_fields=True
        )

        assert plan.id is None
        assert plan.attributes["name"] is None
        assert trusted.id == "free"
        assert trusted.attributes["name"] == "Free"

    def test_coupons(self, models: SchemaRegistry, envelope: EnvelopeBuilder) -> None:
        coupon = models.new(Coupon, "FREE", duration="forever", percent_off=100)

        assert coupon.is_free_forever
        assert not models.new(Coupon, "HALF", duration="forever", percent_off=50).is_free_forever
        assert "links" not in envelope.serialize(envelope.to_wire(coupon))["data"]


def test_vkey_helpers() -> None:
    assert generate_vkey(" Honda", "Civic ", 2020) == "honda|civic|2020"
    assert generate_vkey("Honda", None, 2020) is None
    assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
    assert add_months(datetime(2024, 11, 15), 3) == datetime(2025, 2, 15)
