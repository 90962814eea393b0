"""Users and their alert preferences."""

import hashlib
import hmac
import os

from aragorn.config import get_settings
from aragorn.serialization.entity import Entity

_PBKDF2_ROUNDS = 240_000

PREFERENCE_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "av", "as": "alert_for_vins", "type": "boolean", "default": True},
    {"field": "sv", "as": "send_vin_summaries", "type": "boolean", "default": True},
    {"field": "ae", "as": "alert_by_email", "type": "boolean", "default": True},
    {"field": "ap", "as": "alert_by_phone", "type": "boolean", "default": True},
    {"field": "ss", "as": "send_summaries", "type": "boolean", "default": True},
    {"field": "au", "as": "audience", "type": "array"},
    {"field": "ct", "as": "categories", "type": "array"},
    {"field": "db", "as": "distribution", "type": "array"},
    {"field": "ri", "as": "risk", "type": "array"},
]

USER_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "fn", "as": "first_name"},
    {"field": "ln", "as": "last_name"},
    {"field": "em", "as": "email"},
    {"field": "ph", "as": "phone"},
    {"field": "ro", "as": "role", "default": "member"},
    {"field": "password", "inbound": True},
    {"field": "ep", "as": "password_digest", "internal": True},
    {"field": "at", "as": "access_token", "internal": True},
    {"field": "eca", "as": "email_confirmed_at", "type": "timestamp", "internal": True},
    {"field": "ecs", "as": "email_confirmation_sent_at", "type": "timestamp", "internal": True},
    {"field": "ect", "as": "email_confirmation_token", "internal": True},
    {"field": "ee", "as": "email_errors", "type": "number", "default": 0, "internal": True},
    {"field": "email_suspended", "type": "boolean", "synthetic": True},
    {"field": "email_confirmed", "type": "boolean", "synthetic": True},
    {"field": "pca", "as": "phone_confirmed_at", "type": "timestamp", "internal": True},
    {"field": "pcs", "as": "phone_confirmation_sent_at", "type": "timestamp", "internal": True},
    {"field": "pct", "as": "phone_confirmation_token", "internal": True},
    {"field": "phone_confirmed", "type": "boolean", "synthetic": True},
    {"field": "rps", "as": "reset_password_sent_at", "type": "timestamp", "internal": True},
    {"field": "rpt", "as": "reset_password_token", "internal": True},
    {"field": "fa", "as": "failed_attempts", "type": "number", "default": 0, "internal": True},
    {"field": "la", "as": "locked_at", "type": "timestamp", "internal": True},
    {"embeds_one": "preference"},
    {"field": "ci", "as": "customer_id", "internal": True},
    {"field": "registered", "type": "boolean", "synthetic": True},
    {"embeds_many": "subscriptions", "outbound": True},
]


def hash_password(password: str, salt: bytes | None = None) -> str:
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, _PBKDF2_ROUNDS)
    return f"{salt.hex()}${digest.hex()}"


class Preference(Entity):
    """Which recalls a user is alerted about, and how."""


class User(Entity):
    """A member, admin or worker account."""

    @property
    def password(self) -> None:
        return None

    @password.setter
    def password(self, value: str | None) -> None:
        if isinstance(value, str):
            value = " ".join(value.split())
        if not value:
            return
        self.attributes["password_digest"] = hash_password(value)
        self.attributes["reset_password_sent_at"] = None
        self.attributes["reset_password_token"] = None

    def check_password(self, password: str) -> bool:
        stored = self.attributes.get("password_digest")
        if not stored or "$" not in stored:
            return False
        salt, _ = stored.split("$", 1)
        candidate = hash_password(" ".join(password.split()), bytes.fromhex(salt))
        return hmac.compare_digest(candidate, stored)

    @property
    def email_confirmed(self) -> bool:
        return self.attributes.get("email_confirmed_at") is not None

    @property
    def email_suspended(self) -> bool:
        return (self.attributes.get("email_errors") or 0) >= get_settings().allowed_email_errors

    @property
    def phone_confirmed(self) -> bool:
        return self.attributes.get("phone_confirmed_at") is not None

    @property
    def registered(self) -> bool:
        return bool(self.attributes.get("customer_id"))

    @property
    def is_admin(self) -> bool:
        return self.attributes.get("role") == "admin"
