"""Pytest configuration for the Aragorn test suite.

Declares a small set of entity types covering every field flavour and
provides a registry, settings and envelope builder bound to a fixed base URI.
Tests look entity types up by name through the ``registry`` fixture.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from hypothesis import HealthCheck
from hypothesis import settings as hypothesis_settings

from aragorn.config import Settings, get_settings
from aragorn.serialization.codec import AttributeCodec
from aragorn.serialization.entity import Entity
from aragorn.serialization.envelope import EnvelopeBuilder
from aragorn.serialization.registry import SchemaRegistry

BASE_URI = "http://test.org:8080"

# The autouse environment fixture is safe to share across generated examples
hypothesis_settings.register_profile(
    "aragorn", suppress_health_check=[HealthCheck.function_scoped_fixture]
)
hypothesis_settings.load_profile("aragorn")

PART_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "name"},
    {"field": "sn", "as": "serial"},
]

WIDGET_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "t", "as": "title"},
    {"field": "tags", "type": "array"},
    {"field": "published_at", "type": "timestamp"},
    {"field": "count", "type": "number", "default": 0},
    {"field": "active", "type": "boolean", "default": False},
    {"field": "notes", "internal": True},
    {"field": "passcode", "inbound": True},
    {"field": "rating", "type": "number", "default": 0, "outbound": True},
    {"field": "label", "synthetic": True},
    {"field": "revision", "type": "number", "default": 1, "meta": True},
    {"embeds_one": "part"},
    {"embeds_many": "components", "target": "part"},
]

GIZMO_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "title"},
    {"field": "tags", "type": "array"},
    {"field": "count", "type": "number"},
    {"field": "active", "type": "boolean"},
    {"field": "published_at", "type": "timestamp"},
]

RECALL_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "title"},
]

PROBE_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "foo", "type": "number"},
]

OWNER_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "name"},
    {"embeds_many": "probes"},
]


class Part(Entity):
    pass


class Widget(Entity):
    @property
    def label(self) -> str | None:
        title = self.attributes.get("title")
        return title.upper() if title else None


class Gizmo(Entity):
    pass


class Recall(Entity):
    pass


class Probe(Entity):
    pass


class Owner(Entity):
    pass


def declare_test_types(registry: SchemaRegistry) -> SchemaRegistry:
    registry.declare(Part, PART_FIELDS)
    registry.declare(Widget, WIDGET_FIELDS)
    registry.declare(Gizmo, GIZMO_FIELDS)
    registry.declare(Recall, RECALL_FIELDS)
    registry.declare(Probe, PROBE_FIELDS, path="tests")
    registry.declare(Owner, OWNER_FIELDS, path="users")
    return registry


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point the cached application settings at the test base URI."""
    monkeypatch.setenv("ARAGORN_BASE_URI", BASE_URI)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(base_uri=BASE_URI)


@pytest.fixture
def registry() -> SchemaRegistry:
    return declare_test_types(SchemaRegistry())


@pytest.fixture
def builder(registry: SchemaRegistry, settings: Settings) -> EnvelopeBuilder:
    return EnvelopeBuilder(registry, settings)


@pytest.fixture
def codec(registry: SchemaRegistry) -> AttributeCodec:
    return AttributeCodec(registry)
