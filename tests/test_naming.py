"""Tests for snake_case / camelCase translation and inflection."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from aragorn.serialization.naming import (
    dejsonize,
    jsonize,
    pluralize,
    singularize,
    tableize,
    underscore,
)

snake_names = st.lists(
    st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=2, max_size=8),
    min_size=1,
    max_size=4,
).map("_".join)


@pytest.mark.parametrize(
    ("internal", "wire"),
    [
        ("title", "title"),
        ("publication_date", "publicationDate"),
        ("send_vin_summaries", "sendVinSummaries"),
        ("_id", "id"),
        ("vehicle_recall", "vehicleRecall"),
    ],
)
def test_jsonize(internal: str, wire: str) -> None:
    assert jsonize(internal) == wire


@pytest.mark.parametrize(
    ("wire", "internal"),
    [
        ("publicationDate", "publication_date"),
        ("alertByEmail", "alert_by_email"),
        ("vin", "vin"),
    ],
)
def test_dejsonize(wire: str, internal: str) -> None:
    assert dejsonize(wire) == internal


@pytest.mark.parametrize(
    ("class_name", "snake"),
    [
        ("Recall", "recall"),
        ("VehicleRecall", "vehicle_recall"),
        ("HTTPResponse", "http_response"),
        ("Vin", "vin"),
    ],
)
def test_underscore(class_name: str, snake: str) -> None:
    assert underscore(class_name) == snake


@pytest.mark.parametrize(
    ("singular", "plural"),
    [
        ("recall", "recalls"),
        ("vehicle_recall", "vehicle_recalls"),
        ("category", "categories"),
        ("status", "statuses"),
        ("box", "boxes"),
        ("person", "people"),
        ("key", "keys"),
        ("metadata", "metadata"),
    ],
)
def test_pluralize_and_singularize(singular: str, plural: str) -> None:
    assert pluralize(singular) == plural
    assert singularize(plural) == singular


def test_singularize_leaves_singular_words() -> None:
    assert singularize("address") == "address"
    assert singularize("vehicle") == "vehicle"


def test_tableize() -> None:
    assert tableize("VehicleRecall") == "vehicle_recalls"
    assert tableize("Preference") == "preferences"


@given(snake_names)
def test_wire_names_translate_back(name: str) -> None:
    assert dejsonize(jsonize(name)) == name
