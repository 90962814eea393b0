"""Consumer product recalls and NHTSA vehicle recall campaigns."""

from aragorn.serialization.entity import Entity

RECALL_STATES = ("unreviewed", "reviewed", "sent")
VEHICLE_RECALL_STATES = ("reviewed", "sent")

RECALL_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "fn", "as": "feed_name"},
    {"field": "fs", "as": "feed_source"},
    {"field": "t", "as": "title"},
    {"field": "d", "as": "description"},
    {"field": "l", "as": "link"},
    {"field": "pd", "as": "publication_date", "type": "timestamp"},
    {"field": "st", "as": "state", "default": RECALL_STATES[0]},
    {"field": "af", "as": "affected", "type": "array"},
    {"field": "al", "as": "allergens", "type": "array"},
    {"field": "au", "as": "audience", "type": "array"},
    {"field": "ct", "as": "categories", "type": "array"},
    {"field": "co", "as": "contaminants", "type": "array"},
    {"field": "db", "as": "distribution", "type": "array"},
    {"field": "ri", "as": "risk"},
]

VEHICLE_RECALL_FIELDS = [
    {"field": "_id", "as": "id", "type": "identifier"},
    {"field": "ci", "as": "campaign_id"},
    {"field": "pd", "as": "publication_date", "type": "timestamp"},
    {"field": "cp", "as": "component"},
    {"field": "s", "as": "summary"},
    {"field": "c", "as": "consequence"},
    {"field": "r", "as": "remedy"},
    {"field": "vk", "as": "vkeys", "type": "array", "internal": True},
    {"field": "st", "as": "state", "default": VEHICLE_RECALL_STATES[0]},
    {"embeds_many": "vehicles"},
]


def _state_rank(states: tuple[str, ...], state: str | None) -> int:
    return states.index(state) if state in states else -1


class Recall(Entity):
    """A food, drug or product recall published by one of the feeds."""

    @property
    def needs_review(self) -> bool:
        return self.attributes.get("state") == "unreviewed"

    def compare_state(self, other: "Recall") -> int:
        """Order two recalls by how far they have progressed toward being sent."""
        this = _state_rank(RECALL_STATES, self.attributes.get("state"))
        that = _state_rank(RECALL_STATES, other.attributes.get("state"))
        return (this > that) - (this < that)


class VehicleRecall(Entity):
    """An NHTSA recall campaign and the vehicles it affects."""

    def compare_state(self, other: "VehicleRecall") -> int:
        this = _state_rank(VEHICLE_RECALL_STATES, self.attributes.get("state"))
        that = _state_rank(VEHICLE_RECALL_STATES, other.attributes.get("state"))
        return (this > that) - (this < that)

    def refresh_vkeys(self) -> list[str]:
        """Recompute the internal vehicle keys from the embedded vehicles."""
        vkeys = [v.to_vkey() for v in self.attributes.get("vehicles") or [] if v.is_present]
        self.write_attribute("vkeys", vkeys)
        return self.attributes["vkeys"]
