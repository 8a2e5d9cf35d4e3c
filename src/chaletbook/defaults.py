"""Reference data a fresh installation starts with."""
from __future__ import annotations

from typing import Any, Dict

from chaletbook.models import PropertySettings, Room

LARGE_ROOMS = ("14", "24", "44")

DEFAULT_ROOMS = tuple(
    Room(id=room_id, beds=4 if room_id in LARGE_ROOMS else 3, name=f"Room {room_id}")
    for room_id in ("12", "13", "14", "22", "23", "24", "42", "43", "44")
)

DEFAULT_PRICES: Dict[str, Any] = {
    "internal": {
        "small": {"empty": 250, "adult": 50, "child": 25},
        "large": {"empty": 350, "adult": 50, "child": 25},
    },
    "external": {
        "small": {"empty": 400, "adult": 100, "child": 50},
        "large": {"empty": 500, "adult": 100, "child": 50},
    },
}

DEFAULT_BULK_PRICES: Dict[str, Any] = {
    "base_price": 2000,
    "internal_adult": 100,
    "internal_child": 0,
    "external_adult": 250,
    "external_child": 50,
}


def default_settings() -> PropertySettings:
    return PropertySettings.from_dict({
        "rooms": [r.to_dict() for r in DEFAULT_ROOMS],
        "prices": DEFAULT_PRICES,
        "bulk_prices": DEFAULT_BULK_PRICES,
    })
