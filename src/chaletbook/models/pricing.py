from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any, Tuple, Mapping

from chaletbook.exceptions import ConfigurationError
from chaletbook.models.guests import Affiliation, PersonType
from chaletbook.models.room import Room, SizeTier

# Keys used by stored settings for each affiliation
_AFFILIATION_KEYS = {
    Affiliation.INTERNAL: ("internal", "utia"),
    Affiliation.EXTERNAL: ("external",),
}


def _amount(raw: Mapping[str, Any], key: str, where: str) -> Decimal:
    if key not in raw or raw[key] is None:
        raise ConfigurationError(f"Price configuration for {where} is missing '{key}'.")
    try:
        value = Decimal(str(raw[key]))
    except InvalidOperation as e:
        raise ConfigurationError(f"Price '{key}' for {where} is not a number: {raw[key]!r}") from e
    if value < 0:
        raise ConfigurationError(f"Price '{key}' for {where} cannot be negative.")
    return value


def _optional_amount(raw: Mapping[str, Any], key: str, where: str) -> Optional[Decimal]:
    if raw.get(key) is None:
        return None
    return _amount(raw, key, where)


@dataclass(frozen=True)
class TierPrices:
    """Nightly prices of one room size for one affiliation."""

    adult: Decimal
    child: Decimal
    empty: Optional[Decimal] = field(default=None)
    base: Optional[Decimal] = field(default=None)

    @property
    def empty_price(self) -> Decimal:
        """Price of the room with nobody in it; older lists only give an adult-inclusive base."""
        if self.empty is not None:
            return self.empty
        if self.base is not None:
            return max(self.base - self.adult, Decimal(0))
        raise ConfigurationError("Room price has neither an 'empty' nor a 'base' price.")

    def surcharge(self, person_type: PersonType) -> Decimal:
        if person_type is PersonType.ADULT:
            return self.adult
        if person_type is PersonType.CHILD:
            return self.child
        return Decimal(0)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], where: str) -> TierPrices:
        if not isinstance(raw, Mapping):
            raise ConfigurationError(f"Price configuration for {where} must be a mapping.")
        prices = cls(
            adult=_amount(raw, "adult", where),
            child=_amount(raw, "child", where),
            empty=_optional_amount(raw, "empty", where),
            base=_optional_amount(raw, "base", where),
        )
        if prices.empty is None and prices.base is None:
            raise ConfigurationError(f"Price configuration for {where} needs 'empty' or 'base'.")
        return prices

    def to_dict(self) -> Dict[str, Any]:
        data = {"adult": float(self.adult), "child": float(self.child)}
        if self.empty is not None:
            data["empty"] = float(self.empty)
        if self.base is not None:
            data["base"] = float(self.base)
        return data


@dataclass(frozen=True)
class PriceTierConfig:
    """Price lists per affiliation and room size."""

    tiers: Dict[Affiliation, Dict[SizeTier, TierPrices]]

    def prices(self, affiliation: Affiliation, tier: SizeTier) -> TierPrices:
        try:
            return self.tiers[affiliation][tier]
        except KeyError as e:
            raise ConfigurationError(
                f"No {tier.value} room prices configured for {affiliation.value} guests."
            ) from e

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> PriceTierConfig:
        """
        Reads both layouts found in stored settings:
        ``{"utia": {"small": {...}, "large": {...}}, "external": {...}}`` and the
        legacy flat ``{"utia": {"base": .., "adult": .., "child": ..}}`` which
        applies to every room size.
        """
        if not raw:
            raise ConfigurationError("Room price configuration is missing.")

        tiers: Dict[Affiliation, Dict[SizeTier, TierPrices]] = {}
        for affiliation, keys in _AFFILIATION_KEYS.items():
            section = next((raw[k] for k in keys if raw.get(k) is not None), None)
            if section is None:
                raise ConfigurationError(f"Room prices for {affiliation.value} guests are missing.")
            if not isinstance(section, Mapping):
                raise ConfigurationError(f"Room prices for {affiliation.value} guests must be a mapping.")

            if any(tier.value in section for tier in SizeTier):
                tiers[affiliation] = {
                    tier: TierPrices.from_dict(section.get(tier.value), f"{affiliation.value}/{tier.value}")
                    for tier in SizeTier
                }
            else:
                flat = TierPrices.from_dict(section, affiliation.value)
                tiers[affiliation] = {tier: flat for tier in SizeTier}
        return cls(tiers=tiers)

    def to_dict(self) -> Dict[str, Any]:
        return {
            aff.value: {tier.value: p.to_dict() for tier, p in by_tier.items()}
            for aff, by_tier in self.tiers.items()
        }


@dataclass(frozen=True)
class BulkPriceConfig:
    """Whole-chalet price list: one flat nightly base plus per-guest surcharges."""

    base_price: Decimal
    internal_adult: Decimal
    internal_child: Decimal
    external_adult: Decimal
    external_child: Decimal

    def surcharge(self, affiliation: Affiliation, person_type: PersonType) -> Decimal:
        if person_type is PersonType.TODDLER:
            return Decimal(0)
        if affiliation is Affiliation.INTERNAL:
            return self.internal_adult if person_type is PersonType.ADULT else self.internal_child
        return self.external_adult if person_type is PersonType.ADULT else self.external_child

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> BulkPriceConfig:
        if not raw:
            raise ConfigurationError("Bulk price configuration is missing.")

        def pick(*keys: str) -> Decimal:
            for key in keys:
                if raw.get(key) is not None:
                    return _amount(raw, key, "bulk booking")
            raise ConfigurationError(f"Bulk price configuration is missing '{keys[0]}'.")

        return cls(
            base_price=pick("base_price", "basePrice"),
            internal_adult=pick("internal_adult", "utiaAdult"),
            internal_child=pick("internal_child", "utiaChild"),
            external_adult=pick("external_adult", "externalAdult"),
            external_child=pick("external_child", "externalChild"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_price": float(self.base_price),
            "internal_adult": float(self.internal_adult),
            "internal_child": float(self.internal_child),
            "external_adult": float(self.external_adult),
            "external_child": float(self.external_child),
        }


@dataclass(frozen=True)
class PropertySettings:
    """Reference data of the chalet as returned by the repository."""

    rooms: Tuple[Room, ...]
    prices: Optional[PriceTierConfig] = field(default=None)
    bulk_prices: Optional[BulkPriceConfig] = field(default=None)
    # Consulted by the surrounding booking flow only
    christmas_periods: Tuple[Dict[str, Any], ...] = field(default=())

    def room(self, room_id: str) -> Room:
        for room in self.rooms:
            if room.id == room_id:
                return room
        raise ConfigurationError(f"Room '{room_id}' is not configured.")

    @property
    def room_ids(self) -> Tuple[str, ...]:
        return tuple(r.id for r in self.rooms)

    def require_prices(self) -> PriceTierConfig:
        if self.prices is None:
            raise ConfigurationError("Room price configuration is missing.")
        return self.prices

    def require_bulk_prices(self) -> BulkPriceConfig:
        if self.bulk_prices is None:
            raise ConfigurationError("Bulk price configuration is missing.")
        return self.bulk_prices

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rooms": [r.to_dict() for r in self.rooms],
            "prices": self.prices.to_dict() if self.prices else None,
            "bulk_prices": self.bulk_prices.to_dict() if self.bulk_prices else None,
            "christmas_periods": list(self.christmas_periods),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PropertySettings:
        prices = data.get("prices")
        bulk = data.get("bulk_prices", data.get("bulkPrices"))
        periods = data.get("christmas_periods", data.get("christmasPeriods")) or ()
        return cls(
            rooms=tuple(Room.from_dict(r) for r in data.get("rooms") or ()),
            prices=PriceTierConfig.from_dict(prices) if prices else None,
            bulk_prices=BulkPriceConfig.from_dict(bulk) if bulk else None,
            christmas_periods=tuple(periods),
        )
