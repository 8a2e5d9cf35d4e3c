from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Optional, Dict, Any, List, Tuple

logger = logging.getLogger(__name__)


class Affiliation(str, Enum):
    """Guest category selecting the price list (organization members vs. public)."""

    INTERNAL = "internal"
    EXTERNAL = "external"

    @classmethod
    def parse(cls, value: Any) -> "Affiliation":
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.EXTERNAL
        normalized = str(value or "").strip().lower()
        if normalized in ("internal", "utia"):
            return cls.INTERNAL
        if normalized != "external":
            logger.warning(f"Unknown guest affiliation '{value}', using external prices.")
        return cls.EXTERNAL


class PersonType(str, Enum):
    ADULT = "adult"
    CHILD = "child"
    TODDLER = "toddler"


@dataclass(frozen=True)
class Guest:
    """Named guest of a booking roster."""

    name: str
    person_type: PersonType = field(default=PersonType.ADULT)
    affiliation: Affiliation = field(default=Affiliation.EXTERNAL)

    @property
    def is_paying(self) -> bool:
        return self.person_type is not PersonType.TODDLER

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "person_type": self.person_type.value,
            "guest_type": self.affiliation.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Guest:
        name = data.get("name")
        if name is None:
            name = f"{data.get('first_name', '')} {data.get('last_name', '')}".strip()
        return cls(
            name=name,
            person_type=PersonType(data.get("person_type", PersonType.ADULT.value)),
            affiliation=Affiliation.parse(data.get("guest_type", data.get("affiliation"))),
        )


@dataclass(frozen=True)
class GuestComposition:
    """
    Who stays. Aggregate counts plus an optional roster; when the roster is
    present it is what pricing looks at.
    """

    adults: int = 0
    children: int = 0
    toddlers: int = 0
    affiliation: Affiliation = field(default=Affiliation.EXTERNAL)
    roster: Tuple[Guest, ...] = field(default=())

    def __post_init__(self) -> None:
        if min(self.adults, self.children, self.toddlers) < 0:
            raise ValueError("Guest counts cannot be negative.")

    @classmethod
    def from_roster(cls, roster: List[Guest], affiliation: Optional[Affiliation] = None) -> GuestComposition:
        """Builds counts from a roster; the default affiliation is internal if any guest is."""
        if affiliation is None:
            has_internal = any(g.affiliation is Affiliation.INTERNAL for g in roster)
            affiliation = Affiliation.INTERNAL if has_internal else Affiliation.EXTERNAL
        return cls(
            adults=sum(1 for g in roster if g.person_type is PersonType.ADULT),
            children=sum(1 for g in roster if g.person_type is PersonType.CHILD),
            toddlers=sum(1 for g in roster if g.person_type is PersonType.TODDLER),
            affiliation=affiliation,
            roster=tuple(roster),
        )

    @property
    def has_roster(self) -> bool:
        return bool(self.roster)

    @property
    def total(self) -> int:
        return self.adults + self.children + self.toddlers

    def as_roster(self) -> Tuple[Guest, ...]:
        """The roster, or anonymous guests standing in for the counts."""
        if self.roster:
            return self.roster
        counts = ((PersonType.ADULT, self.adults), (PersonType.CHILD, self.children),
                  (PersonType.TODDLER, self.toddlers))
        return tuple(
            Guest(name="", person_type=person_type, affiliation=self.affiliation)
            for person_type, count in counts
            for _ in range(count)
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "adults": self.adults,
            "children": self.children,
            "toddlers": self.toddlers,
            "guest_type": self.affiliation.value,
        }
        if self.roster:
            data["guest_names"] = [g.to_dict() for g in self.roster]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GuestComposition:
        roster = tuple(Guest.from_dict(g) for g in data.get("guest_names") or ())
        return cls(
            adults=int(data.get("adults", 0) or 0),
            children=int(data.get("children", 0) or 0),
            toddlers=int(data.get("toddlers", 0) or 0),
            affiliation=Affiliation.parse(data.get("guest_type", data.get("affiliation"))),
            roster=roster,
        )
