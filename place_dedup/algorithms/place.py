"""Place record shape consumed by the deduplication algorithms."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .geo_proximity import Coordinate, coerce_coordinate

# Keys lifted out of a raw record into Place attributes; everything else
# lands in Place.extra untouched.
_CORE_KEYS = {
    "id", "name", "kind", "city", "country", "admin",
    "coords", "latitude", "longitude",
    "altNames", "alt_names",
}


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class Place:
    """An independently captured description of a real-world location."""

    id: str
    name: str
    kind: str | None = None
    city: str | None = None
    country: str | None = None
    admin: str | None = None
    coords: Coordinate | None = None
    alt_names: tuple[str, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.alt_names, tuple):
            object.__setattr__(self, "alt_names", tuple(self.alt_names or ()))

    @property
    def all_names(self) -> list[str]:
        """Primary name followed by every alternate name."""
        return [self.name, *self.alt_names]

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Place":
        """
        Build a Place from a raw record as stored or exported.

        Coordinates may arrive as a ``coords`` object (``{"lat", "lon"}``) or
        as flat ``latitude``/``longitude`` keys; malformed coordinates are
        dropped rather than rejected.  Alternate names are read from
        ``altNames`` or ``alt_names``.
        """
        if "id" not in record:
            raise ValueError("place record is missing an 'id'")

        raw_coords = record.get("coords")
        if raw_coords is None and "latitude" in record:
            raw_coords = {
                "latitude": record.get("latitude"),
                "longitude": record.get("longitude"),
            }

        alt_names = record.get("altNames", record.get("alt_names")) or ()
        return cls(
            id=str(record["id"]),
            name=record.get("name") or "",
            kind=_optional_str(record.get("kind")),
            city=_optional_str(record.get("city")),
            country=_optional_str(record.get("country")),
            admin=_optional_str(record.get("admin")),
            coords=coerce_coordinate(raw_coords),
            alt_names=tuple(str(n) for n in alt_names if n),
            extra={k: v for k, v in record.items() if k not in _CORE_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "city": self.city,
            "country": self.country,
            "admin": self.admin,
            "coords": (
                {"lat": self.coords.latitude, "lon": self.coords.longitude}
                if self.coords is not None else None
            ),
            "altNames": list(self.alt_names),
        }

    def summary_dict(self) -> dict[str, Any]:
        """Reduced view used when reasoning output is suppressed."""
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "city": self.city,
            "country": self.country,
        }
