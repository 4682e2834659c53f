"""Domain models for dataset records, route stops and trips."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

Scalar = Union[str, int, float, None]
Record = Mapping[str, Scalar]


@dataclass(frozen=True, slots=True)
class ColumnRoles:
    """Semantic roles inferred from a dataset's column names."""

    id_column: str = "ID"
    lat_column: Optional[str] = None
    lon_column: Optional[str] = None
    address_columns: tuple[str, ...] = ()
    provider_column: Optional[str] = None
    columns: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Coordinate:
    lat: float
    lon: float

    @staticmethod
    def is_valid(lat: Any, lon: Any) -> bool:
        """Return True when both values are finite degrees within range."""
        if isinstance(lat, bool) or isinstance(lon, bool):
            return False
        if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
            return False
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return False
        return abs(lat) <= 90 and abs(lon) <= 180


@dataclass(slots=True)
class RouteStop:
    """A dataset record promoted into the route."""

    id: str
    source_record: dict
    label: str
    address: str
    lat: Optional[float] = None
    lon: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if not self.has_coordinates:
            return None
        return Coordinate(self.lat, self.lon)


@dataclass(frozen=True, slots=True)
class TripResult:
    """Optimized visiting order plus the numbers shown to the user."""

    order: tuple[int, ...]
    stop_ids: tuple[str, ...]
    path: tuple[tuple[float, float], ...]
    distance_meters: float
    duration_seconds: float
    distance_label: str
    duration_label: str


@dataclass(slots=True)
class DatasetPage:
    """One page of records as returned by the dataset query service."""

    columns: list[str]
    id_column: str
    rows: list[dict]
    total: int
    skip: int = 0
    take: int = 0

    @property
    def has_next_page(self) -> bool:
        return self.skip + len(self.rows) < self.total
