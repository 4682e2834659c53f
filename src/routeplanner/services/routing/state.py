"""In-memory ordered route of stops."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from enum import Enum
from typing import Iterable, Optional, Sequence, Union

from ...models.domain import ColumnRoles, Coordinate, Record, RouteStop, TripResult
from ..address import build_address
from ..columns import classify_columns, extract_coordinates, resolve_label, resolve_record_id

logger = logging.getLogger(__name__)


class RouteStatus(str, Enum):
    EMPTY = "empty"
    POPULATED = "populated"
    OPTIMIZING = "optimizing"
    OPTIMIZED = "optimized"


class RouteState:
    """Ordered stops with unique ids, guarded by a single mutex.

    ``revision`` moves on every stop or coordinate mutation; a trip result is
    only reported while the revision it was computed against is current.
    """

    def __init__(self, roles: ColumnRoles | None = None) -> None:
        self.roles = roles or ColumnRoles()
        self._stops: list[RouteStop] = []
        self._lock = threading.Lock()
        self._revision = 0
        self._optimizing = False
        self._trip: Optional[tuple[int, TripResult]] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._stops)

    def __contains__(self, stop_id: object) -> bool:
        with self._lock:
            return any(stop.id == stop_id for stop in self._stops)

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def stops(self) -> list[RouteStop]:
        """Snapshot of the current stops, in route order."""
        with self._lock:
            return list(self._stops)

    @property
    def ids(self) -> list[str]:
        with self._lock:
            return [stop.id for stop in self._stops]

    def get(self, stop_id: str) -> Optional[RouteStop]:
        with self._lock:
            return self._find(stop_id)

    def located_snapshot(self) -> tuple[int, list[RouteStop]]:
        """Revision plus copies of the stops with coordinates, read together."""
        with self._lock:
            return self._revision, [replace(stop) for stop in self._stops if stop.has_coordinates]

    @property
    def trip_result(self) -> Optional[TripResult]:
        with self._lock:
            if self._trip is None or self._trip[0] != self._revision:
                return None
            return self._trip[1]

    @property
    def status(self) -> RouteStatus:
        with self._lock:
            if self._optimizing:
                return RouteStatus.OPTIMIZING
            if not self._stops:
                return RouteStatus.EMPTY
            if self._trip is not None and self._trip[0] == self._revision:
                return RouteStatus.OPTIMIZED
            return RouteStatus.POPULATED

    def update_roles(self, roles: ColumnRoles) -> None:
        """Use new roles for subsequent adds; existing stops are unchanged."""
        self.roles = roles

    def build_stop(self, record: Record) -> RouteStop:
        roles = self.roles
        if not roles.columns:
            # no dataset columns yet: infer roles from the record itself
            roles = classify_columns(list(record.keys()), roles.id_column)
        coordinate = extract_coordinates(record, roles)
        return RouteStop(
            id=resolve_record_id(record, roles),
            source_record=dict(record),
            label=resolve_label(record, roles),
            address=build_address(record, roles),
            lat=coordinate.lat if coordinate else None,
            lon=coordinate.lon if coordinate else None,
        )

    def add(self, record: Record) -> Optional[RouteStop]:
        """Append a stop for ``record``; returns None when its id is already routed."""
        stop = self.build_stop(record)
        with self._lock:
            if self._find(stop.id) is not None:
                return None
            self._stops.append(stop)
            self._invalidate()
        logger.debug(f"Added stop '{stop.id}' ({stop.label})")
        return stop

    def remove(self, stop_id: str) -> bool:
        with self._lock:
            remaining = [stop for stop in self._stops if stop.id != stop_id]
            if len(remaining) == len(self._stops):
                return False
            self._stops = remaining
            self._invalidate()
        return True

    def clear(self) -> None:
        with self._lock:
            if not self._stops:
                return
            self._stops = []
            self._invalidate()

    def set_coordinates(self, stop_id: str, lat: float, lon: float) -> RouteStop:
        """Manually set (or overwrite) a stop's coordinates."""
        if not Coordinate.is_valid(lat, lon):
            raise ValueError(f"Invalid coordinates ({lat}, {lon}).")
        with self._lock:
            stop = self._find(stop_id)
            if stop is None:
                raise KeyError(stop_id)
            stop.lat = float(lat)
            stop.lon = float(lon)
            self._invalidate()
            return stop

    def reorder(self, new_sequence: Sequence[Union[RouteStop, str]]) -> None:
        """Replace the stop order with a permutation of the current stops."""
        new_ids = [item.id if isinstance(item, RouteStop) else str(item) for item in new_sequence]
        with self._lock:
            if not self._apply_order(new_ids):
                raise ValueError("Reorder must be a permutation of the current stops.")

    def try_begin_optimize(self) -> bool:
        with self._lock:
            if self._optimizing:
                return False
            self._optimizing = True
            return True

    def end_optimize(self) -> None:
        with self._lock:
            self._optimizing = False

    def commit_trip(self, revision: int, ordered_ids: Iterable[str], trip: TripResult) -> bool:
        """Apply an optimized order and record its trip, if nothing changed since ``revision``."""
        ordered_ids = list(ordered_ids)
        with self._lock:
            if revision != self._revision or not self._apply_order(ordered_ids):
                return False
            self._trip = (self._revision, trip)
            return True

    def _apply_order(self, ordered_ids: list[str]) -> bool:
        by_id = {stop.id: stop for stop in self._stops}
        if len(ordered_ids) != len(self._stops) or set(ordered_ids) != set(by_id):
            return False
        self._stops = [by_id[stop_id] for stop_id in ordered_ids]
        return True

    def _find(self, stop_id: str) -> Optional[RouteStop]:
        for stop in self._stops:
            if stop.id == stop_id:
                return stop
        return None

    def _invalidate(self) -> None:
        self._revision += 1
        self._trip = None
