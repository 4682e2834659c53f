"""Route optimization: resolve missing coordinates, then order stops via OSRM.

The pipeline is a fixed sequence of steps that each return a tagged
``Success``/``Failure``. Coordinates found during the resolve step are written
to the route immediately, so they survive a later failure.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Protocol, Sequence

from ...models.domain import Coordinate, RouteStop, TripResult
from ...models.outcomes import Failure, FailureKind, Outcome, Success
from ..geocoding.nominatim_client import CachingGeocoder
from .osrm_client import RoutingUnavailableError, TripResponse
from .state import RouteState

logger = logging.getLogger(__name__)


class Geocoder(Protocol):
    def resolve(self, address: str) -> Optional[Coordinate]: ...


class TripRouter(Protocol):
    def trip(self, coordinates: Sequence[tuple[float, float]]) -> TripResponse: ...


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{_round_half_up(meters)} m"
    return f"{_round_half_up(meters / 100) / 10:.1f} km"


def format_duration(seconds: float) -> str:
    minutes = _round_half_up(seconds / 60)
    if minutes < 60:
        return f"{minutes} min"
    return f"{minutes // 60}h {minutes % 60}m"


class TripOptimizer:
    def __init__(self, geocoder: Geocoder, router: TripRouter) -> None:
        self.geocoder = geocoder
        self.router = router

    def optimize(self, state: RouteState) -> Outcome[TripResult]:
        if not state.try_begin_optimize():
            return Failure(FailureKind.OPTIMIZE_IN_PROGRESS)
        try:
            return self._optimize(state)
        finally:
            state.end_optimize()

    def _optimize(self, state: RouteState) -> Outcome[TripResult]:
        if len(state) < 2:
            return Failure(FailureKind.INSUFFICIENT_STOPS)

        resolved = self.resolve_stops(state)
        if not resolved.ok:
            return resolved

        revision, located = state.located_snapshot()
        if len(located) < 2:
            return Failure(FailureKind.INSUFFICIENT_LOCATED_STOPS)

        routed = self.route(located)
        if not routed.ok:
            return routed

        return self.commit(state, revision, located, routed.value)

    def resolve_stops(self, state: RouteState) -> Outcome[int]:
        """Geocode stops without coordinates one at a time, in route order."""
        geocoder = CachingGeocoder(self.geocoder)
        resolved = 0
        for stop in state.stops:
            if stop.has_coordinates:
                continue
            outcome = self._locate(state, stop, geocoder)
            if not outcome.ok:
                logger.info(f"Optimize aborted: could not locate stop '{stop.id}' ({stop.label})")
                return Failure(FailureKind.UNRESOLVABLE_STOP, stop_label=stop.label, stop_id=stop.id)
            resolved += 1
        return Success(resolved)

    def locate_stop(self, state: RouteState, stop_id: str) -> Outcome[RouteStop]:
        """Geocode a single stop on demand and persist its coordinates."""
        stop = state.get(stop_id)
        if stop is None:
            raise KeyError(stop_id)
        if stop.has_coordinates:
            return Success(stop)
        outcome = self._locate(state, stop, self.geocoder)
        if not outcome.ok:
            return Failure(FailureKind.NOT_FOUND, stop_label=stop.label, stop_id=stop.id)
        return outcome

    def _locate(self, state: RouteState, stop: RouteStop, geocoder: Geocoder) -> Outcome[RouteStop]:
        if not stop.address:
            return Failure(FailureKind.NOT_FOUND, stop_label=stop.label, stop_id=stop.id)
        coordinate = geocoder.resolve(stop.address)
        if coordinate is None:
            return Failure(FailureKind.NOT_FOUND, stop_label=stop.label, stop_id=stop.id)
        try:
            return Success(state.set_coordinates(stop.id, coordinate.lat, coordinate.lon))
        except KeyError:
            # removed while the lookup was in flight
            return Success(stop)

    def route(self, located: list[RouteStop]) -> Outcome[TripResponse]:
        coordinates = [(stop.lat, stop.lon) for stop in located]
        logger.info(f"Requesting OSRM trip for {len(coordinates)} stops")
        try:
            return Success(self.router.trip(coordinates))
        except RoutingUnavailableError as exc:
            logger.warning(f"Routing unavailable: {exc}")
            return Failure(FailureKind.ROUTING_UNAVAILABLE, detail=str(exc) or None)

    def commit(
        self,
        state: RouteState,
        revision: int,
        located: list[RouteStop],
        response: TripResponse,
    ) -> Outcome[TripResult]:
        order = tuple(
            index for index, _ in sorted(enumerate(response.waypoint_order), key=lambda item: item[1])
        )
        ordered_ids = tuple(located[index].id for index in order)
        trip = TripResult(
            order=order,
            stop_ids=ordered_ids,
            path=response.path,
            distance_meters=response.distance_meters,
            duration_seconds=response.duration_seconds,
            distance_label=format_distance(response.distance_meters),
            duration_label=format_duration(response.duration_seconds),
        )
        if not state.commit_trip(revision, ordered_ids, trip):
            logger.info("Route changed during optimization; discarding trip result")
            return Failure(FailureKind.STALE_ROUTE)
        logger.info(f"Route optimized: {trip.distance_label}, {trip.duration_label}")
        return Success(trip)
