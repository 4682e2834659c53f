"""Route planning endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...models.outcomes import Failure, FailureKind
from ...schemas.route import (
    AddStopRequest,
    AddStopResponse,
    CoordinatesRequest,
    DirectionsResponse,
    RouteResponse,
    RouteStopModel,
    TripModel,
)
from ...services.routing.directions import build_directions_url
from ...services.session import PlannerSession, SessionStore, get_session_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions/{session_id}/route", tags=["route"])

FAILURE_STATUS = {
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.UNRESOLVABLE_STOP: 422,
    FailureKind.INSUFFICIENT_STOPS: status.HTTP_400_BAD_REQUEST,
    FailureKind.INSUFFICIENT_LOCATED_STOPS: status.HTTP_400_BAD_REQUEST,
    FailureKind.ROUTING_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    FailureKind.OPTIMIZE_IN_PROGRESS: status.HTTP_409_CONFLICT,
    FailureKind.STALE_ROUTE: status.HTTP_409_CONFLICT,
}


def _session(session_id: str, store: SessionStore = Depends(get_session_store)) -> PlannerSession:
    return store.get(session_id)


def _route_response(session: PlannerSession) -> RouteResponse:
    route = session.route
    trip = route.trip_result
    return RouteResponse(
        status=route.status.value,
        stops=[RouteStopModel.from_stop(stop) for stop in route.stops],
        trip=TripModel.from_trip(trip) if trip else None,
    )


def _raise_failure(failure: Failure) -> None:
    raise HTTPException(
        status_code=FAILURE_STATUS[failure.kind],
        detail={"kind": failure.kind.value, "message": failure.message, "stop_id": failure.stop_id},
    )


@router.get("", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def get_route(session: PlannerSession = Depends(_session)) -> RouteResponse:
    return _route_response(session)


@router.post("/stops", response_model=AddStopResponse, status_code=status.HTTP_200_OK)
def add_stop(payload: AddStopRequest, session: PlannerSession = Depends(_session)) -> AddStopResponse:
    if payload.columns is not None:
        session.use_columns(payload.columns, payload.id_column)
    stop = session.add_record(payload.record)
    return AddStopResponse(added=stop is not None, route=_route_response(session))


@router.delete("/stops/{stop_id}", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def remove_stop(stop_id: str, session: PlannerSession = Depends(_session)) -> RouteResponse:
    session.route.remove(stop_id)
    return _route_response(session)


@router.delete("", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def clear_route(session: PlannerSession = Depends(_session)) -> RouteResponse:
    session.route.clear()
    return _route_response(session)


@router.put("/stops/{stop_id}/coordinates", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def set_stop_coordinates(
    stop_id: str,
    payload: CoordinatesRequest,
    session: PlannerSession = Depends(_session),
) -> RouteResponse:
    try:
        session.route.set_coordinates(stop_id, payload.lat, payload.lon)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Stop {stop_id} not found") from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _route_response(session)


@router.post("/stops/{stop_id}/locate", response_model=RouteStopModel, status_code=status.HTTP_200_OK)
def locate_stop(stop_id: str, session: PlannerSession = Depends(_session)) -> RouteStopModel:
    try:
        outcome = session.optimizer.locate_stop(session.route, stop_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Stop {stop_id} not found") from exc
    if not outcome.ok:
        _raise_failure(outcome)
    return RouteStopModel.from_stop(outcome.value)


@router.post("/optimize", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def optimize(session: PlannerSession = Depends(_session)) -> RouteResponse:
    try:
        outcome = session.optimizer.optimize(session.route)
    except Exception as exc:
        logger.exception(f"Error optimizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize route: {str(exc)}",
        ) from exc
    if not outcome.ok:
        _raise_failure(outcome)
    return _route_response(session)


@router.get("/directions", response_model=DirectionsResponse, status_code=status.HTTP_200_OK)
def directions(session: PlannerSession = Depends(_session)) -> DirectionsResponse:
    url = build_directions_url(session.route.stops)
    if url is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Need stops with locations or addresses",
        )
    return DirectionsResponse(url=url)
