"""Route planner request/response schemas."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.domain import RouteStop, TripResult


class AddStopRequest(BaseModel):
    record: Dict[str, Any]
    columns: Optional[List[str]] = Field(
        default=None,
        description="Dataset columns; when given, column roles are refreshed before adding.",
    )
    id_column: Optional[str] = None


class CoordinatesRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class RouteStopModel(BaseModel):
    id: str
    label: str
    address: str
    lat: Optional[float] = None
    lon: Optional[float] = None

    @classmethod
    def from_stop(cls, stop: RouteStop) -> "RouteStopModel":
        return cls(id=stop.id, label=stop.label, address=stop.address, lat=stop.lat, lon=stop.lon)


class TripModel(BaseModel):
    order: List[int]
    path: List[List[float]]
    distance_meters: float
    duration_seconds: float
    distance: str
    duration: str

    @classmethod
    def from_trip(cls, trip: TripResult) -> "TripModel":
        return cls(
            order=list(trip.order),
            path=[[lat, lon] for lat, lon in trip.path],
            distance_meters=trip.distance_meters,
            duration_seconds=trip.duration_seconds,
            distance=trip.distance_label,
            duration=trip.duration_label,
        )


class RouteResponse(BaseModel):
    status: str
    stops: List[RouteStopModel]
    trip: Optional[TripModel] = None


class AddStopResponse(BaseModel):
    added: bool
    route: RouteResponse


class DirectionsResponse(BaseModel):
    url: str
