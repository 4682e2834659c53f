"""Tagged results for the fallible steps of route planning."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    UNRESOLVABLE_STOP = "unresolvable_stop"
    INSUFFICIENT_STOPS = "insufficient_stops"
    INSUFFICIENT_LOCATED_STOPS = "insufficient_located_stops"
    ROUTING_UNAVAILABLE = "routing_unavailable"
    OPTIMIZE_IN_PROGRESS = "optimize_in_progress"
    STALE_ROUTE = "stale_route"


_MESSAGES = {
    FailureKind.NOT_FOUND: "Location not found",
    FailureKind.UNRESOLVABLE_STOP: "Couldn't locate: {stop_label}",
    FailureKind.INSUFFICIENT_STOPS: "Add at least 2 stops",
    FailureKind.INSUFFICIENT_LOCATED_STOPS: "Need at least 2 stops with locations",
    FailureKind.ROUTING_UNAVAILABLE: "Routing failed",
    FailureKind.OPTIMIZE_IN_PROGRESS: "Route optimization already in progress",
    FailureKind.STALE_ROUTE: "Route changed while optimizing, try again",
}


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    value: T
    ok: bool = True


@dataclass(frozen=True, slots=True)
class Failure:
    kind: FailureKind
    stop_label: Optional[str] = None
    stop_id: Optional[str] = None
    detail: Optional[str] = None
    ok: bool = False

    @property
    def message(self) -> str:
        """Short user-facing message naming the actionable cause."""
        if self.kind is FailureKind.ROUTING_UNAVAILABLE and self.detail:
            return self.detail
        return _MESSAGES[self.kind].format(stop_label=self.stop_label or "stop")


Outcome = Union[Success[T], Failure]
