"""Per-user planning sessions: active dataset, its column roles and the route."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Sequence

from ..models.domain import ColumnRoles, DatasetPage, Record, RouteStop
from .address import build_address
from .columns import (
    card_provider,
    classify_columns,
    extract_coordinates,
    provider_category,
    resolve_label,
    resolve_record_id,
)
from .datasets.client import DatasetClient, get_dataset_client
from .geocoding.nominatim_client import NominatimClient
from .routing.optimizer import TripOptimizer
from .routing.osrm_client import OSRMTripClient
from .routing.state import RouteState

logger = logging.getLogger(__name__)


class PlannerSession:
    def __init__(self, optimizer: TripOptimizer, datasets: Optional[DatasetClient] = None) -> None:
        self.optimizer = optimizer
        self.datasets = datasets
        self.database: Optional[str] = None
        self.roles = ColumnRoles()
        self.route = RouteState(self.roles)

    def use_columns(self, columns: Sequence[str], id_column: Optional[str] = None) -> ColumnRoles:
        """Reclassify when the active column list (or id column) changes."""
        roles = classify_columns(columns, id_column)
        if roles != self.roles:
            logger.info(f"Column roles updated for {len(roles.columns)} columns")
            self.roles = roles
            self.route.update_roles(roles)
        return self.roles

    def select_database(self, database: str) -> None:
        self.database = database

    def load_page(self, q: str = "", skip: int = 0, take: Optional[int] = None) -> DatasetPage:
        if self.datasets is None:
            raise ValueError("Dataset service is not configured.")
        if not self.database:
            raise ValueError("No database selected.")
        page = self.datasets.query(self.database, q=q, skip=skip, take=take)
        self.use_columns(page.columns, page.id_column)
        return page

    def annotate(self, record: Record) -> dict:
        """Derived view of a record for listings."""
        provider = card_provider(record, self.roles)
        coordinate = extract_coordinates(record, self.roles)
        record_id = resolve_record_id(record, self.roles)
        return {
            "id": record_id,
            "label": resolve_label(record, self.roles),
            "address": build_address(record, self.roles),
            "provider": provider,
            "provider_category": provider_category(provider),
            "lat": coordinate.lat if coordinate else None,
            "lon": coordinate.lon if coordinate else None,
            "in_route": record_id in self.route,
        }

    def add_record(self, record: Record) -> Optional[RouteStop]:
        return self.route.add(record)


def default_optimizer() -> TripOptimizer:
    return TripOptimizer(geocoder=NominatimClient(), router=OSRMTripClient())


class SessionStore:
    """In-memory session registry; sessions live for the process lifetime."""

    def __init__(self, factory: Callable[[], PlannerSession] | None = None) -> None:
        self._factory = factory or (lambda: PlannerSession(default_optimizer(), get_dataset_client()))
        self._sessions: dict[str, PlannerSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> PlannerSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = self._factory()
                self._sessions[session_id] = session
            return session

    def drop(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    """FastAPI dependency returning the process-wide session store."""
    global _store
    if _store is None:
        _store = SessionStore()
    return _store
