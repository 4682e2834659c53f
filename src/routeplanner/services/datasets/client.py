"""Client for the remote customer record service.

The service owns storage and CRUD; this module only consumes it. Records are
returned as plain dicts together with the dataset's column list, its declared
id column and the total match count.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Mapping
from urllib.parse import quote

import httpx

from ...config import settings
from ...models.domain import DatasetPage

logger = logging.getLogger(__name__)

FORBIDDEN_VALUE_CHARS = (",", "\n", "\r")


class DatasetServiceError(Exception):
    """The record service rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def validate_values(values: Mapping[str, Any]) -> dict[str, str]:
    """Return the values as strings; raises ValueError for commas or newlines."""
    cleaned: dict[str, str] = {}
    invalid: list[str] = []
    for column, value in values.items():
        text = "" if value is None else str(value)
        if any(char in text for char in FORBIDDEN_VALUE_CHARS):
            invalid.append(column)
        cleaned[column] = text
    if invalid:
        raise ValueError(f"Remove commas/newlines from fields: {', '.join(invalid)}")
    return cleaned


class DatasetClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = (base_url or settings.dataset_api_base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("Dataset service base URL is not configured.")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._client = client or httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=settings.connect_timeout_seconds),
            headers={"Content-Type": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        logger.debug(f"[dataset] {method} {path}")
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise DatasetServiceError(f"Dataset service unreachable: {exc}") from exc

        data = None
        if "application/json" in response.headers.get("content-type", ""):
            try:
                data = response.json()
            except ValueError:
                data = None

        if not response.is_success:
            message = (data or {}).get("error") if isinstance(data, dict) else None
            raise DatasetServiceError(message or f"HTTP {response.status_code}", response.status_code)
        return data

    def ping(self) -> bool:
        try:
            self._request("GET", "/api/ping")
            return True
        except DatasetServiceError as exc:
            logger.info(f"Dataset service status check failed: {exc}")
            return False

    def list_databases(self) -> list[str]:
        data = self._request("GET", "/api/databases") or {}
        return [str(name) for name in data.get("databases", [])]

    def query(self, db: str, q: str = "", skip: int = 0, take: int | None = None) -> DatasetPage:
        take = take or settings.page_size
        data = self._request(
            "GET",
            "/api/customers",
            params={"db": db, "q": q, "skip": str(skip), "take": str(take)},
        ) or {}
        return DatasetPage(
            columns=[str(column) for column in data.get("columns", [])],
            id_column=str(data.get("idColumn") or "ID"),
            rows=list(data.get("rows", [])),
            total=int(data.get("total", 0)),
            skip=skip,
            take=take,
        )

    def create(self, db: str, values: Mapping[str, Any]) -> None:
        self._request("POST", "/api/customers", params={"db": db}, json={"values": validate_values(values)})

    def update(self, db: str, record_id: str, values: Mapping[str, Any]) -> None:
        self._request(
            "PUT",
            f"/api/customers/{quote(str(record_id), safe='')}",
            params={"db": db},
            json={"values": validate_values(values)},
        )

    def delete(self, db: str, record_id: str) -> None:
        self._request("DELETE", f"/api/customers/{quote(str(record_id), safe='')}", params={"db": db})


@lru_cache()
def get_dataset_client() -> DatasetClient:
    """Shared client instance for the configured record service."""
    return DatasetClient()
