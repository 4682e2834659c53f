"""Dataset browsing, record edit and column-role endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...config import settings
from ...schemas.datasets import (
    AddressRequest,
    AddressResponse,
    AnnotatedRecordModel,
    ClassifyRequest,
    ColumnRolesModel,
    DatabasesResponse,
    RecordsPageResponse,
    RecordValuesRequest,
    RecordWriteResponse,
)
from ...services.address import build_address
from ...services.columns import classify_columns, resolve_label, resolve_record_id
from ...services.datasets import DatasetClient, DatasetServiceError, get_dataset_client
from ...services.session import SessionStore, get_session_store

router = APIRouter(prefix="/datasets", tags=["datasets"])


@router.post("/classify", response_model=ColumnRolesModel, status_code=status.HTTP_200_OK)
def classify(payload: ClassifyRequest) -> ColumnRolesModel:
    return ColumnRolesModel.from_roles(classify_columns(payload.columns, payload.id_column))


@router.post("/address", response_model=AddressResponse, status_code=status.HTTP_200_OK)
def synthesize_address(payload: AddressRequest) -> AddressResponse:
    roles = classify_columns(payload.columns, payload.id_column)
    return AddressResponse(
        id=resolve_record_id(payload.record, roles),
        label=resolve_label(payload.record, roles),
        address=build_address(payload.record, roles),
        roles=ColumnRolesModel.from_roles(roles),
    )


@router.get("", response_model=DatabasesResponse, status_code=status.HTTP_200_OK)
def list_databases(client: DatasetClient = Depends(get_dataset_client)) -> DatabasesResponse:
    try:
        return DatabasesResponse(databases=client.list_databases())
    except DatasetServiceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


@router.get("/{database}/records", response_model=RecordsPageResponse, status_code=status.HTTP_200_OK)
def list_records(
    database: str,
    session_id: str = Query(..., description="Planner session whose roles and route annotate the page"),
    q: str = Query(default="", description="Free-text search across all fields"),
    skip: int = Query(default=0, ge=0),
    take: int | None = Query(default=None, ge=1, le=5000),
    store: SessionStore = Depends(get_session_store),
) -> RecordsPageResponse:
    session = store.get(session_id)
    session.select_database(database)
    try:
        page = session.load_page(q=q, skip=skip, take=take or settings.page_size)
    except DatasetServiceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return RecordsPageResponse(
        database=database,
        columns=page.columns,
        roles=ColumnRolesModel.from_roles(session.roles),
        items=[AnnotatedRecordModel(values=row, **session.annotate(row)) for row in page.rows],
        skip=page.skip,
        take=page.take,
        total=page.total,
        has_next_page=page.has_next_page,
    )


def _write(action, database: str, record_id: str | None, done: str) -> RecordWriteResponse:
    try:
        action()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except DatasetServiceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return RecordWriteResponse(database=database, id=record_id, status=done)


@router.post("/{database}/records", response_model=RecordWriteResponse, status_code=status.HTTP_201_CREATED)
def create_record(
    database: str,
    payload: RecordValuesRequest,
    client: DatasetClient = Depends(get_dataset_client),
) -> RecordWriteResponse:
    return _write(lambda: client.create(database, payload.values), database, None, "created")


@router.put("/{database}/records/{record_id}", response_model=RecordWriteResponse, status_code=status.HTTP_200_OK)
def update_record(
    database: str,
    record_id: str,
    payload: RecordValuesRequest,
    client: DatasetClient = Depends(get_dataset_client),
) -> RecordWriteResponse:
    return _write(lambda: client.update(database, record_id, payload.values), database, record_id, "updated")


@router.delete("/{database}/records/{record_id}", response_model=RecordWriteResponse, status_code=status.HTTP_200_OK)
def delete_record(
    database: str,
    record_id: str,
    client: DatasetClient = Depends(get_dataset_client),
) -> RecordWriteResponse:
    return _write(lambda: client.delete(database, record_id), database, record_id, "deleted")
