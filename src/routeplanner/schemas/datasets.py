"""Dataset-facing API schemas."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.domain import ColumnRoles


class ColumnRolesModel(BaseModel):
    id_column: str
    lat_column: Optional[str] = None
    lon_column: Optional[str] = None
    address_columns: List[str] = Field(default_factory=list)
    provider_column: Optional[str] = None

    @classmethod
    def from_roles(cls, roles: ColumnRoles) -> "ColumnRolesModel":
        return cls(
            id_column=roles.id_column,
            lat_column=roles.lat_column,
            lon_column=roles.lon_column,
            address_columns=list(roles.address_columns),
            provider_column=roles.provider_column,
        )


class ClassifyRequest(BaseModel):
    columns: List[str]
    id_column: Optional[str] = Field(default=None, description="Identity column declared by the dataset service.")


class AddressRequest(BaseModel):
    columns: List[str]
    record: Dict[str, Any]
    id_column: Optional[str] = None


class AddressResponse(BaseModel):
    id: str
    label: str
    address: str
    roles: ColumnRolesModel


class AnnotatedRecordModel(BaseModel):
    id: str
    label: str
    address: str
    provider: Optional[str] = None
    provider_category: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    in_route: bool = False
    values: Dict[str, Any]


class DatabasesResponse(BaseModel):
    databases: List[str]


class RecordsPageResponse(BaseModel):
    database: str
    columns: List[str]
    roles: ColumnRolesModel
    items: List[AnnotatedRecordModel]
    skip: int
    take: int
    total: int
    has_next_page: bool


class RecordValuesRequest(BaseModel):
    values: Dict[str, Any] = Field(..., description="Column values; commas and newlines are rejected.")


class RecordWriteResponse(BaseModel):
    database: str
    id: Optional[str] = None
    status: str
