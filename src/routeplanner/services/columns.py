"""Column role inference for datasets whose schema is not declared.

Every role is derived from column *names* only, scanning in the dataset's
original column order with the first match winning. Cell values are only
consulted at runtime, when a label or coordinate is read from a record.
"""

from __future__ import annotations

import functools
import re
from typing import Callable, Iterable, Optional, Sequence

from ..models.domain import ColumnRoles, Coordinate, Record

DEFAULT_ID_COLUMN = "ID"
LABEL_PLACEHOLDER = "Customer"

LAT_KEYS = frozenset({"LAT", "LATITUDE"})
LON_KEYS = frozenset({"LON", "LNG", "LONG", "LONGITUDE"})

ADDRESS_HINTS = (
    "ADDRESS",
    "ADDR",
    "POSTCODE",
    "ZIP",
    "TOWN",
    "CITY",
    "COUNTY",
    "STATE",
    "COUNTRY",
    "STREET",
    "LINE1",
    "LINE2",
    "LINE3",
    "POSTAL",
)
ADDRESS_BLOCKS = (
    "EMAIL",
    "MAIL",
    "TEL",
    "PHONE",
    "MOBILE",
    "WEBSITE",
    "WEB",
    "URL",
    "COMMENT",
    "NOTES",
    "CARD",
    "PROVIDER",
    "REP",
)
PROVIDER_KEY = "CARDPROVIDER"

_NON_ALNUM = re.compile(r"[^A-Z0-9]+")

KeyPredicate = Callable[[str], bool]


def normalize_key(name: str) -> str:
    """Uppercase a column name and drop everything that is not A-Z or 0-9."""
    return _NON_ALNUM.sub("", str(name).upper())


def first_match(columns: Iterable[str], predicate: KeyPredicate) -> Optional[str]:
    """Return the first column whose normalized key satisfies ``predicate``."""
    for column in columns:
        if predicate(normalize_key(column)):
            return column
    return None


def cell_text(record: Record, column: str) -> str:
    value = record.get(column)
    if value is None:
        return ""
    return str(value).strip()


def first_value(record: Record, columns: Iterable[str], predicate: KeyPredicate) -> Optional[str]:
    """Return the first non-blank value among columns matching ``predicate``."""
    for column in columns:
        if not predicate(normalize_key(column)):
            continue
        value = cell_text(record, column)
        if value:
            return value
    return None


def _is_address_key(key: str) -> bool:
    if any(block in key for block in ADDRESS_BLOCKS):
        return False
    return any(hint in key for hint in ADDRESS_HINTS)


@functools.lru_cache(maxsize=64)
def _classify(columns: tuple[str, ...], id_column: str) -> ColumnRoles:
    lat_column = first_match(columns, lambda key: key in LAT_KEYS)
    lon_column = first_match(columns, lambda key: key in LON_KEYS)
    taken = {lat_column, lon_column}
    address_columns = tuple(
        column for column in columns if column not in taken and _is_address_key(normalize_key(column))
    )
    provider_column = first_match(columns, lambda key: PROVIDER_KEY in key)
    return ColumnRoles(
        id_column=id_column,
        lat_column=lat_column,
        lon_column=lon_column,
        address_columns=address_columns,
        provider_column=provider_column,
        columns=columns,
    )


def classify_columns(columns: Sequence[str], id_column: Optional[str] = None) -> ColumnRoles:
    """Infer :class:`ColumnRoles` from an ordered list of column names.

    Total and deterministic: the same column list always yields the same roles
    and absent roles are left empty. ``id_column`` is the identity column
    declared by the dataset service, defaulting to ``ID``.
    """
    return _classify(tuple(str(column) for column in columns), (id_column or "").strip() or DEFAULT_ID_COLUMN)


def resolve_record_id(record: Record, roles: ColumnRoles) -> str:
    for column in (roles.id_column, DEFAULT_ID_COLUMN):
        value = record.get(column)
        if value is not None:
            return str(value)
    return ""


def resolve_label(record: Record, roles: ColumnRoles) -> str:
    """Pick a human-readable label for a record."""
    columns = roles.columns or tuple(record.keys())
    label = (
        first_value(record, columns, lambda key: "BUSINESS" in key and "NAME" in key)
        or first_value(record, columns, lambda key: key.endswith("NAME"))
        or first_value(record, columns, lambda key: "COMPANY" in key)
    )
    if label:
        return label
    return resolve_record_id(record, roles).strip() or LABEL_PLACEHOLDER


def extract_coordinates(record: Record, roles: ColumnRoles) -> Optional[Coordinate]:
    """Read explicit coordinates from the record's latitude/longitude columns."""
    if not roles.lat_column or not roles.lon_column:
        return None
    lat = _parse_float(record.get(roles.lat_column))
    lon = _parse_float(record.get(roles.lon_column))
    if lat is None or lon is None or not Coordinate.is_valid(lat, lon):
        return None
    return Coordinate(lat, lon)


def _parse_float(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def card_provider(record: Record, roles: ColumnRoles) -> Optional[str]:
    """Return the record's card provider, upper-cased, or None without a provider column."""
    if not roles.provider_column:
        return None
    return cell_text(record, roles.provider_column).upper()


_PROVIDER_CATEGORIES = {
    "WORLDPAY": "worldpay",
    "DOJO": "dojo",
    "PAYMENT SENSE": "payment-sense",
    "PAYMENTSENSE": "payment-sense",
    "PAYMENT_SENSE": "payment-sense",
    "TEYA": "teya",
    "NEW LEAD": "new-lead",
    "NEWLEAD": "new-lead",
    "NEW_LEAD": "new-lead",
    "N/A": "na",
    "NA": "na",
    "N\\A": "na",
    "": "na",
}


def provider_category(provider: Optional[str]) -> Optional[str]:
    """Bucket a provider value into a display category.

    A missing provider maps to ``na``; an unrecognised provider yields None.
    """
    if provider is None:
        return "na"
    normalized = re.sub(r"\s+", " ", provider.upper())
    return _PROVIDER_CATEGORIES.get(normalized)
