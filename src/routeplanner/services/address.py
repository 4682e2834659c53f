"""Single-line postal address synthesis from messy record values."""

from __future__ import annotations

import re
from typing import Iterable

from ..models.domain import ColumnRoles, Record

UK_COUNTRY_NAME = "United Kingdom"

EMPTYISH_VALUES = frozenset({"N/A", "NA", "N\\A", "NONE", "NULL", "-", "0"})

GB_POSTCODE_PATTERN = re.compile(r"\b[A-Z]{1,2}\d{1,2}[A-Z]?\s*\d[A-Z]{2}\b", re.IGNORECASE)
HOME_NATION_PATTERN = re.compile(r"\b(SCOTLAND|ENGLAND|WALES|NORTHERN\s+IRELAND)\b", re.IGNORECASE)
UK_MENTION_PATTERN = re.compile(r"\b(UK|UNITED\s+KINGDOM|GREAT\s+BRITAIN|GB)\b", re.IGNORECASE)
URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
WHITESPACE = re.compile(r"\s+")


def looks_like_gb_postcode(text: str) -> bool:
    return bool(GB_POSTCODE_PATTERN.search(text))


def mentions_home_nation(text: str) -> bool:
    return bool(HOME_NATION_PATTERN.search(text))


def mentions_uk(text: str) -> bool:
    return bool(UK_MENTION_PATTERN.search(text))


def is_probably_gb(text: str) -> bool:
    """True when the text carries a GB postcode shape or names a UK home nation."""
    return looks_like_gb_postcode(text) or mentions_home_nation(text)


def is_emptyish(value: object) -> bool:
    text = "" if value is None else str(value).strip()
    return not text or text.upper() in EMPTYISH_VALUES


def clean_part(value: object) -> str | None:
    """Return a tidied address part, or None when the value must not be emitted."""
    if is_emptyish(value):
        return None
    text = WHITESPACE.sub(" ", str(value)).strip()
    if not text or "@" in text or URL_PATTERN.match(text):
        return None
    return text


def join_address(parts: Iterable[str]) -> str:
    """Join address parts, appending the UK when the parts look British but don't say so."""
    parts = list(parts)
    joined = ", ".join(parts)
    if not mentions_uk(joined) and is_probably_gb(joined):
        parts.append(UK_COUNTRY_NAME)
    return WHITESPACE.sub(" ", ", ".join(parts)).strip()


def build_address(record: Record, roles: ColumnRoles) -> str:
    """Synthesize a single-line address from the record's address columns.

    Never fails; a record with no usable address values yields ``""``.
    """
    parts: list[str] = []
    for column in roles.address_columns:
        part = clean_part(record.get(column))
        if part is not None:
            parts.append(part)
    return join_address(parts)
