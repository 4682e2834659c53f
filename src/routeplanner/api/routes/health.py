"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_osrm_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing.osrm_client import check_health as osrm_health_check
    return osrm_health_check


def _get_geocoder_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.geocoding.nominatim_client import check_health as geocoder_health_check
    return geocoder_health_check


@router.get("/health/routing", status_code=status.HTTP_200_OK)
def health_routing() -> dict:
    """Check the upstream OSRM trip service."""
    try:
        return {"service": "osrm", "healthy": _get_osrm_health_check()()}
    except Exception as e:
        return {"service": "osrm", "healthy": False, "error": str(e)}


@router.get("/health/geocoder", status_code=status.HTTP_200_OK)
def health_geocoder() -> dict:
    """Check the Nominatim geocoder."""
    try:
        return {"service": "nominatim", "healthy": _get_geocoder_health_check()()}
    except Exception as e:
        return {"service": "nominatim", "healthy": False, "error": str(e)}


@router.get("/health/datasets", status_code=status.HTTP_200_OK)
def health_datasets() -> dict:
    """Check the customer record service answers its ping endpoint."""
    from ...services.datasets import get_dataset_client

    try:
        return {"service": "datasets", "healthy": get_dataset_client().ping()}
    except Exception as e:
        return {"service": "datasets", "healthy": False, "error": str(e)}
