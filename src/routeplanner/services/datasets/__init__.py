"""Record service access."""

from .client import DatasetClient, DatasetServiceError, get_dataset_client, validate_values

__all__ = ["DatasetClient", "DatasetServiceError", "get_dataset_client", "validate_values"]
