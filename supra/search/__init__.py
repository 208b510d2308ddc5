"""Dish search: image ingestion, backend requests, reconciliation and selection policy."""

from supra.search.engine import SupraSearchEngine, image_source
from supra.search.errors import (
    ImageIngestionError,
    ImageNotFoundError,
    ImageTooLargeError,
    InferenceError,
    InvalidInputError,
    SupraError,
)
from supra.search.images import get_mime_type, ingest_image, temporary_upload
from supra.search.inference import (
    InferenceClient,
    parse_selection_response,
    parse_turn_interpretation,
)
from supra.search.policy import PolicyResult, SelectionPolicy
from supra.search.reconcile import reconcile, resolve_entries
from supra.search.request_builder import RequestBuilder

__all__ = [
    "SupraSearchEngine",
    "image_source",
    "SupraError",
    "ImageIngestionError",
    "InvalidInputError",
    "ImageNotFoundError",
    "ImageTooLargeError",
    "InferenceError",
    "get_mime_type",
    "ingest_image",
    "temporary_upload",
    "InferenceClient",
    "parse_selection_response",
    "parse_turn_interpretation",
    "PolicyResult",
    "SelectionPolicy",
    "reconcile",
    "resolve_entries",
    "RequestBuilder",
]
