"""Upload domain services."""

from .aggregation import AggregationView, UploadSummary, summarize
from .detail_store import DetailStore
from .filtering import UploadFilter
from .list_store import UploadListStore
from .mutation import MutationCoordinator, MutationOutcome, MutationStatus

__all__ = [
    "AggregationView",
    "DetailStore",
    "MutationCoordinator",
    "MutationOutcome",
    "MutationStatus",
    "UploadFilter",
    "UploadListStore",
    "UploadSummary",
    "summarize",
]
