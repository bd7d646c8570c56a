"""Upload domain models."""

from .detail import DetailRow
from .upload import UploadKey, UploadPatch, UploadRecord, UploadStatus

__all__ = ["DetailRow", "UploadKey", "UploadPatch", "UploadRecord", "UploadStatus"]
