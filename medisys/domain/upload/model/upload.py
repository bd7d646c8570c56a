"""Upload metadata records as listed by the remote API."""

from datetime import datetime
from enum import StrEnum
from typing import Any, NamedTuple

from pydantic import Field, field_validator, model_validator

from medisys.domain.shared.model.value import WireValueObject


class UploadStatus(StrEnum):
    """Known processing states. The server may report others."""

    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"


class UploadKey(NamedTuple):
    """Identity of an upload: ``upload_id`` is only unique within its clinic."""

    clinic_id: str
    upload_id: str


class UploadRecord(WireValueObject):
    """Metadata of one ingested file.

    The composite key (``pk``/``sk``) is immutable; only ``filename`` and
    ``status`` change locally, through ``with_patch``.
    """

    pk: str = Field(alias="PK")
    sk: str = Field(alias="SK")
    clinic_id: str
    upload_id: str
    filename: str
    storage_key: str = Field(default="", alias="s3Key")
    uploaded_at: datetime
    status: str
    row_count: int = Field(default=0, ge=0)
    uploaded_by_email: str | None = None
    uploaded_by_sub: str | None = None
    uploaded_by_username: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _derive_composite_key(cls, data: Any) -> Any:
        # Public listings may omit the table keys; rebuild them from the ids
        if isinstance(data, dict):
            data = dict(data)
            clinic_id = data.get("clinicId", data.get("clinic_id"))
            upload_id = data.get("uploadId", data.get("upload_id"))
            if not (data.get("PK") or data.get("pk")) and isinstance(clinic_id, str):
                data["PK"] = f"CLINIC#{clinic_id}"
            if not (data.get("SK") or data.get("sk")) and isinstance(upload_id, str):
                data["SK"] = f"UPLOAD#{upload_id}"
        return data

    @field_validator("row_count", mode="before")
    @classmethod
    def _missing_row_count(cls, value: Any) -> Any:
        return 0 if value is None else value

    @property
    def key(self) -> UploadKey:
        return UploadKey(self.clinic_id, self.upload_id)

    def with_patch(self, patch: "UploadPatch") -> "UploadRecord":
        return self.model_copy(update=patch.fields())


class UploadPatch(WireValueObject):
    """Editable metadata. Unset fields are left alone."""

    filename: str | None = None
    status: str | None = None

    def fields(self) -> dict[str, str]:
        """Exactly the fields that were set, keyed by attribute name."""
        return self.model_dump(exclude_none=True)

    def is_empty(self) -> bool:
        return not self.fields()
