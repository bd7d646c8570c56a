"""Measurement rows belonging to one upload."""

from typing import Any

from pydantic import Field, field_validator

from medisys.domain.shared.model.value import WireValueObject


class DetailRow(WireValueObject):
    patient_id: str
    test_code: str
    value: str
    unit: str = ""
    collected_at: str = ""
    upload_id: str
    source_key: str = ""
    sk: str | None = Field(default=None, alias="SK")

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, value: Any) -> Any:
        # CSV ingestion may store numeric measurements as numbers
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value
