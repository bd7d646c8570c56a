"""Response schemas of the upload API and the validation boundary.

Raw JSON never leaves the HTTP adapter: it is checked against one of these
models and turned into ``Valid(model)`` or ``Invalid(reason)``.
"""

from typing import Any, Literal, TypeVar

import pydantic
from pydantic import BaseModel

from medisys.domain.shared.model.value import Page, WireValueObject
from medisys.domain.shared.result import Invalid, Valid, Validation
from medisys.domain.upload.model.detail import DetailRow
from medisys.domain.upload.model.upload import UploadRecord

M = TypeVar("M", bound=BaseModel)


class ErrorPayload(WireValueObject):
    """``{ok: false, error, message?}`` returned by the server on failure."""

    ok: Literal[False]
    error: str
    message: str | None = None

    @property
    def display(self) -> str:
        return self.message or self.error


class ListPayload(WireValueObject):
    items: list[UploadRecord]
    next_start_key: str | None = None

    def to_page(self) -> Page[UploadRecord]:
        # An empty continuation key means the listing is complete
        return Page[UploadRecord](items=self.items, cursor=self.next_start_key or None)


class DetailPayload(WireValueObject):
    rows: list[DetailRow]
    next_start_key: str | None = None
    upload_id: str | None = None
    clinic_id: str | None = None
    used_prefix: str | None = None

    def to_page(self) -> Page[DetailRow]:
        return Page[DetailRow](items=self.rows, cursor=self.next_start_key or None)


def validate(model: type[M], data: Any) -> Validation[M]:
    try:
        return Valid(model.model_validate(data))
    except pydantic.ValidationError as e:
        return Invalid(_describe(e))


def error_message(data: Any) -> str | None:
    """Display message of a structured error payload, None if ``data`` is not one."""
    checked = validate(ErrorPayload, data)
    if isinstance(checked, Valid):
        return checked.value.display
    return None


def _describe(error: pydantic.ValidationError) -> str:
    problems = error.errors()
    first = problems[0]
    location = ".".join(str(part) for part in first["loc"])
    reason = f"{location}: {first['msg']}" if location else first["msg"]
    if len(problems) > 1:
        reason += f" (+{len(problems) - 1} more)"
    return reason
