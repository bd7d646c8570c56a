"""Port for the remote upload collection API."""

from abc import abstractmethod
from enum import StrEnum
from typing import Protocol

from pydantic import Field

from medisys.domain.shared.model.value import Page, WireValueObject
from medisys.domain.shared.result import Result
from medisys.domain.upload.model.detail import DetailRow
from medisys.domain.upload.model.upload import UploadPatch, UploadRecord


class ListScope(StrEnum):
    """Which uploads a listing covers."""

    OWN = "own"  # The caller's clinic (bearer token)
    ALL = "all"  # Every clinic (bearer token, staff only)
    PUBLIC = "public"  # Every clinic, anonymous read

    @property
    def requires_auth(self) -> bool:
        return self is not ListScope.PUBLIC


class UpdateAck(WireValueObject):
    ok: bool = True


class DeleteAck(WireValueObject):
    ok: bool = True
    upload_id: str
    clinic_id: str


class CreateAck(WireValueObject):
    ok: bool = True
    row_count: int = Field(ge=0)
    upload_id: str | None = None


class PokeDiagnostic(WireValueObject):
    """Unauthenticated liveness check of the remote function."""

    stage: str
    method: str | None = None
    body_bytes: int | None = None
    has_auth: bool | None = None


class AuthDiagnostic(WireValueObject):
    """How the remote function resolved the caller's token."""

    stage: str
    clinic_id: str
    sub: str
    email: str | None = None
    username: str | None = None
    user_is_staff: bool | None = None


class UploadApi(Protocol):
    """Remote collection client.

    Every operation returns ``Ok(payload)`` or ``Err(kind, message)`` and
    never touches local stores. Operations that need a bearer token return
    an identity ``Err`` without a network call when ``token`` is missing.
    """

    @abstractmethod
    async def list(
        self,
        scope: ListScope,
        limit: int,
        cursor: str | None = None,
        token: str | None = None,
    ) -> Result[Page[UploadRecord]]: ...

    @abstractmethod
    async def detail(
        self,
        clinic_id: str,
        upload_id: str,
        limit: int,
        cursor: str | None = None,
        token: str | None = None,
        public: bool = False,
    ) -> Result[Page[DetailRow]]: ...

    @abstractmethod
    async def update(
        self,
        upload_id: str,
        clinic_id: str,
        patch: UploadPatch,
        token: str | None,
    ) -> Result[UpdateAck]: ...

    @abstractmethod
    async def delete(
        self,
        clinic_id: str,
        upload_id: str,
        token: str | None,
    ) -> Result[DeleteAck]: ...

    @abstractmethod
    async def create(
        self,
        filename: str,
        content: bytes,
        token: str | None,
        content_type: str = "text/csv",
    ) -> Result[CreateAck]: ...

    @abstractmethod
    async def poke(self) -> Result[PokeDiagnostic]: ...

    @abstractmethod
    async def verify_auth(self, token: str | None) -> Result[AuthDiagnostic]: ...
