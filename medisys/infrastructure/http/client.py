"""HTTP adapter for the UploadApi port."""

import logging
from typing import Any, TypeVar

import httpx
import logfire
from pydantic import BaseModel

from medisys.domain.auth.service.credentials import NOT_SIGNED_IN
from medisys.domain.shared.model.value import Page
from medisys.domain.shared.result import Err, ErrorKind, Invalid, Ok, Result
from medisys.domain.upload.model.detail import DetailRow
from medisys.domain.upload.model.upload import UploadPatch, UploadRecord
from medisys.domain.upload.port.upload_api import (
    AuthDiagnostic,
    CreateAck,
    DeleteAck,
    ListScope,
    PokeDiagnostic,
    UpdateAck,
    UploadApi,
)
from medisys.infrastructure.http.schema import DetailPayload, ListPayload, error_message, validate

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Characters of a non-JSON body quoted back in the error message
_BODY_PREVIEW = 200


class HttpUploadApi(UploadApi):
    """Talks to the single upload function URL using httpx.

    Verbs are selected by HTTP method plus ``action``/``public``/``mode``
    query parameters. A response is only accepted when it is declared JSON,
    has a success status and matches the expected schema.
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str) -> None:
        self._client = client
        self._base_url = base_url

    async def list(
        self,
        scope: ListScope,
        limit: int,
        cursor: str | None = None,
        token: str | None = None,
    ) -> Result[Page[UploadRecord]]:
        if scope is ListScope.PUBLIC:
            params = {"public": "all"}
        else:
            params = {"action": "list"}
            if scope is ListScope.ALL:
                params["scope"] = "all"
        params["limit"] = str(limit)
        if cursor is not None:
            params["startKey"] = cursor

        with logfire.span("ListUploads", scope=str(scope), limit=limit):
            result = await self._send(
                "List", "GET", params, token=token, authenticated=scope.requires_auth
            )
        payload = self._validated(result, ListPayload, "list")
        if isinstance(payload, Err):
            return payload
        return Ok(payload.value.to_page())

    async def detail(
        self,
        clinic_id: str,
        upload_id: str,
        limit: int,
        cursor: str | None = None,
        token: str | None = None,
        public: bool = False,
    ) -> Result[Page[DetailRow]]:
        params = {"public": "detail"} if public else {"action": "detail"}
        params.update(clinicId=clinic_id, uploadId=upload_id, limit=str(limit))
        if cursor is not None:
            params["startKey"] = cursor

        with logfire.span("GetUploadDetail", clinic_id=clinic_id, upload_id=upload_id):
            result = await self._send(
                "Detail", "GET", params, token=token, authenticated=not public
            )
        payload = self._validated(result, DetailPayload, "detail")
        if isinstance(payload, Err):
            return payload

        detail = payload.value
        foreign = detail.upload_id not in (None, upload_id) or any(
            row.upload_id != upload_id for row in detail.rows
        )
        if foreign:
            logger.warning("Detail response for %s contains rows of another upload", upload_id)
            return Err(
                ErrorKind.PROTOCOL,
                f"Unexpected detail payload: rows do not belong to upload {upload_id}",
            )
        return Ok(detail.to_page())

    async def update(
        self,
        upload_id: str,
        clinic_id: str,
        patch: UploadPatch,
        token: str | None,
    ) -> Result[UpdateAck]:
        body = {
            "uploadId": upload_id,
            "clinicId": clinic_id,
            **patch.model_dump(by_alias=True, exclude_none=True),
        }
        with logfire.span("UpdateUpload", clinic_id=clinic_id, upload_id=upload_id):
            result = await self._send(
                "Update", "PATCH", {"action": "meta"}, token=token, json=body
            )
        return self._validated(result, UpdateAck, "update")

    async def delete(
        self,
        clinic_id: str,
        upload_id: str,
        token: str | None,
    ) -> Result[DeleteAck]:
        params = {"action": "upload", "uploadId": upload_id, "clinicId": clinic_id}
        with logfire.span("DeleteUpload", clinic_id=clinic_id, upload_id=upload_id):
            result = await self._send("Delete", "DELETE", params, token=token)
        ack = self._validated(result, DeleteAck, "delete")
        if isinstance(ack, Ok) and (ack.value.upload_id, ack.value.clinic_id) != (
            upload_id,
            clinic_id,
        ):
            return Err(
                ErrorKind.PROTOCOL,
                f"Unexpected delete payload: acknowledged {ack.value.clinic_id}/{ack.value.upload_id}",
            )
        return ack

    async def create(
        self,
        filename: str,
        content: bytes,
        token: str | None,
        content_type: str = "text/csv",
    ) -> Result[CreateAck]:
        with logfire.span("CreateUpload", filename=filename, size=len(content)):
            result = await self._send(
                "Upload",
                "POST",
                {"filename": filename},
                token=token,
                content=content,
                headers={"Content-Type": content_type or "text/csv"},
            )
        return self._validated(result, CreateAck, "upload")

    async def poke(self) -> Result[PokeDiagnostic]:
        result = await self._send("Poke", "POST", {"mode": "poke"}, authenticated=False)
        return self._validated(result, PokeDiagnostic, "poke")

    async def verify_auth(self, token: str | None) -> Result[AuthDiagnostic]:
        result = await self._send("Auth check", "POST", {"mode": "auth"}, token=token)
        return self._validated(result, AuthDiagnostic, "auth")

    async def _send(
        self,
        operation: str,
        method: str,
        params: dict[str, str],
        *,
        token: str | None = None,
        authenticated: bool = True,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Result[Any]:
        """Perform one request and classify the response.

        Returns the decoded JSON body on success. Failures become ``Err`` in
        this order: missing token, transport, non-JSON body, non-success
        status, ``ok: false`` body.
        """
        if authenticated and not token:
            return Err(ErrorKind.IDENTITY, NOT_SIGNED_IN)

        request_headers = {"Accept": "application/json"}
        if authenticated:
            request_headers["Authorization"] = f"Bearer {token}"
        if headers:
            request_headers.update(headers)

        try:
            response = await self._client.request(
                method, self._base_url, params=params, headers=request_headers, **kwargs
            )
        except httpx.TimeoutException as e:
            logger.warning("%s request timed out: %s", operation, e)
            return Err(ErrorKind.TRANSPORT, f"{operation} timed out")
        except httpx.RequestError as e:
            logger.warning("%s request failed: %s", operation, e)
            detail = str(e) or type(e).__name__
            return Err(ErrorKind.TRANSPORT, f"{operation} request failed: {detail}")

        status = response.status_code
        content_type = response.headers.get("content-type", "").lower()
        if "application/json" not in content_type:
            preview = response.text[:_BODY_PREVIEW]
            return Err(ErrorKind.PROTOCOL, f"Non-JSON response ({status}): {preview}", status)

        try:
            data = response.json()
        except ValueError:
            return Err(ErrorKind.PROTOCOL, f"Malformed JSON response ({status})", status)

        if not response.is_success:
            message = error_message(data) or f"{operation} failed ({status})"
            logger.info("%s rejected: status=%d, message=%s", operation, status, message)
            return Err(ErrorKind.APPLICATION, message, status)

        if isinstance(data, dict) and data.get("ok") is False:
            message = error_message(data) or f"{operation} failed"
            return Err(ErrorKind.APPLICATION, message, status)

        return Ok(data)

    def _validated(self, result: Result[Any], model: type[M], label: str) -> Result[M]:
        if isinstance(result, Err):
            return result
        checked = validate(model, result.value)
        if isinstance(checked, Invalid):
            logger.warning("Unexpected %s payload: %s", label, checked.reason)
            return Err(ErrorKind.PROTOCOL, f"Unexpected {label} payload: {checked.reason}")
        return Ok(checked.value)
