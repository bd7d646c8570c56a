"""Unit tests for the HttpUploadApi adapter, using httpx.MockTransport."""

import json
from collections.abc import Callable

import httpx
import pytest

from medisys.domain.shared.result import Err, ErrorKind, Ok
from medisys.domain.upload.model.upload import UploadPatch
from medisys.domain.upload.port.upload_api import ListScope
from medisys.infrastructure.http.client import HttpUploadApi

BASE_URL = "https://uploads.test/"

Handler = Callable[[httpx.Request], httpx.Response]


def upload_json(clinic_id: str = "c1", upload_id: str = "42") -> dict:
    return {
        "PK": f"CLINIC#{clinic_id}",
        "SK": f"UPLOAD#{upload_id}",
        "clinicId": clinic_id,
        "uploadId": upload_id,
        "filename": "results.csv",
        "s3Key": f"uploads/{clinic_id}/{upload_id}.csv",
        "uploadedAt": "2024-03-01T09:30:00Z",
        "status": "Completed",
        "rowCount": 12,
    }


def row_json(upload_id: str = "42", sk: str = "ROW#1") -> dict:
    return {
        "patientId": "p-1",
        "testCode": "HBA1C",
        "value": 5.4,
        "unit": "%",
        "collectedAt": "2024-03-01",
        "uploadId": upload_id,
        "SK": sk,
    }


class Recorder:
    """MockTransport handler that records requests and answers from a callable."""

    def __init__(self, respond: Handler) -> None:
        self.requests: list[httpx.Request] = []
        self._respond = respond

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._respond(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def api_with(respond: Handler) -> tuple[HttpUploadApi, Recorder]:
    recorder = Recorder(respond)
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return HttpUploadApi(client=client, base_url=BASE_URL), recorder


def answer(status: int = 200, **body) -> Handler:
    return lambda request: httpx.Response(status, json=body)


class TestList:
    @pytest.mark.asyncio
    async def test_own_listing_request(self) -> None:
        api, recorder = api_with(answer(items=[upload_json()], nextStartKey="opaque-1"))

        result = await api.list(ListScope.OWN, 20, token="tok")

        assert isinstance(result, Ok)
        assert [r.upload_id for r in result.value.items] == ["42"]
        assert result.value.cursor == "opaque-1"
        request = recorder.last
        assert request.method == "GET"
        assert dict(request.url.params) == {"action": "list", "limit": "20"}
        assert request.headers["authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_all_scope_sends_cursor_verbatim(self) -> None:
        api, recorder = api_with(answer(items=[]))

        await api.list(ListScope.ALL, 50, cursor="eyJQSyI6IkNMSU5JQyMxIn0=", token="tok")

        assert dict(recorder.last.url.params) == {
            "action": "list",
            "scope": "all",
            "limit": "50",
            "startKey": "eyJQSyI6IkNMSU5JQyMxIn0=",
        }

    @pytest.mark.asyncio
    async def test_public_listing_is_anonymous(self) -> None:
        api, recorder = api_with(answer(items=[upload_json()]))

        result = await api.list(ListScope.PUBLIC, 20)

        assert isinstance(result, Ok)
        assert dict(recorder.last.url.params) == {"public": "all", "limit": "20"}
        assert "authorization" not in recorder.last.headers

    @pytest.mark.asyncio
    async def test_empty_continuation_key_ends_listing(self) -> None:
        api, _ = api_with(answer(items=[upload_json()], nextStartKey=""))

        result = await api.list(ListScope.PUBLIC, 20)

        assert isinstance(result, Ok)
        assert result.value.cursor is None

    @pytest.mark.asyncio
    async def test_missing_token_short_circuits(self) -> None:
        api, recorder = api_with(answer(items=[]))

        result = await api.list(ListScope.OWN, 20)

        assert result == Err(ErrorKind.IDENTITY, "Not signed in")
        assert recorder.requests == []


class TestResponseClassification:
    @pytest.mark.asyncio
    async def test_content_type_match_ignores_case(self) -> None:
        api, _ = api_with(
            lambda request: httpx.Response(
                200,
                content=b'{"items": []}',
                headers={"content-type": "Application/JSON; charset=UTF-8"},
            )
        )

        result = await api.list(ListScope.PUBLIC, 20)

        assert isinstance(result, Ok)
        assert result.value.items == []

    @pytest.mark.asyncio
    async def test_non_json_error_page(self) -> None:
        api, _ = api_with(lambda request: httpx.Response(502, text="<html>Bad Gateway</html>"))

        result = await api.list(ListScope.PUBLIC, 20)

        assert result == Err(
            ErrorKind.PROTOCOL, "Non-JSON response (502): <html>Bad Gateway</html>", 502
        )

    @pytest.mark.asyncio
    async def test_non_json_body_is_truncated(self) -> None:
        api, _ = api_with(lambda request: httpx.Response(200, text="x" * 500))

        result = await api.list(ListScope.PUBLIC, 20)

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.PROTOCOL
        assert result.message == "Non-JSON response (200): " + "x" * 200

    @pytest.mark.asyncio
    async def test_malformed_json(self) -> None:
        api, _ = api_with(
            lambda request: httpx.Response(
                200, content=b"{not json", headers={"content-type": "application/json"}
            )
        )

        result = await api.list(ListScope.PUBLIC, 20)

        assert result == Err(ErrorKind.PROTOCOL, "Malformed JSON response (200)", 200)

    @pytest.mark.asyncio
    async def test_structured_error_prefers_message(self) -> None:
        api, _ = api_with(answer(403, ok=False, error="forbidden", message="Staff only"))

        result = await api.list(ListScope.ALL, 20, token="tok")

        assert result == Err(ErrorKind.APPLICATION, "Staff only", 403)

    @pytest.mark.asyncio
    async def test_structured_error_without_message_uses_code(self) -> None:
        api, _ = api_with(answer(400, ok=False, error="missing_clinic"))

        result = await api.list(ListScope.OWN, 20, token="tok")

        assert result == Err(ErrorKind.APPLICATION, "missing_clinic", 400)

    @pytest.mark.asyncio
    async def test_unstructured_error_status(self) -> None:
        api, _ = api_with(answer(500, detail="boom"))

        result = await api.list(ListScope.PUBLIC, 20)

        assert result == Err(ErrorKind.APPLICATION, "List failed (500)", 500)

    @pytest.mark.asyncio
    async def test_ok_false_with_success_status(self) -> None:
        api, _ = api_with(answer(200, ok=False, error="quota_exceeded"))

        result = await api.list(ListScope.PUBLIC, 20)

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.APPLICATION
        assert result.message == "quota_exceeded"

    @pytest.mark.asyncio
    async def test_schema_mismatch(self) -> None:
        api, _ = api_with(answer(records=[]))

        result = await api.list(ListScope.PUBLIC, 20)

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.PROTOCOL
        assert result.message.startswith("Unexpected list payload: items")

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        api, _ = api_with(timeout)

        result = await api.list(ListScope.PUBLIC, 20)

        assert result == Err(ErrorKind.TRANSPORT, "List timed out")

    @pytest.mark.asyncio
    async def test_connection_failure(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        api, _ = api_with(refuse)

        result = await api.list(ListScope.PUBLIC, 20)

        assert result == Err(ErrorKind.TRANSPORT, "List request failed: Connection refused")


class TestDetail:
    @pytest.mark.asyncio
    async def test_authenticated_detail(self) -> None:
        api, recorder = api_with(
            answer(rows=[row_json()], nextStartKey="r1", uploadId="42", clinicId="c1")
        )

        result = await api.detail("c1", "42", 100, token="tok")

        assert isinstance(result, Ok)
        assert result.value.items[0].value == "5.4"
        assert result.value.cursor == "r1"
        assert dict(recorder.last.url.params) == {
            "action": "detail",
            "clinicId": "c1",
            "uploadId": "42",
            "limit": "100",
        }

    @pytest.mark.asyncio
    async def test_public_detail(self) -> None:
        api, recorder = api_with(answer(rows=[]))

        result = await api.detail("c1", "42", 100, cursor="r1", public=True)

        assert isinstance(result, Ok)
        assert recorder.last.url.params["public"] == "detail"
        assert recorder.last.url.params["startKey"] == "r1"
        assert "authorization" not in recorder.last.headers

    @pytest.mark.asyncio
    async def test_rows_of_another_upload_are_rejected(self) -> None:
        api, _ = api_with(answer(rows=[row_json("42"), row_json("43", sk="ROW#2")]))

        result = await api.detail("c1", "42", 100, token="tok")

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.PROTOCOL
        assert "do not belong to upload 42" in result.message

    @pytest.mark.asyncio
    async def test_echoed_upload_id_must_match(self) -> None:
        api, _ = api_with(answer(rows=[], uploadId="43"))

        result = await api.detail("c1", "42", 100, token="tok")

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.PROTOCOL


class TestMutations:
    @pytest.mark.asyncio
    async def test_update_sends_only_set_fields(self) -> None:
        api, recorder = api_with(answer(ok=True))

        result = await api.update("42", "c1", UploadPatch(status="Failed"), "tok")

        assert isinstance(result, Ok)
        request = recorder.last
        assert request.method == "PATCH"
        assert dict(request.url.params) == {"action": "meta"}
        assert json.loads(request.content) == {
            "uploadId": "42",
            "clinicId": "c1",
            "status": "Failed",
        }

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        api, recorder = api_with(answer(ok=True, uploadId="42", clinicId="c1"))

        result = await api.delete("c1", "42", "tok")

        assert isinstance(result, Ok)
        assert recorder.last.method == "DELETE"
        assert dict(recorder.last.url.params) == {
            "action": "upload",
            "uploadId": "42",
            "clinicId": "c1",
        }

    @pytest.mark.asyncio
    async def test_delete_ack_for_other_record_is_rejected(self) -> None:
        api, _ = api_with(answer(ok=True, uploadId="42", clinicId="c2"))

        result = await api.delete("c1", "42", "tok")

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.PROTOCOL

    @pytest.mark.asyncio
    async def test_delete_requires_token(self) -> None:
        api, recorder = api_with(answer(ok=True, uploadId="42", clinicId="c1"))

        result = await api.delete("c1", "42", None)

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.IDENTITY
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_create_posts_raw_file(self) -> None:
        api, recorder = api_with(answer(ok=True, rowCount=12, uploadId="43"))

        result = await api.create("labs.csv", b"patientId,testCode,value\n", "tok")

        assert isinstance(result, Ok)
        assert result.value.row_count == 12
        request = recorder.last
        assert request.method == "POST"
        assert dict(request.url.params) == {"filename": "labs.csv"}
        assert request.headers["content-type"] == "text/csv"
        assert request.content == b"patientId,testCode,value\n"


class TestDiagnostics:
    @pytest.mark.asyncio
    async def test_poke_is_anonymous(self) -> None:
        api, recorder = api_with(answer(stage="poke", method="POST", bodyBytes=0, hasAuth=False))

        result = await api.poke()

        assert isinstance(result, Ok)
        assert result.value.stage == "poke"
        assert dict(recorder.last.url.params) == {"mode": "poke"}
        assert "authorization" not in recorder.last.headers

    @pytest.mark.asyncio
    async def test_verify_auth(self) -> None:
        api, recorder = api_with(
            answer(stage="auth", clinicId="c1", sub="user-sub", email="a@b.test", userIsStaff=True)
        )

        result = await api.verify_auth("tok")

        assert isinstance(result, Ok)
        assert result.value.clinic_id == "c1"
        assert result.value.user_is_staff is True
        assert recorder.last.headers["authorization"] == "Bearer tok"
