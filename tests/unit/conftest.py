"""Shared fixtures for unit tests."""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from medisys.domain.auth.model.identity import Anonymous, Identity, Principal
from medisys.domain.auth.port.identity_provider import IdentityEvent, IdentityListener
from medisys.domain.upload.model.detail import DetailRow
from medisys.domain.upload.model.upload import UploadRecord


class StubIdentityProvider:
    """IdentityProvider whose identity and events are driven by the test."""

    def __init__(self, identity: Identity | None = None) -> None:
        self.identity: Identity = identity or Anonymous()
        self.error: Exception | None = None
        self.listeners: list[IdentityListener] = []

    async def current(self) -> Identity:
        if self.error is not None:
            raise self.error
        return self.identity

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    def emit(self, event: IdentityEvent) -> None:
        for listener in list(self.listeners):
            listener(event)


@pytest.fixture
def identity() -> StubIdentityProvider:
    """Identity provider that starts signed out."""
    return StubIdentityProvider()


@pytest.fixture
def make_principal() -> Callable[..., Principal]:
    def _make(*roles: str, token: str = "id-token", clinic_id: str | None = "c1") -> Principal:
        return Principal(
            token=token,
            subject="user-sub",
            roles=frozenset(roles),
            email="user@clinic.test",
            clinic_id=clinic_id,
        )

    return _make


@pytest.fixture
def make_record() -> Callable[..., UploadRecord]:
    """Build an UploadRecord the way the list endpoint returns it."""

    def _make(clinic_id: str = "c1", upload_id: str = "1", **overrides: Any) -> UploadRecord:
        data: dict[str, Any] = {
            "clinicId": clinic_id,
            "uploadId": upload_id,
            "filename": f"results-{upload_id}.csv",
            "s3Key": f"uploads/{clinic_id}/{upload_id}.csv",
            "uploadedAt": datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc),
            "status": "Completed",
            "rowCount": 10,
        }
        data.update(overrides)
        return UploadRecord.model_validate(data)

    return _make


@pytest.fixture
def make_row() -> Callable[..., DetailRow]:
    def _make(upload_id: str = "1", sk: str | None = None, **overrides: Any) -> DetailRow:
        data: dict[str, Any] = {
            "patientId": "p-1",
            "testCode": "HBA1C",
            "value": "5.4",
            "unit": "%",
            "collectedAt": "2024-03-01",
            "uploadId": upload_id,
            "SK": sk,
        }
        data.update(overrides)
        return DetailRow.model_validate(data)

    return _make
