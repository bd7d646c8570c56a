"""Remote mutations reconciled into the local upload list.

The coordinator owns no data. It asks the remote API to mutate a record and
only after the acknowledgment patches or prunes the list store. While a
mutation is in flight the record is locked; a second mutation of the same
record is rejected rather than queued.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

from medisys.domain.auth.port.identity_provider import IdentityProvider
from medisys.domain.auth.service.credentials import bearer_token
from medisys.domain.shared.result import Err
from medisys.domain.upload.model.upload import UploadKey, UploadPatch
from medisys.domain.upload.port.upload_api import UploadApi
from medisys.domain.upload.service.detail_store import DetailStore
from medisys.domain.upload.service.list_store import UploadListStore

logger = logging.getLogger(__name__)

Confirm = Callable[[str], Awaitable[bool]]
"""Yes/no prompt shown to the user before destructive operations."""


class MutationStatus(StrEnum):
    APPLIED = "applied"
    FAILED = "failed"  # Remote refused or unreachable; store untouched
    CANCELLED = "cancelled"  # User declined the confirmation
    REJECTED = "rejected"  # Not attempted: record locked or nothing to do


@dataclass(frozen=True)
class MutationOutcome:
    status: MutationStatus
    message: str
    error: Err | None = None

    @property
    def applied(self) -> bool:
        return self.status is MutationStatus.APPLIED


class MutationCoordinator:
    def __init__(
        self,
        api: UploadApi,
        identity: IdentityProvider,
        store: UploadListStore,
        confirm: Confirm,
        detail: DetailStore | None = None,
    ) -> None:
        self._api = api
        self._identity = identity
        self._store = store
        self._confirm = confirm
        self._detail = detail
        self._locks: set[UploadKey] = set()

    @property
    def locked(self) -> frozenset[UploadKey]:
        return frozenset(self._locks)

    def is_locked(self, clinic_id: str, upload_id: str) -> bool:
        return UploadKey(clinic_id, upload_id) in self._locks

    async def request_delete(self, clinic_id: str, upload_id: str) -> MutationOutcome:
        """Delete an upload after user confirmation, then drop it locally."""
        key = UploadKey(clinic_id, upload_id)
        if key in self._locks:
            return self._busy(key)

        self._locks.add(key)
        try:
            prompt = f"Delete upload #{upload_id} from clinic {clinic_id}? This cannot be undone."
            if not await self._confirm(prompt):
                return MutationOutcome(MutationStatus.CANCELLED, "Delete cancelled")

            credential = await bearer_token(self._identity)
            if isinstance(credential, Err):
                return self._failed("Delete", credential)

            result = await self._api.delete(clinic_id, upload_id, credential.value)
            if isinstance(result, Err):
                return self._failed("Delete", result)

            self._store.remove_local(clinic_id, upload_id)
            if self._detail is not None and self._detail.selection == key:
                self._detail.clear_selection()
            logger.info("Deleted upload %s/%s", clinic_id, upload_id)
            return MutationOutcome(MutationStatus.APPLIED, f"Deleted upload #{upload_id}")
        finally:
            self._locks.discard(key)

    async def request_update(
        self, upload_id: str, clinic_id: str, patch: UploadPatch
    ) -> MutationOutcome:
        """Send the patch and, once acknowledged, merge exactly its fields locally."""
        if patch.is_empty():
            return MutationOutcome(MutationStatus.REJECTED, "Nothing to update")
        key = UploadKey(clinic_id, upload_id)
        if key in self._locks:
            return self._busy(key)

        self._locks.add(key)
        try:
            credential = await bearer_token(self._identity)
            if isinstance(credential, Err):
                return self._failed("Save", credential)

            result = await self._api.update(upload_id, clinic_id, patch, credential.value)
            if isinstance(result, Err):
                return self._failed("Save", result)

            # Only the fields we sent: the server's echo may be stale for the rest
            self._store.apply_local_patch(clinic_id, upload_id, patch)
            logger.info("Updated upload %s/%s: %s", clinic_id, upload_id, sorted(patch.fields()))
            return MutationOutcome(MutationStatus.APPLIED, "Saved")
        finally:
            self._locks.discard(key)

    async def request_create(
        self, filename: str, content: bytes, content_type: str = "text/csv"
    ) -> MutationOutcome:
        """Upload a data file, then reload the list from its first page."""
        credential = await bearer_token(self._identity)
        if isinstance(credential, Err):
            return self._failed("Upload", credential)

        result = await self._api.create(filename, content, credential.value, content_type)
        if isinstance(result, Err):
            return self._failed("Upload", result)

        ack = result.value
        logger.info("Uploaded %s (%d rows)", filename, ack.row_count)
        await self._store.load(reset=True)
        return MutationOutcome(MutationStatus.APPLIED, f"Uploaded rows={ack.row_count}")

    def _busy(self, key: UploadKey) -> MutationOutcome:
        return MutationOutcome(
            MutationStatus.REJECTED,
            f"Upload #{key.upload_id} is already being changed",
        )

    def _failed(self, action: str, error: Err) -> MutationOutcome:
        logger.warning("%s failed (%s): %s", action, error.kind, error.message)
        return MutationOutcome(MutationStatus.FAILED, f"{action} failed: {error.message}", error)
