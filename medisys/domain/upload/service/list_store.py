"""Paginated store of upload records for one listing scope."""

from medisys.domain.auth.port.identity_provider import IdentityProvider
from medisys.domain.auth.service.credentials import bearer_token
from medisys.domain.shared.model.value import Page
from medisys.domain.shared.pagination import LoadOutcome, PaginatedCollection
from medisys.domain.shared.result import Err, Result
from medisys.domain.upload.model.upload import UploadKey, UploadPatch, UploadRecord
from medisys.domain.upload.port.upload_api import ListScope, UploadApi


class UploadListStore:
    """Resident upload records plus the cursor for the next page.

    Only the store's own loads and the local patch/remove calls (made by the
    mutation coordinator after a remote acknowledgment) change the sequence.
    """

    def __init__(
        self,
        api: UploadApi,
        identity: IdentityProvider,
        scope: ListScope,
        limit: int = 20,
        dedupe: bool = False,
    ) -> None:
        self._api = api
        self._identity = identity
        self._scope = scope
        self._limit = limit
        self._collection: PaginatedCollection[UploadRecord] = PaginatedCollection(
            self._fetch_page,
            key=lambda record: record.key,
            dedupe=dedupe,
            name=f"uploads[{scope}]",
        )

    @property
    def scope(self) -> ListScope:
        return self._scope

    @property
    def items(self) -> tuple[UploadRecord, ...]:
        return self._collection.items

    @property
    def cursor(self) -> str | None:
        return self._collection.cursor

    @property
    def has_more(self) -> bool:
        return self._collection.has_more

    @property
    def loading(self) -> bool:
        return self._collection.loading

    @property
    def revision(self) -> int:
        return self._collection.revision

    @property
    def error(self) -> Err | None:
        return self._collection.error

    async def load(self, reset: bool = True, cursor: str | None = None) -> LoadOutcome:
        return await self._collection.load(reset=reset, cursor=cursor)

    async def load_more(self) -> LoadOutcome:
        return await self._collection.load(reset=False)

    def find(self, clinic_id: str, upload_id: str) -> UploadRecord | None:
        key = UploadKey(clinic_id, upload_id)
        return next((r for r in self._collection.items if r.key == key), None)

    def apply_local_patch(self, clinic_id: str, upload_id: str, patch: UploadPatch) -> bool:
        """Merge the patch's set fields into the matching record; no-op if absent."""
        return self._collection.patch(
            UploadKey(clinic_id, upload_id),
            lambda record: record.with_patch(patch),
        )

    def remove_local(self, clinic_id: str, upload_id: str) -> bool:
        return self._collection.remove(UploadKey(clinic_id, upload_id))

    def clear(self) -> None:
        self._collection.clear()

    async def _fetch_page(self, cursor: str | None) -> Result[Page[UploadRecord]]:
        token = None
        if self._scope.requires_auth:
            credential = await bearer_token(self._identity)
            if isinstance(credential, Err):
                return credential
            token = credential.value
        return await self._api.list(self._scope, self._limit, cursor, token=token)
