"""Paginated measurement rows for the currently selected upload."""

import logging
from collections.abc import Hashable

from medisys.domain.auth.port.identity_provider import IdentityProvider
from medisys.domain.auth.service.credentials import bearer_token
from medisys.domain.shared.model.value import Page
from medisys.domain.shared.pagination import LoadOutcome, PaginatedCollection
from medisys.domain.shared.result import Err, Ok, Result
from medisys.domain.upload.model.detail import DetailRow
from medisys.domain.upload.model.upload import UploadKey
from medisys.domain.upload.port.upload_api import UploadApi

logger = logging.getLogger(__name__)


def _row_key(row: DetailRow) -> Hashable:
    # Rows without a sort key are only duplicates when identical
    return row.sk if row.sk is not None else row


class DetailStore:
    """Rows of one upload, discarded wholesale when the selection changes."""

    def __init__(
        self,
        api: UploadApi,
        identity: IdentityProvider,
        limit: int = 100,
        public: bool = False,
        dedupe: bool = False,
    ) -> None:
        self._api = api
        self._identity = identity
        self._limit = limit
        self._public = public
        self._selection: UploadKey | None = None
        self._collection: PaginatedCollection[DetailRow] = PaginatedCollection(
            self._fetch_page,
            key=_row_key,
            dedupe=dedupe,
            name="detail",
        )

    @property
    def selection(self) -> UploadKey | None:
        return self._selection

    @property
    def rows(self) -> tuple[DetailRow, ...]:
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

    async def select(self, clinic_id: str, upload_id: str) -> LoadOutcome:
        """Switch to another upload and load its first page of rows.

        Rows and cursor of the previous selection are dropped before the
        first suspension point, so they are never visible alongside the new
        selection.
        """
        self._selection = UploadKey(clinic_id, upload_id)
        self._collection.clear()
        logger.debug("Selected upload %s/%s", clinic_id, upload_id)
        return await self._collection.load(reset=True)

    def clear_selection(self) -> None:
        self._selection = None
        self._collection.clear()

    async def load(self, reset: bool = True, cursor: str | None = None) -> LoadOutcome:
        if self._selection is None:
            return LoadOutcome.EXHAUSTED
        return await self._collection.load(reset=reset, cursor=cursor)

    async def load_more(self) -> LoadOutcome:
        return await self.load(reset=False)

    async def _fetch_page(self, cursor: str | None) -> Result[Page[DetailRow]]:
        selection = self._selection
        if selection is None:
            return Ok(Page[DetailRow](items=[]))
        token = None
        if not self._public:
            credential = await bearer_token(self._identity)
            if isinstance(credential, Err):
                return credential
            token = credential.value
        return await self._api.detail(
            selection.clinic_id,
            selection.upload_id,
            self._limit,
            cursor,
            token=token,
            public=self._public,
        )
