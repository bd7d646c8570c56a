"""Cursor-paginated collection shared by the upload list and detail stores.

A collection owns one ordered item sequence and one opaque continuation
cursor. Every reset (and every clear) increments a generation token; a page
that arrives for an older generation is dropped on arrival, so a late
load-more can never corrupt a freshly reset sequence.
"""

import logging
from collections.abc import Callable, Hashable, Iterable
from enum import StrEnum
from typing import Generic, Protocol, TypeVar

from medisys.domain.shared.model.value import Page
from medisys.domain.shared.result import Err, Result

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FetchPage(Protocol[T]):
    """Fetches the page that starts at the given cursor (``None`` = first page)."""

    async def __call__(self, cursor: str | None) -> Result[Page[T]]: ...


class LoadOutcome(StrEnum):
    APPLIED = "applied"
    FAILED = "failed"  # State unchanged, error recorded
    DISCARDED = "discarded"  # Superseded by a newer reset while in flight
    BUSY = "busy"  # A load of the current generation is already in flight
    EXHAUSTED = "exhausted"  # No cursor to continue from
    STALE = "stale"  # Caller's cursor is not the one currently held


class PaginatedCollection(Generic[T]):
    """Ordered, append-only-per-session sequence plus continuation cursor.

    Args:
        fetch_page: Remote page fetcher.
        key: Identity of an item, used by local patch/remove and dedupe.
        dedupe: When True, appended items whose key is already resident are
            skipped. When False the page is appended as received.
        name: Label used in log lines.
    """

    def __init__(
        self,
        fetch_page: FetchPage[T],
        key: Callable[[T], Hashable],
        *,
        dedupe: bool = False,
        name: str = "collection",
    ) -> None:
        self._fetch_page = fetch_page
        self._key = key
        self._dedupe = dedupe
        self._name = name
        self._items: list[T] = []
        self._cursor: str | None = None
        self._generation = 0
        self._in_flight: int | None = None  # Generation of the pending load, if any
        self._revision = 0
        self.error: Err | None = None

    @property
    def items(self) -> tuple[T, ...]:
        return tuple(self._items)

    @property
    def cursor(self) -> str | None:
        return self._cursor

    @property
    def has_more(self) -> bool:
        return self._cursor is not None

    @property
    def loading(self) -> bool:
        return self._in_flight is not None and self._in_flight == self._generation

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def revision(self) -> int:
        """Incremented on every change to the item sequence."""
        return self._revision

    async def load(self, reset: bool = True, cursor: str | None = None) -> LoadOutcome:
        """Fetch the first page (``reset``) or the page after the held cursor.

        A reset always proceeds and supersedes whatever is in flight. An
        append is refused while another load of the current generation is
        pending, when there is no cursor, or when ``cursor`` is given and
        differs from the held one.
        """
        if reset:
            self._generation += 1
            request_cursor = None
        else:
            if self.loading:
                return LoadOutcome.BUSY
            if self._cursor is None:
                return LoadOutcome.EXHAUSTED
            if cursor is not None and cursor != self._cursor:
                logger.debug("%s: refusing stale cursor %r", self._name, cursor)
                return LoadOutcome.STALE
            request_cursor = self._cursor

        generation = self._generation
        self._in_flight = generation
        try:
            result = await self._fetch_page(request_cursor)
        finally:
            if self._in_flight == generation:
                self._in_flight = None

        if generation != self._generation:
            logger.debug(
                "%s: discarding page for generation %d (current %d)",
                self._name,
                generation,
                self._generation,
            )
            return LoadOutcome.DISCARDED

        if isinstance(result, Err):
            self.error = result
            logger.warning("%s: load failed (%s): %s", self._name, result.kind, result.message)
            return LoadOutcome.FAILED

        page = result.value
        if reset:
            self._items = self._unique(page.items, set())
        elif self._dedupe:
            seen = {self._key(item) for item in self._items}
            self._items.extend(self._unique(page.items, seen))
        else:
            self._items.extend(page.items)
        self._cursor = page.cursor
        self.error = None
        self._revision += 1
        logger.debug(
            "%s: %s %d items, has_more=%s",
            self._name,
            "loaded" if reset else "appended",
            len(page.items),
            page.has_more,
        )
        return LoadOutcome.APPLIED

    def patch(self, key: Hashable, update: Callable[[T], T]) -> bool:
        """Replace every item with the given key by ``update(item)``."""
        changed = False
        for index, item in enumerate(self._items):
            if self._key(item) == key:
                self._items[index] = update(item)
                changed = True
        if changed:
            self._revision += 1
        return changed

    def remove(self, key: Hashable) -> bool:
        """Drop every item with the given key. No-op when absent."""
        kept = [item for item in self._items if self._key(item) != key]
        if len(kept) == len(self._items):
            return False
        self._items = kept
        self._revision += 1
        return True

    def clear(self) -> None:
        """Forget all items and the cursor; pending pages become stale."""
        self._generation += 1
        self._items = []
        self._cursor = None
        self.error = None
        self._revision += 1

    def _unique(self, items: Iterable[T], seen: set[Hashable]) -> list[T]:
        unique = []
        for item in items:
            key = self._key(item)
            if key in seen:
                continue
            seen.add(key)
            unique.append(item)
        return unique
