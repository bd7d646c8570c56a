"""Screen controllers for the admin, reports and upload pages.

A screen owns everything a renderer draws for one page: the access gate,
the upload listing, the selected upload's rows, the summary and the filter
state, plus a one-line status message. Rendering itself lives elsewhere.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from dishka import AsyncContainer

from medisys.config import Config, PaginationConfig
from medisys.domain.auth.model.decision import AccessDecision
from medisys.domain.auth.model.role import Role
from medisys.domain.auth.port.identity_provider import IdentityEvent, IdentityProvider
from medisys.domain.auth.service.credentials import bearer_token
from medisys.domain.auth.service.gate import AccessGate, Redirect
from medisys.domain.auth.service.routing import landing_route
from medisys.domain.shared.error import ConfigurationError, IdentityError, ValidationError
from medisys.domain.shared.pagination import LoadOutcome
from medisys.domain.shared.result import Err, Ok, Result
from medisys.domain.upload.model.detail import DetailRow
from medisys.domain.upload.model.upload import UploadPatch, UploadRecord
from medisys.domain.upload.port.upload_api import (
    AuthDiagnostic,
    ListScope,
    PokeDiagnostic,
    UploadApi,
)
from medisys.domain.upload.service.aggregation import AggregationView, UploadSummary
from medisys.domain.upload.service.detail_store import DetailStore
from medisys.domain.upload.service.filtering import (
    UploadFilter,
    clinic_options,
    status_options,
)
from medisys.domain.upload.service.list_store import UploadListStore
from medisys.domain.upload.service.mutation import (
    Confirm,
    MutationCoordinator,
    MutationOutcome,
    MutationStatus,
)

logger = logging.getLogger(__name__)


class Mutation(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ScreenDefinition:
    """Static description of one dashboard page."""

    name: str
    route: str
    allowed_roles: frozenset[str]
    scope: ListScope
    public_detail: bool
    mutations: frozenset[Mutation]
    diagnostics: bool = False


ADMIN = ScreenDefinition(
    name="admin",
    route="/admin",
    allowed_roles=frozenset({Role.ADMIN}),
    scope=ListScope.ALL,
    public_detail=False,
    mutations=frozenset({Mutation.UPDATE, Mutation.DELETE}),
    diagnostics=True,
)
REPORTS = ScreenDefinition(
    name="reports",
    route="/reports",
    allowed_roles=frozenset({Role.HEALTHCARE_TEAM, Role.ADMIN}),
    scope=ListScope.PUBLIC,
    public_detail=True,
    mutations=frozenset({Mutation.DELETE}),
)
UPLOAD = ScreenDefinition(
    name="upload",
    route="/upload",
    allowed_roles=frozenset({Role.CLINIC_USER}),
    scope=ListScope.OWN,
    public_detail=False,
    mutations=frozenset({Mutation.CREATE}),
)

SCREENS: dict[str, ScreenDefinition] = {s.name: s for s in (ADMIN, REPORTS, UPLOAD)}


class Screen:
    """Controller for one mounted page.

    The listing loads whenever access becomes GRANTED and every store is
    emptied when it becomes DENIED, so nothing loaded for a previous actor
    outlives a sign-out.
    """

    def __init__(
        self,
        definition: ScreenDefinition,
        api: UploadApi,
        identity: IdentityProvider,
        redirect: Redirect,
        confirm: Confirm,
        pagination: PaginationConfig | None = None,
        fallback: str = "/",
    ) -> None:
        pagination = pagination or PaginationConfig()
        self.definition = definition
        self._api = api
        self._identity = identity
        self.gate = AccessGate(identity, definition.allowed_roles, redirect, fallback)
        self.uploads = UploadListStore(
            api,
            identity,
            definition.scope,
            limit=pagination.list_limit,
            dedupe=pagination.dedupe,
        )
        self.detail = DetailStore(
            api,
            identity,
            limit=pagination.detail_limit,
            public=definition.public_detail,
            dedupe=pagination.dedupe,
        )
        self.mutations = MutationCoordinator(api, identity, self.uploads, confirm, self.detail)
        self.aggregation = AggregationView(self.uploads)
        self.filter = UploadFilter()
        self.message: str | None = None
        self._stop_watching: list[Callable[[], None]] = []
        self._pending: set[asyncio.Task[LoadOutcome]] = set()

    # -- lifecycle ------------------------------------------------------------

    async def mount(self) -> AccessDecision:
        """Evaluate access and, when granted, wait for the first page."""
        if not self._stop_watching:
            self._stop_watching = [
                self.gate.on_change(self._on_access_change),
                self._identity.subscribe(self._on_identity_event),
            ]
        decision = await self.gate.mount()
        await self.settle()
        logger.info("Mounted %s screen: %s", self.definition.name, decision.state)
        return decision

    def unmount(self) -> None:
        self.gate.unmount()
        for stop in self._stop_watching:
            stop()
        self._stop_watching = []
        self._clear()

    async def settle(self) -> None:
        """Wait for gate re-evaluations and the loads they trigger."""
        await self.gate.settle()
        while self._pending:
            await asyncio.gather(*self._pending)

    def _on_access_change(self, previous: AccessDecision, current: AccessDecision) -> None:
        if current.granted:
            self._schedule_refresh()
        elif current.denied:
            self._clear()

    def _on_identity_event(self, event: IdentityEvent) -> None:
        # Another actor signing in keeps the gate GRANTED without a transition
        if event is IdentityEvent.SIGNED_IN and self.gate.decision.granted:
            logger.info("New sign-in on %s screen, reloading", self.definition.name)
            self._clear()
            self._schedule_refresh()

    def _schedule_refresh(self) -> None:
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _clear(self) -> None:
        self.uploads.clear()
        self.detail.clear_selection()
        self.message = None

    # -- listing --------------------------------------------------------------

    @property
    def visible_items(self) -> list[UploadRecord]:
        return self.filter.apply(self.uploads.items)

    @property
    def clinic_options(self) -> list[str]:
        return clinic_options(self.uploads.items)

    @property
    def status_options(self) -> list[str]:
        return status_options(self.uploads.items)

    @property
    def summary(self) -> UploadSummary:
        return self.aggregation.summary

    def set_filter(
        self,
        search: str | None = None,
        clinic: str | None = None,
        status: str | None = None,
    ) -> UploadFilter:
        changes = {"search": search, "clinic": clinic, "status": status}
        self.filter = UploadFilter(
            **{**self.filter.model_dump(), **{k: v for k, v in changes.items() if v is not None}}
        )
        return self.filter

    async def refresh(self) -> LoadOutcome:
        outcome = await self.uploads.load(reset=True)
        self._report(outcome, self.uploads.error)
        return outcome

    async def load_more(self) -> LoadOutcome:
        outcome = await self.uploads.load_more()
        self._report(outcome, self.uploads.error)
        return outcome

    # -- detail ---------------------------------------------------------------

    @property
    def rows(self) -> tuple[DetailRow, ...]:
        return self.detail.rows

    async def select(self, clinic_id: str, upload_id: str) -> LoadOutcome:
        outcome = await self.detail.select(clinic_id, upload_id)
        self._report(outcome, self.detail.error)
        return outcome

    async def load_more_rows(self) -> LoadOutcome:
        outcome = await self.detail.load_more()
        self._report(outcome, self.detail.error)
        return outcome

    def _report(self, outcome: LoadOutcome, error: Err | None) -> None:
        if outcome is LoadOutcome.FAILED and error is not None:
            self.message = f"Load failed: {error.message}"

    # -- mutations ------------------------------------------------------------

    async def delete(self, clinic_id: str, upload_id: str) -> MutationOutcome:
        if Mutation.DELETE not in self.definition.mutations:
            return self._unavailable(Mutation.DELETE)
        return self._announce(await self.mutations.request_delete(clinic_id, upload_id))

    async def update(
        self,
        upload_id: str,
        clinic_id: str,
        filename: str | None = None,
        status: str | None = None,
    ) -> MutationOutcome:
        if Mutation.UPDATE not in self.definition.mutations:
            return self._unavailable(Mutation.UPDATE)
        patch = UploadPatch(filename=filename, status=status)
        return self._announce(await self.mutations.request_update(upload_id, clinic_id, patch))

    async def upload(
        self, filename: str, content: bytes, content_type: str = "text/csv"
    ) -> MutationOutcome:
        """Send a data file and reload the listing.

        Raises:
            ValidationError: If no file name was given or the file is empty.
        """
        if Mutation.CREATE not in self.definition.mutations:
            return self._unavailable(Mutation.CREATE)
        if not filename.strip():
            raise ValidationError("Choose a file to upload", field="filename")
        if not content:
            raise ValidationError(f"{filename} is empty", field="content")
        return self._announce(
            await self.mutations.request_create(filename, content, content_type)
        )

    def _unavailable(self, mutation: Mutation) -> MutationOutcome:
        return MutationOutcome(
            MutationStatus.REJECTED,
            f"{mutation.capitalize()} is not available on the {self.definition.name} screen",
        )

    def _announce(self, outcome: MutationOutcome) -> MutationOutcome:
        self.message = outcome.message
        return outcome

    # -- diagnostics ----------------------------------------------------------

    async def poke(self) -> Result[PokeDiagnostic]:
        """Unauthenticated round-trip to the upload function."""
        self._require_diagnostics()
        result = await self._api.poke()
        if isinstance(result, Ok):
            self.message = f"Poke ok: {result.value.method or 'unknown method'}"
        else:
            self.message = f"Poke failed: {result.message}"
        return result

    async def verify_auth(self) -> Result[AuthDiagnostic]:
        """Ask the upload function how it resolves the current token."""
        self._require_diagnostics()
        credential = await bearer_token(self._identity)
        if isinstance(credential, Err):
            self.message = f"Auth check failed: {credential.message}"
            return credential
        result = await self._api.verify_auth(credential.value)
        if isinstance(result, Ok):
            self.message = f"Auth ok: clinic {result.value.clinic_id}"
        else:
            self.message = f"Auth check failed: {result.message}"
        return result

    def _require_diagnostics(self) -> None:
        if not self.definition.diagnostics:
            raise ConfigurationError(
                f"Diagnostics are not available on the {self.definition.name} screen"
            )


async def open_screen(
    container: AsyncContainer,
    name: str,
    redirect: Redirect,
    confirm: Confirm,
) -> Screen:
    """Build a screen from container-managed adapters and mount it."""
    definition = SCREENS.get(name)
    if definition is None:
        raise ConfigurationError(f"Unknown screen: {name}")

    config = await container.get(Config)
    screen = Screen(
        definition,
        api=await container.get(UploadApi),
        identity=await container.get(IdentityProvider),
        redirect=redirect,
        confirm=confirm,
        pagination=config.pagination,
        fallback=config.auth.fallback_route,
    )
    await screen.mount()
    return screen


async def home_route(identity: IdentityProvider, fallback: str = "/") -> str:
    """Where a freshly signed-in actor lands; ``fallback`` when nothing applies."""
    try:
        current = await identity.current()
    except IdentityError as e:
        logger.info("No landing route: %s", e.message)
        return fallback
    return landing_route(current) or fallback
