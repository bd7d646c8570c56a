"""Screen-level access gate: render-or-redirect from role claims."""

import asyncio
import logging
from collections.abc import Callable, Iterable

from medisys.domain.auth.model.decision import UNRESOLVED, AccessDecision, AccessState
from medisys.domain.auth.model.identity import Identity, Principal
from medisys.domain.auth.port.identity_provider import (
    IdentityEvent,
    IdentityProvider,
    Unsubscribe,
)
from medisys.domain.shared.error import ConfigurationError

logger = logging.getLogger(__name__)

Redirect = Callable[[str], None]
DecisionListener = Callable[[AccessDecision, AccessDecision], None]
"""Called with (previous, current) on every state transition."""


def evaluate(identity: Identity, allowed_roles: frozenset[str]) -> AccessDecision:
    """Granted iff signed in and at least one role claim is allowed."""
    if not isinstance(identity, Principal):
        return AccessDecision(AccessState.DENIED, "not signed in")
    if not identity.roles:
        return AccessDecision(AccessState.DENIED, "no role claims")
    if not identity.has_any_role(allowed_roles):
        return AccessDecision(
            AccessState.DENIED,
            f"requires one of {', '.join(sorted(allowed_roles))}",
        )
    return AccessDecision(AccessState.GRANTED)


class AccessGate:
    """Continuously evaluated guard for one mounted screen.

    Starts UNRESOLVED. ``mount()`` subscribes to identity events and runs
    the first evaluation; each event schedules another one. Only the most
    recently started evaluation may update the decision. The redirect effect
    runs once per transition into DENIED, never on repeated denials.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        allowed_roles: Iterable[str],
        redirect: Redirect,
        fallback: str = "/",
    ) -> None:
        roles = frozenset(allowed_roles)
        if not roles:
            raise ConfigurationError("AccessGate requires at least one allowed role")
        self._provider = identity_provider
        self._allowed_roles = roles
        self._redirect = redirect
        self._fallback = fallback
        self._decision = UNRESOLVED
        self._sequence = 0
        self._unsubscribe: Unsubscribe | None = None
        self._pending: set[asyncio.Task[AccessDecision]] = set()
        self._listeners: list[DecisionListener] = []

    @property
    def decision(self) -> AccessDecision:
        return self._decision

    @property
    def allowed_roles(self) -> frozenset[str]:
        return self._allowed_roles

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    def on_change(self, listener: DecisionListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def mount(self) -> AccessDecision:
        if self._unsubscribe is None:
            self._unsubscribe = self._provider.subscribe(self._on_identity_event)
        return await self.refresh()

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        # Evaluations still in flight must not touch an unmounted gate
        self._sequence += 1

    async def refresh(self) -> AccessDecision:
        """Re-read the identity and apply the resulting decision."""
        self._sequence += 1
        sequence = self._sequence
        try:
            identity = await self._provider.current()
        except Exception as e:  # any failure reading the session denies access
            logger.warning("Identity lookup failed: %s", e)
            decision = AccessDecision(AccessState.DENIED, "identity unavailable")
        else:
            decision = evaluate(identity, self._allowed_roles)
            logger.debug(
                "Access check: allowed=%s, identity=%s, state=%s",
                sorted(self._allowed_roles),
                type(identity).__name__,
                decision.state,
            )

        if sequence != self._sequence:
            return self._decision
        self._apply(decision)
        return decision

    async def settle(self) -> None:
        """Wait for evaluations scheduled by identity events."""
        while self._pending:
            await asyncio.gather(*self._pending)

    def _on_identity_event(self, event: IdentityEvent) -> None:
        logger.debug("Identity event %s, re-evaluating access", event)
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _apply(self, decision: AccessDecision) -> None:
        previous = self._decision
        self._decision = decision
        if previous.state is decision.state:
            return

        logger.info(
            "Access %s -> %s%s",
            previous.state,
            decision.state,
            f" ({decision.reason})" if decision.reason else "",
        )
        if decision.denied:
            self._redirect(self._fallback)
        for listener in list(self._listeners):
            listener(previous, decision)
