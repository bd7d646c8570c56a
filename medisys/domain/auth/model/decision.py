"""Access decisions produced by the gate."""

from dataclasses import dataclass
from enum import StrEnum


class AccessState(StrEnum):
    UNRESOLVED = "unresolved"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass(frozen=True)
class AccessDecision:
    state: AccessState
    reason: str | None = None

    @property
    def granted(self) -> bool:
        return self.state is AccessState.GRANTED

    @property
    def denied(self) -> bool:
        return self.state is AccessState.DENIED


UNRESOLVED = AccessDecision(AccessState.UNRESOLVED)
