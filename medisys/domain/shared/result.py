"""Tagged results returned across the remote-API boundary.

Remote operations never raise for expected failures. They return either
``Ok(value)`` or ``Err(kind, message)`` so that stores and coordinators can
recover at the operation boundary and surface a status message instead of
an unhandled fault.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(StrEnum):
    IDENTITY = "identity"  # No/expired/invalid credential
    TRANSPORT = "transport"  # Network failure or timeout
    PROTOCOL = "protocol"  # Non-JSON or structurally invalid response
    APPLICATION = "application"  # Structured {ok: false} from the server


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    status: int | None = None  # HTTP status when a response was received

    def __str__(self) -> str:
        return self.message


Result = Union[Ok[T], Err]


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T


@dataclass(frozen=True)
class Invalid:
    reason: str


Validation = Union[Valid[T], Invalid]
