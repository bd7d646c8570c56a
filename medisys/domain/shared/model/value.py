from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True)


class WireValueObject(ValueObject):
    """Value object exchanged with the remote API in camelCase."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Page(ValueObject, Generic[T]):
    """One page of a remote collection.

    ``cursor`` is opaque: it is handed back to the server verbatim to fetch
    the next page and is never inspected. ``None`` means there are no
    further pages.
    """

    items: list[T]
    cursor: str | None = None

    @property
    def has_more(self) -> bool:
        return self.cursor is not None
