"""Shared model configuration, references and pagination."""

import math
from typing import Any, Generic, Optional, Sequence, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# Filter values meaning "no constraint"
WILDCARD_VALUES = {"", "all"}


class CamelModel(BaseModel):
    """Base for records exchanged with the API and snapshots in camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON document used on the wire."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UserReference(BaseModel):
    """Reference to an application user, as id or populated object."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    username: Optional[str] = None
    email: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_bare_id(cls, data: Any) -> Any:
        """A plain id string is a valid reference."""
        if isinstance(data, str):
            return {"id": data}
        return data

    @property
    def label(self) -> str:
        return self.username or self.id


class Page(BaseModel, Generic[T]):
    """One page of results plus the totals used by pagination controls."""

    items: list[T] = Field(default_factory=list)
    current_page: int = 1
    total_pages: int = 0
    total_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.total_count == 0


def blank_to_none(value: Any) -> Any:
    """Map empty or whitespace-only strings to None."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def wildcard_to_none(value: Any) -> Any:
    """Map empty filter values and the 'all' sentinel to None."""
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in WILDCARD_VALUES:
        return None
    return value


def date_part(value: Any) -> Any:
    """Keep only the date of an ISO datetime string ('2024-01-31T00:00:00Z')."""
    value = blank_to_none(value)
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


def total_pages_for(total_count: int, limit: int) -> int:
    """Number of pages needed for total_count rows; 0 when there are none."""
    return math.ceil(total_count / limit) if total_count > 0 else 0


def paginate(items: Sequence[T], page: int, limit: int) -> Page[T]:
    """Slice an already-filtered sequence into a Page.

    The returned current_page is clamped to the last existing page so a
    caller never ends up past the end of the results.
    """
    total_count = len(items)
    total_pages = total_pages_for(total_count, limit)
    current_page = max(1, min(page, total_pages or 1))
    start = (current_page - 1) * limit
    return Page(
        items=list(items[start:start + limit]),
        current_page=current_page,
        total_pages=total_pages,
        total_count=total_count,
    )
