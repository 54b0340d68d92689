"""Page slicing and search filtering over full in-memory listings."""

import math
from dataclasses import dataclass
from typing import Any, Generic, Iterable, List, Mapping, Optional, Sequence, TypeVar

from retail_api.errors import ValidationError

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: List[T]
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """
    Return the 1-based ``page`` of ``items``.

    Items keep their incoming order. A page past the end is empty but still
    reports the full ``total_count``.
    """
    if page < 1:
        raise ValidationError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValidationError(f"page_size must be > 0, got {page_size}")

    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        total_count=len(items),
        page=page,
        page_size=page_size,
    )


def _field_value(item: Any, field_name: str) -> str:
    if isinstance(item, Mapping):
        value = item.get(field_name)
    else:
        value = getattr(item, field_name, None)
    return "" if value is None else str(value)


def matches(item: Any, term: str, fields: Iterable[str]) -> bool:
    """True if any of ``fields`` contains ``term``, ignoring case."""
    needle = term.strip().casefold()
    return any(needle in _field_value(item, name).casefold() for name in fields)


def filter_items(items: Iterable[T], term: Optional[str], fields: Sequence[str]) -> List[T]:
    """Keep the items matching ``term`` in at least one of ``fields``; a blank term keeps all."""
    if not term or not term.strip():
        return list(items)
    return [item for item in items if matches(item, term, fields)]
