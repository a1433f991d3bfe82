"""Pagination utilities for the course service.

Page-number pagination, matching the course search endpoint's
``page`` / ``page_size`` query parameters.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, computed_field

T = TypeVar("T")


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


class Page(BaseModel, Generic[T]):
    """Paginated response envelope."""

    model_config = ConfigDict(from_attributes=True)

    items: list[T]
    page: int
    page_size: int
    total: int

    @computed_field
    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total
