"""Limit/offset pagination for the admin listings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from fastapi import Query
from pydantic import BaseModel

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class PageWindow:
    limit: int
    offset: int


def get_page_window(
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
) -> PageWindow:
    return PageWindow(limit=limit, offset=offset)


class Page(BaseModel, Generic[T]):
    """One slice of an admin listing; ``has_more`` drives the next-page link."""

    items: list[T]
    total: int
    limit: int
    offset: int
    has_more: bool


def build_page(items: list[T], total: int, window: PageWindow) -> Page[T]:
    return Page(
        items=items,
        total=total,
        limit=window.limit,
        offset=window.offset,
        has_more=window.offset + len(items) < total,
    )
