"""
Status filtering, search and pagination over fetched rows.

The admin tables load a whole table and narrow it in memory; these helpers
hold the matching rules so the list and export routes agree on them.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Generic, Optional, Sequence, TypeVar

from portal_backend.db import MemberRecord, MembershipApplicationRecord

T = TypeVar("T")

DEFAULT_PER_PAGE = 10

# "active" is what the members page calls an accepted application.
_STATUS_FILTERS = {
    "pending": "pending",
    "accepted": "accepted",
    "active": "accepted",
    "rejected": "rejected",
}

_DIGITS_ONLY = re.compile(r"^\d+$")
_NON_DIGITS = re.compile(r"\D")


def resolve_status_filter(value: Optional[str]) -> Optional[str]:
    """Map a UI filter value to a stored status, or None for no filtering."""
    if not value:
        return None
    return _STATUS_FILTERS.get(value.strip().lower())


def filter_by_status(rows: Sequence[T], status: Optional[str]) -> list[T]:
    wanted = resolve_status_filter(status)
    if wanted is None:
        return list(rows)
    return [row for row in rows if row.status == wanted]


def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.lower()


def search_applications(
    rows: Sequence[MembershipApplicationRecord], query: Optional[str]
) -> list[MembershipApplicationRecord]:
    if not query or not query.strip():
        return list(rows)
    raw = query
    needle = query.lower()
    return [
        row
        for row in rows
        if _contains(row.full_name, needle)
        or _contains(row.woreda, needle)
        or _contains(row.kebele, needle)
        or _contains(row.occupation, needle)
        or _contains(row.email, needle)
        or raw in (row.phone or "")
        or raw in str(row.age)
    ]


def search_submissions(
    rows: Sequence[T], query: Optional[str], text_fields: Sequence[str]
) -> list[T]:
    """Search qreta or report rows.

    A digits-only query is compared against the digits of phone, woreda and
    kebele, so "5" finds "ወረዳ 05". Anything else is a case-insensitive match
    over ``text_fields`` plus a raw match on phone.
    """
    if not query or not query.strip():
        return list(rows)

    if _DIGITS_ONLY.match(query):
        return [
            row
            for row in rows
            if query in _NON_DIGITS.sub("", row.phone or "")
            or query in _NON_DIGITS.sub("", row.woreda or "")
            or query in _NON_DIGITS.sub("", row.kebele or "")
        ]

    needle = query.lower()
    return [
        row
        for row in rows
        if query in (row.phone or "")
        or any(_contains(getattr(row, name), needle) for name in text_fields)
    ]


QRETA_SEARCH_FIELDS = ("full_name", "email", "woreda", "kebele", "message")
REPORT_SEARCH_FIELDS = (
    "full_name",
    "email",
    "woreda",
    "kebele",
    "report_type",
    "report_details",
)

_MEMBER_TEXT_FIELDS = (
    "first_name",
    "father_name",
    "grand_father_name",
    "email",
    "subcity",
    "woreda",
    "kebele",
    "education_level",
    "occupation",
    "house_number",
)


def search_members(rows: Sequence[MemberRecord], query: Optional[str]) -> list[MemberRecord]:
    query = query or ""
    if _DIGITS_ONLY.match(query):
        return [
            row
            for row in rows
            if query in (row.phone or "")
            or (row.age is not None and str(row.age) == query)
            or query in (row.house_number or "")
            or query in (row.woreda or "")
            or query in (row.kebele or "")
        ]

    needle = query.lower()
    if not needle.strip():
        return list(rows)
    return [
        row
        for row in rows
        if query in (row.phone or "")
        or any(_contains(getattr(row, name), needle) for name in _MEMBER_TEXT_FIELDS)
    ]


@dataclass
class Page(Generic[T]):
    items: list[T]
    page: int
    page_count: int
    total: int


def paginate(rows: Sequence[T], page: int = 1, per_page: int = DEFAULT_PER_PAGE) -> Page[T]:
    if page < 1:
        raise ValueError("page must be >= 1")
    total = len(rows)
    start = (page - 1) * per_page
    return Page(
        items=list(rows[start : start + per_page]),
        page=page,
        page_count=math.ceil(total / per_page),
        total=total,
    )
