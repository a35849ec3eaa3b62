"""Listing service: search, filtering and pagination over registrants.

Query parameters are normalized leniently. Malformed pagination values fall
back to defaults and malformed age bounds are dropped, never rejected.

Each listing runs two independent reads (page fetch and total count) with the
same predicate. They are not wrapped in a transaction, so concurrent writes
can make the page and the total disagree.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Optional

from swim_registry.models.user import User
from swim_registry.services.query_builder import (
    PredicateBuilder,
    age_expression,
    like_operator,
)
from swim_registry.services.user_service import UserService

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

SEARCH_COLUMNS = ("first_name", "last_name", "email")
SKILL_COLUMN = "niveau_natation"

_INTEGER = re.compile(r"^[+-]?[0-9]+$")

# Query integers must fit a signed 64-bit column value
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
_INT64_MAX_DIGITS = len(str(INT64_MAX))


def parse_optional_int(value: Any) -> Optional[int]:
    """Parse a query value as an integer, returning None when absent or malformed"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if INT64_MIN <= value <= INT64_MAX else None
    value = str(value)
    if not _INTEGER.match(value):
        return None
    if len(value.lstrip("+-").lstrip("0")) > _INT64_MAX_DIGITS:
        return None
    number = int(value)
    if number < INT64_MIN or number > INT64_MAX:
        return None
    return number


def normalize_page(value: Any) -> int:
    page = parse_optional_int(value)
    if page is None or page < 1:
        return DEFAULT_PAGE
    return page


def normalize_page_size(value: Any) -> int:
    page_size = parse_optional_int(value)
    if page_size is None or page_size < 1 or page_size > MAX_PAGE_SIZE:
        return DEFAULT_PAGE_SIZE
    return page_size


@dataclass
class ListingParams:
    """Normalized listing parameters"""

    search: str = ""
    skill_filter: str = ""
    age_min: Optional[int] = None
    age_max: Optional[int] = None
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @classmethod
    def from_query(
        cls,
        search: Optional[str] = None,
        filter_niveau: Optional[str] = None,
        filter_age_min: Any = None,
        filter_age_max: Any = None,
        page: Any = None,
        limit: Any = None,
    ) -> "ListingParams":
        """Build parameters from raw query-string values"""
        page_number = normalize_page(page)
        page_size = normalize_page_size(limit)
        if (page_number - 1) * page_size > INT64_MAX:
            page_number = DEFAULT_PAGE

        return cls(
            search=search or "",
            skill_filter=filter_niveau or "",
            age_min=parse_optional_int(filter_age_min),
            age_max=parse_optional_int(filter_age_max),
            page=page_number,
            page_size=page_size,
        )


@dataclass
class ListingPage:
    """One page of users plus pagination metadata"""

    records: List[User] = field(default_factory=list)
    total_count: int = 0
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return total_pages(self.total_count, self.page_size)


def total_pages(total_count: int, page_size: int) -> int:
    """Number of pages for a result set; an empty set still has one page"""
    return max(1, math.ceil(total_count / page_size))


class ListingService:
    """Turns listing parameters into a filtered, paginated page of users"""

    def __init__(self, user_service: UserService, today: Optional[date] = None):
        self.user_service = user_service
        self.today = today or date.today()

    def build_predicate(self, params: ListingParams) -> PredicateBuilder:
        """Collect the active filters, in search, skill, age order"""
        dialect = self.user_service.dialect_name
        predicate = PredicateBuilder()

        if params.search:
            predicate.contains_any(
                SEARCH_COLUMNS, params.search, operator=like_operator(dialect)
            )

        if params.skill_filter:
            predicate.equals(SKILL_COLUMN, params.skill_filter)

        if params.age_min is not None or params.age_max is not None:
            age = age_expression(dialect, self.today)
            if params.age_min is not None:
                predicate.compare(age, ">=", float(params.age_min))
            if params.age_max is not None:
                predicate.compare(age, "<=", float(params.age_max))

        return predicate

    def list_users(self, params: ListingParams) -> ListingPage:
        """
        Fetch one page of users matching the parameters.

        Args:
            params: Normalized listing parameters

        Returns:
            ListingPage with the records of the page and the filtered total

        Raises:
            StoreError: If either query fails
        """
        predicate = self.build_predicate(params)
        records = self.user_service.find(
            predicate, limit=params.page_size, offset=params.offset
        )
        total_count = self.user_service.count(predicate)

        logger.debug(
            f"Listed {len(records)} of {total_count} users "
            f"(page={params.page}, page_size={params.page_size}, "
            f"filters={len(predicate)})"
        )
        return ListingPage(
            records=records,
            total_count=total_count,
            page=params.page,
            page_size=params.page_size,
        )
