import re
from typing import Any, Dict, Optional

from config import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Optional[Any], default: int) -> int:
    """
    Parse the leading integer of a query-string value ("12abc" -> 12, "2.5" -> 2).

    Anything that does not start with digits, or parses to zero or less,
    falls back to the default instead of raising.
    """
    if value is None:
        return default
    if isinstance(value, int):
        number = value
    else:
        match = _LEADING_INT.match(str(value))
        if not match:
            return default
        number = int(match.group(1))
    return number if number > 0 else default


class Page:
    """Resolved page/limit pair plus the arithmetic built on it"""

    def __init__(self, page: Optional[Any] = None, limit: Optional[Any] = None):
        self.page = parse_int(page, DEFAULT_PAGE)
        self.limit = min(parse_int(limit, DEFAULT_PAGE_LIMIT), MAX_PAGE_LIMIT)

    @property
    def start_index(self) -> int:
        return (self.page - 1) * self.limit

    def slice(self, items: list) -> list:
        return items[self.start_index:self.start_index + self.limit]

    def descriptor(self, total: int) -> Dict[str, Dict[str, int]]:
        """next/prev cursors; each key is present only when that page exists"""
        pagination = {}
        if self.start_index + self.limit < total:
            pagination["next"] = {"page": self.page + 1, "limit": self.limit}
        if self.start_index > 0:
            pagination["prev"] = {"page": self.page - 1, "limit": self.limit}
        return pagination
