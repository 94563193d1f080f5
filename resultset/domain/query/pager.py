"""
Pager

Page arithmetic for a paged ResultSet. The total number of entries may be
given directly or as a callable; the callable is only invoked (once) the
first time a value that depends on the total is read, so building a pager
never runs a COUNT query by itself.
"""

import math
from typing import Any, Callable, Dict, Optional, Union

from resultset.errors import invalid_page


class Pager:
    """
    Usage:
        pager = rs.search(None, rows=10, page=3).pager()
        pager.total_entries     # runs COUNT(*) on first access
        pager.last_page
        pager.next_page         # None on the last page
    """

    def __init__(
        self,
        total_entries: Union[int, Callable[[], int]],
        entries_per_page: int,
        current_page: int = 1,
    ):
        if entries_per_page is None or entries_per_page < 1:
            raise invalid_page("entries_per_page must be a positive integer", rows=entries_per_page)
        if current_page is None or current_page < 1:
            raise invalid_page("page numbers start at 1", page=current_page, rows=entries_per_page)

        self.entries_per_page = entries_per_page
        self.current_page = current_page

        if callable(total_entries):
            self._counter: Optional[Callable[[], int]] = total_entries
            self._total: Optional[int] = None
        else:
            self._counter = None
            self._total = int(total_entries)

    def __repr__(self) -> str:
        total = self._total if self._total is not None else "?"
        return f"<Pager page={self.current_page} per_page={self.entries_per_page} total={total}>"

    @property
    def total_entries(self) -> int:
        if self._total is None:
            self._total = int(self._counter())
        return self._total

    @property
    def first_page(self) -> int:
        return 1

    @property
    def last_page(self) -> int:
        # An empty result still has one (empty) page
        return max(1, math.ceil(self.total_entries / self.entries_per_page))

    @property
    def skipped(self) -> int:
        """Entries on the pages before the current one."""
        return (self.current_page - 1) * self.entries_per_page

    @property
    def first(self) -> int:
        """1-based number of the first entry on this page, 0 when there is none."""
        if self.total_entries == 0 or self.skipped >= self.total_entries:
            return 0
        return self.skipped + 1

    @property
    def last(self) -> int:
        """1-based number of the last entry on this page, 0 when there is none."""
        if self.first == 0:
            return 0
        return min(self.current_page * self.entries_per_page, self.total_entries)

    @property
    def entries_on_this_page(self) -> int:
        if self.first == 0:
            return 0
        return self.last - self.first + 1

    @property
    def previous_page(self) -> Optional[int]:
        return self.current_page - 1 if self.current_page > 1 else None

    @property
    def next_page(self) -> Optional[int]:
        return self.current_page + 1 if self.current_page < self.last_page else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_entries": self.total_entries,
            "entries_per_page": self.entries_per_page,
            "current_page": self.current_page,
            "first_page": self.first_page,
            "last_page": self.last_page,
            "first": self.first,
            "last": self.last,
            "previous_page": self.previous_page,
            "next_page": self.next_page,
        }
