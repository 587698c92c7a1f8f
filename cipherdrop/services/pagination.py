from dataclasses import dataclass

from sqlalchemy import Select
from sqlalchemy.orm import Session

from cipherdrop.errors import InvalidPageError

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50


@dataclass(frozen=True)
class PageRequest:
    """1-indexed page of ``page_size`` rows.

    ``page`` below 1 is rejected rather than clamped: the offset would
    otherwise go negative.
    """

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if not isinstance(self.page, int) or self.page < 1:
            raise InvalidPageError(f"page must be >= 1, got {self.page!r}")
        if not isinstance(self.page_size, int) or not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise InvalidPageError(
                f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {self.page_size!r}"
            )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def total_pages(total_count: int, page_size: int) -> int:
    return (total_count + page_size - 1) // page_size


def fetch_page(session: Session, stmt: Select, count_stmt: Select, request: PageRequest):
    """Run ``stmt`` for one page and ``count_stmt`` for the full total.

    The total never depends on the requested page, so a page past the
    end still reports it alongside an empty row list.
    """
    rows = session.execute(stmt.limit(request.page_size).offset(request.offset)).all()
    total = session.execute(count_stmt).scalar_one()
    return rows, total or 0
