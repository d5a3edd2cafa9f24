from __future__ import annotations

from typing import Callable, Optional, Sequence, TypeVar

T = TypeVar("T")

# users.messages.list rejects maxResults above this.
MAX_PAGE_SIZE = 500

PageFetcher = Callable[[int, Optional[str]], tuple[Sequence[T], Optional[str]]]


def collect_pages(
    fetch_page: PageFetcher[T],
    *,
    max_results: Optional[int] = None,
    page_ceiling: int = MAX_PAGE_SIZE,
) -> list[T]:
    """
    Drain a cursor-paginated listing into one list.

    `fetch_page(page_size, page_token)` returns `(items, next_page_token)`. The
    token is opaque and passed back as-is. `max_results=None` drains every page;
    otherwise the result holds at most `max_results` items and no further page
    is requested once that many are collected. Errors from `fetch_page`
    propagate: a listing is never returned partially.
    """
    if max_results is not None and max_results <= 0:
        return []

    out: list[T] = []
    page_token: Optional[str] = None
    while True:
        if max_results is None:
            page_size = page_ceiling
        else:
            page_size = min(max_results - len(out), page_ceiling)

        items, next_token = fetch_page(page_size, page_token)
        if not items:
            break
        out.extend(items)
        if max_results is not None and len(out) >= max_results:
            break
        if not next_token:
            break
        page_token = next_token

    if max_results is not None:
        return out[:max_results]
    return out
