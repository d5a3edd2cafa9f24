from __future__ import annotations

from typing import Any, Callable, Optional

from .errors import describe_error
from .gmail import GmailClient
from .reports import fetch_view, message_error_view, search_report, search_view

DEFAULT_SEARCH_RESULTS = 10


class SearchRunner:
    """Read paths: list ids for a query, then build message views."""

    def __init__(self, gmail: GmailClient):
        self._gmail = gmail

    def search(
        self,
        query: str,
        *,
        max_results: int = DEFAULT_SEARCH_RESULTS,
        include_body: bool = True,
        include_html: bool = False,
        on_message_error: Optional[Callable[[str, str], None]] = None,
    ) -> dict[str, Any]:
        refs = self._gmail.list_message_refs(q=query, max_results=max_results)
        messages: list[dict[str, Any]] = []
        for ref in refs:
            # A message that fails to load is reported in place; the rest of the result stands.
            try:
                msg = self._gmail.get_message(ref.id, "full")
            except Exception as exc:
                err = describe_error(exc)
                if on_message_error:
                    on_message_error(ref.id, err)
                messages.append(message_error_view(ref.id, err))
                continue
            messages.append(search_view(msg, include_body=include_body, include_html=include_html))
        return search_report(query, messages)

    def fetch(self, message_id: str, *, fmt: str = "full") -> dict[str, Any]:
        msg = self._gmail.get_message(message_id, fmt)
        return fetch_view(msg, fmt)
