from __future__ import annotations

from typing import Any

from .batch import MutationPreview, MutationResult, MutationSpec
from .mime import collect_attachments, has_body_type, locate_body
from .models import Message

NO_MESSAGES = "No messages found."
NO_SPAM = "No spam messages found."

TEXT_PLAIN = "text/plain"
TEXT_HTML = "text/html"


def message_view(
    message: Message,
    *,
    include_snippet: bool = False,
    include_body: bool = False,
    include_html: bool = False,
    include_attachments: bool = False,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": message.id,
        "thread_id": message.threadId,
        "date": message.header("Date"),
        "from": message.header("From"),
        "to": message.header("To"),
        "subject": message.header("Subject"),
    }
    if include_snippet:
        data["snippet"] = message.snippet
    data["labels"] = message.label_ids()

    payload = message.payload
    if include_body:
        body: dict[str, Any] = {"plain_text": locate_body(payload, TEXT_PLAIN)}
        if include_html:
            body["html"] = locate_body(payload, TEXT_HTML)
        else:
            # Presence only; the HTML is not decoded.
            body["has_html"] = has_body_type(payload, TEXT_HTML)
        data["body"] = body
    if include_attachments:
        data["attachments"] = [a.to_dict() for a in collect_attachments(payload)]
    return data


def search_view(message: Message, *, include_body: bool, include_html: bool) -> dict[str, Any]:
    return message_view(message, include_snippet=True, include_body=include_body, include_html=include_html)


def fetch_view(message: Message, fmt: str) -> dict[str, Any]:
    full = fmt == "full"
    return message_view(message, include_body=full, include_html=full, include_attachments=full)


def message_error_view(message_id: str, error: str) -> dict[str, Any]:
    return {"id": message_id, "error": error}


def search_report(query: str, messages: list[dict[str, Any]]) -> dict[str, Any]:
    return {"query": query, "result_count": len(messages), "messages": messages}


def batch_modify_report(query: str, spec: MutationSpec, result: MutationResult) -> dict[str, Any]:
    if isinstance(result, MutationPreview):
        return {"dry_run": True, "query": query, "total_count": result.total_count, "ids": result.ids}
    if result.total_count == 0:
        return {"total_count": 0, "message": NO_MESSAGES}
    return {
        "query": query,
        "total_count": result.total_count,
        "mutated_count": result.mutated_count,
        "add_labels": list(spec.add_labels),
        "remove_labels": list(spec.remove_labels),
        "failed_batches": [f.to_dict() for f in result.failed_batches],
        "success": result.success,
    }


def trash_spam_report(result: MutationResult) -> dict[str, Any]:
    if isinstance(result, MutationPreview):
        return {"dry_run": True, "spam_count": result.total_count, "message_ids": result.ids}
    if result.total_count == 0:
        return {"spam_count": 0, "message": NO_SPAM}
    return {
        "spam_count": result.total_count,
        "trashed_count": result.mutated_count,
        "failed_batches": [f.to_dict() for f in result.failed_batches],
        "success": result.success,
    }


def error_report(message: str) -> dict[str, Any]:
    return {"error": message}
