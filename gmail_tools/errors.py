from __future__ import annotations

from googleapiclient.errors import HttpError


class GmailToolsError(Exception):
    pass


class ConfigurationError(GmailToolsError):
    """Missing credentials or authorization; raised before any API call."""


def _one_line(text: str) -> str:
    return " ".join(text.split())


def describe_error(exc: BaseException) -> str:
    # Single line, no stack trace. HttpError's str() embeds the request URI;
    # google-auth errors carry the raw token endpoint response in args[1:].
    if isinstance(exc, HttpError):
        status = getattr(getattr(exc, "resp", None), "status", None)
        reason = _one_line(str(getattr(exc, "reason", None) or "")) or "request failed"
        return f"HttpError(status={status}): {reason}"
    if exc.args and isinstance(exc.args[0], str):
        msg = _one_line(exc.args[0])
    else:
        msg = _one_line(str(exc))
    return msg or exc.__class__.__name__
