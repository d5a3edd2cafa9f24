from __future__ import annotations

import json
import random
import time
from typing import Any, Optional, Sequence, cast

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .errors import ConfigurationError
from .models import Message, MessageRef, parse_message
from .paging import MAX_PAGE_SIZE, collect_pages
from .tokens import ACCESS_MODIFY, ACCESS_READONLY, TokenStore

MESSAGE_FORMATS = ("full", "metadata", "minimal", "raw")


class GmailClient:
    SCOPE_READONLY = "https://www.googleapis.com/auth/gmail.readonly"
    SCOPE_MODIFY = "https://www.googleapis.com/auth/gmail.modify"

    ACCESS_SCOPES = {
        ACCESS_READONLY: [SCOPE_READONLY],
        ACCESS_MODIFY: [SCOPE_MODIFY],
    }

    def __init__(self, creds: Credentials):
        self._creds = creds
        self._svc = build("gmail", "v1", credentials=creds, cache_discovery=False)

    @staticmethod
    def _error_reason(err: HttpError) -> str | None:
        # Best-effort parse of Google API error payload.
        try:
            raw = getattr(err, "content", None)
            if not raw:
                return None
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8", errors="replace")
            data = json.loads(raw)
            error = (data or {}).get("error") or {}
            errors = error.get("errors") or []
            if errors and isinstance(errors, list):
                reason = (errors[0] or {}).get("reason")
                if isinstance(reason, str):
                    return reason
            status = error.get("status")
            if isinstance(status, str):
                return status
        except (ValueError, AttributeError):
            return None
        return None

    @classmethod
    def _should_retry(cls, err: HttpError) -> bool:
        status = getattr(getattr(err, "resp", None), "status", None)
        if status in (429, 500, 502, 503, 504):
            return True
        if status == 403:
            reason = cls._error_reason(err)
            if reason in ("rateLimitExceeded", "userRateLimitExceeded", "backendError"):
                return True
        return False

    @classmethod
    def _execute_with_retries(cls, req: Any, *, max_attempts: int = 8) -> Any:
        delay_s = 1.0
        for attempt in range(1, max_attempts + 1):
            try:
                return req.execute()
            except HttpError as e:
                if attempt >= max_attempts or not cls._should_retry(e):
                    raise
                # Exponential backoff with jitter, capped.
                sleep_s = delay_s * (0.5 + random.random())
                time.sleep(min(sleep_s, 60.0))
                delay_s = min(delay_s * 2.0, 60.0)

    @staticmethod
    def _normalize_scopes(v: Any) -> list[str] | None:
        if v is None:
            return None
        if isinstance(v, str):
            parts = [p.strip() for p in v.split() if p.strip()]
            return parts or None
        if isinstance(v, list):
            out: list[str] = []
            for x in v:
                if isinstance(x, str) and x.strip():
                    out.append(x.strip())
            return out or None
        return None

    @classmethod
    def _satisfies_required_scopes(cls, granted: set[str], required: list[str]) -> bool:
        # gmail.modify implies read access; https://mail.google.com/ is full access.
        full = "https://mail.google.com/"
        for req in required:
            if req == cls.SCOPE_READONLY:
                if not (req in granted or cls.SCOPE_MODIFY in granted or full in granted):
                    return False
            elif not (req in granted or full in granted):
                return False
        return True

    @staticmethod
    def from_stored_token(token_store: TokenStore, access: str = ACCESS_READONLY) -> "GmailClient":
        found = token_store.find_token_json(access)
        if found is None:
            hint = "gmail-tools auth --scope modify" if access == ACCESS_MODIFY else "gmail-tools auth"
            raise ConfigurationError(f"No credentials found. Please run '{hint}' first to authenticate.")
        stored_access, token_json = found
        scopes = GmailClient.ACCESS_SCOPES[access]

        # The refresh token is bound to the originally granted scopes. Passing a different
        # scope set here can cause refresh to fail with "invalid_scope".
        granted = GmailClient._normalize_scopes(token_json.get("scopes"))
        if granted:
            if not GmailClient._satisfies_required_scopes(set(granted), scopes):
                raise ConfigurationError(
                    "Stored token is missing required scopes for this command. "
                    f"Re-run auth with the right scope (e.g. `gmail-tools auth --scope {access}`)."
                )
            effective_scopes = granted
        else:
            effective_scopes = scopes

        creds = Credentials.from_authorized_user_info(token_json, scopes=effective_scopes)
        if creds.expired and creds.refresh_token:
            creds.refresh(Request())
            token_store.write_token_json(stored_access, json.loads(creds.to_json()))
        return GmailClient(creds)

    @staticmethod
    def from_oauth_desktop_flow(
        credentials_path: str,
        token_store: TokenStore,
        access: str = ACCESS_READONLY,
    ) -> "GmailClient":
        flow = InstalledAppFlow.from_client_secrets_file(credentials_path, scopes=GmailClient.ACCESS_SCOPES[access])
        creds = flow.run_local_server(port=0)
        token_store.write_token_json(access, json.loads(creds.to_json()))
        return GmailClient(creds)

    @staticmethod
    def from_oauth_desktop_flow_client_secrets(
        *,
        client_id: str,
        client_secret: str,
        token_store: TokenStore,
        access: str = ACCESS_READONLY,
    ) -> "GmailClient":
        # Equivalent to using a downloaded "Desktop app" client JSON, but lets users provide
        # client_id/client_secret via env vars instead of a file.
        cfg = {
            "installed": {
                "client_id": client_id,
                "client_secret": client_secret,
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": "https://oauth2.googleapis.com/token",
                "redirect_uris": ["http://localhost"],
            }
        }
        flow = InstalledAppFlow.from_client_config(cfg, scopes=GmailClient.ACCESS_SCOPES[access])
        creds = flow.run_local_server(port=0)
        token_store.write_token_json(access, json.loads(creds.to_json()))
        return GmailClient(creds)

    def get_profile(self) -> dict[str, Any]:
        req = self._svc.users().getProfile(userId="me")
        return cast(dict[str, Any], self._execute_with_retries(req))

    def list_messages_page(
        self,
        *,
        q: str | None = None,
        label_ids: Sequence[str] | None = None,
        include_spam_trash: bool = False,
        page_size: int = MAX_PAGE_SIZE,
        page_token: str | None = None,
    ) -> tuple[list[MessageRef], str | None]:
        kwargs: dict[str, Any] = {
            "userId": "me",
            "maxResults": page_size,
            "includeSpamTrash": include_spam_trash,
        }
        if q:
            kwargs["q"] = q
        if label_ids:
            kwargs["labelIds"] = list(label_ids)
        if page_token:
            kwargs["pageToken"] = page_token
        req = self._svc.users().messages().list(**kwargs)
        resp = cast(dict[str, Any], self._execute_with_retries(req))
        refs = [MessageRef.model_validate(m) for m in resp.get("messages", []) or [] if m.get("id")]
        return refs, resp.get("nextPageToken")

    def list_message_refs(
        self,
        *,
        q: str | None = None,
        label_ids: Sequence[str] | None = None,
        include_spam_trash: bool = False,
        max_results: Optional[int] = None,
    ) -> list[MessageRef]:
        def fetch_page(page_size: int, page_token: Optional[str]) -> tuple[list[MessageRef], Optional[str]]:
            return self.list_messages_page(
                q=q,
                label_ids=label_ids,
                include_spam_trash=include_spam_trash,
                page_size=page_size,
                page_token=page_token,
            )

        return collect_pages(fetch_page, max_results=max_results)

    def get_message(self, message_id: str, fmt: str = "full") -> Message:
        if fmt not in MESSAGE_FORMATS:
            raise ValueError(f"Invalid format '{fmt}'. Valid formats: {', '.join(MESSAGE_FORMATS)}")
        req = self._svc.users().messages().get(userId="me", id=message_id, format=fmt)
        return parse_message(self._execute_with_retries(req))

    def batch_modify(
        self,
        ids: Sequence[str],
        *,
        add: Sequence[str] | None = None,
        remove: Sequence[str] | None = None,
    ) -> None:
        body: dict[str, Any] = {"ids": list(ids)}
        if add:
            body["addLabelIds"] = list(add)
        if remove:
            body["removeLabelIds"] = list(remove)
        req = self._svc.users().messages().batchModify(userId="me", body=body)
        # Empty response body on success.
        self._execute_with_retries(req)
