from __future__ import annotations

import contextlib
import json
import sys
from pathlib import Path
from typing import Any, Iterator, Optional

import typer
from dotenv import load_dotenv

from .batch import MAX_BATCH_SIZE, FailedBatch, MutationSpec
from .config import OAuthConfig, load_app_config
from .errors import describe_error
from .gmail import MESSAGE_FORMATS, GmailClient
from .modify import DEFAULT_SPAM_RESULTS, ModifyRunner
from .reports import error_report
from .search import DEFAULT_SEARCH_RESULTS, SearchRunner
from .tokens import ACCESS_LEVELS, ACCESS_MODIFY, ACCESS_READONLY, TokenStore


app = typer.Typer(
    name="gmail-tools",
    help="Search, fetch, and bulk-relabel Gmail messages using the Gmail API. Output is JSON on stdout.",
    add_completion=False,
)


@app.callback()
def _main_callback() -> None:
    # Convenience for local usage. Does not override existing environment.
    load_dotenv(override=False)


def _emit(obj: dict[str, Any]) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


@contextlib.contextmanager
def _json_errors() -> Iterator[None]:
    # Any failure becomes {"error": ...} on stdout and exit code 1.
    try:
        yield
    except typer.Exit:
        raise
    except Exception as exc:
        print(json.dumps(error_report(describe_error(exc)), ensure_ascii=False))
        raise typer.Exit(code=1)


def _open_gmail(access: str) -> GmailClient:
    cfg = load_app_config()
    return GmailClient.from_stored_token(TokenStore.open_default(cfg), access)


def _split_labels(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [p.strip() for p in value.split(",") if p.strip()]


def _progress(verb: str) -> Any:
    def report(done: int, total: int) -> None:
        print(f"{verb}: {done}/{total}", file=sys.stderr)

    return report


def _batch_failed(failed: FailedBatch) -> None:
    print(f"Batch {failed.batch_index} failed: {failed.error}", file=sys.stderr)


@app.command()
def auth(
    scope: str = typer.Option(
        ACCESS_READONLY,
        "--scope",
        help="OAuth scope: readonly (default) or modify (needed for trash-spam and batch-modify).",
    ),
    credentials: Optional[Path] = typer.Option(
        None,
        "--credentials",
        help="Path to Google OAuth client JSON (Desktop app).",
    ),
    client_id: Optional[str] = typer.Option(
        None,
        "--client-id",
        help="Google OAuth client id (Desktop app). Prefer env var GOOGLE_CLIENT_ID.",
    ),
    client_secret: Optional[str] = typer.Option(
        None,
        "--client-secret",
        help="Google OAuth client secret (Desktop app). Prefer env var GOOGLE_CLIENT_SECRET.",
    ),
) -> None:
    """Run the OAuth desktop flow and store the token for later commands."""
    if scope not in ACCESS_LEVELS:
        raise typer.BadParameter(f"Valid scopes: {', '.join(ACCESS_LEVELS)}", param_hint="--scope")
    if credentials and (client_id or client_secret):
        raise typer.BadParameter("Use either --credentials OR --client-id/--client-secret (not both).")

    with _json_errors():
        cfg = load_app_config()
        store = TokenStore.open_default(cfg)
        if store.read_token_json(scope):
            print(f"Already authenticated ({scope}). Token file: {store.token_path(scope)}")
            print("To re-authenticate, delete the token file and run this command again.")
            return

        if credentials:
            gmail = GmailClient.from_oauth_desktop_flow(
                credentials_path=str(credentials),
                token_store=store,
                access=scope,
            )
        else:
            if client_id and client_secret:
                oauth = OAuthConfig(client_id=client_id, client_secret=client_secret)
            else:
                oauth = OAuthConfig.from_env_or_config(cfg)
            gmail = GmailClient.from_oauth_desktop_flow_client_secrets(
                client_id=oauth.client_id,
                client_secret=oauth.client_secret,
                token_store=store,
                access=scope,
            )
        # Touch the profile to validate the new token.
        profile = gmail.get_profile()
        print(f"OAuth OK ({scope}) for {profile.get('emailAddress')}. Token saved to: {store.token_path(scope)}")


@app.command()
def search(
    query: str = typer.Option(..., "--query", help="Gmail search query (same syntax as the Gmail search box)."),
    max_results: int = typer.Option(
        DEFAULT_SEARCH_RESULTS,
        "--max-results",
        min=1,
        help="Maximum number of results.",
    ),
    include_body: bool = typer.Option(True, "--body/--no-body", help="Include the message body (--no-body is faster)."),
    include_html: bool = typer.Option(
        False,
        "--include-html",
        help="Include HTML body content (default: has_html flag only).",
    ),
) -> None:
    """Search messages and print them as JSON."""
    with _json_errors():
        runner = SearchRunner(_open_gmail(ACCESS_READONLY))
        result = runner.search(
            query,
            max_results=max_results,
            include_body=include_body,
            include_html=include_html,
            on_message_error=lambda mid, err: print(f"Message {mid} failed: {err}", file=sys.stderr),
        )
        _emit(result)


@app.command()
def fetch(
    message_id: str = typer.Option(..., "--message-id", help="Gmail message id."),
    fmt: str = typer.Option("full", "--format", help="Response format: full (default), minimal, metadata, raw."),
) -> None:
    """Fetch one message by id and print it as JSON."""
    if fmt not in MESSAGE_FORMATS:
        raise typer.BadParameter(f"Valid formats: {', '.join(MESSAGE_FORMATS)}", param_hint="--format")
    with _json_errors():
        runner = SearchRunner(_open_gmail(ACCESS_READONLY))
        _emit(runner.fetch(message_id, fmt=fmt))


@app.command("trash-spam")
def trash_spam(
    max_results: int = typer.Option(
        DEFAULT_SPAM_RESULTS,
        "--max-results",
        min=1,
        help="Maximum number of spam messages to process.",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview spam messages without trashing."),
    batch_size: int = typer.Option(
        MAX_BATCH_SIZE,
        "--batch-size",
        min=1,
        help="Messages per batch API call (max: 100).",
    ),
) -> None:
    """Move messages labelled SPAM to the trash."""
    with _json_errors():
        runner = ModifyRunner(_open_gmail(ACCESS_MODIFY))
        result = runner.trash_spam(
            max_results=max_results,
            dry_run=dry_run,
            batch_size=batch_size,
            on_progress=_progress("Trashed"),
            on_batch_error=_batch_failed,
        )
        _emit(result)


@app.command("batch-modify")
def batch_modify(
    query: str = typer.Option(..., "--query", help="Gmail search query selecting the messages."),
    add_labels: Optional[str] = typer.Option(None, "--add-labels", help="Comma-separated label ids to add."),
    remove_labels: Optional[str] = typer.Option(
        None,
        "--remove-labels",
        help="Comma-separated label ids to remove (e.g. INBOX,UNREAD).",
    ),
    max_results: Optional[int] = typer.Option(
        None,
        "--max-results",
        min=1,
        help="Maximum number of messages to process (default: all).",
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview messages without modifying."),
    batch_size: int = typer.Option(
        MAX_BATCH_SIZE,
        "--batch-size",
        min=1,
        help="Messages per batch API call (max: 100).",
    ),
) -> None:
    """Add and/or remove labels on every message matching a query."""
    spec = MutationSpec.of(add=_split_labels(add_labels), remove=_split_labels(remove_labels))
    with _json_errors():
        if spec.is_empty():
            raise ValueError("--add-labels or --remove-labels (or both) is required.")
        runner = ModifyRunner(_open_gmail(ACCESS_MODIFY))
        result = runner.batch_modify(
            query,
            spec,
            max_results=max_results,
            dry_run=dry_run,
            batch_size=batch_size,
            on_progress=_progress("Modified"),
            on_batch_error=_batch_failed,
        )
        _emit(result)


def main(argv: Optional[list[str]] = None) -> None:
    # Entry point for the console_script in pyproject.toml.
    # Typer/Click handle exit codes via exceptions.
    app(prog_name="gmail-tools", args=argv)


if __name__ == "__main__":
    main()
