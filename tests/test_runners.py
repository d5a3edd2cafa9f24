from __future__ import annotations

import pytest

from gmail_tools.batch import MutationSpec
from gmail_tools.modify import ModifyRunner
from gmail_tools.search import SearchRunner

from fakes import FakeGmail, message, part


def test_search_reports_failed_message_in_place() -> None:
    gmail = FakeGmail(ids=["m1", "missing", "m3"], messages={"m1": message("m1"), "m3": message("m3")})
    errors: list[tuple[str, str]] = []

    result = SearchRunner(gmail).search(  # type: ignore[arg-type]
        "from:alice",
        max_results=5,
        on_message_error=lambda mid, err: errors.append((mid, err)),
    )

    assert gmail.list_calls == [{"q": "from:alice", "max_results": 5}]
    assert result["query"] == "from:alice"
    assert result["result_count"] == 3
    assert [m["id"] for m in result["messages"]] == ["m1", "missing", "m3"]
    assert result["messages"][1] == {"id": "missing", "error": "Message missing not found"}
    assert result["messages"][0]["body"] == {"plain_text": "hello", "has_html": False}
    assert errors == [("missing", "Message missing not found")]


def test_fetch_uses_requested_format() -> None:
    gmail = FakeGmail(messages={"m1": message("m1", part("text/html", "<i>x</i>"))})
    view = SearchRunner(gmail).fetch("m1", fmt="full")  # type: ignore[arg-type]
    assert gmail.get_calls == [("m1", "full")]
    assert view["body"] == {"plain_text": "", "html": "<i>x</i>"}
    assert view["attachments"] == []


def test_fetch_error_propagates() -> None:
    with pytest.raises(RuntimeError):
        SearchRunner(FakeGmail()).fetch("nope")  # type: ignore[arg-type]


def test_batch_modify_applies_spec_per_batch() -> None:
    gmail = FakeGmail(ids=[f"m{i}" for i in range(250)], fail_batches={1})
    spec = MutationSpec.of(add=["Label_1"], remove=["INBOX", "UNREAD"])

    report = ModifyRunner(gmail).batch_modify("category:social", spec)  # type: ignore[arg-type]

    assert gmail.list_calls == [{"q": "category:social", "max_results": None}]
    assert [len(ids) for ids, _, _ in gmail.modify_calls] == [100, 100, 50]
    assert all(add == ("Label_1",) and remove == ("INBOX", "UNREAD") for _, add, remove in gmail.modify_calls)
    assert report["mutated_count"] == 150
    assert report["failed_batches"] == [{"batch_index": 1, "size": 100, "error": "Rate limit exceeded"}]
    assert report["success"] is False


def test_batch_modify_dry_run_lists_ids_only() -> None:
    gmail = FakeGmail(ids=["b", "a", "c"])
    report = ModifyRunner(gmail).batch_modify(  # type: ignore[arg-type]
        "is:unread", MutationSpec.of(remove=["UNREAD"]), max_results=2, dry_run=True
    )
    assert gmail.modify_calls == []
    assert report == {"dry_run": True, "query": "is:unread", "total_count": 2, "ids": ["b", "a"]}


def test_batch_modify_no_matches() -> None:
    report = ModifyRunner(FakeGmail()).batch_modify("x", MutationSpec.of(add=["A"]))  # type: ignore[arg-type]
    assert report == {"total_count": 0, "message": "No messages found."}


def test_batch_modify_requires_labels_and_query() -> None:
    runner = ModifyRunner(FakeGmail(ids=["m1"]))  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        runner.batch_modify("x", MutationSpec())
    with pytest.raises(ValueError):
        runner.batch_modify("", MutationSpec.of(add=["A"]))


def test_trash_spam_moves_spam_to_trash() -> None:
    gmail = FakeGmail(ids=["s1", "s2", "s3"])
    progress: list[tuple[int, int]] = []

    report = ModifyRunner(gmail).trash_spam(  # type: ignore[arg-type]
        batch_size=2,
        on_progress=lambda done, total: progress.append((done, total)),
    )

    assert gmail.list_calls == [{"label_ids": ["SPAM"], "include_spam_trash": True, "max_results": 500}]
    assert gmail.modify_calls == [(["s1", "s2"], ("TRASH",), ("SPAM",)), (["s3"], ("TRASH",), ("SPAM",))]
    assert progress == [(2, 3), (3, 3)]
    assert report == {"spam_count": 3, "trashed_count": 3, "failed_batches": [], "success": True}


def test_trash_spam_dry_run_and_empty() -> None:
    gmail = FakeGmail(ids=["s1"])
    assert ModifyRunner(gmail).trash_spam(dry_run=True) == {  # type: ignore[arg-type]
        "dry_run": True,
        "spam_count": 1,
        "message_ids": ["s1"],
    }
    assert gmail.modify_calls == []
    assert ModifyRunner(FakeGmail()).trash_spam() == {  # type: ignore[arg-type]
        "spam_count": 0,
        "message": "No spam messages found.",
    }
