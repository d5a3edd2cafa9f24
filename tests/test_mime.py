from __future__ import annotations

from gmail_tools.mime import Attachment, collect_attachments, has_body_type, locate_body
from gmail_tools.models import MessagePart

from fakes import part


def test_locate_body_single_part_root() -> None:
    root = MessagePart.model_validate(part("text/plain", "just text"))
    assert locate_body(root, "text/plain") == "just text"
    assert locate_body(root, "text/html") == ""


def test_locate_body_multipart_alternative() -> None:
    root = MessagePart.model_validate(
        part(
            "multipart/alternative",
            parts=[part("text/plain", "plain body"), part("text/html", "<p>html body</p>")],
        )
    )
    assert locate_body(root, "text/plain") == "plain body"
    assert locate_body(root, "text/html") == "<p>html body</p>"


def test_locate_body_direct_child_beats_earlier_nested_match() -> None:
    root = MessagePart.model_validate(
        part(
            "multipart/mixed",
            parts=[
                part("multipart/related", parts=[part("text/plain", "nested (forwarded)")]),
                part("text/plain", "direct"),
            ],
        )
    )
    assert locate_body(root, "text/plain") == "direct"


def test_locate_body_recurses_in_child_order() -> None:
    root = MessagePart.model_validate(
        part(
            "multipart/mixed",
            parts=[
                part("application/pdf", filename="a.pdf"),
                part("multipart/alternative", parts=[part("text/plain", "first")]),
                part("multipart/alternative", parts=[part("text/plain", "second")]),
            ],
        )
    )
    assert locate_body(root, "text/plain") == "first"


def test_locate_body_direct_child_without_data_falls_through_to_recursion() -> None:
    root = MessagePart.model_validate(
        part(
            "multipart/mixed",
            parts=[
                part("text/html"),
                part("multipart/alternative", parts=[part("text/html", "<b>deep</b>")]),
            ],
        )
    )
    assert locate_body(root, "text/html") == "<b>deep</b>"
    assert has_body_type(root, "text/html") is True


def test_locate_body_decodes_with_part_charset() -> None:
    root = MessagePart.model_validate(
        part("multipart/alternative", parts=[part("text/plain", "こんにちは", charset="ISO-2022-JP")])
    )
    assert locate_body(root, "text/plain") == "こんにちは"


def test_empty_tree() -> None:
    root = MessagePart.model_validate({"mimeType": "multipart/mixed"})
    assert locate_body(root, "text/plain") == ""
    assert has_body_type(root, "text/plain") is False
    assert collect_attachments(root) == []


def test_absent_root() -> None:
    assert locate_body(None, "text/plain") == ""
    assert has_body_type(None, "text/html") is False
    assert collect_attachments(None) == []


def test_has_body_type() -> None:
    root = MessagePart.model_validate(
        part(
            "multipart/mixed",
            parts=[
                part("multipart/alternative", parts=[part("text/plain", "p"), part("text/html", "<p>h</p>")]),
            ],
        )
    )
    assert has_body_type(root, "text/html") is True
    assert has_body_type(root, "text/calendar") is False


def test_has_body_type_ignores_parts_without_data() -> None:
    root = MessagePart.model_validate(part("multipart/alternative", parts=[part("text/html")]))
    assert has_body_type(root, "text/html") is False


def test_collect_attachments_nested_and_inside_attachments() -> None:
    root = MessagePart.model_validate(
        part(
            "multipart/mixed",
            parts=[
                part("text/plain", "see attached"),
                part("application/pdf", filename="invoice.pdf", size=1234),
                part(
                    "message/rfc822",
                    filename="forwarded.eml",
                    size=900,
                    parts=[part("image/png", filename="logo.png", size=50)],
                ),
                part("multipart/related", parts=[part("image/jpeg", filename="photo.jpg", size=77)]),
            ],
        )
    )
    assert collect_attachments(root) == [
        Attachment(filename="invoice.pdf", mime_type="application/pdf", size=1234),
        Attachment(filename="forwarded.eml", mime_type="message/rfc822", size=900),
        Attachment(filename="logo.png", mime_type="image/png", size=50),
        Attachment(filename="photo.jpg", mime_type="image/jpeg", size=77),
    ]


def test_collect_attachments_skips_root_and_empty_filenames() -> None:
    root = MessagePart.model_validate(part("application/pdf", "x", filename="root.pdf"))
    assert collect_attachments(root) == []


def test_collect_attachments_size_absent_without_body() -> None:
    root = MessagePart.model_validate({"mimeType": "multipart/mixed", "parts": [{"mimeType": "text/x", "filename": "a.txt"}]})
    assert collect_attachments(root) == [Attachment(filename="a.txt", mime_type="text/x", size=None)]
