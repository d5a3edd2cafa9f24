from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

from .decoding import decode_part_body
from .models import MessagePart


@dataclass(frozen=True)
class Attachment:
    filename: str
    mime_type: Optional[str]
    size: Optional[int]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _matches(part: MessagePart, mime_type: str) -> bool:
    return part.mimeType == mime_type


def locate_body(root: Optional[MessagePart], mime_type: str) -> str:
    """
    Find and decode the first body of `mime_type` in a message part tree.

    Lookup order at each level: the part itself, then its first direct child of
    that type, then a depth-first search of the children in order. A direct
    child therefore beats a deeper match that comes earlier in traversal order.
    Returns "" when nothing matches.
    """
    if root is None:
        return ""

    if _matches(root, mime_type) and root.body_data:
        return decode_part_body(root)

    children = root.children
    if not children:
        return ""

    direct = next((p for p in children if _matches(p, mime_type)), None)
    if direct is not None and direct.body_data:
        return decode_part_body(direct)

    for child in children:
        text = locate_body(child, mime_type)
        if text:
            return text
    return ""


def has_body_type(root: Optional[MessagePart], mime_type: str) -> bool:
    # Same traversal as locate_body, without decoding.
    if root is None:
        return False
    if _matches(root, mime_type) and root.body_data:
        return True
    return any(
        (_matches(child, mime_type) and bool(child.body_data)) or has_body_type(child, mime_type)
        for child in root.children
    )


def collect_attachments(root: Optional[MessagePart]) -> list[Attachment]:
    """
    Every descendant part with a filename, in document order.

    Parts that are recorded are still searched: signed or forwarded messages
    can nest further attachments below an attachment part.
    """
    if root is None:
        return []
    out: list[Attachment] = []
    for part in root.children:
        if part.filename:
            out.append(
                Attachment(
                    filename=part.filename,
                    mime_type=part.mimeType,
                    size=part.body.size if part.body is not None else None,
                )
            )
        out.extend(collect_attachments(part))
    return out
