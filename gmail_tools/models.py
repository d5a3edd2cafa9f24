from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class MessagePartHeader(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = ""
    value: str = ""


class MessagePartBody(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    # base64url text as returned by the API; some transports hand it back already decoded.
    data: Optional[str] = None
    size: Optional[int] = None


class MessagePart(BaseModel):
    # Mirrors users.messages MessagePart: { mimeType, filename, headers, body, parts }
    model_config = ConfigDict(extra="ignore", frozen=True)

    mimeType: Optional[str] = None
    filename: Optional[str] = None
    headers: Optional[list[MessagePartHeader]] = None
    body: Optional[MessagePartBody] = None
    parts: Optional[list["MessagePart"]] = None

    @property
    def children(self) -> list["MessagePart"]:
        return list(self.parts or [])

    @property
    def body_data(self) -> Optional[str]:
        if self.body is None:
            return None
        return self.body.data or None

    def header(self, name: str) -> Optional[str]:
        return find_header(self.headers, name)


class MessageRef(BaseModel):
    # Item of users.messages.list
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    threadId: Optional[str] = None


class Message(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    threadId: Optional[str] = None
    labelIds: Optional[list[str]] = None
    snippet: Optional[str] = None
    payload: Optional[MessagePart] = None

    def label_ids(self) -> list[str]:
        return list(self.labelIds or [])

    def header(self, name: str) -> Optional[str]:
        if self.payload is None:
            return None
        return self.payload.header(name)


def find_header(headers: Optional[list[MessagePartHeader]], name: str) -> Optional[str]:
    target = name.lower()
    for h in headers or []:
        if h.name.lower() == target:
            return h.value
    return None


def parse_message(obj: Any) -> Message:
    return Message.model_validate(obj)
