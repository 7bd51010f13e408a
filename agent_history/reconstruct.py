"""Shared message reconstruction.

Providers translate their native records into ``RawMessage`` values holding
a flat list of ``Block`` items. Everything after that point (revision merging,
text joining, thinking selection, tool call/result collection and title
derivation) happens here, once, for every provider.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

from .models import Message, ToolCall, ToolResult

TEXT = "text"
THINKING = "thinking"
TOOL_CALL = "tool_call"
TOOL_RESULT = "tool_result"

PREVIEW_LENGTH = 200
TITLE_LENGTH = 100
UNTITLED = "Untitled Session"


@dataclass(frozen=True)
class Block:
    """Provider-neutral content block."""

    kind: str
    text: str = ""
    call_id: str = ""
    name: str = ""
    input: dict = field(default_factory=dict)
    is_error: bool = False

    @classmethod
    def text_block(cls, text: str) -> "Block":
        return cls(kind=TEXT, text=text)

    @classmethod
    def thinking_block(cls, text: str) -> "Block":
        return cls(kind=THINKING, text=text)

    @classmethod
    def tool_call(cls, call_id: str, name: str, input: Optional[dict] = None) -> "Block":
        return cls(kind=TOOL_CALL, call_id=call_id, name=name, input=input or {})

    @classmethod
    def tool_result(cls, call_id: str, content: str, is_error: bool = False) -> "Block":
        return cls(kind=TOOL_RESULT, call_id=call_id, text=content, is_error=is_error)


@dataclass
class RawMessage:
    """One native record, translated but not yet normalized.

    ``key`` is the provider's identity for the logical message (None when the
    format has none). ``block_count`` is the number of content blocks in the
    native record, used to pick the most complete revision.
    """

    id: str
    role: str
    timestamp: Optional[datetime]
    blocks: list[Block] = field(default_factory=list)
    key: Optional[str] = None
    block_count: int = 0


def merge_revisions(raws: Iterable[RawMessage]) -> list[RawMessage]:
    """Collapse repeated writes of the same message.

    The first occurrence of a key keeps its position in the output. A later
    occurrence replaces it only when it carries strictly more blocks.
    """
    merged: list[RawMessage] = []
    index_by_key: dict[str, int] = {}
    for raw in raws:
        if raw.key is None:
            merged.append(raw)
            continue
        idx = index_by_key.get(raw.key)
        if idx is None:
            index_by_key[raw.key] = len(merged)
            merged.append(raw)
        elif raw.block_count > merged[idx].block_count:
            merged[idx] = raw
    return merged


def reconstruct(
    raw: RawMessage,
    thinking: str = "first",
    result_roles: tuple[str, ...] = ("user",),
) -> Message:
    """Build a Message from a RawMessage.

    Args:
        thinking: "first" keeps the first thinking block, "last" the last one.
        result_roles: roles allowed to carry tool results.
    """
    texts: list[str] = []
    thought: Optional[str] = None
    calls: dict[str, ToolCall] = {}
    results: dict[str, ToolResult] = {}

    for block in raw.blocks:
        if block.kind == TEXT:
            if block.text:
                texts.append(block.text)
        elif block.kind == THINKING:
            if block.text and (thought is None or thinking == "last"):
                thought = block.text
        elif block.kind == TOOL_CALL:
            if raw.role == "assistant" and block.call_id and block.name:
                calls.setdefault(
                    block.call_id,
                    ToolCall(id=block.call_id, name=block.name, input=dict(block.input)),
                )
        elif block.kind == TOOL_RESULT:
            if raw.role in result_roles and block.call_id:
                results.setdefault(
                    block.call_id,
                    ToolResult(
                        tool_call_id=block.call_id,
                        content=block.text,
                        is_error=block.is_error,
                    ),
                )

    return Message(
        id=raw.id,
        role=raw.role,
        timestamp=raw.timestamp,
        text_content="\n\n".join(texts),
        thinking=thought,
        tool_calls=tuple(calls.values()),
        tool_results=tuple(results.values()),
    )


def reconstruct_all(raws: Iterable[RawMessage], **options) -> list[Message]:
    return [reconstruct(raw, **options) for raw in merge_revisions(raws)]


def flatten_result_content(value: Any) -> str:
    """Tool output as plain text.

    Output is either a string or a (possibly nested) list of ``{"type": "text"}``
    blocks; lists are flattened and newline-joined, non-text blocks dropped.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        if value.get("type") == "text" and isinstance(value.get("text"), str):
            return value["text"]
        return ""
    if isinstance(value, list):
        parts = (flatten_result_content(item) for item in value)
        return "\n".join(p for p in parts if p)
    return str(value)


def make_preview(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    return text[:PREVIEW_LENGTH]


def make_title(preview: Optional[str], placeholder: str = UNTITLED) -> str:
    """First line of the preview, capped at TITLE_LENGTH."""
    if preview:
        first_line = preview.split("\n")[0][:TITLE_LENGTH]
        if first_line:
            return first_line
    return placeholder
