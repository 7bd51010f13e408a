"""Unified project/session/message model for all providers."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

ROLES = ("user", "assistant", "system")


@dataclass(frozen=True)
class Project:
    """A working directory as seen by one provider."""

    id: str  # provider-specific: encoded path, base64url cwd, or native id
    provider_id: str
    path: str  # absolute working directory, the cross-provider join key
    name: str
    session_count: int
    last_modified: datetime


@dataclass(frozen=True)
class Session:
    """One conversation thread."""

    # Identity
    id: str
    provider_id: str
    project_id: str

    # Content
    title: str
    message_count: int

    # Timing
    created_at: datetime
    last_modified: datetime

    first_message_preview: Optional[str] = None

    # Tool metadata
    cwd: Optional[str] = None
    git_branch: Optional[str] = None
    model: Optional[str] = None


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    input: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    tool_call_id: str
    content: str  # stored in full, truncated at render time
    is_error: bool = False


@dataclass(frozen=True)
class Message:
    """A single normalized message."""

    id: str
    role: str  # "user", "assistant" or "system"
    timestamp: Optional[datetime]
    text_content: str
    thinking: Optional[str] = None
    tool_calls: tuple[ToolCall, ...] = ()
    tool_results: tuple[ToolResult, ...] = ()

    @property
    def is_tool_result(self) -> bool:
        """User-authored message that only carries tool output."""
        return self.role == "user" and bool(self.tool_results) and not self.text_content


@dataclass(frozen=True)
class ProviderInfo:
    """Availability status of a registered provider."""

    id: str
    name: str
    description: str
    icon: str
    base_dir: str
    available: bool


@dataclass(frozen=True)
class ProviderSummary:
    """One provider's contribution to a unified project."""

    provider_id: str
    provider_name: str
    provider_icon: str
    project_id: str
    session_count: int
    last_modified: datetime


@dataclass(frozen=True)
class UnifiedProject:
    """Same-path projects from several providers grouped into one row."""

    id: str  # escaped encoding of path
    path: str
    name: str
    total_sessions: int
    last_modified: datetime
    providers: tuple[ProviderSummary, ...] = ()


@dataclass(frozen=True)
class ScanResult(Generic[T]):
    """Outcome of a provider scan.

    ``error`` is set when the scan failed; ``items`` is then empty. This keeps
    "zero projects" and "could not read projects" apart without raising.
    """

    items: list[T] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, items: list[T]) -> "ScanResult[T]":
        return cls(items=list(items))

    @classmethod
    def failed(cls, error: BaseException | str) -> "ScanResult[T]":
        if isinstance(error, BaseException):
            error = f"{type(error).__name__}: {error}"
        return cls(items=[], error=error)
