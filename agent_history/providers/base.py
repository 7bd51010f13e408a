"""Base class for session providers."""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterator, Optional

from ..models import Message, Project, ScanResult, Session

logger = logging.getLogger(__name__)


def is_safe_name(name: str) -> bool:
    """Reject ids that would escape their parent directory."""
    return bool(name) and "/" not in name and "\\" not in name and name not in (".", "..")


def iter_jsonl(path: Path) -> Iterator[dict]:
    """Yield one dict per well-formed line; malformed lines are skipped."""
    with open(path, encoding="utf-8", errors="replace") as f:
        for line_num, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                logger.debug(f"Skipping malformed line {line_num} in {path}")
                continue
            if isinstance(data, dict):
                yield data


def load_json(path: Path) -> Optional[dict]:
    """Load a JSON object from a file, or None if unreadable or malformed."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.debug(f"Skipping {path}: {e}")
        return None
    return data if isinstance(data, dict) else None


def list_json_files(directory: Path, suffix: str = ".json") -> list[Path]:
    """Files with the given suffix directly under directory, sorted by name.

    A missing or unreadable directory yields an empty list.
    """
    try:
        return sorted(
            (p for p in directory.iterdir() if p.name.endswith(suffix) and p.is_file()),
            key=lambda p: p.name,
        )
    except (FileNotFoundError, NotADirectoryError):
        return []
    except OSError as e:
        logger.debug(f"Skipping directory {directory}: {e}")
        return []


class SessionProvider(ABC):
    """Abstract base class for session providers.

    Each AI coding CLI (Claude Code, Codex, OpenCode, ...) implements this
    interface to turn its on-disk history into projects, sessions and messages.

    The ``scan_*`` methods never raise: a failure inside a provider is logged
    and returned as a failed ``ScanResult``. The ``list_*`` methods return the
    items of those results, so callers that don't care about the distinction
    just get an empty list.
    """

    # Provider identity
    name: str = ""  # unique identifier: "claude", "codex", etc.
    display_name: str = ""  # human-readable: "Claude Code", "Codex"
    description: str = ""
    icon: str = ""  # single-letter badge for the UI
    color: str = ""  # for UI theming

    default_root: Path = Path()

    # Placeholder title when a session has no usable first message
    untitled: str = "Untitled Session"

    def __init__(self, root: Path | str | None = None):
        self.root = Path(root) if root is not None else self.default_root

    @abstractmethod
    def get_sessions_dir(self) -> Path:
        """Return the directory whose presence marks the provider as installed."""
        ...

    def is_available(self) -> bool:
        """Check if this provider's storage directory exists and is readable."""
        try:
            sessions_dir = self.get_sessions_dir()
            return sessions_dir.is_dir() and os.access(sessions_dir, os.R_OK | os.X_OK)
        except (OSError, ValueError):
            return False

    @abstractmethod
    def load_projects(self) -> list[Project]:
        """Read all projects. May raise; callers go through scan_projects()."""
        ...

    @abstractmethod
    def load_sessions(self, project_id: str) -> list[Session]:
        """Read all sessions of a project. May raise."""
        ...

    @abstractmethod
    def load_messages(self, project_id: str, session_id: str) -> list[Message]:
        """Read the messages of one session in log order. May raise."""
        ...

    def _scan(self, what: str, loader: Callable[[], list]) -> ScanResult:
        try:
            items = loader()
        except Exception as e:
            logger.warning(f"{self.display_name}: failed to read {what}: {e}")
            return ScanResult.failed(e)
        return ScanResult.success(items)

    def scan_projects(self) -> ScanResult[Project]:
        result = self._scan("projects", self.load_projects)
        result.items.sort(key=lambda p: p.last_modified, reverse=True)
        return result

    def scan_sessions(self, project_id: str) -> ScanResult[Session]:
        result = self._scan(f"sessions of {project_id}", lambda: self.load_sessions(project_id))
        result.items.sort(key=lambda s: s.last_modified, reverse=True)
        return result

    def scan_messages(self, project_id: str, session_id: str) -> ScanResult[Message]:
        return self._scan(
            f"messages of {session_id}",
            lambda: self.load_messages(project_id, session_id),
        )

    def list_projects(self) -> list[Project]:
        return self.scan_projects().items

    def list_sessions(self, project_id: str) -> list[Session]:
        return self.scan_sessions(project_id).items

    def list_messages(self, project_id: str, session_id: str) -> list[Message]:
        return self.scan_messages(project_id, session_id).items

    def get_project(self, project_id: str) -> Optional[Project]:
        for project in self.list_projects():
            if project.id == project_id:
                return project
        return None

    def get_session(self, project_id: str, session_id: str) -> Optional[Session]:
        for session in self.list_sessions(project_id):
            if session.id == session_id:
                return session
        return None
