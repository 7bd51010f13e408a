"""Claude Code session provider."""

import logging
from pathlib import Path
from typing import Optional

from ..config import DEFAULT_CLAUDE_DIR
from ..dates import file_birthtime, file_mtime, parse_iso
from ..models import Message, Project, Session
from ..pathcodec import decode_legacy_path, project_name
from ..reconstruct import (
    Block,
    RawMessage,
    flatten_result_content,
    make_preview,
    make_title,
    reconstruct_all,
)
from . import register_provider
from .base import SessionProvider, is_safe_name, iter_jsonl, list_json_files

logger = logging.getLogger(__name__)

# Sub-agent transcripts live next to regular sessions under this prefix
SUBAGENT_PREFIX = "agent-"
MESSAGE_TYPES = ("user", "assistant")


def to_block(item) -> Optional[Block]:
    """Translate one Claude content block."""
    if isinstance(item, str):
        return Block.text_block(item)
    if not isinstance(item, dict):
        return None

    block_type = item.get("type")
    if block_type == "text" and item.get("text"):
        return Block.text_block(item["text"])
    if block_type == "thinking" and item.get("thinking"):
        return Block.thinking_block(item["thinking"])
    if block_type == "tool_use" and item.get("id") and item.get("name"):
        tool_input = item.get("input")
        return Block.tool_call(
            item["id"], item["name"], tool_input if isinstance(tool_input, dict) else {}
        )
    if block_type == "tool_result" and item.get("tool_use_id"):
        return Block.tool_result(
            item["tool_use_id"],
            flatten_result_content(item.get("content")),
            is_error=bool(item.get("is_error")),
        )
    return None


def to_raw_message(entry: dict, fallback_id: str) -> RawMessage:
    message = entry.get("message") or {}
    content = message.get("content")

    if isinstance(content, str):
        blocks = [Block.text_block(content)]
        block_count = 1
    elif isinstance(content, list):
        blocks = [b for b in (to_block(item) for item in content) if b is not None]
        block_count = len(content)
    else:
        blocks = []
        block_count = 0

    uuid = entry.get("uuid") if isinstance(entry.get("uuid"), str) else None
    return RawMessage(
        id=uuid or fallback_id,
        role=entry["type"],
        timestamp=parse_iso(entry.get("timestamp")),
        blocks=blocks,
        key=uuid,
        block_count=block_count,
    )


@register_provider
class ClaudeCodeProvider(SessionProvider):
    """Provider for Claude Code sessions.

    Layout: ``<root>/projects/<encoded-path>/<session-uuid>.jsonl`` with one
    JSON record per line.
    """

    name = "claude"
    display_name = "Claude Code"
    description = "Anthropic Claude Code CLI"
    icon = "C"
    color = "cyan"
    default_root = DEFAULT_CLAUDE_DIR

    def get_sessions_dir(self) -> Path:
        return self.root / "projects"

    def session_files(self, project_dir: Path) -> list[Path]:
        return [
            p for p in list_json_files(project_dir, ".jsonl")
            if not p.name.startswith(SUBAGENT_PREFIX)
        ]

    def load_projects(self) -> list[Project]:
        projects = []
        sessions_dir = self.get_sessions_dir()
        if not sessions_dir.is_dir():
            return projects

        for project_dir in sorted(sessions_dir.iterdir()):
            if not project_dir.is_dir():
                continue
            try:
                files = self.session_files(project_dir)
                if not files:
                    continue
                stat = project_dir.stat()
            except OSError as e:
                logger.debug(f"Skipping project {project_dir}: {e}")
                continue

            path = self._project_path(project_dir.name, files)
            projects.append(Project(
                id=project_dir.name,
                provider_id=self.name,
                path=path,
                name=project_name(path),
                session_count=len(files),
                last_modified=file_mtime(stat),
            ))

        return projects

    def _project_path(self, encoded: str, files: list[Path]) -> str:
        """Working directory recorded in the newest session, else the decoded dir name."""
        try:
            newest = max(files, key=lambda p: p.stat().st_mtime)
            for entry in iter_jsonl(newest):
                cwd = entry.get("cwd")
                if isinstance(cwd, str) and cwd:
                    return cwd
        except OSError as e:
            logger.debug(f"Could not read cwd for {encoded}: {e}")
        return decode_legacy_path(encoded)

    def load_sessions(self, project_id: str) -> list[Session]:
        if not is_safe_name(project_id):
            return []

        sessions = []
        for path in self.session_files(self.get_sessions_dir() / project_id):
            try:
                sessions.append(self.parse_session(path, project_id))
            except OSError as e:
                logger.debug(f"Skipping session file {path}: {e}")
        return sessions

    def parse_session(self, path: Path, project_id: str) -> Session:
        """Summarize a Claude Code JSONL session file."""
        preview: Optional[str] = None
        message_count = 0
        created_at = None
        cwd: Optional[str] = None
        git_branch: Optional[str] = None
        model: Optional[str] = None

        for entry in iter_jsonl(path):
            if created_at is None:
                created_at = parse_iso(entry.get("timestamp"))
            if cwd is None and isinstance(entry.get("cwd"), str) and entry["cwd"]:
                cwd = entry["cwd"]
            if git_branch is None and isinstance(entry.get("gitBranch"), str) and entry["gitBranch"]:
                git_branch = entry["gitBranch"]

            msg_type = entry.get("type")
            if msg_type not in MESSAGE_TYPES:
                continue
            message_count += 1

            msg = entry.get("message")
            if not isinstance(msg, dict):
                continue
            if msg_type == "assistant" and model is None and isinstance(msg.get("model"), str):
                model = msg["model"]
            if msg_type == "user" and preview is None and isinstance(msg.get("content"), str):
                preview = make_preview(msg["content"])

        stat = path.stat()
        return Session(
            id=path.stem,
            provider_id=self.name,
            project_id=project_id,
            title=make_title(preview, self.untitled),
            message_count=message_count,
            created_at=created_at or file_birthtime(stat),
            last_modified=file_mtime(stat),
            first_message_preview=preview,
            cwd=cwd,
            git_branch=git_branch,
            model=model,
        )

    def load_messages(self, project_id: str, session_id: str) -> list[Message]:
        if not (is_safe_name(project_id) and is_safe_name(session_id)):
            return []
        path = self.get_sessions_dir() / project_id / f"{session_id}.jsonl"
        if not path.is_file():
            return []

        raws = []
        for entry in iter_jsonl(path):
            if entry.get("type") not in MESSAGE_TYPES:
                continue
            if not isinstance(entry.get("message"), dict):
                continue
            raws.append(to_raw_message(entry, f"{session_id}-{len(raws)}"))

        return reconstruct_all(raws, thinking="first")
