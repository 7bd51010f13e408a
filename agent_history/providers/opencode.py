"""OpenCode session provider."""

import logging
from pathlib import Path
from typing import Optional

from ..config import DEFAULT_OPENCODE_DIR
from ..dates import file_birthtime, file_mtime, from_epoch_ms
from ..models import ROLES, Message, Project, Session
from ..pathcodec import project_name
from ..reconstruct import (
    Block,
    RawMessage,
    flatten_result_content,
    make_preview,
    make_title,
    reconstruct_all,
)
from . import register_provider
from .base import SessionProvider, is_safe_name, list_json_files, load_json

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("completed", "error")


def _time(data: dict, key: str):
    time_data = data.get("time")
    return from_epoch_ms(time_data.get(key)) if isinstance(time_data, dict) else None


def part_blocks(part: dict) -> list[Block]:
    """Translate one part file into blocks.

    A ``tool`` part carries both the call (once its input is known) and, when
    its state is terminal, the result.
    """
    part_type = part.get("type")

    if part_type == "text":
        text = part.get("text")
        return [Block.text_block(text)] if isinstance(text, str) and text else []

    if part_type in ("thinking", "reasoning"):
        text = part.get("thinking") or part.get("text")
        return [Block.thinking_block(text)] if isinstance(text, str) and text else []

    if part_type != "tool":
        return []
    state = part.get("state")
    tool = part.get("tool")
    if not isinstance(state, dict) or not isinstance(tool, str):
        return []

    call_id = part.get("callID") or part.get("id") or ""
    blocks = []
    tool_input = state.get("input")
    if tool_input:
        blocks.append(Block.tool_call(
            call_id, tool, tool_input if isinstance(tool_input, dict) else {"input": tool_input}
        ))

    status = state.get("status")
    if status in TERMINAL_STATUSES:
        content = flatten_result_content(state.get("output")) or flatten_result_content(state.get("error"))
        blocks.append(Block.tool_result(
            call_id, content or f"({status})", is_error=status == "error"
        ))
    return blocks


@register_provider
class OpenCodeProvider(SessionProvider):
    """Provider for OpenCode sessions.

    Everything lives under ``<root>/storage``, one JSON file per record::

        project/<projectId>.json
        session/<projectId>/<sessionId>.json
        message/<sessionId>/<messageId>.json
        part/<messageId>/<partId>.json
    """

    name = "opencode"
    display_name = "OpenCode"
    description = "OpenCode AI CLI"
    icon = "O"
    color = "magenta"
    default_root = DEFAULT_OPENCODE_DIR

    @property
    def storage_dir(self) -> Path:
        return self.root / "storage"

    def get_sessions_dir(self) -> Path:
        return self.storage_dir

    def session_files(self, project_id: str) -> list[Path]:
        if not is_safe_name(project_id):
            return []
        return list_json_files(self.storage_dir / "session" / project_id)

    def message_files(self, session_id: str) -> list[Path]:
        if not is_safe_name(session_id):
            return []
        return list_json_files(self.storage_dir / "message" / session_id)

    def load_parts(self, message_id: str) -> list[dict]:
        """Parts of a message; file names sort in creation order."""
        if not is_safe_name(message_id):
            return []
        parts = []
        for path in list_json_files(self.storage_dir / "part" / message_id):
            part = load_json(path)
            if part is not None:
                parts.append(part)
        return parts

    def load_projects(self) -> list[Project]:
        projects = []
        for path in list_json_files(self.storage_dir / "project"):
            data = load_json(path)
            if data is None:
                continue
            project_id = data.get("id")
            worktree = data.get("worktree")
            if not isinstance(project_id, str) or not isinstance(worktree, str):
                continue

            try:
                last_modified = _time(data, "created") or file_mtime(path.stat())
                session_files = self.session_files(project_id)
                for session_file in session_files:
                    last_modified = max(last_modified, file_mtime(session_file.stat()))
            except OSError as e:
                logger.debug(f"Skipping project {path}: {e}")
                continue

            projects.append(Project(
                id=project_id,
                provider_id=self.name,
                path=worktree,
                name=project_name(worktree),
                session_count=len(session_files),
                last_modified=last_modified,
            ))
        return projects

    def load_sessions(self, project_id: str) -> list[Session]:
        sessions = []
        for path in self.session_files(project_id):
            data = load_json(path)
            if data is None or not isinstance(data.get("id"), str):
                continue
            try:
                sessions.append(self.parse_session(data, project_id, path))
            except OSError as e:
                logger.debug(f"Skipping session {path}: {e}")
        return sessions

    def parse_session(self, data: dict, project_id: str, path: Path) -> Session:
        session_id = data["id"]
        message_files = self.message_files(session_id)

        model = None
        model_data = data.get("model")
        if isinstance(model_data, dict) and isinstance(model_data.get("modelID"), str):
            model = model_data["modelID"]

        # First user text part, plus a model fallback from assistant messages
        preview: Optional[str] = None
        for message_file in message_files:
            if preview is not None and model is not None:
                break
            msg = load_json(message_file)
            if msg is None:
                continue
            role = msg.get("role")
            if role == "assistant" and model is None and isinstance(msg.get("modelID"), str):
                model = msg["modelID"]
            if role == "user" and preview is None and isinstance(msg.get("id"), str):
                for part in self.load_parts(msg["id"]):
                    if part.get("type") == "text" and isinstance(part.get("text"), str) and part["text"]:
                        preview = make_preview(part["text"])
                        break

        title = data.get("title")
        if not isinstance(title, str) or not title:
            title = make_title(preview, self.untitled)

        stat = path.stat()
        directory = data.get("directory")
        return Session(
            id=session_id,
            provider_id=self.name,
            project_id=project_id,
            title=title,
            message_count=len(message_files),
            created_at=_time(data, "created") or file_birthtime(stat),
            last_modified=_time(data, "updated") or file_mtime(stat),
            first_message_preview=preview,
            cwd=directory if isinstance(directory, str) else None,
            model=model,
        )

    def load_messages(self, project_id: str, session_id: str) -> list[Message]:
        raws = []
        for path in self.message_files(session_id):
            msg = load_json(path)
            if msg is None:
                continue
            role = msg.get("role")
            if role not in ROLES:
                continue

            message_id = msg.get("id") if isinstance(msg.get("id"), str) else path.stem
            parts = self.load_parts(message_id)
            raws.append(RawMessage(
                id=message_id,
                role=role,
                timestamp=_time(msg, "created"),
                blocks=[block for part in parts for block in part_blocks(part)],
                block_count=len(parts),
            ))

        return reconstruct_all(raws, thinking="last", result_roles=("user", "assistant"))
