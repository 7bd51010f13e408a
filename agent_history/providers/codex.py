"""Codex-family session providers (OpenAI Codex CLI and just-every/code).

Both tools write date-sharded rollout logs:
``<root>/sessions/YYYY/MM/DD/rollout-*.jsonl``. There is no project concept on
disk, so projects are synthesized from the working directory recorded in each
rollout's ``session_meta`` record.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from ..config import DEFAULT_CODE_DIR, DEFAULT_CODEX_DIR
from ..dates import file_birthtime, file_mtime, parse_iso
from ..models import Message, Project, Session
from ..pathcodec import decode_base64url, encode_base64url, project_name
from ..reconstruct import (
    TEXT,
    Block,
    RawMessage,
    flatten_result_content,
    make_preview,
    make_title,
    reconstruct_all,
)
from . import register_provider
from .base import SessionProvider, iter_jsonl, list_json_files

logger = logging.getLogger(__name__)

ROLLOUT_PREFIX = "rollout-"
UNKNOWN_CWD = "unknown"
TEXT_BLOCK_TYPES = ("input_text", "output_text", "text")


@dataclass(frozen=True)
class Rollout:
    path: Path
    date: str  # YYYY-MM-DD, from the shard directories


def _subdirs(path: Path) -> list[Path]:
    try:
        return sorted(p for p in path.iterdir() if p.is_dir())
    except OSError:
        return []


def read_session_meta(path: Path) -> Optional[dict]:
    """Payload of the first session_meta record, reading no further than needed."""
    for entry in iter_jsonl(path):
        if entry.get("type") == "session_meta":
            payload = entry.get("payload")
            return payload if isinstance(payload, dict) else {}
    return None


def effective_cwd(meta: dict) -> str:
    cwd = meta.get("cwd")
    return cwd if isinstance(cwd, str) and cwd else UNKNOWN_CWD


def session_key(meta: dict, path: Path) -> str:
    """Session id of a rollout; the file stem stands in when meta has none."""
    session_id = meta.get("id")
    return str(session_id) if session_id is not None else path.stem


def parse_arguments(arguments: Any) -> dict:
    """Decode a function_call ``arguments`` value into a dict."""
    if isinstance(arguments, dict):
        return arguments
    if not isinstance(arguments, str) or not arguments.strip():
        return {}
    try:
        decoded = json.loads(arguments)
    except json.JSONDecodeError:
        return {"arguments": arguments}
    return decoded if isinstance(decoded, dict) else {"arguments": decoded}


def parse_output(output: Any) -> tuple[str, bool]:
    """Text and error flag of a function_call_output payload.

    Shell calls wrap their output as ``{"output": ..., "metadata": {"exit_code": n}}``,
    serialized to a string.
    """
    envelope = output
    if isinstance(output, str):
        try:
            envelope = json.loads(output)
        except json.JSONDecodeError:
            return output, False
    if isinstance(envelope, dict) and "output" in envelope:
        metadata = envelope.get("metadata")
        exit_code = metadata.get("exit_code") if isinstance(metadata, dict) else None
        is_error = isinstance(exit_code, int) and exit_code != 0
        return flatten_result_content(envelope["output"]), is_error
    if isinstance(output, str):
        return output, False
    return flatten_result_content(output), False


def first_text(content: Any) -> Optional[str]:
    if not isinstance(content, list):
        return None
    for block in content:
        if isinstance(block, dict) and block.get("type") in ("input_text", "text"):
            if isinstance(block.get("text"), str) and block["text"]:
                return block["text"]
    return None


def response_item_blocks(payload: dict) -> list[Block]:
    """Blocks of a role-carrying response item."""
    blocks = []
    for block in payload.get("content") or []:
        if not isinstance(block, dict):
            continue
        block_type = block.get("type")
        if block_type in TEXT_BLOCK_TYPES and block.get("text"):
            blocks.append(Block.text_block(block["text"]))
        elif block_type == "function_call" and block.get("name") and block.get("call_id"):
            blocks.append(Block.tool_call(
                block["call_id"], block["name"], parse_arguments(block.get("arguments"))
            ))
    return blocks


def reasoning_text(payload: dict) -> str:
    parts = []
    for item in payload.get("summary") or []:
        if isinstance(item, dict) and isinstance(item.get("text"), str) and item["text"]:
            parts.append(item["text"])
    return "\n".join(parts)


def to_raw_message(entry: dict, index: int) -> Optional[RawMessage]:
    """Translate one rollout record, or None if it carries no message."""
    record_type = entry.get("type")
    payload = entry.get("payload")
    if not isinstance(payload, dict):
        return None

    role = None
    blocks: list[Block] = []

    if record_type == "event_msg":
        event_type = payload.get("type")
        if event_type == "user_message" and isinstance(payload.get("message"), str):
            role, blocks = "user", [Block.text_block(payload["message"])]
        elif event_type == "agent_reasoning" and isinstance(payload.get("text"), str):
            role, blocks = "assistant", [Block.text_block(payload["text"])]

    elif record_type == "response_item":
        item_type = payload.get("type")
        if payload.get("role") in ("user", "assistant"):
            role, blocks = payload["role"], response_item_blocks(payload)
        elif item_type == "function_call" and payload.get("name") and payload.get("call_id"):
            role = "assistant"
            blocks = [Block.tool_call(
                payload["call_id"], payload["name"], parse_arguments(payload.get("arguments"))
            )]
        elif item_type == "function_call_output" and payload.get("call_id"):
            content, is_error = parse_output(payload.get("output"))
            role = "user"
            blocks = [Block.tool_result(payload["call_id"], content, is_error=is_error)]
        elif item_type == "reasoning":
            text = reasoning_text(payload)
            if text:
                role, blocks = "assistant", [Block.thinking_block(text)]

    blocks = [b for b in blocks if b.kind != TEXT or b.text]
    if role is None or not blocks:
        return None
    return RawMessage(
        id=f"{role}-{index}",
        role=role,
        timestamp=parse_iso(entry.get("timestamp")),
        blocks=blocks,
        block_count=len(blocks),
    )


@register_provider
class CodexProvider(SessionProvider):
    """Provider for OpenAI Codex CLI rollouts."""

    name = "codex"
    display_name = "Codex"
    description = "OpenAI Codex CLI"
    icon = "X"
    color = "green"
    default_root = DEFAULT_CODEX_DIR

    def get_sessions_dir(self) -> Path:
        return self.root / "sessions"

    def find_rollouts(self) -> list[Rollout]:
        """Walk YYYY/MM/DD shards for rollout files."""
        rollouts = []
        for year in _subdirs(self.get_sessions_dir()):
            for month in _subdirs(year):
                for day in _subdirs(month):
                    date = f"{year.name}-{month.name}-{day.name}"
                    for path in list_json_files(day, ".jsonl"):
                        if path.name.startswith(ROLLOUT_PREFIX):
                            rollouts.append(Rollout(path=path, date=date))
        return rollouts

    def load_projects(self) -> list[Project]:
        # cwd -> [session count, last modified]
        groups: dict[str, list] = {}
        for rollout in self.find_rollouts():
            try:
                meta = read_session_meta(rollout.path)
                if meta is None:
                    continue
                modified = file_mtime(rollout.path.stat())
            except OSError as e:
                logger.debug(f"Skipping rollout {rollout.path}: {e}")
                continue

            cwd = effective_cwd(meta)
            group = groups.get(cwd)
            if group is None:
                groups[cwd] = [1, modified]
            else:
                group[0] += 1
                group[1] = max(group[1], modified)

        return [
            Project(
                id=encode_base64url(cwd),
                provider_id=self.name,
                path=cwd,
                name=project_name(cwd),
                session_count=count,
                last_modified=modified,
            )
            for cwd, (count, modified) in groups.items()
        ]

    def load_sessions(self, project_id: str) -> list[Session]:
        try:
            cwd = decode_base64url(project_id)
        except ValueError:
            logger.debug(f"Not a {self.display_name} project id: {project_id}")
            return []

        sessions = []
        for rollout in self.find_rollouts():
            try:
                meta = read_session_meta(rollout.path)
                if meta is None or effective_cwd(meta) != cwd:
                    continue
                session = self.parse_session(rollout, project_id)
            except OSError as e:
                logger.debug(f"Skipping rollout {rollout.path}: {e}")
                continue
            if session is not None:
                sessions.append(session)
        return sessions

    def parse_session(self, rollout: Rollout, project_id: str) -> Optional[Session]:
        """Summarize one rollout file."""
        meta: Optional[dict] = None
        preview: Optional[str] = None
        message_count = 0
        first_timestamp = None
        model: Optional[str] = None

        for entry in iter_jsonl(rollout.path):
            record_type = entry.get("type")
            payload = entry.get("payload")
            if not isinstance(payload, dict):
                payload = {}
            if first_timestamp is None:
                first_timestamp = parse_iso(entry.get("timestamp"))

            if record_type == "session_meta":
                if meta is None:
                    meta = payload
                elif session_key(payload, rollout.path) != session_key(meta, rollout.path):
                    break
            elif record_type == "turn_context":
                if model is None and isinstance(payload.get("model"), str):
                    model = payload["model"]
            elif record_type == "event_msg":
                event_type = payload.get("type")
                if event_type == "user_message":
                    message_count += 1
                    if preview is None and isinstance(payload.get("message"), str):
                        preview = make_preview(payload["message"])
                elif event_type == "agent_reasoning":
                    message_count += 1
            elif record_type == "response_item":
                role = payload.get("role")
                if role in ("user", "assistant"):
                    message_count += 1
                    if preview is None and role == "user":
                        preview = make_preview(first_text(payload.get("content")))

        if meta is None:
            return None

        git = meta.get("git")
        git_branch = git.get("branch") if isinstance(git, dict) else None
        if model is None and isinstance(meta.get("model_provider"), str):
            model = meta["model_provider"]

        stat = rollout.path.stat()
        return Session(
            id=session_key(meta, rollout.path),
            provider_id=self.name,
            project_id=project_id,
            title=make_title(preview, f"Session {rollout.date}"),
            message_count=message_count,
            created_at=parse_iso(meta.get("timestamp")) or first_timestamp or file_birthtime(stat),
            last_modified=file_mtime(stat),
            first_message_preview=preview,
            cwd=meta.get("cwd") if isinstance(meta.get("cwd"), str) else None,
            git_branch=git_branch if isinstance(git_branch, str) else None,
            model=model,
        )

    def load_messages(self, project_id: str, session_id: str) -> list[Message]:
        try:
            cwd = decode_base64url(project_id)
        except ValueError:
            logger.debug(f"Not a {self.display_name} project id: {project_id}")
            return []

        for rollout in self.find_rollouts():
            try:
                messages = self.read_session_messages(rollout.path, session_id, cwd)
            except OSError as e:
                logger.debug(f"Skipping rollout {rollout.path}: {e}")
                continue
            if messages is not None:
                return messages
        return []

    def read_session_messages(
        self, path: Path, session_id: str, cwd: Optional[str] = None
    ) -> Optional[list[Message]]:
        """Messages of session_id if this rollout holds it, else None.

        With ``cwd`` given, the session must also belong to that project.
        Reading stops at the first session_meta for a different session.
        """
        is_target = False
        raws: list[RawMessage] = []

        for entry in iter_jsonl(path):
            if entry.get("type") == "session_meta":
                payload = entry.get("payload")
                if not isinstance(payload, dict):
                    payload = {}
                if session_key(payload, path) != session_id:
                    break
                if not is_target and cwd is not None and effective_cwd(payload) != cwd:
                    break
                is_target = True
                continue
            if not is_target:
                continue
            raw = to_raw_message(entry, len(raws))
            if raw is not None:
                raws.append(raw)

        if not is_target:
            return None
        return reconstruct_all(raws, thinking="first")


@register_provider
class CodeProvider(CodexProvider):
    """Provider for just-every/code, a Codex fork with the same rollout format."""

    name = "code"
    display_name = "Code"
    description = "just-every/code CLI"
    icon = "J"
    color = "blue"
    default_root = DEFAULT_CODE_DIR
