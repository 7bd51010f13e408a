"""Display helpers for the CLI: rich Text and Table builders."""

from datetime import datetime
from typing import Optional

from rich.table import Table
from rich.text import Text

from .models import Message, Project, ProviderInfo, Session, UnifiedProject

TOOL_OUTPUT_LIMIT = 1000
TRUNCATION_MARKER = "... (truncated)"

ROLE_STYLES = {
    "user": "green",
    "assistant": "magenta",
    "system": "yellow",
}


def truncate(text: str, max_len: int = 100) -> str:
    """Truncate text with ellipsis."""
    if len(text) <= max_len:
        return text
    return text[:max_len - 3] + "..."


def truncate_tool_output(content: str, limit: int = TOOL_OUTPUT_LIMIT) -> str:
    """Cut tool output to ``limit`` characters and mark the cut."""
    if len(content) <= limit:
        return content
    return content[:limit] + TRUNCATION_MARKER


def format_time(value: Optional[datetime]) -> str:
    if value is None:
        return "Unknown"
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def _boxed(text: Text, body: str, border_style: str, body_style: str = "") -> None:
    for line in body.split("\n"):
        text.append("│ ", style=border_style)
        text.append(f"{line}\n", style=body_style)


def build_message_text(i: int, msg: Message, show_thinking: bool = False) -> Text:
    """Build a Rich Text object for a single transcript message."""
    border_style = ROLE_STYLES.get(msg.role, "white")
    label = f"┌─ [{i}] {msg.role.capitalize()} "
    if msg.timestamp is not None:
        label += f"{format_time(msg.timestamp)} "

    text = Text()
    text.append(label, style=f"bold {border_style}")
    text.append("─" * max(1, 40 - len(label)), style=border_style)
    text.append("\n")

    if show_thinking and msg.thinking:
        text.append("│ ", style=border_style)
        text.append("(thinking)\n", style="dim italic")
        _boxed(text, msg.thinking, border_style, "dim italic")

    if msg.text_content:
        _boxed(text, msg.text_content, border_style)

    for call in msg.tool_calls:
        text.append("│ ", style=border_style)
        text.append(f"⚙ {call.name}", style="bold cyan")
        text.append(f" [{call.id}]\n", style="dim")
        for key, value in call.input.items():
            value = str(value).replace("\n", " ")
            text.append("│   ", style=border_style)
            text.append(f"{key}: ", style="cyan")
            text.append(f"{truncate(value, 200)}\n", style="dim")

    for result in msg.tool_results:
        text.append("│ ", style=border_style)
        if result.is_error:
            text.append(f"✗ result [{result.tool_call_id}]\n", style="bold red")
        else:
            text.append(f"✓ result [{result.tool_call_id}]\n", style="bold green")
        _boxed(text, truncate_tool_output(result.content), border_style, "dim")

    text.append("└", style=border_style)
    text.append("─" * 40, style=border_style)
    text.append("\n")

    return text


def build_session_header(session: Session, total: int) -> Text:
    """Header shown above a transcript."""
    text = Text()
    text.append("━━━ Transcript ━━━\n", style="bold cyan")
    text.append("Session: ", style="bold")
    text.append(f"{truncate(session.title, 60)}\n")
    if session.cwd:
        text.append("Path: ", style="bold")
        text.append(f"{session.cwd}\n", style="dim")
    if session.git_branch:
        text.append("Branch: ", style="bold")
        text.append(f"{session.git_branch}\n", style="dim")
    if session.model:
        text.append("Model: ", style="bold")
        text.append(f"{session.model}\n", style="yellow")
    text.append("Messages: ", style="bold")
    text.append(f"{total}\n")

    if total == 0:
        text.append("(no messages found)\n", style="dim")

    return text


def provider_table(infos: list[ProviderInfo]) -> Table:
    table = Table(title="Providers")
    table.add_column("", width=1)
    table.add_column("Provider", style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Description")
    table.add_column("Directory", style="dim")
    table.add_column("Status")
    for info in infos:
        status = Text("available", style="green") if info.available else Text("not found", style="red")
        table.add_row(info.icon, info.name, info.id, info.description, info.base_dir, status)
    return table


def unified_project_table(projects: list[UnifiedProject]) -> Table:
    table = Table(title="Projects")
    table.add_column("Project", style="green")
    table.add_column("Path", style="dim")
    table.add_column("Sessions", justify="right")
    table.add_column("Last Activity", style="cyan")
    table.add_column("Providers")
    for project in projects:
        badges = Text()
        for summary in project.providers:
            badges.append(f"{summary.provider_icon}:{summary.session_count} ", style="bold")
        table.add_row(
            project.name,
            project.path,
            str(project.total_sessions),
            format_time(project.last_modified),
            badges,
        )
    return table


def project_table(projects: list[Project], title: str = "Projects") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", overflow="fold")
    table.add_column("Project", style="green")
    table.add_column("Path", style="dim")
    table.add_column("Sessions", justify="right")
    table.add_column("Last Activity", style="cyan")
    for project in projects:
        table.add_row(
            project.id,
            project.name,
            project.path,
            str(project.session_count),
            format_time(project.last_modified),
        )
    return table


def session_table(sessions: list[Session], title: str = "Sessions") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", overflow="fold")
    table.add_column("Title")
    table.add_column("Messages", justify="right")
    table.add_column("Created", style="cyan")
    table.add_column("Modified", style="cyan")
    table.add_column("Model", style="yellow")
    for session in sessions:
        table.add_row(
            session.id,
            truncate(session.title.replace("\n", " "), 60),
            str(session.message_count),
            format_time(session.created_at),
            format_time(session.last_modified),
            session.model or "",
        )
    return table
