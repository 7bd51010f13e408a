"""Storage locations for each provider."""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_CLAUDE_DIR = Path.home() / ".claude"
DEFAULT_CODEX_DIR = Path.home() / ".codex"
DEFAULT_CODE_DIR = Path.home() / ".code"
# OpenCode stores data in XDG-style directories
DEFAULT_OPENCODE_DIR = Path.home() / ".local" / "share" / "opencode"

DEFAULT_ROOTS: dict[str, Path] = {
    "claude": DEFAULT_CLAUDE_DIR,
    "codex": DEFAULT_CODEX_DIR,
    "code": DEFAULT_CODE_DIR,
    "opencode": DEFAULT_OPENCODE_DIR,
}

# provider id -> environment variable overriding its root
ENV_VARS: dict[str, str] = {
    "claude": "CLAUDE_CONFIG_DIR",
    "codex": "CODEX_HOME",
    "code": "CODE_HOME",
    "opencode": "OPENCODE_DATA_DIR",
}


@dataclass(frozen=True)
class ViewerConfig:
    """Root directory per provider id.

    Providers missing from ``roots`` fall back to their historical location.
    """

    roots: Mapping[str, Path] = field(default_factory=dict)

    def root_for(self, provider_id: str) -> Optional[Path]:
        root = self.roots.get(provider_id)
        if root is not None:
            return Path(root)
        return DEFAULT_ROOTS.get(provider_id)

    def with_root(self, provider_id: str, root: Path | str | None) -> "ViewerConfig":
        if root is None:
            return self
        roots = dict(self.roots)
        roots[provider_id] = Path(root).expanduser()
        return replace(self, roots=roots)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ViewerConfig":
        env = os.environ if environ is None else environ
        roots: dict[str, Path] = {}
        for provider_id, var in ENV_VARS.items():
            value = env.get(var)
            if value:
                roots[provider_id] = Path(value).expanduser()
        if "opencode" not in roots and env.get("XDG_DATA_HOME"):
            roots["opencode"] = Path(env["XDG_DATA_HOME"]).expanduser() / "opencode"
        return cls(roots=roots)
