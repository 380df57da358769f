"""``.env/<name>.env`` files for pointing a test run at particular brokers and binaries.

Lines are ``KEY=VALUE``, optionally prefixed with ``export`` so the same file
can be sourced from a shell. ``#`` starts a comment line; values keep any
``#`` they contain. Matching single or double quotes around a value are
removed.
"""

from __future__ import annotations

import re
from pathlib import Path

# bridge_testenv/config/ -> repository root
PROJECT_ROOT = Path(__file__).resolve().parents[2]

_KEY = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def env_file_path(env_name: str, project_root: Path | None = None) -> Path:
    return (project_root or PROJECT_ROOT) / ".env" / f"{env_name}.env"


def load_env_file(env_name: str = "test", project_root: Path | None = None) -> dict[str, str]:
    """Settings from ``.env/<env_name>.env``; ``{}`` when there is no such file."""
    path = env_file_path(env_name, project_root)
    if not path.is_file():
        return {}
    return read_env_file(path)


def read_env_file(path: Path) -> dict[str, str]:
    settings: dict[str, str] = {}
    for raw in path.read_text().splitlines():
        line = raw.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not _KEY.fullmatch(key):
            continue
        settings[key] = _unquote(value.strip())
    return settings


def _unquote(value: str) -> str:
    if len(value) > 1 and value[0] in "'\"" and value[-1] == value[0]:
        return value[1:-1]
    return value
