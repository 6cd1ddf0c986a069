"""Configuration loading for drill commands.

Settings are resolved with the precedence CLI overrides > ``EXAM_DRILL_*``
environment variables > ``drill.toml`` > built-in defaults.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from .bank.loader import (
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_SESSIONS,
    DEFAULT_YEARS,
)
from .core import workspace as workspace_mod
from .quiz.sampler import DEFAULT_QUIZ_SIZE

__all__ = [
    "CONFIG_FILENAME",
    "CONFIG_ENV",
    "ENV_PREFIX",
    "DrillConfigError",
    "DrillConfig",
    "ConfigOverrides",
    "LoadResult",
    "load_config",
    "load_toml",
    "merge_defaults",
    "read_template",
    "write_config_template",
]

CONFIG_FILENAME = "drill.toml"
CONFIG_ENV = "EXAM_DRILL_CONFIG"
ENV_PREFIX = "EXAM_DRILL_"

_DEFAULT_QUESTION_ROOT = "question"
_DEFAULT_LOG_LEVEL = "INFO"
_TEMPLATE = "templates/drill.toml"


class DrillConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class DrillConfig:
    """Fully resolved settings for a drill run."""

    question_root: Path
    years: tuple[int, ...]
    sessions: tuple[int, ...]
    quiz_size: int
    show_explanations: bool
    log_level: str
    min_pool_size: int = DEFAULT_MIN_POOL_SIZE


@dataclass(frozen=True)
class ConfigOverrides:
    """Values supplied on the command line."""

    question_root: Optional[Path] = None
    years: Optional[Sequence[int]] = None
    sessions: Optional[Sequence[int]] = None
    quiz_size: Optional[int] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    config: DrillConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise DrillConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise DrillConfigError(f"Failed to parse config TOML: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Recursively merge ``override`` into ``base``, rejecting unknown keys."""

    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise DrillConfigError(f"Unknown configuration key '{dotted}'.")
        if isinstance(base[key], MutableMapping):
            if not isinstance(value, Mapping):
                raise DrillConfigError(
                    f"Expected table for '{dotted}', found "
                    f"{type(value).__name__}."
                )
            merge_defaults(base[key], value, path=f"{dotted}.")
            continue
        base[key] = value


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve the drill configuration and the workspace it lives in.

    When ``env`` is omitted the process environment is used, after loading
    a ``.env`` file from the working directory if one exists.
    """
    overrides = overrides or ConfigOverrides()
    if env is None:
        load_dotenv(find_dotenv(usecwd=True))
        env = os.environ

    try:
        layout = workspace_mod.ensure_workspace(env=env, path=workspace_path)
    except workspace_mod.WorkspaceError as exc:
        raise DrillConfigError(str(exc)) from exc

    requested = _resolve_config_path(
        config_path=config_path,
        env=env,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested.exists():
        merge_defaults(table, load_toml(requested))
        loaded_path = requested
    elif config_path is not None or (env.get(CONFIG_ENV) or "").strip():
        raise DrillConfigError(f"Config file not found: {requested}")

    questions = table["questions"]
    quiz = table["quiz"]

    root = _pick_first(
        overrides.question_root,
        _env_string(env, "QUESTION_ROOT"),
        questions["root"],
    )
    years = _pick_first(
        overrides.years, _env_ints(env, "YEARS"), questions["years"]
    )
    sessions = _pick_first(
        overrides.sessions, _env_ints(env, "SESSIONS"), questions["sessions"]
    )
    configured_size = _pick_first(_env_int(env, "QUIZ_SIZE"), quiz["size"])
    quiz_size = _pick_first(overrides.quiz_size, configured_size)
    log_level = _pick_first(
        overrides.log_level,
        _env_string(env, "LOG_LEVEL"),
        table["logging"]["level"],
    )

    config = DrillConfig(
        question_root=_resolve_root(root),
        years=_int_tuple(years, "questions.years"),
        sessions=_int_tuple(sessions, "questions.sessions"),
        quiz_size=_positive_int(quiz_size, "quiz.size"),
        show_explanations=_boolean(
            quiz["show_explanations"], "quiz.show_explanations"
        ),
        log_level=_level(log_level),
        min_pool_size=_positive_int(configured_size, "quiz.size"),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def read_template() -> str:
    """Return the packaged ``drill.toml`` template."""

    return (
        resources.files("exam_drill")
        .joinpath(_TEMPLATE)
        .read_text(encoding="utf-8")
    )


def write_config_template(path: Path, *, overwrite: bool = False) -> Path:
    """Write the packaged template to ``path``."""

    if path.exists() and not overwrite:
        raise DrillConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(read_template(), encoding="utf-8")
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def _default_table() -> MutableMapping[str, MutableMapping[str, Any]]:
    return {
        "questions": {
            "root": _DEFAULT_QUESTION_ROOT,
            "years": list(DEFAULT_YEARS),
            "sessions": list(DEFAULT_SESSIONS),
        },
        "quiz": {
            "size": DEFAULT_QUIZ_SIZE,
            "show_explanations": True,
        },
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    *, config_path: Optional[Path], env: Mapping[str, str], default_path: Path
) -> Path:
    if config_path is not None:
        return Path(config_path).expanduser()
    candidate = (env.get(CONFIG_ENV) or "").strip()
    if candidate:
        return Path(candidate).expanduser()
    return default_path


def _resolve_root(value: object) -> Path:
    if isinstance(value, Path):
        candidate = value
    elif isinstance(value, str) and value.strip():
        candidate = Path(value.strip())
    else:
        raise DrillConfigError("questions.root must be a non-empty string.")
    candidate = candidate.expanduser()
    if not candidate.is_absolute():
        candidate = Path.cwd() / candidate
    return candidate


def _int_tuple(value: object, label: str) -> tuple[int, ...]:
    if not isinstance(value, (list, tuple)) or not value:
        raise DrillConfigError(f"{label} must be a non-empty list of ints.")
    result: list[int] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int):
            raise DrillConfigError(f"{label} must contain only integers.")
        if item not in result:
            result.append(item)
    return tuple(result)


def _positive_int(value: object, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise DrillConfigError(f"{label} must be a positive integer.")
    return value


def _boolean(value: object, label: str) -> bool:
    if not isinstance(value, bool):
        raise DrillConfigError(f"{label} must be true or false.")
    return value


def _level(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise DrillConfigError("logging.level must be a non-empty string.")
    return value.strip().upper()


def _env_string(env: Mapping[str, str], key: str) -> Optional[str]:
    raw = env.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    return raw.strip() or None


def _env_ints(env: Mapping[str, str], key: str) -> Optional[tuple[int, ...]]:
    raw = _env_string(env, key)
    if raw is None:
        return None
    parts = [part for part in raw.replace(",", " ").split() if part]
    try:
        return tuple(int(part) for part in parts) or None
    except ValueError as exc:
        raise DrillConfigError(
            f"{ENV_PREFIX}{key} must hold integers, got '{raw}'."
        ) from exc


def _env_int(env: Mapping[str, str], key: str) -> Optional[int]:
    values = _env_ints(env, key)
    if values is None:
        return None
    if len(values) != 1:
        raise DrillConfigError(f"{ENV_PREFIX}{key} must be a single integer.")
    return values[0]


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
