"""CLI entry point that prepares the per-device workspace."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Mapping, Sequence

from ..config import CONFIG_FILENAME, DrillConfigError, write_config_template
from ..core import workspace as workspace_mod


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drill init",
        description=(
            "Bootstrap the exam-drill workspace and ensure the config, logs "
            "and storage subdirectories exist."
        ),
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Override the workspace root (defaults to EXAM_DRILL_HOME or "
            "~/.exam-drill)."
        ),
    )
    parser.add_argument(
        "--config",
        action="store_true",
        help=f"Also write a starter {CONFIG_FILENAME} into the config dir.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file when used with --config.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output on success.",
    )
    return parser


def _format_created(created: Mapping[str, bool], key: str) -> str:
    return "created" if created.get(key, False) else "exists"


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        layout = workspace_mod.ensure_workspace(path=args.path)
    except workspace_mod.WorkspaceError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    config_line = None
    if args.config:
        target = layout.path_for("config") / CONFIG_FILENAME
        try:
            write_config_template(target, overwrite=args.force)
        except DrillConfigError as exc:
            sys.stderr.write(f"{exc} (use --force to overwrite)\n")
            return 1
        config_line = f"Config template written to {target}"

    if args.quiet:
        return 0

    home_status = _format_created(layout.created, "home")
    lines = [f"Workspace ready at {layout.home} ({home_status})"]
    width = max(len(name) for name in layout.directories)
    lines.append("Subdirectories:")
    for name, directory in layout.items():
        status = _format_created(layout.created, name)
        lines.append(f"  {name.ljust(width)}  {directory} ({status})")
    if config_line:
        lines.append(config_line)

    sys.stdout.write("\n".join(lines) + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
