from __future__ import annotations

from pathlib import Path

import pytest

from exam_drill import config as config_mod
from exam_drill.config import ConfigOverrides, DrillConfigError


def _load(tmp_path: Path, **kwargs):
    kwargs.setdefault("env", {})
    kwargs.setdefault("workspace_path", tmp_path / "ws")
    return config_mod.load_config(**kwargs)


def _write_config(tmp_path: Path, text: str) -> Path:
    target = tmp_path / "ws" / "config" / "drill.toml"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    return target


def test_defaults_without_config_file(tmp_path):
    result = _load(tmp_path)

    cfg = result.config
    assert cfg.question_root == tmp_path / "question"
    assert cfg.years == (2024, 2025)
    assert cfg.sessions == (1, 2, 3)
    assert cfg.quiz_size == 20
    assert cfg.min_pool_size == 20
    assert cfg.show_explanations is True
    assert cfg.log_level == "INFO"
    assert result.config_path is None
    assert result.layout.home == tmp_path / "ws"


def test_toml_values_override_defaults(tmp_path):
    path = _write_config(
        tmp_path,
        "\n".join(
            [
                "[questions]",
                'root = "bank"',
                "years = [2026]",
                "[quiz]",
                "size = 10",
                "show_explanations = false",
                "[logging]",
                'level = "debug"',
            ]
        ),
    )

    result = _load(tmp_path)

    cfg = result.config
    assert result.config_path == path
    assert cfg.question_root == tmp_path / "bank"
    assert cfg.years == (2026,)
    assert cfg.sessions == (1, 2, 3)
    assert cfg.quiz_size == 10
    assert cfg.min_pool_size == 10
    assert cfg.show_explanations is False
    assert cfg.log_level == "DEBUG"


def test_env_overrides_toml_and_cli_overrides_env(tmp_path):
    _write_config(tmp_path, "[questions]\nyears = [2023]\n")
    env = {
        "EXAM_DRILL_YEARS": "2024, 2025",
        "EXAM_DRILL_SESSIONS": "2",
        "EXAM_DRILL_QUIZ_SIZE": "5",
        "EXAM_DRILL_QUESTION_ROOT": str(tmp_path / "env-root"),
    }

    from_env = _load(tmp_path, env=env).config
    assert from_env.years == (2024, 2025)
    assert from_env.sessions == (2,)
    assert from_env.quiz_size == 5
    assert from_env.min_pool_size == 5
    assert from_env.question_root == tmp_path / "env-root"

    overrides = ConfigOverrides(years=[2026, 2026], quiz_size=3)
    from_cli = _load(tmp_path, env=env, overrides=overrides).config
    assert from_cli.years == (2026,)
    assert from_cli.quiz_size == 3
    assert from_cli.min_pool_size == 5
    assert from_cli.sessions == (2,)


def test_unknown_keys_are_rejected(tmp_path):
    _write_config(tmp_path, "[quiz]\nshuffle = true\n")

    with pytest.raises(DrillConfigError, match="quiz.shuffle"):
        _load(tmp_path)


def test_invalid_values_are_rejected(tmp_path):
    _write_config(tmp_path, "[quiz]\nsize = 0\n")
    with pytest.raises(DrillConfigError, match="quiz.size"):
        _load(tmp_path)

    _write_config(tmp_path, '[questions]\nyears = ["2024"]\n')
    with pytest.raises(DrillConfigError, match="questions.years"):
        _load(tmp_path)

    _write_config(tmp_path, "[questions]\nroot = [1]\n")
    with pytest.raises(DrillConfigError, match="questions.root"):
        _load(tmp_path)


def test_bad_env_values_are_rejected(tmp_path):
    with pytest.raises(DrillConfigError, match="EXAM_DRILL_YEARS"):
        _load(tmp_path, env={"EXAM_DRILL_YEARS": "twenty"})
    with pytest.raises(DrillConfigError, match="single integer"):
        _load(tmp_path, env={"EXAM_DRILL_QUIZ_SIZE": "5 6"})


def test_invalid_toml_is_reported(tmp_path):
    _write_config(tmp_path, "[quiz\n")

    with pytest.raises(DrillConfigError, match="parse"):
        _load(tmp_path)


def test_explicit_config_path_must_exist(tmp_path):
    with pytest.raises(DrillConfigError, match="not found"):
        _load(tmp_path, config_path=tmp_path / "missing.toml")
    with pytest.raises(DrillConfigError, match="not found"):
        _load(
            tmp_path,
            env={"EXAM_DRILL_CONFIG": str(tmp_path / "missing.toml")},
        )


def test_dotenv_file_is_loaded_when_env_omitted(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text(
        "EXAM_DRILL_QUIZ_SIZE=7\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)

    result = config_mod.load_config(workspace_path=tmp_path / "ws")

    assert result.config.quiz_size == 7


def test_workspace_errors_become_config_errors(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")

    with pytest.raises(DrillConfigError):
        _load(tmp_path, workspace_path=blocker)


def test_write_config_template(tmp_path):
    target = tmp_path / "cfg" / "drill.toml"

    config_mod.write_config_template(target)

    text = target.read_text(encoding="utf-8")
    assert text == config_mod.read_template()
    assert "[questions]" in text
    with pytest.raises(DrillConfigError):
        config_mod.write_config_template(target)
    config_mod.write_config_template(target, overwrite=True)


def test_template_parses_to_defaults(tmp_path):
    config_mod.write_config_template(tmp_path / "ws" / "config" / "drill.toml")

    cfg = _load(tmp_path).config

    assert cfg.years == (2024, 2025)
    assert cfg.quiz_size == 20
