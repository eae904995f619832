"""Tests for the Config system."""

import pytest

from schedview.core.config import (
    SchedViewConfig,
    _deep_merge,
    _substitute_env_vars,
)
from schedview.core.errors import ConfigError


@pytest.fixture
def no_files(tmp_path):
    """Paths that do not exist, so nothing is read from disk."""
    return {"project_path": tmp_path / "none.toml", "user_path": tmp_path / "none-user.toml"}


def test_default_config(config):
    assert config.snapshot.max_concurrency == 8
    assert config.snapshot.unavailable_detail_text == "Not available for remote scheduler"
    assert config.logging.console_level == "WARNING"
    assert config.engine.state_file is None


def test_load_with_overrides(no_files):
    config = SchedViewConfig.load(
        overrides={"snapshot": {"max_concurrency": 2}},
        **no_files,
    )
    assert config.snapshot.max_concurrency == 2
    # Defaults still apply to everything else
    assert config.logging.file_level == "DEBUG"


def test_project_overrides_user(tmp_path):
    user = tmp_path / "user.toml"
    user.write_text('[snapshot]\nmax_concurrency = 4\n[engine]\nstate_file = "user.json"\n')
    project = tmp_path / "project.toml"
    project.write_text("[snapshot]\nmax_concurrency = 16\n")

    config = SchedViewConfig.load(project_path=project, user_path=user)

    assert config.snapshot.max_concurrency == 16
    assert config.engine.state_file == "user.json"


def test_env_var_loading(monkeypatch, no_files):
    monkeypatch.setenv("SCHEDVIEW_MAX_CONCURRENCY", "1")
    monkeypatch.setenv("SCHEDVIEW_STATE_FILE", "/srv/state.toml")

    config = SchedViewConfig.load(**no_files)

    assert config.snapshot.max_concurrency == 1
    assert config.engine.state_file == "/srv/state.toml"


def test_overrides_beat_env(monkeypatch, no_files):
    monkeypatch.setenv("SCHEDVIEW_MAX_CONCURRENCY", "3")
    config = SchedViewConfig.load(overrides={"snapshot": {"max_concurrency": 5}}, **no_files)
    assert config.snapshot.max_concurrency == 5


def test_invalid_value_raises_config_error(no_files):
    with pytest.raises(ConfigError, match="Invalid configuration"):
        SchedViewConfig.load(overrides={"snapshot": {"max_concurrency": 0}}, **no_files)


def test_broken_toml_raises_config_error(tmp_path):
    project = tmp_path / "schedview.toml"
    project.write_text("[snapshot\n")
    with pytest.raises(ConfigError, match="Failed to load config"):
        SchedViewConfig.load(project_path=project, user_path=tmp_path / "none.toml")


def test_env_var_substitution(monkeypatch):
    monkeypatch.setenv("STATE_DIR", "/srv/sched")
    data = {"engine": {"state_file": "${STATE_DIR}/state.toml"}, "list": ["${STATE_DIR}", 1]}

    _substitute_env_vars(data)

    assert data["engine"]["state_file"] == "/srv/sched/state.toml"
    assert data["list"] == ["/srv/sched", 1]


def test_deep_merge():
    base = {"a": {"b": 1, "c": 2}, "d": 3}
    _deep_merge(base, {"a": {"b": 10}, "e": 5})
    assert base == {"a": {"b": 10, "c": 2}, "d": 3, "e": 5}


def test_log_dir_expands_home(config):
    assert "~" not in str(config.get_log_dir())


def test_env_strings_keep_their_field_type(monkeypatch, no_files):
    monkeypatch.setenv("SCHEDVIEW_UNAVAILABLE_TEXT", "404")
    monkeypatch.setenv("SCHEDVIEW_STATE_FILE", "2024")
    monkeypatch.setenv("SCHEDVIEW_MAX_CONCURRENCY", "4")

    config = SchedViewConfig.load(**no_files)

    assert config.snapshot.unavailable_detail_text == "404"
    assert config.engine.state_file == "2024"
    assert config.snapshot.max_concurrency == 4


def test_env_text_that_looks_boolean(monkeypatch, no_files):
    monkeypatch.setenv("SCHEDVIEW_UNAVAILABLE_TEXT", "no")
    config = SchedViewConfig.load(**no_files)
    assert config.snapshot.unavailable_detail_text == "no"


def test_non_numeric_concurrency_from_env(monkeypatch, no_files):
    monkeypatch.setenv("SCHEDVIEW_MAX_CONCURRENCY", "lots")
    with pytest.raises(ConfigError, match="Invalid configuration"):
        SchedViewConfig.load(**no_files)


@pytest.mark.parametrize("raw, expected", [("info", "INFO"), (" Debug ", "DEBUG"), ("ERROR", "ERROR")])
def test_log_level_is_normalized(monkeypatch, no_files, raw, expected):
    monkeypatch.setenv("SCHEDVIEW_LOG_LEVEL", raw)
    config = SchedViewConfig.load(**no_files)
    assert config.logging.console_level == expected


def test_unknown_log_level_raises_config_error(no_files):
    with pytest.raises(ConfigError, match="unknown log level"):
        SchedViewConfig.load(overrides={"logging": {"file_level": "chatty"}}, **no_files)
