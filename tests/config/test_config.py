import os

import pytest
import toml

from shotplanner.config.config import ensure_data_dirs, get_default_config, load_config, write_default_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("SHOTPLANNER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def empty_env(tmp_path):
    path = tmp_path / ".env"
    path.write_text("", encoding="utf-8")
    return str(path)


def test_defaults_when_file_missing(tmp_path, empty_env):
    config_file, config = load_config(str(tmp_path / "missing.toml"), env_file=empty_env)
    assert config_file == str(tmp_path / "missing.toml")
    assert config["port"] == 3001
    assert config["projects_dir"] == os.path.join(config["data_dir"], "projects")
    assert config["thumbs_dir"] == os.path.join(config["images_dir"], "thumbs")


def test_toml_values_and_derived_paths(tmp_path, empty_env):
    config_path = tmp_path / "shotplanner.toml"
    config_path.write_text(toml.dumps({"data_dir": str(tmp_path / "data"), "port": 4000}), encoding="utf-8")
    _, config = load_config(str(config_path), env_file=empty_env)
    assert config["port"] == 4000
    assert config["data_dir"] == str((tmp_path / "data").resolve())
    assert config["images_dir"] == str((tmp_path / "data" / "images").resolve())


def test_env_overrides_file(tmp_path, empty_env, monkeypatch):
    config_path = tmp_path / "shotplanner.toml"
    config_path.write_text(toml.dumps({"port": 4000}), encoding="utf-8")
    monkeypatch.setenv("SHOTPLANNER_PORT", "5000")
    monkeypatch.setenv("SHOTPLANNER_LOG_LEVEL", "DEBUG")
    _, config = load_config(str(config_path), env_file=empty_env)
    assert config["port"] == 5000
    assert config["log_level"] == "DEBUG"


def test_bad_env_value_is_ignored(tmp_path, empty_env, monkeypatch):
    monkeypatch.setenv("SHOTPLANNER_PORT", "not-a-port")
    _, config = load_config(str(tmp_path / "missing.toml"), env_file=empty_env)
    assert config["port"] == 3001


def test_dotenv_file_is_loaded(tmp_path, monkeypatch):
    env_path = tmp_path / ".env"
    env_path.write_text(f"SHOTPLANNER_DATA_DIR={tmp_path / 'from_env'}\n", encoding="utf-8")
    # registered so monkeypatch removes what load_dotenv sets
    monkeypatch.setenv("SHOTPLANNER_DATA_DIR", "")
    monkeypatch.delenv("SHOTPLANNER_DATA_DIR")
    _, config = load_config(str(tmp_path / "missing.toml"), env_file=str(env_path))
    assert config["data_dir"] == str((tmp_path / "from_env").resolve())


def test_overrides_win(tmp_path, empty_env, monkeypatch):
    monkeypatch.setenv("SHOTPLANNER_DATA_DIR", str(tmp_path / "env"))
    _, config = load_config(
        str(tmp_path / "missing.toml"),
        env_file=empty_env,
        overrides={"data_dir": str(tmp_path / "cli"), "port": None},
    )
    assert config["data_dir"] == str((tmp_path / "cli").resolve())
    assert config["port"] == 3001


def test_write_default_config_round_trips(tmp_path):
    path = write_default_config(str(tmp_path / "conf" / "shotplanner.toml"))
    assert toml.load(path)["port"] == get_default_config()["port"]


def test_ensure_data_dirs(tmp_path, empty_env):
    _, config = load_config(str(tmp_path / "missing.toml"), env_file=empty_env, overrides={"data_dir": str(tmp_path / "d")})
    ensure_data_dirs(config)
    for key in ("projects_dir", "images_dir", "thumbs_dir", "audio_dir"):
        assert os.path.isdir(config[key])
