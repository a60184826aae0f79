import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import toml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "shotplanner.toml"


def _project_root() -> str:
    # shotplanner/config/config.py -> shotplanner/config -> shotplanner -> repo root
    return os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def get_default_config() -> Dict[str, Any]:
    """Get default configuration"""
    project_root = _project_root()

    return {
        # Storage
        "data_dir": os.path.join(project_root, "data"),
        "projects_dir": "",  # derived from data_dir when empty
        "images_dir": "",
        "thumbs_dir": "",
        "audio_dir": "",

        # Server
        "host": "0.0.0.0",
        "port": 3001,
        "cors_origins": ["*"],

        # Logging
        "log_file": os.path.join(project_root, "logs", "shotplanner.log"),
        "log_level": "INFO",
        "log_console": True,

        # Media / export
        "thumbnail_width": 384,
        "thumbnail_quality": 80,
        "zip_compression_level": 5,
    }


ENV_OVERRIDES = {
    "SHOTPLANNER_DATA_DIR": ("data_dir", str),
    "SHOTPLANNER_HOST": ("host", str),
    "SHOTPLANNER_PORT": ("port", int),
    "SHOTPLANNER_LOG_LEVEL": ("log_level", str),
    "SHOTPLANNER_LOG_FILE": ("log_file", str),
}


def _apply_env(config: Dict[str, Any]) -> None:
    for env_key, (config_key, cast) in ENV_OVERRIDES.items():
        value = os.environ.get(env_key, "").strip()
        if not value:
            continue
        try:
            config[config_key] = cast(value)
        except ValueError:
            logger.warning("Ignoring %s=%r: expected %s", env_key, value, cast.__name__)


def _derive_paths(config: Dict[str, Any]) -> None:
    data_dir = Path(os.path.expanduser(str(config["data_dir"]))).resolve()
    config["data_dir"] = str(data_dir)
    defaults = {
        "projects_dir": data_dir / "projects",
        "images_dir": data_dir / "images",
        "audio_dir": data_dir / "audio",
    }
    for key, default in defaults.items():
        value = config.get(key)
        config[key] = str(Path(os.path.expanduser(value)).resolve()) if value else str(default)
    thumbs = config.get("thumbs_dir")
    config["thumbs_dir"] = str(Path(os.path.expanduser(thumbs)).resolve()) if thumbs else str(Path(config["images_dir"]) / "thumbs")
    config["log_file"] = os.path.expanduser(str(config["log_file"]))


def load_config(
    config_file: Optional[str] = None,
    env_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Tuple[str, Dict[str, Any]]:
    """
    Load configuration from a TOML file, falling back to defaults.

    Missing keys are filled from :func:`get_default_config`. ``.env`` (from
    ``env_file`` or the repo root) is loaded into the environment without
    overriding variables already set, then ``SHOTPLANNER_*`` variables and
    finally ``overrides`` (e.g. command-line flags) win.
    """
    if env_file is None:
        candidate = Path(_project_root()) / ".env"
        env_file = str(candidate) if candidate.exists() else None
    if env_file:
        load_dotenv(dotenv_path=env_file, override=False)

    config_file = config_file or os.environ.get("SHOTPLANNER_CONFIG") or os.path.join(_project_root(), DEFAULT_CONFIG_FILE)
    config_file = os.path.expanduser(config_file)

    config = get_default_config()
    if os.path.exists(config_file):
        with open(config_file, "r", encoding="utf-8") as f:
            loaded = toml.load(f)
        config.update(loaded)

    _apply_env(config)
    config.update({k: v for k, v in (overrides or {}).items() if v is not None})
    _derive_paths(config)
    return config_file, config


def write_default_config(config_file: str) -> str:
    os.makedirs(os.path.dirname(os.path.abspath(config_file)), exist_ok=True)
    with open(config_file, "w", encoding="utf-8") as f:
        toml.dump(get_default_config(), f)
    return config_file


def ensure_data_dirs(config: Dict[str, Any]) -> None:
    for key in ("projects_dir", "images_dir", "thumbs_dir", "audio_dir"):
        os.makedirs(config[key], exist_ok=True)
