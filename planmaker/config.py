"""Configuration — built once at startup from .env + config.yaml and passed explicitly."""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml
from dotenv import load_dotenv

from planmaker.errors import ConfigError

# Load .env from project root (parent of planmaker/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

PLANNER_URL_VAR = "SOFTWARE_PLANNER_BASE_URL"
CLARIFIER_URL_VAR = "SPEC_CLARIFIER_BASE_URL"
PLANNER_KEY_VAR = "SOFTWARE_PLANNER_API_KEY"
CLARIFIER_KEY_VAR = "SPEC_CLARIFIER_API_KEY"


@dataclass(frozen=True)
class AppConfig:
    software_planner_base_url: str
    spec_clarifier_base_url: str
    software_planner_api_key: str | None = None
    spec_clarifier_api_key: str | None = None
    poll_max_attempts: int = 60
    poll_interval_seconds: float = 2.0
    planner_list_limit_default: int = 25
    planner_list_limit_max: int = 100
    request_timeout_seconds: float = 30.0
    storage_dir: str = "./.planmaker"
    persist_answers: bool = True
    persist_submissions: bool = True
    storage_debounce_seconds: float = 0.5
    draft_expiry_hours: float = 24.0
    submission_expiry_days: float = 7.0

    @property
    def storage_path(self) -> Path:
        """Storage directory, resolved against the project root when relative."""
        path = Path(self.storage_dir)
        return path if path.is_absolute() else _PROJECT_ROOT / path


def require_env(key: str, value: str | None) -> str:
    """Return the stripped value of a required setting or raise ConfigError naming it."""
    if value is None or not value.strip():
        raise ConfigError(
            f"Missing required environment variable: {key}\n"
            f"Please ensure {key} is set in your .env file.\n"
            f"Refer to .env.example for configuration examples."
        )
    return value.strip()


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text()) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain a mapping, got {type(data).__name__}.")
    return data


def load_config(env: dict | None = None, overrides: dict | None = None,
                yaml_path: Path | None = None) -> AppConfig:
    """Build an AppConfig from the environment and config.yaml.

    Args:
        env: Mapping to read settings from. None loads .env and uses os.environ.
        overrides: Field values that win over both sources (tests, CLI flags).
        yaml_path: Alternate tunables file. Defaults to planmaker/config.yaml.

    Raises ConfigError if either base URL is missing or blank.
    """
    if env is None:
        load_dotenv(_PROJECT_ROOT / ".env")
        env = os.environ

    tunables = _load_yaml(yaml_path or CONFIG_PATH)
    known = {f.name for f in fields(AppConfig)}
    unknown = set(tunables) - known
    if unknown:
        raise ConfigError(f"Unknown keys in config.yaml: {sorted(unknown)}")

    values = {
        **tunables,
        "software_planner_base_url": require_env(PLANNER_URL_VAR, env.get(PLANNER_URL_VAR)).rstrip("/"),
        "spec_clarifier_base_url": require_env(CLARIFIER_URL_VAR, env.get(CLARIFIER_URL_VAR)).rstrip("/"),
        "software_planner_api_key": env.get(PLANNER_KEY_VAR) or None,
        "spec_clarifier_api_key": env.get(CLARIFIER_KEY_VAR) or None,
    }
    config = AppConfig(**values)
    if overrides:
        config = replace(config, **overrides)
    return config


# Process-wide instance for the front ends only; library code takes config as an argument.
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the process-wide config so the next get_config() reloads it."""
    global _config
    _config = None
