"""Load, validate, and resolve claudewrap.yaml configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from claudewrap.config.models import ClientConfig

DEFAULT_CONFIG_NAME = "claudewrap.yaml"

#: Environment variables consulted for keys the YAML file leaves unset.
ENV_OVERRIDES: dict[str, str] = {
    "executable_path": "CLAUDEWRAP_EXECUTABLE",
    "model": "CLAUDEWRAP_MODEL",
    "working_directory": "CLAUDEWRAP_WORKDIR",
    "api_key": "ANTHROPIC_API_KEY",
}


class ConfigError(Exception):
    """User-facing configuration error."""


def load_config(path: Path | None = None, **overrides: Any) -> ClientConfig:
    """Load and validate a claudewrap.yaml file.

    Args:
        path: Explicit config file path. If None, looks for
              claudewrap.yaml in the current directory and falls back
              to defaults when there is none.
        overrides: Values that win over both the file and the environment
                   (``None`` values are ignored).

    Returns:
        A validated ClientConfig instance.

    Raises:
        ConfigError: On a missing explicit file, bad YAML, or validation failure.
    """
    config_path = _resolve_path(path)
    if config_path is None:
        raw: dict[str, Any] = {}
        base_dir = Path.cwd()
    else:
        raw = _read_yaml(config_path)
        base_dir = config_path.parent

    _load_env(base_dir)
    _apply_env_overrides(raw)
    raw.update({k: v for k, v in overrides.items() if v is not None})
    _resolve_working_directory(raw, base_dir)
    return _validate(raw)


def _resolve_path(path: Path | None) -> Path | None:
    if path is not None:
        resolved = Path(path)
        if not resolved.is_file():
            msg = f"Config file not found: {resolved}"
            raise ConfigError(msg)
        return resolved

    default = Path.cwd() / DEFAULT_CONFIG_NAME
    if not default.is_file():
        return None
    return default


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read config file: {exc}"
        raise ConfigError(msg) from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        detail = ""
        if hasattr(exc, "problem_mark") and exc.problem_mark is not None:
            mark = exc.problem_mark
            detail = f" (line {mark.line + 1}, column {mark.column + 1})"
        msg = f"Invalid YAML in {path.name}{detail}"
        raise ConfigError(msg) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {path.name}, got {type(data).__name__}"
        raise ConfigError(msg)

    return data


def _load_env(config_dir: Path) -> None:
    env_path = config_dir / ".env"
    if env_path.is_file():
        load_dotenv(env_path)


def _apply_env_overrides(raw: dict[str, Any]) -> None:
    for key, env_name in ENV_OVERRIDES.items():
        if raw.get(key) is not None:
            continue
        value = os.environ.get(env_name)
        if value:
            raw[key] = value


def _resolve_working_directory(raw: dict[str, Any], base_dir: Path) -> None:
    workdir = raw.get("working_directory")
    if workdir is None:
        return
    resolved = Path(str(workdir)).expanduser()
    if not resolved.is_absolute():
        resolved = (base_dir / resolved).resolve()
    if not resolved.is_dir():
        msg = f"Working directory does not exist: {resolved}"
        raise ConfigError(msg)
    raw["working_directory"] = resolved


def _validate(raw: dict[str, Any]) -> ClientConfig:
    try:
        return ClientConfig.model_validate(raw)
    except ValidationError as exc:
        errors = exc.errors()
        parts: list[str] = []
        for err in errors:
            loc = " → ".join(str(s) for s in err["loc"])
            msg = err["msg"]
            if "field required" in msg.lower():
                msg = "This field is required"
            elif "extra inputs are not permitted" in msg.lower():
                msg = "Unknown option"
            elif "input should be" in msg.lower():
                msg = f"Invalid value: {msg}"
            parts.append(f"  {loc}: {msg}")
        joined = "\n".join(parts)
        msg = f"Config validation failed:\n{joined}"
        raise ConfigError(msg) from exc
