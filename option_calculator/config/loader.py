"""
Configuration loader with YAML/JSON support, environment overrides, and CLI overrides.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .schemas import AppConfig

ENV_PREFIX = "OPTCALC__"

# Tradier credential variables mapped onto the broker section
_CREDENTIAL_ENV = {
    "TRADIER_TOKEN": "token",
    "TRADIER_SANDBOX": "sandbox",
    "TRADIER_ACCOUNT_ID": "account_id",
}


def load_config(path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from YAML or JSON file.

    Args:
        path: Path to config file. When omitted, defaults are returned.

    Returns:
        AppConfig validated instance

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If file format is unsupported
    """
    if path is None:
        return AppConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    suffix = config_path.suffix.lower()
    if suffix in [".yaml", ".yml"]:
        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f) or {}
    elif suffix == ".json":
        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = json.load(f)
    else:
        raise ValueError(f"Unsupported config file format: {suffix}. Use .yaml, .yml, or .json")

    return AppConfig(**config_dict)


def apply_env_overrides(cfg: AppConfig, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Apply environment variable overrides to configuration.

    Two families are recognised:
    - TRADIER_TOKEN / TRADIER_SANDBOX / TRADIER_ACCOUNT_ID map onto the broker section
    - OPTCALC__{section}__{key} for everything else, e.g. OPTCALC__chain__strikes=8

    Args:
        cfg: Base AppConfig
        environ: Mapping to read instead of os.environ (tests)

    Returns:
        AppConfig with environment overrides applied
    """
    env = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}

    for var, key in _CREDENTIAL_ENV.items():
        value = env.get(var)
        if value is None or value == "":
            continue
        if key == "sandbox":
            overrides.setdefault("broker", {})[key] = value.strip().lower() == "true"
        else:
            overrides.setdefault("broker", {})[key] = value

    for key, value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        # Normalize to lowercase for Windows compatibility (env vars are often uppercase)
        parts = key[len(ENV_PREFIX):].lower().split("__")
        if len(parts) < 2:
            # top-level scalar such as OPTCALC__LOG_LEVEL
            if parts[0] == "log_level":
                overrides["log_level"] = value.upper()
            continue
        _set_nested(overrides, parts, _parse_value(value))

    if not overrides:
        return cfg
    return _merge(cfg, overrides)


def apply_cli_overrides(cfg: AppConfig, sets: List[str]) -> AppConfig:
    """
    Apply CLI --set key=value overrides to configuration.

    Supports nested keys: chain.strikes=8 or selector.delta_margin=1.1
    Uses json.loads for typed values, falls back to string.
    """
    if not sets:
        return cfg

    overrides: Dict[str, Any] = {}
    for set_str in sets:
        if "=" not in set_str:
            raise ValueError(f"Invalid --set format: {set_str}. Expected 'key=value'")
        key_str, value_str = set_str.split("=", 1)
        key_parts = key_str.strip().split(".")
        if key_parts == ["log_level"]:
            overrides["log_level"] = value_str.strip().upper()
            continue
        if len(key_parts) < 2:
            raise ValueError(f"Invalid --set key format: {key_str}. Expected 'section.key' or 'section.nested.key'")
        _set_nested(overrides, key_parts, _parse_value(value_str))

    return _merge(cfg, overrides)


def _parse_value(value: str) -> Any:
    """Parse an override value (try JSON first, fallback to string)"""
    try:
        return json.loads(value)
    except (json.JSONDecodeError, ValueError):
        pass
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered == "null":
        return None
    try:
        return float(value) if "." in value else int(value)
    except ValueError:
        return value


def _set_nested(target: Dict[str, Any], parts: List[str], value: Any) -> None:
    current = target
    for part in parts[:-1]:
        current = current.setdefault(part, {})
    current[parts[-1]] = value


def _merge(cfg: AppConfig, overrides: Dict[str, Any]) -> AppConfig:
    config_dict = _deep_merge(cfg.model_dump(), overrides)
    # Re-validate
    return AppConfig(**config_dict)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
