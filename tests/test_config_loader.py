"""
Tests for config loader with overrides.
"""

import json
import tempfile
import pytest
from pathlib import Path

from pydantic import ValidationError

from option_calculator.config import load_config, apply_env_overrides, apply_cli_overrides, AppConfig


@pytest.fixture
def temp_config_json():
    """Create a temporary JSON config file"""
    config_dict = {
        "broker": {
            "token": "abc123",
            "sandbox": True,
            "account_id": "VA000001",
        },
        "chain": {
            "strikes": 8,
            "include_puts": False,
        },
        "selector": {
            "delta_margin": 1.1,
        },
    }

    fd, path = tempfile.mkstemp(suffix=".json")
    with open(fd, "w") as f:
        json.dump(config_dict, f)

    yield path

    Path(path).unlink()


def test_load_config_defaults():
    config = load_config()
    assert isinstance(config, AppConfig)
    assert config.chain.strikes == 5
    assert config.selector.list_counts == [6, 8, 10, 12, 14, 16, 18, 20]
    assert config.selector.delta_margin == 1.2
    assert config.broker.base_url == "https://api.tradier.com/v1/"


def test_load_config_json(temp_config_json):
    """Test loading JSON config"""
    config = load_config(temp_config_json)
    assert isinstance(config, AppConfig)
    assert config.broker.token == "abc123"
    assert config.broker.base_url == "https://sandbox.tradier.com/v1/"
    assert config.chain.strikes == 8
    assert config.chain.include_puts is False
    assert config.chain.include_calls is True


def test_load_config_yaml(tmp_path):
    """Test loading YAML config"""
    import yaml

    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump({"expected_move": {"default_dte": 2}, "log_level": "DEBUG"}))

    config = load_config(str(path))
    assert config.expected_move.default_dte == 2
    assert config.log_level == "DEBUG"


def test_load_config_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))

    path = tmp_path / "config.toml"
    path.write_text("")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        AppConfig(chain={"strikes": 0})
    with pytest.raises(ValidationError):
        AppConfig(selector={"list_counts": [6, 7]})
    with pytest.raises(ValidationError):
        AppConfig(selector={"delta_margin": 0.9})


def test_apply_env_overrides(temp_config_json):
    """Test environment variable overrides"""
    environ = {
        "OPTCALC__chain__strikes": "12",
        "TRADIER_TOKEN": "from-env",
        "TRADIER_SANDBOX": "false",
        "OPTCALC__LOG_LEVEL": "warning",
    }

    config = load_config(temp_config_json)
    config = apply_env_overrides(config, environ)

    assert config.chain.strikes == 12
    assert config.broker.token == "from-env"
    assert config.broker.sandbox is False
    assert config.broker.account_id == "VA000001"
    assert config.log_level == "WARNING"


def test_apply_env_overrides_uses_os_environ(monkeypatch):
    monkeypatch.setenv("TRADIER_ACCOUNT_ID", "VA999")
    config = apply_env_overrides(AppConfig())
    assert config.broker.account_id == "VA999"


def test_apply_cli_overrides(temp_config_json):
    """Test CLI --set overrides"""
    config = load_config(temp_config_json)

    config = apply_cli_overrides(config, ["chain.strikes=10"])
    assert config.chain.strikes == 10

    config = apply_cli_overrides(config, ["log_level=debug"])
    assert config.log_level == "DEBUG"


def test_apply_cli_overrides_typed(temp_config_json):
    """Test that CLI overrides parse types correctly"""
    config = load_config(temp_config_json)

    # Integer
    config = apply_cli_overrides(config, ["broker.max_attempts=5"])
    assert config.broker.max_attempts == 5
    assert isinstance(config.broker.max_attempts, int)

    # Float
    config = apply_cli_overrides(config, ["selector.delta_margin=1.5"])
    assert config.selector.delta_margin == 1.5

    # Boolean
    config = apply_cli_overrides(config, ["chain.include_puts=true"])
    assert config.chain.include_puts is True

    # JSON parsing
    config = apply_cli_overrides(config, ["selector.list_counts=[4, 8]"])
    assert config.selector.list_counts == [4, 8]


def test_apply_cli_overrides_malformed():
    with pytest.raises(ValueError):
        apply_cli_overrides(AppConfig(), ["chain.strikes"])
    with pytest.raises(ValueError):
        apply_cli_overrides(AppConfig(), ["strikes=3"])
