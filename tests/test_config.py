import os
import pytest
import yaml
from pathlib import Path
from uniload.config import (
    UniloadConfig,
    get_uniload_dir,
    get_uniload_home,
    load_config,
)
from uniload.errors import ConfigError
from uniload.release import current_release

def test_get_uniload_home_default(monkeypatch):
    monkeypatch.delenv("UNILOAD_HOME", raising=False)
    home = get_uniload_home()
    assert home == Path("~/.config/uniload").expanduser()

def test_get_uniload_home_env_var(monkeypatch, tmp_path):
    custom_home = tmp_path / "custom_home"
    monkeypatch.setenv("UNILOAD_HOME", str(custom_home))
    assert get_uniload_home() == custom_home

def test_load_config_missing_file(monkeypatch, tmp_path):
    monkeypatch.setenv("UNILOAD_HOME", str(tmp_path))
    with pytest.raises(FileNotFoundError, match="uniload config.yaml not found"):
        load_config()

def test_load_config_valid(monkeypatch, tmp_path):
    monkeypatch.setenv("UNILOAD_HOME", str(tmp_path))
    config_path = tmp_path / "config.yaml"

    config_data = {
        "package_dir": "/opt/tool/packages",
        "release": "1.4.2",
        "log_level": "debug",
        "log_format": "structured",
    }
    config_path.write_text(yaml.dump(config_data))

    cfg = load_config()
    assert isinstance(cfg, UniloadConfig)
    assert cfg.package_dir == "/opt/tool/packages"
    assert cfg.release == "1.4.2"
    assert cfg.log_level == "DEBUG"
    assert cfg.log_format == "structured"

def test_load_config_explicit_path(tmp_path):
    config_path = tmp_path / "other.yaml"
    config_path.write_text(yaml.dump({"release": 2}))

    cfg = load_config(config_path)
    assert cfg.release == "2"
    assert cfg.package_dir == UniloadConfig().package_dir

def test_load_config_empty_file_uses_defaults(monkeypatch, tmp_path):
    monkeypatch.setenv("UNILOAD_HOME", str(tmp_path))
    (tmp_path / "config.yaml").write_text("")

    assert load_config() == UniloadConfig()

def test_load_config_with_env_file(monkeypatch, tmp_path):
    monkeypatch.setenv("UNILOAD_HOME", str(tmp_path))
    config_path = tmp_path / "config.yaml"
    env_file = tmp_path / ".env.test"

    env_file.write_text("TEST_VAR=loaded_from_env")

    config_data = {
        "release": "r",
        "env_file": str(env_file)
    }
    config_path.write_text(yaml.dump(config_data))

    # Pre-clean env var
    monkeypatch.delenv("TEST_VAR", raising=False)

    load_config()
    assert os.environ.get("TEST_VAR") == "loaded_from_env"
    monkeypatch.delenv("TEST_VAR", raising=False)

def test_load_config_invalid_yaml(monkeypatch, tmp_path):
    monkeypatch.setenv("UNILOAD_HOME", str(tmp_path))
    (tmp_path / "config.yaml").write_text("release: [unclosed\n")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config()

def test_load_config_non_mapping(monkeypatch, tmp_path):
    monkeypatch.setenv("UNILOAD_HOME", str(tmp_path))
    (tmp_path / "config.yaml").write_text("- a\n- b\n")

    with pytest.raises(ConfigError, match="must be a mapping"):
        load_config()

def test_load_config_unknown_key(monkeypatch, tmp_path):
    monkeypatch.setenv("UNILOAD_HOME", str(tmp_path))
    (tmp_path / "config.yaml").write_text(yaml.dump({"project": "x"}))

    with pytest.raises(ConfigError, match="Unknown config keys: project"):
        load_config()

def test_invalid_log_format():
    with pytest.raises(ConfigError, match="log_format"):
        UniloadConfig(log_format="xml")

def test_invalid_log_level():
    with pytest.raises(ConfigError, match="log_level"):
        UniloadConfig(log_level="loud")

def test_get_uniload_dir_from_config(tmp_path):
    cfg = UniloadConfig(package_dir=str(tmp_path / "pkgs"))
    assert get_uniload_dir(cfg) == tmp_path / "pkgs"

def test_get_uniload_dir_env_override(monkeypatch, tmp_path):
    monkeypatch.setenv("UNILOAD_PACKAGE_DIR", str(tmp_path / "override"))
    cfg = UniloadConfig(package_dir=str(tmp_path / "pkgs"))
    assert get_uniload_dir(cfg) == tmp_path / "override"

def test_current_release_from_config():
    assert current_release(UniloadConfig(release="1.4.2")) == "1.4.2"
    assert current_release() == "none"

def test_current_release_env_override(monkeypatch):
    monkeypatch.setenv("UNILOAD_RELEASE", "2.0.0")
    assert current_release(UniloadConfig(release="1.4.2")) == "2.0.0"

def test_log_file_path(tmp_path):
    assert UniloadConfig().get_log_file_path() is None
    cfg = UniloadConfig(log_file=str(tmp_path / "uniload.log"))
    assert cfg.get_log_file_path() == tmp_path / "uniload.log"
