import json
from pathlib import Path

from etchosts.config import DEFAULT_CONFIG, init_config, load_config, save_config


def test_missing_config_gives_defaults(tmp_path: Path):
    assert load_config(str(tmp_path / "config.json")) == DEFAULT_CONFIG


def test_persistence(tmp_path: Path):
    path = str(tmp_path / "config.json")
    config = load_config(path)
    config["writer"] = "direct"
    config["hosts_path"] = "/tmp/hosts"

    save_config(config, path)
    loaded = load_config(path)

    assert loaded["writer"] == "direct"
    assert loaded["hosts_path"] == "/tmp/hosts"
    assert loaded["backup"] is False


def test_partial_config_is_merged(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"backup": True}))

    config = load_config(str(path))

    assert config["backup"] is True
    assert config["writer"] == "auto"


def test_malformed_config_is_ignored(tmp_path: Path, caplog):
    path = tmp_path / "config.json"
    path.write_text("{not json")

    assert load_config(str(path)) == DEFAULT_CONFIG
    assert "Ignoring unreadable config" in caplog.text


def test_non_object_config_is_ignored(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]")

    assert load_config(str(path)) == DEFAULT_CONFIG


def test_init_config_writes_defaults(tmp_path: Path):
    path = tmp_path / "config.json"

    config = init_config(str(path))

    assert config == DEFAULT_CONFIG
    assert json.loads(path.read_text()) == DEFAULT_CONFIG


def test_init_config_keeps_existing_file(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"writer": "direct"}))

    config = init_config(str(path))

    assert config["writer"] == "direct"
    assert json.loads(path.read_text()) == {"writer": "direct"}
