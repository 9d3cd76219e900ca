"""Tests for TOML configuration loading."""

from pathlib import Path

from app.config import DATA_DIR_ENV, PRIVATE_KEY_ENV, load_config


def test_load_config(tmp_path, monkeypatch):
    monkeypatch.delenv(DATA_DIR_ENV, raising=False)
    monkeypatch.delenv(PRIVATE_KEY_ENV, raising=False)
    path = tmp_path / "config.toml"
    path.write_text(
        'data_dir = "out"\n'
        "[device]\n"
        'serial = "ABC123"\n'
        "timeout_ms = 2000\n"
        "chunk_size = 4096\n"
        "[unlock]\n"
        'private_key = "keys/unlock.pem"\n'
        "[logging]\n"
        'level = "debug"\n'
        'file = ""\n'
    )

    config = load_config(path)

    assert config.serial == "ABC123"
    assert config.timeout_ms == 2000
    assert config.chunk_size == 4096
    assert config.private_key == Path("keys/unlock.pem")
    assert config.log_level == "DEBUG"
    assert config.log_file is None
    assert config.data_dir == Path("out").resolve()


def test_missing_config_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv(DATA_DIR_ENV, raising=False)
    monkeypatch.delenv(PRIVATE_KEY_ENV, raising=False)

    config = load_config(tmp_path / "missing.toml")

    assert config.serial is None
    assert config.timeout_ms == 5000
    assert config.chunk_size == 16384
    assert config.private_key is None


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path / "data"))
    monkeypatch.setenv(PRIVATE_KEY_ENV, str(tmp_path / "env.pem"))
    path = tmp_path / "config.toml"
    path.write_text('[unlock]\nprivate_key = "file.pem"\n')

    config = load_config(path)

    assert config.private_key == tmp_path / "env.pem"
    assert config.data_dir == (tmp_path / "data").resolve()
