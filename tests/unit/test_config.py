"""Unit tests for scrappey_mcp.config."""
from pathlib import Path

import pytest

from scrappey_mcp.config import DEFAULT_API_URL, Config, load


def test_load_defaults(tmp_path, monkeypatch):
    """load() with only the env key set returns all defaults."""
    monkeypatch.setenv("SCRAPPEY_API_KEY", "k-123")
    cfg = load(tmp_path)
    assert cfg.api_key == "k-123"
    assert cfg.api_url == DEFAULT_API_URL
    assert cfg.timeout == 180.0
    assert cfg.render_markdown is True
    assert cfg.transport == "stdio"
    assert cfg.log_level == "INFO"
    assert cfg.project_root == tmp_path.resolve()


def test_load_from_toml(tmp_path, monkeypatch):
    """load() reads all fields from scrappey.toml."""
    monkeypatch.setenv("SCRAPPEY_API_KEY", "k")
    (tmp_path / "scrappey.toml").write_text(
        "[scrappey]\napi_url = \"http://localhost:80/v1\"\ntimeout = 30\nmarkdown = false\n"
        "[server]\ntransport = \"sse\"\nhost = \"0.0.0.0\"\nport = 9900\n"
        "[logging]\nlevel = \"debug\"\n"
    )
    cfg = load(tmp_path)
    assert cfg.api_url == "http://localhost:80/v1"
    assert cfg.timeout == 30.0
    assert cfg.render_markdown is False
    assert cfg.transport == "sse"
    assert cfg.host == "0.0.0.0"
    assert cfg.port == 9900
    assert cfg.log_level == "DEBUG"


def test_missing_api_key_raises(tmp_path):
    with pytest.raises(ValueError, match="SCRAPPEY_API_KEY"):
        load(tmp_path)


def test_api_key_from_env_file(tmp_path):
    (tmp_path / ".env").write_text("# secrets\nSCRAPPEY_API_KEY = from-file\nOTHER=1\n")
    cfg = load(tmp_path)
    assert cfg.api_key == "from-file"


def test_env_var_wins_over_env_file(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("SCRAPPEY_API_KEY=from-file\n")
    monkeypatch.setenv("SCRAPPEY_API_KEY", "from-env")
    assert load(tmp_path).api_key == "from-env"


def test_api_url_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv("SCRAPPEY_API_KEY", "k")
    monkeypatch.setenv("SCRAPPEY_API_URL", "http://127.0.0.1:8080/v1")
    (tmp_path / "scrappey.toml").write_text("[scrappey]\napi_url = \"http://ignored\"\n")
    assert load(tmp_path).api_url == "http://127.0.0.1:8080/v1"


def test_zero_timeout_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("SCRAPPEY_API_KEY", "k")
    (tmp_path / "scrappey.toml").write_text("[scrappey]\ntimeout = 0\n")
    with pytest.raises(ValueError, match="timeout must be > 0"):
        load(tmp_path)


def test_unknown_transport_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("SCRAPPEY_API_KEY", "k")
    (tmp_path / "scrappey.toml").write_text("[server]\ntransport = \"websocket\"\n")
    with pytest.raises(ValueError, match="transport must be one of"):
        load(tmp_path)


def test_sse_url(tmp_path):
    cfg = Config(api_key="k", project_root=tmp_path, port=9000)
    assert cfg.sse_url == "http://127.0.0.1:9000/sse"


def test_quoted_markdown_flag_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("SCRAPPEY_API_KEY", "k")
    (tmp_path / "scrappey.toml").write_text("[scrappey]\nmarkdown = \"false\"\n")
    with pytest.raises(ValueError, match="markdown must be true or false"):
        load(tmp_path)


@pytest.mark.parametrize("port", ['"8765"', "0", "70000", "true"])
def test_bad_port_raises(tmp_path, monkeypatch, port):
    monkeypatch.setenv("SCRAPPEY_API_KEY", "k")
    (tmp_path / "scrappey.toml").write_text(f"[server]\nport = {port}\n")
    with pytest.raises(ValueError, match="port must be an integer"):
        load(tmp_path)
