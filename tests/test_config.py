import pytest

from vfxhub.config import Config, config, get_secret


@pytest.fixture
def restore_config(monkeypatch):
    yield
    monkeypatch.undo()
    config.reload()


def test_config_is_a_singleton():
    assert Config() is config


def test_defaults():
    assert config.get("image_generation", "storage_mode") == "best_effort"
    assert config.get("streaming", "max_bytes") == 100 * 1024 * 1024
    assert config.get("streaming", "allowed_hosts") == []
    assert config.get("platform", "tables")["assets"] == "asset_c"
    assert config.get("missing", "key", "fallback") == "fallback"


def test_yaml_file_is_merged(tmp_path, monkeypatch, restore_config):
    path = tmp_path / "config.yaml"
    path.write_text("openai:\n  timeout: 5\nai:\n  rate_limit: 2/second\n")
    monkeypatch.setenv("VFXHUB_CONFIG", str(path))

    config.reload()

    assert config.get("openai", "timeout") == 5
    assert config.get("openai", "base_url") == "https://api.openai.com/v1"
    assert config.get("ai", "rate_limit") == "2/second"


def test_environment_overrides(monkeypatch, restore_config):
    monkeypatch.setenv("VFXHUB_STORAGE_BACKEND", "platform")
    monkeypatch.setenv("APPER_BASE_URL", "https://records.example.test/v1")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.test, https://b.test")

    config.reload()

    assert config.get("storage", "backend") == "platform"
    assert config.get("platform", "base_url") == "https://records.example.test/v1"
    assert config.get("cors", "allowed_origins") == ["https://a.test", "https://b.test"]


def test_stream_allow_list_from_environment(monkeypatch, restore_config):
    monkeypatch.setenv("VFXHUB_STREAM_ALLOWED_HOSTS", "cdn.example.test, .renders.example.test")

    config.reload()

    assert config.get("streaming", "allowed_hosts") == ["cdn.example.test", ".renders.example.test"]


def test_get_secret(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "  sk-live  ")
    assert get_secret("OPENAI_API_KEY") == "sk-live"

    monkeypatch.setenv("OPENAI_API_KEY", "   ")
    assert get_secret("OPENAI_API_KEY") is None

    monkeypatch.delenv("OPENAI_API_KEY")
    assert get_secret("OPENAI_API_KEY") is None
