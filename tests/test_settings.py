from __future__ import annotations

from pathlib import Path

from settings import get_settings


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "store"))
    monkeypatch.setenv("PERSIST_TO_DISK", "off")
    monkeypatch.setenv("MAX_OUTPUT_TOKENS", "800")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    s = get_settings()
    assert s.data_dir == tmp_path / "store"
    assert s.persist_to_disk is False
    assert s.max_output_tokens == 800
    assert s.cors_origins == ("https://a.example", "https://b.example")
    assert s.log_level == "DEBUG"


def test_settings_defaults(monkeypatch):
    for name in ("DATA_DIR", "PERSIST_TO_DISK", "MAX_OUTPUT_TOKENS", "CORS_ORIGINS", "OPENAI_MODEL"):
        monkeypatch.delenv(name, raising=False)

    s = get_settings()
    assert s.data_dir.name == "data"
    assert isinstance(s.data_dir, Path)
    assert s.persist_to_disk is True
    assert s.max_output_tokens == 1200
    assert s.cors_origins == ("*",)
    assert s.openai_model == "gpt-4.1-mini"
