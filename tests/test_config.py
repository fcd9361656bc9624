"""Tests for configuration loading and validation."""

from __future__ import annotations

import pytest

from feed_archive.config import AppConfig, load_config, validate_config
from feed_archive.errors import ConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "FEED_ARCHIVE_BUCKET",
        "FEED_ARCHIVE_INDEX_KEY",
        "FEED_ARCHIVE_ENDPOINT_URL",
        "FEED_ARCHIVE_FEEDS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_original_deployment():
    cfg = load_config(None)

    assert cfg.store.bucket == "lantern-ads"
    assert cfg.store.index_key == "index.yaml"
    assert cfg.feeds.sources == ["https://www.persagg.com/zh.yaml"]
    assert cfg.fetch.timeout_seconds == 30.0
    assert cfg.fetch.concurrency is None


def test_load_config_returns_independent_copies():
    first = load_config(None)
    first.feeds.sources.append("https://other/feed.yaml")

    assert load_config(None).feeds.sources == ["https://www.persagg.com/zh.yaml"]


def test_yaml_overrides_are_merged(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "store:\n  bucket: my-archive\nfetch:\n  concurrency: 8\n",
        encoding="utf-8",
    )

    cfg = load_config(str(path))

    assert cfg.store.bucket == "my-archive"
    assert cfg.store.index_key == "index.yaml"
    assert cfg.fetch.concurrency == 8


def test_unknown_option_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("store:\n  bukket: typo\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="bukket"):
        load_config(str(path))


def test_unknown_section_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("stores:\n  bucket: typo\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="stores"):
        load_config(str(path))


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("FEED_ARCHIVE_BUCKET", "env-bucket")
    monkeypatch.setenv("FEED_ARCHIVE_FEEDS", "https://a/feed.yaml, https://b/feed.yaml")

    cfg = load_config(None)

    assert cfg.store.bucket == "env-bucket"
    assert cfg.feeds.sources == ["https://a/feed.yaml", "https://b/feed.yaml"]


@pytest.mark.parametrize(
    "section,field,value",
    [
        ("store", "bucket", ""),
        ("store", "index_key", ""),
        ("store", "index_key", "12.html"),
        ("fetch", "concurrency", -1),
    ],
)
def test_validate_rejects_unusable_settings(section, field, value):
    cfg = AppConfig()
    setattr(getattr(cfg, section), field, value)

    with pytest.raises(ConfigError):
        validate_config(cfg)


def test_validate_accepts_defaults():
    validate_config(AppConfig())
