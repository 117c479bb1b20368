"""Tests for Config Pydantic Settings."""

import logging

import pytest
from pydantic import ValidationError

from gallery.config import Config, LoggingConfig, QueuesConfig, configure_logging


class TestConfigDefaults:
    def test_defaults(self):
        config = Config()

        assert config.catalog.table_name == "images"
        assert config.catalog.url == ""
        assert config.storage.default_container is None
        assert config.topics.images == "image-topic"
        assert config.topics.uploads == "upload-topic"
        assert config.topics.status == "status-topic"
        assert config.queues.max_receive_count == 3
        assert config.ingestion.mode == "queue"
        assert config.ingestion.allowed_extensions == [".jpg", ".jpeg", ".png"]
        assert config.mail.recipient == "test@example.com"
        assert config.mail.sender == "no-reply@example.com"


class TestConfigSources:
    def test_nested_env_vars(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GALLERY_CATALOG__TABLE_NAME", "photos")
        monkeypatch.setenv("GALLERY_STORAGE__DEFAULT_CONTAINER", "uploads")
        monkeypatch.setenv("GALLERY_MAIL__RECIPIENT", "owner@example.com")

        config = Config()

        assert config.catalog.table_name == "photos"
        assert config.storage.default_container == "uploads"
        assert config.mail.recipient == "owner@example.com"

    def test_yaml_file(self, tmp_path, monkeypatch: pytest.MonkeyPatch):
        config_file = tmp_path / "gallery.yaml"
        config_file.write_text(
            "topics:\n  images: photo-topic\ningestion:\n  mode: direct\n"
        )
        monkeypatch.setenv("GALLERY_CONFIG_FILE", str(config_file))

        config = Config()

        assert config.topics.images == "photo-topic"
        assert config.ingestion.mode == "direct"

    def test_env_wins_over_yaml(self, tmp_path, monkeypatch: pytest.MonkeyPatch):
        config_file = tmp_path / "gallery.yaml"
        config_file.write_text("mail:\n  sender: yaml@example.com\n")
        monkeypatch.setenv("GALLERY_CONFIG_FILE", str(config_file))
        monkeypatch.setenv("GALLERY_MAIL__SENDER", "env@example.com")

        assert Config().mail.sender == "env@example.com"

    def test_missing_yaml_file_is_ignored(self, tmp_path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GALLERY_CONFIG_FILE", str(tmp_path / "missing.yaml"))
        assert Config().topics.images == "image-topic"


class TestConfigValidation:
    def test_receive_count_must_be_positive(self):
        with pytest.raises(ValidationError):
            QueuesConfig(max_receive_count=0)

    def test_unknown_ingestion_mode(self):
        with pytest.raises(ValidationError):
            Config(ingestion={"mode": "carrier-pigeon"})


class TestConfigureLogging:
    def test_sets_level_and_single_handler(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("GALLERY_LOG_FILE", raising=False)
        root = logging.getLogger()
        saved_level, saved_handlers = root.level, root.handlers[:]
        try:
            configure_logging(LoggingConfig(level="DEBUG"))
            configure_logging(LoggingConfig(level="DEBUG"))

            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_log_file(self, tmp_path, monkeypatch: pytest.MonkeyPatch):
        log_file = tmp_path / "logs" / "gallery.log"
        monkeypatch.setenv("GALLERY_LOG_FILE", str(log_file))
        root = logging.getLogger()
        saved_level, saved_handlers = root.level, root.handlers[:]
        try:
            configure_logging(LoggingConfig())
            logging.getLogger("gallery.test").info("hello")
            for handler in root.handlers:
                handler.flush()

            assert "hello" in log_file.read_text()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
