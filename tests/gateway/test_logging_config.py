"""日志配置测试

测试内容：
1. 密钥字段遮蔽
2. homie.sync 事件补充账号与同步模式
3. homie.sync 日志级别单独配置
"""

import logging

import pytest
from homie.gateway.middleware.logging_config import (
    REDACTED,
    SYNC_LOGGER_NAME,
    SyncContextInjector,
    redact_secrets,
    setup_logging,
)
from homie.sync import SyncConfig


@pytest.fixture
def restore_levels():
    root = logging.getLogger()
    sync = logging.getLogger(SYNC_LOGGER_NAME)
    saved = (root.level, sync.level)
    yield
    root.setLevel(saved[0])
    sync.setLevel(saved[1])


class TestRedactSecrets:
    def test_masks_secret_fields(self):
        event = {
            "event": "remote_configured",
            "remote_api_key": "sk-live",
            "Authorization": "Bearer x",
        }

        result = redact_secrets(None, "info", event)

        assert result["remote_api_key"] == REDACTED
        assert result["Authorization"] == REDACTED
        assert result["event"] == "remote_configured"

    def test_leaves_empty_secret_alone(self):
        result = redact_secrets(None, "info", {"event": "x", "api_key": ""})
        assert result["api_key"] == ""


class TestSyncContextInjector:
    def test_adds_defaults_to_sync_events(self):
        inject = SyncContextInjector("acct-1", "rest")

        result = inject(
            None, "info", {"event": "sync_pull_start", "logger": "homie.sync.reconciler"}
        )

        assert result["account_id"] == "acct-1"
        assert result["sync_mode"] == "rest"

    def test_event_value_wins(self):
        inject = SyncContextInjector("acct-1", "rest")

        result = inject(
            None,
            "info",
            {"event": "sync_pull_start", "logger": "homie.sync.reconciler", "account_id": "acct-2"},
        )

        assert result["account_id"] == "acct-2"

    def test_other_loggers_untouched(self):
        inject = SyncContextInjector("acct-1", "rest")

        result = inject(
            None, "info", {"event": "task_added", "logger": "homie.core.store.task_store"}
        )

        assert "account_id" not in result
        assert "sync_mode" not in result

    def test_similar_prefix_not_matched(self):
        inject = SyncContextInjector("acct-1", "rest")
        result = inject(None, "info", {"event": "x", "logger": "homie.synchronizer"})
        assert "account_id" not in result


class TestSetupLogging:
    def test_sync_level_configured_separately(self, monkeypatch, restore_levels):
        monkeypatch.setenv("HOMIE_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("HOMIE_SYNC_LOG_LEVEL", "DEBUG")

        setup_logging(SyncConfig(account_id="acct-1"))

        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger(SYNC_LOGGER_NAME).level == logging.DEBUG

    def test_sync_level_follows_root_by_default(self, monkeypatch, restore_levels):
        monkeypatch.setenv("HOMIE_LOG_LEVEL", "ERROR")
        monkeypatch.delenv("HOMIE_SYNC_LOG_LEVEL", raising=False)

        setup_logging()

        assert logging.getLogger(SYNC_LOGGER_NAME).level == logging.ERROR

    def test_unknown_level_falls_back_to_info(self, monkeypatch, restore_levels):
        monkeypatch.setenv("HOMIE_LOG_LEVEL", "chatty")
        monkeypatch.delenv("HOMIE_SYNC_LOG_LEVEL", raising=False)

        setup_logging()

        assert logging.getLogger().level == logging.INFO
