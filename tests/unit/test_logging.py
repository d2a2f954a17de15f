import json
import logging

import pytest
import structlog

from core.config.settings import LoggingSettings, Settings
from core.logging import CorrelationIdManager, configure_logging
from core.logging.correlation import correlation_scope
from core.utils.exceptions import ConfigurationError
from services.valuation.presenter import DiscountAdapter


def _settings(**logging_overrides):
    return Settings(_env_file=None, logging=LoggingSettings(**logging_overrides))


@pytest.fixture
def restore_logging():
    yield
    structlog.reset_defaults()
    logging.basicConfig(handlers=[logging.NullHandler()], force=True)


def _json_events(output):
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


def test_loggers_created_before_configuration_follow_level(capsys, restore_logging):
    adapter = DiscountAdapter()
    configure_logging(_settings(level="ERROR"), force=True)

    adapter.submit("abc")

    assert "Discount input rejected" not in capsys.readouterr().out


def test_json_pipeline_carries_component_and_correlation(capsys, restore_logging):
    adapter = DiscountAdapter()
    configure_logging(_settings(level="INFO", json_format=True), force=True)

    with correlation_scope("req-1", hub="jita"):
        adapter.submit("abc")

    events = [e for e in _json_events(capsys.readouterr().out)
              if e["event"] == "Discount input rejected"]
    assert len(events) == 1
    assert events[0]["level"] == "info"
    assert events[0]["component"] == "discount_adapter"
    assert events[0]["correlation_id"] == "req-1"
    assert events[0]["hub"] == "jita"


def test_file_handler_writes_to_logs_dir(tmp_path, restore_logging):
    logs_dir = tmp_path / "logs"
    configure_logging(
        _settings(console_enabled=False, file_enabled=True, logs_dir=str(logs_dir)),
        force=True,
    )

    DiscountAdapter().submit("0")
    for handler in logging.getLogger().handlers:
        handler.flush()

    content = (logs_dir / "appraisal.log").read_text(encoding="utf-8")
    assert "Discount input rejected" in content


def test_unusable_logs_dir_is_a_configuration_error(tmp_path, restore_logging):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ConfigurationError) as exc_info:
        configure_logging(
            _settings(console_enabled=False, file_enabled=True, logs_dir=str(blocker / "logs")),
            force=True,
        )
    assert exc_info.value.config_field == "logging.logs_dir"


def test_correlation_scope_restores_previous_id():
    outer = CorrelationIdManager.get_correlation_id()
    with correlation_scope() as generated:
        assert CorrelationIdManager.get_correlation_id() == generated
        with correlation_scope("inner") as inner:
            assert inner == "inner"
            assert CorrelationIdManager.get_correlation_id() == "inner"
        assert CorrelationIdManager.get_correlation_id() == generated
    assert CorrelationIdManager.get_correlation_id() == outer
