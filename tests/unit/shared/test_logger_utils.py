import json
import logging

from event_pipeline.utils.logger import _JsonFormatter, get_logger


def _format(**extra) -> dict:
    record = logging.LogRecord("event_pipeline.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(_JsonFormatter().format(record))


def test_formatter_emits_json_with_extras() -> None:
    """
    Given: extra 필드가 포함된 로그 레코드
    When: JSON 포맷팅
    Then: 메시지와 extra 필드가 함께 출력
    """
    payload = _format(pipeline="test-pipeline", node_count=4)

    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "event_pipeline.test"
    assert payload["pipeline"] == "test-pipeline"
    assert payload["node_count"] == 4
    assert "timestamp" in payload
    assert "args" not in payload


def test_formatter_includes_environment_and_correlation(monkeypatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "staging")

    payload = _format(correlation_id="cid-1")

    assert payload["environment"] == "staging"
    assert payload["correlation_id"] == "cid-1"


def test_get_logger_adapter_has_extras() -> None:
    """
    Given: 상관관계 ID가 설정된 로거
    When: extra 포함 로그 기록
    Then: 예외 없이 처리되고 extra가 병합됨
    """
    log = get_logger(__name__, correlation_id="abc")
    msg, kwargs = log.process("hello", {"extra": {"foo": "bar"}})

    assert msg == "hello"
    assert kwargs["extra"]["foo"] == "bar"
    assert kwargs["extra"]["correlation_id"] == "abc"
    log.info("hello", extra={"foo": "bar"})


def test_get_logger_respects_log_level(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")

    log = get_logger("event_pipeline.level_test")

    assert log.logger.level == logging.WARNING
    assert len(log.logger.handlers) == 1
