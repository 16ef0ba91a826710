import json
import logging

import pytest

from core.logging_config import ColoredFormatter, LogContext, StructuredFormatter, get_logger, setup_logging
from core.settings import Settings


def make_record(**attributes) -> logging.LogRecord:
    record = logging.LogRecord("services.form_template_factory", logging.INFO, __file__, 10, "Built form template", (), None)
    for key, value in attributes.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers, level = root_logger.handlers[:], root_logger.level
    yield root_logger
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.mark.unit
class TestLogging:

    def test_structured_formatter(self):
        record = make_record(extra_fields={"dto_type": "PersonDto", "properties": 2}, request_id="abc")

        log_data = json.loads(StructuredFormatter().format(record))

        assert log_data["level"] == "INFO"
        assert log_data["message"] == "Built form template"
        assert log_data["dto_type"] == "PersonDto"
        assert log_data["properties"] == 2
        assert log_data["request_id"] == "abc"

    def test_colored_formatter_appends_context(self):
        record = make_record(extra_fields={"property": "age"})

        message = ColoredFormatter(fmt="%(levelname)s %(message)s").format(record)

        assert message.endswith("Built form template [property=age]")

    def test_context_helpers_attach_keyword_fields(self, caplog):
        logger = get_logger("tests.logging")

        with caplog.at_level(logging.DEBUG, logger="tests.logging"):
            logger.debug_ctx("Member missing on value", property="age")

        assert caplog.records[0].extra_fields == {"property": "age"}
        assert caplog.records[0].levelno == logging.DEBUG

    def test_disabled_levels_are_skipped(self, caplog):
        logger = get_logger("tests.logging.quiet")

        with caplog.at_level(logging.WARNING, logger="tests.logging.quiet"):
            logger.info_ctx("Not shown", property="age")

        assert caplog.records == []

    def test_log_context_sets_record_attributes(self):
        with LogContext(request_id="req-1"):
            record = logging.getLogRecordFactory()("x", logging.INFO, __file__, 1, "msg", (), None)

        assert record.request_id == "req-1"
        assert not hasattr(logging.getLogRecordFactory()("x", logging.INFO, __file__, 1, "msg", (), None), "request_id")

    def test_setup_logging(self, restore_root_logger):
        root_logger = setup_logging("debug", json_logs=True)

        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, StructuredFormatter)

        setup_logging("info", json_logs=False)

        assert isinstance(root_logger.handlers[0].formatter, ColoredFormatter)


@pytest.mark.unit
class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("HAL_FORMS_MAX_TEMPLATE_DEPTH", raising=False)

        current = Settings(_env_file=None)

        assert current.HAL_FORMS_MAX_TEMPLATE_DEPTH == 8
        assert current.HAL_FORMS_CAMEL_CASE_NAMES is True

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("HAL_FORMS_TEMPLATE_CACHE_SIZE", "16")
        monkeypatch.setenv("HAL_FORMS_CAMEL_CASE_OPTION_PROMPTS", "true")

        current = Settings(_env_file=None)

        assert current.HAL_FORMS_TEMPLATE_CACHE_SIZE == 16
        assert current.HAL_FORMS_CAMEL_CASE_OPTION_PROMPTS is True
