import logging

from shotplanner.utils.logging_setup import (
    ContextFilter,
    LOG_FORMAT,
    LOG_OPERATION,
    LOG_PROJECT_ID,
    LOG_REQUEST_ID,
    configure_logging,
    log_context,
    parse_level,
)


def _record():
    return logging.LogRecord("test.logger", logging.INFO, __file__, 1, "hello", (), None)


def test_context_filter_defaults():
    record = _record()
    ContextFilter().filter(record)
    assert record.request_id == "-"
    assert record.project_id == "-"
    assert record.operation == "-"


def test_context_filter_injects_values():
    request_token = LOG_REQUEST_ID.set("req_1")
    project_token = LOG_PROJECT_ID.set("project_1")
    operation_token = LOG_OPERATION.set("export")
    try:
        record = _record()
        ContextFilter().filter(record)
        assert record.request_id == "req_1"
        assert record.project_id == "project_1"
        assert record.operation == "export"
    finally:
        LOG_OPERATION.reset(operation_token)
        LOG_PROJECT_ID.reset(project_token)
        LOG_REQUEST_ID.reset(request_token)


def test_log_context_sets_and_restores():
    with log_context(project_id="p1", operation="parse"):
        record = _record()
        ContextFilter().filter(record)
        assert record.project_id == "p1"
        assert record.operation == "parse"
        assert record.request_id == "-"
    record = _record()
    ContextFilter().filter(record)
    assert record.project_id == "-"
    assert record.operation == "-"


def test_formatting_uses_expected_fields():
    record = _record()
    ContextFilter().filter(record)
    formatted = logging.Formatter(LOG_FORMAT).format(record)
    assert "test.logger" in formatted
    assert "hello" in formatted
    assert "|" in formatted


def test_parse_level():
    assert parse_level("debug") == logging.DEBUG
    assert parse_level(logging.WARNING) == logging.WARNING
    assert parse_level("nonsense") == logging.INFO


def test_configure_logging_writes_context_to_file(tmp_path):
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_filters = list(root.filters)
    saved_level = root.level
    saved_flag = getattr(root, "_shotplanner_logging_configured", False)
    log_file = tmp_path / "logs" / "app.log"
    try:
        configure_logging(log_file=str(log_file), level="INFO", force=True)
        with log_context(request_id="abc123"):
            logging.getLogger("shotplanner.test").info("written")
        for handler in root.handlers:
            handler.flush()
        text = log_file.read_text(encoding="utf-8")
        assert "written" in text
        assert "abc123" in text
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            if handler not in saved_handlers:
                handler.close()
        for log_filter in list(root.filters):
            root.removeFilter(log_filter)
        for handler in saved_handlers:
            root.addHandler(handler)
        for log_filter in saved_filters:
            root.addFilter(log_filter)
        root.setLevel(saved_level)
        root._shotplanner_logging_configured = saved_flag


def test_nested_log_context_refines_outer_values():
    with log_context(request_id="req_9", operation="POST /api/export/queue"):
        with log_context(project_id="p7", operation="export"):
            record = _record()
            ContextFilter().filter(record)
            assert (record.request_id, record.project_id, record.operation) == ("req_9", "p7", "export")
        record = _record()
        ContextFilter().filter(record)
        assert (record.request_id, record.project_id, record.operation) == ("req_9", "-", "POST /api/export/queue")
