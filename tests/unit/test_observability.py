"""Tests for observability/logger.py and observability/metrics.py"""
import io
import json
import logging
import sys


class TestStructuredFormatter:
    def _get_record(self, msg, level=logging.INFO, exc_info=None, extra_fields=None):
        record = logging.LogRecord(
            name="imagedrop.test",
            level=level,
            pathname="",
            lineno=0,
            msg=msg,
            args=(),
            exc_info=exc_info,
        )
        if extra_fields is not None:
            record.extra_fields = extra_fields
        return record

    def test_basic_format(self):
        from imagedrop.observability.logger import StructuredFormatter

        result = json.loads(StructuredFormatter().format(self._get_record("hello")))
        assert result["message"] == "hello"
        assert result["level"] == "INFO"
        assert result["logger"] == "imagedrop.test"
        assert "ts" in result

    def test_extra_fields_merged(self):
        from imagedrop.observability.logger import StructuredFormatter

        record = self._get_record("probed", extra_fields={"width": 640, "height": 480})
        result = json.loads(StructuredFormatter().format(record))
        assert result["width"] == 640
        assert result["height"] == 480

    def test_non_json_values_stringified(self):
        from imagedrop.errors import ErrorKind
        from imagedrop.observability.logger import StructuredFormatter

        record = self._get_record("failed", extra_fields={"cause": OSError("nope")})
        result = json.loads(StructuredFormatter().format(record))
        assert result["cause"] == "nope"

        record = self._get_record("failed", extra_fields={"kind": ErrorKind.DECODE_FAILED})
        assert json.loads(StructuredFormatter().format(record))["kind"] == "decode_failed"

    def test_exception_info_included(self):
        from imagedrop.observability.logger import StructuredFormatter

        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()
        record = self._get_record("error msg", exc_info=exc_info)
        result = json.loads(StructuredFormatter().format(record))
        assert "ValueError" in result["exception"]


class TestGetLogger:
    def test_returns_logger_with_handler(self):
        from imagedrop.observability.logger import get_logger

        logger = get_logger("imagedrop.test.unique1")
        assert isinstance(logger, logging.Logger)
        assert len(logger.handlers) > 0
        assert logger.propagate is False

    def test_string_level(self):
        from imagedrop.observability.logger import get_logger

        logger = get_logger("imagedrop.test.unique2", level="warning")
        assert logger.level == logging.WARNING

    def test_idempotent_no_duplicate_handlers(self):
        from imagedrop.observability.logger import get_logger

        name = "imagedrop.test.unique3"
        handler_count = len(get_logger(name).handlers)
        assert len(get_logger(name).handlers) == handler_count

    def test_custom_stream_receives_json(self):
        from imagedrop.observability.logger import get_logger

        stream = io.StringIO()
        logger = get_logger("imagedrop.test.stream_unique", stream=stream)
        logger.info("uploaded", extra={"extra_fields": {"ref": "asset-1"}})
        line = json.loads(stream.getvalue().strip())
        assert line["message"] == "uploaded"
        assert line["ref"] == "asset-1"


class TestMetricsHook:
    def test_noop_satisfies_protocol(self):
        from imagedrop.observability.metrics import MetricsHook, NoopMetricsHook

        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_noop_methods_return_none(self):
        from imagedrop.observability.metrics import NoopMetricsHook

        hook = NoopMetricsHook()
        assert hook.increment("imagedrop.attempts_total", tags={"source": "url"}) is None
        assert hook.timing("imagedrop.attempt_duration_ms", 12.5) is None

    def test_object_missing_methods_is_not_a_hook(self):
        from imagedrop.observability.metrics import MetricsHook

        class OnlyIncrement:
            def increment(self, name, value=1, tags=None):
                pass

        assert not isinstance(OnlyIncrement(), MetricsHook)

    def test_backend_with_extra_methods_is_a_hook(self):
        from imagedrop.observability.metrics import MetricsHook

        class StatsdLike:
            def increment(self, name, value=1, tags=None):
                pass

            def timing(self, name, ms, tags=None):
                pass

            def gauge(self, name, value, tags=None):
                pass

        assert isinstance(StatsdLike(), MetricsHook)
