"""
Logger core tests: filtering, capture, fan-out, timing and retrieval.
"""

from __future__ import annotations

import asyncio
import io
import re
import threading

import pytest

from fanlog import LogCategory, Logger, LoggerConfiguration, LogLevel, SourceLocation
from fanlog.sinks import CLEARED_MARKER

FILE_LINE = re.compile(
    r"^\[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z\] \[(?P<level>\w+)\] \[(?P<category>[^\]]+)\] "
    r"\[(?P<file>[^:]+):(?P<line>\d+)\] (?P<function>\S+) - (?P<message>.*)$"
)


def _lines(logger: Logger) -> list[str]:
    assert logger.flush(timeout=5)
    return (logger.get_log_contents() or "").splitlines()


class TestFiltering:
    def test_below_minimum_is_dropped(self, logger, console_stream, os_backend) -> None:
        logger.configure(LoggerConfiguration.debug().model_copy(update={"log_level": LogLevel.WARNING}))
        logger.start_capturing_logs()

        logger.debug("quiet")
        logger.info("quiet")

        assert logger.get_captured_logs() == []
        assert _lines(logger) == []
        assert console_stream.getvalue() == ""
        os_backend.syslog.assert_not_called()

    @pytest.mark.parametrize("method", ["debug", "info", "warning", "error", "fatal"])
    def test_each_level_at_or_above_minimum_is_captured_once(self, logger, method) -> None:
        logger.start_capturing_logs()

        getattr(logger, method)("message", category=LogCategory.NETWORK, context={"k": "v"})

        entries = logger.get_captured_logs()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.level is LogLevel[method.upper()]
        assert entry.category == "Network"
        assert entry.message == "message"
        assert entry.context == {"k": "v"}

    def test_levels_between_thresholds(self, logger) -> None:
        logger.configure(LoggerConfiguration(log_level="error"))
        logger.start_capturing_logs()

        logger.warning("no")
        logger.error("yes")
        logger.fatal("also")

        assert [e.message for e in logger.get_captured_logs()] == ["yes", "also"]


class TestCapture:
    def test_start_then_read_is_empty(self, logger) -> None:
        logger.info("before")
        logger.start_capturing_logs()
        assert logger.get_captured_logs() == []

    def test_not_capturing_by_default(self, logger) -> None:
        logger.info("x")
        assert logger.is_capturing is False
        assert logger.get_captured_logs() == []

    def test_sequential_calls_keep_order(self, logger) -> None:
        logger.start_capturing_logs()
        for i in range(10):
            logger.info(f"Concurrent {i}")

        assert [e.message for e in logger.get_captured_logs()] == [f"Concurrent {i}" for i in range(10)]

    def test_concurrent_callers(self, logger) -> None:
        logger.start_capturing_logs()
        threads = [threading.Thread(target=logger.info, args=(f"Concurrent {i}",)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        messages = [e.message for e in logger.get_captured_logs()]
        assert len(messages) == 10
        assert set(messages) == {f"Concurrent {i}" for i in range(10)}

    def test_clear_while_capturing(self, logger) -> None:
        logger.start_capturing_logs()
        logger.info("one")
        logger.clear_captured_logs()

        assert logger.get_captured_logs() == []
        assert logger.is_capturing is True

        logger.info("two")
        assert [e.message for e in logger.get_captured_logs()] == ["two"]

    def test_stop_keeps_buffer(self, logger) -> None:
        logger.start_capturing_logs()
        logger.info("kept")
        logger.stop_capturing_logs()
        logger.info("ignored")

        assert [e.message for e in logger.get_captured_logs()] == ["kept"]

    def test_restart_clears_buffer(self, logger) -> None:
        logger.start_capturing_logs()
        logger.info("old")
        logger.start_capturing_logs()
        assert logger.get_captured_logs() == []

    def test_entry_is_visible_before_sinks_finish(self, logger) -> None:
        gate = threading.Event()
        logger._dispatcher.submit(gate.wait)
        logger.start_capturing_logs()

        logger.info("immediate")

        assert [e.message for e in logger.get_captured_logs()] == ["immediate"]
        gate.set()

    def test_entry_ids_are_unique(self, logger) -> None:
        logger.start_capturing_logs()
        for _ in range(50):
            logger.info("same")
        assert len({e.id for e in logger.get_captured_logs()}) == 50

    def test_source_location_is_the_caller(self, logger) -> None:
        logger.start_capturing_logs()
        logger.info("here")
        entry = logger.get_captured_logs()[0]

        assert entry.file_name == "test_core.py"
        assert entry.function == "test_source_location_is_the_caller"
        assert entry.line > 0

    def test_explicit_source_location(self, logger) -> None:
        logger.start_capturing_logs()
        logger.info("here", source=SourceLocation(file="/x/y.py", function="handler", line=7))
        entry = logger.get_captured_logs()[0]

        assert (entry.file_name, entry.function, entry.line) == ("y.py", "handler", 7)

    def test_context_values_are_strings(self, logger) -> None:
        logger.start_capturing_logs()
        logger.info("ctx", context={"attempt": 3, "ok": True})
        assert logger.get_captured_logs()[0].context == {"attempt": "3", "ok": "True"}

    def test_message_with_percent_signs(self, logger) -> None:
        logger.start_capturing_logs()
        logger.info("100% done %s")
        assert logger.get_captured_logs()[0].message == "100% done %s"


class TestFanOut:
    def test_file_line_format(self, logger) -> None:
        logger.warning("disk low", category=LogCategory.STORAGE, context={"free": "1MB"})

        lines = _lines(logger)
        assert len(lines) == 1
        match = FILE_LINE.match(lines[0])
        assert match is not None
        assert match["level"] == "warning"
        assert match["category"] == "Storage"
        assert match["file"] == "test_core.py"
        assert match["function"] == "test_file_line_format"
        assert match["message"] == "disk low [free=1MB]"

    def test_file_preserves_call_order(self, logger) -> None:
        for i in range(200):
            logger.info(f"line {i}")

        messages = [FILE_LINE.match(line)["message"] for line in _lines(logger)]
        assert messages == [f"line {i}" for i in range(200)]

    def test_file_order_per_thread_under_concurrent_callers(self, logger) -> None:
        threads_count, per_thread = 8, 50
        start = threading.Barrier(threads_count)

        def worker(n: int) -> None:
            start.wait()
            for i in range(per_thread):
                logger.info(f"t{n} {i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        messages = [FILE_LINE.match(line)["message"] for line in _lines(logger)]
        assert len(messages) == threads_count * per_thread
        for n in range(threads_count):
            seen = [int(m.split()[1]) for m in messages if m.startswith(f"t{n} ")]
            assert seen == list(range(per_thread))

    def test_console_output(self, logger, console_stream) -> None:
        logger.error("boom", category=LogCategory.NETWORK)
        logger.flush(timeout=5)
        assert console_stream.getvalue().startswith("❌ [Network] boom (test_core.py:")

    def test_os_output(self, logger, os_backend) -> None:
        logger.error("boom", category=LogCategory.NETWORK)
        logger.flush(timeout=5)
        os_backend.syslog.assert_called_once_with(os_backend.LOG_ERR, "com.example.tests: [Network] boom")

    def test_disabled_sinks_are_skipped(self, logger, console_stream, os_backend) -> None:
        logger.configure(
            LoggerConfiguration(
                enable_console_output=False,
                enable_file_logging=False,
                enable_os_logging=False,
            )
        )
        logger.info("nowhere")

        assert _lines(logger) == []
        assert console_stream.getvalue() == ""
        os_backend.syslog.assert_not_called()

    def test_warning_only_console_scenario(self, logger, console_stream) -> None:
        logger.info("seed")
        logger.flush(timeout=5)
        before = logger.get_log_contents()

        logger.configure(
            LoggerConfiguration(
                log_level=LogLevel.WARNING,
                enable_file_logging=False,
                enable_console_output=True,
                enable_os_logging=False,
            )
        )
        logger.start_capturing_logs()
        logger.debug("x")
        logger.warning("y")
        logger.flush(timeout=5)

        assert [e.message for e in logger.get_captured_logs()] == ["y"]
        assert logger.get_log_contents() == before
        assert "y (test_core.py:" in console_stream.getvalue()
        assert "x (test_core.py:" not in console_stream.getvalue()

    def test_sink_failure_never_reaches_caller(self, log_dir, os_backend) -> None:
        class BrokenStream(io.StringIO):
            def write(self, s: str) -> int:
                raise RuntimeError("console gone")

        with Logger(
            LoggerConfiguration.debug(),
            log_dir=log_dir,
            console_stream=BrokenStream(),
            os_backend=os_backend,
        ) as log:
            log.error("still logged")
            assert log.flush(timeout=5)
            assert "still logged" in log.get_log_contents()
            os_backend.syslog.assert_called_once()

    def test_rotation_through_logger(self, logger) -> None:
        logger.configure(LoggerConfiguration.debug().model_copy(update={"max_file_size": 512}))
        for i in range(20):
            logger.info(f"padding {i} " + "x" * 40)
        logger.flush(timeout=5)

        backup = logger.log_dir / "app.old.log"
        assert backup.exists()
        assert sorted(p.name for p in logger.log_dir.iterdir()) == ["app.log", "app.old.log"]
        assert logger.log_file_path.stat().st_size <= 512 + 200


class TestMeasure:
    def test_returns_result_and_logs_duration(self, logger) -> None:
        logger.start_capturing_logs()

        result = logger.measure("X", lambda: 42)

        assert result == 42
        entries = logger.get_captured_logs()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.message == "⏱️ X completed"
        assert entry.level is LogLevel.DEBUG
        assert entry.category == "Performance"
        assert entry.context["operation"] == "X"
        assert float(entry.context["durationMs"]) >= 0
        assert re.fullmatch(r"\d+\.\d{2}", entry.context["durationMs"])

    def test_custom_level_and_category(self, logger) -> None:
        logger.start_capturing_logs()
        logger.measure("query", lambda: None, category=LogCategory.DATABASE, level=LogLevel.INFO)

        entry = logger.get_captured_logs()[0]
        assert (entry.level, entry.category) == (LogLevel.INFO, "Database")

    def test_exception_propagates_without_entry(self, logger) -> None:
        logger.start_capturing_logs()

        def fail() -> None:
            raise KeyError("missing")

        with pytest.raises(KeyError):
            logger.measure("fails", fail)
        assert logger.get_captured_logs() == []

    def test_filtered_measure_still_returns(self, logger) -> None:
        logger.configure(LoggerConfiguration(log_level=LogLevel.INFO))
        logger.start_capturing_logs()

        assert logger.measure("quiet", lambda: "value") == "value"
        assert logger.get_captured_logs() == []

    @pytest.mark.asyncio
    async def test_ameasure(self, logger) -> None:
        logger.start_capturing_logs()

        async def work() -> str:
            await asyncio.sleep(0.01)
            return "done"

        assert await logger.ameasure("async op", work) == "done"
        entry = logger.get_captured_logs()[0]
        assert entry.context["operation"] == "async op"
        assert float(entry.context["durationMs"]) >= 9.0

    @pytest.mark.asyncio
    async def test_ameasure_propagates(self, logger) -> None:
        logger.start_capturing_logs()

        async def fail() -> None:
            raise ValueError("nope")

        with pytest.raises(ValueError):
            await logger.ameasure("fails", fail)
        assert logger.get_captured_logs() == []


class TestRetrieval:
    def test_log_file_path(self, logger, log_dir) -> None:
        assert logger.get_log_file_path() == log_dir / "app.log"

    def test_contents(self, logger) -> None:
        logger.info("persisted")
        assert any("persisted" in line for line in _lines(logger))

    def test_clear_logs(self, logger) -> None:
        logger.info("one")
        logger.info("two")
        logger.clear_logs()

        assert logger.get_log_contents() == CLEARED_MARKER + "\n"

    def test_no_file_without_file_logging(self, log_dir, os_backend) -> None:
        with Logger(LoggerConfiguration.production(), log_dir=log_dir, os_backend=os_backend) as log:
            log.info("os only")
            log.flush(timeout=5)
            log.clear_logs()

            assert log.get_log_file_path() is None
            assert log.get_log_contents() is None

    def test_enabling_file_logging_later(self, log_dir, os_backend) -> None:
        with Logger(LoggerConfiguration.production(), log_dir=log_dir, os_backend=os_backend) as log:
            log.configure(LoggerConfiguration.production().model_copy(update={"enable_file_logging": True}))
            log.info("now on disk")
            log.flush(timeout=5)

            assert log.get_log_file_path() is not None
            assert "now on disk" in log.get_log_contents()


class TestLifecycle:
    def test_close_is_idempotent(self, logger) -> None:
        logger.close()
        logger.close()

    def test_close_drains_pending_entries(self, logger) -> None:
        for i in range(50):
            logger.info(f"pending {i}")
        logger.close()

        assert "pending 49" in logger.get_log_contents()

    def test_logging_after_close_is_silent(self, logger) -> None:
        logger.close()
        logger.info("late")

        assert logger.flush(timeout=1)
        assert "late" not in (logger.get_log_contents() or "")

    def test_closing_one_logger_keeps_others_subsystem(self, tmp_path, os_backend) -> None:
        quiet = LoggerConfiguration(enable_console_output=False, enable_file_logging=False)
        with Logger(quiet, log_dir=tmp_path / "app", subsystem="com.example.app", os_backend=os_backend) as app:
            with Logger(quiet, log_dir=tmp_path / "worker", subsystem="com.example.worker", os_backend=os_backend):
                pass
            app.info("still tagged")
            assert app.flush(timeout=5)

        os_backend.closelog.assert_not_called()
        os_backend.syslog.assert_called_once_with(os_backend.LOG_INFO, "com.example.app: [General] still tagged")

    def test_clear_logs_after_close(self, logger) -> None:
        logger.info("one")
        logger.close()
        logger.clear_logs()

        assert logger.get_log_contents() == CLEARED_MARKER + "\n"
