import asyncio
import json
import logging
import threading

import pytest
import structlog

import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from shotmatch.utils.exceptions import NoSubjectDetected, ShotMatchError
from shotmatch.utils.logger import (
    add_performance_processor,
    bind_session_context,
    exception_processor,
    get_logger,
    log_performance,
    setup_logging,
)
from shotmatch.utils.threading_utils import LatestValueCell, PerformanceMonitor, ThreadPoolManager


class TestExceptions:
    """Test suite for the error hierarchy."""

    def test_error_code_defaults_to_class_name(self):
        error = NoSubjectDetected("nobody there", details={'keypoint_count': 0})

        assert error.error_code == "NoSubjectDetected"
        assert error.to_dict() == {
            'error_type': 'NoSubjectDetected',
            'error_code': 'NoSubjectDetected',
            'message': 'nobody there',
            'details': {'keypoint_count': 0},
            'original_error': None,
        }

    def test_original_error_kept(self):
        cause = RuntimeError("boom")
        error = ShotMatchError("wrapped", original_error=cause)
        assert error.to_dict()['original_error'] == "boom"


class TestLogProcessors:
    """Test suite for custom structlog processors."""

    def test_system_metrics_on_performance_events(self):
        event = add_performance_processor(None, "info", {'event': 'frame_analyzed'})
        assert set(event['system_metrics']) == {'cpu_percent', 'memory_percent', 'available_memory_mb'}

    def test_other_events_untouched(self):
        event = add_performance_processor(None, "info", {'event': 'tick_dropped'})
        assert 'system_metrics' not in event

    def test_project_exception_flattened(self):
        event = exception_processor(None, "error", {'exception': NoSubjectDetected("nobody")})
        assert event['error_code'] == "NoSubjectDetected"

    def test_foreign_exception_summarized(self):
        event = exception_processor(None, "error", {'exception': ValueError("bad")})
        assert event['exception_type'] == "ValueError"
        assert event['exception_message'] == "bad"

    def test_get_logger(self):
        logger = get_logger("shotmatch.tests")
        logger.info("logger_smoke_test", value=1)

    def test_setup_logging_writes_json(self, tmp_path):
        """Events land in the rotating file as JSON with bound context."""
        log_file = tmp_path / "logs" / "run.log"
        root = logging.getLogger()
        try:
            logger = setup_logging(level="debug", log_file=log_file, structured=True)
            bind_session_context(session_id="abc123")
            logger.info("frame_analyzed", sequence=1)
            for handler in root.handlers:
                handler.flush()

            record = json.loads(log_file.read_text(encoding='utf-8').strip().splitlines()[-1])

            assert record['event'] == "frame_analyzed"
            assert record['session_id'] == "abc123"
            assert record['app'] == "shotmatch"
            assert "system_metrics" in record
        finally:
            structlog.contextvars.clear_contextvars()
            structlog.reset_defaults()
            for handler in root.handlers[:]:
                root.removeHandler(handler)
                handler.close()


class TestLogPerformance:
    """Test suite for the log_performance decorator."""

    def test_sync_function(self):
        @log_performance("sync_op")
        def add(a, b):
            return a + b

        assert add(1, 2) == 3

    @pytest.mark.asyncio
    async def test_async_function(self):
        @log_performance("async_op")
        async def double(value):
            await asyncio.sleep(0)
            return value * 2

        assert await double(4) == 8

    def test_exception_propagates(self):
        @log_performance("failing_op")
        def fail():
            raise NoSubjectDetected("nobody")

        with pytest.raises(NoSubjectDetected):
            fail()


class TestLatestValueCell:
    """Test suite for LatestValueCell."""

    def test_last_write_wins(self):
        cell = LatestValueCell()
        assert cell.get() is None

        cell.set("first")
        version = cell.set("second")

        assert cell.get() == "second"
        assert version == 2
        assert cell.version == 2

    def test_concurrent_writers(self):
        cell = LatestValueCell(0)

        def writer(start):
            for value in range(start, start + 1000):
                cell.set(value)

        threads = [threading.Thread(target=writer, args=(i * 1000,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert cell.version == 4000
        assert cell.get() in (999, 1999, 2999, 3999)


class TestThreadPoolManager:
    """Test suite for ThreadPoolManager."""

    @pytest.mark.asyncio
    async def test_runs_off_loop_thread(self):
        manager = ThreadPoolManager(max_workers=1)
        try:
            name = await manager.run_analysis_task(lambda: threading.current_thread().name)
            assert name.startswith("analysis")
            assert manager.get_performance_stats()['analysis']['count'] == 1
        finally:
            manager.shutdown()

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        manager = ThreadPoolManager(max_workers=1)

        def fail():
            raise NoSubjectDetected("nobody")

        try:
            with pytest.raises(NoSubjectDetected):
                await manager.run_analysis_task(fail)
        finally:
            manager.shutdown()

    def test_monitor_window(self):
        monitor = PerformanceMonitor(max_samples=3)
        for duration in (0.001, 0.002, 0.003, 0.004):
            monitor.add_sample(duration)

        stats = monitor.get_stat()
        assert stats['count'] == 3
        assert stats['min_ms'] == 2.0
        assert stats['max_ms'] == 4.0
