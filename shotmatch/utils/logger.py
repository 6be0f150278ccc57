import functools
import inspect
import logging
import logging.handlers
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import psutil
import structlog
from structlog.types import FilteringBoundLogger

from config.settings import get_settings
from .exceptions import ShotMatchError

# events that get a system metrics snapshot attached
PERFORMANCE_EVENTS = ('operation_completed', 'frame_analyzed', 'reference_analyzed')


class PerformanceTimer:
    """Context manager that logs how long an operation took"""

    def __init__(self, logger: FilteringBoundLogger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug("operation_started", operation=self.operation)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = round((time.perf_counter() - self.start_time) * 1000, 2)

        if exc_type is None:
            self.logger.info(
                "operation_completed",
                operation=self.operation,
                duration_ms=self.duration_ms,
            )
            return

        # project errors at warning, anything else at error
        log = self.logger.warning if issubclass(exc_type, ShotMatchError) else self.logger.error
        log(
            "operation_failed",
            operation=self.operation,
            duration_ms=self.duration_ms,
            error_type=exc_type.__name__,
            error_message=str(exc_val) if exc_val else None,
        )


def add_context_processor(logger, method_name, event_dict):
    """Stamp UTC time and the running app's identity."""
    identity = get_settings().system
    event_dict['timestamp'] = datetime.now(timezone.utc).isoformat()
    event_dict.setdefault('app', identity.name)
    event_dict.setdefault('app_version', identity.version)
    return event_dict


def add_performance_processor(logger, method_name, event_dict):
    """Attach process-level cpu/memory to timing events."""
    if event_dict.get('event') in PERFORMANCE_EVENTS:
        memory = psutil.virtual_memory()
        event_dict['system_metrics'] = {
            'cpu_percent': psutil.cpu_percent(),
            'memory_percent': memory.percent,
            'available_memory_mb': memory.available // (1024 * 1024),
        }
    return event_dict


def exception_processor(logger, method_name, event_dict):
    """Flatten project errors into the event, summarize foreign ones."""
    exc = event_dict.get('exception')
    if isinstance(exc, ShotMatchError):
        event_dict.update(exc.to_dict())
    elif isinstance(exc, Exception):
        event_dict['exception_type'] = exc.__class__.__name__
        event_dict['exception_message'] = str(exc)
    return event_dict


def _build_handlers(level: int, log_file: Path, console: bool) -> list:
    settings = get_settings()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handlers = [
        logging.handlers.RotatingFileHandler(
            filename=str(log_file),
            maxBytes=settings.logging.max_file_size_mb * 1024 * 1024,
            backupCount=settings.logging.backup_count,
            encoding='utf-8',
        )
    ]
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))

    # structlog already rendered the line
    formatter = logging.Formatter('%(message)s')
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
        level: Optional[str] = None,
        log_file: Optional[Path] = None,
        structured: Optional[bool] = None,
) -> FilteringBoundLogger:
    """
    Route structlog through stdlib logging with a rotating file handler.

    Arguments override the ``system/logging.yaml`` values; the file handler
    always writes, the console handler follows ``console_output``.
    """
    settings = get_settings()
    level_name = (level or settings.logging.level).upper()
    numeric_level = getattr(logging, level_name)
    if structured is None:
        structured = settings.logging.format == "structured"

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    for handler in _build_handlers(
            numeric_level,
            Path(log_file or settings.logging.file_path),
            settings.logging.console_output,
    ):
        root.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            add_context_processor,
            add_performance_processor,
            exception_processor,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(ensure_ascii=False) if structured
            else structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    return structlog.get_logger(settings.system.name)


def get_logger(name: Optional[str] = None) -> FilteringBoundLogger:
    """Named structlog logger, defaults to the app name"""
    return structlog.get_logger(name or get_settings().system.name)


def bind_session_context(**values) -> None:
    """Attach key/values (session id) to every event logged from the current context"""
    structlog.contextvars.bind_contextvars(**values)


def log_performance(operation: str):
    """Decorator that wraps sync or async callables in a PerformanceTimer"""
    def decorator(func):
        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                with PerformanceTimer(get_logger(func.__module__), operation):
                    return await func(*args, **kwargs)
            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            with PerformanceTimer(get_logger(func.__module__), operation):
                return func(*args, **kwargs)
        return sync_wrapper

    return decorator


_logger: Optional[FilteringBoundLogger] = None


def init_logging(**overrides) -> FilteringBoundLogger:
    """Configure logging once for the host application"""
    global _logger
    _logger = setup_logging(**overrides)
    _logger.info("logging_system_initialized")
    return _logger


def get_global_logger() -> FilteringBoundLogger:
    global _logger
    if _logger is None:
        _logger = init_logging()
    return _logger
