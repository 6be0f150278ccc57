from .exceptions import (
    ShotMatchError,
    AnalysisError,
    NoSubjectDetected,
    NoFaceDetected,
    InvalidInput,
    DetectorError,
    ConfigurationError,
    SessionError,
)
from .logger import get_logger, init_logging, log_performance, bind_session_context, PerformanceTimer
from .threading_utils import LatestValueCell, ThreadPoolManager, get_thread_manager

__all__ = [
    'ShotMatchError',
    'AnalysisError',
    'NoSubjectDetected',
    'NoFaceDetected',
    'InvalidInput',
    'DetectorError',
    'ConfigurationError',
    'SessionError',
    'get_logger',
    'init_logging',
    'log_performance',
    'bind_session_context',
    'PerformanceTimer',
    'LatestValueCell',
    'ThreadPoolManager',
    'get_thread_manager',
]
