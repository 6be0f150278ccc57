from typing import Optional, Any, Dict

class ShotMatchError(Exception):
    """Base exception for all shot match errors"""

    def __init__(
            self,
            message,
            error_code: Optional[str] = None,
            details: Optional[Dict[str, Any]] = None,
            original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the exception into a dictionary."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'details': self.details,
            'original_error': str(self.original_error) if self.original_error else None
        }

class AnalysisError(ShotMatchError):
    """Base class for recoverable analysis errors."""
    pass

class NoSubjectDetected(AnalysisError):
    """No keypoint cleared the confidence threshold."""
    pass

class NoFaceDetected(AnalysisError):
    """No face box available, lighting is left empty."""
    pass

class InvalidInput(AnalysisError):
    """Malformed image or keypoint data."""
    pass

class DetectorError(ShotMatchError):
    """Pose / face detector failures before they are mapped."""
    pass

class ConfigurationError(ShotMatchError):
    """Configuration and settings related errors."""
    pass

class SessionError(ShotMatchError):
    """Guidance session lifecycle errors."""
    pass
