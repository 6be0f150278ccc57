from .guidance_session import GuidanceSession, GuidanceResult, Subscription, SessionState

__all__ = [
    'GuidanceSession',
    'GuidanceResult',
    'Subscription',
    'SessionState',
]
