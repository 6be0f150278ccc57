from .classifier import PositionZone, ShootingAngle, classify_position, classify_angle
from .snapshot import CompositionSnapshot, CompositionAnalyzer, build_snapshot
from .guidance import (
    Suggestion,
    SuggestionKind,
    MatchLevel,
    plan_guidance,
    diff,
    assess_match,
)
from .formatter import GuidanceFormatter, get_formatter

__all__ = [
    'PositionZone',
    'ShootingAngle',
    'classify_position',
    'classify_angle',
    'CompositionSnapshot',
    'CompositionAnalyzer',
    'build_snapshot',
    'Suggestion',
    'SuggestionKind',
    'MatchLevel',
    'plan_guidance',
    'diff',
    'assess_match',
    'GuidanceFormatter',
    'get_formatter',
]
