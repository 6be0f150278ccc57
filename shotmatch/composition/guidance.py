from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

from .classifier import PositionZone, ShootingAngle
from .snapshot import CompositionSnapshot

if TYPE_CHECKING:
    from .formatter import GuidanceFormatter

# area ratio difference tolerated before suggesting a distance change
AREA_RATIO_TOLERANCE = 0.1


class SuggestionKind(Enum):
    """Suggestion categories; values double as message template keys"""
    NO_SUBJECT = "no_subject"
    INFO_POSITION = "info_position"
    INFO_ANGLE = "info_angle"
    INFO_AREA_RATIO = "info_area_ratio"
    MOVE_CLOSER = "move_closer"
    MOVE_BACK = "move_back"
    REPOSITION = "reposition"
    ADJUST_ANGLE = "adjust_angle"
    READY = "ready"


CORRECTIVE_KINDS = frozenset({
    SuggestionKind.MOVE_CLOSER,
    SuggestionKind.MOVE_BACK,
    SuggestionKind.REPOSITION,
    SuggestionKind.ADJUST_ANGLE,
})


@dataclass(frozen=True)
class Suggestion:
    """One directive, kept structured until a formatter renders it"""
    kind: SuggestionKind
    target: Optional[Enum] = None
    current: Optional[Enum] = None
    percent: Optional[int] = None

    @property
    def is_corrective(self) -> bool:
        return self.kind in CORRECTIVE_KINDS


class MatchLevel(Enum):
    """How close the live frame is to the reference, for overlay styling"""
    UNREFERENCED = "unreferenced"
    MATCHED = "matched"
    PARTIAL = "partial"
    MISMATCHED = "mismatched"


def _ratio_matches(live: CompositionSnapshot, reference: CompositionSnapshot) -> bool:
    return abs(live.area_ratio - reference.area_ratio) <= AREA_RATIO_TOLERANCE


def plan_guidance(
        live: Optional[CompositionSnapshot],
        reference: Optional[CompositionSnapshot] = None,
) -> List[Suggestion]:
    """
    Ordered suggestions for the live snapshot.

    ``live`` is None when the frame's analysis failed. Checks run in a fixed
    order (distance, position, angle), at most one suggestion each, and the
    result is never empty.
    """
    if live is None:
        return [Suggestion(SuggestionKind.NO_SUBJECT)]

    if reference is None:
        return [
            Suggestion(SuggestionKind.INFO_POSITION, current=live.position),
            Suggestion(SuggestionKind.INFO_ANGLE, current=live.angle),
            Suggestion(SuggestionKind.INFO_AREA_RATIO, percent=int(live.area_ratio * 100)),
        ]

    suggestions = []

    if not _ratio_matches(live, reference):
        if live.area_ratio < reference.area_ratio:
            suggestions.append(Suggestion(SuggestionKind.MOVE_CLOSER))
        else:
            suggestions.append(Suggestion(SuggestionKind.MOVE_BACK))

    if live.position != reference.position:
        suggestions.append(Suggestion(
            SuggestionKind.REPOSITION,
            target=reference.position,
            current=live.position,
        ))

    if live.angle != reference.angle:
        suggestions.append(Suggestion(
            SuggestionKind.ADJUST_ANGLE,
            target=reference.angle,
            current=live.angle,
        ))

    if not suggestions:
        suggestions.append(Suggestion(SuggestionKind.READY))

    return suggestions


def diff(
        live: Optional[CompositionSnapshot],
        reference: Optional[CompositionSnapshot] = None,
        formatter: Optional['GuidanceFormatter'] = None,
) -> List[str]:
    """Rendered guidance strings, in priority order"""
    if formatter is None:
        from .formatter import get_formatter
        formatter = get_formatter()
    return formatter.format_all(plan_guidance(live, reference))


def assess_match(
        live: Optional[CompositionSnapshot],
        reference: Optional[CompositionSnapshot],
) -> MatchLevel:
    """All three criteria match, ratio or zone matches, or neither"""
    if live is None or reference is None:
        return MatchLevel.UNREFERENCED

    ratio_match = _ratio_matches(live, reference)
    position_match = live.position == reference.position
    angle_match = live.angle == reference.angle

    if ratio_match and position_match and angle_match:
        return MatchLevel.MATCHED
    elif ratio_match or position_match:
        return MatchLevel.PARTIAL
    return MatchLevel.MISMATCHED
