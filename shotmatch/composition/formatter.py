from enum import Enum
from typing import Dict, Iterable, List, Optional

from config.settings import get_settings
from .classifier import PositionZone, ShootingAngle
from .guidance import Suggestion
from ..vision.face_lighting import LightingDirection, LightingQuality
from ..utils.exceptions import ConfigurationError
from ..utils.logger import get_logger

logger = get_logger(__name__)

_LABEL_GROUPS = {
    PositionZone: "position",
    ShootingAngle: "angle",
    LightingDirection: "lighting_direction",
    LightingQuality: "lighting_quality",
}


class GuidanceFormatter:
    """Renders structured suggestions and enum labels from a locale's message catalog"""

    def __init__(self, locale: Optional[str] = None):
        settings = get_settings()
        self.locale = locale or settings.session.locale

        catalog = settings.get_message_catalog(self.locale)
        if catalog is None:
            raise ConfigurationError(
                f"No message catalog for locale {self.locale!r}",
                details={'available': sorted(settings.messages.keys())}
            )

        self.templates: Dict[str, str] = catalog["templates"]
        self.labels: Dict[str, Dict[str, str]] = catalog["labels"]

        logger.debug("guidance_formatter_initialized", locale=self.locale)

    def label(self, value: Optional[Enum]) -> str:
        """Display text for a categorical value, falls back to the raw value"""
        if value is None:
            return ""

        group = _LABEL_GROUPS.get(type(value))
        text = self.labels.get(group, {}).get(value.value) if group else None
        if text is None:
            logger.warning("missing_label", locale=self.locale, value=value.value)
            return value.value
        return text

    def format(self, suggestion: Suggestion) -> str:
        """Render one suggestion"""
        template = self.templates[suggestion.kind.value]
        return template.format(
            position=self.label(suggestion.current),
            angle=self.label(suggestion.current),
            target=self.label(suggestion.target),
            current=self.label(suggestion.current),
            percent=suggestion.percent,
        )

    def format_all(self, suggestions: Iterable[Suggestion]) -> List[str]:
        """Render in order"""
        return [self.format(suggestion) for suggestion in suggestions]


_formatters: Dict[str, GuidanceFormatter] = {}


def get_formatter(locale: Optional[str] = None) -> GuidanceFormatter:
    """Cached formatter per locale, defaults to the session locale"""
    key = locale or get_settings().session.locale
    if key not in _formatters:
        _formatters[key] = GuidanceFormatter(key)
    return _formatters[key]


def reset_formatters():
    """Drop cached formatters (after settings reload)"""
    _formatters.clear()
