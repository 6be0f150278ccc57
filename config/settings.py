from typing import Dict, Any, Optional
from pathlib import Path

from config.domain_loader import DomainConfigLoader


class DictWrapper:
    """
    Wrapper that provides attribute-style access to dictionaries
    """

    def __init__(self, data: Dict[str, Any]):
        self._data = data

    def __getattr__(self, name: str) -> Any:
        if name.startswith('_'):
            return object.__getattribute__(self, name)

        if name not in self._data:
            raise AttributeError(f"Config has no attribute '{name}'")

        value = self._data[name]

        if isinstance(value, dict):
            return DictWrapper(value)

        if isinstance(value, list) and value and isinstance(value[0], dict):
            return [DictWrapper(item) if isinstance(item, dict) else item
                    for item in value]

        return value

    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access as well"""
        value = self._data[key]
        if isinstance(value, dict):
            return DictWrapper(value)
        return value

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Dictionary-style get with default"""
        return self._data.get(key, default)

    def keys(self):
        return self._data.keys()

    def items(self):
        return self._data.items()

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to plain dictionary"""
        return self._data


class UnifiedSettings:
    """
    Attribute-style access to the domain-based configuration.
    """

    def __init__(self, config_dir: Optional[Path] = None, validate: bool = True):
        """
        Initialize unified settings

        Args:
            config_dir: Path to config directory (defaults to this file's parent)
            validate: Run pydantic validation on load
        """
        self._loader = DomainConfigLoader(config_dir)

        if validate:
            self._loader.validate_all_configs()

    # =========================================================================
    # Domain-level accessors
    # =========================================================================

    def get_workflows_config(self) -> Dict[str, Any]:
        """Get workflows domain configuration"""
        return self._loader.get_workflows_config()

    def get_system_config(self) -> Dict[str, Any]:
        """Get system domain configuration"""
        return self._loader.get_system_config()

    def get_shared_config(self) -> Dict[str, Any]:
        """Get shared configuration"""
        return self._loader.get_shared_config()

    def get_message_catalog(self, locale: str) -> Optional[Dict[str, Any]]:
        """Get the message catalog for a locale, None when missing"""
        return self._loader.get_message_catalogs().get(locale)

    # =========================================================================
    # Attribute access
    # =========================================================================

    @property
    def system(self) -> DictWrapper:
        """settings.system.name / settings.system.version"""
        return DictWrapper(self._loader.shared_loader.get_system_identity())

    @property
    def session(self) -> DictWrapper:
        """settings.session.tick_interval"""
        return DictWrapper(self._loader.get_session_config())

    @property
    def messages(self) -> DictWrapper:
        """settings.messages.en.templates"""
        return DictWrapper(self._loader.get_message_catalogs())

    @property
    def performance(self) -> DictWrapper:
        """settings.performance.benchmarks"""
        return DictWrapper(self._loader.get_performance_config())

    @property
    def threading(self) -> DictWrapper:
        """settings.threading.max_workers"""
        return DictWrapper(self._loader.get_performance_config().get('threading', {}))

    @property
    def logging(self) -> DictWrapper:
        """settings.logging.level"""
        return DictWrapper(self._loader.get_logging_config())

    def validate(self) -> bool:
        """Validate all configurations"""
        return self._loader.validate_all_configs()


# =============================================================================
# Module-level singleton
# =============================================================================

_settings_instance: Optional[UnifiedSettings] = None


def get_settings(config_dir: Optional[Path] = None) -> UnifiedSettings:
    """
    Get or create the unified settings singleton

    Args:
        config_dir: Path to config directory (only used on first call)

    Returns:
        UnifiedSettings instance
    """
    global _settings_instance

    if _settings_instance is None:
        _settings_instance = UnifiedSettings(config_dir)

    return _settings_instance


def reset_settings():
    """Reset settings singleton (useful for testing)"""
    global _settings_instance
    _settings_instance = None


def get_session_config() -> Dict[str, Any]:
    """Get guidance session configuration"""
    return get_settings().session.to_dict()
