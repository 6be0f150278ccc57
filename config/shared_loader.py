import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import re

# ${shared.defaults.timing.tick_interval}
REFERENCE_PATTERN = re.compile(r'\$\{shared\.([^}]+)\}')


class SharedConfigLoader:
    """Loader for shared configuration files"""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize shared config loader"""
        if config_dir is None:
            config_dir = Path(__file__).parent

        self.config_dir = Path(config_dir)
        self.shared_dir = self.config_dir / "shared"

        if not self.shared_dir.exists():
            raise FileNotFoundError(
                f"Shared config directory not found: {self.shared_dir}"
            )

        self._defaults = self._load_yaml("defaults.yaml")

        # Unified shared config dictionary for reference resolution
        self._shared_config = {
            "defaults": self._defaults
        }

    def _load_yaml(self, filename: str) -> Dict[str, Any]:
        """Load a YAML file from shared directory"""
        filepath = self.shared_dir / filename

        if not filepath.exists():
            raise FileNotFoundError(f"Shared config file not found: {filepath}")

        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {filename}: {e}")

    @property
    def defaults(self) -> Dict[str, Any]:
        """Get system defaults"""
        return self._defaults

    @property
    def all_shared(self) -> Dict[str, Any]:
        """Get all shared configs as unified dictionary"""
        return self._shared_config

    def get_system_identity(self) -> Dict[str, Any]:
        """Get system name/version/environment block"""
        return self._defaults["system"]

    # =========================================================================
    # Reference Resolution
    # =========================================================================

    def resolve_reference(self, reference: str) -> Any:
        """Resolve a reference like 'defaults.timing.tick_interval' to its value"""
        parts = reference.split('.')
        value = self._shared_config

        try:
            for part in parts:
                value = value[part]
            return value
        except (KeyError, TypeError) as e:
            raise KeyError(f"Invalid reference path: {reference}") from e

    def resolve_references_in_config(self, config: Any) -> Any:
        """
        Recursively resolve ${shared.path} references.

        A value that is exactly one reference takes the referenced value as is;
        references embedded in a longer string are substituted as text.
        """
        if isinstance(config, dict):
            return {
                key: self.resolve_references_in_config(value)
                for key, value in config.items()
            }
        elif isinstance(config, list):
            return [self.resolve_references_in_config(item) for item in config]
        elif isinstance(config, str):
            # a whole-value reference keeps the referenced type
            match = REFERENCE_PATTERN.fullmatch(config.strip())
            if match:
                return self.resolve_reference(match.group(1))
            return REFERENCE_PATTERN.sub(
                lambda m: str(self.resolve_reference(m.group(1))), config
            )
        else:
            return config

    def validate_shared_configs(self) -> bool:
        """Validate that all shared configs have required keys"""
        if "system" not in self._defaults:
            raise ValueError("Missing system in defaults.yaml")

        for key in ("name", "version"):
            if key not in self._defaults["system"]:
                raise ValueError(f"Missing system.{key} in defaults.yaml")

        return True


_shared_loader_instance: Optional[SharedConfigLoader] = None


def get_shared_loader(config_dir: Optional[Path] = None) -> SharedConfigLoader:
    """Get or create the shared config loader singleton"""
    global _shared_loader_instance

    if _shared_loader_instance is None:
        _shared_loader_instance = SharedConfigLoader(config_dir)

    return _shared_loader_instance


def reset_shared_loader():
    """Reset the shared loader singleton"""
    global _shared_loader_instance
    _shared_loader_instance = None


def resolve_reference(reference: str) -> Any:
    """Resolve a shared config reference"""
    return get_shared_loader().resolve_reference(reference)
