import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from config.shared_loader import SharedConfigLoader
from config.validators import validate_all_domains, validate_domain_consistency

DOMAINS = ("workflows", "system")


class DomainConfigLoader:
    """Loader for domain-specific configuration files"""

    def __init__(self, config_dir: Optional[Path] = None):

        if config_dir is None:
            config_dir = Path(__file__).parent

        self.config_dir = Path(config_dir)

        # shared configs first, domains reference them
        self.shared_loader = SharedConfigLoader(config_dir)

        self._workflows = self._load_domain("workflows")
        self._system = self._load_domain("system")

        self._resolve_all_references()

    def _load_domain(self, domain_name: str) -> Dict[str, Any]:
        """load all YAML files in a domain directory"""
        domain_dir = self.config_dir / domain_name

        if not domain_dir.exists():
            raise FileNotFoundError(f"Domain directory not found: {domain_dir}")

        configs = {}

        # workflows/messages/en.yaml -> configs['messages']['en']
        for yaml_file in sorted(domain_dir.rglob("*.yaml")):
            rel_path = yaml_file.relative_to(domain_dir)
            key_parts = list(rel_path.parts[:-1]) + [rel_path.stem]

            try:
                with open(yaml_file, 'r', encoding='utf-8') as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {yaml_file}: {e}")

            current = configs
            for part in key_parts[:-1]:
                current = current.setdefault(part, {})
            current[key_parts[-1]] = config_data

        return configs

    def _resolve_all_references(self):
        """resolve all ${shared.path} references in domain configs"""
        self._workflows = self.shared_loader.resolve_references_in_config(self._workflows)
        self._system = self.shared_loader.resolve_references_in_config(self._system)

    def get_workflows_config(self) -> Dict[str, Any]:
        """Get workflows domain configuration"""
        return self._workflows

    def get_system_config(self) -> Dict[str, Any]:
        """Get system domain configuration"""
        return self._system

    def get_shared_config(self) -> Dict[str, Any]:
        """Get shared configuration"""
        return self.shared_loader.all_shared

    def get_session_config(self) -> Dict[str, Any]:
        """Get guidance session configuration from workflows domain"""
        return self._workflows.get("guidance_session", {})

    def get_message_catalogs(self) -> Dict[str, Any]:
        """Get per-locale message catalogs from workflows domain"""
        return self._workflows.get("messages", {})

    def get_performance_config(self) -> Dict[str, Any]:
        """Get performance configuration from system domain"""
        return self._system.get("performance", {})

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration from system domain"""
        return self._system.get("logging", {})

    def validate_all_configs(self, check_consistency: bool = True) -> bool:
        """validate all loaded configurations, keeping model defaults for omitted keys"""
        self.shared_loader.validate_shared_configs()

        try:
            workflows, system = validate_all_domains(self._workflows, self._system)
            if check_consistency:
                validate_domain_consistency(workflows, system)
        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

        self._workflows = workflows.model_dump()
        self._system = system.model_dump()
        return True


_domain_loader_instance: Optional[DomainConfigLoader] = None


def get_domain_loader(config_dir: Optional[Path] = None) -> DomainConfigLoader:
    """get or create the domain config loader singleton"""
    global _domain_loader_instance

    if _domain_loader_instance is None:
        _domain_loader_instance = DomainConfigLoader(config_dir)

    return _domain_loader_instance


def reset_domain_loader():
    """reset the domain loader"""
    global _domain_loader_instance
    _domain_loader_instance = None
