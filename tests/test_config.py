import shutil

import pytest
import yaml
from pydantic import ValidationError

import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from config.settings import UnifiedSettings, get_settings
from config.shared_loader import SharedConfigLoader
from config.domain_loader import DomainConfigLoader
from config.validators import (
    GuidanceSessionConfig,
    MessageCatalogConfig,
    validate_all_domains,
    validate_domain_consistency,
    validate_workflows_config,
)

CONFIG_DIR = project_root / "config"


def write_yaml(path: Path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding='utf-8')


@pytest.fixture
def config_dir(tmp_path):
    """Copy of the shipped config tree that tests can edit."""
    target = tmp_path / "config"
    shutil.copytree(CONFIG_DIR, target, ignore=shutil.ignore_patterns("*.py", "__pycache__"))
    return target


@pytest.fixture
def en_catalog():
    with open(CONFIG_DIR / "workflows" / "messages" / "en.yaml", encoding='utf-8') as f:
        return yaml.safe_load(f)


class TestShippedSettings:
    """Test suite for the default configuration tree."""

    def test_session_defaults(self):
        settings = get_settings()

        assert settings.session.tick_interval == 0.5
        assert settings.session.overlap_policy == "drop"
        assert settings.session.locale == "en"

    def test_system_identity(self):
        settings = get_settings()

        assert settings.system.name == "shotmatch"
        assert settings.threading.max_workers >= 1
        assert settings.logging.level == "INFO"

    def test_catalogs_loaded(self):
        settings = get_settings()

        assert "en" in settings.messages
        assert "zh" in settings.messages
        assert settings.get_message_catalog("en")["templates"]["move_closer"] == "move closer"
        assert settings.get_message_catalog("fr") is None

    def test_validates(self):
        assert get_settings().validate() is True


class TestReferenceResolution:
    """Test suite for ${shared.*} references."""

    def test_reference_resolved_in_domain(self, config_dir):
        defaults = yaml.safe_load((config_dir / "shared" / "defaults.yaml").read_text(encoding='utf-8'))
        defaults["timing"]["tick_interval"] = 0.25
        write_yaml(config_dir / "shared" / "defaults.yaml", defaults)

        loader = DomainConfigLoader(config_dir)

        assert loader.get_session_config()["tick_interval"] == 0.25
        assert loader.validate_all_configs() is True

    def test_nested_domain_directories(self, config_dir):
        loader = DomainConfigLoader(config_dir)
        assert set(loader.get_message_catalogs()) >= {"en", "zh"}

    def test_unknown_reference(self, config_dir):
        with pytest.raises(KeyError):
            SharedConfigLoader(config_dir).resolve_reference("defaults.timing.missing")

    def test_embedded_reference_substituted(self, config_dir):
        loader = DomainConfigLoader(config_dir)
        assert loader.get_logging_config()["file_path"] == "logs/shotmatch.log"

    def test_plain_strings_untouched(self, config_dir):
        loader = SharedConfigLoader(config_dir)
        assert loader.resolve_references_in_config({"a": ["drop", 3]}) == {"a": ["drop", 3]}

    def test_missing_shared_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SharedConfigLoader(tmp_path)

    def test_settings_from_custom_dir(self, config_dir):
        write_yaml(config_dir / "workflows" / "guidance_session.yaml", {
            "tick_interval": 1.0,
            "overlap_policy": "drop",
            "locale": "zh",
        })

        settings = UnifiedSettings(config_dir)

        assert settings.session.tick_interval == 1.0
        assert settings.session.locale == "zh"

    def test_omitted_keys_get_model_defaults(self, config_dir):
        write_yaml(config_dir / "workflows" / "guidance_session.yaml", {"tick_interval": 0.25})
        write_yaml(config_dir / "system" / "logging.yaml", {"level": "DEBUG"})

        settings = UnifiedSettings(config_dir)

        assert settings.session.tick_interval == 0.25
        assert settings.session.overlap_policy == "drop"
        assert settings.session.locale == "en"
        assert settings.logging.backup_count == 3
        assert settings.logging.console_output is True


class TestValidators:
    """Test suite for pydantic validation."""

    @pytest.mark.parametrize("values", [
        {"tick_interval": 0},
        {"tick_interval": -0.5},
        {"overlap_policy": "queue"},
        {"locale": ""},
    ])
    def test_bad_session_values(self, values):
        with pytest.raises(ValidationError):
            GuidanceSessionConfig(**values)

    def test_missing_template(self, en_catalog):
        del en_catalog["templates"]["ready"]
        with pytest.raises(ValidationError):
            MessageCatalogConfig(**en_catalog)

    def test_missing_label_group(self, en_catalog):
        del en_catalog["labels"]["angle"]
        with pytest.raises(ValidationError):
            MessageCatalogConfig(**en_catalog)

    def test_session_locale_needs_catalog(self, en_catalog):
        with pytest.raises(ValidationError):
            validate_workflows_config({
                "guidance_session": {"locale": "de"},
                "messages": {"en": en_catalog},
            })

    def test_unknown_workflow_key(self, en_catalog):
        with pytest.raises(ValidationError):
            validate_workflows_config({
                "guidance_session": {},
                "messages": {"en": en_catalog},
                "auto_capture": {},
            })

    def test_analysis_budget_must_fit_tick(self, en_catalog):
        workflows, system = validate_all_domains(
            {"guidance_session": {"tick_interval": 0.01}, "messages": {"en": en_catalog}},
            {"performance": {"threading": {}, "benchmarks": {"frame_analysis_ms": 20}}, "logging": {}},
        )
        with pytest.raises(ValueError):
            validate_domain_consistency(workflows, system)

    def test_invalid_tree_rejected_on_load(self, config_dir):
        write_yaml(config_dir / "system" / "performance.yaml", {"threading": {"max_workers": 0}})

        with pytest.raises(ValueError):
            UnifiedSettings(config_dir)
