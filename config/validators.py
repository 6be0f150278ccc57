from typing import Dict, Any, Tuple, Literal
from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# WORKFLOWS DOMAIN VALIDATORS
# =============================================================================

REQUIRED_TEMPLATES = (
    "no_subject",
    "info_position",
    "info_angle",
    "info_area_ratio",
    "move_closer",
    "move_back",
    "reposition",
    "adjust_angle",
    "ready",
)

REQUIRED_LABEL_GROUPS = ("position", "angle", "lighting_direction", "lighting_quality")


class GuidanceSessionConfig(BaseModel):
    """Live guidance loop settings"""
    tick_interval: float = Field(gt=0, le=10.0, default=0.5)
    overlap_policy: Literal["drop"] = "drop"
    locale: str = Field(min_length=2, default="en")


class MessageCatalogConfig(BaseModel):
    """Per-locale guidance text"""
    templates: Dict[str, str]
    labels: Dict[str, Dict[str, str]]

    @field_validator('templates')
    @classmethod
    def validate_templates(cls, v: Dict[str, str]) -> Dict[str, str]:
        """All guidance templates must be present"""
        missing = [key for key in REQUIRED_TEMPLATES if key not in v]
        if missing:
            raise ValueError(f'Missing message templates: {missing}')
        return v

    @field_validator('labels')
    @classmethod
    def validate_labels(cls, v: Dict[str, Dict[str, str]]) -> Dict[str, Dict[str, str]]:
        """Every categorical label group must be present"""
        missing = [group for group in REQUIRED_LABEL_GROUPS if group not in v]
        if missing:
            raise ValueError(f'Missing label groups: {missing}')
        return v


class WorkflowsConfig(BaseModel):
    """Complete workflows domain configuration"""
    guidance_session: GuidanceSessionConfig
    messages: Dict[str, MessageCatalogConfig]

    model_config = {"extra": "forbid"}

    @model_validator(mode='after')
    def validate_default_locale(self) -> 'WorkflowsConfig':
        """Session locale must have a catalog"""
        if self.guidance_session.locale not in self.messages:
            raise ValueError(
                f'No message catalog for locale {self.guidance_session.locale!r}'
            )
        return self


# =============================================================================
# SYSTEM DOMAIN VALIDATORS
# =============================================================================

class ThreadingConfig(BaseModel):
    """Threading configuration"""
    max_workers: int = Field(ge=1, le=32, default=2)


class PerformanceConfig(BaseModel):
    """Complete performance configuration"""
    threading: ThreadingConfig
    benchmarks: Dict[str, int] = Field(default_factory=dict)

    model_config = {"extra": "allow"}


class LoggingConfig(BaseModel):
    """Complete logging configuration"""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["structured", "simple"] = "structured"
    file_path: str = "logs/shotmatch.log"
    max_file_size_mb: int = Field(ge=1, le=1000, default=10)
    backup_count: int = Field(ge=1, le=10, default=3)
    console_output: bool = True

    model_config = {"extra": "forbid"}


class SystemConfig(BaseModel):
    """Complete system domain configuration"""
    performance: PerformanceConfig
    logging: LoggingConfig

    model_config = {"extra": "forbid"}


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================

def validate_workflows_config(config: Dict[str, Any]) -> WorkflowsConfig:
    """
    Validate workflows configuration

    Args:
        config: Workflows configuration dictionary

    Returns:
        Validated WorkflowsConfig model

    Raises:
        ValidationError: If configuration is invalid
    """
    return WorkflowsConfig(**config)


def validate_system_config(config: Dict[str, Any]) -> SystemConfig:
    """
    Validate system configuration

    Args:
        config: System configuration dictionary

    Returns:
        Validated SystemConfig model

    Raises:
        ValidationError: If configuration is invalid
    """
    return SystemConfig(**config)


def validate_all_domains(
        workflows: Dict[str, Any],
        system: Dict[str, Any]
) -> Tuple[WorkflowsConfig, SystemConfig]:
    """Validate all domain configurations at once"""
    return validate_workflows_config(workflows), validate_system_config(system)


def validate_domain_consistency(workflows: WorkflowsConfig, system: SystemConfig) -> None:
    """Cross-domain checks"""
    budget_ms = system.performance.benchmarks.get("frame_analysis_ms")
    tick_ms = workflows.guidance_session.tick_interval * 1000
    if budget_ms is not None and budget_ms >= tick_ms:
        raise ValueError(
            f"frame_analysis_ms ({budget_ms}) must be below the tick interval ({tick_ms}ms)"
        )
