"""
Configuration Management

Loads configuration from YAML files with environment variable resolution.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


class ParsingConfig(BaseModel):
    """Tabular parsing configuration."""
    header_scan_lines: int = 20
    recognized_extensions: list[str] = Field(default_factory=lambda: [".csv"])


class ContactDefaultsConfig(BaseModel):
    """Defaults applied to contacts built from a connections export."""
    default_company: str = "Unknown"
    default_role: str = "Unknown"
    default_priority: int = 50
    default_tags: list[str] = Field(default_factory=lambda: ["LinkedIn Import"])
    import_note: str = "Imported from LinkedIn connections"


class MatcherConfig(BaseModel):
    """Relationship matcher weights and thresholds."""
    role_weight: int = 30
    current_colleague_weight: int = 50
    former_colleague_weight: int = 30
    industry_weight: int = 20
    high_value_threshold: int = 70
    role_keywords: list[str] = Field(default_factory=lambda: [
        "engineer", "manager", "director", "vp", "ceo", "cto", "cfo",
        "founder", "product", "design", "sales", "marketing", "analyst",
    ])


class WarmthConfig(BaseModel):
    """Warmth scoring configuration."""
    base_score: float = 100.0
    decay_per_day: float = 0.5
    recent_days: int = 7
    recent_bonus: float = 15.0
    no_history_score: int = 50
    priority_threshold: int = 80
    priority_bonus: float = 10.0
    mutual_connection_bonus: float = 5.0
    warm_threshold: int = 85
    cooling_threshold: int = 50


class NudgesConfig(BaseModel):
    """Follow-up nudge configuration."""
    decay_after_days: int = 60
    high_priority_below: int = 50


class StorageConfig(BaseModel):
    """Contact storage configuration."""
    backend: str = "disk"
    path: str = ".warmline/store"


class OutputConfig(BaseModel):
    """Output generation configuration."""
    directory: str = "./outputs"
    formats: list[str] = Field(default_factory=lambda: ["csv", "markdown", "json"])
    timestamp_filenames: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None


class ProcessingConfig(BaseModel):
    """Data processing configuration."""
    parallel_calls: int = 1
    progress_every_n: int = 50


class Config(BaseModel):
    """Root configuration object."""
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    contacts: ContactDefaultsConfig = Field(default_factory=ContactDefaultsConfig)
    matcher: MatcherConfig = Field(default_factory=MatcherConfig)
    warmth: WarmthConfig = Field(default_factory=WarmthConfig)
    nudges: NudgesConfig = Field(default_factory=NudgesConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)


def _resolve_env_vars(data: Any) -> Any:
    """Recursively resolve environment variables in config values.

    Supports ${VAR_NAME} and ${VAR_NAME:-default} syntax.
    """
    if isinstance(data, str):
        if data.startswith("${") and data.endswith("}"):
            var_expr = data[2:-1]
            if ":-" in var_expr:
                var_name, default = var_expr.split(":-", 1)
                return os.environ.get(var_name, default)
            return os.environ.get(var_expr, data)
        return data
    elif isinstance(data, dict):
        return {k: _resolve_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars(item) for item in data]
    return data


def load_config(
    config_path: Optional[Path] = None,
    local_config_path: Optional[Path] = None,
) -> Config:
    """Load configuration from YAML files.

    Args:
        config_path: Path to main config file (default: config.yaml)
        local_config_path: Path to local overrides (default: config.local.yaml)

    Returns:
        Merged and validated Config object
    """
    project_root = Path(__file__).parent.parent.parent

    if config_path is None:
        config_path = project_root / "config.yaml"
    if local_config_path is None:
        local_config_path = project_root / "config.local.yaml"

    config_data: dict[str, Any] = {}

    if config_path.exists():
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

    if local_config_path.exists():
        with open(local_config_path) as f:
            local_data = yaml.safe_load(f) or {}
            config_data = _deep_merge(config_data, local_data)

    config_data = _resolve_env_vars(config_data)

    return Config(**config_data)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
