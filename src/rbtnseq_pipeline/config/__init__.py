from .loader import load_config, load_config_with_overrides
from .schema import (
    PipelineConfig,
    InputFiles,
    AnalysisThresholds,
    Comparison,
    StringDBConfig,
)

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "PipelineConfig",
    "InputFiles",
    "AnalysisThresholds",
    "Comparison",
    "StringDBConfig",
]
