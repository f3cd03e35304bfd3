"""svgnorm normalization engine."""

from svgnorm.engine.registry import normalization_pass, Stage, get_registry
from svgnorm.engine.context import NormalizeContext
from svgnorm.engine.config import NormalizeConfig
from svgnorm.engine.pipeline import Pipeline, cleanup, create_pipeline

__all__ = [
    "normalization_pass",
    "Stage",
    "get_registry",
    "NormalizeContext",
    "NormalizeConfig",
    "Pipeline",
    "cleanup",
    "create_pipeline",
]
