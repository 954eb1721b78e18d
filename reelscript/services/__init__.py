"""Service layer for structured script generation and chat."""

from __future__ import annotations

from .errors import (  # noqa: F401
    AuthenticationError,
    InputValidationError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ReelScriptError,
)
from .generation_client import (  # noqa: F401
    GenerationResult,
    GenerationServiceError,
    OpenAIGenerationClient,
    TokenUsage,
    build_generation_client,
    get_generation_client,
)
from .pipeline import PipelineResult, StructuredGenerationTask, run_structured_generation  # noqa: F401
from .script_generation import (  # noqa: F401
    ScriptGenerationResult,
    generate_automatic_scripts,
    generate_scripts,
    generate_sub_pillars,
)

__all__ = [
    "AuthenticationError",
    "GenerationResult",
    "GenerationServiceError",
    "InputValidationError",
    "NotFoundError",
    "OpenAIGenerationClient",
    "PermissionDeniedError",
    "PersistenceError",
    "PipelineResult",
    "ReelScriptError",
    "ScriptGenerationResult",
    "StructuredGenerationTask",
    "TokenUsage",
    "build_generation_client",
    "generate_automatic_scripts",
    "generate_scripts",
    "generate_sub_pillars",
    "get_generation_client",
    "run_structured_generation",
]
