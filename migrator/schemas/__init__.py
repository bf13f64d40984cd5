# CUI // SP-CTI
"""Report schema models shared by every migration stage."""
from migrator.schemas.report import (  # noqa: F401
    CleanupResult,
    ConversionTodo,
    ConvertResult,
    Evidence,
    Finding,
    InferredEntity,
    InferredSchema,
    InferredServerFunction,
    LegacyUsage,
    ModuleReference,
    Report,
    SkippedPath,
    create_empty_report,
)
