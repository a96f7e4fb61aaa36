from docpipe.orchestrator.orchestrator import (
    PipelineOrchestrator,
    PipelineRunResult,
    PipelineRunStatus,
    build_orchestrator,
)

__all__ = [
    "PipelineOrchestrator",
    "PipelineRunResult",
    "PipelineRunStatus",
    "build_orchestrator",
]
