class CanvasError(Exception):
    """Base exception for panel and pipeline state errors."""


class InvalidStageTransitionError(CanvasError):
    """Raised when a stage is moved to a status its current status cannot reach."""


class PipelineNotFoundError(CanvasError):
    """Raised when a pipeline id is not attached to the panel."""


class PanelNotFoundError(CanvasError):
    """Raised when no panel is open for a document."""


class StageNotEditableError(CanvasError):
    """Raised when a user edit targets a stage that is locked."""
