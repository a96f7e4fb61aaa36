import asyncio
import uuid
from dataclasses import dataclass, field

from docpipe.canvas.exceptions import PipelineNotFoundError, StageNotEditableError
from docpipe.canvas.models import (
    DEFAULT_QUICK_ACTIONS,
    DocumentMetadata,
    GlossaryEntry,
    QuickAction,
    RedactionStatus,
    TransformationPipeline,
)


@dataclass
class DocumentPanel:
    """Aggregate root for one open document and every pipeline run against it.

    The pipeline list is append/replace only. All mutations from the
    orchestrator happen while ``lock`` is held, so a panel has at most one
    in-flight operation.
    """

    document: DocumentMetadata
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    active_pipelines: list[TransformationPipeline] = field(default_factory=list)
    quick_actions: list[QuickAction] = field(
        default_factory=lambda: list(DEFAULT_QUICK_ACTIONS)
    )
    glossary: list[GlossaryEntry] = field(default_factory=list)
    redaction_status: RedactionStatus = RedactionStatus.PENDING
    error_message: str | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @property
    def is_busy(self) -> bool:
        return self.lock.locked()

    def add_pipeline(self, pipeline: TransformationPipeline) -> None:
        if any(p.id == pipeline.id for p in self.active_pipelines):
            raise ValueError(f"Pipeline {pipeline.id} already belongs to panel {self.id}")
        self.active_pipelines.append(pipeline)

    def find_pipeline(self, pipeline_id: str) -> TransformationPipeline:
        return self.active_pipelines[self._index_of(pipeline_id)]

    def replace_pipeline(self, pipeline_id: str, pipeline: TransformationPipeline) -> None:
        """Swap a pipeline in place, keeping its position in the list."""
        self.active_pipelines[self._index_of(pipeline_id)] = pipeline

    def remove_pipeline(self, pipeline_id: str) -> TransformationPipeline:
        return self.active_pipelines.pop(self._index_of(pipeline_id))

    def edit_stage_output(self, pipeline_id: str, stage_index: int, text: str) -> None:
        """Apply a user edit to a stage's output.

        Raises:
            PipelineNotFoundError: if the pipeline is not on this panel.
            StageNotEditableError: if the stage is locked against edits.
            IndexError: if the stage index is out of range.
        """
        pipeline = self.find_pipeline(pipeline_id)
        if stage_index < 0:
            raise IndexError(f"Stage index must not be negative, got {stage_index}")
        stage = pipeline.stages[stage_index]
        if not stage.is_editable:
            raise StageNotEditableError(f"Stage {stage.id} is not editable")
        stage.output = text
        pipeline.touch()

    def _index_of(self, pipeline_id: str) -> int:
        for index, pipeline in enumerate(self.active_pipelines):
            if pipeline.id == pipeline_id:
                return index
        raise PipelineNotFoundError(
            f"Pipeline {pipeline_id} is not attached to panel {self.id}"
        )
