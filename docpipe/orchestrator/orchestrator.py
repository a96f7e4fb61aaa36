import asyncio
import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum

from docpipe.actions.asset_parser import citations_to_assets, parse_extracted_assets
from docpipe.actions.catalog import get_action_spec
from docpipe.actions.presets import expand_preset, get_preset
from docpipe.canvas.models import (
    PipelinePreset,
    QuickAction,
    StageStatus,
    TransformationOutput,
    TransformationPipeline,
    TransformationStage,
)
from docpipe.canvas.panel import DocumentPanel
from docpipe.config.settings import Settings
from docpipe.logging.logger import Log
from docpipe.orchestrator.events import EventBus, PipelineEvent, PipelineEventType
from docpipe.orchestrator.exceptions import QueryFailedError
from docpipe.query.base import BaseDocumentQueryClient
from docpipe.query.factory import QueryClientFactory
from docpipe.validation.engine import ValidationEngine


class PipelineRunStatus(StrEnum):
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class PipelineRunResult:
    """Outcome of one ``run_pipeline`` invocation."""

    pipeline_id: str
    status: PipelineRunStatus
    stages_completed: int = 0
    total_stages: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0
    output: TransformationOutput | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is PipelineRunStatus.COMPLETED


class PipelineOrchestrator:
    """Drives quick actions and pipelines against a document panel.

    Every public operation holds the panel lock for its whole duration, so a
    panel never has more than one operation in flight. Panels do not share a
    lock and run independently of each other.
    """

    def __init__(
        self,
        query_client: BaseDocumentQueryClient,
        validation_engine: ValidationEngine | None = None,
        *,
        settle_delay_seconds: float = 0.5,
        events: EventBus | None = None,
    ) -> None:
        self._query_client = query_client
        self._validation_engine = validation_engine or ValidationEngine()
        self._settle_delay_seconds = settle_delay_seconds
        self._events = events or EventBus()

    @property
    def events(self) -> EventBus:
        return self._events

    def create_pipeline(
        self, preset: PipelinePreset, panel: DocumentPanel
    ) -> TransformationPipeline:
        """Expand *preset* into a new pending pipeline and attach it to *panel*."""
        pipeline = TransformationPipeline(
            name=get_preset(preset).display_name,
            stages=expand_preset(preset),
            preset=preset,
        )
        panel.add_pipeline(pipeline)
        Log.info(
            f"Created pipeline '{pipeline.name}'", pipeline_id=pipeline.id, panel_id=panel.id
        )
        return pipeline

    async def run_single_action(
        self,
        action: QuickAction,
        panel: DocumentPanel,
        parameters: Mapping[str, str] | None = None,
    ) -> TransformationOutput:
        """Run one quick action and append its result as a one-stage pipeline.

        Raises:
            QueryFailedError: if the query or its scoring fails. The panel's error
                message is set and its pipeline list is left untouched.
        """
        params = dict(parameters or {})
        spec = get_action_spec(action)
        async with panel.lock:
            try:
                output = await self._materialize(action, params, panel)
            except Exception as exc:
                message = f"Failed to execute {spec.pipeline_name}: {exc}"
                panel.error_message = message
                Log.error(message, panel_id=panel.id)
                self._events.publish(
                    PipelineEvent(PipelineEventType.ACTION_FAILED, panel.id, message=message)
                )
                raise QueryFailedError(message, action=action.value) from exc

            stage = TransformationStage(type=action, parameters=params)
            stage.transition_to(StageStatus.PROCESSING)
            stage.output = output.content
            stage.transition_to(StageStatus.COMPLETED)
            pipeline = TransformationPipeline(
                name=spec.pipeline_name,
                stages=[stage],
                output=output,
            )
            panel.add_pipeline(pipeline)
            panel.error_message = None
            Log.info(f"Action {action} completed", pipeline_id=pipeline.id, panel_id=panel.id)
            self._events.publish(
                PipelineEvent(
                    PipelineEventType.ACTION_COMPLETED,
                    panel.id,
                    pipeline_id=pipeline.id,
                    stage_index=0,
                    stage_id=stage.id,
                )
            )
            return output

    async def run_pipeline(
        self, pipeline: TransformationPipeline, panel: DocumentPanel
    ) -> PipelineRunResult:
        """Execute the pipeline's stages in order, starting at its current index.

        A stage failure stops the run: the failing stage is marked ``error``,
        later stages stay ``pending`` and the reason is recorded on the
        pipeline and the panel. Re-invoking resumes at the failed stage;
        completed stages are never re-run.

        Raises:
            PipelineNotFoundError: if *pipeline* is not attached to *panel*.
        """
        started_at = datetime.now(timezone.utc)
        start = time.monotonic()
        async with panel.lock:
            panel.find_pipeline(pipeline.id)
            total = len(pipeline.stages)

            if not pipeline.stages:
                return self._finish(
                    pipeline, PipelineRunStatus.FAILED, started_at, start,
                    error="Pipeline has no stages",
                )
            if pipeline.is_complete:
                Log.info("Pipeline is already complete", pipeline_id=pipeline.id)
                return self._finish(pipeline, PipelineRunStatus.COMPLETED, started_at, start)

            resume_at = pipeline.current_stage_index
            resume_stage = pipeline.current_stage
            if resume_stage is not None and resume_stage.status is StageStatus.ERROR:
                Log.info(f"Resuming at stage {resume_at + 1}", pipeline_id=pipeline.id)
                resume_stage.reset_for_retry()
            pipeline.error = None

            last_output: TransformationOutput | None = None
            for index in range(resume_at, total):
                stage = pipeline.stages[index]
                pipeline.current_stage_index = index
                if stage.status is StageStatus.COMPLETED:
                    continue

                stage.transition_to(StageStatus.PROCESSING)
                pipeline.touch()
                Log.info(
                    f"Stage {index + 1}/{total} ({stage.type}) started", pipeline_id=pipeline.id
                )
                self._publish_stage(PipelineEventType.STAGE_STARTED, panel, pipeline, index)

                try:
                    output = await self._materialize(stage.type, stage.parameters, panel)
                except asyncio.CancelledError:
                    stage.transition_to(StageStatus.ERROR)
                    message = f"Pipeline cancelled at stage {index + 1}"
                    pipeline.error = message
                    pipeline.touch()
                    panel.error_message = message
                    Log.warning(message, pipeline_id=pipeline.id, panel_id=panel.id)
                    self._publish_stage(
                        PipelineEventType.STAGE_FAILED, panel, pipeline, index, message
                    )
                    raise
                except Exception as exc:
                    return self._fail_stage(pipeline, panel, index, exc, started_at, start)

                stage.output = output.content
                stage.transition_to(StageStatus.COMPLETED)
                pipeline.touch()
                last_output = output
                Log.info(f"Stage {index + 1}/{total} completed", pipeline_id=pipeline.id)
                self._publish_stage(PipelineEventType.STAGE_COMPLETED, panel, pipeline, index)

                if index < total - 1 and self._settle_delay_seconds > 0:
                    await asyncio.sleep(self._settle_delay_seconds)

            if last_output is not None:
                pipeline.output = last_output
                pipeline.touch()
            panel.error_message = None
            self._events.publish(
                PipelineEvent(
                    PipelineEventType.PIPELINE_COMPLETED, panel.id, pipeline_id=pipeline.id
                )
            )
            result = self._finish(pipeline, PipelineRunStatus.COMPLETED, started_at, start)
            Log.info(
                f"Pipeline finished: {result.stages_completed}/{total} stages",
                pipeline_id=pipeline.id,
                duration_ms=result.duration_ms,
            )
            return result

    async def _materialize(
        self,
        action: QuickAction,
        parameters: Mapping[str, str],
        panel: DocumentPanel,
    ) -> TransformationOutput:
        """Query the document for *action* and wrap the answer as a scored output."""
        spec = get_action_spec(action)
        document = panel.document
        prompt = spec.build_prompt(document, parameters)
        Log.debug(f"Prompt for {action}: {prompt}", document_id=document.id)

        file_ids = [document.file_id] if document.file_id else []
        result = await self._query_client.query(prompt, file_ids, document.store_id)
        Log.debug(
            f"Answer for {action}",
            chars=len(result.answer),
            citations=len(result.citations),
        )

        assets = citations_to_assets(result.citations)
        if action is QuickAction.EXTRACT_ASSETS:
            assets = parse_extracted_assets(result.answer) + assets

        # Ratio checks only make sense for a translation of the source.
        source_text = document.source_text if action is QuickAction.TRANSLATE else ""
        validation = self._validation_engine.validate(
            result.answer,
            source_text=source_text,
            assets=assets,
            glossary=panel.glossary,
            redaction_status=panel.redaction_status,
        )
        metadata = spec.build_metadata(document, parameters)
        metadata["action"] = action.value
        metadata["documentId"] = document.id
        return TransformationOutput(
            content=result.answer,
            format=spec.output_format,
            metadata=metadata,
            assets=assets,
            validation_results=validation,
        )

    def _fail_stage(
        self,
        pipeline: TransformationPipeline,
        panel: DocumentPanel,
        index: int,
        exc: Exception,
        started_at: datetime,
        start: float,
    ) -> PipelineRunResult:
        pipeline.stages[index].transition_to(StageStatus.ERROR)
        message = f"Pipeline failed at stage {index + 1}: {exc}"
        pipeline.error = message
        pipeline.touch()
        panel.error_message = message
        Log.error(message, pipeline_id=pipeline.id, panel_id=panel.id)
        self._publish_stage(PipelineEventType.STAGE_FAILED, panel, pipeline, index, message)
        self._events.publish(
            PipelineEvent(
                PipelineEventType.PIPELINE_FAILED,
                panel.id,
                pipeline_id=pipeline.id,
                stage_index=index,
                message=message,
            )
        )
        return self._finish(pipeline, PipelineRunStatus.FAILED, started_at, start, error=message)

    def _publish_stage(
        self,
        event_type: PipelineEventType,
        panel: DocumentPanel,
        pipeline: TransformationPipeline,
        index: int,
        message: str | None = None,
    ) -> None:
        self._events.publish(
            PipelineEvent(
                event_type,
                panel.id,
                pipeline_id=pipeline.id,
                stage_index=index,
                stage_id=pipeline.stages[index].id,
                message=message,
            )
        )

    @staticmethod
    def _finish(
        pipeline: TransformationPipeline,
        status: PipelineRunStatus,
        started_at: datetime,
        start: float,
        error: str | None = None,
    ) -> PipelineRunResult:
        return PipelineRunResult(
            pipeline_id=pipeline.id,
            status=status,
            stages_completed=sum(
                1 for stage in pipeline.stages if stage.status is StageStatus.COMPLETED
            ),
            total_stages=len(pipeline.stages),
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            duration_ms=int((time.monotonic() - start) * 1000),
            output=pipeline.output,
            error=error,
        )


def build_orchestrator(
    settings: Settings, events: EventBus | None = None
) -> PipelineOrchestrator:
    """Wire an orchestrator from settings: configured query client and validation policy."""
    return PipelineOrchestrator(
        QueryClientFactory.create(settings),
        ValidationEngine.from_settings(settings),
        settle_delay_seconds=settings.stage_settle_delay_seconds,
        events=events,
    )
