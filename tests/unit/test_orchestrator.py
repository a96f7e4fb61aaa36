import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from docpipe.canvas.exceptions import PipelineNotFoundError
from docpipe.canvas.models import (
    AssetType,
    Citation,
    DocumentMetadata,
    OutputFormat,
    PipelinePreset,
    QueryResult,
    QuickAction,
    StageStatus,
    TransformationPipeline,
)
from docpipe.canvas.panel import DocumentPanel
from docpipe.orchestrator.events import EventBus, PipelineEvent, PipelineEventType
from docpipe.orchestrator.exceptions import QueryFailedError
from docpipe.orchestrator.orchestrator import (
    PipelineOrchestrator,
    PipelineRunStatus,
    build_orchestrator,
)
from docpipe.query.base import BaseDocumentQueryClient
from docpipe.query.example_client_adapter import ExampleQueryClientAdapter
from docpipe.query.exceptions import QueryNetworkError, QueryRateLimitedError


def _make_client(*results: QueryResult | Exception) -> AsyncMock:
    client = AsyncMock(spec=BaseDocumentQueryClient)
    if results:
        client.query.side_effect = list(results)
    else:
        client.query.return_value = QueryResult(answer="answer")
    return client


def _make_orchestrator(
    client: AsyncMock, events: EventBus | None = None
) -> PipelineOrchestrator:
    return PipelineOrchestrator(client, settle_delay_seconds=0, events=events)


def _record(events: EventBus) -> list[PipelineEvent]:
    received: list[PipelineEvent] = []
    events.subscribe(received.append)
    return received


class TestCreatePipeline:
    def test_expands_and_attaches_preset(self, panel: DocumentPanel) -> None:
        orchestrator = _make_orchestrator(_make_client())
        pipeline = orchestrator.create_pipeline(PipelinePreset.WHATSAPP_BRIEF, panel)
        assert panel.active_pipelines == [pipeline]
        assert pipeline.name == "WhatsApp Brief"
        assert pipeline.preset is PipelinePreset.WHATSAPP_BRIEF
        assert [s.status for s in pipeline.stages] == [StageStatus.PENDING] * 3
        assert pipeline.current_stage_index == 0
        assert pipeline.is_complete is False


class TestRunSingleAction:
    @pytest.mark.asyncio
    async def test_appends_one_stage_complete_pipeline(
        self, panel: DocumentPanel, document: DocumentMetadata
    ) -> None:
        client = _make_client(
            QueryResult(
                answer="A concise summary.",
                citations=[Citation(source="Document", excerpt="three regions")],
            )
        )
        output = await _make_orchestrator(client).run_single_action(
            QuickAction.SUMMARIZE, panel
        )

        assert output.content == "A concise summary."
        assert output.format is OutputFormat.TEXT
        assert output.metadata["action"] == "summarize"
        assert output.metadata["documentId"] == document.id
        assert [a.type for a in output.assets] == [AssetType.QUOTE]
        assert output.validation_results.citation_coverage == pytest.approx(0.1)

        assert len(panel.active_pipelines) == 1
        pipeline = panel.active_pipelines[0]
        assert pipeline.name == "Summary"
        assert pipeline.output is output
        assert pipeline.is_complete is True
        assert pipeline.stages[0].status is StageStatus.COMPLETED
        assert pipeline.stages[0].output == "A concise summary."

        prompt, file_ids, store_id = client.query.call_args.args
        assert "annual-report.pdf" in prompt
        assert file_ids == ["files/abc123"]
        assert store_id == "fileSearchStores/store-1"

    @pytest.mark.asyncio
    async def test_twice_gives_two_independent_pipelines(self, panel: DocumentPanel) -> None:
        client = _make_client(QueryResult(answer="same"), QueryResult(answer="same"))
        orchestrator = _make_orchestrator(client)

        first = await orchestrator.run_single_action(QuickAction.SUMMARIZE, panel)
        second = await orchestrator.run_single_action(QuickAction.SUMMARIZE, panel)

        assert first is not second
        one, two = panel.active_pipelines
        assert one.id != two.id
        assert one.stages[0] is not two.stages[0]
        assert one.output is first and two.output is second
        assert one.is_complete and two.is_complete

    @pytest.mark.asyncio
    async def test_failure_sets_panel_error_and_leaves_pipelines(
        self, panel: DocumentPanel
    ) -> None:
        events = EventBus()
        received = _record(events)
        client = _make_client(QueryRateLimitedError("slow down"))

        with pytest.raises(QueryFailedError, match="Failed to execute Translation") as exc_info:
            await _make_orchestrator(client, events).run_single_action(
                QuickAction.TRANSLATE, panel
            )

        assert isinstance(exc_info.value.__cause__, QueryRateLimitedError)
        assert exc_info.value.action == "translate"
        assert panel.active_pipelines == []
        assert panel.error_message is not None
        assert "slow down" in panel.error_message
        assert [e.type for e in received] == [PipelineEventType.ACTION_FAILED]

    @pytest.mark.asyncio
    async def test_unexpected_error_is_reported_as_query_failure(
        self, panel: DocumentPanel
    ) -> None:
        events = EventBus()
        received = _record(events)
        client = _make_client(RuntimeError("boom"))

        with pytest.raises(QueryFailedError, match="Failed to execute Summary: boom") as exc_info:
            await _make_orchestrator(client, events).run_single_action(
                QuickAction.SUMMARIZE, panel
            )

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert panel.error_message == "Failed to execute Summary: boom"
        assert panel.active_pipelines == []
        assert [e.type for e in received] == [PipelineEventType.ACTION_FAILED]

    @pytest.mark.asyncio
    async def test_success_clears_previous_error(self, panel: DocumentPanel) -> None:
        panel.error_message = "old failure"
        await _make_orchestrator(_make_client()).run_single_action(QuickAction.VOICEOVER, panel)
        assert panel.error_message is None

    @pytest.mark.asyncio
    async def test_extract_assets_parses_answer(self, panel: DocumentPanel) -> None:
        client = _make_client(
            QueryResult(answer="Figure 1: Map\nRegions shaded\nTable 1: Costs\nRows")
        )
        output = await _make_orchestrator(client).run_single_action(
            QuickAction.EXTRACT_ASSETS, panel
        )
        assert output.format is OutputFormat.JSON
        assert [a.type for a in output.assets] == [AssetType.FIGURE, AssetType.TABLE]

    @pytest.mark.asyncio
    async def test_translation_is_measured_against_source(self, panel: DocumentPanel) -> None:
        client = _make_client(QueryResult(answer="قصير"))
        output = await _make_orchestrator(client).run_single_action(
            QuickAction.TRANSLATE, panel
        )
        assert output.validation_results.localization_complete is False
        assert output.metadata["targetLanguage"] == "ar"
        assert any("differs significantly" in w.message for w in output.validation_results.warnings)

    @pytest.mark.asyncio
    async def test_holds_panel_lock_during_query(self, panel: DocumentPanel) -> None:
        seen: list[bool] = []

        async def query(prompt: str, file_ids: list[str], store_id: str | None) -> QueryResult:
            seen.append(panel.is_busy)
            return QueryResult(answer="ok")

        client = _make_client()
        client.query.side_effect = query
        await _make_orchestrator(client).run_single_action(QuickAction.SUMMARIZE, panel)
        assert seen == [True]
        assert panel.is_busy is False


class TestRunPipeline:
    @pytest.mark.asyncio
    async def test_runs_all_stages_in_order(self, panel: DocumentPanel) -> None:
        client = _make_client(
            QueryResult(answer="summary"),
            QueryResult(answer="ترجمة"),
            QueryResult(answer="post"),
        )
        events = EventBus()
        received = _record(events)
        orchestrator = _make_orchestrator(client, events)
        pipeline = orchestrator.create_pipeline(PipelinePreset.WHATSAPP_BRIEF, panel)

        result = await orchestrator.run_pipeline(pipeline, panel)

        assert result.status is PipelineRunStatus.COMPLETED
        assert result.succeeded
        assert result.stages_completed == 3
        assert result.total_stages == 3
        assert [s.status for s in pipeline.stages] == [StageStatus.COMPLETED] * 3
        assert [s.output for s in pipeline.stages] == ["summary", "ترجمة", "post"]
        assert pipeline.output is not None
        assert pipeline.output.content == "post"
        assert result.output is pipeline.output
        assert pipeline.is_complete is True
        assert pipeline.error is None
        # No wrapper pipelines are added for the stages.
        assert panel.active_pipelines == [pipeline]

        started = [e.stage_index for e in received if e.type is PipelineEventType.STAGE_STARTED]
        assert started == [0, 1, 2]
        assert received[-1].type is PipelineEventType.PIPELINE_COMPLETED

    @pytest.mark.asyncio
    async def test_settle_delay_between_completed_stages(self, panel: DocumentPanel) -> None:
        orchestrator = PipelineOrchestrator(_make_client(), settle_delay_seconds=0.5)
        pipeline = orchestrator.create_pipeline(PipelinePreset.INVESTOR_BRIEF, panel)
        with patch(
            "docpipe.orchestrator.orchestrator.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            await orchestrator.run_pipeline(pipeline, panel)
        assert mock_sleep.await_count == 2
        mock_sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_whatsapp_brief_fails_at_second_stage(self, panel: DocumentPanel) -> None:
        client = _make_client(
            QueryResult(answer="summary"),
            QueryNetworkError("connection reset"),
        )
        events = EventBus()
        received = _record(events)
        orchestrator = _make_orchestrator(client, events)
        pipeline = orchestrator.create_pipeline(PipelinePreset.WHATSAPP_BRIEF, panel)

        result = await orchestrator.run_pipeline(pipeline, panel)

        assert [s.status for s in pipeline.stages] == [
            StageStatus.COMPLETED,
            StageStatus.ERROR,
            StageStatus.PENDING,
        ]
        assert pipeline.is_complete is False
        assert pipeline.current_stage_index == 1
        assert pipeline.output is None
        assert pipeline.stages[2].output is None
        assert result.status is PipelineRunStatus.FAILED
        assert result.stages_completed == 1
        assert result.error == "Pipeline failed at stage 2: connection reset"
        assert pipeline.error == result.error
        assert panel.error_message == result.error
        assert client.query.await_count == 2
        assert [e.type for e in received][-2:] == [
            PipelineEventType.STAGE_FAILED,
            PipelineEventType.PIPELINE_FAILED,
        ]

    @pytest.mark.asyncio
    async def test_failure_leaves_sibling_pipelines_untouched(self, panel: DocumentPanel) -> None:
        client = _make_client(QueryResult(answer="done"), QueryNetworkError("down"))
        orchestrator = _make_orchestrator(client)
        await orchestrator.run_single_action(QuickAction.SUMMARIZE, panel)
        sibling = panel.active_pipelines[0]
        pipeline = orchestrator.create_pipeline(PipelinePreset.PODCAST_SCRIPT, panel)

        await orchestrator.run_pipeline(pipeline, panel)

        assert sibling.is_complete is True
        assert sibling.error is None
        assert panel.active_pipelines == [sibling, pipeline]

    @pytest.mark.asyncio
    async def test_rerun_resumes_at_failed_stage(self, panel: DocumentPanel) -> None:
        client = _make_client(
            QueryResult(answer="summary"),
            QueryRateLimitedError("429"),
            QueryResult(answer="translation"),
            QueryResult(answer="post"),
        )
        orchestrator = _make_orchestrator(client)
        pipeline = orchestrator.create_pipeline(PipelinePreset.WHATSAPP_BRIEF, panel)

        first = await orchestrator.run_pipeline(pipeline, panel)
        second = await orchestrator.run_pipeline(pipeline, panel)

        assert first.status is PipelineRunStatus.FAILED
        assert second.status is PipelineRunStatus.COMPLETED
        assert client.query.await_count == 4
        assert [s.output for s in pipeline.stages] == ["summary", "translation", "post"]
        assert pipeline.is_complete is True
        assert pipeline.error is None
        assert panel.error_message is None

    @pytest.mark.asyncio
    async def test_complete_pipeline_is_not_rerun(self, panel: DocumentPanel) -> None:
        client = _make_client()
        orchestrator = _make_orchestrator(client)
        pipeline = orchestrator.create_pipeline(PipelinePreset.INVESTOR_BRIEF, panel)
        await orchestrator.run_pipeline(pipeline, panel)
        output = pipeline.output

        result = await orchestrator.run_pipeline(pipeline, panel)

        assert result.status is PipelineRunStatus.COMPLETED
        assert client.query.await_count == 3
        assert pipeline.output is output

    @pytest.mark.asyncio
    async def test_zero_stage_pipeline_fails(self, panel: DocumentPanel) -> None:
        client = _make_client()
        pipeline = TransformationPipeline(name="Empty")
        panel.add_pipeline(pipeline)

        result = await _make_orchestrator(client).run_pipeline(pipeline, panel)

        assert result.status is PipelineRunStatus.FAILED
        assert result.error == "Pipeline has no stages"
        assert pipeline.is_complete is False
        client.query.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pipeline_must_belong_to_panel(self, panel: DocumentPanel) -> None:
        pipeline = TransformationPipeline(name="Stray")
        with pytest.raises(PipelineNotFoundError):
            await _make_orchestrator(_make_client()).run_pipeline(pipeline, panel)

    @pytest.mark.asyncio
    async def test_unexpected_error_marks_stage_failed(self, panel: DocumentPanel) -> None:
        client = _make_client(RuntimeError("unexpected"))
        orchestrator = _make_orchestrator(client)
        pipeline = orchestrator.create_pipeline(PipelinePreset.COMPLIANCE_REPORT, panel)

        result = await orchestrator.run_pipeline(pipeline, panel)

        assert result.error == "Pipeline failed at stage 1: unexpected"
        assert [s.status for s in pipeline.stages] == [
            StageStatus.ERROR,
            StageStatus.PENDING,
            StageStatus.PENDING,
        ]

    @pytest.mark.asyncio
    async def test_cancellation_marks_stage_and_panel(self, panel: DocumentPanel) -> None:
        events = EventBus()
        received = _record(events)
        client = _make_client(QueryResult(answer="brief"), asyncio.CancelledError())
        orchestrator = _make_orchestrator(client, events)
        pipeline = orchestrator.create_pipeline(PipelinePreset.WHATSAPP_BRIEF, panel)

        with pytest.raises(asyncio.CancelledError):
            await orchestrator.run_pipeline(pipeline, panel)

        assert [s.status for s in pipeline.stages] == [
            StageStatus.COMPLETED,
            StageStatus.ERROR,
            StageStatus.PENDING,
        ]
        assert pipeline.error == "Pipeline cancelled at stage 2"
        assert panel.error_message == "Pipeline cancelled at stage 2"
        failed = [e for e in received if e.type is PipelineEventType.STAGE_FAILED]
        assert [e.stage_index for e in failed] == [1]
        assert not panel.lock.locked()

    @pytest.mark.asyncio
    async def test_stage_index_is_monotonic(self, panel: DocumentPanel) -> None:
        orchestrator = _make_orchestrator(_make_client())
        pipeline = orchestrator.create_pipeline(PipelinePreset.TRAINING_SLIDE_DECK, panel)
        indices: list[int] = []
        orchestrator.events.subscribe(lambda e: indices.append(pipeline.current_stage_index))

        await orchestrator.run_pipeline(pipeline, panel)

        assert indices == sorted(indices)
        assert max(indices) == len(pipeline.stages) - 1

    @pytest.mark.asyncio
    async def test_panels_run_concurrently(self, document: DocumentMetadata) -> None:
        in_flight = 0
        peak = 0

        async def query(prompt: str, file_ids: list[str], store_id: str | None) -> QueryResult:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return QueryResult(answer="ok")

        client = _make_client()
        client.query.side_effect = query
        orchestrator = _make_orchestrator(client)
        first, second = DocumentPanel(document=document), DocumentPanel(document=document)

        await asyncio.gather(
            orchestrator.run_single_action(QuickAction.SUMMARIZE, first),
            orchestrator.run_single_action(QuickAction.SUMMARIZE, second),
        )

        assert peak == 2

    @pytest.mark.asyncio
    async def test_one_operation_in_flight_per_panel(self, panel: DocumentPanel) -> None:
        in_flight = 0
        peak = 0

        async def query(prompt: str, file_ids: list[str], store_id: str | None) -> QueryResult:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return QueryResult(answer="ok")

        client = _make_client()
        client.query.side_effect = query
        orchestrator = _make_orchestrator(client)
        pipeline = orchestrator.create_pipeline(PipelinePreset.INVESTOR_BRIEF, panel)

        await asyncio.gather(
            orchestrator.run_pipeline(pipeline, panel),
            orchestrator.run_single_action(QuickAction.SUMMARIZE, panel),
        )

        assert peak == 1
        assert len(panel.active_pipelines) == 2


class TestBuildOrchestrator:
    @pytest.mark.asyncio
    async def test_wires_configured_client(self, panel: DocumentPanel) -> None:
        settings = MagicMock()
        settings.query_provider = "example"
        settings.prohibited_terms = ["cure"]
        settings.citation_target_count = 10
        settings.min_citation_coverage = 0.7
        settings.length_ratio_min = 0.7
        settings.length_ratio_max = 1.5
        settings.stage_settle_delay_seconds = 0

        orchestrator = build_orchestrator(settings)
        output = await orchestrator.run_single_action(QuickAction.SUMMARIZE, panel)

        assert output.content == ExampleQueryClientAdapter.DEFAULT_ANSWER
        assert output.validation_results.citation_coverage == pytest.approx(0.1)
