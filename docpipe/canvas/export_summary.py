from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum

from docpipe.canvas.models import OutputFormat, ValidationResults
from docpipe.canvas.panel import DocumentPanel
from docpipe.validation.engine import is_deployable


class ExportChannel(StrEnum):
    PDF = "pdf"
    HTML = "html"
    CMS = "cms"


_CHANNEL_BY_FORMAT: dict[OutputFormat, ExportChannel] = {
    OutputFormat.SLIDES: ExportChannel.PDF,
    OutputFormat.SCRIPT: ExportChannel.HTML,
    OutputFormat.JSON: ExportChannel.CMS,
}

EXPORT_LANGUAGES: tuple[str, ...] = ("en", "ar")


@dataclass(frozen=True)
class ExportSummary:
    """What a panel can be exported to, and whether it may ship."""

    channels: list[ExportChannel] = field(default_factory=list)
    languages: list[str] = field(default_factory=lambda: list(EXPORT_LANGUAGES))
    validation_status: ValidationResults = field(default_factory=ValidationResults)
    ready_for_deployment: bool = False
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def channel_for(output_format: OutputFormat) -> ExportChannel:
    return _CHANNEL_BY_FORMAT.get(output_format, ExportChannel.PDF)


def build_export_summary(panel: DocumentPanel) -> ExportSummary:
    """Summarize the panel's finished outputs.

    Channels are listed once each, in the order their pipelines were added.
    The validation status is taken from the most recent pipeline that has
    an output; a panel with no outputs is never ready.
    """
    channels: list[ExportChannel] = []
    validation = ValidationResults()
    for pipeline in panel.active_pipelines:
        if pipeline.output is None:
            continue
        channel = channel_for(pipeline.output.format)
        if channel not in channels:
            channels.append(channel)
        validation = pipeline.output.validation_results

    return ExportSummary(
        channels=channels,
        validation_status=validation,
        ready_for_deployment=is_deployable(validation),
    )
