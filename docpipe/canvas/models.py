import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum

from docpipe.canvas.exceptions import InvalidStageTransitionError


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuickAction(StrEnum):
    """Atomic transformation kinds a panel can run against its document."""

    SUMMARIZE = "summarize"
    TRANSLATE = "translate"
    CONVERT_TO_SLIDES = "convertToSlides"
    GENERATE_SCRIPT = "generateScript"
    SOCIAL_POST = "socialPost"
    EXTRACT_ASSETS = "extractAssets"
    CHATBOT_SNIPPET = "chatbotSnippet"
    VOICEOVER = "voiceover"


DEFAULT_QUICK_ACTIONS: tuple[QuickAction, ...] = (
    QuickAction.SUMMARIZE,
    QuickAction.TRANSLATE,
    QuickAction.CONVERT_TO_SLIDES,
    QuickAction.GENERATE_SCRIPT,
)


class PipelinePreset(StrEnum):
    """Named business scenarios that seed a pipeline's stage list."""

    INVESTOR_BRIEF = "investorBrief"
    PATIENT_LEAFLET = "patientLeaflet"
    TRAINING_SLIDE_DECK = "trainingSlideDeck"
    SOCIAL_MEDIA_CAMPAIGN = "socialMediaCampaign"
    MULTILINGUAL_FAQ = "multilingualFAQ"
    COMPLIANCE_REPORT = "complianceReport"
    PODCAST_SCRIPT = "podcastScript"
    WHATSAPP_BRIEF = "whatsappBrief"


class OutputFormat(StrEnum):
    TEXT = "text"
    MARKDOWN = "markdown"
    HTML = "html"
    PDF = "pdf"
    SLIDES = "slides"
    SCRIPT = "script"
    JSON = "json"


class StageStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class AssetType(StrEnum):
    FIGURE = "figure"
    TABLE = "table"
    QUOTE = "quote"
    CHART = "chart"
    INFOGRAPHIC = "infographic"
    IMAGE = "image"


class Severity(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RedactionStatus(StrEnum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    PENDING = "pending"
    NOT_REQUIRED = "notRequired"


_ALLOWED_TRANSITIONS: dict[StageStatus, frozenset[StageStatus]] = {
    StageStatus.PENDING: frozenset({StageStatus.PROCESSING}),
    StageStatus.PROCESSING: frozenset({StageStatus.COMPLETED, StageStatus.ERROR}),
    StageStatus.COMPLETED: frozenset(),
    StageStatus.ERROR: frozenset(),
}


@dataclass(frozen=True)
class DocumentMetadata:
    """Uploaded document as seen by the transformation engine."""

    file_name: str
    language: str = "en"
    document_type: str = ""
    file_id: str | None = None
    store_id: str | None = None
    source_text: str = ""
    id: str = field(default_factory=_new_id)


@dataclass(frozen=True)
class Citation:
    """Grounding reference returned by the document query service."""

    source: str
    excerpt: str
    page_number: int | None = None


@dataclass(frozen=True)
class QueryResult:
    """Answer text plus citations for one document query."""

    answer: str
    citations: list[Citation] = field(default_factory=list)


@dataclass(frozen=True)
class GlossaryEntry:
    """Terminology pair supplied by the localization editor."""

    source_term: str
    target_term: str
    context: str = ""
    is_locked: bool = False


@dataclass(frozen=True)
class ExtractedAsset:
    """Figure, table, quote or chart lifted out of a document."""

    type: AssetType
    source_reference: str
    content: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    id: str = field(default_factory=_new_id)


@dataclass(frozen=True)
class ValidationError:
    """A "must fix" finding."""

    message: str
    location: str
    severity: Severity = Severity.MEDIUM


@dataclass(frozen=True)
class ValidationWarning:
    """A "should review" finding."""

    message: str
    suggestion: str


@dataclass(frozen=True)
class ValidationResults:
    """TTLINC scoring of one output."""

    localization_complete: bool = False
    citation_coverage: float = 0.0
    privacy_redaction: RedactionStatus = RedactionStatus.PENDING
    tone_compliance: bool = False
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)


@dataclass(frozen=True)
class TransformationOutput:
    """Terminal artifact of a stage or pipeline. Replaced, never mutated."""

    content: str
    format: OutputFormat
    metadata: dict[str, str] = field(default_factory=dict)
    assets: list[ExtractedAsset] = field(default_factory=list)
    validation_results: ValidationResults = field(default_factory=ValidationResults)
    generated_at: datetime = field(default_factory=_utcnow)


@dataclass
class TransformationStage:
    """One step of a pipeline, bound to a single quick action."""

    type: QuickAction
    parameters: dict[str, str] = field(default_factory=dict)
    output: str | None = None
    is_editable: bool = True
    status: StageStatus = StageStatus.PENDING
    id: str = field(default_factory=_new_id)

    def transition_to(self, status: StageStatus) -> None:
        """Move to *status*, enforcing pending -> processing -> completed|error.

        Raises:
            InvalidStageTransitionError: if the move is not allowed.
        """
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStageTransitionError(
                f"Stage {self.id} cannot move from {self.status} to {status}"
            )
        self.status = status

    def reset_for_retry(self) -> None:
        """Return a failed stage to pending so a new run can re-attempt it."""
        if self.status is not StageStatus.ERROR:
            raise InvalidStageTransitionError(
                f"Only failed stages can be retried, stage {self.id} is {self.status}"
            )
        self.status = StageStatus.PENDING
        self.output = None


@dataclass
class TransformationPipeline:
    """Ordered stages executed one at a time to produce one output."""

    name: str
    stages: list[TransformationStage] = field(default_factory=list)
    preset: PipelinePreset | None = None
    current_stage_index: int = 0
    output: TransformationOutput | None = None
    error: str | None = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_complete(self) -> bool:
        if not self.stages:
            return False
        return (
            self.current_stage_index == len(self.stages) - 1
            and self.stages[-1].status is StageStatus.COMPLETED
            and self.output is not None
        )

    @property
    def current_stage(self) -> TransformationStage | None:
        if not self.stages:
            return None
        return self.stages[self.current_stage_index]

    def touch(self) -> None:
        self.updated_at = _utcnow()
