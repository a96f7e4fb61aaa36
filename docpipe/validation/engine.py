from collections.abc import Sequence
from dataclasses import dataclass

from docpipe.canvas.models import (
    ExtractedAsset,
    GlossaryEntry,
    RedactionStatus,
    ValidationResults,
)
from docpipe.config.settings import Settings
from docpipe.logging.logger import Log
from docpipe.validation import rules


@dataclass(frozen=True)
class ValidationPolicy:
    """Thresholds and term list applied by the validation engine."""

    prohibited_terms: tuple[str, ...] = ("cure", "guarantee", "miracle", "proven")
    citation_target_count: int = 10
    min_citation_coverage: float = 0.7
    length_ratio_min: float = 0.7
    length_ratio_max: float = 1.5

    @classmethod
    def from_settings(cls, settings: Settings) -> "ValidationPolicy":
        return cls(
            prohibited_terms=tuple(settings.prohibited_terms),
            citation_target_count=settings.citation_target_count,
            min_citation_coverage=settings.min_citation_coverage,
            length_ratio_min=settings.length_ratio_min,
            length_ratio_max=settings.length_ratio_max,
        )


class ValidationEngine:
    """Scores produced content against the TTLINC rubric."""

    def __init__(self, policy: ValidationPolicy | None = None) -> None:
        self._policy = policy or ValidationPolicy()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ValidationEngine":
        return cls(ValidationPolicy.from_settings(settings))

    @property
    def policy(self) -> ValidationPolicy:
        return self._policy

    def validate(
        self,
        content: str,
        *,
        source_text: str = "",
        assets: Sequence[ExtractedAsset] = (),
        glossary: Sequence[GlossaryEntry] = (),
        redaction_status: RedactionStatus = RedactionStatus.PENDING,
        tone_compliance: bool = True,
    ) -> ValidationResults:
        """Run every rule and collect the results.

        Findings are returned as data. Privacy redaction and tone are
        supplied by external reviewers and copied through unchanged.
        """
        policy = self._policy
        coverage = rules.citation_coverage(assets, policy.citation_target_count)

        errors = rules.check_prohibited_wording(content, policy.prohibited_terms)
        warnings = [
            *rules.check_terminology(content, glossary),
            *rules.check_length_ratio(
                content, source_text, policy.length_ratio_min, policy.length_ratio_max
            ),
            *rules.check_citation_coverage(coverage, policy.min_citation_coverage),
        ]

        results = ValidationResults(
            localization_complete=rules.is_localization_complete(content, source_text),
            citation_coverage=coverage,
            privacy_redaction=redaction_status,
            tone_compliance=tone_compliance,
            errors=errors,
            warnings=warnings,
        )
        if errors or warnings:
            Log.warning(
                f"Validation found {len(errors)} error(s) and {len(warnings)} warning(s)"
            )
        return results


def is_deployable(results: ValidationResults) -> bool:
    """An output is ready when it has no errors, is fully localized and on tone."""
    return not results.errors and results.localization_complete and results.tone_compliance
