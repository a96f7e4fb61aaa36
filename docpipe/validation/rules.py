"""TTLINC rules: Terminology, Tone, Language, Intent, Non-compliant wording, Citations.

Each rule is independent and returns findings as data. Nothing here raises
for a failed check.
"""

from collections.abc import Iterable, Sequence

from docpipe.canvas.models import (
    AssetType,
    ExtractedAsset,
    GlossaryEntry,
    Severity,
    ValidationError,
    ValidationWarning,
)

_COMPLETENESS_RATIO = 0.5


def is_localization_complete(content: str, source_text: str) -> bool:
    """Content is non-empty and longer than half of the source."""
    if not content:
        return False
    return len(content) > int(len(source_text) * _COMPLETENESS_RATIO)


def check_terminology(content: str, glossary: Sequence[GlossaryEntry]) -> list[ValidationWarning]:
    missing = [
        entry.target_term
        for entry in glossary
        if entry.is_locked and entry.target_term not in content
    ]
    if not missing:
        return []
    return [
        ValidationWarning(
            message=f"Not all glossary terms were used in translation: {', '.join(missing)}",
            suggestion="Review glossary and ensure consistent terminology",
        )
    ]


def check_prohibited_wording(
    content: str,
    prohibited_terms: Iterable[str],
    location: str = "content",
) -> list[ValidationError]:
    """One high-severity error per distinct prohibited term found (case-insensitive)."""
    lowered = content.lower()
    errors: list[ValidationError] = []
    seen: set[str] = set()
    for term in prohibited_terms:
        key = term.lower()
        if not key or key in seen:
            continue
        seen.add(key)
        if key in lowered:
            errors.append(
                ValidationError(
                    message=f"Non-compliant wording detected: '{term}'",
                    location=location,
                    severity=Severity.HIGH,
                )
            )
    return errors


def check_length_ratio(
    content: str,
    source_text: str,
    ratio_min: float,
    ratio_max: float,
) -> list[ValidationWarning]:
    if not source_text:
        return []
    ratio = len(content) / len(source_text)
    if ratio_min <= ratio <= ratio_max:
        return []
    return [
        ValidationWarning(
            message=f"Translation length differs significantly from source ({ratio * 100:.0f}%)",
            suggestion="Review translation for completeness and accuracy",
        )
    ]


def citation_coverage(assets: Iterable[ExtractedAsset], target_count: int) -> float:
    """Share of the citation target met by quote assets, clamped to [0, 1]."""
    if target_count <= 0:
        return 1.0
    quotes = sum(1 for asset in assets if asset.type is AssetType.QUOTE)
    return min(quotes / target_count, 1.0)


def check_citation_coverage(coverage: float, minimum: float) -> list[ValidationWarning]:
    if coverage >= minimum:
        return []
    return [
        ValidationWarning(
            message=f"Low citation coverage ({coverage * 100:.0f}%)",
            suggestion="Add more citations to support claims",
        )
    ]
