from enum import StrEnum

from docpipe.canvas.models import RedactionStatus, ValidationResults


class CheckStatus(StrEnum):
    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"
    PENDING = "pending"


def citation_check_status(coverage: float) -> CheckStatus:
    if coverage >= 0.7:
        return CheckStatus.PASSED
    if coverage >= 0.5:
        return CheckStatus.WARNING
    return CheckStatus.FAILED


def redaction_check_status(status: RedactionStatus) -> CheckStatus:
    if status is RedactionStatus.COMPLETE:
        return CheckStatus.PASSED
    if status is RedactionStatus.PARTIAL:
        return CheckStatus.WARNING
    return CheckStatus.FAILED


def prohibited_terms_check_status(results: ValidationResults) -> CheckStatus:
    return CheckStatus.FAILED if results.errors else CheckStatus.PASSED


def build_checklist(results: ValidationResults | None) -> dict[str, CheckStatus]:
    """Per-check status for a review checklist. Everything is pending until scored."""
    if results is None:
        return {
            "citations": CheckStatus.PENDING,
            "redaction": CheckStatus.PENDING,
            "prohibitedTerms": CheckStatus.PENDING,
            "localization": CheckStatus.PENDING,
            "tone": CheckStatus.PENDING,
        }
    return {
        "citations": citation_check_status(results.citation_coverage),
        "redaction": redaction_check_status(results.privacy_redaction),
        "prohibitedTerms": prohibited_terms_check_status(results),
        "localization": (
            CheckStatus.PASSED if results.localization_complete else CheckStatus.FAILED
        ),
        "tone": CheckStatus.PASSED if results.tone_compliance else CheckStatus.WARNING,
    }
