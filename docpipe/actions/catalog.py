"""Quick action registry: output format, pipeline name and prompt builder per action.

Every prompt is bilingual (Arabic instruction first, English after) because
the document corpus mixes both languages. Builders are pure functions of the
document metadata and the stage parameters.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from docpipe.canvas.models import DocumentMetadata, OutputFormat, QuickAction

PromptBuilder = Callable[[DocumentMetadata, Mapping[str, str]], str]
MetadataBuilder = Callable[[DocumentMetadata, Mapping[str, str]], dict[str, str]]


@dataclass(frozen=True)
class ActionSpec:
    output_format: OutputFormat
    pipeline_name: str
    build_prompt: PromptBuilder
    build_metadata: MetadataBuilder


def other_language(language: str) -> str:
    """The counterpart of *language* in the Arabic/English pair."""
    return "en" if language == "ar" else "ar"


def translation_languages(
    document: DocumentMetadata, parameters: Mapping[str, str]
) -> tuple[str, str]:
    source = document.language
    target = parameters.get("targetLanguage")
    if not target or target == source:
        target = other_language(source)
    return source, target


def _join(*blocks: str) -> str:
    return "\n\n".join(block for block in blocks if block)


def _document_line(document: DocumentMetadata) -> str:
    return f"Document: {document.file_name}"


def _summarize_prompt(document: DocumentMetadata, parameters: Mapping[str, str]) -> str:
    style = parameters.get("style", "comprehensive")
    max_length = parameters.get("maxLength")
    return _join(
        "قم بتلخيص المستند التالي بشكل شامل ومفصل:",
        f"Please provide a {style} summary of the following document:",
        _document_line(document),
        f"Keep the summary under {max_length} characters." if max_length else "",
    )


def _translate_prompt(document: DocumentMetadata, parameters: Mapping[str, str]) -> str:
    source, target = translation_languages(document, parameters)
    return _join(
        "ترجم المستند التالي مع الحفاظ على النبرة والتنسيق الأصليين:",
        f"Translate the following document from {source} to {target}:",
        _document_line(document),
        "Maintain the original tone and formatting.",
    )


def _slides_prompt(document: DocumentMetadata, parameters: Mapping[str, str]) -> str:
    theme = parameters.get("theme")
    return _join(
        "حوّل المستند التالي إلى مخطط عرض تقديمي مكوّن من شرائح:",
        "Convert the following document into a presentation outline with slides:",
        _document_line(document),
        "Format:\n"
        "- Title slide\n"
        "- 5-8 content slides with title and bullet points\n"
        "- Summary slide",
        f"Use a {theme} visual tone." if theme else "",
        "Each slide should be clearly marked with [SLIDE: Title] followed by content.",
    )


def _script_prompt(document: DocumentMetadata, parameters: Mapping[str, str]) -> str:
    script_type = parameters.get("type", "presentation")
    return _join(
        "أنشئ نصاً للعرض التقديمي بناءً على المستند التالي:",
        f"Generate a {script_type} script based on the following document:",
        _document_line(document),
        "The script should:\n"
        "- Be conversational and engaging\n"
        "- Include speaker notes and timing suggestions\n"
        "- Have clear sections with headings\n"
        "- Be suitable for a 10-15 minute presentation",
    )


def _social_post_prompt(document: DocumentMetadata, parameters: Mapping[str, str]) -> str:
    platform = parameters.get("platform", "multiple")
    if platform == "multiple":
        targets = (
            "Generate:\n"
            "1. LinkedIn post (professional, 1300 characters max)\n"
            "2. Twitter/X thread (3-5 tweets)\n"
            "3. Instagram caption (with hashtags)"
        )
    else:
        targets = f"Generate a post formatted for {platform}."
    return _join(
        "أنشئ منشورات جذابة لوسائل التواصل الاجتماعي بناءً على المستند التالي:",
        "Create engaging social media posts based on the following document:",
        _document_line(document),
        targets,
        "Include relevant hashtags and call-to-actions.",
    )


def _extract_assets_prompt(document: DocumentMetadata, parameters: Mapping[str, str]) -> str:
    focus = parameters.get("type")
    return _join(
        "استخرج وصفاً لجميع الأصول المرئية والجداول والأشكال والاقتباسات من المستند التالي:",
        "Extract and describe all visual assets, tables, figures, and quotes "
        "from the following document:",
        _document_line(document),
        f"Focus on {focus}." if focus else "",
        "For each asset provide:\n"
        "- Type (figure/table/quote/chart)\n"
        "- Description\n"
        "- Context and relevance\n"
        "- Suggestions for visual representation",
    )


def _chatbot_prompt(document: DocumentMetadata, parameters: Mapping[str, str]) -> str:
    snippet_format = parameters.get("format", "structured")
    return _join(
        "حوّل المستند التالي إلى مقتطفات معرفية منظمة لروبوت المحادثة:",
        f"Convert the following document into {snippet_format} chatbot knowledge snippets:",
        _document_line(document),
        "For each snippet provide:\n"
        "- Intent (user question/query)\n"
        "- Response (clear, concise answer)\n"
        "- Alternative responses (2-3 variations)\n"
        "- Citations (source references)\n"
        "- Metadata (category, tags, confidence)",
        "Format as JSON.",
    )


def _voiceover_prompt(document: DocumentMetadata, parameters: Mapping[str, str]) -> str:
    style = parameters.get("style", "conversational")
    return _join(
        "أنشئ نصاً للتعليق الصوتي مهيأً للتسجيل بناءً على المستند التالي:",
        "Create a voiceover script optimized for audio recording "
        "based on the following document:",
        _document_line(document),
        "The script should:\n"
        f"- Be {style} and natural for speaking\n"
        "- Include pronunciation guides for technical terms\n"
        "- Mark pauses and emphasis points\n"
        "- Estimate timing (words per minute: 150)\n"
        "- Include intro and outro sections",
    )


def _parameters_metadata(
    document: DocumentMetadata, parameters: Mapping[str, str]
) -> dict[str, str]:
    _ = document
    return dict(parameters)


def _translation_metadata(
    document: DocumentMetadata, parameters: Mapping[str, str]
) -> dict[str, str]:
    source, target = translation_languages(document, parameters)
    return {**parameters, "sourceLanguage": source, "targetLanguage": target}


ACTION_REGISTRY: dict[QuickAction, ActionSpec] = {
    QuickAction.SUMMARIZE: ActionSpec(
        OutputFormat.TEXT, "Summary", _summarize_prompt, _parameters_metadata
    ),
    QuickAction.TRANSLATE: ActionSpec(
        OutputFormat.TEXT, "Translation", _translate_prompt, _translation_metadata
    ),
    QuickAction.CONVERT_TO_SLIDES: ActionSpec(
        OutputFormat.SLIDES, "Slides", _slides_prompt, _parameters_metadata
    ),
    QuickAction.GENERATE_SCRIPT: ActionSpec(
        OutputFormat.SCRIPT, "Script", _script_prompt, _parameters_metadata
    ),
    QuickAction.SOCIAL_POST: ActionSpec(
        OutputFormat.TEXT, "Social Media", _social_post_prompt, _parameters_metadata
    ),
    QuickAction.EXTRACT_ASSETS: ActionSpec(
        OutputFormat.JSON, "Asset Extraction", _extract_assets_prompt, _parameters_metadata
    ),
    QuickAction.CHATBOT_SNIPPET: ActionSpec(
        OutputFormat.JSON, "Chatbot Snippets", _chatbot_prompt, _parameters_metadata
    ),
    QuickAction.VOICEOVER: ActionSpec(
        OutputFormat.SCRIPT, "Voiceover Script", _voiceover_prompt, _parameters_metadata
    ),
}


def get_action_spec(action: QuickAction) -> ActionSpec:
    return ACTION_REGISTRY[action]


def build_prompt(
    action: QuickAction,
    document: DocumentMetadata,
    parameters: Mapping[str, str] | None = None,
) -> str:
    return ACTION_REGISTRY[action].build_prompt(document, parameters or {})


def output_format_for(action: QuickAction) -> OutputFormat:
    return ACTION_REGISTRY[action].output_format
