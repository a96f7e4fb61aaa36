"""Pipeline presets: named scenarios mapped to ordered stage templates.

Adding a preset means adding a row to PRESET_CATALOG. Expansion copies the
template parameters so stages never share state with the catalog.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from docpipe.canvas.models import PipelinePreset, QuickAction, TransformationStage

StageTemplate = tuple[QuickAction, Mapping[str, str]]


@dataclass(frozen=True)
class PresetDefinition:
    display_name: str
    description: str
    stages: tuple[StageTemplate, ...]


PRESET_CATALOG: dict[PipelinePreset, PresetDefinition] = {
    PipelinePreset.INVESTOR_BRIEF: PresetDefinition(
        "Investor Brief",
        "Executive summary → Professional slides → Key charts",
        (
            (QuickAction.SUMMARIZE, {"style": "executive"}),
            (QuickAction.CONVERT_TO_SLIDES, {"theme": "professional"}),
            (QuickAction.EXTRACT_ASSETS, {"type": "charts"}),
        ),
    ),
    PipelinePreset.PATIENT_LEAFLET: PresetDefinition(
        "Patient Leaflet",
        "Simple summary → Arabic translation → Visual aids",
        (
            (QuickAction.SUMMARIZE, {"style": "simple"}),
            (QuickAction.TRANSLATE, {"targetLanguage": "ar"}),
            (QuickAction.EXTRACT_ASSETS, {"type": "illustrations"}),
        ),
    ),
    PipelinePreset.TRAINING_SLIDE_DECK: PresetDefinition(
        "Training Slide Deck",
        "Educational content → Training slides → Presenter script",
        (
            (QuickAction.SUMMARIZE, {"style": "educational"}),
            (QuickAction.CONVERT_TO_SLIDES, {"theme": "training"}),
            (QuickAction.GENERATE_SCRIPT, {"type": "presenter"}),
        ),
    ),
    PipelinePreset.SOCIAL_MEDIA_CAMPAIGN: PresetDefinition(
        "Social Media Campaign",
        "Engaging summary → Social posts → Multilingual",
        (
            (QuickAction.SUMMARIZE, {"style": "engaging"}),
            (QuickAction.SOCIAL_POST, {"platform": "multiple"}),
            (QuickAction.TRANSLATE, {"targetLanguage": "ar"}),
        ),
    ),
    PipelinePreset.MULTILINGUAL_FAQ: PresetDefinition(
        "Multilingual FAQ",
        "FAQ format → Arabic/English → Chatbot ready",
        (
            (QuickAction.CHATBOT_SNIPPET, {"format": "faq"}),
            (QuickAction.TRANSLATE, {"targetLanguage": "ar"}),
            (QuickAction.TRANSLATE, {"targetLanguage": "en"}),
        ),
    ),
    PipelinePreset.COMPLIANCE_REPORT: PresetDefinition(
        "Compliance Report",
        "Formal summary → Citations → Structured data",
        (
            (QuickAction.SUMMARIZE, {"style": "formal"}),
            (QuickAction.EXTRACT_ASSETS, {"type": "citations"}),
            (QuickAction.CHATBOT_SNIPPET, {"format": "structured"}),
        ),
    ),
    PipelinePreset.PODCAST_SCRIPT: PresetDefinition(
        "Podcast Script",
        "Podcast script → Voiceover → Multilingual",
        (
            (QuickAction.GENERATE_SCRIPT, {"type": "podcast"}),
            (QuickAction.VOICEOVER, {"style": "conversational"}),
            (QuickAction.TRANSLATE, {"targetLanguage": "ar"}),
        ),
    ),
    PipelinePreset.WHATSAPP_BRIEF: PresetDefinition(
        "WhatsApp Brief",
        "Brief summary → Arabic → WhatsApp format",
        (
            (QuickAction.SUMMARIZE, {"style": "brief", "maxLength": "500"}),
            (QuickAction.TRANSLATE, {"targetLanguage": "ar"}),
            (QuickAction.SOCIAL_POST, {"platform": "whatsapp"}),
        ),
    ),
}


def get_preset(preset: PipelinePreset) -> PresetDefinition:
    return PRESET_CATALOG[preset]


def stage_templates(preset: PipelinePreset) -> list[tuple[QuickAction, dict[str, str]]]:
    return [(action, dict(params)) for action, params in PRESET_CATALOG[preset].stages]


def expand_preset(preset: PipelinePreset) -> list[TransformationStage]:
    """Create fresh pending stages for *preset*, in declared order."""
    return [
        TransformationStage(type=action, parameters=params)
        for action, params in stage_templates(preset)
    ]
