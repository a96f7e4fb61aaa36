from docpipe.config.settings import Settings
from docpipe.query.base import BaseDocumentQueryClient
from docpipe.query.example_client_adapter import ExampleQueryClientAdapter
from docpipe.query.gemini_client_adapter import GeminiQueryClientAdapter
from docpipe.query.openai_client_adapter import OpenAIQueryClientAdapter


class QueryClientFactory:
    """Creates the configured document query client."""

    SUPPORTED_PROVIDERS: tuple[str, ...] = ("example", "gemini", "openai")

    @classmethod
    def create(cls, settings: Settings) -> BaseDocumentQueryClient:
        """Create a configured query client from application settings."""
        provider = settings.query_provider.lower()
        if provider == "example":
            return ExampleQueryClientAdapter()
        if provider == "gemini":
            return GeminiQueryClientAdapter(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model_name,
                timeout_seconds=settings.gemini_timeout_seconds,
                base_url=settings.gemini_base_url,
            )
        if provider == "openai":
            return OpenAIQueryClientAdapter(
                api_key=settings.openai_api_key,
                model=settings.openai_model_name,
                timeout_seconds=settings.openai_timeout_seconds,
            )
        raise ValueError(
            f"Unknown query provider '{provider}'. "
            f"Choose from: {list(cls.SUPPORTED_PROVIDERS)}"
        )
