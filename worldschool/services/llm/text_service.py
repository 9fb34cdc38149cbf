"""Generative text service.

The pipeline only needs "prompt in, free text out". Parsing and validation of
the text happen in the pathway stages, never here.
"""

from typing import Protocol

from loguru import logger
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from worldschool.config.settings import settings
from worldschool.pathways.errors import UpstreamError

DEFAULT_INSTRUCTIONS = "You are a helpful learning designer. Output only what the user asks for."


def get_model(provider: str, model_name: str, api_key: str | None = None) -> Model:
    """Build the configured generation model.

    The key is handed to the provider directly. Without one the OpenAI client
    falls back to the OPENAI_API_KEY environment variable.

    Raises:
        ValueError: If the provider is not supported
    """
    if provider == "openai":
        return OpenAIChatModel(model_name, provider=OpenAIProvider(api_key=api_key or None))

    raise ValueError(f"Unsupported LLM provider: {provider}")


class GenerativeTextService(Protocol):
    async def generate(self, prompt: str, *, instructions: str | None = None) -> str: ...


class AgentTextService:
    """Text service backed by a pydantic_ai Agent with plain-text output.

    Args:
        model: Model instance to use. Resolved from settings when omitted.
    """

    def __init__(self, model: Model | str | None = None):
        self._model = model

    def _resolve_model(self) -> Model | str:
        if self._model is None:
            self._model = get_model(settings.llm_provider, settings.llm_model, api_key=settings.openai_api_key)
        return self._model

    async def generate(self, prompt: str, *, instructions: str | None = None) -> str:
        """Run one generation.

        Args:
            prompt: User prompt
            instructions: System prompt for this call

        Returns:
            Raw text output

        Raises:
            UpstreamError: If the model call fails or returns no text
        """
        logger.debug("Calling generative text service", prompt_length=len(prompt))
        try:
            agent = Agent(
                model=self._resolve_model(),
                system_prompt=instructions or DEFAULT_INSTRUCTIONS,
                output_type=str,
            )
            result = await agent.run(prompt)
        except Exception as e:
            logger.error(
                "Generative text service call failed",
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True,
            )
            raise UpstreamError(f"Generative text service failed: {type(e).__name__}", [str(e)]) from e

        text = result.output
        if not text or not text.strip():
            raise UpstreamError("Generative text service returned no text")

        logger.debug("Generative text service returned", output_length=len(text))
        return text
