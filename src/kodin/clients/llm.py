import os
from logging import Logger, getLogger
from typing import TYPE_CHECKING

from openai import AsyncOpenAI, OpenAIError

from kodin.clients.errors.llm import LLMConfigurationError, LLMRequestError

if TYPE_CHECKING:
    from openai.types.chat import ChatCompletion, ChatCompletionMessageParam

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "llama-3.1-8b-instant"


def get_llm_settings() -> tuple[str | None, str | None, str]:
    """Resolve the API key, base URL and model from the environment."""

    model: str = os.getenv("LLM_MODEL") or DEFAULT_MODEL

    if groq_api_key := os.getenv("GROQ_API_KEY"):
        return groq_api_key, os.getenv("LLM_BASE_URL") or GROQ_BASE_URL, model

    return os.getenv("OPENAI_API_KEY"), os.getenv("LLM_BASE_URL"), model


class LLMClient:
    """A chat completion client for any OpenAI-compatible provider. The provider client is created on first use."""

    model: str
    logger: Logger

    def __init__(
        self,
        openai_client: AsyncOpenAI | None = None,
        model: str | None = None,
        logger: Logger | None = None,
    ):
        self._openai_client = openai_client
        self.model = model or get_llm_settings()[2]
        self.logger = logger or getLogger(__name__)

    @property
    def openai_client(self) -> AsyncOpenAI:
        if self._openai_client is None:
            api_key, base_url, _ = get_llm_settings()

            if not api_key:
                raise LLMConfigurationError

            self._openai_client = AsyncOpenAI(api_key=api_key, base_url=base_url)

        return self._openai_client

    async def complete(
        self,
        system_prompt: str,
        messages: list["ChatCompletionMessageParam"],
        *,
        max_tokens: int = 2000,
        temperature: float = 0.0,
    ) -> str:
        """Request a chat completion and return the text of the first choice."""

        self.logger.info(f"Requesting completion from {self.model} with {len(messages)} messages.")

        try:
            completion: ChatCompletion = await self.openai_client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                max_tokens=max_tokens,
                messages=[{"role": "system", "content": system_prompt}, *messages],
            )
        except OpenAIError as e:
            self.logger.exception(f"Error requesting completion from {self.model}")
            raise LLMRequestError(action=f"Request completion from {self.model}", message=str(e)) from e

        content: str = ""

        if completion.choices:
            content = completion.choices[0].message.content or ""

        self.logger.info(f"Completion from {self.model} was {len(content) // 4} tokens.")

        return content
