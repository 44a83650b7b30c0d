from typing import TYPE_CHECKING, Literal

from fastmcp.utilities.logging import get_logger
from pydantic import ValidationError

from kodin.clients.llm import LLMClient
from kodin.sampling.extract import ALLOWED_TYPES, extract_single_object_from_text, object_in_text_instructions

if TYPE_CHECKING:
    from openai.types.chat import ChatCompletionMessageParam

logger = get_logger(__name__)


def estimate_tokens(text: str) -> int:
    """Estimate the number of tokens for a given text."""
    return len(text) // 4


def get_prompt_tokens(system_prompt: str, messages: list["ChatCompletionMessageParam"]) -> int:
    """Get the approximate size of a prompt."""

    return estimate_tokens(system_prompt) + sum(estimate_tokens(str(message.get("content") or "")) for message in messages)


def new_message(role: Literal["user", "assistant"], content: str | list[str]) -> "ChatCompletionMessageParam":
    if isinstance(content, list):
        content = "\n".join(content)

    return {"role": role, "content": content}


def new_user_message(content: str | list[str]) -> "ChatCompletionMessageParam":
    return new_message("user", content)


def new_assistant_message(content: str | list[str]) -> "ChatCompletionMessageParam":
    return new_message("assistant", content)


class StructuredSamplingValidationError(Exception):
    """The model did not produce a valid structured response."""

    def __init__(self, message: str):
        super().__init__(message)


async def sample(
    llm_client: LLMClient,
    system_prompt: str,
    messages: list["ChatCompletionMessageParam"],
    *,
    max_tokens: int = 2000,
    temperature: float = 0.0,
) -> tuple[str, "ChatCompletionMessageParam"]:
    """Sample a response from the model.

    Provides the text response as well as the assistant message for continuing the conversation.
    """

    logger.info(f"Sampling with prompt that is {get_prompt_tokens(system_prompt, messages)} tokens.")

    text: str = await llm_client.complete(
        system_prompt=system_prompt,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
    )

    return text, new_assistant_message(text)


async def structured_sample[T: ALLOWED_TYPES](
    llm_client: LLMClient,
    system_prompt: str,
    messages: list["ChatCompletionMessageParam"],
    *,
    response_model: type[T],
    max_tokens: int = 2000,
    temperature: float = 0.0,
    retries: int = 3,
) -> T:
    """Sample a response from the model and parse it into `response_model`.

    When the response cannot be parsed, the error is sent back to the model and the request is retried.

    Args:
        llm_client: The chat completion client.
        system_prompt: The system prompt to use for the sampling.
        messages: The messages to use for the sampling.
        response_model: The model the response must validate against.
        max_tokens: The maximum number of tokens to generate.
        temperature: The temperature to use for the sampling.
        retries: The number of attempts before giving up.

    Raises:
        StructuredSamplingValidationError: If no attempt produced a valid response.
    """

    extra_messages: list[ChatCompletionMessageParam] = [new_user_message(object_in_text_instructions(object_type=response_model))]

    for retry in range(retries):
        response, assistant_message = await sample(
            llm_client,
            system_prompt,
            [*messages, *extra_messages],
            max_tokens=max_tokens,
            temperature=temperature,
        )

        try:
            return extract_single_object_from_text(response, object_type=response_model)
        except (ValidationError, ValueError) as e:
            msg = (
                f"The sampling call failed to generate a valid structured response (retry {retry + 1} of {retries}). Please try again: {e}"
            )
            logger.warning(msg)

            extra_messages.extend([assistant_message, new_user_message(msg)])

    raise StructuredSamplingValidationError(
        message=f"The sampling call failed to generate a valid structured response in {retries} retries."
    )
