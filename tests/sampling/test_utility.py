import pytest
from pydantic import BaseModel

from kodin.sampling.utility import (
    StructuredSamplingValidationError,
    estimate_tokens,
    get_prompt_tokens,
    new_assistant_message,
    new_user_message,
    sample,
    structured_sample,
)
from tests.conftest import FakeLLMClient


class Answer(BaseModel):
    answer: int


def test_estimate_tokens():
    assert estimate_tokens("") == 0
    assert estimate_tokens("a" * 41) == 10


def test_get_prompt_tokens():
    assert get_prompt_tokens("a" * 8, [new_user_message("b" * 12), new_assistant_message(["c" * 4, "d" * 3])]) == 2 + 3 + 2


def test_new_message():
    assert new_user_message(["line one", "line two"]) == {"role": "user", "content": "line one\nline two"}
    assert new_assistant_message("done") == {"role": "assistant", "content": "done"}


async def test_sample():
    llm_client = FakeLLMClient(responses=["The answer is 42."])

    text, assistant_message = await sample(llm_client, "system", [new_user_message("question")], max_tokens=10, temperature=0.5)

    assert text == "The answer is 42."
    assert assistant_message == {"role": "assistant", "content": "The answer is 42."}
    assert llm_client.calls == [
        {
            "system_prompt": "system",
            "messages": [{"role": "user", "content": "question"}],
            "max_tokens": 10,
            "temperature": 0.5,
        }
    ]


async def test_structured_sample():
    llm_client = FakeLLMClient(responses=['```json\n{"answer": 42}\n```'])

    answer: Answer = await structured_sample(llm_client, "system", [new_user_message("question")], response_model=Answer)

    assert answer == Answer(answer=42)

    messages = llm_client.calls[0]["messages"]
    assert len(messages) == 2
    assert messages[0] == {"role": "user", "content": "question"}
    assert "structured object of type Answer" in messages[1]["content"]


async def test_structured_sample_retries_with_feedback():
    llm_client = FakeLLMClient(responses=["I think it is 42.", '```json\n{"answer": 42}\n```'])

    answer: Answer = await structured_sample(llm_client, "system", [new_user_message("question")], response_model=Answer)

    assert answer == Answer(answer=42)
    assert len(llm_client.calls) == 2

    retry_messages = llm_client.calls[1]["messages"]
    assert len(retry_messages) == 4
    assert retry_messages[2] == {"role": "assistant", "content": "I think it is 42."}
    assert retry_messages[3]["role"] == "user"
    assert "(retry 1 of 3)" in retry_messages[3]["content"]


async def test_structured_sample_gives_up():
    llm_client = FakeLLMClient(responses=lambda system_prompt, messages: '```json\n{"answer": "forty two"}\n```')  # noqa: ARG005

    with pytest.raises(StructuredSamplingValidationError, match="in 2 retries"):
        await structured_sample(llm_client, "system", [new_user_message("question")], response_model=Answer, retries=2)

    assert len(llm_client.calls) == 2
