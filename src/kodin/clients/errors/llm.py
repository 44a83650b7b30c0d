class LLMError(Exception):
    """An error from the Kodin chat completion client."""


class LLMConfigurationError(LLMError):
    """The chat completion client is missing its API key."""

    def __init__(self):
        super().__init__("GROQ_API_KEY or OPENAI_API_KEY must be set to generate tutorials.")


class LLMRequestError(LLMError):
    """The chat completion provider rejected or failed a request."""

    def __init__(self, action: str, message: str | None = None):
        msg = f"{action}: {message}" if message else action
        super().__init__(msg)
