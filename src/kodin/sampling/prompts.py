from textwrap import dedent
from typing import TYPE_CHECKING, Any, Self

import yaml
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from openai.types.chat import ChatCompletionMessageParam


class PromptSection(BaseModel):
    title: str = Field(description="The title of the section.")
    level: int = Field(default=1, description="The level of the section.")
    section: str = Field(description="The section of the prompt.")

    def render_text(self) -> str:
        return f"{'#' * self.level} {self.title}\n{self.section}"


TUTOR_ROLE = PromptSection(
    title="Who you are",
    level=1,
    section="""
You are a senior software engineer who writes tutorials that teach newcomers how a specific codebase works.
You explain the project that is in front of you, not the technologies it happens to use.
""",
)

DEEPLY_ROOTED = PromptSection(
    title="Deeply Rooted",
    level=1,
    section="""
Your work should always be entirely rooted in the provided repository context, not invented or made up. Every
concept you explain must be referenceable back to a specific file path from the context. If the context does not
show how something works, say so instead of guessing.
""",
)


def dump_yaml(value: Any) -> str:  # pyright: ignore[reportAny]
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")

    return yaml.safe_dump(value, indent=1, sort_keys=False, width=400, allow_unicode=True)


class PromptBuilder(BaseModel):
    sections: list[PromptSection] = Field(default_factory=list, description="The sections of the prompt.")

    def add_text_section(self, title: str, text: str | list[str], level: int = 1) -> Self:
        if not isinstance(text, list):
            text = [text]

        text_block = "\n".join([dedent(text) for text in text])

        self.sections.append(PromptSection(title=title, level=level, section=text_block))

        return self

    def add_yaml_section(self, title: str, obj: Any, preamble: str | None = None, level: int = 1) -> Self:  # pyright: ignore[reportAny]
        yaml_block: str = preamble or ""

        yaml_block += f"""
```yaml
{dump_yaml(obj)}```"""

        self.sections.append(PromptSection(title=title, level=level, section=yaml_block))

        return self

    def render_text(self) -> str:
        return "\n\n".join(section.render_text() for section in self.sections)

    def to_messages(self) -> list["ChatCompletionMessageParam"]:
        return [{"role": "user", "content": self.render_text()}]


class SystemPromptBuilder(PromptBuilder):
    sections: list[PromptSection] = Field(default_factory=lambda: [TUTOR_ROLE, DEEPLY_ROOTED], description="The sections of the prompt.")
