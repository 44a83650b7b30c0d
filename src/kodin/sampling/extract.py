import json
from textwrap import dedent
from typing import Any

from pydantic import BaseModel, TypeAdapter

ALLOWED_TYPES = BaseModel | list[BaseModel]


def object_in_text_instructions[T: ALLOWED_TYPES](object_type: type[T]) -> str:
    """Return instructions asking the model to answer with a single JSON block of the given type."""

    type_adapter: TypeAdapter[T] = TypeAdapter[T](object_type)
    json_schema: dict[str, Any] = type_adapter.json_schema()

    return dedent(
        f"""
The only valid response to this request is a structured object of type {object_type.__name__}.

The schema for the object is:
```json
{json.dumps(obj=json_schema, indent=1)}
```

Place the JSON between ```json and ``` tags. Do not add any other text before or after the block.

You must ensure you close any JSON tags, including arrays, objects, and strings and that
you do not leave trailing commas or other invalid JSON."""
    ).strip()


def extract_json_blocks_from_text(text: str) -> list[str]:
    """Extract all fenced blocks from a text string."""

    lines = text.strip().split("\n")

    start_index: int | None = None

    matches: list[str] = []

    for i, line in enumerate(lines):
        if not line.strip().startswith("```"):
            continue

        if start_index is None:
            start_index = i + 1
            continue

        matches.append("\n".join(lines[start_index:i]))
        start_index = None

    return matches


def extract_single_object_from_json_block[T: ALLOWED_TYPES](json_block_text: str, object_type: type[T]) -> T:
    """Extract an object from a JSON block."""
    type_adapter: TypeAdapter[T] = TypeAdapter[T](object_type)

    json_text: str = "\n".join([line.strip() for line in json_block_text.splitlines()])

    return type_adapter.validate_json(json_text)


def extract_single_object_from_text[T: ALLOWED_TYPES](text: str, object_type: type[T]) -> T:
    """Extract an object from a Markdown JSON block provided in the text string.

    For example:
    Here is the plan:
    ```json
    {
        "chapters": [{"id": 1, "title": "Overview", "summary": "What the project does."}]
    }
    ```

    A response that is nothing but a bare JSON object is accepted as well."""

    matches: list[str] = extract_json_blocks_from_text(text)

    if not matches and text.strip().startswith("{"):
        matches = [text.strip()]

    if len(matches) != 1:
        msg = f"Text must contain exactly one Markdown JSON block. Received {text}."
        raise ValueError(msg)

    object_text: str = matches[0]

    return extract_single_object_from_json_block(json_block_text=object_text, object_type=object_type)
