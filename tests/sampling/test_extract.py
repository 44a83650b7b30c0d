from textwrap import dedent

import pytest
from pydantic import BaseModel, Field, ValidationError

from kodin.sampling.extract import extract_json_blocks_from_text, extract_single_object_from_text, object_in_text_instructions


class StructuredObject(BaseModel):
    """A structured object docstring."""

    name: str = Field(description="The name of the object.")
    age: int = Field(description="The age of the object.")


def test_object_in_text_instructions():
    instructions: str = object_in_text_instructions(StructuredObject)

    assert instructions.startswith("The only valid response to this request is a structured object of type StructuredObject.")
    assert '"description": "A structured object docstring."' in instructions
    assert '"required": [\n  "name",\n  "age"\n ]' in instructions
    assert "Place the JSON between ```json and ``` tags." in instructions


def test_extract_json_blocks_from_text():
    text = """
    This is a test text that occurs before the json block.
    ```json
    {"name": "John", "age": 30}
    ```

    ```json
    {"name": "Jane", "age": 25}
    ```

    This is a test text that occurs after the json block.
    """
    assert extract_json_blocks_from_text(text) == [
        '    {"name": "John", "age": 30}',
        '    {"name": "Jane", "age": 25}',
    ]


def test_extract_json_blocks_from_text_no_blocks():
    assert extract_json_blocks_from_text("There is no JSON here.") == []


def test_extract_single_object_from_text():
    text = dedent("""
    ```json
    {
        "name": "John",
        "age": 30
    }
    ```
    """)
    assert extract_single_object_from_text(text, StructuredObject) == StructuredObject(name="John", age=30)


def test_extract_object_from_text_extra_text():
    text = dedent("""
    Yes, I would be happy to provide the information you requested in a json block.
    ```json
    {
        "name": "John",
        "age": 30
    }
    ```

    This is a test text that occurs after the json block.
    """)
    assert extract_single_object_from_text(text, StructuredObject) == StructuredObject(name="John", age=30)


def test_extract_object_from_bare_json():
    assert extract_single_object_from_text('  {"name": "John", "age": 30}\n', StructuredObject) == StructuredObject(name="John", age=30)


def test_extract_object_from_text_multiple_blocks():
    text = dedent("""
    ```json
    {"name": "John", "age": 30}
    ```
    ```json
    {"name": "Jane", "age": 25}
    ```
    """)
    with pytest.raises(ValueError, match="exactly one Markdown JSON block"):
        extract_single_object_from_text(text, StructuredObject)


def test_extract_object_from_text_invalid_object():
    text = dedent("""
    ```json
    {"name": "John"}
    ```
    """)
    with pytest.raises(ValidationError):
        extract_single_object_from_text(text, StructuredObject)
