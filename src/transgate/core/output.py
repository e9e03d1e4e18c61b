"""Output handlers for different formats."""

import json
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol

from pydantic import BaseModel, Field

from transgate.core.translation.interface import TranslationResponse
from transgate.core.translation.registry import display_name


class OutputFormat(str, Enum):
    """Supported output formats."""

    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"


class TranslationOutput(BaseModel):
    """A translation response together with when and how long it took."""

    response: TranslationResponse
    time_taken: float = Field(ge=0.0)
    timestamp: datetime = Field(default_factory=datetime.now)


class OutputHandler(Protocol):
    """Protocol for output handlers."""

    def write(
        self,
        output: TranslationOutput,
        file: Optional[Path] = None,
    ) -> None:
        """Write the translation output.

        Args:
            output: The translation output to write
            file: Optional file to write to. If None, writes to stdout.
        """
        ...


def _emit(content: str, file: Optional[Path]) -> None:
    if file:
        file.write_text(content)
    else:
        print(content)


class JSONOutputHandler:
    """Handler for JSON output format.

    The document has exactly the ``original``, ``translation`` and ``model``
    keys, as served by the JSON API.
    """

    def write(
        self,
        output: TranslationOutput,
        file: Optional[Path] = None,
    ) -> None:
        data = output.response.model_dump(mode="json")
        _emit(json.dumps(data, indent=2, ensure_ascii=False), file)


class TextOutputHandler:
    """Handler for plain text output format."""

    def write(
        self,
        output: TranslationOutput,
        file: Optional[Path] = None,
    ) -> None:
        # Just write the translated text
        _emit(output.response.translation, file)


class MarkdownOutputHandler:
    """Handler for Markdown output format."""

    def write(
        self,
        output: TranslationOutput,
        file: Optional[Path] = None,
    ) -> None:
        response = output.response
        md_lines = [
            "# Translation Results\n",
            "## Metadata",
            f"- Model: {display_name(response.model)} (`{response.model}`)",
            f"- Timestamp: {output.timestamp.isoformat()}",
            f"- Time Taken: {output.time_taken:.1f}s\n",
            "## Original",
            "```text",
            response.original,
            "```\n",
            "## Translation",
            "```text",
            response.translation,
            "```\n",
        ]
        _emit("\n".join(md_lines), file)


def create_handler(format: OutputFormat) -> OutputHandler:
    """Create an output handler for the specified format.

    Args:
        format: The desired output format

    Returns:
        An appropriate output handler

    Raises:
        ValueError: If the format is not supported
    """
    handlers = {
        OutputFormat.TEXT: TextOutputHandler(),
        OutputFormat.JSON: JSONOutputHandler(),
        OutputFormat.MARKDOWN: MarkdownOutputHandler(),
    }

    handler = handlers.get(format)
    if not handler:
        raise ValueError(f"Unsupported output format: {format}")

    return handler
