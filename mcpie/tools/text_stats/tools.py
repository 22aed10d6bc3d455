"""Text statistics tools."""

import re
from typing import Any

from pydantic import BaseModel, Field

from mcpie.mcp.models import ToolCallResult
from mcpie.mcp.registry import ToolRegistry
from mcpie.mcp.results import json_result
from mcpie.tools.base import BaseTool

_SENTENCE_END = re.compile(r"[.!?。！？]+")
_BLANK_LINE = re.compile(r"\n\s*\n")


def _count_lines(text: str) -> int:
    if not text:
        return 0
    return text.count("\n") + (0 if text.endswith("\n") else 1)


def text_statistics(text: str) -> dict[str, Any]:
    """
    Count characters, words, lines and friends.

    Words are runs of non-whitespace. Lines are split on line feeds only, so
    an empty text has zero lines, "a a b" has one and a trailing newline
    does not start another.
    """
    words = text.split()
    return {
        "characters": len(text),
        "characters_no_spaces": sum(1 for ch in text if not ch.isspace()),
        "words": len(words),
        "unique_words": len({word.lower() for word in words}),
        "lines": _count_lines(text),
        "paragraphs": sum(1 for block in _BLANK_LINE.split(text) if block.strip()),
        "sentences": sum(1 for part in _SENTENCE_END.split(text) if part.strip()),
        "average_word_length": (
            round(sum(len(word) for word in words) / len(words), 2) if words else 0
        ),
    }


class TextStatsArguments(BaseModel):
    text: str = Field(..., description="The text to analyse")


class TextStatsTool(BaseTool):
    name = "text-stats"
    description = (
        "Compute statistics for a piece of text: character, word, line, "
        "paragraph and sentence counts. Returns a JSON document."
    )
    arguments_model = TextStatsArguments

    async def execute(self, args: TextStatsArguments) -> ToolCallResult:
        return json_result(text_statistics(args.text))


def register_tools(registry: ToolRegistry) -> None:
    """Register text statistics tools with the registry."""
    registry.register_tool(TextStatsTool())
