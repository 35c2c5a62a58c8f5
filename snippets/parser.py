"""Extraction of code samples from dartdoc tool files."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .config import SAMPLE_TYPES
from .logging import get_logger
from .models import CodeSample, SourceElement

_TOOL_START = re.compile(r"^\s*\{@tool\s+(?P<type>[\w-]+)(?P<args>[^}]*)\}\s*$")
_TOOL_END = re.compile(r"^\s*\{@end-tool\}\s*$")
_FENCE = re.compile(r"^\s*```(?P<lang>[\w-]*)\s*$")


class SampleParseError(ValueError):
    """Raised when a tool file does not contain a well-formed sample."""


@dataclass
class _Block:
    type: str
    offset: int
    lines: List[str] = field(default_factory=list)


class SnippetDartdocParser:
    """Parses the body of ``{@tool}`` blocks written out by dartdoc.

    Dartdoc hands the tool the text between ``{@tool <type>}`` and
    ``{@end-tool}``. Prose outside ```` ```dart ```` fences becomes the sample
    description and the fenced code becomes the sample code. A file that still
    carries its own tool markers may hold several blocks, each producing one
    sample.
    """

    def __init__(self) -> None:
        self.logger = get_logger("parser")

    def parse_from_dartdoc_tool_file(
        self,
        input_file: Path,
        *,
        start_line: Optional[int] = None,
        element: str = "",
        source_file: Path | None = None,
        type: str = "dartpad",
    ) -> SourceElement:
        source = source_file or input_file
        text = Path(input_file).read_text(encoding="utf-8")
        blocks = self._split_blocks(text.splitlines(), type, source, start_line)

        samples: List[CodeSample] = []
        for index, block in enumerate(blocks):
            samples.append(self._parse_block(block, index, element, source, start_line))
        self.logger.debug("Parsed %d sample(s) from %s", len(samples), input_file)
        return SourceElement(
            name=element,
            source_file=source,
            start_line=start_line,
            samples=samples,
        )

    def _split_blocks(
        self,
        lines: Sequence[str],
        default_type: str,
        source: Path,
        start_line: Optional[int],
    ) -> List[_Block]:
        if not any(_TOOL_START.match(line) for line in lines):
            return [_Block(type=default_type, offset=0, lines=list(lines))]

        blocks: List[_Block] = []
        current: _Block | None = None
        for number, line in enumerate(lines):
            start = _TOOL_START.match(line)
            if start:
                if current is not None:
                    raise SampleParseError(
                        f"{_location(source, start_line, number)}: nested {{@tool}} block"
                    )
                sample_type = start.group("type")
                if sample_type not in SAMPLE_TYPES:
                    raise SampleParseError(
                        f"{_location(source, start_line, number)}: unknown sample type {sample_type!r}"
                    )
                current = _Block(type=sample_type, offset=number + 1)
                continue
            if _TOOL_END.match(line):
                if current is None:
                    raise SampleParseError(
                        f"{_location(source, start_line, number)}: {{@end-tool}} without {{@tool}}"
                    )
                blocks.append(current)
                current = None
                continue
            if current is not None:
                current.lines.append(line)
        if current is not None:
            raise SampleParseError(
                f"{_location(source, start_line, current.offset - 1)}: unterminated {{@tool}} block"
            )
        return blocks

    def _parse_block(
        self,
        block: _Block,
        index: int,
        element: str,
        source: Path,
        start_line: Optional[int],
    ) -> CodeSample:
        description: List[str] = []
        code_sections: List[List[str]] = []
        fence_lang: Optional[str] = None
        fence_line = 0

        for number, line in enumerate(block.lines, start=block.offset):
            fence = _FENCE.match(line)
            if fence_lang is None:
                if fence:
                    fence_lang = fence.group("lang")
                    fence_line = number
                    if fence_lang == "dart":
                        code_sections.append([])
                        continue
                description.append(line)
                continue
            if fence and not fence.group("lang"):
                if fence_lang != "dart":
                    description.append(line)
                fence_lang = None
                continue
            if fence_lang == "dart":
                code_sections[-1].append(line)
            else:
                description.append(line)

        if fence_lang is not None:
            raise SampleParseError(
                f"{_location(source, start_line, fence_line)}: unterminated code fence"
            )
        if not any(section for section in code_sections):
            raise SampleParseError(
                f"{_location(source, start_line, block.offset)}: "
                f"no ```dart code found in {block.type} block"
            )

        code = "\n\n".join("\n".join(section) for section in code_sections if section)
        return CodeSample(
            type=block.type,
            element=element,
            description="\n".join(description).strip(),
            code=code.rstrip() + "\n",
            source_file=source,
            start_line=_absolute_line(start_line, block.offset),
            index=index,
        )


def _absolute_line(start_line: Optional[int], offset: int) -> Optional[int]:
    if start_line is None:
        return None
    return start_line + offset


def _location(source: Path, start_line: Optional[int], offset: int) -> str:
    line = _absolute_line(start_line, offset)
    return f"{source}:{line}" if line is not None else str(source)


__all__ = ["SampleParseError", "SnippetDartdocParser"]
