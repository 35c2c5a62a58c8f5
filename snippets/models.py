"""Sample data models shared between the parser and the generator."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class CodeSample:
    """A unit of example code extracted from a dartdoc ``{@tool}`` block."""

    type: str
    element: str
    description: str
    code: str
    source_file: Path
    start_line: Optional[int] = None
    index: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SourceElement:
    """The documented element together with the samples found in its comment."""

    name: str
    source_file: Path
    start_line: Optional[int]
    samples: List[CodeSample] = field(default_factory=list)
