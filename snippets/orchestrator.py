"""Pipeline orchestration for a single snippets invocation."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, TextIO

from .config import InvocationContext
from .generator import SnippetGenerator
from .git.channel import DEFAULT_MAX_ATTEMPTS, ChannelResolver
from .identity import ArtifactIdentity, build_identity
from .logging import get_logger
from .parser import SnippetDartdocParser


@dataclass
class GenerationResult:
    """Outcome of a successful run."""

    identity: ArtifactIdentity
    channel: str
    outputs: List[Path] = field(default_factory=list)


class Orchestrator:
    """Wires identity, parsing, channel resolution and generation together."""

    def __init__(
        self,
        parser: SnippetDartdocParser | None = None,
        generator: SnippetGenerator | None = None,
        channel_resolver: ChannelResolver | None = None,
        identity_builder: Callable[[InvocationContext], ArtifactIdentity] = build_identity,
        stdout: TextIO | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self.parser = parser or SnippetDartdocParser()
        self.generator = generator or SnippetGenerator()
        self.channel_resolver = channel_resolver or ChannelResolver()
        self.identity_builder = identity_builder
        self.stdout = stdout
        self.max_attempts = max_attempts
        self.logger = get_logger("orchestrator")

    def run(self, ctx: InvocationContext) -> GenerationResult:
        """Generate every sample in ``ctx.input_path``; any failure aborts the run."""
        identity = self.identity_builder(ctx)
        self.logger.debug("Resolved id %s -> %s", identity.id, identity.output_path)

        element = self.parser.parse_from_dartdoc_tool_file(
            ctx.input_path,
            start_line=ctx.source_line,
            element=ctx.element_name,
            source_file=Path(ctx.source_path),
            type=ctx.sample_type,
        )

        channel = self._resolve_channel()
        metadata: Dict[str, Any] = {
            "channel": channel,
            "serial": ctx.serial,
            "id": identity.id,
            "package": ctx.package_name,
            "library": ctx.library_name,
            "element": ctx.element_name,
        }

        result = GenerationResult(identity=identity, channel=channel)
        out = self.stdout or sys.stdout
        for sample in element.samples:
            sample.metadata.update(metadata)
            written = self.generator.generate_code(
                sample,
                output=identity.output_path,
                format_output=ctx.format_output,
            )
            result.outputs.append(written)
            print(self.generator.generate_html(sample), file=out)

        self.logger.info(
            "Generated %d sample(s) for %s on channel %s",
            len(element.samples),
            identity.id,
            channel,
        )
        return result

    def _resolve_channel(self) -> str:
        return self.channel_resolver.resolve_with_retries(max_attempts=self.max_attempts)
