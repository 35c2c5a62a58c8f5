"""Writes sample code, metadata and HTML previews."""

from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, Iterable

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .logging import get_logger
from .models import CodeSample


class FormatError(RuntimeError):
    """Raised when the Dart formatter rejects generated code."""


class DartFormatter:
    """Runs ``dart format`` over generated files."""

    def __init__(
        self,
        executable: str = "dart",
        runner: Callable[..., "subprocess.CompletedProcess[str]"] | None = None,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self.executable = executable
        self._runner = runner or self._default_runner
        self._which = which
        self.logger = get_logger("formatter")

    def format_file(self, path: Path) -> bool:
        """Format ``path`` in place; returns False when no formatter is installed."""
        resolved = self._which(self.executable)
        if resolved is None:
            self.logger.warning(
                "%s not found on PATH; leaving %s unformatted", self.executable, path
            )
            return False
        completed = self._runner([resolved, "format", str(path)], cwd=path.parent)
        if completed.returncode != 0:
            raise FormatError(
                f"{self.executable} format failed for {path} "
                f"(exit {completed.returncode}):\n{completed.stderr}{completed.stdout}"
            )
        return True

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path) -> "subprocess.CompletedProcess[str]":
        return subprocess.run(
            list(args),
            cwd=str(cwd),
            check=False,
            text=True,
            capture_output=True,
        )


class SnippetGenerator:
    """Generates the code file and HTML preview for a parsed sample."""

    def __init__(
        self,
        formatter: DartFormatter | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        self.formatter = formatter or DartFormatter()
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self.logger = get_logger("generator")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "j2"], default_for_string=True),
            keep_trailing_newline=True,
        )

    def generate_code(self, sample: CodeSample, *, output: Path, format_output: bool = True) -> Path:
        """Write the sample code to ``output`` and its metadata next to it."""
        output = Path(output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(sample.code, encoding="utf-8")
        if format_output and self.formatter.format_file(output):
            # The preview shows what was written to disk.
            sample.code = output.read_text(encoding="utf-8")

        metadata_path = output.with_suffix(".json")
        metadata_path.write_text(
            json.dumps(self._metadata_payload(sample), indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        self.logger.info("Wrote %s sample to %s", sample.type, output)
        return output

    def generate_html(self, sample: CodeSample) -> str:
        """Render the HTML preview dartdoc embeds in place of the tool block."""
        template_name = "snippet.html.j2" if sample.type == "snippet" else "sample.html.j2"
        template = self._env.get_template(template_name)
        return template.render(
            sample=sample,
            metadata=sample.metadata,
            sample_id=sample.metadata.get("id", ""),
            is_dartpad=sample.type == "dartpad",
        ).strip()

    @staticmethod
    def _metadata_payload(sample: CodeSample) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(sample.metadata)
        payload.update(
            {
                "type": sample.type,
                "description": sample.description,
                "sourcePath": str(sample.source_file),
                "sourceLine": sample.start_line,
            }
        )
        return payload


__all__ = ["DartFormatter", "FormatError", "SnippetGenerator"]
