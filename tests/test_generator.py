"""Tests for sample generation and formatting."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from snippets.generator import DartFormatter, FormatError, SnippetGenerator
from snippets.models import CodeSample
from tests._fixtures.runners import completed


class RecordingFormatter:
    """Formatter double that records the files it was asked to format."""

    def __init__(self) -> None:
        self.paths: list[Path] = []

    def format_file(self, path: Path) -> bool:
        self.paths.append(path)
        return True


class RewritingFormatter:
    """Formatter double that rewrites the file like `dart format` would."""

    def __init__(self, formatted: str) -> None:
        self.formatted = formatted

    def format_file(self, path: Path) -> bool:
        path.write_text(self.formatted, encoding="utf-8")
        return True


def _sample(sample_type: str = "dartpad", **overrides: object) -> CodeSample:
    values: dict[str, object] = {
        "type": sample_type,
        "element": "Container",
        "description": "Shows a <Container>.",
        "code": "List<int> values = <int>[];\n",
        "source_file": Path("lib/src/widgets/container.dart"),
        "start_line": 12,
        "metadata": {"id": "widgets.Container.1", "channel": "main", "serial": "1"},
    }
    values.update(overrides)
    return CodeSample(**values)  # type: ignore[arg-type]


def test_generate_code_writes_code_and_metadata(tmp_path: Path) -> None:
    formatter = RecordingFormatter()
    generator = SnippetGenerator(formatter=formatter)  # type: ignore[arg-type]
    output = tmp_path / "out" / "widgets.Container.1.dart"

    written = generator.generate_code(_sample(), output=output, format_output=True)

    assert written == output
    assert output.read_text(encoding="utf-8") == "List<int> values = <int>[];\n"
    assert formatter.paths == [output]
    metadata = json.loads(output.with_suffix(".json").read_text(encoding="utf-8"))
    assert metadata["id"] == "widgets.Container.1"
    assert metadata["channel"] == "main"
    assert metadata["type"] == "dartpad"
    assert metadata["description"] == "Shows a <Container>."
    assert metadata["sourcePath"] == "lib/src/widgets/container.dart"
    assert metadata["sourceLine"] == 12


def test_generate_code_skips_formatter_when_disabled(tmp_path: Path) -> None:
    formatter = RecordingFormatter()
    generator = SnippetGenerator(formatter=formatter)  # type: ignore[arg-type]

    generator.generate_code(_sample(), output=tmp_path / "a.dart", format_output=False)

    assert formatter.paths == []


def test_generate_html_escapes_snippet_code() -> None:
    html = SnippetGenerator(formatter=RecordingFormatter()).generate_html(_sample("snippet"))  # type: ignore[arg-type]

    assert 'id="widgets.Container.1"' in html
    assert "List&lt;int&gt; values" in html
    assert "Shows a &lt;Container&gt;." in html
    assert "dartpad.dev" not in html


def test_generate_html_embeds_dartpad_frame() -> None:
    html = SnippetGenerator(formatter=RecordingFormatter()).generate_html(_sample("dartpad"))  # type: ignore[arg-type]

    assert "snippet-dartpad" in html
    assert "sample_id=widgets.Container.1" in html
    assert "channel=main" in html
    assert "sample-code" not in html


def test_generate_html_shows_code_for_sample_type() -> None:
    html = SnippetGenerator(formatter=RecordingFormatter()).generate_html(_sample("sample", index=2))  # type: ignore[arg-type]

    assert "shortSnippet2" in html
    assert 'id="sample-code"' in html
    assert "List&lt;int&gt; values" in html


def test_generate_html_uses_custom_templates(tmp_path: Path) -> None:
    (tmp_path / "snippet.html.j2").write_text("<b>{{ sample_id }}</b>\n", encoding="utf-8")
    generator = SnippetGenerator(formatter=RecordingFormatter(), templates_dir=tmp_path)  # type: ignore[arg-type]

    assert generator.generate_html(_sample("snippet")) == "<b>widgets.Container.1</b>"


def test_dart_formatter_skips_when_executable_missing(tmp_path: Path) -> None:
    calls = []

    def runner(args, *, cwd):  # type: ignore[no-untyped-def]
        calls.append(list(args))

    formatter = DartFormatter(runner=runner, which=lambda name: None)

    assert formatter.format_file(tmp_path / "a.dart") is False
    assert not calls


def test_dart_formatter_runs_dart_format(tmp_path: Path) -> None:
    calls = []

    def runner(args, *, cwd):  # type: ignore[no-untyped-def]
        calls.append((list(args), Path(cwd)))
        return completed()

    target = tmp_path / "a.dart"
    formatter = DartFormatter(runner=runner, which=lambda name: f"/usr/bin/{name}")

    assert formatter.format_file(target) is True
    assert calls == [(["/usr/bin/dart", "format", str(target)], tmp_path)]


def test_dart_formatter_raises_on_failure(tmp_path: Path) -> None:
    def runner(args, *, cwd):  # type: ignore[no-untyped-def]
        return completed(returncode=65, stderr="Could not format because the source could not be parsed")

    formatter = DartFormatter(runner=runner, which=lambda name: "/usr/bin/dart")

    with pytest.raises(FormatError, match="exit 65"):
        formatter.format_file(tmp_path / "a.dart")


def test_generate_html_shows_formatted_code(tmp_path: Path) -> None:
    generator = SnippetGenerator(formatter=RewritingFormatter("int  formatted = 1;\n"))  # type: ignore[arg-type]
    sample = _sample("snippet", code="int x=1;\n")
    output = tmp_path / "a.dart"

    generator.generate_code(sample, output=output, format_output=True)
    html = generator.generate_html(sample)

    assert output.read_text(encoding="utf-8") == "int  formatted = 1;\n"
    assert "int  formatted = 1;" in html
    assert "int x=1;" not in html


def test_generate_html_keeps_code_when_formatting_disabled(tmp_path: Path) -> None:
    generator = SnippetGenerator(formatter=RewritingFormatter("rewritten\n"))  # type: ignore[arg-type]
    sample = _sample("snippet", code="int x=1;\n")

    generator.generate_code(sample, output=tmp_path / "a.dart", format_output=False)

    assert "int x=1;" in generator.generate_html(sample)
