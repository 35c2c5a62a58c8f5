"""Configuration loading for snippets (.snippets.yml) and the per-run context."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .git.channel import DEFAULT_MAX_ATTEMPTS

CONFIG_FILENAME = ".snippets.yml"
CONFIG_ENV_VAR = "SNIPPETS_CONFIG"

SAMPLE_TYPES = ("snippet", "sample", "dartpad")
DEFAULT_SAMPLE_TYPE = "dartpad"
DEFAULT_OUTPUT_DIRECTORY = "."
DEFAULT_SOURCE_PATH = "unknown.dart"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class FormatterConfig:
    """Settings for the external Dart formatter."""

    executable: str = "dart"


@dataclass
class ChannelConfig:
    """Settings for release channel resolution."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS


@dataclass
class SnippetsConfig:
    """Represents the optional defaults defined in .snippets.yml."""

    root: Path
    output_directory: Optional[str] = None
    format_output: Optional[bool] = None
    formatter: FormatterConfig = field(default_factory=FormatterConfig)
    channel: ChannelConfig = field(default_factory=ChannelConfig)
    templates_dir: Optional[Path] = None


@dataclass(frozen=True)
class InvocationContext:
    """Resolved configuration for a single tool invocation."""

    sample_type: str
    input_path: Path
    output_directory: Path
    explicit_output: Optional[str] = None
    package_name: str = ""
    library_name: str = ""
    element_name: str = ""
    serial: str = ""
    format_output: bool = True
    source_line: Optional[int] = None
    source_path: str = DEFAULT_SOURCE_PATH


def load_config(config_path: Path) -> SnippetsConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return SnippetsConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    formatter = FormatterConfig()
    formatter_data = _as_dict(data.get("formatter"))
    executable = _as_str(formatter_data.get("executable"))
    if executable:
        formatter.executable = executable

    channel = ChannelConfig()
    channel_data = _as_dict(data.get("channel"))
    if "max_attempts" in channel_data:
        max_attempts = _as_int(channel_data.get("max_attempts"))
        if max_attempts is None or max_attempts < 1:
            raise ConfigError("channel.max_attempts must be a positive integer")
        channel.max_attempts = max_attempts

    templates_dir_str = _as_str(data.get("templates_dir"))
    templates_dir = root / templates_dir_str if templates_dir_str else None

    return SnippetsConfig(
        root=root,
        output_directory=_as_str(data.get("output_directory")),
        format_output=_as_bool(data.get("format_output")),
        formatter=formatter,
        channel=channel,
        templates_dir=templates_dir,
    )


def locate_config(explicit: str | None, environ: Mapping[str, str]) -> Path:
    """Return the config path from the flag, the environment, or the current directory."""
    if explicit:
        return Path(explicit)
    from_env = (environ.get(CONFIG_ENV_VAR) or "").strip()
    if from_env:
        return Path(from_env)
    return Path.cwd()


def build_invocation_context(
    args: argparse.Namespace,
    *,
    environ: Mapping[str, str],
    config: SnippetsConfig,
) -> InvocationContext:
    """Merge parsed flags, environment inputs and config defaults into a context."""
    output_directory = args.output_directory or config.output_directory or DEFAULT_OUTPUT_DIRECTORY
    if args.format_output is not None:
        format_output = bool(args.format_output)
    elif config.format_output is not None:
        format_output = config.format_output
    else:
        format_output = True

    return InvocationContext(
        sample_type=args.type,
        input_path=Path(args.input),
        output_directory=Path(output_directory).expanduser().absolute(),
        explicit_output=args.output,
        package_name=args.package or "",
        library_name=args.library or "",
        element_name=args.element or "",
        serial=args.serial or "",
        format_output=format_output,
        source_line=_as_int(environ.get("SOURCE_LINE")),
        source_path=environ.get("SOURCE_PATH") or DEFAULT_SOURCE_PATH,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None
