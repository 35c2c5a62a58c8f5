"""Deterministic artifact naming for generated samples."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .config import InvocationContext

DEFAULT_PACKAGE = "flutter"

_NON_WORD_RUN = re.compile(r"\W+", re.ASCII)


class MissingIdentityError(ValueError):
    """Raised when no component is available to build an artifact id."""


@dataclass(frozen=True)
class ArtifactIdentity:
    """Identifier and output location for one invocation's artifact."""

    id: str
    output_path: Path


def sanitize_name(name: str) -> str:
    """Lower-case ``name`` and collapse every run of non-word characters to ``_``."""
    return _NON_WORD_RUN.sub("_", name).lower()


def build_identity(ctx: InvocationContext) -> ArtifactIdentity:
    """Compute the artifact id and output path, creating the parent directory."""
    if ctx.explicit_output is not None:
        explicit = Path(ctx.explicit_output)
        artifact_id = explicit.stem
        output_path = explicit if explicit.is_absolute() else ctx.output_directory / explicit
    else:
        parts = _id_parts(ctx)
        if not parts:
            raise MissingIdentityError(
                "Unable to determine ID. At least one of --package, --library, "
                "--element, --serial, or the environment variables PACKAGE_NAME, "
                "LIBRARY_NAME, ELEMENT_NAME, or INVOCATION_INDEX must be non-empty."
            )
        artifact_id = ".".join(parts)
        output_path = ctx.output_directory / f"{artifact_id}.dart"

    output_path.parent.mkdir(parents=True, exist_ok=True)
    return ArtifactIdentity(id=artifact_id, output_path=output_path)


def _id_parts(ctx: InvocationContext) -> List[str]:
    parts: List[str] = []
    if ctx.package_name and ctx.package_name != DEFAULT_PACKAGE:
        parts.append(sanitize_name(ctx.package_name))
    if ctx.library_name:
        parts.append(sanitize_name(ctx.library_name))
    if ctx.element_name:
        parts.append(ctx.element_name)
    if ctx.serial:
        parts.append(ctx.serial)
    return parts


__all__ = ["ArtifactIdentity", "DEFAULT_PACKAGE", "MissingIdentityError", "build_identity", "sanitize_name"]
