from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import pytest

from snippets.config import InvocationContext


@pytest.fixture(autouse=True)
def _reset_snippets_logger():
    """Undo handler and propagation changes made by configure_logging."""
    yield
    logger = logging.getLogger("snippets")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_context(tmp_path: Path) -> Callable[..., InvocationContext]:
    """Build an InvocationContext rooted at tmp_path with per-test overrides."""

    def _make(**overrides: object) -> InvocationContext:
        values: dict[str, object] = {
            "sample_type": "dartpad",
            "input_path": tmp_path / "input.md",
            "output_directory": tmp_path / "out",
            "format_output": False,
        }
        values.update(overrides)
        return InvocationContext(**values)  # type: ignore[arg-type]

    return _make
