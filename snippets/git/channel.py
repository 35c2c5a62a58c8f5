"""Release channel resolution from the environment or the git checkout."""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional, TypeVar

from ..logging import get_logger

CHANNEL_ENV_VAR = "LUCI_BRANCH"
ROOT_ENV_VAR = "FLUTTER_ROOT"
UNKNOWN_CHANNEL = "<unknown>"
DEFAULT_MAX_ATTEMPTS = 3

_KNOWN_CHANNELS = ("master", "stable", "main")
_GIT_STATUS_ARGS = ("git", "status", "-b", "--porcelain")
# git status fails with a random non-zero exit code in a small fraction of runs;
# tracing makes those failures diagnosable.
_GIT_TRACE_ENV = {"GIT_TRACE": "2", "GIT_TRACE_SETUP": "2"}
_BRANCH_PATTERN = re.compile(r"^## (?P<branch>.*)")

Runner = Callable[..., "subprocess.CompletedProcess[str]"]
T = TypeVar("T")

logger = get_logger("channel")


class ChannelResolutionError(RuntimeError):
    """Raised when ``git status`` exits with a non-zero code."""

    def __init__(self, returncode: int, stdout: str, stderr: str) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f"git status exited with a non-zero exit code: {returncode}:\n{stderr}\n{stdout}"
        )


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry for operations that fail with a known transient error."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    on_failure: Optional[Callable[[int, Exception], None]] = None
    retry_on: tuple[type[Exception], ...] = (ChannelResolutionError,)

    def run(self, operation: Callable[[], T]) -> T:
        attempt = 1
        while True:
            try:
                return operation()
            except self.retry_on as exc:
                if attempt >= self.max_attempts:
                    raise
                if self.on_failure is not None:
                    self.on_failure(attempt, exc)
                attempt += 1


class ChannelResolver:
    """Determines the release channel the docs are generated from.

    ``LUCI_BRANCH`` wins when it names a known channel; otherwise the branch of
    the checkout at ``FLUTTER_ROOT`` (or the current directory) is reported.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        runner: Runner | None = None,
        cwd: Callable[[], Path] | None = None,
    ) -> None:
        self._environ = environ if environ is not None else os.environ
        self._runner = runner or self._default_runner
        self._cwd = cwd or Path.cwd

    def resolve(self) -> str:
        """Return the channel label, raising ``ChannelResolutionError`` on git failure."""
        override = (self._environ.get(CHANNEL_ENV_VAR) or "").strip()
        if override in _KNOWN_CHANNELS:
            # "master" is the historical name of the "main" channel.
            return "main" if override == "master" else override

        env = dict(self._environ)
        env.update(_GIT_TRACE_ENV)
        completed = self._runner(_GIT_STATUS_ARGS, cwd=self._working_directory(), env=env)
        if completed.returncode != 0:
            raise ChannelResolutionError(
                completed.returncode, completed.stdout or "", completed.stderr or ""
            )

        first_line = (completed.stdout or "").strip().split("\n")[0].strip()
        match = _BRANCH_PATTERN.match(first_line)
        if match is None:
            logger.debug("Unrecognised git status line %r", first_line)
            return UNKNOWN_CHANNEL
        return match.group("branch").split("...")[0]

    def resolve_with_retries(
        self,
        policy: RetryPolicy | None = None,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> str:
        """Resolve the channel, retrying transient ``git status`` failures."""
        policy = policy or RetryPolicy(max_attempts=max_attempts, on_failure=_log_retry)
        return policy.run(self.resolve)

    def _working_directory(self) -> Path:
        root = (self._environ.get(ROOT_ENV_VAR) or "").strip()
        if root:
            return Path(root)
        return self._cwd()

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
    ) -> "subprocess.CompletedProcess[str]":
        return subprocess.run(
            list(args),
            cwd=str(cwd),
            env=env,
            check=False,
            text=True,
            capture_output=True,
        )


def resolve_channel(
    environ: Mapping[str, str] | None = None,
    runner: Runner | None = None,
    cwd: Callable[[], Path] | None = None,
) -> str:
    """Resolve the channel once without retrying."""
    return ChannelResolver(environ, runner, cwd).resolve()


def resolve_channel_with_retries(
    environ: Mapping[str, str] | None = None,
    runner: Runner | None = None,
    cwd: Callable[[], Path] | None = None,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """Resolve the channel, giving ``git status`` up to ``max_attempts`` tries."""
    return ChannelResolver(environ, runner, cwd).resolve_with_retries(max_attempts=max_attempts)


def _log_retry(attempt: int, error: Exception) -> None:
    logger.warning("git status failed, retrying (%d)\nError report:\n%s", attempt, error)


__all__ = [
    "ChannelResolutionError",
    "ChannelResolver",
    "DEFAULT_MAX_ATTEMPTS",
    "RetryPolicy",
    "UNKNOWN_CHANNEL",
    "resolve_channel",
    "resolve_channel_with_retries",
]
