"""Bounded, cancellable subprocess execution."""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Sequence
from pathlib import Path

from aetherflash.core.errors import (
    CommandCancelledError,
    CommandError,
    CommandNotFoundError,
    CommandTimeoutError,
)
from aetherflash.tools.base import CancelToken

_POLL_INTERVAL_S = 0.1
LOGGER = logging.getLogger(__name__)


class SubprocessRunner:
    def run(
        self,
        args: Sequence[str],
        *,
        timeout_s: float | None = None,
        cancel: CancelToken | None = None,
        cwd: Path | None = None,
    ) -> subprocess.CompletedProcess[str]:
        cmd = list(args)
        command_line = " ".join(cmd)
        if cancel is not None and cancel.cancelled:
            raise CommandCancelledError(f"Cancelled before start: {command_line}")

        LOGGER.debug("Running: %s (timeout=%s)", command_line, timeout_s)
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError as exc:
            raise CommandNotFoundError(f"Executable not found: {cmd[0]}") from exc
        except OSError as exc:
            raise CommandError(f"Could not start '{command_line}': {exc}") from exc

        deadline = None if timeout_s is None else time.monotonic() + timeout_s
        try:
            while True:
                try:
                    stdout, stderr = proc.communicate(timeout=_POLL_INTERVAL_S)
                    break
                except subprocess.TimeoutExpired:
                    if cancel is not None and cancel.cancelled:
                        _kill(proc)
                        raise CommandCancelledError(f"Cancelled: {command_line}") from None
                    if deadline is not None and time.monotonic() >= deadline:
                        _kill(proc)
                        raise CommandTimeoutError(
                            f"'{command_line}' did not finish within {timeout_s:g}s"
                        ) from None
        except KeyboardInterrupt:
            _kill(proc)
            raise

        LOGGER.debug("Finished: %s -> exit %s", command_line, proc.returncode)
        return subprocess.CompletedProcess(cmd, proc.returncode, stdout=stdout, stderr=stderr)


def _kill(proc: subprocess.Popen[str]) -> None:
    proc.kill()
    proc.communicate()
