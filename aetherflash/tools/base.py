"""External command runner interfaces."""

from __future__ import annotations

import subprocess
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol


class CancelToken:
    """Thread-safe flag a front end sets to abort an in-flight command."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class CommandRunner(Protocol):
    def run(
        self,
        args: Sequence[str],
        *,
        timeout_s: float | None = None,
        cancel: CancelToken | None = None,
        cwd: Path | None = None,
    ) -> subprocess.CompletedProcess[str]:
        """Run a command to completion and return its captured output."""
