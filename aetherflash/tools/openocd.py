"""OpenOCD command construction and output interpretation.

OpenOCD reports the outcome of ``program ... verify reset exit`` through both
its exit status and marker lines on stderr. The exit status decides success;
the markers only tell which stage of the sequence went wrong.
"""

from __future__ import annotations

import re
import subprocess

from aetherflash.core.model import ProbeSpec, ProgrammerOutcome, TargetDescriptor

_VERIFY_FAILED_RE = re.compile(
    r"\*\*\s*Verify Failed\s*\*\*|verify mismatch|checksum mismatch|contents differ",
    re.IGNORECASE,
)
_PROGRAM_FAILED_RE = re.compile(r"\*\*\s*Programming Failed\s*\*\*|flash write failed", re.IGNORECASE)
_RESET_FAILED_RE = re.compile(r"reset failed|timed out while waiting for target halted", re.IGNORECASE)


def program_script(descriptor: TargetDescriptor) -> str:
    # Braces keep a path with spaces as one Tcl word.
    return f"program {{{descriptor.artifact_path.as_posix()}}} verify reset exit"


def program_command(probe: ProbeSpec, descriptor: TargetDescriptor) -> list[str]:
    return [
        probe.programmer,
        "-f",
        descriptor.interface_config,
        "-f",
        descriptor.target_config,
        "-c",
        program_script(descriptor),
    ]


def captured_output(result: subprocess.CompletedProcess[str]) -> str:
    parts = [(result.stderr or "").strip(), (result.stdout or "").strip()]
    return "\n".join(part for part in parts if part)


def failed_stage(output: str) -> str | None:
    if _VERIFY_FAILED_RE.search(output):
        return "verify"
    if _PROGRAM_FAILED_RE.search(output):
        return "program"
    if _RESET_FAILED_RE.search(output):
        return "reset"
    return None


def interpret(result: subprocess.CompletedProcess[str]) -> ProgrammerOutcome:
    output = captured_output(result)
    stage = failed_stage(output)
    if result.returncode == 0 and stage != "verify":
        # Only a verify marker overrides a clean exit.
        stage = None
    return ProgrammerOutcome(returncode=result.returncode, output=output, failed_stage=stage)
