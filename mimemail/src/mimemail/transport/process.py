"""Narrow process-execution capability used by the transport adapters.

What:
  Run an external command, feed it bytes on stdin and collect its exit code
  and output.

Why:
  Both HTML conversion and delivery shell out (``html2text``, ``sendmail``).
  Funnelling every call through :class:`ProcessRunner` lets tests substitute a
  fake and keeps timeout policy out of the renderer and the sender.

How:
  :class:`SubprocessRunner` uses :class:`subprocess.Popen` with
  :meth:`~subprocess.Popen.communicate`. A launch failure becomes
  :class:`~mimemail.errors.StartFailure`; a timeout kills the child and
  becomes :class:`~mimemail.errors.TransportFailure`.

Interfaces:
  :class:`ProcessResult`, :class:`ProcessRunner`, :class:`SubprocessRunner`.
"""
from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from ..errors import StartFailure, TransportFailure
from ..utils.logging import get_logger


_LOGGER = get_logger("mimemail.process")


@dataclass(frozen=True)
class ProcessResult:
    """Exit status and captured output of one command."""

    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ProcessRunner(Protocol):
    """Anything able to run ``command args...`` with ``stdin`` as input."""

    def run(self, command: str, args: Sequence[str], stdin: bytes) -> ProcessResult:
        ...


class SubprocessRunner:
    """Run commands with :mod:`subprocess`, optionally bounded by ``timeout``."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    def run(self, command: str, args: Sequence[str], stdin: bytes) -> ProcessResult:
        """Execute ``command`` and wait for it.

        Raises:
          StartFailure: When the executable cannot be launched.
          TransportFailure: When the command exceeds the timeout.
        """

        argv = [command, *args]
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            _LOGGER.error("process_start_failed", command=command, error=str(exc))
            raise StartFailure(f"could not start {command!r}: {exc}") from exc
        try:
            out, err = proc.communicate(input=stdin, timeout=self.timeout)
        except subprocess.TimeoutExpired as exc:
            proc.kill()
            proc.communicate()
            _LOGGER.error("process_timeout", command=command, timeout_s=self.timeout)
            raise TransportFailure(f"{command!r} timed out after {self.timeout}s") from exc
        _LOGGER.debug("process_finished", command=command, exit_code=proc.returncode)
        return ProcessResult(exit_code=proc.returncode, stdout=out or b"", stderr=err or b"")
